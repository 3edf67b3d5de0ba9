"""Sign-in API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends

from fbop.api.deps import get_current_principal, http_error
from fbop.database import get_store
from fbop.errors import UnauthenticatedError
from fbop.schemas.auth import FederatedSignInRequest, PrincipalResponse, SignInResponse
from fbop.services import family_service
from fbop.services.auth_service import (
    Principal,
    issue_session_token,
    sign_in_anonymously,
    sign_in_with_id_token,
)
from fbop.store import DocumentStore

router = APIRouter(tags=["auth"])


def _sign_in_response(principal: Principal) -> SignInResponse:
    return SignInResponse(
        uid=principal.uid,
        email=principal.email,
        anonymous=principal.anonymous,
        access_token=issue_session_token(principal),
    )


@router.post("/auth/anonymous", response_model=SignInResponse)
def anonymous_sign_in():
    """Create an anonymous principal (kid devices, first-time parents)."""
    return _sign_in_response(sign_in_anonymously())


@router.post("/auth/federated", response_model=SignInResponse)
def federated_sign_in(request: FederatedSignInRequest):
    """Exchange an identity provider's ID token for a session token."""
    try:
        principal = sign_in_with_id_token(request.id_token)
    except UnauthenticatedError as e:
        raise http_error(e)
    return _sign_in_response(principal)


@router.get("/auth/me", response_model=PrincipalResponse)
def me(
    principal: Principal = Depends(get_current_principal),
    store: DocumentStore = Depends(get_store),
):
    """Current principal and the family it already belongs to, if any."""
    family_id: Optional[str] = family_service.find_existing_family(store, principal)
    return PrincipalResponse(
        uid=principal.uid,
        email=principal.email,
        anonymous=principal.anonymous,
        family_id=family_id,
    )
