"""Family, parent & invite API endpoints."""

from fastapi import APIRouter, Depends, status

from fbop.api.deps import get_current_principal, http_error, require_owner, require_parent
from fbop.database import get_store
from fbop.errors import FbopError
from fbop.models.family import Family
from fbop.schemas.family import (
    FamilyCreateRequest,
    FamilyResponse,
    FamilyUpdateRequest,
    InviteCreateResponse,
    InviteJoinResponse,
    InviteLookupResponse,
    ParentResponse,
)
from fbop.services import family_service, invite_service
from fbop.services.auth_service import Principal
from fbop.store import DocumentStore
from fbop.utils.qr import encode_qr_base64

router = APIRouter(tags=["family"])


def _family_response(family: Family) -> FamilyResponse:
    return FamilyResponse(
        id=family.id,
        name=family.name,
        owner_uid=family.owner_uid,
        created_at=family.created_at,
    )


@router.post("/families", response_model=FamilyResponse, status_code=status.HTTP_201_CREATED)
def create_family(
    request: FamilyCreateRequest,
    principal: Principal = Depends(get_current_principal),
    store: DocumentStore = Depends(get_store),
):
    """Create a family; the caller becomes its owner."""
    try:
        family = family_service.create_family(store, principal, request.name)
    except FbopError as e:
        raise http_error(e)
    return _family_response(family)


@router.get("/families/{family_id}", response_model=FamilyResponse)
def get_family(
    family_id: str,
    principal: Principal = Depends(require_parent),
    store: DocumentStore = Depends(get_store),
):
    try:
        return _family_response(family_service.get_family(store, family_id))
    except FbopError as e:
        raise http_error(e)


@router.patch("/families/{family_id}", response_model=FamilyResponse)
def rename_family(
    family_id: str,
    request: FamilyUpdateRequest,
    principal: Principal = Depends(require_parent),
    store: DocumentStore = Depends(get_store),
):
    try:
        family_service.update_family_name(store, family_id, request.name)
        return _family_response(family_service.get_family(store, family_id))
    except FbopError as e:
        raise http_error(e)


@router.delete("/families/{family_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_family(
    family_id: str,
    principal: Principal = Depends(require_owner),
    store: DocumentStore = Depends(get_store),
):
    """Delete the family with all children, transactions, parents and invites. Owner only."""
    try:
        family_service.delete_family(store, principal, family_id)
    except FbopError as e:
        raise http_error(e)


# --- Parents ---

@router.get("/families/{family_id}/parents", response_model=list[ParentResponse])
def list_parents(
    family_id: str,
    principal: Principal = Depends(require_parent),
    store: DocumentStore = Depends(get_store),
):
    try:
        family = family_service.get_family(store, family_id)
        parents = family_service.list_parents(store, family_id)
    except FbopError as e:
        raise http_error(e)

    return [
        ParentResponse(
            uid=p.uid,
            email=p.email,
            is_owner=p.uid == family.owner_uid,
            joined_at=p.joined_at,
        )
        for p in parents
    ]


@router.delete("/families/{family_id}/parents/{parent_uid}", status_code=status.HTTP_204_NO_CONTENT)
def remove_parent(
    family_id: str,
    parent_uid: str,
    principal: Principal = Depends(require_owner),
    store: DocumentStore = Depends(get_store),
):
    """Remove a parent. Owner only; the owner cannot remove themselves."""
    try:
        family_service.remove_parent(store, family_id, parent_uid)
    except FbopError as e:
        raise http_error(e)


# --- Invites ---

@router.post(
    "/families/{family_id}/invites",
    response_model=InviteCreateResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_invite(
    family_id: str,
    principal: Principal = Depends(require_parent),
    store: DocumentStore = Depends(get_store),
):
    """Mint a 24h invite code for another parent."""
    try:
        invite = invite_service.create_invite(store, family_id, principal)
    except FbopError as e:
        raise http_error(e)

    return InviteCreateResponse(
        code=invite.code,
        family_id=invite.family_id,
        expires_at=invite.expires_at,
        qr_png_base64=encode_qr_base64(invite.code),
    )


@router.get("/invites/{code}", response_model=InviteLookupResponse)
def lookup_invite(
    code: str,
    principal: Principal = Depends(get_current_principal),
    store: DocumentStore = Depends(get_store),
):
    try:
        family_id = invite_service.lookup_invite_code(store, code)
    except FbopError as e:
        raise http_error(e, code_lookup=True)
    return InviteLookupResponse(family_id=family_id)


@router.post("/invites/{code}/join", response_model=InviteJoinResponse)
def join_family(
    code: str,
    principal: Principal = Depends(get_current_principal),
    store: DocumentStore = Depends(get_store),
):
    """Redeem an invite code; the caller becomes a parent of its family."""
    try:
        family_id = invite_service.lookup_invite_code(store, code)
        invite_service.join_family(store, family_id, code, principal)
    except FbopError as e:
        raise http_error(e, code_lookup=True)
    return InviteJoinResponse(family_id=family_id, uid=principal.uid)
