"""Common API dependencies: current principal extraction, family role checks."""

from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from fbop.database import get_store
from fbop.errors import (
    INVALID_CODE_ERRORS,
    FbopError,
    NotFoundError,
    PartialBatchFailureError,
    PermissionDeniedError,
    TransientStoreError,
    UnauthenticatedError,
)
from fbop.services import device_service, family_service
from fbop.services.auth_service import Principal, principal_from_token
from fbop.store import DocumentStore, paths

bearer_scheme = HTTPBearer()
optional_bearer_scheme = HTTPBearer(auto_error=False)


def get_current_principal(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
) -> Principal:
    """Extract and validate the principal from a session token."""
    try:
        return principal_from_token(credentials.credentials)
    except UnauthenticatedError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
        )


def get_optional_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_bearer_scheme),
) -> Optional[Principal]:
    if credentials is None:
        return None
    try:
        return principal_from_token(credentials.credentials)
    except UnauthenticatedError:
        return None


def require_parent(
    family_id: str,
    principal: Principal = Depends(get_current_principal),
    store: DocumentStore = Depends(get_store),
) -> Principal:
    """Require the current principal to be a parent of ``family_id``."""
    if not family_service.is_parent(store, family_id, principal):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Parent access required",
        )
    return principal


def require_owner(
    family_id: str,
    principal: Principal = Depends(get_current_principal),
    store: DocumentStore = Depends(get_store),
) -> Principal:
    """Require the current principal to own ``family_id``."""
    snapshot = store.get(paths.family(family_id))
    if snapshot is None or snapshot.get("owner_uid") != principal.uid:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Owner access required",
        )
    return principal


def require_child_reader(
    family_id: str,
    child_id: str,
    principal: Principal = Depends(get_current_principal),
    store: DocumentStore = Depends(get_store),
) -> Principal:
    """Parents of the family, or a device registered for this child."""
    if family_service.is_parent(store, family_id, principal):
        return principal
    if device_service.check_device_access(store, family_id, child_id, principal):
        return principal
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Access to this child has been revoked",
    )


def http_error(error: FbopError, code_lookup: bool = False) -> HTTPException:
    """Translate a service error into an HTTP error.

    For code lookups, absent and expired codes look the same to the caller.
    """
    if code_lookup and isinstance(error, INVALID_CODE_ERRORS):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invalid or expired code")
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=error.message)
    if isinstance(error, UnauthenticatedError):
        return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=error.message)
    if isinstance(error, PermissionDeniedError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=error.message)
    if isinstance(error, PartialBatchFailureError):
        return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=error.message)
    if isinstance(error, TransientStoreError):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Service temporarily unavailable")
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error.message)
