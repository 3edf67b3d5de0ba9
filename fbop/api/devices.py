"""Kid device access API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from fbop.api.deps import get_current_principal, get_optional_principal, http_error, require_parent
from fbop.database import get_store
from fbop.errors import FbopError
from fbop.schemas.child import DeviceAccessResponse, DeviceRegisterRequest, DeviceResponse
from fbop.services import device_service, lookup_service
from fbop.services.auth_service import Principal
from fbop.store import DocumentStore

router = APIRouter(tags=["devices"])

DEVICES_PATH = "/families/{family_id}/children/{child_id}/devices"


@router.post(DEVICES_PATH, status_code=status.HTTP_204_NO_CONTENT)
def register_device(
    family_id: str,
    child_id: str,
    request: DeviceRegisterRequest,
    principal: Principal = Depends(get_current_principal),
    store: DocumentStore = Depends(get_store),
):
    """Register the calling device for a child using a live lookup code."""
    try:
        lookup = lookup_service.lookup_child(store, request.lookup_code)
    except FbopError as e:
        raise http_error(e, code_lookup=True)

    if (lookup.family_id, lookup.child_id) != (family_id, child_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invalid or expired code")

    try:
        device_service.register_device(
            store, family_id, child_id, principal, request.device_name, lookup.lookup_code
        )
    except FbopError as e:
        raise http_error(e)


@router.get(DEVICES_PATH, response_model=list[DeviceResponse])
def list_devices(
    family_id: str,
    child_id: str,
    principal: Principal = Depends(require_parent),
    store: DocumentStore = Depends(get_store),
):
    """Devices registered for a child, newest first."""
    try:
        devices = device_service.list_devices(store, family_id, child_id)
    except FbopError as e:
        raise http_error(e)

    return [
        DeviceResponse(
            uid=d.uid,
            device_name=d.device_name,
            lookup_code=d.lookup_code,
            registered_at=d.registered_at,
            last_accessed_at=d.last_accessed_at,
        )
        for d in devices
    ]


@router.get(DEVICES_PATH + "/me", response_model=DeviceAccessResponse)
def check_my_access(
    family_id: str,
    child_id: str,
    principal: Optional[Principal] = Depends(get_optional_principal),
    store: DocumentStore = Depends(get_store),
):
    """Whether the calling device still has access. False when not signed in."""
    try:
        has_access = device_service.check_device_access(store, family_id, child_id, principal)
    except FbopError as e:
        raise http_error(e)
    return DeviceAccessResponse(has_access=has_access)


@router.post(DEVICES_PATH + "/me/touch", status_code=status.HTTP_204_NO_CONTENT)
def touch_my_device(
    family_id: str,
    child_id: str,
    principal: Optional[Principal] = Depends(get_optional_principal),
    store: DocumentStore = Depends(get_store),
):
    """Record a session start. Never fails."""
    device_service.touch_device(store, family_id, child_id, principal)


@router.delete(DEVICES_PATH + "/{device_uid}", status_code=status.HTTP_204_NO_CONTENT)
def revoke_device(
    family_id: str,
    child_id: str,
    device_uid: str,
    principal: Principal = Depends(require_parent),
    store: DocumentStore = Depends(get_store),
):
    """Revoke a device's access."""
    try:
        device_service.revoke_device(store, family_id, child_id, device_uid)
    except FbopError as e:
        raise http_error(e)
