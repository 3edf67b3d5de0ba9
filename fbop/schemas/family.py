"""Family, parent and invite schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class FamilyCreateRequest(BaseModel):
    name: str


class FamilyUpdateRequest(BaseModel):
    name: str


class FamilyResponse(BaseModel):
    id: str
    name: str
    owner_uid: str
    created_at: Optional[datetime]


class ParentResponse(BaseModel):
    uid: str
    email: str
    is_owner: bool
    joined_at: Optional[datetime]


class InviteCreateResponse(BaseModel):
    code: str
    family_id: str
    expires_at: datetime
    qr_png_base64: str


class InviteLookupResponse(BaseModel):
    family_id: str


class InviteJoinResponse(BaseModel):
    family_id: str
    uid: str
