"""Auth request/response schemas."""

from typing import Optional

from pydantic import BaseModel


class FederatedSignInRequest(BaseModel):
    id_token: str


class SignInResponse(BaseModel):
    uid: str
    email: Optional[str]
    anonymous: bool
    access_token: str


class PrincipalResponse(BaseModel):
    uid: str
    email: Optional[str]
    anonymous: bool
    family_id: Optional[str]
