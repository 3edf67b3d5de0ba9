"""Child, transaction, lookup code and device schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, StrictInt


class ChildCreateRequest(BaseModel):
    name: str


class ChildUpdateRequest(BaseModel):
    name: str


class ChildResponse(BaseModel):
    id: str
    name: str
    created_at: Optional[datetime]
    balance: int
    formatted_balance: str


class TransactionRequest(BaseModel):
    amount: StrictInt  # cents; negative for withdrawals
    description: str = ""
    date: datetime


class TransactionResponse(BaseModel):
    id: str
    amount: int
    description: str
    date: datetime
    is_deposit: bool
    created_at: Optional[datetime]
    modified_at: Optional[datetime]


class LookupCodeResponse(BaseModel):
    lookup_code: str
    family_id: str
    child_id: str
    expires_at: datetime
    qr_png_base64: str


class LookupResolveResponse(BaseModel):
    family_id: str
    child_id: str


class DeviceRegisterRequest(BaseModel):
    device_name: str
    lookup_code: str


class DeviceResponse(BaseModel):
    uid: str
    device_name: str
    lookup_code: str
    registered_at: Optional[datetime]
    last_accessed_at: Optional[datetime]


class DeviceAccessResponse(BaseModel):
    has_access: bool
