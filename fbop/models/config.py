"""Device-local configuration model."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel


class AppMode(str, Enum):
    NOT_CONFIGURED = "NOT_CONFIGURED"
    PARENT = "PARENT"
    KID = "KID"


class ThemeMode(str, Enum):
    SYSTEM = "SYSTEM"
    LIGHT = "LIGHT"
    DARK = "DARK"


class AppConfig(BaseModel):
    mode: AppMode = AppMode.NOT_CONFIGURED
    family_id: Optional[str] = None
    child_id: Optional[str] = None  # kid mode only
    lookup_code: Optional[str] = None  # kid mode only
