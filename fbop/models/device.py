"""Device access model."""

from datetime import datetime
from typing import ClassVar, Optional

from fbop.models.base import DocumentModel


class DeviceAccess(DocumentModel):
    """A kid device's read grant on one child, keyed by the device's uid."""

    id_field: ClassVar[str] = "uid"

    uid: str = ""
    device_name: str = ""
    lookup_code: str = ""
    registered_at: Optional[datetime] = None
    last_accessed_at: Optional[datetime] = None
