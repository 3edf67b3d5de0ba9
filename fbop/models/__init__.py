"""First Bank of Pig models."""

from fbop.models.document import StoredDocument
from fbop.models.family import Family, Parent
from fbop.models.child import Child, ChildWithBalance, Transaction
from fbop.models.codes import ChildLookup, Invite
from fbop.models.device import DeviceAccess
from fbop.models.config import AppConfig, AppMode, ThemeMode

__all__ = [
    "StoredDocument",
    "Family",
    "Parent",
    "Child",
    "ChildWithBalance",
    "Transaction",
    "Invite",
    "ChildLookup",
    "DeviceAccess",
    "AppConfig",
    "AppMode",
    "ThemeMode",
]
