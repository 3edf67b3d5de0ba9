"""Child account and transaction models."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from fbop.models.base import DocumentModel


class Child(DocumentModel):
    id: str = ""
    name: str = ""
    created_at: Optional[datetime] = None


class Transaction(DocumentModel):
    """A deposit (amount >= 0) or withdrawal (amount < 0) in minor units."""

    id: str = ""
    amount: int = 0
    description: str = ""
    date: datetime  # user-chosen effective date
    created_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None

    @property
    def is_deposit(self) -> bool:
        return self.amount >= 0


class ChildWithBalance(BaseModel):
    child: Child
    balance: int
    transactions: list[Transaction]
