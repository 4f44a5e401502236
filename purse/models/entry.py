from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import Optional

from purse.exceptions import ValidationFailure


class EntryKind(IntEnum):
    INCOME = 1
    EXPENSE = 2
    TRANSFER = 3


@dataclass(frozen=True)
class Violation:
    """A single structural problem found in an entry draft."""

    field: str
    message: str

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {"field": self.field, "message": self.message}


@dataclass
class EntryDraft:
    """
    Full replacement payload for creating or updating an entry.

    Entries are never patched field by field: every mutation supplies the
    complete set of values below.
    """

    kind: EntryKind
    amount: float
    to_account_id: int
    category_id: int
    date: datetime
    from_account_id: Optional[int] = None
    tag_ids: list[int] = field(default_factory=list)
    description: str = ""
    location: str = ""

    def __post_init__(self):
        """Coerce raw kind values and normalize free text."""
        if not isinstance(self.kind, EntryKind):
            try:
                self.kind = EntryKind(self.kind)
            except ValueError:
                raise ValidationFailure(f"unknown entry kind: {self.kind}") from None
        self.description = (self.description or "").strip()
        self.location = (self.location or "").strip()
        self.tag_ids = list(self.tag_ids or [])

    @property
    def is_transfer(self) -> bool:
        return self.kind == EntryKind.TRANSFER

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "kind": self.kind.value,
            "amount": self.amount,
            "to_account_id": self.to_account_id,
            "from_account_id": self.from_account_id,
            "category_id": self.category_id,
            "date": self.date.isoformat(),
            "tag_ids": list(self.tag_ids),
            "description": self.description,
            "location": self.location,
        }
