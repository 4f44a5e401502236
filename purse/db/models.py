"""
Database models for the Purse ledger.

Defines the records read back from SQLite. Balances are never stored on an
Account: they are derived from Entry rows by the query repository.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from purse.config import SYSTEM_CATEGORY_ID
from purse.models.entry import EntryKind


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a stored timestamp, tolerating NULL."""
    return datetime.fromisoformat(value) if value else None


def format_timestamp(value: datetime) -> str:
    """
    Format a datetime for storage.

    Aware values are stored as naive UTC so that SQLite's date() functions and
    plain string comparison agree on ordering.
    """
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.strftime("%Y-%m-%d %H:%M:%S")


@dataclass
class Account:
    """An account owned by a user. Holds no stored balance."""

    id: int
    user_id: str
    name: str
    currency: str
    color: str
    icon: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "currency": self.currency,
            "color": self.color,
            "icon": self.icon,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def from_row(cls, row) -> "Account":
        """Create an Account from a database row."""
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            name=row["name"],
            currency=row["currency"],
            color=row["color"],
            icon=row["icon"],
            created_at=parse_timestamp(row["created_at"]),
            updated_at=parse_timestamp(row["updated_at"]),
        )


@dataclass
class Label:
    """
    A category or a tag.

    The system category has no owner (``user_id`` is None).
    """

    id: int
    name: str
    color: str
    icon: str
    user_id: Optional[str] = None

    @property
    def is_system(self) -> bool:
        return self.user_id is None and self.id == SYSTEM_CATEGORY_ID

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "icon": self.icon,
        }

    @classmethod
    def from_row(cls, row) -> "Label":
        """Create a Label from a database row."""
        return cls(
            id=row["id"],
            name=row["name"],
            color=row["color"],
            icon=row["icon"],
            user_id=row["user_id"],
        )


@dataclass
class Entry:
    """
    A single money movement.

    INCOME and EXPENSE entries only touch ``to_account_id``; TRANSFER entries
    move ``amount`` from ``from_account_id`` to ``to_account_id``.
    """

    id: int
    kind: EntryKind
    amount: float
    to_account_id: int
    from_account_id: Optional[int]
    date: datetime
    category: Label
    description: str = ""
    location: str = ""
    tags: list[Label] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def tag_ids(self) -> list[int]:
        return [t.id for t in self.tags]

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "kind": self.kind.value,
            "amount": self.amount,
            "to_account_id": self.to_account_id,
            "from_account_id": self.from_account_id,
            "date": self.date.isoformat(),
            "description": self.description,
            "location": self.location,
            "category": self.category.to_dict(),
            "tags": [t.to_dict() for t in self.tags],
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def from_row(cls, row, tags: Optional[list[Label]] = None) -> "Entry":
        """
        Create an Entry from a row joined with its category.

        The row must carry the ``category_*`` columns selected by
        ``ENTRY_SELECT``; tags are loaded separately.
        """
        return cls(
            id=row["id"],
            kind=EntryKind(row["kind"]),
            amount=row["amount"],
            to_account_id=row["to_account_id"],
            from_account_id=row["from_account_id"],
            date=datetime.fromisoformat(row["date"]),
            category=Label(
                id=row["category_id"],
                name=row["category_name"],
                color=row["category_color"],
                icon=row["category_icon"],
                user_id=row["category_user_id"],
            ),
            description=row["description"] or "",
            location=row["location"] or "",
            tags=list(tags or []),
            created_at=parse_timestamp(row["created_at"]),
            updated_at=parse_timestamp(row["updated_at"]),
            deleted_at=parse_timestamp(row["deleted_at"]),
        )
