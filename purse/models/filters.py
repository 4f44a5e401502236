"""
Filter and window types for ledger reads.

Both types validate their own invariants so that an instance in hand is
always usable by the query layer.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from purse.exceptions import ValidationFailure

from .entry import EntryKind


@dataclass
class ReportWindow:
    """
    Inclusive calendar-day window. Both bounds present or both absent.
    """

    start_date: Optional[date] = None
    end_date: Optional[date] = None

    def __post_init__(self):
        if (self.start_date is None) != (self.end_date is None):
            raise ValidationFailure(
                "start date and end date must be provided together"
            )
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValidationFailure("start date can't be after end date")

    @property
    def is_bounded(self) -> bool:
        return self.start_date is not None

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
        }


@dataclass
class EntryFilter:
    """
    Criteria for listing a user's entries.

    ``day`` selects a single calendar day and cannot be combined with a
    start/end range. ``account_ids`` match either side of an entry.
    """

    user_id: str
    kind: Optional[EntryKind] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    day: Optional[date] = None
    account_ids: list[int] = field(default_factory=list)
    category_ids: list[int] = field(default_factory=list)
    tag_ids: list[int] = field(default_factory=list)
    description: str = ""

    def __post_init__(self):
        if not self.user_id:
            raise ValidationFailure("user ID is required")
        if self.kind is not None and not isinstance(self.kind, EntryKind):
            try:
                self.kind = EntryKind(self.kind)
            except ValueError:
                raise ValidationFailure(f"unknown entry kind: {self.kind}") from None
        # Reuses the window rules for the range part
        ReportWindow(self.start_date, self.end_date)
        if self.day is not None and self.start_date is not None:
            raise ValidationFailure(
                "day can't be used along with start date and end date"
            )
        self.description = (self.description or "").strip()

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "user_id": self.user_id,
            "kind": self.kind.value if self.kind else None,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "day": self.day.isoformat() if self.day else None,
            "account_ids": list(self.account_ids),
            "category_ids": list(self.category_ids),
            "tag_ids": list(self.tag_ids),
            "description": self.description,
        }
