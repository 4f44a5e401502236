"""
Entry operations service.

Every mutation passes through the ownership guard and the classifier before
reaching the store, and runs inside one store transaction.
"""

import logging
from datetime import date
from typing import Optional

from purse.config import MAX_YEARS_AHEAD, MIN_YEAR
from purse.db.base import utc_now
from purse.db.models import Entry
from purse.db.repository import LedgerRepository
from purse.exceptions import OwnershipFailure, ValidationFailure
from purse.models.entry import EntryDraft
from purse.models.filters import EntryFilter

from .classifier import validate_draft
from .guard import OwnershipGuard
from .notifications import NotificationHub

logger = logging.getLogger(__name__)


def validate_year_month(year: int, month: int, today: Optional[date] = None):
    """
    Check a year/month lookup.

    Raises:
        ValidationFailure: If year is outside [1900, current year + 10] or
            month outside [1, 12]
    """
    today = today or utc_now().date()
    max_year = today.year + MAX_YEARS_AHEAD
    if not MIN_YEAR <= year <= max_year:
        raise ValidationFailure(f"year must be between {MIN_YEAR} and {max_year}")
    if not 1 <= month <= 12:
        raise ValidationFailure("month must be between 1 and 12")


class LedgerService:
    """Creates, replaces, deletes and reads entries on behalf of a user."""

    def __init__(
        self,
        repo: LedgerRepository,
        guard: OwnershipGuard,
        hub: Optional[NotificationHub] = None,
    ):
        """
        Initialize the ledger service.

        Args:
            repo: Ledger repository
            guard: Ownership guard run before every mutation
            hub: Optional notification hub told about entry reads
        """
        self.repo = repo
        self.guard = guard
        self.hub = hub

    # =========================================================================
    # Mutations
    # =========================================================================

    def create_entry(self, user_id: str, draft: EntryDraft) -> Entry:
        """
        Record a new entry.

        Raises:
            ValidationFailure: If the draft violates shape or kind rules
            OwnershipFailure: If an account, category or tag is foreign
        """
        validate_draft(draft)

        with self.repo.transaction():
            self.guard.check_draft(user_id, draft)
            entry = self.repo.entries.insert(draft)

        logger.info(f"User {user_id} created entry {entry.id}")
        return entry

    def update_entry(self, user_id: str, entry_id: int, draft: EntryDraft) -> Entry:
        """
        Replace an entry with a full new payload, tags included.

        Raises:
            ValidationFailure: If the draft violates shape or kind rules
            OwnershipFailure: If the entry or any reference is foreign
        """
        validate_draft(draft)

        with self.repo.transaction():
            self.guard.check_entry(user_id, entry_id)
            self.guard.check_draft(user_id, draft)
            entry = self.repo.entries.replace(entry_id, draft)

        if entry is None:
            raise OwnershipFailure(
                f"entry {entry_id} does not exist or does not belong to user"
            )

        logger.info(f"User {user_id} updated entry {entry_id}")
        return entry

    def delete_entry(self, user_id: str, entry_id: int):
        """
        Soft-delete an entry and drop its tag associations.

        Raises:
            OwnershipFailure: If the entry is missing, deleted or foreign
        """
        with self.repo.transaction():
            self.guard.check_entry(user_id, entry_id)
            self.repo.entries.soft_delete(entry_id)

        logger.info(f"User {user_id} deleted entry {entry_id}")

    # =========================================================================
    # Reads
    # =========================================================================

    def get_entry(self, user_id: str, entry_id: int) -> Entry:
        """
        Get one entry and tell the user's notification sink about it.

        Raises:
            OwnershipFailure: If the entry is missing, deleted or foreign
        """
        self.guard.check_entry(user_id, entry_id)
        entry = self.repo.entries.get_by_id(entry_id)
        if entry is None:
            raise OwnershipFailure(
                f"entry {entry_id} does not exist or does not belong to user"
            )

        if self.hub is not None:
            self.hub.notify(
                user_id,
                {"event": "entry_viewed", "entry_id": entry.id, "entry": entry.to_dict()},
            )

        return entry

    def list_entries(self, user_id: str) -> list[Entry]:
        """All live entries of a user, newest first."""
        return self.repo.entries.get_user_entries(user_id)

    def get_account_entries_by_month(
        self, user_id: str, account_id: int, year: int, month: int
    ) -> list[Entry]:
        """
        Live entries touching an owned account within a calendar month.

        Raises:
            ValidationFailure: If year or month is out of range
            OwnershipFailure: If the account is foreign
        """
        validate_year_month(year, month)
        self.guard.check_account(user_id, account_id)
        return self.repo.entries.get_account_entries_by_month(account_id, year, month)

    def filter_entries(self, criteria: EntryFilter) -> list[Entry]:
        """Live entries of ``criteria.user_id`` matching every criterion in ``criteria``."""
        entries = self.repo.entries.find_by_filter(criteria)
        logger.debug(f"Filter for user {criteria.user_id} returned {len(entries)} entries")
        return entries
