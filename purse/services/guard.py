"""
Ownership and referential guard.

Runs before every entry mutation and every account/label deletion. Nothing
here writes to the store.
"""

import logging

from purse.config import SYSTEM_CATEGORY_ID
from purse.db.repository import LedgerRepository
from purse.exceptions import OwnershipFailure, ReferentialConflict
from purse.models.entry import EntryDraft

logger = logging.getLogger(__name__)


class OwnershipGuard:
    """Checks that everything an operation touches belongs to the acting user."""

    def __init__(self, repo: LedgerRepository):
        self.repo = repo

    def _reject(self, user_id: str, detail: str):
        logger.warning(f"Ownership check failed for user {user_id}: {detail}")
        raise OwnershipFailure(detail)

    def check_account(self, user_id: str, account_id: int, role: str = "account"):
        if not self.repo.accounts.account_belongs_to_user(user_id, account_id):
            self._reject(
                user_id, f"{role} {account_id} does not exist or does not belong to user"
            )

    def check_category(self, user_id: str, category_id: int):
        """The system category is usable by everyone."""
        if category_id == SYSTEM_CATEGORY_ID:
            return
        if not self.repo.accounts.label_belongs_to_user("category", user_id, category_id):
            self._reject(
                user_id,
                f"category {category_id} does not exist or does not belong to user",
            )

    def check_tags(self, user_id: str, tag_ids: list[int]):
        if not tag_ids:
            return
        owned = self.repo.accounts.count_owned_tags(user_id, tag_ids)
        if owned != len(tag_ids):
            self._reject(
                user_id,
                f"tags {tag_ids} do not exist or do not belong to user",
            )

    def check_entry(self, user_id: str, entry_id: int):
        if not self.repo.entries.entry_belongs_to_user(user_id, entry_id):
            self._reject(
                user_id, f"entry {entry_id} does not exist or does not belong to user"
            )

    def check_draft(self, user_id: str, draft: EntryDraft):
        """
        Check every reference an entry draft makes.

        Raises:
            OwnershipFailure: On the first reference that is missing or foreign
        """
        self.check_account(user_id, draft.to_account_id, "to account")
        if draft.is_transfer and draft.from_account_id is not None:
            self.check_account(user_id, draft.from_account_id, "from account")
        self.check_category(user_id, draft.category_id)
        self.check_tags(user_id, draft.tag_ids)

    # =========================================================================
    # Referential checks
    # =========================================================================

    def _ensure_unused(self, what: str, entity_id: int, count: int):
        if count > 0:
            logger.warning(f"Refusing to delete {what} {entity_id}: used by {count} entries")
            raise ReferentialConflict(
                f"{what} {entity_id} is used by {count} entries", count
            )

    def ensure_account_unused(self, account_id: int):
        self._ensure_unused(
            "account", account_id, self.repo.accounts.count_account_entries(account_id)
        )

    def ensure_category_unused(self, category_id: int):
        self._ensure_unused(
            "category",
            category_id,
            self.repo.accounts.count_category_entries(category_id),
        )

    def ensure_tag_unused(self, tag_id: int):
        self._ensure_unused(
            "tag", tag_id, self.repo.accounts.count_tag_entries(tag_id)
        )
