"""
Category and tag lifecycle service.
"""

import logging

from purse.config import CATEGORY_NAME_BLACKLIST, MAX_LABEL_NAME_LENGTH, MIN_NAME_LENGTH
from purse.db.models import Label
from purse.db.repository import LedgerRepository
from purse.exceptions import OwnershipFailure, ValidationFailure
from purse.models.account import LabelDraft

from .guard import OwnershipGuard

logger = logging.getLogger(__name__)


class LabelService:
    """Creates, deletes and lists a user's categories and tags."""

    def __init__(self, repo: LedgerRepository, guard: OwnershipGuard):
        self.repo = repo
        self.guard = guard

    def _validate(self, kind: str, user_id: str, draft: LabelDraft):
        if not MIN_NAME_LENGTH <= len(draft.name) <= MAX_LABEL_NAME_LENGTH:
            raise ValidationFailure(
                f"{kind} name must be between {MIN_NAME_LENGTH} and "
                f"{MAX_LABEL_NAME_LENGTH} characters"
            )
        if self.repo.accounts.label_name_taken(kind, user_id, draft.name):
            raise ValidationFailure(f"{kind} name '{draft.name}' already exists")

    # =========================================================================
    # Categories
    # =========================================================================

    def create_category(self, user_id: str, draft: LabelDraft) -> Label:
        """
        Create a category.

        Raises:
            ValidationFailure: If the name is reserved, taken or malformed
        """
        reserved = {name.lower() for name in CATEGORY_NAME_BLACKLIST}
        if draft.name.lower() in reserved:
            logger.warning(f"User {user_id} tried to create reserved category '{draft.name}'")
            raise ValidationFailure(f"category name '{draft.name}' is reserved")
        self._validate("category", user_id, draft)
        return self.repo.accounts.create_label("category", user_id, draft)

    def delete_category(self, user_id: str, category_id: int):
        """
        Soft-delete a category no live entry uses.

        Raises:
            OwnershipFailure: If the category is missing, foreign or the system one
            ReferentialConflict: If entries still use the category
        """
        with self.repo.transaction():
            if not self.repo.accounts.label_belongs_to_user(
                "category", user_id, category_id
            ):
                raise OwnershipFailure(
                    f"category {category_id} does not exist or does not belong to user"
                )
            self.guard.ensure_category_unused(category_id)
            self.repo.accounts.delete_label("category", category_id, user_id)

    def list_categories(self, user_id: str) -> list[Label]:
        return self.repo.accounts.get_user_labels("category", user_id)

    # =========================================================================
    # Tags
    # =========================================================================

    def create_tag(self, user_id: str, draft: LabelDraft) -> Label:
        """
        Create a tag.

        Raises:
            ValidationFailure: If the name is taken or malformed
        """
        self._validate("tag", user_id, draft)
        return self.repo.accounts.create_label("tag", user_id, draft)

    def delete_tag(self, user_id: str, tag_id: int):
        """
        Soft-delete a tag no live entry carries.

        Raises:
            OwnershipFailure: If the tag is missing or foreign
            ReferentialConflict: If entries still carry the tag
        """
        with self.repo.transaction():
            self.guard.check_tags(user_id, [tag_id])
            self.guard.ensure_tag_unused(tag_id)
            self.repo.accounts.delete_label("tag", tag_id, user_id)

    def list_tags(self, user_id: str) -> list[Label]:
        return self.repo.accounts.get_user_labels("tag", user_id)
