"""
Account lifecycle service.

Creating or editing an account with a stated balance records the balance as
a synthesized entry in the same store transaction as the account write.
"""

import logging
import math

from purse.config import MAX_ACCOUNT_NAME_LENGTH, MAX_CURRENCY_LENGTH, MIN_NAME_LENGTH
from purse.db.repository import LedgerRepository
from purse.exceptions import OwnershipFailure, ValidationFailure
from purse.models.account import AccountDraft

from .balance import AccountSummary, BalanceCalculator
from .guard import OwnershipGuard
from .reconciliation import ReconciliationService

logger = logging.getLogger(__name__)


def validate_account_draft(draft: AccountDraft):
    if not MIN_NAME_LENGTH <= len(draft.name) <= MAX_ACCOUNT_NAME_LENGTH:
        raise ValidationFailure(
            f"account name must be between {MIN_NAME_LENGTH} and "
            f"{MAX_ACCOUNT_NAME_LENGTH} characters"
        )
    if not draft.currency or len(draft.currency) > MAX_CURRENCY_LENGTH:
        raise ValidationFailure(
            f"currency must be between 1 and {MAX_CURRENCY_LENGTH} characters"
        )
    if draft.balance is None or not math.isfinite(draft.balance):
        raise ValidationFailure("balance must be a finite number")


class AccountService:
    """Creates, edits, deletes and lists a user's accounts."""

    def __init__(
        self,
        repo: LedgerRepository,
        guard: OwnershipGuard,
        balances: BalanceCalculator,
        reconciliation: ReconciliationService,
    ):
        self.repo = repo
        self.guard = guard
        self.balances = balances
        self.reconciliation = reconciliation

    def create_account(self, user_id: str, draft: AccountDraft) -> AccountSummary:
        """
        Create an account and record its opening balance.

        Raises:
            ValidationFailure: If the name is taken or fields are malformed
            ReconciliationFailure: If the opening entry cannot be recorded;
                the account is not created either
        """
        validate_account_draft(draft)

        with self.repo.transaction():
            if self.repo.accounts.account_name_taken(user_id, draft.name):
                raise ValidationFailure(f"account name '{draft.name}' already exists")

            account = self.repo.accounts.create_account(user_id, draft)
            self.reconciliation.create_opening_entry(user_id, account.id, draft.balance)

        logger.info(
            f"User {user_id} created account {account.id} "
            f"with opening balance {draft.balance}"
        )
        return self.balances.account_summary(account)

    def update_account(
        self, user_id: str, account_id: int, draft: AccountDraft
    ) -> AccountSummary:
        """
        Replace an account's fields and reconcile its stated balance.

        Raises:
            OwnershipFailure: If the account is missing or foreign
            ValidationFailure: If the new name is taken or fields are malformed
            ReconciliationFailure: If the adjusting entry cannot be recorded;
                the account fields are left unchanged
        """
        validate_account_draft(draft)

        with self.repo.transaction():
            self.guard.check_account(user_id, account_id)
            if self.repo.accounts.account_name_taken(
                user_id, draft.name, exclude_id=account_id
            ):
                raise ValidationFailure(f"account name '{draft.name}' already exists")

            account = self.repo.accounts.update_account(account_id, user_id, draft)
            self.reconciliation.reconcile_account_edit(
                user_id, account_id, draft.balance
            )

        logger.info(f"User {user_id} updated account {account_id}")
        return self.balances.account_summary(account)

    def delete_account(self, user_id: str, account_id: int):
        """
        Soft-delete an account no live entry references.

        Raises:
            OwnershipFailure: If the account is missing or foreign
            ReferentialConflict: If entries still reference the account
        """
        with self.repo.transaction():
            self.guard.check_account(user_id, account_id)
            self.guard.ensure_account_unused(account_id)
            self.repo.accounts.delete_account(account_id, user_id)

    def get_account(self, user_id: str, account_id: int) -> AccountSummary:
        account = self.repo.accounts.get_account(account_id, user_id)
        if account is None:
            raise OwnershipFailure(
                f"account {account_id} does not exist or does not belong to user"
            )
        return self.balances.account_summary(account)

    def list_accounts(self, user_id: str) -> list[AccountSummary]:
        """Every live account of the user with balances, rates and entry counts."""
        accounts = self.repo.accounts.get_user_accounts(user_id)
        return [self.balances.account_summary(account) for account in accounts]

    def get_total_balance(self, user_id: str) -> float:
        return self.balances.compute_user_balance(user_id)
