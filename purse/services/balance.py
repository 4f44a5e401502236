"""
Balance derivation service.

Balances are never stored: every read recomputes them from live entries.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Union

from purse.db.base import utc_now
from purse.db.models import Account
from purse.db.repository import LedgerRepository

logger = logging.getLogger(__name__)


def month_over_month_rate(this_month: float, last_month: float) -> float:
    """Percentage change from last month to this month; 0 when last month is 0."""
    if last_month == 0:
        return 0.0
    return (this_month - last_month) / last_month * 100


def previous_month(day: date) -> date:
    """First day of the month before ``day``'s month."""
    if day.month == 1:
        return date(day.year - 1, 12, 1)
    return date(day.year, day.month - 1, 1)


@dataclass
class AccountSummary:
    """An account together with its derived figures."""

    account: Account
    balance: float
    this_month_balance: float
    last_month_balance: float
    rate_with_prev_month: float
    entry_count: int

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            **self.account.to_dict(),
            "balance": self.balance,
            "this_month_balance": self.this_month_balance,
            "last_month_balance": self.last_month_balance,
            "rate_with_prev_month": self.rate_with_prev_month,
            "transaction_count": self.entry_count,
        }


class BalanceCalculator:
    """Derives account and user balances from the entry ledger."""

    def __init__(self, repo: LedgerRepository):
        self.repo = repo

    def compute_balance(
        self, account_id: int, month: Optional[Union[date, datetime]] = None
    ) -> float:
        """
        Compute an account's balance.

        Args:
            account_id: Account ID
            month: Any date inside the calendar month to restrict to

        Returns:
            Signed sum of the account's live entries, 0.0 when there are none
        """
        if isinstance(month, datetime):
            month = month.date()
        return self.repo.queries.get_account_balance(account_id, month)

    def compute_user_balance(self, user_id: str) -> float:
        """Sum of the whole-history balances of every live account of the user."""
        accounts = self.repo.accounts.get_user_accounts(user_id)
        total = sum(self.compute_balance(account.id) for account in accounts)
        logger.debug(f"User {user_id} balance over {len(accounts)} accounts: {total}")
        return total

    def account_summary(
        self, account: Account, today: Optional[date] = None
    ) -> AccountSummary:
        """Build the derived figures shown alongside an account."""
        today = today or utc_now().date()
        this_month = self.compute_balance(account.id, today)
        last_month = self.compute_balance(account.id, previous_month(today))

        return AccountSummary(
            account=account,
            balance=self.compute_balance(account.id),
            this_month_balance=this_month,
            last_month_balance=last_month,
            rate_with_prev_month=month_over_month_rate(this_month, last_month),
            entry_count=self.repo.accounts.count_account_entries(account.id),
        )
