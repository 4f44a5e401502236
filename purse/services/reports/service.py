"""
Report service for time-windowed aggregates over the ledger.

Provides functionality for:
- Daily cash flow (income, expense and their difference)
- Balance evolution (running total of signed daily amounts)
- Top entries by amount
- Category spending and income totals
- Entry counts per day of a year
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

import pandas as pd

from purse.db.base import utc_now
from purse.db.repository import LedgerRepository
from purse.exceptions import ValidationFailure
from purse.models.entry import EntryKind
from purse.models.filters import ReportWindow

logger = logging.getLogger(__name__)

CASH_FLOW_TITLE = "Cash flow"
BALANCE_EVOLUTION_TITLE = "Balance evolution"
TOP_ENTRIES_TITLE = "Top transactions"
CATEGORIES_SPENDING_TITLE = "Categories Spending"
CATEGORIES_INCOME_TITLE = "Categories Income"
COUNTS_BY_DAY_TITLE = "Count transactions by day"

DEFAULT_TOP_LIMIT = 10


@dataclass
class Report:
    """A titled list of report rows."""

    title: str
    data: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {"title": self.title, "data": list(self.data)}


class ReportService:
    """Service for building reports from a user's live entries."""

    def __init__(self, repo: LedgerRepository):
        """
        Initialize the report service.

        Args:
            repo: Ledger repository
        """
        self.repo = repo

    def cash_flow(self, user_id: str, window: Optional[ReportWindow] = None) -> Report:
        """Income, expense and cash flow per calendar day, ascending."""
        rows = self.repo.queries.get_daily_cash_flow(user_id, window)
        data = [
            {
                "date": row["day"].isoformat(),
                "income": row["income"],
                "expense": row["expense"],
                "cash_flow": row["income"] - row["expense"],
            }
            for row in rows
        ]
        logger.debug(f"Cash flow for user {user_id}: {len(data)} days")
        return Report(CASH_FLOW_TITLE, data)

    def balance_evolution(
        self,
        user_id: str,
        window: Optional[ReportWindow] = None,
        account_id: Optional[int] = None,
    ) -> Report:
        """
        Running total of signed daily amounts, ascending.

        With ``account_id`` only entries into that account are summed, so
        transfers out of it do not appear.
        """
        rows = self.repo.queries.get_daily_signed_totals(user_id, window, account_id)
        if not rows:
            return Report(BALANCE_EVOLUTION_TITLE, [])

        df = pd.DataFrame(rows)
        df["value"] = df["total"].cumsum()

        data = [
            {"date": day.isoformat(), "value": float(value)}
            for day, value in zip(df["day"], df["value"])
        ]
        logger.debug(
            f"Balance evolution for user {user_id}"
            f"{f' account {account_id}' if account_id is not None else ''}: "
            f"{len(data)} days"
        )
        return Report(BALANCE_EVOLUTION_TITLE, data)

    def top_entries(
        self,
        user_id: str,
        window: Optional[ReportWindow] = None,
        limit: int = DEFAULT_TOP_LIMIT,
    ) -> Report:
        """The ``limit`` highest-amount entries, largest first."""
        if limit <= 0:
            raise ValidationFailure("limit must be greater than zero")

        entry_ids = self.repo.queries.get_top_entry_ids(user_id, limit, window)
        entries = self.repo.entries.get_by_ids(entry_ids)
        return Report(TOP_ENTRIES_TITLE, [entry.to_dict() for entry in entries])

    def categories_spending(
        self, user_id: str, window: Optional[ReportWindow] = None
    ) -> Report:
        """Total EXPENSE amount per live category."""
        data = self.repo.queries.get_category_totals(user_id, EntryKind.EXPENSE, window)
        return Report(CATEGORIES_SPENDING_TITLE, data)

    def categories_income(
        self, user_id: str, window: Optional[ReportWindow] = None
    ) -> Report:
        """Total INCOME amount per live category."""
        data = self.repo.queries.get_category_totals(user_id, EntryKind.INCOME, window)
        return Report(CATEGORIES_INCOME_TITLE, data)

    def entry_counts_by_day(self, user_id: str, year: Optional[int] = None) -> Report:
        """Number of entries on each day of ``year`` (default: current year) that has any."""
        year = year or utc_now().year
        rows = self.repo.queries.get_daily_entry_counts(
            user_id, date(year, 1, 1), date(year, 12, 31)
        )
        data = [{"date": row["day"].isoformat(), "value": row["count"]} for row in rows]
        return Report(COUNTS_BY_DAY_TITLE, data)
