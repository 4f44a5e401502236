"""
Queries repository module for balance derivation and report aggregates.

Handles all read-only aggregate operations including:
- Account balances (whole history or one calendar month)
- Daily income/expense totals and signed daily totals
- Category totals and per-day entry counts

Every query skips soft-deleted entries.
"""

import logging
from datetime import date
from typing import Any, Optional

from purse.models.entry import EntryKind
from purse.models.filters import ReportWindow

from .base import BaseRepository

logger = logging.getLogger(__name__)


def _window_clause(window: Optional[ReportWindow]) -> tuple[str, list]:
    """SQL fragment and params restricting ``e.date`` to an inclusive day window."""
    if window is None or not window.is_bounded:
        return "", []
    return (
        " AND date(e.date) BETWEEN ? AND ?",
        [window.start_date.isoformat(), window.end_date.isoformat()],
    )


class QueryRepository(BaseRepository):
    """
    Repository for balance calculations and report aggregates.

    Provides read-only query operations over the entry ledger.
    """

    def __init__(self, db_path=None, init_schema: bool = False, scope=None):
        """
        Initialize the query repository.

        Args:
            db_path: Path to the SQLite database file
            init_schema: Whether to initialize schema
            scope: Connection scope shared with sibling repositories
        """
        super().__init__(db_path, init_schema=init_schema, scope=scope)

    # =========================================================================
    # Balance Queries
    # =========================================================================

    def get_account_balance(self, account_id: int, month: Optional[date] = None) -> float:
        """
        Derive an account balance from its entries.

        The balance is the sum of two components:
        - non-transfer entries into the account: +amount for INCOME,
          -amount for EXPENSE
        - transfer entries: +amount where the account is ``to``,
          -amount where it is ``from``

        Args:
            account_id: Account ID
            month: Any date inside the calendar month to restrict to

        Returns:
            The balance, 0.0 when no entries match
        """
        month_clause = ""
        month_params: list = []
        if month is not None:
            month_clause = " AND strftime('%Y-%m', date) = ?"
            month_params = [f"{month.year:04d}-{month.month:02d}"]

        with self._get_connection() as conn:
            direct = conn.execute(
                f"""
                SELECT COALESCE(SUM(
                    CASE WHEN kind = ? THEN amount ELSE -amount END
                ), 0)
                FROM entries
                WHERE to_account_id = ? AND kind <> ? AND deleted_at IS NULL
                {month_clause}
                """,
                (EntryKind.INCOME.value, account_id, EntryKind.TRANSFER.value, *month_params),
            ).fetchone()[0]

            transfers = conn.execute(
                f"""
                SELECT COALESCE(SUM(
                    CASE WHEN to_account_id = ? THEN amount ELSE -amount END
                ), 0)
                FROM entries
                WHERE kind = ? AND deleted_at IS NULL
                  AND (to_account_id = ? OR from_account_id = ?)
                {month_clause}
                """,
                (
                    account_id,
                    EntryKind.TRANSFER.value,
                    account_id,
                    account_id,
                    *month_params,
                ),
            ).fetchone()[0]

        balance = float(direct) + float(transfers)
        logger.debug(
            f"Balance of account {account_id}"
            f"{f' for {month_params[0]}' if month_params else ''}: {balance}"
        )
        return balance

    # =========================================================================
    # Report Aggregates
    # =========================================================================

    def get_daily_cash_flow(
        self, user_id: str, window: Optional[ReportWindow] = None
    ) -> list[dict[str, Any]]:
        """
        Get income and expense totals per calendar day, ascending.

        Returns:
            List of {day, income, expense} dicts, one per day with entries
        """
        clause, params = _window_clause(window)

        with self._get_connection() as conn:
            cursor = conn.execute(
                f"""
                SELECT
                    date(e.date) AS day,
                    COALESCE(SUM(CASE WHEN e.kind = ? THEN e.amount END), 0) AS income,
                    COALESCE(SUM(CASE WHEN e.kind = ? THEN e.amount END), 0) AS expense
                FROM entries e
                JOIN accounts a ON a.id = e.to_account_id
                WHERE a.user_id = ? AND e.deleted_at IS NULL
                {clause}
                GROUP BY date(e.date)
                ORDER BY day ASC
                """,
                (EntryKind.INCOME.value, EntryKind.EXPENSE.value, user_id, *params),
            )
            return [
                {
                    "day": date.fromisoformat(row["day"]),
                    "income": float(row["income"]),
                    "expense": float(row["expense"]),
                }
                for row in cursor.fetchall()
            ]

    def get_daily_signed_totals(
        self,
        user_id: str,
        window: Optional[ReportWindow] = None,
        account_id: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        """
        Get the signed sum of entries per calendar day, ascending.

        INCOME counts positive, EXPENSE negative, TRANSFER zero. When
        ``account_id`` is given only entries into that account are counted.

        Returns:
            List of {day, total} dicts, one per day with entries
        """
        clause, params = _window_clause(window)
        if account_id is not None:
            clause += " AND e.to_account_id = ?"
            params.append(account_id)

        with self._get_connection() as conn:
            cursor = conn.execute(
                f"""
                SELECT
                    date(e.date) AS day,
                    SUM(CASE
                        WHEN e.kind = ? THEN e.amount
                        WHEN e.kind = ? THEN -e.amount
                        ELSE 0
                    END) AS total
                FROM entries e
                JOIN accounts a ON a.id = e.to_account_id
                WHERE a.user_id = ? AND e.deleted_at IS NULL
                {clause}
                GROUP BY date(e.date)
                ORDER BY day ASC
                """,
                (EntryKind.INCOME.value, EntryKind.EXPENSE.value, user_id, *params),
            )
            return [
                {"day": date.fromisoformat(row["day"]), "total": float(row["total"])}
                for row in cursor.fetchall()
            ]

    def get_top_entry_ids(
        self, user_id: str, limit: int, window: Optional[ReportWindow] = None
    ) -> list[int]:
        """Get IDs of the highest-amount entries, largest first."""
        clause, params = _window_clause(window)

        with self._get_connection() as conn:
            cursor = conn.execute(
                f"""
                SELECT e.id
                FROM entries e
                JOIN accounts a ON a.id = e.to_account_id
                WHERE a.user_id = ? AND e.deleted_at IS NULL
                {clause}
                ORDER BY e.amount DESC, e.date DESC, e.id DESC
                LIMIT ?
                """,
                (user_id, *params, limit),
            )
            return [row["id"] for row in cursor.fetchall()]

    def get_category_totals(
        self,
        user_id: str,
        kind: EntryKind,
        window: Optional[ReportWindow] = None,
    ) -> list[dict[str, Any]]:
        """
        Sum entry amounts of one kind per live category, largest first.

        Entries count when either side's account belongs to the user.

        Returns:
            List of {label, value} dicts
        """
        clause, params = _window_clause(window)

        with self._get_connection() as conn:
            cursor = conn.execute(
                f"""
                SELECT c.name AS label, SUM(e.amount) AS value
                FROM entries e
                JOIN categories c ON c.id = e.category_id
                WHERE e.kind = ? AND e.deleted_at IS NULL AND c.deleted_at IS NULL
                  AND EXISTS (
                      SELECT 1 FROM accounts a
                      WHERE a.user_id = ?
                        AND (a.id = e.to_account_id OR a.id = e.from_account_id)
                  )
                {clause}
                GROUP BY c.id, c.name
                ORDER BY value DESC, c.name ASC
                """,
                (kind.value, user_id, *params),
            )
            totals = [
                {"label": row["label"], "value": float(row["value"])}
                for row in cursor.fetchall()
            ]
            logger.debug(
                f"Category totals for user {user_id} ({kind.name}): {len(totals)} rows"
            )
            return totals

    def get_daily_entry_counts(
        self, user_id: str, start_date: date, end_date: date
    ) -> list[dict[str, Any]]:
        """
        Count entries per calendar day between two inclusive dates.

        Returns:
            List of {day, count} dicts for days with at least one entry
        """
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT date(e.date) AS day, COUNT(*) AS count
                FROM entries e
                JOIN accounts a ON a.id = e.to_account_id
                WHERE a.user_id = ? AND e.deleted_at IS NULL
                  AND date(e.date) BETWEEN ? AND ?
                GROUP BY date(e.date)
                ORDER BY day ASC
                """,
                (user_id, start_date.isoformat(), end_date.isoformat()),
            )
            return [
                {"day": date.fromisoformat(row["day"]), "count": row["count"]}
                for row in cursor.fetchall()
            ]
