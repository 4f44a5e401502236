"""
Entries repository module for ledger entry CRUD operations.

Handles all entry-related database operations including:
- Creating entries (insert with tag associations)
- Reading entries (by id, by user, by account month, by filter)
- Replacing entries (fields and tag associations together)
- Soft-deleting entries (row kept, tag associations removed)

Ownership of an entry follows the owner of its ``to`` account.
"""

import calendar
import logging
from datetime import date
from typing import Optional

from purse.exceptions import LedgerError
from purse.models.entry import EntryDraft
from purse.models.filters import EntryFilter

from .base import BaseRepository, utc_now
from .models import Entry, Label, format_timestamp

logger = logging.getLogger(__name__)

ENTRY_SELECT = """
    SELECT e.id, e.kind, e.amount, e.to_account_id, e.from_account_id,
           e.date, e.description, e.location,
           e.created_at, e.updated_at, e.deleted_at,
           c.id AS category_id, c.name AS category_name,
           c.color AS category_color, c.icon AS category_icon,
           c.user_id AS category_user_id
    FROM entries e
    JOIN categories c ON c.id = e.category_id
"""


class EntryRepository(BaseRepository):
    """
    Repository for managing ledger entries.

    Mutations validate nothing on their own: callers run the ownership guard
    and the classifier first.
    """

    def __init__(self, db_path=None, init_schema: bool = False, scope=None):
        """
        Initialize the entry repository.

        Args:
            db_path: Path to the SQLite database file
            init_schema: Whether to initialize schema
            scope: Connection scope shared with sibling repositories
        """
        super().__init__(db_path, init_schema=init_schema, scope=scope)

    # =========================================================================
    # Create Operations
    # =========================================================================

    def insert(self, draft: EntryDraft) -> Entry:
        """
        Insert a new entry with its tag associations.

        Args:
            draft: The entry payload

        Returns:
            The stored Entry with category and tags resolved
        """
        now = format_timestamp(utc_now())

        try:
            with self.transaction() as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO entries (
                        kind, amount, to_account_id, from_account_id, category_id,
                        date, description, location, created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        draft.kind.value,
                        draft.amount,
                        draft.to_account_id,
                        draft.from_account_id,
                        draft.category_id,
                        format_timestamp(draft.date),
                        draft.description,
                        draft.location,
                        now,
                        now,
                    ),
                )
                entry_id = cursor.lastrowid
                self._replace_tags(conn, entry_id, draft.tag_ids)

                logger.info(
                    f"Inserted entry {entry_id}: kind={draft.kind.name} "
                    f"amount={draft.amount} to={draft.to_account_id} "
                    f"from={draft.from_account_id}"
                )

                return self._fetch_one(conn, entry_id)
        except LedgerError:
            raise
        except Exception as e:
            logger.error(f"Error inserting entry: {e}", exc_info=True)
            raise

    # =========================================================================
    # Read Operations
    # =========================================================================

    def get_by_id(self, entry_id: int, include_deleted: bool = False) -> Optional[Entry]:
        """
        Get an entry by ID.

        Args:
            entry_id: Entry ID
            include_deleted: Whether soft-deleted entries are returned

        Returns:
            Entry or None if not found
        """
        with self._get_connection() as conn:
            return self._fetch_one(conn, entry_id, include_deleted)

    def get_by_ids(self, entry_ids: list[int]) -> list[Entry]:
        """Get live entries by ID, in the order the IDs are given."""
        if not entry_ids:
            return []

        with self._get_connection() as conn:
            cursor = conn.execute(
                ENTRY_SELECT
                + f" WHERE e.id IN ({_placeholders(entry_ids)}) AND e.deleted_at IS NULL",
                entry_ids,
            )
            by_id = {entry.id: entry for entry in self._hydrate(conn, cursor.fetchall())}
            return [by_id[entry_id] for entry_id in entry_ids if entry_id in by_id]

    def entry_belongs_to_user(self, user_id: str, entry_id: int) -> bool:
        """Check that a live entry exists and its ``to`` account is owned by the user."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT COUNT(*) FROM entries e
                JOIN accounts a ON a.id = e.to_account_id
                WHERE e.id = ? AND a.user_id = ? AND e.deleted_at IS NULL
                """,
                (entry_id, user_id),
            )
            return cursor.fetchone()[0] > 0

    def get_user_entries(self, user_id: str) -> list[Entry]:
        """Get every live entry of a user, newest first."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                ENTRY_SELECT
                + """
                JOIN accounts a ON a.id = e.to_account_id
                WHERE a.user_id = ? AND e.deleted_at IS NULL
                ORDER BY e.date DESC, e.id DESC
                """,
                (user_id,),
            )
            entries = self._hydrate(conn, cursor.fetchall())
            logger.debug(f"Retrieved {len(entries)} entries for user {user_id}")
            return entries

    def get_account_entries_by_month(
        self, account_id: int, year: int, month: int
    ) -> list[Entry]:
        """
        Get live entries touching an account on either side within a month.

        Args:
            account_id: Account ID
            year: Calendar year
            month: Calendar month (1-12)

        Returns:
            Entries ordered newest first
        """
        start = date(year, month, 1)
        end = date(year, month, calendar.monthrange(year, month)[1])

        with self._get_connection() as conn:
            cursor = conn.execute(
                ENTRY_SELECT
                + """
                WHERE e.deleted_at IS NULL
                  AND (e.to_account_id = ? OR e.from_account_id = ?)
                  AND date(e.date) BETWEEN ? AND ?
                ORDER BY e.date DESC, e.id DESC
                """,
                (account_id, account_id, start.isoformat(), end.isoformat()),
            )
            return self._hydrate(conn, cursor.fetchall())

    def find_by_filter(self, criteria: EntryFilter) -> list[Entry]:
        """
        Get live entries of a user matching every criterion in ``criteria``.

        Args:
            criteria: Filter criteria

        Returns:
            Matching entries, newest first
        """
        query = (
            ENTRY_SELECT
            + """
            JOIN accounts a ON a.id = e.to_account_id
            WHERE a.user_id = ? AND e.deleted_at IS NULL
            """
        )
        params: list = [criteria.user_id]

        if criteria.kind is not None:
            query += " AND e.kind = ?"
            params.append(criteria.kind.value)

        if criteria.start_date and criteria.end_date:
            query += " AND date(e.date) BETWEEN ? AND ?"
            params.extend([criteria.start_date.isoformat(), criteria.end_date.isoformat()])

        if criteria.day is not None:
            query += " AND date(e.date) = ?"
            params.append(criteria.day.isoformat())

        if criteria.account_ids:
            placeholders = _placeholders(criteria.account_ids)
            query += (
                f" AND (e.to_account_id IN ({placeholders})"
                f" OR e.from_account_id IN ({placeholders}))"
            )
            params.extend(criteria.account_ids)
            params.extend(criteria.account_ids)

        if criteria.category_ids:
            query += f" AND e.category_id IN ({_placeholders(criteria.category_ids)})"
            params.extend(criteria.category_ids)

        if criteria.tag_ids:
            query += f"""
                AND e.id IN (
                    SELECT DISTINCT entry_id FROM entry_tags
                    WHERE tag_id IN ({_placeholders(criteria.tag_ids)})
                )
            """
            params.extend(criteria.tag_ids)

        if criteria.description:
            # LIKE only folds ASCII case
            query += " AND casefold(e.description) LIKE casefold(?) ESCAPE '\\'"
            params.append(f"%{_escape_like(criteria.description)}%")

        query += " ORDER BY e.date DESC, e.id DESC"

        try:
            with self._get_connection() as conn:
                cursor = conn.execute(query, params)
                entries = self._hydrate(conn, cursor.fetchall())
                logger.debug(
                    f"Filter {criteria.to_dict()} matched {len(entries)} entries"
                )
                return entries
        except LedgerError:
            raise
        except Exception as e:
            logger.error(f"Error filtering entries: {e}", exc_info=True)
            raise

    # =========================================================================
    # Update Operations
    # =========================================================================

    def replace(self, entry_id: int, draft: EntryDraft) -> Optional[Entry]:
        """
        Replace every field of an entry and its tag associations atomically.

        Args:
            entry_id: Entry ID to replace
            draft: The new full payload

        Returns:
            Updated Entry, or None if the entry does not exist
        """
        try:
            with self.transaction() as conn:
                cursor = conn.execute(
                    """
                    UPDATE entries
                    SET kind = ?, amount = ?, to_account_id = ?, from_account_id = ?,
                        category_id = ?, date = ?, description = ?, location = ?,
                        updated_at = ?
                    WHERE id = ? AND deleted_at IS NULL
                    """,
                    (
                        draft.kind.value,
                        draft.amount,
                        draft.to_account_id,
                        draft.from_account_id,
                        draft.category_id,
                        format_timestamp(draft.date),
                        draft.description,
                        draft.location,
                        format_timestamp(utc_now()),
                        entry_id,
                    ),
                )
                if cursor.rowcount == 0:
                    return None

                self._replace_tags(conn, entry_id, draft.tag_ids)

                logger.info(
                    f"Updated entry {entry_id}: kind={draft.kind.name} "
                    f"amount={draft.amount} tags={draft.tag_ids}"
                )

                return self._fetch_one(conn, entry_id)
        except LedgerError:
            raise
        except Exception as e:
            logger.error(f"Error updating entry {entry_id}: {e}", exc_info=True)
            raise

    # =========================================================================
    # Delete Operations
    # =========================================================================

    def soft_delete(self, entry_id: int) -> bool:
        """
        Soft-delete an entry and remove its tag associations in one commit.

        Returns:
            True if deleted, False if not found or already deleted
        """
        try:
            with self.transaction() as conn:
                conn.execute("DELETE FROM entry_tags WHERE entry_id = ?", (entry_id,))
                cursor = conn.execute(
                    """
                    UPDATE entries SET deleted_at = ?
                    WHERE id = ? AND deleted_at IS NULL
                    """,
                    (format_timestamp(utc_now()), entry_id),
                )
                deleted = cursor.rowcount > 0
                if deleted:
                    logger.info(f"Deleted entry {entry_id}")
                return deleted
        except LedgerError:
            raise
        except Exception as e:
            logger.error(f"Error deleting entry {entry_id}: {e}", exc_info=True)
            raise

    # =========================================================================
    # Helpers
    # =========================================================================

    def _replace_tags(self, conn, entry_id: int, tag_ids: list[int]):
        conn.execute("DELETE FROM entry_tags WHERE entry_id = ?", (entry_id,))
        conn.executemany(
            "INSERT INTO entry_tags (entry_id, tag_id) VALUES (?, ?)",
            [(entry_id, tag_id) for tag_id in dict.fromkeys(tag_ids)],
        )

    def _fetch_one(
        self, conn, entry_id: int, include_deleted: bool = False
    ) -> Optional[Entry]:
        query = ENTRY_SELECT + " WHERE e.id = ?"
        if not include_deleted:
            query += " AND e.deleted_at IS NULL"
        row = conn.execute(query, (entry_id,)).fetchone()
        if not row:
            return None
        return self._hydrate(conn, [row])[0]

    def _hydrate(self, conn, rows) -> list[Entry]:
        """Build entries from rows, loading all their tags in one query."""
        if not rows:
            return []

        entry_ids = [row["id"] for row in rows]
        tags: dict[int, list[Label]] = {entry_id: [] for entry_id in entry_ids}

        cursor = conn.execute(
            f"""
            SELECT et.entry_id, t.id, t.user_id, t.name, t.color, t.icon
            FROM entry_tags et
            JOIN tags t ON t.id = et.tag_id
            WHERE et.entry_id IN ({_placeholders(entry_ids)})
            ORDER BY t.name
            """,
            entry_ids,
        )
        for row in cursor.fetchall():
            tags[row["entry_id"]].append(Label.from_row(row))

        return [Entry.from_row(row, tags[row["id"]]) for row in rows]


def _placeholders(values: list) -> str:
    return ", ".join("?" for _ in values)


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


