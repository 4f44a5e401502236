"""
Accounts repository module for accounts, categories, and tags.

Handles all owned-entity database operations including:
- Accounts (create, edit display fields, soft delete)
- Categories and tags (labels attached to entries)
- Ownership lookups and reference counts used by the guard
"""

import logging
from typing import Optional

from purse.config import SYSTEM_CATEGORY_ID
from purse.exceptions import LedgerError
from purse.models.account import AccountDraft, LabelDraft

from .base import BaseRepository, utc_now
from .models import Account, Label, format_timestamp

logger = logging.getLogger(__name__)

# Label tables share one shape; keys are the only table names ever interpolated
LABEL_TABLES = {"category": "categories", "tag": "tags"}


class AccountRepository(BaseRepository):
    """
    Repository for managing accounts and the labels attached to entries.

    Every read is scoped to an owner and skips soft-deleted rows.
    """

    def __init__(self, db_path=None, init_schema: bool = False, scope=None):
        """
        Initialize the account repository.

        Args:
            db_path: Path to the SQLite database file
            init_schema: Whether to initialize schema (usually False,
                        as main repository handles this)
            scope: Connection scope shared with sibling repositories
        """
        super().__init__(db_path, init_schema=init_schema, scope=scope)

    # =========================================================================
    # Accounts
    # =========================================================================

    def create_account(self, user_id: str, draft: AccountDraft) -> Account:
        """
        Insert a new account. The stated balance is not stored.

        Args:
            user_id: Owner ID
            draft: Account payload

        Returns:
            The created Account
        """
        now = format_timestamp(utc_now())

        try:
            with self._get_connection() as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO accounts
                    (user_id, name, currency, color, icon, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        user_id,
                        draft.name,
                        draft.currency,
                        draft.color,
                        draft.icon,
                        now,
                        now,
                    ),
                )
                account_id = cursor.lastrowid

                logger.info(
                    f"Created account '{draft.name}' ({draft.currency}) "
                    f"for user {user_id}"
                )

                row = conn.execute(
                    "SELECT * FROM accounts WHERE id = ?", (account_id,)
                ).fetchone()
                return Account.from_row(row)
        except LedgerError:
            raise
        except Exception as e:
            logger.error(f"Error creating account: {e}", exc_info=True)
            raise

    def get_account(self, account_id: int, user_id: str) -> Optional[Account]:
        """Get an account by ID if it belongs to the user."""
        with self._get_connection() as conn:
            row = conn.execute(
                """
                SELECT * FROM accounts
                WHERE id = ? AND user_id = ? AND deleted_at IS NULL
                """,
                (account_id, user_id),
            ).fetchone()
            return Account.from_row(row) if row else None

    def get_user_accounts(self, user_id: str) -> list[Account]:
        """Get all accounts for a user."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT * FROM accounts
                WHERE user_id = ? AND deleted_at IS NULL
                ORDER BY name
                """,
                (user_id,),
            )
            return [Account.from_row(row) for row in cursor.fetchall()]

    def account_belongs_to_user(self, user_id: str, account_id: int) -> bool:
        """Check that an account exists, is not deleted and is owned by the user."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT COUNT(*) FROM accounts
                WHERE id = ? AND user_id = ? AND deleted_at IS NULL
                """,
                (account_id, user_id),
            )
            return cursor.fetchone()[0] > 0

    def account_name_taken(
        self, user_id: str, name: str, exclude_id: Optional[int] = None
    ) -> bool:
        """Check whether another live account of the user already uses ``name``."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT COUNT(*) FROM accounts
                WHERE user_id = ? AND LOWER(name) = LOWER(?)
                  AND deleted_at IS NULL AND id <> ?
                """,
                (user_id, name.strip(), exclude_id or 0),
            )
            return cursor.fetchone()[0] > 0

    def update_account(
        self, account_id: int, user_id: str, draft: AccountDraft
    ) -> Optional[Account]:
        """
        Replace an account's display fields.

        Returns:
            The updated Account, or None if not found/unauthorized
        """
        try:
            with self._get_connection() as conn:
                cursor = conn.execute(
                    """
                    UPDATE accounts
                    SET name = ?, currency = ?, color = ?, icon = ?, updated_at = ?
                    WHERE id = ? AND user_id = ? AND deleted_at IS NULL
                    """,
                    (
                        draft.name,
                        draft.currency,
                        draft.color,
                        draft.icon,
                        format_timestamp(utc_now()),
                        account_id,
                        user_id,
                    ),
                )
                if cursor.rowcount == 0:
                    return None

                logger.info(f"Updated account {account_id} for user {user_id}")

                row = conn.execute(
                    "SELECT * FROM accounts WHERE id = ?", (account_id,)
                ).fetchone()
                return Account.from_row(row)
        except LedgerError:
            raise
        except Exception as e:
            logger.error(f"Error updating account {account_id}: {e}", exc_info=True)
            raise

    def delete_account(self, account_id: int, user_id: str) -> bool:
        """Soft-delete an account. Returns False if not found or not owned."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                UPDATE accounts SET deleted_at = ?
                WHERE id = ? AND user_id = ? AND deleted_at IS NULL
                """,
                (format_timestamp(utc_now()), account_id, user_id),
            )
            deleted = cursor.rowcount > 0
            if deleted:
                logger.info(f"Deleted account {account_id} for user {user_id}")
            return deleted

    def count_account_entries(self, account_id: int) -> int:
        """Count non-deleted entries touching the account on either side."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT COUNT(*) FROM entries
                WHERE deleted_at IS NULL
                  AND (to_account_id = ? OR from_account_id = ?)
                """,
                (account_id, account_id),
            )
            return cursor.fetchone()[0]

    # =========================================================================
    # Categories and Tags
    # =========================================================================

    def create_label(self, kind: str, user_id: str, draft: LabelDraft) -> Label:
        """
        Create a category or a tag.

        Args:
            kind: "category" or "tag"
            user_id: Owner ID
            draft: Label payload

        Returns:
            The created Label
        """
        table = LABEL_TABLES[kind]

        try:
            with self._get_connection() as conn:
                cursor = conn.execute(
                    f"""
                    INSERT INTO {table} (user_id, name, color, icon, created_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        user_id,
                        draft.name,
                        draft.color,
                        draft.icon,
                        format_timestamp(utc_now()),
                    ),
                )

                logger.info(f"Created {kind} '{draft.name}' for user {user_id}")

                return Label(
                    id=cursor.lastrowid,
                    name=draft.name,
                    color=draft.color,
                    icon=draft.icon,
                    user_id=user_id,
                )
        except LedgerError:
            raise
        except Exception as e:
            logger.error(f"Error creating {kind}: {e}", exc_info=True)
            raise

    def get_user_labels(self, kind: str, user_id: str) -> list[Label]:
        """Get all live categories or tags owned by the user."""
        table = LABEL_TABLES[kind]

        with self._get_connection() as conn:
            cursor = conn.execute(
                f"""
                SELECT id, user_id, name, color, icon FROM {table}
                WHERE user_id = ? AND deleted_at IS NULL
                ORDER BY name
                """,
                (user_id,),
            )
            return [Label.from_row(row) for row in cursor.fetchall()]

    def get_system_category(self) -> Optional[Label]:
        """Get the reserved system category."""
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT id, user_id, name, color, icon FROM categories WHERE id = ?",
                (SYSTEM_CATEGORY_ID,),
            ).fetchone()
            return Label.from_row(row) if row else None

    def label_name_taken(self, kind: str, user_id: str, name: str) -> bool:
        """Check whether the user already has a live label with this name."""
        table = LABEL_TABLES[kind]

        with self._get_connection() as conn:
            cursor = conn.execute(
                f"""
                SELECT COUNT(*) FROM {table}
                WHERE user_id = ? AND LOWER(name) = LOWER(?) AND deleted_at IS NULL
                """,
                (user_id, name.strip()),
            )
            return cursor.fetchone()[0] > 0

    def label_belongs_to_user(self, kind: str, user_id: str, label_id: int) -> bool:
        """Check that a category or tag exists, is live and is owned by the user."""
        table = LABEL_TABLES[kind]

        with self._get_connection() as conn:
            cursor = conn.execute(
                f"""
                SELECT COUNT(*) FROM {table}
                WHERE id = ? AND user_id = ? AND deleted_at IS NULL
                """,
                (label_id, user_id),
            )
            return cursor.fetchone()[0] > 0

    def count_owned_tags(self, user_id: str, tag_ids: list[int]) -> int:
        """Count how many of ``tag_ids`` are live tags owned by the user."""
        if not tag_ids:
            return 0

        placeholders = ", ".join("?" for _ in tag_ids)
        with self._get_connection() as conn:
            cursor = conn.execute(
                f"""
                SELECT COUNT(DISTINCT id) FROM tags
                WHERE id IN ({placeholders}) AND user_id = ? AND deleted_at IS NULL
                """,
                (*tag_ids, user_id),
            )
            return cursor.fetchone()[0]

    def count_category_entries(self, category_id: int) -> int:
        """Count non-deleted entries filed under a category."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT COUNT(*) FROM entries
                WHERE category_id = ? AND deleted_at IS NULL
                """,
                (category_id,),
            )
            return cursor.fetchone()[0]

    def count_tag_entries(self, tag_id: int) -> int:
        """Count non-deleted entries carrying a tag."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT COUNT(*) FROM entry_tags et
                JOIN entries e ON e.id = et.entry_id
                WHERE et.tag_id = ? AND e.deleted_at IS NULL
                """,
                (tag_id,),
            )
            return cursor.fetchone()[0]

    def delete_label(self, kind: str, label_id: int, user_id: str) -> bool:
        """Soft-delete a category or tag. Returns False if not found or not owned."""
        table = LABEL_TABLES[kind]

        with self._get_connection() as conn:
            cursor = conn.execute(
                f"""
                UPDATE {table} SET deleted_at = ?
                WHERE id = ? AND user_id = ? AND deleted_at IS NULL
                """,
                (format_timestamp(utc_now()), label_id, user_id),
            )
            deleted = cursor.rowcount > 0
            if deleted:
                logger.info(f"Deleted {kind} {label_id} for user {user_id}")
            return deleted
