"""
Main repository facade for the Purse ledger.

Composes the account, entry and query repositories over one database file
and one connection scope, so a single ``transaction()`` covers writes made
through any of them.
"""

import logging
from pathlib import Path
from typing import Optional

from .accounts import AccountRepository
from .base import BaseRepository, ConnectionScope
from .entries import EntryRepository
from .queries import QueryRepository

logger = logging.getLogger(__name__)


class LedgerRepository(BaseRepository):
    """
    Facade over the ledger's sub-repositories.

    Attributes:
        accounts: Accounts, categories and tags
        entries: Entry CRUD and filtering
        queries: Balance and report aggregates
    """

    def __init__(self, db_path: Optional[Path] = None):
        """
        Initialize the repository and the schema.

        Args:
            db_path: Path to the SQLite database file. Defaults to data/purse.db
        """
        scope = ConnectionScope()
        super().__init__(db_path, init_schema=True, scope=scope)

        self.accounts = AccountRepository(self.db_path, scope=scope)
        self.entries = EntryRepository(self.db_path, scope=scope)
        self.queries = QueryRepository(self.db_path, scope=scope)

        logger.info(f"Ledger repository ready at {self.db_path}")
