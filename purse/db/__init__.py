"""
Database module for the Purse ledger.

This module provides the persistence layer for entries, accounts and labels.
Balances are never stored; they are derived by the query repository.

Structure:
- base.py: Base repository with connection management, unit of work and schema
- models.py: Data models (Account, Label, Entry)
- accounts.py: Accounts, categories and tags
- entries.py: Entry CRUD and filtering
- queries.py: Balance derivation and report aggregates
- repository.py: Main facade that composes all sub-repositories
"""

from .accounts import AccountRepository
from .base import BaseRepository, ConnectionScope
from .entries import EntryRepository
from .models import Account, Entry, Label
from .queries import QueryRepository
from .repository import LedgerRepository

__all__ = [
    # Base
    "BaseRepository",
    "ConnectionScope",
    # Models
    "Account",
    "Entry",
    "Label",
    # Repositories
    "AccountRepository",
    "EntryRepository",
    "LedgerRepository",
    "QueryRepository",
]
