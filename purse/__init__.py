"""
Purse - personal-finance ledger and balance-derivation engine

Records money movements against accounts and derives balances, month
over month rates and trend reports from them. No balance is ever stored.
"""

from .config import Settings, load_settings
from .context import AppContext, build_context
from .exceptions import (
    ConfigurationError,
    LedgerError,
    OwnershipFailure,
    ReconciliationFailure,
    ReferentialConflict,
    StoreFailure,
    ValidationFailure,
)
from .models import AccountDraft, EntryDraft, EntryFilter, EntryKind, LabelDraft, ReportWindow

__version__ = "0.1.0"

__all__ = [
    "AccountDraft",
    "AppContext",
    "ConfigurationError",
    "EntryDraft",
    "EntryFilter",
    "EntryKind",
    "LabelDraft",
    "LedgerError",
    "OwnershipFailure",
    "ReconciliationFailure",
    "ReferentialConflict",
    "ReportWindow",
    "Settings",
    "StoreFailure",
    "ValidationFailure",
    "build_context",
    "load_settings",
]
