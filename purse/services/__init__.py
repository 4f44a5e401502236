from .accounts import AccountService
from .balance import AccountSummary, BalanceCalculator, month_over_month_rate
from .classifier import classify, validate_draft
from .filters import build_entry_filter, build_report_window
from .guard import OwnershipGuard
from .labels import LabelService
from .ledger import LedgerService
from .notifications import NotificationHub
from .reconciliation import ReconciliationService
from .reports import Report, ReportService

__all__ = [
    "AccountService",
    "AccountSummary",
    "BalanceCalculator",
    "LabelService",
    "LedgerService",
    "NotificationHub",
    "OwnershipGuard",
    "ReconciliationService",
    "Report",
    "ReportService",
    "build_entry_filter",
    "build_report_window",
    "classify",
    "month_over_month_rate",
    "validate_draft",
]
