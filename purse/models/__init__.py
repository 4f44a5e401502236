from .account import AccountDraft, LabelDraft
from .entry import EntryDraft, EntryKind, Violation
from .filters import EntryFilter, ReportWindow

__all__ = [
    "AccountDraft",
    "EntryDraft",
    "EntryFilter",
    "EntryKind",
    "LabelDraft",
    "ReportWindow",
    "Violation",
]
