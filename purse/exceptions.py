"""
Typed exceptions for the Purse ledger engine.

Every error carries a short machine-checkable ``code`` and a human-readable
``detail``. Callers catch by type; the surrounding service maps ``code`` to
its own response format.

    LedgerError
    +-- ValidationFailure      (entry shape, filter parameters)
    +-- OwnershipFailure       (missing or foreign account/category/tag/entry)
    +-- ReferentialConflict    (delete blocked by referencing entries)
    +-- ReconciliationFailure  (adjusting entry could not be written)
    +-- StoreFailure           (underlying sqlite error)
    +-- ConfigurationError     (missing or invalid settings)
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from purse.models.entry import Violation


class LedgerError(Exception):
    """Base class for all ledger engine errors."""

    code = "ledger_error"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {"code": self.code, "detail": self.detail}


class ValidationFailure(LedgerError, ValueError):
    """Structural entry violations or malformed filter parameters."""

    code = "validation"

    def __init__(
        self, detail: str, violations: Optional[list["Violation"]] = None
    ):
        super().__init__(detail)
        self.violations = list(violations or [])

    @classmethod
    def from_violations(cls, violations: list["Violation"]) -> "ValidationFailure":
        """Build a failure whose detail lists every violation."""
        detail = "; ".join(f"{v.field}: {v.message}" for v in violations)
        return cls(detail, violations)

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            **super().to_dict(),
            "violations": [v.to_dict() for v in self.violations],
        }


class OwnershipFailure(LedgerError, LookupError):
    """A referenced entity does not exist or belongs to another user."""

    code = "ownership"


class ReferentialConflict(LedgerError):
    """Deletion blocked because non-deleted entries still reference the entity."""

    code = "conflict"

    def __init__(self, detail: str, count: int):
        super().__init__(detail)
        self.count = count

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {**super().to_dict(), "count": self.count}


class ReconciliationFailure(LedgerError):
    """The adjusting entry for a stated balance could not be created."""

    code = "reconciliation"


class StoreFailure(LedgerError):
    """Persistence error raised by the database layer."""

    code = "store"


class ConfigurationError(LedgerError):
    """Settings are missing or invalid."""

    code = "configuration"
