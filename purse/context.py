"""
Application context.

Wires the repository, the notification hub and every service together once
per process. Callers hold the context instead of reaching for globals.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from purse.config import Settings
from purse.db.repository import LedgerRepository
from purse.services.accounts import AccountService
from purse.services.balance import BalanceCalculator
from purse.services.guard import OwnershipGuard
from purse.services.labels import LabelService
from purse.services.ledger import LedgerService
from purse.services.notifications import NotificationHub
from purse.services.reconciliation import ReconciliationService
from purse.services.reports import ReportService

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Everything a request handler needs, built once at startup."""

    settings: Settings
    repo: LedgerRepository
    hub: NotificationHub
    guard: OwnershipGuard
    balances: BalanceCalculator
    ledger: LedgerService
    reconciliation: ReconciliationService
    accounts: AccountService
    labels: LabelService
    reports: ReportService


def build_context(
    settings: Settings, hub: Optional[NotificationHub] = None
) -> AppContext:
    """
    Build the application context for the given settings.

    Opens (and if needed creates) the database at ``settings.db_path``.
    """
    repo = LedgerRepository(settings.db_path)
    hub = hub or NotificationHub()
    guard = OwnershipGuard(repo)
    balances = BalanceCalculator(repo)
    ledger = LedgerService(repo, guard, hub)
    reconciliation = ReconciliationService(ledger, balances)

    context = AppContext(
        settings=settings,
        repo=repo,
        hub=hub,
        guard=guard,
        balances=balances,
        ledger=ledger,
        reconciliation=reconciliation,
        accounts=AccountService(repo, guard, balances, reconciliation),
        labels=LabelService(repo, guard),
        reports=ReportService(repo),
    )
    logger.info(f"Application context built with {settings!r}")
    return context
