"""
Reconciliation of stated balances into ledger entries.

A user never writes a balance directly. An opening balance or an edited
balance is turned into one synthesized entry under the system category whose
amount closes the gap to the derived balance.
"""

import logging
from typing import TYPE_CHECKING, Callable, Optional

from purse.config import (
    ADJUSTED_BALANCE_DESCRIPTION,
    INITIAL_BALANCE_DESCRIPTION,
    SYSTEM_CATEGORY_ID,
)
from purse.db.base import utc_now
from purse.db.models import Entry
from purse.exceptions import LedgerError, ReconciliationFailure
from purse.models.entry import EntryDraft, EntryKind

from .balance import BalanceCalculator

if TYPE_CHECKING:
    from .ledger import LedgerService

logger = logging.getLogger(__name__)


class ReconciliationService:
    """Synthesizes the entries that bring an account to a stated balance."""

    def __init__(
        self,
        ledger: "LedgerService",
        balances: BalanceCalculator,
        clock: Callable = utc_now,
    ):
        """
        Initialize the reconciliation service.

        Args:
            ledger: Entry service; synthesized entries go through its guard
                and classifier like any other entry
            balances: Balance calculator for the current derived balance
            clock: Returns the timestamp synthesized entries are dated with
        """
        self.ledger = ledger
        self.balances = balances
        self.clock = clock

    def _synthesize(
        self,
        user_id: str,
        account_id: int,
        kind: EntryKind,
        amount: float,
        description: str,
    ) -> Entry:
        draft = EntryDraft(
            kind=kind,
            amount=amount,
            to_account_id=account_id,
            category_id=SYSTEM_CATEGORY_ID,
            date=self.clock(),
            description=description,
        )
        try:
            entry = self.ledger.create_entry(user_id, draft)
        except LedgerError as e:
            logger.error(
                f"Failed to synthesize {kind.name} of {amount} for account "
                f"{account_id}: {e}"
            )
            raise ReconciliationFailure(
                f"could not reconcile account {account_id}: {e.detail}"
            ) from e

        logger.info(
            f"Synthesized {kind.name} entry {entry.id} of {amount} "
            f"for account {account_id} ({description})"
        )
        return entry

    def create_opening_entry(
        self, user_id: str, account_id: int, stated_balance: float
    ) -> Optional[Entry]:
        """
        Record the balance an account is created with.

        A positive balance becomes an INCOME entry and a negative one an
        EXPENSE entry of its absolute value. Zero records nothing.
        """
        if not stated_balance:
            return None
        kind = EntryKind.INCOME if stated_balance > 0 else EntryKind.EXPENSE
        return self._synthesize(
            user_id, account_id, kind, abs(stated_balance), INITIAL_BALANCE_DESCRIPTION
        )

    def reconcile_account_edit(
        self, user_id: str, account_id: int, new_balance: float
    ) -> Optional[Entry]:
        """
        Bring an account's derived balance to ``new_balance``.

        Args:
            user_id: Owner ID
            account_id: Account ID
            new_balance: The balance the user states the account has

        Returns:
            The synthesized adjusting entry, or None if already at the balance

        Raises:
            ReconciliationFailure: If the adjusting entry cannot be created
        """
        current = self.balances.compute_balance(account_id)
        delta = current - new_balance

        if delta == 0:
            logger.debug(f"Account {account_id} already at {new_balance}")
            return None

        kind = EntryKind.EXPENSE if delta > 0 else EntryKind.INCOME
        return self._synthesize(
            user_id, account_id, kind, abs(delta), ADJUSTED_BALANCE_DESCRIPTION
        )
