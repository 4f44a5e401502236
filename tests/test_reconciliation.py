"""Tests for opening balances and balance edits."""

from datetime import datetime, timezone

import pytest
from conftest import OTHER_USER, USER, install_trigger

from purse.config import (
    ADJUSTED_BALANCE_DESCRIPTION,
    INITIAL_BALANCE_DESCRIPTION,
    SYSTEM_CATEGORY_ID,
)
from purse.exceptions import ReconciliationFailure, StoreFailure
from purse.models import AccountDraft, EntryKind
from purse.services.reconciliation import ReconciliationService


def system_entries(ctx, account_id):
    return [
        e
        for e in ctx.ledger.list_entries(USER)
        if e.category.id == SYSTEM_CATEGORY_ID and e.to_account_id == account_id
    ]


class TestOpeningBalance:
    """Test the entry recorded when an account is created."""

    def test_positive_opening_balance(self, ctx):
        summary = ctx.accounts.create_account(USER, AccountDraft("Cash", "USD", balance=500))

        entries = ctx.ledger.list_entries(USER)
        assert len(entries) == 1
        opening = entries[0]
        assert opening.kind == EntryKind.INCOME
        assert opening.amount == 500
        assert opening.category.id == SYSTEM_CATEGORY_ID
        assert opening.category.is_system
        assert opening.description == INITIAL_BALANCE_DESCRIPTION
        assert summary.balance == 500

    def test_zero_opening_balance_records_nothing(self, ctx):
        summary = ctx.accounts.create_account(USER, AccountDraft("Cash", "USD"))

        assert ctx.ledger.list_entries(USER) == []
        assert summary.balance == 0

    def test_negative_opening_balance_is_an_expense(self, ctx):
        summary = ctx.accounts.create_account(
            USER, AccountDraft("Card", "USD", balance=-75)
        )

        [opening] = ctx.ledger.list_entries(USER)
        assert opening.kind == EntryKind.EXPENSE
        assert opening.amount == 75
        assert summary.balance == -75


class TestAccountEdit:
    """Test reconciling an edited balance."""

    def test_edit_sequence(self, ctx):
        account = ctx.accounts.create_account(
            USER, AccountDraft("Cash", "USD", balance=500)
        ).account

        summary = ctx.accounts.update_account(
            USER, account.id, AccountDraft("Cash", "USD", balance=300)
        )
        assert summary.balance == 300
        adjusted = [
            e for e in system_entries(ctx, account.id)
            if e.description == ADJUSTED_BALANCE_DESCRIPTION
        ]
        assert [(e.kind, e.amount) for e in adjusted] == [(EntryKind.EXPENSE, 200)]

        summary = ctx.accounts.update_account(
            USER, account.id, AccountDraft("Cash", "USD", balance=450)
        )
        assert summary.balance == 450
        adjusted = [
            e for e in system_entries(ctx, account.id)
            if e.description == ADJUSTED_BALANCE_DESCRIPTION
        ]
        assert sorted((e.kind, e.amount) for e in adjusted) == [
            (EntryKind.INCOME, 150),
            (EntryKind.EXPENSE, 200),
        ]

    def test_unchanged_balance_records_nothing(self, ctx):
        account = ctx.accounts.create_account(
            USER, AccountDraft("Cash", "USD", balance=500)
        ).account

        result = ctx.reconciliation.reconcile_account_edit(USER, account.id, 500)

        assert result is None
        assert len(ctx.ledger.list_entries(USER)) == 1

    def test_reconcile_returns_adjusting_entry(self, ctx):
        account = ctx.accounts.create_account(
            USER, AccountDraft("Cash", "USD", balance=100)
        ).account

        entry = ctx.reconciliation.reconcile_account_edit(USER, account.id, 40)

        assert entry.kind == EntryKind.EXPENSE
        assert entry.amount == 60
        assert ctx.balances.compute_balance(account.id) == 40

    def test_display_fields_change_with_balance(self, ctx):
        account = ctx.accounts.create_account(
            USER, AccountDraft("Cash", "USD", balance=10)
        ).account

        summary = ctx.accounts.update_account(
            USER, account.id, AccountDraft("Pocket", "eur", balance=10, color="#ff0000")
        )

        assert summary.account.name == "Pocket"
        assert summary.account.currency == "EUR"
        assert summary.account.color == "#ff0000"
        assert len(ctx.ledger.list_entries(USER)) == 1

    def test_synthesized_entries_use_clock(self, ctx):
        fixed = datetime(2024, 5, 1, 8, 30, tzinfo=timezone.utc)
        ctx.reconciliation.clock = lambda: fixed
        account = ctx.accounts.create_account(
            USER, AccountDraft("Cash", "USD", balance=10)
        ).account

        [opening] = system_entries(ctx, account.id)

        assert opening.date == datetime(2024, 5, 1, 8, 30)


class FailingLedger:
    """Ledger stand-in whose entry creation always fails."""

    def __init__(self, error):
        self.error = error

    def create_entry(self, user_id, draft):
        raise self.error


class TestReconciliationFailure:
    """Test that failed adjustments leave the account untouched."""

    def test_failed_adjustment_keeps_account_fields(self, ctx):
        account = ctx.accounts.create_account(
            USER, AccountDraft("Cash", "USD", balance=500)
        ).account
        ctx.accounts.reconciliation = ReconciliationService(
            FailingLedger(StoreFailure("disk full")),
            ctx.balances,
        )

        with pytest.raises(ReconciliationFailure) as excinfo:
            ctx.accounts.update_account(
                USER, account.id, AccountDraft("Renamed", "EUR", balance=300)
            )

        assert excinfo.value.__cause__ is not None
        unchanged = ctx.repo.accounts.get_account(account.id, USER)
        assert unchanged.name == "Cash"
        assert unchanged.currency == "USD"
        assert ctx.balances.compute_balance(account.id) == 500

    def test_store_error_on_adjustment_is_reconciliation_failure(self, ctx, db_path):
        account = ctx.accounts.create_account(
            USER, AccountDraft("Cash", "USD", balance=500)
        ).account
        install_trigger(
            db_path,
            """
            CREATE TRIGGER ledger_read_only BEFORE INSERT ON entries
            BEGIN SELECT RAISE(ABORT, 'ledger is read-only'); END
            """,
        )

        with pytest.raises(ReconciliationFailure, match="ledger is read-only") as excinfo:
            ctx.accounts.update_account(
                USER, account.id, AccountDraft("Renamed", "EUR", balance=300)
            )

        assert isinstance(excinfo.value.__cause__, StoreFailure)
        unchanged = ctx.repo.accounts.get_account(account.id, USER)
        assert unchanged.name == "Cash"
        assert ctx.balances.compute_balance(account.id) == 500

    def test_failed_opening_entry_rolls_back_account(self, ctx):
        ctx.accounts.reconciliation = ReconciliationService(
            FailingLedger(StoreFailure("disk full")),
            ctx.balances,
        )

        with pytest.raises(ReconciliationFailure):
            ctx.accounts.create_account(USER, AccountDraft("Cash", "USD", balance=500))

        assert ctx.repo.accounts.get_user_accounts(USER) == []

    def test_foreign_account_cannot_be_reconciled(self, ctx):
        foreign = ctx.accounts.create_account(
            OTHER_USER, AccountDraft("Theirs", "USD", balance=10)
        ).account

        with pytest.raises(ReconciliationFailure) as excinfo:
            ctx.reconciliation.reconcile_account_edit(USER, foreign.id, 0)

        assert excinfo.value.__cause__.code == "ownership"
        assert ctx.balances.compute_balance(foreign.id) == 10
