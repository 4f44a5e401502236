"""Tests for entry create/update/delete/read operations."""

import math
from datetime import date, datetime, timezone

import pytest
from conftest import USER, install_trigger, make_draft

from purse.exceptions import OwnershipFailure, StoreFailure, ValidationFailure
from purse.models import EntryKind
from purse.services.ledger import validate_year_month


class TestCreateEntry:
    """Test recording entries."""

    def test_create_with_tags(self, ctx, populated):
        entry = ctx.ledger.create_entry(
            USER,
            make_draft(
                EntryKind.EXPENSE, 12.5, populated["wallet"], populated["food"],
                tag_ids=[populated["work"], populated["weekend"]],
                description="  Lunch  ", location="Downtown",
            ),
        )

        assert entry.id is not None
        assert entry.kind == EntryKind.EXPENSE
        assert entry.amount == 12.5
        assert entry.description == "Lunch"
        assert entry.location == "Downtown"
        assert entry.category.name == "Food"
        assert sorted(entry.tag_ids) == sorted([populated["work"], populated["weekend"]])
        assert entry.from_account_id is None

    def test_invalid_kind_rules_write_nothing(self, ctx, populated):
        draft = make_draft(
            EntryKind.INCOME, 10, populated["wallet"], populated["salary"],
            from_account_id=populated["bank"],
        )

        with pytest.raises(ValidationFailure):
            ctx.ledger.create_entry(USER, draft)

        assert ctx.ledger.list_entries(USER) == []

    def test_non_finite_amount_writes_nothing(self, ctx, populated):
        draft = make_draft(EntryKind.INCOME, math.inf, populated["wallet"], populated["salary"])

        with pytest.raises(ValidationFailure, match="finite"):
            ctx.ledger.create_entry(USER, draft)

        assert ctx.ledger.list_entries(USER) == []

    def test_to_dict(self, ctx, populated):
        entry = ctx.ledger.create_entry(
            USER,
            make_draft(
                EntryKind.TRANSFER, 5, populated["bank"], populated["food"],
                from_account_id=populated["wallet"],
            ),
        )

        data = entry.to_dict()
        assert data["kind"] == 3
        assert data["from_account_id"] == populated["wallet"]
        assert data["date"] == "2024-03-15T12:00:00"
        assert data["category"]["name"] == "Food"
        assert data["tags"] == []


class TestUpdateEntry:
    """Test full replacement of entries."""

    def test_replaces_every_field_and_tags(self, ctx, populated):
        entry = ctx.ledger.create_entry(
            USER,
            make_draft(
                EntryKind.EXPENSE, 10, populated["wallet"], populated["food"],
                tag_ids=[populated["weekend"]], description="old",
            ),
        )

        updated = ctx.ledger.update_entry(
            USER,
            entry.id,
            make_draft(
                EntryKind.TRANSFER, 25, populated["bank"], populated["food"],
                when=datetime(2024, 4, 2, 9, 0),
                from_account_id=populated["wallet"],
                tag_ids=[populated["work"]],
                description="new",
            ),
        )

        assert updated.id == entry.id
        assert updated.kind == EntryKind.TRANSFER
        assert updated.amount == 25
        assert updated.to_account_id == populated["bank"]
        assert updated.from_account_id == populated["wallet"]
        assert updated.date == datetime(2024, 4, 2, 9, 0)
        assert updated.description == "new"
        assert updated.tag_ids == [populated["work"]]
        assert ctx.balances.compute_balance(populated["wallet"]) == -25
        assert ctx.balances.compute_balance(populated["bank"]) == 25

    def test_invalid_update_keeps_entry(self, ctx, populated):
        entry = ctx.ledger.create_entry(
            USER, make_draft(EntryKind.EXPENSE, 10, populated["wallet"], populated["food"])
        )

        with pytest.raises(ValidationFailure):
            ctx.ledger.update_entry(
                USER,
                entry.id,
                make_draft(EntryKind.TRANSFER, 10, populated["wallet"], populated["food"]),
            )

        assert ctx.ledger.get_entry(USER, entry.id).kind == EntryKind.EXPENSE

    def test_foreign_tag_on_update_keeps_tags(self, ctx, populated):
        entry = ctx.ledger.create_entry(
            USER,
            make_draft(
                EntryKind.EXPENSE, 10, populated["wallet"], populated["food"],
                tag_ids=[populated["weekend"]],
            ),
        )

        with pytest.raises(OwnershipFailure):
            ctx.ledger.update_entry(
                USER,
                entry.id,
                make_draft(
                    EntryKind.EXPENSE, 10, populated["wallet"], populated["food"],
                    tag_ids=[populated["foreign_tag"]],
                ),
            )

        assert ctx.ledger.get_entry(USER, entry.id).tag_ids == [populated["weekend"]]

    def test_failed_tag_write_rolls_back_fields(self, ctx, populated):
        entry = ctx.ledger.create_entry(
            USER,
            make_draft(
                EntryKind.EXPENSE, 10, populated["wallet"], populated["food"],
                tag_ids=[populated["weekend"]], description="Lunch",
            ),
        )

        # Tag 9999 does not exist, so the tag insert fails after the UPDATE
        with pytest.raises(StoreFailure, match="FOREIGN KEY"):
            ctx.repo.entries.replace(
                entry.id,
                make_draft(
                    EntryKind.INCOME, 99, populated["bank"], populated["salary"],
                    tag_ids=[9999], description="Changed",
                ),
            )

        stored = ctx.ledger.get_entry(USER, entry.id)
        assert stored.kind == EntryKind.EXPENSE
        assert stored.amount == 10
        assert stored.to_account_id == populated["wallet"]
        assert stored.description == "Lunch"
        assert stored.tag_ids == [populated["weekend"]]


class TestDeleteEntry:
    """Test soft deletion."""

    def test_failed_soft_delete_keeps_tags(self, ctx, populated, db_path):
        entry = ctx.ledger.create_entry(
            USER,
            make_draft(
                EntryKind.EXPENSE, 10, populated["wallet"], populated["food"],
                tag_ids=[populated["weekend"]],
            ),
        )
        install_trigger(
            db_path,
            """
            CREATE TRIGGER entries_locked BEFORE UPDATE OF deleted_at ON entries
            BEGIN SELECT RAISE(ABORT, 'entries are locked'); END
            """,
        )

        with pytest.raises(StoreFailure, match="entries are locked"):
            ctx.ledger.delete_entry(USER, entry.id)

        stored = ctx.ledger.get_entry(USER, entry.id)
        assert not stored.is_deleted
        assert stored.tag_ids == [populated["weekend"]]
        assert ctx.repo.accounts.count_tag_entries(populated["weekend"]) == 1

    def test_soft_delete_keeps_row_and_drops_tags(self, ctx, populated):
        entry = ctx.ledger.create_entry(
            USER,
            make_draft(
                EntryKind.EXPENSE, 10, populated["wallet"], populated["food"],
                tag_ids=[populated["weekend"]],
            ),
        )

        ctx.ledger.delete_entry(USER, entry.id)

        assert ctx.ledger.list_entries(USER) == []
        stored = ctx.repo.entries.get_by_id(entry.id, include_deleted=True)
        assert stored.is_deleted
        assert stored.tags == []
        assert ctx.repo.accounts.count_tag_entries(populated["weekend"]) == 0

    def test_deleted_entry_is_gone(self, ctx, populated):
        entry = ctx.ledger.create_entry(
            USER, make_draft(EntryKind.EXPENSE, 10, populated["wallet"], populated["food"])
        )
        ctx.ledger.delete_entry(USER, entry.id)

        with pytest.raises(OwnershipFailure):
            ctx.ledger.get_entry(USER, entry.id)
        with pytest.raises(OwnershipFailure):
            ctx.ledger.delete_entry(USER, entry.id)


class TestReads:
    """Test listing and single-entry reads."""

    def test_list_is_newest_first(self, ctx, populated):
        for day in (3, 1, 2):
            ctx.ledger.create_entry(
                USER,
                make_draft(
                    EntryKind.EXPENSE, day, populated["wallet"], populated["food"],
                    when=datetime(2024, 3, day, 10, 0),
                ),
            )

        entries = ctx.ledger.list_entries(USER)

        assert [e.date.day for e in entries] == [3, 2, 1]

    def test_get_entry_notifies_hub(self, ctx, populated):
        received = []
        ctx.hub.register(USER, received.append)
        entry = ctx.ledger.create_entry(
            USER, make_draft(EntryKind.INCOME, 10, populated["wallet"], populated["salary"])
        )

        ctx.ledger.get_entry(USER, entry.id)

        assert len(received) == 1
        assert received[0]["event"] == "entry_viewed"
        assert received[0]["entry_id"] == entry.id

    def test_get_entry_survives_failing_sink(self, ctx, populated):
        def broken(message):
            raise RuntimeError("socket closed")

        ctx.hub.register(USER, broken)
        entry = ctx.ledger.create_entry(
            USER, make_draft(EntryKind.INCOME, 10, populated["wallet"], populated["salary"])
        )

        assert ctx.ledger.get_entry(USER, entry.id).id == entry.id

    def test_account_entries_by_month(self, ctx, populated):
        wallet, bank = populated["wallet"], populated["bank"]
        ctx.ledger.create_entry(
            USER,
            make_draft(
                EntryKind.EXPENSE, 1, wallet, populated["food"],
                when=datetime(2024, 3, 31, 23, 59),
            ),
        )
        ctx.ledger.create_entry(
            USER,
            make_draft(
                EntryKind.TRANSFER, 2, bank, populated["food"],
                when=datetime(2024, 3, 1, 0, 0), from_account_id=wallet,
            ),
        )
        ctx.ledger.create_entry(
            USER,
            make_draft(
                EntryKind.EXPENSE, 3, wallet, populated["food"],
                when=datetime(2024, 4, 1, 0, 0),
            ),
        )

        entries = ctx.ledger.get_account_entries_by_month(USER, wallet, 2024, 3)

        assert [e.amount for e in entries] == [1, 2]

    def test_account_entries_by_month_foreign_account(self, ctx, populated):
        with pytest.raises(OwnershipFailure):
            ctx.ledger.get_account_entries_by_month(
                USER, populated["foreign_account"], 2024, 3
            )


class TestYearMonthValidation:
    """Test year/month bounds for month lookups."""

    def test_valid(self):
        validate_year_month(2024, 12, today=date(2024, 1, 1))
        validate_year_month(1900, 1, today=date(2024, 1, 1))
        validate_year_month(2034, 6, today=date(2024, 1, 1))

    @pytest.mark.parametrize("year, month", [(1899, 1), (2035, 1), (2024, 0), (2024, 13)])
    def test_out_of_range(self, year, month):
        with pytest.raises(ValidationFailure):
            validate_year_month(year, month, today=date(2024, 1, 1))

    def test_default_upper_bound_follows_utc_clock(self, monkeypatch):
        monkeypatch.setattr(
            "purse.services.ledger.utc_now",
            lambda: datetime(2024, 1, 1, 0, 30, tzinfo=timezone.utc),
        )

        validate_year_month(2034, 12)
        with pytest.raises(ValidationFailure, match="2034"):
            validate_year_month(2035, 1)
