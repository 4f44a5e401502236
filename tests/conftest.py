"""Test fixtures for Purse ledger tests."""

import sqlite3
from datetime import datetime
from pathlib import Path

import pytest

from purse.config import SYSTEM_CATEGORY_ID, Settings
from purse.context import AppContext, build_context
from purse.db.repository import LedgerRepository
from purse.models import AccountDraft, EntryDraft, EntryKind, LabelDraft

USER = "user-1"
OTHER_USER = "user-2"


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Database file in a per-test temporary directory."""
    return tmp_path / "purse.db"


@pytest.fixture
def repo(db_path: Path) -> LedgerRepository:
    """Repository over a fresh database with schema and system category."""
    return LedgerRepository(db_path)


@pytest.fixture
def ctx(db_path: Path) -> AppContext:
    """Fully wired application context over a fresh database."""
    settings = Settings(db_path=db_path, signing_key="test-signing-key")
    return build_context(settings)


@pytest.fixture
def populated(ctx: AppContext) -> dict:
    """Two users with accounts, categories and tags, and no entries.

    Returns a dict of IDs keyed by short names.
    """
    wallet = ctx.accounts.create_account(USER, AccountDraft("Wallet", "usd"))
    bank = ctx.accounts.create_account(USER, AccountDraft("Bank", "usd"))
    foreign = ctx.accounts.create_account(OTHER_USER, AccountDraft("Other", "eur"))

    food = ctx.labels.create_category(USER, LabelDraft("Food"))
    salary = ctx.labels.create_category(USER, LabelDraft("Salary"))
    foreign_category = ctx.labels.create_category(OTHER_USER, LabelDraft("Rent"))

    weekend = ctx.labels.create_tag(USER, LabelDraft("weekend"))
    work = ctx.labels.create_tag(USER, LabelDraft("work"))
    foreign_tag = ctx.labels.create_tag(OTHER_USER, LabelDraft("travel"))

    return {
        "wallet": wallet.account.id,
        "bank": bank.account.id,
        "foreign_account": foreign.account.id,
        "food": food.id,
        "salary": salary.id,
        "foreign_category": foreign_category.id,
        "system": SYSTEM_CATEGORY_ID,
        "weekend": weekend.id,
        "work": work.id,
        "foreign_tag": foreign_tag.id,
    }


def make_draft(
    kind: EntryKind,
    amount: float,
    to_account_id: int,
    category_id: int,
    when: datetime = datetime(2024, 3, 15, 12, 0),
    from_account_id: int = None,
    tag_ids: list = None,
    description: str = "",
    location: str = "",
) -> EntryDraft:
    """Build an entry draft with test defaults."""
    return EntryDraft(
        kind=kind,
        amount=amount,
        to_account_id=to_account_id,
        category_id=category_id,
        date=when,
        from_account_id=from_account_id,
        tag_ids=tag_ids or [],
        description=description,
        location=location,
    )


def install_trigger(db_path: Path, sql: str):
    """Add a trigger to the database behind the repositories' back."""
    conn = sqlite3.connect(db_path)
    try:
        conn.execute(sql)
        conn.commit()
    finally:
        conn.close()
