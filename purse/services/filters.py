"""
Parsing of raw filter parameters.

Turns the string parameters a caller received (query strings, form fields)
into an EntryFilter or a ReportWindow. Every malformed value raises
ValidationFailure naming the parameter.
"""

import re
from datetime import date, datetime
from typing import Optional

from purse.exceptions import ValidationFailure
from purse.models.entry import EntryKind
from purse.models.filters import EntryFilter, ReportWindow

ID_LIST_PATTERN = re.compile(r"^\s*\d+\s*(?:,\s*\d+\s*)*$")


def parse_date(value: Optional[str], name: str) -> Optional[date]:
    """
    Parse an ISO date or datetime string into a date.

    Accepts "2024-03-01", "2024-03-01T10:00:00" and RFC 3339 forms with a
    trailing "Z" or offset. Empty values give None.
    """
    if value is None or not str(value).strip():
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        raise ValidationFailure(f"{name}: invalid date '{value}'") from None


def parse_id_list(value: Optional[str], name: str) -> list[int]:
    """Parse a comma-separated list of non-negative integers, e.g. "1,2,3"."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [int(v) for v in value]

    text = str(value).strip()
    if not text:
        return []
    if not ID_LIST_PATTERN.match(text):
        raise ValidationFailure(f"{name}: invalid ID list '{value}'")
    return [int(part) for part in text.split(",")]


def parse_kind(value: Optional[str]) -> Optional[EntryKind]:
    if value is None or not str(value).strip():
        return None
    try:
        return EntryKind(int(str(value).strip()))
    except ValueError:
        raise ValidationFailure(f"kind: invalid entry kind '{value}'") from None


def build_report_window(
    start_date: Optional[str] = None, end_date: Optional[str] = None
) -> ReportWindow:
    """Build an inclusive day window from raw start/end parameters."""
    return ReportWindow(
        start_date=parse_date(start_date, "start_date"),
        end_date=parse_date(end_date, "end_date"),
    )


def build_entry_filter(
    user_id: str,
    kind: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    day: Optional[str] = None,
    account_ids: Optional[str] = None,
    category_ids: Optional[str] = None,
    tag_ids: Optional[str] = None,
    description: Optional[str] = None,
) -> EntryFilter:
    """
    Build an EntryFilter from raw parameters.

    Raises:
        ValidationFailure: For a bad date, a start after the end, a day
            combined with a range, a malformed ID list or an unknown kind
    """
    return EntryFilter(
        user_id=user_id,
        kind=parse_kind(kind),
        start_date=parse_date(start_date, "start_date"),
        end_date=parse_date(end_date, "end_date"),
        day=parse_date(day, "day"),
        account_ids=parse_id_list(account_ids, "account_ids"),
        category_ids=parse_id_list(category_ids, "category_ids"),
        tag_ids=parse_id_list(tag_ids, "tag_ids"),
        description=description or "",
    )
