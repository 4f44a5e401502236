"""
Entry classification rules.

Checks an entry draft's kind against its account references and its basic
shape. Pure functions: no store access.
"""

import math

from purse.config import MAX_DESCRIPTION_LENGTH, MAX_LOCATION_LENGTH
from purse.exceptions import ValidationFailure
from purse.models.entry import EntryDraft, EntryKind, Violation

FROM_NOT_ALLOWED = "from account not allowed for this kind"
FROM_REQUIRED = "from account required for transfer"
FROM_EQUALS_TO = "from and to accounts must differ"


def classify(draft: EntryDraft) -> list[Violation]:
    """
    Check the kind/account-reference rules of a draft.

    - INCOME and EXPENSE must not carry a ``from`` account
    - TRANSFER must carry a ``from`` account distinct from ``to``

    Returns:
        Every violation found; empty when the draft is well-formed
    """
    has_from = draft.from_account_id is not None

    if draft.kind in (EntryKind.INCOME, EntryKind.EXPENSE):
        if has_from:
            return [Violation("from_account_id", FROM_NOT_ALLOWED)]
        return []

    if not has_from:
        return [Violation("from_account_id", FROM_REQUIRED)]
    if draft.from_account_id == draft.to_account_id:
        return [Violation("from_account_id", FROM_EQUALS_TO)]
    return []


def check_shape(draft: EntryDraft) -> list[Violation]:
    """Check amount, text lengths and tag uniqueness of a draft."""
    violations = []

    if draft.amount is None or not math.isfinite(draft.amount):
        violations.append(Violation("amount", "amount must be a finite number"))
    elif draft.amount <= 0:
        violations.append(Violation("amount", "amount must be greater than zero"))
    if draft.to_account_id is None:
        violations.append(Violation("to_account_id", "to account is required"))
    if draft.category_id is None:
        violations.append(Violation("category_id", "category is required"))
    if draft.date is None:
        violations.append(Violation("date", "date is required"))
    if len(draft.description) > MAX_DESCRIPTION_LENGTH:
        violations.append(
            Violation(
                "description",
                f"description must be at most {MAX_DESCRIPTION_LENGTH} characters",
            )
        )
    if len(draft.location) > MAX_LOCATION_LENGTH:
        violations.append(
            Violation(
                "location",
                f"location must be at most {MAX_LOCATION_LENGTH} characters",
            )
        )
    if len(set(draft.tag_ids)) != len(draft.tag_ids):
        violations.append(Violation("tag_ids", "tag IDs must be unique"))

    return violations


def validate_draft(draft: EntryDraft):
    """
    Run shape and classification checks together.

    Raises:
        ValidationFailure: Carrying every violation found
    """
    violations = check_shape(draft) + classify(draft)
    if violations:
        raise ValidationFailure.from_violations(violations)
