"""Double-entry checks for manual journal entry sets."""
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from ..conf import get_setting

ZERO = Decimal("0")


@dataclass(frozen=True)
class JournalLineInput:
    description: Optional[str]
    gl_account: Optional[str]
    debit: Optional[Decimal] = None
    credit: Optional[Decimal] = None


@dataclass(frozen=True)
class BalanceResult:
    ok: bool
    errors: List[str] = field(default_factory=list)
    total_debit: Decimal = ZERO
    total_credit: Decimal = ZERO
    difference: Decimal = ZERO


def to_amount(value):
    """
    Parse an amount cell: numbers, numeric strings (thousands separators
    allowed) or blanks. Returns a Decimal or None.
    """
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    text = str(value).strip().replace(",", "")
    if not text:
        return None
    try:
        return Decimal(text)
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {value!r}") from None


def _field(line, *names):
    # Accept dataclasses, model instances and plain dict rows alike
    for name in names:
        if isinstance(line, dict):
            if name in line:
                return line[name]
        elif hasattr(line, name):
            return getattr(line, name)
    return None


def _as_input(line):
    if isinstance(line, JournalLineInput):
        return line
    return JournalLineInput(
        description=_field(line, "description"),
        gl_account=_field(line, "gl_account"),
        debit=to_amount(_field(line, "debit", "debit_amount")),
        credit=to_amount(_field(line, "credit", "credit_amount")),
    )


def validate(lines):
    """Check a journal entry set, collecting every problem found."""
    items = [_as_input(line) for line in lines]
    errors = []

    if len(items) < 2:
        errors.append("Entry must have at least two lines.")

    for n, item in enumerate(items, start=1):
        if not (item.description or "").strip():
            errors.append(f"Line {n}: missing description.")
        if not (item.gl_account or "").strip():
            errors.append(f"Line {n}: missing GL account.")

    for n, item in enumerate(items, start=1):
        has_debit = (item.debit or ZERO) > 0
        has_credit = (item.credit or ZERO) > 0
        if has_debit == has_credit:
            errors.append(
                f"Line {n}: must have either a debit or a credit amount, not both or neither."
            )

    total_debit = sum((item.debit or ZERO for item in items), ZERO)
    total_credit = sum((item.credit or ZERO for item in items), ZERO)
    difference = total_debit - total_credit
    if abs(difference) > get_setting("JOURNAL_BALANCE_TOLERANCE"):
        errors.append(
            f"Entry does not balance: debits {total_debit:.2f}, "
            f"credits {total_credit:.2f}, difference {abs(difference):.2f}."
        )

    return BalanceResult(
        ok=not errors,
        errors=errors,
        total_debit=total_debit,
        total_credit=total_credit,
        difference=difference,
    )


def group_import_rows(rows, key="journal_set_id"):
    """
    Split imported rows into journal sets.

    When any row carries a set id, rows are grouped by it (rows without
    one share the "" group); otherwise the whole batch is one set.
    Returns (set_id, rows) pairs in order of first appearance.
    """
    rows = list(rows)

    def set_id(row):
        value = row.get(key) if isinstance(row, dict) else getattr(row, key, None)
        return str(value).strip() if value not in (None, "") else ""

    if not any(set_id(row) for row in rows):
        return [("", rows)] if rows else []

    groups = {}
    for row in rows:
        groups.setdefault(set_id(row), []).append(row)
    return list(groups.items())
