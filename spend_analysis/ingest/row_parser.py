"""Row → :class:`~spend_analysis.models.Transaction` normalization.

Given one decoded CSV row and the file's :class:`FieldMapping`, produce a
normalized transaction or reject the row with a short reason. Rejections are
values, not exceptions: a bad row must never abort the file it came from.

Amount polarity
---------------
Banks disagree on sign conventions, so the sign is derived:

1. Debit/credit column pair: a positive debit becomes ``-debit``; otherwise a
   positive credit becomes ``+credit``; otherwise ``0``. Already signed, the
   cascade below is skipped.
2. Single amount column, with a transaction-type column: a type containing
   the debit indicator (``"debit"``) forces negative; ``"credit"`` or
   ``"deposit"`` forces positive; any other label (``DR``/``CR``...) keeps the
   raw sign.
3. Single amount column, no type column: descriptions that look like income
   (``payment``, ``deposit``, ``credit``, ``refund``, ``transfer from``) keep
   their sign; every other positive amount is assumed to be an expense and
   flipped negative.

Step 3 is a best-effort guess kept exactly as is; changing the keyword list
changes user-visible totals.
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation

from ..logging_setup import get_logger
from ..models import FieldMapping, RawRow, Transaction
from .dates import parse_date

_logger = get_logger("spend_analysis.ingest.row_parser")

INCOME_KEYWORDS: tuple[str, ...] = ("payment", "deposit", "credit", "refund", "transfer from")

_STRIP_CHARS = re.compile(r"[$,\s]")
_ZERO = Decimal("0")
# Largest accepted adjusted exponent; 1e16 and above is rejected.
_MAX_EXPONENT = 15


def parse_amount(raw: str | None) -> Decimal | None:
    """Parse a money cell after stripping ``$``, ``,`` and whitespace.

    Returns ``None`` when the remainder is not a finite number, or when its
    magnitude is ``10**16`` or more.
    """

    if raw is None:
        return None
    s = _STRIP_CHARS.sub("", raw)
    if not s:
        return None
    try:
        d = Decimal(s)
    except InvalidOperation:
        return None
    if not d.is_finite() or (d and d.adjusted() > _MAX_EXPONENT):
        return None
    return d


def _cell(row: RawRow, column: str | None) -> str:
    if column is None:
        return ""
    value = row.get(column)
    return value if isinstance(value, str) else ""


def _pair_amount(row: RawRow, mapping: FieldMapping) -> Decimal:
    debit = parse_amount(_cell(row, mapping.debit_field) or "0") or _ZERO
    credit = parse_amount(_cell(row, mapping.credit_field) or "0") or _ZERO
    if debit > 0:
        return -debit
    if credit > 0:
        return credit
    return _ZERO


def _apply_sign_cascade(
    amount: Decimal, *, row: RawRow, mapping: FieldMapping, description: str
) -> Decimal:
    if mapping.transaction_type_field is not None:
        tx_type = _cell(row, mapping.transaction_type_field).lower()
        indicator = (mapping.debit_indicator or "debit").lower()
        if indicator in tx_type:
            return -abs(amount)
        if "credit" in tx_type or "deposit" in tx_type:
            return abs(amount)
        return amount

    if mapping.has_debit_credit_pair:
        return amount

    desc = description.lower()
    if any(k in desc for k in INCOME_KEYWORDS):
        return amount
    return -amount if amount > 0 else amount


def parse_row_with_reason(
    row: RawRow, mapping: FieldMapping
) -> tuple[Transaction | None, str | None]:
    """Normalize ``row``; return ``(transaction, None)`` or ``(None, reason)``."""

    try:
        date_raw = _cell(row, mapping.date_field)
        description = _cell(row, mapping.description_field).strip()
        category = _cell(row, mapping.category_field).strip()

        parsed_date = parse_date(date_raw)
        if parsed_date is None:
            return None, f"unable to parse date: {date_raw!r}"
        if not description:
            return None, "empty description"

        if mapping.has_debit_credit_pair:
            amount: Decimal | None = _pair_amount(row, mapping)
        else:
            amount_raw = _cell(row, mapping.amount_field) or "0"
            amount = parse_amount(amount_raw)
            if amount is None:
                return None, f"invalid amount: {amount_raw!r}"
            amount = _apply_sign_cascade(
                amount, row=row, mapping=mapping, description=description
            )
        if amount == 0:
            # -0 from forcing a zero amount negative.
            amount = abs(amount)
    except (AttributeError, TypeError, ValueError) as e:
        # Unexpected cell shapes (e.g. extra-column lists) reject the row only.
        _logger.debug("row_parser:row_error error=%s", e)
        return None, f"malformed row: {e}"

    return (
        Transaction(date=parsed_date, description=description, category=category, amount=amount),
        None,
    )


def parse_row(row: RawRow, mapping: FieldMapping) -> Transaction | None:
    """Normalize ``row`` or return ``None``; never raises."""

    tx, _reason = parse_row_with_reason(row, mapping)
    return tx


__all__ = ["INCOME_KEYWORDS", "parse_amount", "parse_row", "parse_row_with_reason"]
