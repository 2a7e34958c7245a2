"""Header-based column role detection for bank CSV exports.

Banks name their columns differently and declare no schema, so the roles
(date, description, amount, category, transaction type, debit/credit pair)
are resolved from ranked synonym lists. Matching is exact after trimming and
case folding; the first synonym present wins, so list order is priority
order.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from ..logging_setup import get_logger
from ..models import FieldMapping

_logger = get_logger("spend_analysis.ingest.field_mapper")


@dataclass(frozen=True, slots=True)
class FieldSynonyms:
    """Ranked header synonyms per column role (lowercase, trimmed)."""

    date: tuple[str, ...]
    description: tuple[str, ...]
    amount: tuple[str, ...]
    category: tuple[str, ...]
    transaction_type: tuple[str, ...]
    debit: tuple[str, ...]
    credit: tuple[str, ...]
    debit_indicator: str = "Debit"


DEFAULT_SYNONYMS = FieldSynonyms(
    date=(
        "date",
        "transaction date",
        "posting date",
        "trans date",
        "transaction_date",
        "txn_date",
        "post_date",
        "posted date",
        "statement date",
        "purchase date",
    ),
    description=(
        "description",
        "transaction description",
        "merchant",
        "payee",
        "details",
        "transaction_description",
        "desc",
        "name",
        "transaction",
        "memo",
        "notes",
        "reference",
        "vendor",
    ),
    amount=(
        "amount",
        "transaction amount",
        "payment amount",
        "debit",
        "credit",
        "transaction_amount",
        "txn_amount",
        "payment",
        "withdrawals",
        "deposits",
        "debit amount",
        "credit amount",
        "deposit amount",
        "withdrawal amount",
        "charge amount",
    ),
    category=(
        "category",
        "merchant category",
        "type",
        "category_name",
        "merchant_category",
        "transaction_category",
        "expense category",
        "spending category",
        "transaction type",
    ),
    transaction_type=(
        "transaction type",
        "type",
        "trans type",
        "transaction_type",
        "txn_type",
        "trans_type",
        "debit/credit",
        "entry type",
    ),
    debit=(
        "debit",
        "withdrawal",
        "withdrawals",
        "debit amount",
        "payment",
        "charge",
        "charges",
        "expense",
    ),
    credit=(
        "credit",
        "deposit",
        "deposits",
        "credit amount",
        "refund",
        "refunds",
        "inflow",
        "income",
    ),
)


def _fold(header: str) -> str:
    return header.strip().lower()


def _find(candidates: Sequence[str], present: set[str]) -> str | None:
    for name in candidates:
        if _fold(name) in present:
            return _fold(name)
    return None


def _original(headers: Sequence[str], folded: str) -> str:
    for h in headers:
        if _fold(h) == folded:
            return h
    return folded


def detect_fields(
    headers: Sequence[str], synonyms: FieldSynonyms = DEFAULT_SYNONYMS
) -> FieldMapping | None:
    """Resolve column roles for a header row.

    Returns ``None`` when the date column, the description column, or an
    amount strategy (a unified amount column, or both a debit-like and a
    credit-like column) cannot be found. The file is then unusable as a whole.
    """

    present = {_fold(h) for h in headers if h is not None}

    date_key = _find(synonyms.date, present)
    description_key = _find(synonyms.description, present)
    amount_key = _find(synonyms.amount, present)
    category_key = _find(synonyms.category, present)
    type_key = _find(synonyms.transaction_type, present)
    debit_key = _find(synonyms.debit, present)
    credit_key = _find(synonyms.credit, present)

    has_pair = False
    if amount_key is None and debit_key and credit_key:
        # The debit column stands in as the amount source.
        amount_key = debit_key
        has_pair = True

    if date_key is None or description_key is None or amount_key is None:
        _logger.debug("field_mapper:no_mapping headers=%s", list(headers))
        return None

    def orig(key: str | None) -> str | None:
        return _original(headers, key) if key is not None else None

    mapping = FieldMapping(
        date_field=_original(headers, date_key),
        description_field=_original(headers, description_key),
        amount_field=orig(amount_key),
        category_field=orig(category_key),
        transaction_type_field=orig(type_key),
        debit_field=orig(debit_key),
        credit_field=orig(credit_key),
        has_debit_credit_pair=has_pair,
        debit_indicator=synonyms.debit_indicator,
    )
    _logger.debug("field_mapper:mapping %s", mapping)
    return mapping


def detect_csv_type(headers: Sequence[str]) -> str:
    """Label a header set with the bank export flavor it most resembles.

    Informational only (used in log lines); column mapping is always driven by
    :func:`detect_fields`.
    """

    h = {_fold(x) for x in headers if x is not None}

    if {"date", "description", "amount"} <= h or {"date", "description", "debit"} <= h:
        return "AMEX"
    if {"transaction date", "description", "amount"} <= h:
        return "Chase"
    if {
        "account number",
        "transaction description",
        "transaction date",
        "transaction amount",
    } <= h or {"transaction date", "transaction description", "debit", "credit"} <= h:
        return "Capital One"
    if ({"posting date", "description"} <= h and ({"withdrawals", "deposits"} & h)) or (
        {"date", "payee"} <= h and ({"debit", "credit"} & h)
    ):
        return "Bank Statement"
    if (
        {"date", "transaction date", "posting date"} & h
        and {"description", "payee", "merchant", "transaction"} & h
        and {"amount", "debit", "credit", "transaction amount"} & h
    ):
        return "General"
    return "Unknown"


__all__ = ["DEFAULT_SYNONYMS", "FieldSynonyms", "detect_csv_type", "detect_fields"]
