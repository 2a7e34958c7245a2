"""Data models for ``spend_analysis``.

Domain values (transactions, field mappings, derived statistics) are frozen
dataclasses so they can be shared freely between the ingestion and
aggregation stages. The JSON-facing DTOs for the AI insights boundary are
pydantic models, validated on the way in.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Literal, NamedTuple

from pydantic import BaseModel, ConfigDict, field_validator

# ---------------------------------------------------------------------------
# Raw input
# ---------------------------------------------------------------------------

# One decoded CSV row keyed by the file's original header names.
type RawRow = Mapping[str, str]


class SourceFile(NamedTuple):
    """A CSV document to ingest: a display name plus its decoded text."""

    name: str
    text: str


# ---------------------------------------------------------------------------
# Normalized transaction
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Transaction:
    """A single normalized transaction.

    Attributes
    ----------
    date:
        Calendar date (no time component, no timezone).
    description:
        Trimmed, non-empty description as exported by the bank.
    category:
        Trimmed category text; ``""`` when the file has no category signal.
    amount:
        Signed amount. Negative values are outflows (spending), non-negative
        values are inflows (income).
    """

    date: date
    description: str
    category: str
    amount: Decimal

    @property
    def is_outflow(self) -> bool:
        return self.amount < 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "description": self.description,
            "category": self.category,
            "amount": float(self.amount),
        }


@dataclass(frozen=True, slots=True)
class FieldMapping:
    """Per-file resolution of which CSV columns supply each transaction field.

    Column names keep the casing found in the file so they can be used as row
    keys directly. Exactly one amount strategy applies: ``amount_field`` alone,
    or the ``debit_field``/``credit_field`` pair when
    ``has_debit_credit_pair`` is set (``amount_field`` then points at the
    debit column as a placeholder).
    """

    date_field: str
    description_field: str
    amount_field: str | None = None
    category_field: str | None = None
    transaction_type_field: str | None = None
    debit_field: str | None = None
    credit_field: str | None = None
    has_debit_credit_pair: bool = False
    debit_indicator: str = "Debit"

    def __post_init__(self) -> None:
        if not self.date_field or not self.description_field:
            raise ValueError("FieldMapping requires date_field and description_field")
        if self.has_debit_credit_pair:
            if not (self.debit_field and self.credit_field):
                raise ValueError("FieldMapping debit/credit pair requires both columns")
        elif not self.amount_field:
            raise ValueError("FieldMapping requires amount_field or a debit/credit pair")


# ---------------------------------------------------------------------------
# Ingestion diagnostics
# ---------------------------------------------------------------------------

type DiagnosticKind = Literal["file_rejected", "rows_rejected", "decode_failed", "no_transactions"]


class FileDiagnostic(NamedTuple):
    """A recovered, user-facing ingestion problem scoped to one file."""

    file_name: str
    kind: DiagnosticKind
    message: str


@dataclass(frozen=True, slots=True)
class IngestResult:
    transactions: tuple[Transaction, ...]
    diagnostics: tuple[FileDiagnostic, ...] = ()

    @property
    def messages(self) -> list[str]:
        return [d.message for d in self.diagnostics]


# ---------------------------------------------------------------------------
# Derived statistics
# ---------------------------------------------------------------------------


class DateRange(NamedTuple):
    start_date: date
    end_date: date

    def to_dict(self) -> dict[str, str]:
        return {"start_date": self.start_date.isoformat(), "end_date": self.end_date.isoformat()}


class MonthlySpend(NamedTuple):
    month: str  # YYYY-MM
    amount: Decimal


class CategoryTotal(NamedTuple):
    name: str
    value: Decimal


class CategoryTrendPoint(NamedTuple):
    month: str  # YYYY-MM
    totals: Mapping[str, Decimal]


class DayOfWeekAverage(NamedTuple):
    day: str  # Sun..Sat
    amount: Decimal


class TopMerchant(NamedTuple):
    name: str
    amount: Decimal


class LargestExpense(NamedTuple):
    description: str
    amount: Decimal
    date: date | None


class RecurringPayment(NamedTuple):
    description: str
    amount: Decimal
    months: tuple[str, ...]


_ZERO = Decimal("0")


def _num(d: Decimal) -> float:
    return float(d)


@dataclass(frozen=True, slots=True)
class Statistics:
    """Everything the presentation layer needs, computed in one pass.

    Money values are kept as :class:`~decimal.Decimal`; percentage deltas are
    floats. :meth:`to_dict` renders the JSON-friendly shape.
    """

    transaction_count: int = 0
    total_spent: Decimal = _ZERO
    total_income: Decimal = _ZERO
    avg_monthly_spend: Decimal = _ZERO
    avg_daily_spend: Decimal = _ZERO
    date_range: DateRange | None = None
    top_merchant: TopMerchant = TopMerchant("", _ZERO)
    largest_expense: LargestExpense = LargestExpense("", _ZERO, None)
    category_breakdown: tuple[CategoryTotal, ...] = ()
    has_category_data: bool = False
    category_trend: tuple[CategoryTrendPoint, ...] = ()
    monthly_spending: tuple[MonthlySpend, ...] = ()
    day_of_week_averages: tuple[DayOfWeekAverage, ...] = ()
    recurring_payments: tuple[RecurringPayment, ...] = ()
    month_over_month_change: float = 0.0
    year_over_year_change: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        rng = self.date_range
        exp = self.largest_expense
        return {
            "transaction_count": self.transaction_count,
            "total_spent": _num(self.total_spent),
            "total_income": _num(self.total_income),
            "avg_monthly_spend": _num(self.avg_monthly_spend),
            "avg_daily_spend": _num(self.avg_daily_spend),
            "start_date": rng.start_date.isoformat() if rng else None,
            "end_date": rng.end_date.isoformat() if rng else None,
            "top_merchant": {
                "name": self.top_merchant.name,
                "amount": _num(self.top_merchant.amount),
            },
            "largest_expense": {
                "description": exp.description,
                "amount": _num(exp.amount),
                "date": exp.date.isoformat() if exp.date else "",
            },
            "category_breakdown": [
                {"name": c.name, "value": _num(c.value)} for c in self.category_breakdown
            ],
            "has_category_data": self.has_category_data,
            "category_trend": [
                {"date": p.month, **{k: _num(v) for k, v in p.totals.items()}}
                for p in self.category_trend
            ],
            "monthly_spending": [
                {"date": m.month, "amount": _num(m.amount)} for m in self.monthly_spending
            ],
            "day_of_week_averages": [
                {"day": d.day, "amount": _num(d.amount)} for d in self.day_of_week_averages
            ],
            "recurring_payments": [
                {
                    "description": r.description,
                    "amount": _num(r.amount),
                    "months": ", ".join(r.months),
                }
                for r in self.recurring_payments
            ],
            "month_over_month_change": self.month_over_month_change,
            "year_over_year_change": self.year_over_year_change,
        }


# ---------------------------------------------------------------------------
# DTOs for the AI insights boundary
# ---------------------------------------------------------------------------


class FinancialInsight(BaseModel):
    """One insight record returned by the model.

    Only the shape is validated; the text content is passed through as-is.
    ``category`` is expected to be one of ``spending_pattern``,
    ``savings_opportunity``, ``risk_alert``, ``behavioral_pattern`` or
    ``optimization`` but unknown labels are kept rather than rejected.
    """

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    title: str
    category: str
    description: str
    recommendation: str

    @field_validator("title")
    @classmethod
    def _title_non_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("title must be non-empty")
        return v


class InsightsResponse(BaseModel):
    """Top-level JSON document expected from the insights model."""

    model_config = ConfigDict(extra="ignore")

    insights: list[FinancialInsight]
