"""Derived statistics over a normalized transaction list.

:func:`aggregate` is a pure function: it keeps no state between calls and
iterates the input in order, so "first seen wins" tie-breaks (top merchant,
largest expense) are deterministic for a given input order.

Period keys
-----------
Month buckets use sortable ``YYYY-MM`` keys and year buckets ``YYYY``.
Human labels such as ``"Jan 2025"`` are produced only for display
(:func:`month_label`), never used for ordering.
"""

from __future__ import annotations

import calendar
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, localcontext

from .logging_setup import get_logger
from .models import (
    CategoryTotal,
    CategoryTrendPoint,
    DateRange,
    DayOfWeekAverage,
    LargestExpense,
    MonthlySpend,
    RecurringPayment,
    Statistics,
    TopMerchant,
    Transaction,
)

_logger = get_logger("spend_analysis.aggregate")

_ZERO = Decimal("0")
_CENT = Decimal("0.01")

WEEKDAYS: tuple[str, ...] = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")
OTHER_CATEGORY = "Other"
UNCATEGORIZED = "Uncategorized"


@dataclass(frozen=True, slots=True)
class AggregationProfile:
    """Tunables for :func:`aggregate`.

    Attributes
    ----------
    top_categories:
        Number of named categories kept in the breakdown before the rest is
        merged into ``"Other"``.
    recurring_min_months:
        Distinct calendar months an outflow must appear in to be reported as
        recurring.
    """

    top_categories: int = 4
    recurring_min_months: int = 3

    def __post_init__(self) -> None:
        for name in ("top_categories", "recurring_min_months"):
            val = getattr(self, name)
            if isinstance(val, bool) or not isinstance(val, int) or val <= 0:
                raise ValueError(f"AggregationProfile.{name} must be a positive integer")


DEFAULT_PROFILE = AggregationProfile(top_categories=4)
EXPANDED_PROFILE = AggregationProfile(top_categories=6)

PROFILES: Mapping[str, AggregationProfile] = {
    "default": DEFAULT_PROFILE,
    "expanded": EXPANDED_PROFILE,
}


# ---- Small helpers -----------------------------------------------------------


def month_key(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}"


def month_label(key: str, *, with_year: bool = True) -> str:
    """Render a ``YYYY-MM`` key as ``"Jan 2025"`` (or ``"Jan"``)."""

    year, month = key.split("-", 1)
    abbr = calendar.month_abbr[int(month)]
    return f"{abbr} {year}" if with_year else abbr


def weekday_name(d: date) -> str:
    # date.weekday(): Monday == 0; WEEKDAYS starts on Sunday.
    return WEEKDAYS[(d.weekday() + 1) % 7]


def percent_change(current: Decimal, previous: Decimal) -> float:
    if previous == 0:
        return 0.0
    return float((current - previous) / previous * 100)


def _latest_delta(buckets: Mapping[str, Decimal]) -> float:
    keys = sorted(buckets)
    if len(keys) < 2:
        return 0.0
    return percent_change(buckets[keys[-1]], buckets[keys[-2]])


def _months_between(start: date, end: date) -> int:
    return (end.year - start.year) * 12 + (end.month - start.month) + 1


def _to_cents(d: Decimal) -> Decimal:
    # Widen precision so quantize never overflows for large magnitudes.
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, d.adjusted() + 3)
        return d.quantize(_CENT, rounding=ROUND_HALF_UP)


def date_range(transactions: Iterable[Transaction]) -> DateRange | None:
    """Return the min/max transaction dates, or ``None`` for an empty input."""

    start: date | None = None
    end: date | None = None
    for t in transactions:
        if start is None or t.date < start:
            start = t.date
        if end is None or t.date > end:
            end = t.date
    if start is None or end is None:
        return None
    return DateRange(start, end)


# ---- Breakdown / recurring ---------------------------------------------------


def _category_breakdown(
    totals: Mapping[str, Decimal], *, top_n: int, total_spent: Decimal
) -> tuple[CategoryTotal, ...]:
    if not totals:
        return (CategoryTotal(UNCATEGORIZED, total_spent),)
    # sorted() is stable: equal totals keep first-seen order.
    ranked = sorted(totals.items(), key=lambda kv: kv[1], reverse=True)
    out = [CategoryTotal(name, value) for name, value in ranked[:top_n]]
    other = sum((value for _, value in ranked[top_n:]), _ZERO)
    if other > 0:
        out.append(CategoryTotal(OTHER_CATEGORY, other))
    return tuple(out)


def _recurring(
    candidates: Mapping[tuple[str, Decimal], set[str]], *, min_months: int
) -> tuple[RecurringPayment, ...]:
    found: list[RecurringPayment] = []
    for (description, amount), months in candidates.items():
        if len(months) < min_months:
            continue
        keys = sorted(months)
        with_year = len({k[:4] for k in keys}) > 1
        labels = tuple(month_label(k, with_year=with_year) for k in keys)
        found.append(RecurringPayment(description, amount, labels))
    found.sort(key=lambda r: r.amount, reverse=True)
    return tuple(found)


# ---- Public API --------------------------------------------------------------


def aggregate(
    transactions: Iterable[Transaction], *, profile: AggregationProfile = DEFAULT_PROFILE
) -> Statistics:
    """Compute every derived statistic for ``transactions``.

    Never raises for well-typed input; an empty input yields
    ``Statistics()`` with all-zero/empty values.
    """

    txs = list(transactions)
    rng = date_range(txs)
    if rng is None:
        return Statistics()

    total_spent = _ZERO
    total_income = _ZERO
    merchant_totals: dict[str, Decimal] = {}
    category_totals: dict[str, Decimal] = {}
    monthly: dict[str, Decimal] = {}
    yearly: dict[str, Decimal] = {}
    trend: dict[str, dict[str, Decimal]] = {}
    recurring: dict[tuple[str, Decimal], set[str]] = {}
    dow_total: dict[str, Decimal] = {d: _ZERO for d in WEEKDAYS}
    dow_count: dict[str, int] = {d: 0 for d in WEEKDAYS}
    largest = LargestExpense("", _ZERO, None)

    for t in txs:
        if not t.is_outflow:
            total_income += t.amount
            continue

        spent = abs(t.amount)
        total_spent += spent
        mkey = month_key(t.date)

        if t.description:
            merchant_totals[t.description] = merchant_totals.get(t.description, _ZERO) + spent
            cents = _to_cents(spent)
            recurring.setdefault((t.description, cents), set()).add(mkey)
            if spent > largest.amount:
                largest = LargestExpense(t.description, spent, t.date)
        if t.category:
            category_totals[t.category] = category_totals.get(t.category, _ZERO) + spent

        monthly[mkey] = monthly.get(mkey, _ZERO) + spent
        ykey = f"{t.date.year:04d}"
        yearly[ykey] = yearly.get(ykey, _ZERO) + spent

        month_trend = trend.setdefault(mkey, {})
        cat = t.category or UNCATEGORIZED
        month_trend[cat] = month_trend.get(cat, _ZERO) + spent

        day = weekday_name(t.date)
        dow_total[day] += spent
        dow_count[day] += 1

    days = max(1, (rng.end_date - rng.start_date).days + 1)
    months = max(1, _months_between(rng.start_date, rng.end_date))

    top = TopMerchant("", _ZERO)
    for name, amount in merchant_totals.items():
        if amount > top.amount:
            top = TopMerchant(name, amount)

    stats = Statistics(
        transaction_count=len(txs),
        total_spent=total_spent,
        total_income=total_income,
        avg_monthly_spend=total_spent / months,
        avg_daily_spend=total_spent / days,
        date_range=rng,
        top_merchant=top,
        largest_expense=largest,
        category_breakdown=_category_breakdown(
            category_totals, top_n=profile.top_categories, total_spent=total_spent
        ),
        has_category_data=bool(category_totals),
        category_trend=tuple(CategoryTrendPoint(k, dict(trend[k])) for k in sorted(trend)),
        monthly_spending=tuple(MonthlySpend(k, monthly[k]) for k in sorted(monthly)),
        day_of_week_averages=tuple(
            DayOfWeekAverage(d, dow_total[d] / dow_count[d] if dow_count[d] else _ZERO)
            for d in WEEKDAYS
        ),
        recurring_payments=_recurring(recurring, min_months=profile.recurring_min_months),
        month_over_month_change=_latest_delta(monthly),
        year_over_year_change=_latest_delta(yearly),
    )
    _logger.debug(
        "aggregate:done transactions=%d total_spent=%s months=%d",
        len(txs),
        total_spent,
        months,
    )
    return stats


__all__ = [
    "DEFAULT_PROFILE",
    "EXPANDED_PROFILE",
    "PROFILES",
    "AggregationProfile",
    "aggregate",
    "date_range",
    "month_label",
    "percent_change",
]
