"""Plain-text rendering of :class:`~spend_analysis.models.Statistics`.

The output is a string; printing it is the caller's responsibility.
"""

from __future__ import annotations

from decimal import Decimal

from .aggregate import month_label
from .models import Statistics

_RULE = "-" * 48


def format_dollars(amount: Decimal | float) -> str:
    """Format as ``$1,234.56`` (negative values as ``-$1,234.56``)."""

    value = Decimal(str(amount)) if isinstance(amount, float) else amount
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def _pct(value: float) -> str:
    return f"{value:+.1f}%"


def _section(title: str, rows: list[tuple[str, str]]) -> list[str]:
    lines = ["", title, _RULE]
    if not rows:
        lines.append("  (none)")
        return lines
    width = max(len(label) for label, _ in rows)
    lines.extend(f"  {label.ljust(width)}  {value:>14}" for label, value in rows)
    return lines


def render_summary(stats: Statistics) -> str:
    """Return a fixed-width multi-section summary of ``stats``."""

    rng = stats.date_range
    period = f"{rng.start_date.isoformat()} to {rng.end_date.isoformat()}" if rng else "n/a"

    lines: list[str] = [
        f"Transactions: {stats.transaction_count}    Period: {period}",
        _RULE,
        f"  Total spent        {format_dollars(stats.total_spent):>14}",
        f"  Total income       {format_dollars(stats.total_income):>14}",
        f"  Avg monthly spend  {format_dollars(stats.avg_monthly_spend):>14}",
        f"  Avg daily spend    {format_dollars(stats.avg_daily_spend):>14}",
        f"  Month over month   {_pct(stats.month_over_month_change):>14}",
        f"  Year over year     {_pct(stats.year_over_year_change):>14}",
    ]

    if stats.top_merchant.name:
        lines.append(
            f"  Top merchant: {stats.top_merchant.name} "
            f"({format_dollars(stats.top_merchant.amount)})"
        )
    exp = stats.largest_expense
    if exp.description:
        when = exp.date.isoformat() if exp.date else ""
        lines.append(f"  Largest expense: {exp.description} ({format_dollars(exp.amount)}, {when})")

    lines += _section(
        "Spending by category",
        [(c.name, format_dollars(c.value)) for c in stats.category_breakdown],
    )
    lines += _section(
        "Monthly spending",
        [(month_label(m.month), format_dollars(m.amount)) for m in stats.monthly_spending],
    )
    lines += _section(
        "Average spend by day of week",
        [(d.day, format_dollars(d.amount)) for d in stats.day_of_week_averages],
    )
    lines += _section(
        "Recurring payments",
        [
            (f"{r.description} [{', '.join(r.months)}]", format_dollars(r.amount))
            for r in stats.recurring_payments
        ],
    )
    return "\n".join(lines)


__all__ = ["format_dollars", "render_summary"]
