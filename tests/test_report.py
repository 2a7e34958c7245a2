from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from spend_analysis.aggregate import aggregate
from spend_analysis.models import Statistics, Transaction
from spend_analysis.report import format_dollars, render_summary


@pytest.mark.parametrize(
    ("amount", "expected"),
    [
        (Decimal("0"), "$0.00"),
        (Decimal("1234.5"), "$1,234.50"),
        (Decimal("-15.999"), "-$16.00"),
        (12.3, "$12.30"),
    ],
)
def test_format_dollars(amount, expected):
    assert format_dollars(amount) == expected


def test_render_summary_sections():
    stats = aggregate(
        [
            Transaction(date(2024, month, 5), "Netflix", "Streaming", Decimal("-15.99"))
            for month in (1, 2, 3)
        ]
        + [Transaction(date(2024, 3, 1), "Rent", "Housing", Decimal("-1200"))]
    )
    text = render_summary(stats)
    assert text.startswith("Transactions: 4    Period: 2024-01-05 to 2024-03-05")
    assert "Top merchant: Rent ($1,200.00)" in text
    assert "Largest expense: Rent ($1,200.00, 2024-03-01)" in text
    assert "Mar 2024" in text
    assert "Netflix [Jan, Feb, Mar]" in text
    assert "(none)" not in text


def test_render_summary_of_empty_statistics():
    text = render_summary(Statistics())
    assert "Period: n/a" in text
    assert "Top merchant" not in text
    assert text.count("(none)") == 4
