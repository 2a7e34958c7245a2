from __future__ import annotations

from datetime import date

import pytest

from spend_analysis.ingest.dates import parse_date


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("2024-01-15", date(2024, 1, 15)),
        ("01/15/2024", date(2024, 1, 15)),
        ("15/01/2024", date(2024, 1, 15)),
        ("1/5/2024", date(2024, 1, 5)),
        ("01/15/24", date(2024, 1, 15)),
        ("15.01.2024", date(2024, 1, 15)),
        ("15-01-2024", date(2024, 1, 15)),
        ("2024/01/15", date(2024, 1, 15)),
        ("2024.1.5", date(2024, 1, 5)),
        ("2024\\01\\15", date(2024, 1, 15)),
        ("Jan 15, 2024", date(2024, 1, 15)),
        ("January 15, 2024", date(2024, 1, 15)),
        ("15 Jan 2024", date(2024, 1, 15)),
        ("  2024-01-15  ", date(2024, 1, 15)),
    ],
)
def test_parses_common_formats(raw, expected):
    assert parse_date(raw) == expected


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("2024-01-15T23:59:59", date(2024, 1, 15)),
        ("2024-01-15T23:59:59Z", date(2024, 1, 15)),
        ("2024-01-15 08:30", date(2024, 1, 15)),
        ("01/15/2024 10:30", date(2024, 1, 15)),
        ("15/01/2024 10:30:00 PM", date(2024, 1, 15)),
    ],
)
def test_time_component_is_dropped_without_timezone_shift(raw, expected):
    assert parse_date(raw) == expected


def test_ambiguous_day_month_prefers_month_first():
    # Known limitation: no locale hint, so MM/DD wins when both are <= 12.
    assert parse_date("03/04/2024") == date(2024, 3, 4)
    assert parse_date("03.04.2024") == date(2024, 3, 4)


@pytest.mark.parametrize(
    "raw",
    [
        "not a date",
        "",
        "   ",
        None,
        "2024-13-45",
        "31/31/2024",
        "15/01/24",  # two-digit year only accepted in US MM/DD/YY form
        "12/2024",
        "1/2/3/4",
    ],
)
def test_invalid_inputs_return_none(raw):
    assert parse_date(raw) is None
