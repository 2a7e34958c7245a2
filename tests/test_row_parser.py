from __future__ import annotations

import re
from datetime import date
from decimal import Decimal

import pytest

from spend_analysis.ingest.field_mapper import detect_fields
from spend_analysis.ingest.row_parser import parse_amount, parse_row, parse_row_with_reason
from spend_analysis.models import FieldMapping

SINGLE = FieldMapping(date_field="Date", description_field="Description", amount_field="Amount")
WITH_TYPE = FieldMapping(
    date_field="Date",
    description_field="Description",
    amount_field="Amount",
    transaction_type_field="Type",
)
PAIR = FieldMapping(
    date_field="Date",
    description_field="Description",
    amount_field="Debit",
    debit_field="Debit",
    credit_field="Credit",
    has_debit_credit_pair=True,
)


def _row(**cells: str) -> dict[str, str]:
    return {"Date": "2024-01-15", "Description": "Coffee", **cells}


# ---- Amount parsing ----------------------------------------------------------


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("12.50", Decimal("12.50")),
        ("-12.50", Decimal("-12.50")),
        ("$1,234.56", Decimal("1234.56")),
        (" - $ 7 ", Decimal("-7")),
        ("+3", Decimal("3")),
    ],
)
def test_parse_amount_strips_currency_commas_whitespace(raw, expected):
    assert parse_amount(raw) == expected


@pytest.mark.parametrize("raw", ["", "abc", "12.5.3", "NaN", "Infinity", "€5", None, "-1e30", "1" + "0" * 27])
def test_parse_amount_rejects_non_numbers(raw):
    assert parse_amount(raw) is None


# ---- Basic extraction --------------------------------------------------------


def test_emits_trimmed_transaction():
    m = FieldMapping(
        date_field="Date",
        description_field="Description",
        amount_field="Amount",
        category_field="Category",
    )
    tx = parse_row(
        {"Date": "01/15/2024", "Description": "  Coffee Shop ", "Category": " Food ", "Amount": "-4.50"},
        m,
    )
    assert tx is not None
    assert tx.date == date(2024, 1, 15)
    assert tx.description == "Coffee Shop"
    assert tx.category == "Food"
    assert tx.amount == Decimal("-4.50")
    d = tx.to_dict()
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}", d["date"])
    assert d == {"date": "2024-01-15", "description": "Coffee Shop", "category": "Food", "amount": -4.5}


def test_missing_category_column_gives_empty_string():
    tx = parse_row(_row(Amount="-1"), SINGLE)
    assert tx is not None
    assert tx.category == ""


@pytest.mark.parametrize(
    ("row", "reason_fragment"),
    [
        (_row(Description="   ", Amount="-5"), "empty description"),
        ({"Date": "2024-01-15", "Amount": "-5"}, "empty description"),
        (_row(Date="someday", Amount="-5"), "date"),
        (_row(Date="", Amount="-5"), "date"),
        (_row(Amount="twelve"), "amount"),
    ],
)
def test_rejections_carry_reason(row, reason_fragment):
    tx, reason = parse_row_with_reason(row, SINGLE)
    assert tx is None
    assert reason is not None and reason_fragment in reason


def test_never_raises_on_odd_cell_values():
    # DictReader puts surplus cells under a None key as a list.
    row = {"Date": "2024-01-15", "Description": "X", "Amount": ["1", "2"]}  # type: ignore[dict-item]
    assert parse_row(row, SINGLE) is not None  # non-str cell treated as empty -> 0
    assert parse_row({}, SINGLE) is None


def test_empty_amount_cell_counts_as_zero():
    tx = parse_row(_row(Amount=""), SINGLE)
    assert tx is not None
    assert tx.amount == 0


# ---- Debit/credit pair -------------------------------------------------------


@pytest.mark.parametrize(
    ("debit", "credit", "expected"),
    [
        ("50.00", "0", Decimal("-50.00")),
        ("0", "50.00", Decimal("50.00")),
        ("$1,200.00", "", Decimal("-1200.00")),
        ("", "$75", Decimal("75")),
        ("", "", Decimal("0")),
        ("junk", "20", Decimal("20")),
        ("10", "20", Decimal("-10")),  # debit wins when both are set
    ],
)
def test_debit_credit_pair_resolution(debit, credit, expected):
    tx = parse_row(_row(Debit=debit, Credit=credit), PAIR)
    assert tx is not None
    assert tx.amount == expected


def test_pair_path_skips_description_heuristic():
    # Credit on a non-income description stays positive.
    tx = parse_row(_row(Description="Grocery Store", Debit="", Credit="30"), PAIR)
    assert tx is not None
    assert tx.amount == Decimal("30")


def test_pair_resolution_via_detected_mapping():
    m = detect_fields(["Date", "Description", "Withdrawal", "Deposit"])
    assert m is not None and m.has_debit_credit_pair
    out = parse_row({"Date": "2024-02-01", "Description": "ATM", "Withdrawal": "50.00", "Deposit": "0"}, m)
    inn = parse_row({"Date": "2024-02-01", "Description": "ATM", "Withdrawal": "0", "Deposit": "50.00"}, m)
    assert out is not None and out.amount == Decimal("-50.00")
    assert inn is not None and inn.amount == Decimal("50.00")


# ---- Sign cascade: transaction type column -----------------------------------


@pytest.mark.parametrize(
    ("tx_type", "raw", "expected"),
    [
        ("Debit", "25", Decimal("-25")),
        ("DEBIT CARD", "-25", Decimal("-25")),
        ("debit", "25", Decimal("-25")),
        ("Credit", "-25", Decimal("25")),
        ("Direct Deposit", "-25", Decimal("25")),
        ("credit", "25", Decimal("25")),
        # Unrecognized labels keep the raw sign and skip the keyword heuristic.
        ("DR", "25", Decimal("25")),
        ("CR", "-25", Decimal("-25")),
        ("Sale", "25", Decimal("25")),
        ("", "25", Decimal("25")),
    ],
)
def test_transaction_type_sign_rules(tx_type, raw, expected):
    tx = parse_row(_row(Description="Grocery Store", Type=tx_type, Amount=raw), WITH_TYPE)
    assert tx is not None
    assert tx.amount == expected


def test_custom_debit_indicator():
    m = FieldMapping(
        date_field="Date",
        description_field="Description",
        amount_field="Amount",
        transaction_type_field="Type",
        debit_indicator="DR",
    )
    tx = parse_row(_row(Type="DR", Amount="25"), m)
    assert tx is not None and tx.amount == Decimal("-25")


# ---- Sign cascade: description keyword heuristic -----------------------------


@pytest.mark.parametrize(
    ("description", "raw", "expected"),
    [
        # Expense-by-default: positive amounts flip negative.
        ("Grocery Store", "42.10", Decimal("-42.10")),
        ("Netflix", "15.99", Decimal("-15.99")),
        ("Grocery Store", "-42.10", Decimal("-42.10")),
        ("Grocery Store", "0", Decimal("0")),
        # Income-looking descriptions keep their sign.
        ("Payment Received", "100", Decimal("100")),
        ("PAYROLL DEPOSIT", "2500", Decimal("2500")),
        ("Statement Credit", "10", Decimal("10")),
        ("Amazon refund", "19.99", Decimal("19.99")),
        ("Transfer From Savings", "300", Decimal("300")),
        ("Credit card payment", "-500", Decimal("-500")),
        # "transfer to" is not an income keyword.
        ("Transfer To Savings", "300", Decimal("-300")),
    ],
)
def test_description_heuristic_matrix(description, raw, expected):
    tx = parse_row(_row(Description=description, Amount=raw), SINGLE)
    assert tx is not None
    assert tx.amount == expected


def test_large_but_plausible_amount_is_accepted():
    assert parse_amount("-999,999,999,999,999.99") == Decimal("-999999999999999.99")


@pytest.mark.parametrize(
    ("mapping", "row"),
    [
        (WITH_TYPE, _row(Type="Debit", Amount="0")),
        (WITH_TYPE, _row(Type="Debit", Amount="0.00")),
        (SINGLE, _row(Amount="-0")),
    ],
)
def test_zero_amount_never_serializes_as_negative_zero(mapping, row):
    tx = parse_row(row, mapping)
    assert tx is not None
    assert not tx.amount.is_signed()
    assert str(tx.to_dict()["amount"]) == "0.0"
