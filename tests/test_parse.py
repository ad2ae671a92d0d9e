from __future__ import annotations

import datetime
import math

import pytest

from portal_sync.errors import BalanceParseFailure
from portal_sync.parse import (
    clean_label,
    format_search_date,
    normalize_date,
    parse_amount,
    parse_balance,
    years_before,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("1 234,56 €", 1234.56),
        ("-123,45", -123.45),
        ("+2 100,00", 2100.0),
        ("EUR 0,99", 0.99),
        ("42", 42.0),
    ],
)
def test_parse_amount_strips_everything_but_digits_and_signs(raw, expected):
    assert parse_amount(raw) == pytest.approx(expected)


@pytest.mark.parametrize("raw", ["", "   ", "€", "--", "n/a"])
def test_parse_amount_without_numbers_is_nan(raw):
    assert math.isnan(parse_amount(raw))


def test_parse_balance_never_returns_nan():
    assert parse_balance("1 234,56 €") == pytest.approx(1234.56)
    with pytest.raises(BalanceParseFailure):
        parse_balance("Solde indisponible")


def test_normalize_date_takes_the_day_literally():
    assert normalize_date("31/12/2019") == datetime.date(2019, 12, 31)
    assert normalize_date(" 01/02/2020 ") == datetime.date(2020, 2, 1)


@pytest.mark.parametrize("raw", ["", "2019-12-31", "31/13/2019", "3/1/2020"])
def test_normalize_date_rejects_other_formats(raw):
    with pytest.raises(ValueError):
        normalize_date(raw)


def test_clean_label_removes_newlines_and_tabs():
    assert clean_label("\n\t\tCOTISATION CARTE\n") == "COTISATION CARTE"
    assert clean_label("VIR\tSEPA") == "VIRSEPA"


def test_search_window_dates():
    assert years_before(datetime.date(2026, 10, 19), 10) == datetime.date(2016, 10, 19)
    assert years_before(datetime.date(2024, 2, 29), 10) == datetime.date(2014, 2, 28)
    assert format_search_date(datetime.date(2016, 1, 5)) == "5/01/2016"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("12,34 -", 12.34),
        ("1 500,00 € +", 1500.0),
        ("-8,00-", -8.0),
    ],
)
def test_parse_amount_ignores_trailing_signs(raw, expected):
    assert parse_amount(raw) == pytest.approx(expected)
    assert parse_balance(raw) == pytest.approx(expected)
