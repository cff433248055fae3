"""
Unit Tests for report value formatting
Tests for: percentages, en-IN currency, dates
"""
import datetime
import decimal

import pytest

from app.reports.formatting import display, format_date, format_inr, format_percentage, group_indian
from app.utils import json_default, to_bind_params, to_jsonable


class TestPercentage:
    def test_one_decimal(self):
        assert format_percentage(2, 3) == "66.7%"

    def test_full_score(self):
        assert format_percentage(decimal.Decimal("40"), 40) == "100.0%"

    @pytest.mark.parametrize("score, max_score", [(5, 0), (5, None), (None, 10)])
    def test_not_available(self, score, max_score):
        assert format_percentage(score, max_score) == "N/A"


class TestIndianCurrency:
    @pytest.mark.parametrize(
        "digits, expected",
        [("0", "0"), ("999", "999"), ("1000", "1,000"), ("100000", "1,00,000"), ("1234567", "12,34,567")],
    )
    def test_grouping(self, digits, expected):
        assert group_indian(digits) == expected

    def test_rupee_symbol_and_paise(self):
        assert format_inr(1234567.5) == "₹12,34,567.50"

    def test_pdf_symbol(self):
        assert format_inr("250000", symbol="Rs. ") == "Rs. 2,50,000.00"

    def test_negative(self):
        assert format_inr(-1500) == "-₹1,500.00"

    def test_missing_and_unparseable(self):
        assert format_inr(None) == "N/A"
        assert format_inr("") == "N/A"
        assert format_inr("sanctioned") == "sanctioned"


class TestDates:
    def test_date_and_iso_string(self):
        assert format_date(datetime.date(2024, 3, 8)) == "08/03/2024"
        assert format_date("2024-03-08") == "08/03/2024"
        assert format_date(datetime.datetime(2024, 3, 8, 17, 30)) == "08/03/2024"

    def test_defaults(self):
        assert format_date(None) == "N/A"
        assert format_date("not a date", "Present") == "Present"

    def test_display(self):
        assert display("  ") == "N/A"
        assert display(0) == "0"
        assert display(None, "") == ""


class TestJsonDefault:
    def test_driver_values(self):
        row = {
            "joined": datetime.date(2020, 6, 1),
            "amount": decimal.Decimal("12.50"),
            "count": decimal.Decimal("3"),
            "duration": datetime.timedelta(minutes=2),
        }

        assert to_jsonable(row) == {"joined": "2020-06-01", "amount": "12.50", "count": 3, "duration": 120.0}

    def test_unknown_type(self):
        with pytest.raises(TypeError):
            json_default(object())

    def test_bytes_are_decoded_or_encoded(self):
        assert json_default(b"abc") == "abc"
        assert json_default(b"\xff\xfe") == "//4="


class TestBindParams:
    def test_dates_and_decimals_become_strings(self):
        params = to_bind_params(
            {"start_date": datetime.date(2024, 1, 5), "funding_amount": decimal.Decimal("2500.00"), "title": "Grid", "end_date": None}
        )

        assert params == {"start_date": "2024-01-05", "funding_amount": "2500.00", "title": "Grid", "end_date": None}
