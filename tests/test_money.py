"""
Tests for fixed-point amount parsing and formatting

Run with: pytest tests/test_money.py -v
"""

from decimal import Decimal

import pytest

from winzzers.core.errors import InvalidAmount
from winzzers.core.money import (
    check_units,
    format_amount,
    parse_amount,
    parse_amount_or_zero,
)


class TestParseAmount:
    """Decimal text → integer units."""

    @pytest.mark.parametrize("text, expected", [
        ("0", 0),
        ("1", 1_000_000),
        ("100", 100_000_000),
        ("1.85", 1_850_000),
        ("12.345678", 12_345_678),
        ("0.000001", 1),
        ("12.", 12_000_000),
        (".5", 500_000),
        ("  42.5 ", 42_500_000),
        ("007.10", 7_100_000),
    ])
    def test_valid(self, text, expected):
        assert parse_amount(text) == expected

    def test_empty_and_missing_are_zero(self):
        assert parse_amount("") == 0
        assert parse_amount("   ") == 0
        assert parse_amount(None) == 0

    def test_seven_fractional_digits_rejected(self):
        with pytest.raises(InvalidAmount):
            parse_amount("12.3456789")

    @pytest.mark.parametrize("text", [
        "1.2.3",
        "-1",
        "+1",
        "1e6",
        "1,000",
        "abc",
        "12.34a",
        ".",
        "١٢",  # Arabic-Indic digits
        "1 000",
    ])
    def test_malformed_rejected(self, text):
        with pytest.raises(InvalidAmount):
            parse_amount(text)

    def test_non_text_rejected(self):
        with pytest.raises(InvalidAmount):
            parse_amount(12)

    def test_invalid_amount_is_value_error(self):
        with pytest.raises(ValueError):
            parse_amount("1.1234567")


class TestFormatAmount:
    """Integer units → decimal text."""

    def test_zero(self):
        assert format_amount(0) == "0.000000"

    def test_always_six_digits(self):
        assert format_amount(185_000_000) == "185.000000"
        assert format_amount(1) == "0.000001"
        assert format_amount(12_345_678) == "12.345678"

    def test_strip_zeros(self):
        assert format_amount(185_000_000, strip_zeros=True) == "185"
        assert format_amount(1_850_000, strip_zeros=True) == "1.85"
        assert format_amount(0, strip_zeros=True) == "0"
        assert format_amount(100_000_000, strip_zeros=True) == "100"

    def test_negative_rejected(self):
        with pytest.raises(InvalidAmount):
            format_amount(-1)

    @pytest.mark.parametrize("value", [1.5, True, "100", None])
    def test_non_int_rejected(self, value):
        with pytest.raises(InvalidAmount):
            format_amount(value)


class TestRoundTrip:
    """format(parse(s)) is numerically equal to s."""

    @pytest.mark.parametrize("text", [
        "0", "0.1", "1.85", "100", "999999.999999", "0.000001", "12.5", "3.141592",
        "123456789012.000001",
    ])
    def test_numeric_round_trip(self, text):
        assert Decimal(format_amount(parse_amount(text))) == Decimal(text)

    @pytest.mark.parametrize("units", [0, 1, 999_999, 1_000_000, 185_000_000, 10 ** 30 + 7])
    def test_units_round_trip_both_forms(self, units):
        assert parse_amount(format_amount(units)) == units
        assert parse_amount(format_amount(units, strip_zeros=True)) == units


class TestAdvisoryParse:

    def test_malformed_falls_back_to_zero(self):
        assert parse_amount_or_zero("1.2.3") == 0
        assert parse_amount_or_zero("12.3456789") == 0

    def test_valid_passes_through(self):
        assert parse_amount_or_zero("25") == 25_000_000


def test_check_units_accepts_zero():
    check_units(0, "stake")


# ---------------------------------------------------------------------------
# uint256 bounds
# ---------------------------------------------------------------------------

MAX_UINT256 = 2 ** 256 - 1


class TestUint256Bounds:

    def test_thousands_of_digits_rejected(self):
        with pytest.raises(InvalidAmount):
            parse_amount("9" * 5000)

    def test_whole_part_too_long_rejected(self):
        with pytest.raises(InvalidAmount):
            parse_amount("1" + "0" * 78)

    def test_largest_whole_amount_accepted(self):
        whole = MAX_UINT256 // 1_000_000
        assert parse_amount(str(whole)) == whole * 1_000_000

    def test_scaled_value_above_max_rejected(self):
        # 78 digits fit the length check but not the range once scaled
        with pytest.raises(InvalidAmount):
            parse_amount(str(MAX_UINT256))

    def test_advisory_parse_falls_back_to_zero(self):
        assert parse_amount_or_zero("9" * 5000) == 0

    def test_format_rejects_huge_int(self):
        with pytest.raises(InvalidAmount):
            format_amount(10 ** 4400)

    def test_check_units_bounds(self):
        check_units(MAX_UINT256, "stake")
        with pytest.raises(InvalidAmount):
            check_units(MAX_UINT256 + 1, "stake")
