"""Unit tests for fixed-point amount conversion."""

import pytest

from escrow_relayer.amount import (
    NATIVE_DECIMALS,
    PLACEHOLDER,
    format_amount,
    is_decimal_string,
    parse_amount,
)


class TestParseAmount:
    """Tests for parse_amount."""

    def test_parse_fractional_amount(self):
        assert parse_amount("1.23", 6) == 1_230_000

    def test_parse_pads_fraction(self):
        """100.5 is 100.500000 in six-decimal form."""
        assert parse_amount("100.5", 6) == 100_500_000

    def test_parse_whole_amount(self):
        assert parse_amount("42", 6) == 42_000_000

    def test_parse_truncates_extra_digits(self):
        """Digits beyond the precision are dropped, not rounded."""
        assert parse_amount("0.1234569", 6) == 123_456

    def test_parse_leading_point(self):
        assert parse_amount(".5", 6) == 500_000

    def test_parse_trailing_point(self):
        assert parse_amount("7.", 6) == 7_000_000

    def test_parse_strips_whitespace(self):
        assert parse_amount("  2.5 ", 6) == 2_500_000

    @pytest.mark.parametrize("value", ["", ".", "   ", None, 12, "abc", "1.2.3", "-1", "1e6"])
    def test_parse_invalid_is_zero(self, value):
        assert parse_amount(value, 6) == 0

    def test_parse_native_precision(self):
        assert parse_amount("0.001", NATIVE_DECIMALS) == 10**15


class TestFormatAmount:
    """Tests for format_amount."""

    def test_format_drops_trailing_zeros(self):
        assert format_amount(1_230_000, 6) == "1.23"

    def test_format_zero(self):
        assert format_amount(0, 6) == "0"

    def test_format_whole_value_has_no_point(self):
        assert format_amount(5_000_000, 6) == "5"

    def test_format_small_value_keeps_leading_zeros(self):
        assert format_amount(1, 6) == "0.000001"

    def test_format_negative(self):
        assert format_amount(-1_500_000, 6) == "-1.5"

    def test_format_integer_string(self):
        assert format_amount("2500000", 6) == "2.5"

    def test_format_drip_amount(self):
        assert format_amount(10**15, NATIVE_DECIMALS) == "0.001"

    def test_format_zero_decimals(self):
        assert format_amount(123, 0) == "123"

    @pytest.mark.parametrize("value", [None, "abc", 1.5, object()])
    def test_format_invalid_is_placeholder(self, value):
        assert format_amount(value, 6) == PLACEHOLDER

    @pytest.mark.parametrize("value", [0, 1, 999_999, 1_000_000, 123_456_789, 10**30])
    def test_parse_inverts_format(self, value):
        assert parse_amount(format_amount(value, 6), 6) == value

    def test_format_inverts_parse_for_canonical_strings(self):
        assert format_amount(parse_amount("1.23", 6), 6) == "1.23"


def test_is_decimal_string():
    assert is_decimal_string("1.5")
    assert is_decimal_string("10")
    assert not is_decimal_string(".")
    assert not is_decimal_string("1,5")
    assert not is_decimal_string("")
