"""Unit tests for amount normalisation and formatting."""

from __future__ import annotations

from decimal import Decimal

import pytest

from modules.core.money import (
    UNKNOWN_AMOUNT_LABEL,
    AmountParseError,
    Money,
    as_plain_number,
    first_amount,
    format_amount,
    normalize_amount,
)

pytestmark = pytest.mark.unit


class TestNormalizeAmount:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            (1500, Decimal("1500")),
            (1500.5, Decimal("1500.5")),
            (Decimal("99.99"), Decimal("99.99")),
            ("1500", Decimal("1500")),
            ("₦1,500", Decimal("1500")),
            ("NGN 2,000.50", Decimal("2000.50")),
            (" 45 000 ", Decimal("45000")),
            ("-250", Decimal("-250")),
            ("12.5abc", Decimal("12.5")),
            (0, Decimal("0")),
        ],
    )
    def test_reads_numbers_and_currency_strings(self, raw, expected):
        assert normalize_amount(raw) == expected

    @pytest.mark.parametrize(
        "raw",
        [None, "", "abc", "₦", "--", ".", float("nan"), float("inf"), True, [], {}],
    )
    def test_unreadable_values_are_absent(self, raw):
        assert normalize_amount(raw) is None

    def test_never_guesses_zero_for_garbage(self):
        assert normalize_amount("call for price") is None

    def test_is_idempotent(self):
        for raw in (1500, "₦1,500", "NGN 2,000.50", 3.25):
            once = normalize_amount(raw)
            assert normalize_amount(once) == once

    def test_first_amount_skips_unreadable_candidates(self):
        assert first_amount(None, "n/a", "₦7,000", 10) == Decimal("7000")
        assert first_amount(None, "") is None


class TestFormatAmount:
    def test_whole_amount_groups_thousands(self):
        assert format_amount(Decimal("1500")) == "NGN 1,500"
        assert format_amount(Decimal("1234567")) == "NGN 1,234,567"

    def test_fractional_amount_keeps_two_places(self):
        assert format_amount(Decimal("2000.5")) == "NGN 2,000.50"

    def test_missing_amount_renders_sentinel(self):
        assert format_amount(None) == UNKNOWN_AMOUNT_LABEL

    def test_zero_is_a_real_amount(self):
        assert format_amount(Decimal("0")) == "NGN 0"


class TestMoney:
    def test_parse_accepts_currency_string(self):
        assert Money.parse("₦1,500").amount == Decimal("1500")

    def test_parse_rejects_unreadable_value(self):
        with pytest.raises(AmountParseError):
            Money.parse("free")

    def test_arithmetic_and_format(self):
        total = Money.parse(5000) * 2 + Money.parse("₦4,000")
        assert total.amount == Decimal("14000")
        assert str(total) == "NGN 14,000"


def test_as_plain_number_keeps_whole_amounts_integral():
    assert as_plain_number(Decimal("9000")) == 9000
    assert isinstance(as_plain_number(Decimal("9000")), int)
    assert as_plain_number(Decimal("12.5")) == 12.5
