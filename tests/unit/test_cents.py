"""Tests for pm_common.cents — integer arithmetic utilities."""

import pytest

from src.pm_common.cents import apply_bps, cents_to_display, parse_amount_to_cents


class TestParseAmountToCents:
    def test_whole_number(self) -> None:
        assert parse_amount_to_cents("50") == 5000

    def test_one_fraction_digit(self) -> None:
        assert parse_amount_to_cents("12.5") == 1250

    def test_two_fraction_digits(self) -> None:
        assert parse_amount_to_cents("0.05") == 5

    def test_extra_fraction_digits_truncated(self) -> None:
        assert parse_amount_to_cents("1.239") == 123

    def test_trailing_dot(self) -> None:
        assert parse_amount_to_cents("7.") == 700

    def test_surrounding_whitespace(self) -> None:
        assert parse_amount_to_cents("  20 ") == 2000

    @pytest.mark.parametrize("text", ["", "abc", "-5", "1,000", "1.2.3"])
    def test_rejects_non_amounts(self, text: str) -> None:
        with pytest.raises(ValueError):
            parse_amount_to_cents(text)


class TestCentsToDisplay:
    def test_basic(self) -> None:
        assert cents_to_display(6500) == "Rs 65.00"

    def test_zero(self) -> None:
        assert cents_to_display(0) == "Rs 0.00"

    def test_one_cent(self) -> None:
        assert cents_to_display(1) == "Rs 0.01"

    def test_large(self) -> None:
        assert cents_to_display(650000) == "Rs 6,500.00"

    def test_negative(self) -> None:
        assert cents_to_display(-1200) == "-Rs 12.00"

    def test_custom_symbol(self) -> None:
        assert cents_to_display(150000, "$") == "$ 1,500.00"


class TestApplyBps:
    def test_basic(self) -> None:
        # 5% of Rs 100
        assert apply_bps(10000, 500) == 500

    def test_floors(self) -> None:
        # 3% of 99 cents = 2.97
        assert apply_bps(99, 300) == 2

    def test_full_rate(self) -> None:
        assert apply_bps(1234, 10000) == 1234

    def test_zero_rate(self) -> None:
        assert apply_bps(10000, 0) == 0

    def test_negative_rate_is_zero(self) -> None:
        assert apply_bps(10000, -200) == 0

    def test_zero_amount(self) -> None:
        assert apply_bps(0, 500) == 0
