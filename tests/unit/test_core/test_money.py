#!/usr/bin/env python3
"""Tests for Money primitive type."""

from decimal import Decimal

import pytest

from yieldrecon.core.money import Money


class TestMoneyConstruction:
    """Test Money construction methods."""

    @pytest.mark.currency
    @pytest.mark.parametrize(
        "constructor,input_value,expected_amount",
        [
            (Money.from_base_units, "45000000", Decimal("45")),
            (Money.from_base_units, 750000, Decimal("0.75")),
            (Money.from_dollars, "$1,234.50", Decimal("1234.50")),
            (Money.from_dollars, Decimal("12.34"), Decimal("12.34")),
            (Money.from_dollars, 0.1, Decimal("0.1")),
        ],
        ids=["base_units_str", "base_units_int", "dollar_str", "decimal", "float"],
    )
    def test_money_construction(self, constructor, input_value, expected_amount):
        """Test creating Money from various sources."""
        m = constructor(input_value)
        assert m.to_decimal() == expected_amount

    @pytest.mark.currency
    def test_base_units_with_other_decimals(self):
        """Test base unit conversion for an 18-decimal token."""
        m = Money.from_base_units("1500000000000000000", decimals=18)
        assert m.to_decimal() == Decimal("1.5")

    @pytest.mark.currency
    @pytest.mark.parametrize("bad_value", [float("nan"), float("inf"), None, "not a number"])
    def test_invalid_dollars_become_zero(self, bad_value):
        """Not-a-number input is treated as zero."""
        assert Money.from_dollars(bad_value).is_zero()

    @pytest.mark.currency
    def test_malformed_base_units_raise(self):
        """Base units must be a non-negative integer."""
        with pytest.raises(ValueError):
            Money.from_base_units("12.5")
        with pytest.raises(ValueError):
            Money.from_base_units(-1)


class TestMoneyArithmetic:
    """Test Money arithmetic operations."""

    @pytest.mark.currency
    def test_add_and_subtract(self):
        """Test addition and subtraction are exact."""
        a = Money.from_dollars("0.1")
        b = Money.from_dollars("0.2")

        assert (a + b).to_decimal() == Decimal("0.3")
        assert (b - a).to_decimal() == Decimal("0.1")

    @pytest.mark.currency
    def test_sum_of_money(self):
        """sum() works over a list of Money."""
        total = sum([Money.from_dollars(10), Money.from_dollars("5.25")], Money.zero())
        assert total == Money.from_dollars("15.25")
        assert sum([Money.from_dollars(3)]) == Money.from_dollars(3)

    @pytest.mark.currency
    def test_division(self):
        """Money / scalar is Money, Money / Money is a ratio."""
        fee = Money.from_dollars("0.75")

        assert fee / Decimal("0.15") == Money.from_dollars(5)
        assert Money.from_dollars(50) / Money.from_dollars(200) == Decimal("0.25")

    @pytest.mark.currency
    def test_multiply_and_negate(self):
        """Test scalar multiplication and negation."""
        m = Money.from_dollars(10)

        assert m * Decimal("0.5") == Money.from_dollars(5)
        assert 2 * m == Money.from_dollars(20)
        assert -m == Money.from_dollars(-10)
        assert (-m).abs() == m

    @pytest.mark.currency
    def test_comparison(self):
        """Test Money ordering."""
        small = Money.from_dollars("0.50")
        large = Money.from_dollars(1)

        assert small < large
        assert large > small
        assert small <= Money.from_dollars("0.5")
        assert large >= Money.from_dollars("1.000000")


class TestMoneyFormatting:
    """Test Money display."""

    @pytest.mark.currency
    @pytest.mark.parametrize(
        "amount,expected",
        [
            ("45", "$45.00"),
            ("0.745", "$0.75"),
            ("-12.34", "$-12.34"),
            ("0", "$0.00"),
        ],
        ids=["whole", "half_up", "negative", "zero"],
    )
    def test_str(self, amount, expected):
        """Test dollar string formatting rounds half up to cents."""
        assert str(Money.from_dollars(amount)) == expected

    @pytest.mark.currency
    def test_base_unit_round_trip(self):
        """Test conversion back to base units."""
        m = Money.from_base_units("44250000")
        assert m.to_base_units() == 44250000
        assert m.rounded() == Money.from_dollars("44.25")

    @pytest.mark.currency
    def test_frozen_dataclass(self):
        """Test Money is immutable."""
        m = Money.from_dollars(1)
        with pytest.raises(AttributeError):
            m.amount = Decimal(2)  # type: ignore
