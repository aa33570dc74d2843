"""
Test suite for money helpers
"""

import pytest
from decimal import Decimal

from atm_core.money import (
    decimal_from_string, to_amount, positive_amount, exact_add, exact_sub
)
from atm_core.errors import InvalidAmount


class TestAmountParsing:
    """Test conversion of caller-supplied amounts"""

    @pytest.mark.parametrize("value,expected", [
        ("500", Decimal('500')),
        ("1,500.25", Decimal('1500.25')),
        ("12,5", Decimal('12.5')),
        ("250 TL", Decimal('250')),
        ("  0.10 ", Decimal('0.10')),
        ("₺75", Decimal('75')),
        ("-1,250.50 TL", Decimal('-1250.50')),
    ])
    def test_decimal_from_string(self, value, expected):
        assert decimal_from_string(value) == expected

    @pytest.mark.parametrize("value", [
        "", "abc", "1.2.3", "NaN", "1e3", "12abc34", "1.000,50", "1,5000", "TL", "5 USD"
    ])
    def test_decimal_from_string_rejects_garbage(self, value):
        with pytest.raises(InvalidAmount):
            decimal_from_string(value)

    def test_to_amount_types(self):
        assert to_amount(Decimal('1.5')) == Decimal('1.5')
        assert to_amount(7) == Decimal('7')
        assert to_amount("-3") == Decimal('-3')

    @pytest.mark.parametrize("value", [True, None, 1.5, Decimal('Infinity'), Decimal('NaN')])
    def test_to_amount_rejects(self, value):
        with pytest.raises(InvalidAmount):
            to_amount(value)

    @pytest.mark.parametrize("value", [0, "0.00", Decimal('-0.01'), "-100"])
    def test_positive_amount_rejects_non_positive(self, value):
        with pytest.raises(InvalidAmount, match="positive"):
            positive_amount(value)


class TestExactArithmetic:
    """Test balance arithmetic never rounds"""

    def test_exact_sum_and_difference(self):
        assert exact_add(Decimal('2000'), Decimal('0.01')) == Decimal('2000.01')
        assert exact_sub(Decimal('2000.01'), Decimal('0.01')) == Decimal('2000.00')

    def test_rounding_is_refused(self):
        with pytest.raises(InvalidAmount):
            exact_add(Decimal('2000'), Decimal('1E-26'))
        with pytest.raises(InvalidAmount):
            exact_sub(Decimal('1E+30'), Decimal('0.5'))
