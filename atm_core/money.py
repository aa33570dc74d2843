"""
Money Helpers Module

Converts caller-supplied amounts into exact Decimal values. NEVER uses float
arithmetic for balances or cash stock.
"""

from decimal import Decimal, Inexact, InvalidOperation, getcontext, localcontext
from typing import Union
import re

from .errors import InvalidAmount

# Set global decimal context for financial precision
getcontext().prec = 28

ZERO = Decimal('0')

AmountLike = Union[Decimal, int, str]

CURRENCY_MARKS = ('TL', 'TRY', '₺')

# Plain digits with an optional fraction: "1500", "1500.25", ".5"
_PLAIN = re.compile(r'^(\d+(\.\d*)?|\.\d+)$')
# Comma thousands separators with an optional dot fraction: "1,500.25"
_GROUPED = re.compile(r'^\d{1,3}(,\d{3})+(\.\d+)?$')
# Comma as decimal separator with at most two fraction digits: "12,5"
_COMMA_FRACTION = re.compile(r'^\d+,\d{1,2}$')


def decimal_from_string(value: str) -> Decimal:
    """
    Safely convert string to Decimal, handling common formats

    Accepts an optional sign, an optional currency mark (TL, TRY or ₺) and
    either plain digits, comma-grouped thousands or a comma decimal separator.
    Anything else, exponents included, is refused rather than reinterpreted.

    Args:
        value: String representation of number, e.g. "1,500.00" or "250 TL"

    Returns:
        Decimal value

    Raises:
        InvalidAmount: If string cannot be converted to a Decimal
    """
    if not value or not isinstance(value, str):
        raise InvalidAmount("Invalid number")

    clean_value = value.strip()
    for mark in CURRENCY_MARKS:
        if clean_value.upper().endswith(mark):
            clean_value = clean_value[:-len(mark)].rstrip()
            break
        if clean_value.startswith(mark):
            clean_value = clean_value[len(mark):].lstrip()
            break

    sign = ''
    if clean_value[:1] in ('+', '-'):
        sign, clean_value = clean_value[0], clean_value[1:]

    if _PLAIN.match(clean_value):
        pass
    elif _GROUPED.match(clean_value):
        clean_value = clean_value.replace(',', '')
    elif _COMMA_FRACTION.match(clean_value):
        clean_value = clean_value.replace(',', '.')
    else:
        raise InvalidAmount(f"Invalid number: '{value}'")

    try:
        return Decimal(sign + clean_value)
    except InvalidOperation:
        raise InvalidAmount(f"Invalid number: '{value}'")


def to_amount(value: AmountLike) -> Decimal:
    """
    Convert a caller-supplied amount to Decimal without validating its sign

    Raises:
        InvalidAmount: If the value is not a finite number
    """
    if isinstance(value, bool):
        raise InvalidAmount("Invalid number")
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, int):
        amount = Decimal(value)
    elif isinstance(value, str):
        amount = decimal_from_string(value)
    else:
        raise InvalidAmount(f"Unsupported amount type: {type(value).__name__}")

    if not amount.is_finite():
        raise InvalidAmount("Amount must be a finite number")
    return amount


def positive_amount(value: AmountLike) -> Decimal:
    """
    Convert and require a strictly positive amount

    Raises:
        InvalidAmount: If the value is malformed or not greater than zero
    """
    amount = to_amount(value)
    if amount <= ZERO:
        raise InvalidAmount("Amount must be positive")
    return amount


def _exact(operation, left: Decimal, right: Decimal) -> Decimal:
    with localcontext() as ctx:
        ctx.traps[Inexact] = True
        try:
            return operation(left, right)
        except Inexact:
            raise InvalidAmount(
                f"Amount {right} cannot be applied to {left} without rounding"
            )


def exact_add(left: Decimal, right: Decimal) -> Decimal:
    """
    Add two amounts, refusing any result the decimal context would round

    Raises:
        InvalidAmount: If the exact sum needs more than the context precision
    """
    return _exact(lambda a, b: a + b, left, right)


def exact_sub(left: Decimal, right: Decimal) -> Decimal:
    """
    Subtract two amounts, refusing any result the decimal context would round

    Raises:
        InvalidAmount: If the exact difference needs more than the context precision
    """
    return _exact(lambda a, b: a - b, left, right)
