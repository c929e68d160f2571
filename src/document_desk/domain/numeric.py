"""Numeric coercion and rounding shared by calculation and validation.

Quantities and prices are kept as the user entered them. Every consumer that
needs a number goes through this module so the parsing and rounding policy
is defined once.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Context, Decimal, InvalidOperation, localcontext
from typing import Union

from document_desk.exceptions import CalculationInputError

EnteredNumber = Union[Decimal, int, float, str, None]

ZERO = Decimal("0")
CENT = Decimal("0.01")

# Entries above this count as zero in arithmetic and are flagged by validation.
MAX_ENTRY = Decimal("1e18")

# Wide enough to hold any product of two capped entries at cent precision.
CALCULATION_CONTEXT = Context(prec=60, rounding=ROUND_HALF_UP)


def calculation_context():
    """Decimal context for line and document arithmetic."""
    return localcontext(CALCULATION_CONTEXT)


def round2(value: Decimal) -> Decimal:
    """Round half-up to two decimal places."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP, context=CALCULATION_CONTEXT)


def parse_decimal(value: EnteredNumber) -> Decimal:
    """Parse an entered value into a finite Decimal.

    Raises:
        CalculationInputError: if the value is blank, non-numeric or not finite.
    """
    if value is None:
        raise CalculationInputError(value, "blank")
    if isinstance(value, bool):
        raise CalculationInputError(value, "not a number")
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, (int, float)):
        number = Decimal(str(value))
    else:
        text = str(value).strip().replace(",", "")
        if not text:
            raise CalculationInputError(value, "blank")
        try:
            number = Decimal(text)
        except InvalidOperation:
            raise CalculationInputError(value, "not a number") from None
    if not number.is_finite():
        raise CalculationInputError(value, "not finite")
    return number


def try_parse_decimal(value: EnteredNumber) -> Decimal | None:
    try:
        return parse_decimal(value)
    except CalculationInputError:
        return None


def calculation_value(value: EnteredNumber) -> Decimal:
    """Value used for arithmetic.

    Invalid, negative or out-of-range entries count as zero.
    """
    number = try_parse_decimal(value)
    if number is None or number < ZERO or number > MAX_ENTRY:
        return ZERO
    return number


def format_amount(value: Decimal) -> str:
    return f"{round2(value):.2f}"
