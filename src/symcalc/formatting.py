"""Number formatting used when rendering expressions.

Rendering an expression needs a policy for turning the real numbers it holds
into text. Any callable taking a ``float`` and returning a ``str`` can be used
(even the builtin ``str``). :class:`DecimalFormatter` is the default policy.
"""
from __future__ import annotations

import math
from decimal import Context
from decimal import Decimal
from decimal import ROUND_HALF_EVEN
from typing import Callable


__all__ = [
    "NumberFormatter",
    "DecimalFormatter",
    "default_formatter",
]


NumberFormatter = Callable[[float], str]


class DecimalFormatter:
    """Format numbers in plain decimal notation.

    The defaults give at most three fraction digits, rounding half to even,
    with trailing zeros dropped and thousands grouped:

    >>> from symcalc.formatting import DecimalFormatter
    >>> fmt = DecimalFormatter()
    >>> fmt(2.0)
    '2'
    >>> fmt(0.005)
    '0.005'
    >>> fmt(-0.5)
    '-0.5'
    >>> fmt(1234.5678)
    '1,234.568'

    The separators and the number of digits can be changed:

    >>> fmt = DecimalFormatter(max_fraction_digits=2, decimal_point=',',
    ...                        group_separator=' ')
    >>> fmt(1234.5678)
    '1 234,57'
    >>> DecimalFormatter(min_fraction_digits=2)(3.0)
    '3.00'

    Exponent notation is never used and non-finite values are spelled out:

    >>> fmt = DecimalFormatter(grouping=False)
    >>> fmt(1e20)
    '100000000000000000000'
    >>> fmt(float('nan')), fmt(float('inf')), fmt(float('-inf'))
    ('NaN', '∞', '-∞')
    """

    max_fraction_digits: int
    min_fraction_digits: int
    grouping: bool
    decimal_point: str
    group_separator: str

    def __init__(
        self,
        max_fraction_digits: int = 3,
        min_fraction_digits: int = 0,
        grouping: bool = True,
        decimal_point: str = ".",
        group_separator: str = ",",
    ):
        """Create a formatter with the given digits and separators."""
        if max_fraction_digits < 0 or min_fraction_digits < 0:
            raise ValueError("Number of fraction digits cannot be negative.")
        if min_fraction_digits > max_fraction_digits:
            raise ValueError("min_fraction_digits exceeds max_fraction_digits.")
        self.max_fraction_digits = max_fraction_digits
        self.min_fraction_digits = min_fraction_digits
        self.grouping = grouping
        self.decimal_point = decimal_point
        self.group_separator = group_separator

    def __repr__(self) -> str:
        """Show the settings of the formatter."""
        return (
            f"DecimalFormatter(max_fraction_digits={self.max_fraction_digits}, "
            f"min_fraction_digits={self.min_fraction_digits}, "
            f"grouping={self.grouping}, "
            f"decimal_point={self.decimal_point!r}, "
            f"group_separator={self.group_separator!r})"
        )

    def __call__(self, value: float) -> str:
        """Format ``value`` as text."""
        value = float(value)

        if math.isnan(value):
            return "NaN"
        elif math.isinf(value):
            return "∞" if value > 0 else "-∞"

        exact = Decimal(value)
        quantum = Decimal(1).scaleb(-self.max_fraction_digits)
        # Enough precision to hold every integer digit plus the fraction.
        prec = max(exact.adjusted(), 0) + self.max_fraction_digits + 2
        rounded = exact.quantize(
            quantum, context=Context(prec=prec, rounding=ROUND_HALF_EVEN)
        )

        sign = "-" if rounded.is_signed() else ""
        integer, _, fraction = format(rounded.copy_abs(), "f").partition(".")

        fraction = fraction.rstrip("0")
        fraction = fraction.ljust(self.min_fraction_digits, "0")

        if self.grouping:
            integer = self._group(integer)

        if fraction:
            return sign + integer + self.decimal_point + fraction
        else:
            return sign + integer

    def _group(self, digits: str) -> str:
        groups = []
        while len(digits) > 3:
            groups.append(digits[-3:])
            digits = digits[:-3]
        groups.append(digits)
        return self.group_separator.join(reversed(groups))


default_formatter = DecimalFormatter()
