"""Evaluate, differentiate and render expressions in one variable."""
from __future__ import annotations

import symcalc.functions  # noqa

from .expr import (
    Abs,
    Constant,
    Difference,
    Expr,
    Linear,
    Power,
    Product,
    Sqrt,
    Sum,
    cos,
    expressify,
    negone,
    one,
    sin,
    tan,
    x,
    zero,
)
from .formatting import DecimalFormatter

__all__ = [
    "expressify",
    "Expr",
    "Constant",
    "Linear",
    "Sum",
    "Difference",
    "Product",
    "Power",
    "Sqrt",
    "Abs",
    "sin",
    "cos",
    "tan",
    "x",
    "zero",
    "one",
    "negone",
    "DecimalFormatter",
]
