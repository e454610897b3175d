"""Evaluation and rendering rules for every kind of expression."""
from __future__ import annotations

import operator
from functools import reduce
from typing import Any
from typing import Sequence

import numpy as np

from symcalc.exceptions import ArityError
from symcalc.expr import (
    Abs,
    ConstantType,
    Difference,
    LinearType,
    Power,
    Product,
    Sqrt,
    Sum,
    cos,
    eval_f64_tree,
    eval_render,
    sin,
    tan,
)


# ------------------------------------------------------------------------- #
#                                                                           #
#     eval_f64: 64 bit floating point evaluation.                           #
#                                                                           #
# ------------------------------------------------------------------------- #

#
# The context for these rules is the point x as a NumPy array (0-d for a
# scalar). NumPy ufuncs follow IEEE 754 and return nan or inf where the math
# module would raise.
#


def f64_sum(args: Sequence[Any]) -> Any:
    return reduce(operator.add, args, 0.0)


def f64_difference(args: Sequence[Any]) -> Any:
    if not args:
        raise ArityError("Difference needs at least one argument")
    return reduce(operator.sub, args)


def f64_product(args: Sequence[Any]) -> Any:
    return reduce(operator.mul, args, 1.0)


def f64_cos(args: Sequence[Any]) -> Any:
    if not args:
        return 0.0
    return np.cos(args[0])


eval_f64_tree.add_atom(ConstantType, lambda value, x: value)
eval_f64_tree.add_atom(LinearType, lambda coeff, x: x * coeff)
eval_f64_tree.add_opn(Sum.rep, f64_sum)
eval_f64_tree.add_opn(Difference.rep, f64_difference)
eval_f64_tree.add_opn(Product.rep, f64_product)
eval_f64_tree.add_op2(Power.rep, np.power)
eval_f64_tree.add_op1(Sqrt.rep, np.sqrt)
eval_f64_tree.add_op1(Abs.rep, np.abs)
eval_f64_tree.add_op1(sin.rep, np.sin)
eval_f64_tree.add_opn(cos.rep, f64_cos)
eval_f64_tree.add_op1(tan.rep, np.tan)

# ------------------------------------------------------------------------- #
#                                                                           #
#     eval_render: formula as a string                                      #
#                                                                           #
# ------------------------------------------------------------------------- #

#
# The context for these rules is the number formatter. Exponents are stored
# as Constant leaves so they go through the formatter too.
#


def render_linear(coeff: float, fmt: Any) -> str:
    if coeff == 1:
        return "x"
    return f"{fmt(coeff)}*x"


def render_sum(args: Sequence[str]) -> str:
    # A term rendered with a leading minus shows as "+-" which is collapsed to
    # "-". This is a textual replacement, the sign of the term is not checked.
    return f'({"+".join(args)})'.replace("+-", "-")


def render_cos(args: Sequence[str]) -> str:
    return f'cos({"".join(args[:1])})'


eval_render.add_atom(ConstantType, lambda value, fmt: fmt(value))
eval_render.add_atom(LinearType, render_linear)
eval_render.add_opn(Sum.rep, render_sum)
eval_render.add_opn(Difference.rep, lambda args: f'({"-".join(args)})')
eval_render.add_opn(Product.rep, lambda args: f'({"*".join(args)})')
eval_render.add_op2(Power.rep, lambda b, e: f"({b}^{e})")
eval_render.add_op1(Sqrt.rep, lambda b: f"sqrt({b})")
eval_render.add_op1(Abs.rep, lambda b: f"|{b}|")
eval_render.add_op1(sin.rep, lambda b: f"sin({b})")
eval_render.add_opn(cos.rep, render_cos)
eval_render.add_op1(tan.rep, lambda b: f"tan({b})")
