"""Conversions to and from SymPy expressions.

These are defined in their own module so that SymPy will not be imported if
it is not needed.
"""
from __future__ import annotations

from typing import Any

import sympy

from symcalc.core.evaluate import Evaluator
from symcalc.expr import (
    Abs,
    Constant,
    ConstantType,
    Difference,
    Expr,
    LinearType,
    Power,
    Product,
    Sqrt,
    Sum,
    cos,
    sin,
    tan,
    x,
)


def sympy_number(value: float) -> sympy.Expr:
    """Integers stay exact so that e.g. ``x**2`` does not become ``x**2.0``."""
    if value.is_integer():
        return sympy.Integer(int(value))
    return sympy.Float(value)


def sympy_linear(coeff: float, symbol: sympy.Symbol) -> sympy.Expr:
    if coeff == 1:
        return symbol
    return sympy_number(coeff) * symbol


def sympy_difference(args: list[sympy.Expr]) -> sympy.Expr:
    first, *rest = args
    return sympy.Add(first, *[-arg for arg in rest])


def sympy_cos(args: list[sympy.Expr]) -> sympy.Expr:
    if not args:
        raise NotImplementedError("Cannot convert cos without an argument")
    [arg] = args
    return sympy.cos(arg)


eval_to_sympy = Evaluator[Any]()
eval_to_sympy.add_atom(ConstantType, lambda value, symbol: sympy_number(value))
eval_to_sympy.add_atom(LinearType, sympy_linear)
eval_to_sympy.add_opn(Sum.rep, lambda args: sympy.Add(*args))
eval_to_sympy.add_opn(Difference.rep, sympy_difference)
eval_to_sympy.add_opn(Product.rep, lambda args: sympy.Mul(*args))
eval_to_sympy.add_op2(Power.rep, sympy.Pow)
eval_to_sympy.add_op1(Sqrt.rep, sympy.sqrt)
eval_to_sympy.add_op1(Abs.rep, sympy.Abs)
eval_to_sympy.add_op1(sin.rep, sympy.sin)
eval_to_sympy.add_opn(cos.rep, sympy_cos)
eval_to_sympy.add_op1(tan.rep, sympy.tan)


def to_sympy(expr: Expr, symbol: Any = None) -> Any:
    """Convert ``Expr`` to a SymPy expression in ``symbol``.

    The default symbol is a real ``x`` so that e.g. ``Abs`` differentiates
    to ``sign`` in SymPy.
    """
    if symbol is None:
        symbol = sympy.Symbol("x", real=True)
    return eval_to_sympy(expr.rep, symbol)


def from_sympy(expr: sympy.Basic) -> Expr:
    """Convert a SymPy expression in at most one symbol to ``Expr``."""
    if len(expr.free_symbols) > 1:
        raise NotImplementedError("Cannot convert expressions in several symbols")
    return _from_sympy_cache(expr, {})


def _from_sympy_cache(expr: sympy.Basic, cache: dict[sympy.Basic, Expr]) -> Expr:
    ret = cache.get(expr)
    if ret is not None:
        return ret
    elif expr.is_Number:
        ret = Constant(float(expr))  # type: ignore
    elif isinstance(expr, sympy.Symbol):
        ret = x
    elif expr.args:
        ret = _from_sympy_cache_args(expr, cache)
    else:
        raise NotImplementedError("Cannot convert " + type(expr).__name__)
    cache[expr] = ret
    return ret


def _from_sympy_cache_args(expr: Any, cache: dict[Any, Expr]) -> Expr:
    if expr.is_Pow:
        base, exponent = expr.args
        if not exponent.is_Number:
            raise NotImplementedError("Cannot convert a non-numeric exponent")
        base_expr = _from_sympy_cache(base, cache)
        if exponent == sympy.S.Half:
            return Sqrt(base_expr)
        return Power(base_expr, float(exponent))

    args = [_from_sympy_cache(arg, cache) for arg in expr.args]
    if expr.is_Add:
        return Sum(*args)
    elif expr.is_Mul:
        return Product(*args)
    elif isinstance(expr, sympy.sin):
        return sin(*args)
    elif isinstance(expr, sympy.cos):
        return cos(*args)
    elif isinstance(expr, sympy.tan):
        return tan(*args)
    elif isinstance(expr, sympy.Abs):
        return Abs(*args)
    else:
        raise NotImplementedError("Cannot convert " + type(expr).__name__)
