"""Command line demonstration.

Builds two example expressions, prints them with their derivatives and
evaluates both at a point::

    $ symcalc --x0 0.4
    $ python -m symcalc --digits 5 --decimal-point , --group-separator .
"""
from __future__ import annotations

import argparse
import logging
from typing import Optional, Sequence

from symcalc.expr import (
    Abs,
    Constant,
    Difference,
    Expr,
    Linear,
    Power,
    Product,
    Sqrt,
    Sum,
    sin,
    tan,
    x,
)
from symcalc.formatting import DecimalFormatter

logger = logging.getLogger(__name__)


def example_expressions() -> list[tuple[str, Expr]]:
    """The demonstration functions f1 and f2."""
    # f1(x) = x^2*sqrt(|0.7*x - 1|) - sin(x + 0.005)^3
    f1 = Difference(
        Product(
            Power(Linear(1), 2),
            Sqrt(Abs(Difference(Linear(0.7), Constant(1)))),
        ),
        Power(sin(Sum(x, Constant(0.005))), 3),
    )
    # f2(x) = 0.7/x - tan(0.7*x + 0.005)^3
    f2 = Difference(
        Product(Constant(0.7), Power(x, -1)),
        Power(tan(Sum(Product(Constant(0.7), x), Constant(0.005))), 3),
    )
    return [("f1", f1), ("f2", f2)]


def build_parser() -> argparse.ArgumentParser:
    """Argument parser for the ``symcalc`` command."""
    parser = argparse.ArgumentParser(
        prog="symcalc",
        description="Print example expressions, their derivatives and values.",
    )
    parser.add_argument(
        "--x0", type=float, default=0.4, help="point to evaluate at (default 0.4)"
    )
    parser.add_argument(
        "--digits",
        type=int,
        default=3,
        help="maximum fraction digits when printing formulas (default 3)",
    )
    parser.add_argument("--decimal-point", default=".", help="decimal separator")
    parser.add_argument(
        "--group-separator", default=",", help="thousands separator"
    )
    parser.add_argument(
        "--no-grouping",
        action="store_true",
        help="do not group the digits of large numbers",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="log the size of derivatives"
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point for the ``symcalc`` command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    try:
        formatter = DecimalFormatter(
            max_fraction_digits=args.digits,
            grouping=not args.no_grouping,
            decimal_point=args.decimal_point,
            group_separator=args.group_separator,
        )
    except ValueError as e:
        parser.error(str(e))

    x0 = formatter(args.x0)

    for name, expr in example_expressions():
        deriv = expr.differentiate()
        logger.debug(
            "%s' has %d nodes, %d distinct",
            name,
            deriv.count_ops_tree(),
            deriv.count_ops_graph(),
        )
        print()
        print(f"{name}(x) = {expr.render(formatter)}")
        print(f"{name}'(x) = {deriv.render(formatter)}")
        print(f"{name}({x0}) = {expr.evaluate(args.x0):f}")
        print(f"{name}'({x0}) = {deriv.evaluate(args.x0):f}")

    return 0
