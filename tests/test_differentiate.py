import math

from symcalc import (
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
    negone,
    one,
    sin,
    tan,
    x,
    zero,
)
from symcalc.cli import example_expressions
from symcalc.expr import (
    ATOM_TYPES,
    OPERATORS,
    derivatives,
    eval_f64_tree,
    eval_render,
)
from pytest import approx, raises


def test_differentiate_rules_complete() -> None:
    """Every kind of expression has an evaluate, render and diff rule."""
    assert len(OPERATORS) + len(ATOM_TYPES) == 11
    for atom_type in ATOM_TYPES:
        assert atom_type in eval_f64_tree.atoms
        assert atom_type in eval_render.atoms
        assert atom_type in derivatives.atom_rules
    for operator in OPERATORS:
        assert operator.rep in eval_f64_tree.operations
        assert operator.rep in eval_render.operations
        assert operator.rep in derivatives.rules


def test_differentiate_leaves() -> None:
    """Test derivatives of constants and linear terms."""
    assert Constant(5).differentiate() is zero
    assert zero.differentiate() is zero
    assert x.differentiate() is one
    assert Linear(0.7).differentiate() is Constant(0.7)
    assert Linear(-2).differentiate() is Constant(-2)


def test_differentiate_rules() -> None:
    """Test the rule for each kind of expression."""
    test_cases = [
        (Sum(x, 2), Sum(one, zero)),
        (Sum(), Sum()),
        (Difference(x, sin(x)), Difference(one, Product(cos(x), one))),
        (Product(x, x), Sum(Product(one, x), Product(x, one))),
        (Power(x, 3), Product(Constant(3), Power(x, 2), one)),
        (Power(x, -1), Product(negone, Power(x, -2), one)),
        (Sqrt(x), Product(Constant(0.5), Power(x, -0.5), one)),
        (Abs(x), Product(Product(x, Abs(Power(x, -1))), one)),
        (sin(x), Product(cos(x), one)),
        (cos(x), Product(negone, sin(x), one)),
        (tan(x), Product(Power(cos(x), -2), one)),
    ]
    for expr, expected in test_cases:
        assert expr.differentiate() is expected


def test_differentiate_chain_rule() -> None:
    """The derivative of the inner expression is the last factor."""
    assert sin(Linear(2)).differentiate() is Product(cos(Linear(2)), Constant(2))
    assert sin(sin(x)).differentiate() is Product(
        cos(sin(x)), Product(cos(x), one)
    )
    assert Power(Sum(x, 1), 2).differentiate() is Product(
        Constant(2), Power(Sum(x, 1), 1), Sum(one, zero)
    )


def test_differentiate_product_zero_terms() -> None:
    """Only terms with a literal zero derivative are left out."""
    deriv = Product(Constant(5), x).differentiate()
    assert deriv is Sum(Product(Constant(5), one))
    assert len(deriv.children) == 1

    deriv = Product(Constant(2), Constant(3)).differentiate()
    assert deriv is Sum()
    assert deriv.evaluate(1.0) == 0.0

    # Sum(zero, zero) is zero in value but not in structure so it is kept.
    deriv = Product(x, Sum(Constant(1), Constant(2))).differentiate()
    assert len(deriv.children) == 2


def test_differentiate_childless_cos() -> None:
    """A cos node without a child has derivative zero."""
    assert Expr(cos.rep()).differentiate() is zero


def test_differentiate_ntimes() -> None:
    """Test higher derivatives."""
    expr = sin(Power(x, 2))
    assert expr.differentiate(0) is expr
    assert expr.differentiate(1) is expr.differentiate()
    assert expr.differentiate(2) is expr.differentiate().differentiate()
    assert expr.differentiate(3) is expr.differentiate(2).differentiate()
    raises(ValueError, lambda: expr.differentiate(-1))

    # d^2/dx^2 sin(x^2) = 2*cos(x^2) - 4*x^2*sin(x^2)
    x0 = 0.7
    expected = 2 * math.cos(x0**2) - 4 * x0**2 * math.sin(x0**2)
    assert expr.differentiate(2).evaluate(x0) == approx(expected)


def _central_difference(expr: Expr, x0: float, h: float = 1e-6) -> float:
    fplus = expr.evaluate(x0 + h)
    fminus = expr.evaluate(x0 - h)
    return (fplus - fminus) / (2 * h)  # type: ignore


def test_differentiate_finite_differences() -> None:
    """Derivatives agree with central differences away from singularities."""
    [(_, f1), (_, f2)] = example_expressions()
    test_cases = [
        (f1, [0.2, 0.4, 0.9, 2.0, -1.0]),
        (f2, [0.3, 0.4, 1.0, 1.5, -0.8]),
        (Product(sin(x), cos(x)), [-1.0, 0.0, 0.5]),
        (Sqrt(Sum(Power(x, 2), 1)), [-1.0, 0.0, 2.0]),
        (Abs(sin(x)), [-0.4, 0.4, 2.0]),
        (Power(tan(x), 2), [-0.5, 0.3]),
        (Difference(Linear(3), x, Product(x, x)), [-2.0, 1.0]),
        (Power(Sum(x, 2), -1.5), [0.0, 1.0]),
        (Product(x, x, sin(x), Linear(0.5)), [0.5, 3.0]),
    ]
    for expr, points in test_cases:
        deriv = expr.differentiate()
        for x0 in points:
            expected = _central_difference(expr, x0)
            assert deriv.evaluate(x0) == approx(expected, rel=1e-5, abs=1e-6)


def test_differentiate_singularities() -> None:
    """The derivatives of abs and sqrt are not defined at zero."""
    assert math.isnan(Abs(x).differentiate().evaluate(0.0))
    assert Abs(x).differentiate().evaluate(-2.0) == -1.0
    assert Abs(x).differentiate().evaluate(2.0) == 1.0
    assert Sqrt(x).differentiate().evaluate(0.0) == math.inf
    assert tan(x).differentiate().evaluate(0.0) == 1.0


def test_differentiate_deep() -> None:
    """Deeply nested expressions differentiate without recursion."""
    expr = x
    inner = [0.1]
    for _ in range(5000):
        expr = sin(expr)
        inner.append(math.sin(inner[-1]))

    deriv = expr.differentiate()
    expected = math.prod(math.cos(v) for v in inner[:-1])
    assert deriv.evaluate(0.1) == approx(expected)
