from symcalc.core.atom import AtomType
from symcalc.core.differentiate import (
    DiffProperties,
    diff_forward,
    product_rule_forward,
)
from symcalc.core.exceptions import NoDifferentiationRuleError
from symcalc.core.tree import Tr, Tree
from pytest import raises


Constant = AtomType("Constant", float)
Linear = AtomType("Linear", float)
Function = AtomType("Function", str)

zero = Tr(Constant(0.0))
one = Tr(Constant(1.0))
negone = Tr(Constant(-1.0))
x = Tr(Linear(1.0))

sin = Tr(Function("sin"))
cos = Tr(Function("cos"))
Add = Tr(Function("Add"))
Mul = Tr(Function("Mul"))


def _make_prop() -> DiffProperties:
    prop = DiffProperties()
    prop.add_atom_rule(Constant, lambda value: zero)
    prop.add_atom_rule(Linear, lambda coeff: Tr(Constant(coeff)))
    prop.add_rule(Add, lambda args, diff_args: Add(*diff_args))
    prop.add_rule(
        Mul,
        lambda args, diff_args: Add(*product_rule_forward(args, diff_args, zero, Mul)),
    )
    prop.add_rule(sin, lambda args, diff_args: Mul(cos(*args), *diff_args))
    prop.add_rule(cos, lambda args, diff_args: Mul(negone, sin(*args), *diff_args))
    return prop


def test_core_differentiate() -> None:
    """Test elementary differentiation routines."""
    prop = _make_prop()

    two_x = Tr(Linear(2.0))
    two = Tr(Constant(2.0))

    assert diff_forward(zero, prop) == zero
    assert diff_forward(x, prop) == one
    assert diff_forward(two_x, prop) == two
    assert diff_forward(Add(x, one), prop) == Add(one, zero)
    assert diff_forward(Mul(x, one), prop) == Add(Mul(one, one))
    assert diff_forward(Mul(two, x), prop) == Add(Mul(two, one))
    assert diff_forward(Mul(x, x), prop) == Add(Mul(one, x), Mul(x, one))
    assert diff_forward(sin(x), prop) == Mul(cos(x), one)
    assert diff_forward(sin(sin(x)), prop) == Mul(cos(sin(x)), Mul(cos(x), one))
    assert diff_forward(Add(sin(x), cos(x)), prop) == Add(
        Mul(cos(x), one), Mul(negone, sin(x), one)
    )


def test_product_rule_forward() -> None:
    """Terms whose differentiated factor is zero are left out."""
    a = Tr(Constant(3.0))
    b = Tr(Constant(4.0))
    assert product_rule_forward([a, x], [zero, one], zero, Mul) == [Mul(a, one)]
    assert product_rule_forward([a, b], [zero, zero], zero, Mul) == []
    assert product_rule_forward([x, x], [one, one], zero, Mul) == [
        Mul(one, x),
        Mul(x, one),
    ]


def test_differentiate_missing_rules() -> None:
    """Missing rules raise NoDifferentiationRuleError."""
    prop = DiffProperties()
    raises(NoDifferentiationRuleError, lambda: diff_forward(x, prop))

    prop.add_atom_rule(Linear, lambda coeff: Tr(Constant(coeff)))
    assert diff_forward(x, prop) == one
    raises(NoDifferentiationRuleError, lambda: diff_forward(sin(x), prop))


def test_differentiate_shared_subexpressions() -> None:
    """Repeated subexpressions are differentiated once and shared."""
    prop = _make_prop()
    expr: Tree = x
    for _ in range(30):
        expr = Mul(expr, expr)
    # Counted as a tree this derivative would have about 2**30 nodes.
    deriv = diff_forward(expr, prop)
    assert isinstance(deriv, Tree)
