import math
from typing import Any, Callable

from symcalc.core.atom import AtomType
from symcalc.core.evaluate import Evaluator
from symcalc.core.exceptions import NoEvaluationRuleError
from symcalc.core.tree import Tr, Tree
from pytest import raises


Constant = AtomType("Constant", float)
Linear = AtomType("Linear", float)
Function = AtomType("Function", str)

one = Tr(Constant(1.0))
two = Tr(Constant(2.0))
x = Tr(Linear(1.0))
cos = Tr(Function("cos"))
sin = Tr(Function("sin"))
Pow = Tr(Function("Pow"))
Add = Tr(Function("Add"))


def test_Evaluator() -> None:
    """Test defining and using a simple Evaluator."""
    eval_f64 = Evaluator[float]()
    eval_f64.add_atom(Constant, lambda value, x0: value)
    eval_f64.add_atom(Linear, lambda coeff, x0: coeff * x0)
    eval_f64.add_op1(cos, math.cos)
    eval_f64.add_op1(sin, math.sin)
    eval_f64.add_op2(Pow, pow)
    eval_f64.add_opn(Add, math.fsum)

    test_cases: list[tuple[Tree, float, float]] = [
        (sin(cos(one)), 0.0, 0.5143952585235492),
        (sin(cos(x)), 1.0, 0.5143952585235492),
        (Add(Pow(sin(x), two), Pow(cos(x), two)), 1.0, 1.0),
    ]

    # Test all implementations
    eval_funcs: list[Callable[[Tree, Any], float]] = [
        eval_f64,
        eval_f64.evaluate,
        eval_f64.eval_recursive,
        eval_f64.eval_forward,
    ]
    for expr, x0, expected in test_cases:
        for func in eval_funcs:
            assert func(expr, x0) == expected


def test_Evaluator_context() -> None:
    """The context is passed unchanged to the atom rules."""
    eval_str = Evaluator[str]()
    eval_str.add_atom(Constant, lambda value, fmt: fmt(value))
    eval_str.add_atom(Linear, lambda coeff, fmt: f"{fmt(coeff)}*x")
    eval_str.add_opn(Add, lambda args: " + ".join(args))

    expr = Add(x, two)
    assert eval_str(expr, str) == "1.0*x + 2.0"
    assert eval_str(expr, lambda v: f"{v:.2f}") == "1.00*x + 2.00"


def test_Evaluator_missing_rules() -> None:
    """An Evaluator without a rule raises NoEvaluationRuleError."""
    evaluator = Evaluator[float]()
    evaluator.add_atom(Constant, lambda value, x0: value)

    raises(NoEvaluationRuleError, lambda: evaluator(x, 1.0))
    raises(NoEvaluationRuleError, lambda: evaluator(sin(one), 1.0))
    raises(NoEvaluationRuleError, lambda: evaluator.eval_recursive(sin(one), 1.0))

    evaluator.add_op1(sin, math.sin)
    assert evaluator(sin(one), None) == math.sin(1.0)


def test_Evaluator_deep() -> None:
    """Forward evaluation does not recurse."""
    evaluator = Evaluator[float]()
    evaluator.add_atom(Linear, lambda coeff, x0: coeff * x0)
    evaluator.add_op1(sin, math.sin)

    expr = x
    expected = 0.5
    for _ in range(5000):
        expr = sin(expr)
        expected = math.sin(expected)
    assert evaluator(expr, 0.5) == expected
