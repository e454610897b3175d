"""Rule tables that fold an expression tree into a value."""
from __future__ import annotations

from typing import Callable
from typing import Generic
from typing import TYPE_CHECKING as _TYPE_CHECKING
from typing import TypeVar

from symcalc.core.exceptions import NoEvaluationRuleError
from symcalc.core.tree import forward_graph
from symcalc.core.tree import Tree


__all__ = ["Evaluator"]


_T = TypeVar("_T")


if _TYPE_CHECKING:
    from typing import Any, Sequence

    from symcalc.core.atom import AtomType

    AtomFunc = Callable[[Any, Any], _T]
    Op1 = Callable[[_T], _T]
    Op2 = Callable[[_T, _T], _T]
    OpN = Callable[[Sequence[_T]], _T]


class Evaluator(Generic[_T]):
    """Objects that fold an expression into a value.

    An :class:`Evaluator` holds one rule per kind of atom and one rule per
    head. Atom rules receive the value of the atom and a *context* object
    that is passed through unchanged from the call, for example the point at
    which to evaluate or a number formatter. Head rules receive the values
    already computed for the arguments.

    Examples
    ========

    >>> import math
    >>> from symcalc.core.atom import AtomType
    >>> from symcalc.core.tree import Tr
    >>> from symcalc.core.evaluate import Evaluator
    >>> Constant = AtomType('Constant', float)
    >>> Linear = AtomType('Linear', float)
    >>> Function = AtomType('Function', str)
    >>> sin = Tr(Function('sin'))
    >>> Sum = Tr(Function('Sum'))
    >>> x = Tr(Linear(1.0))
    >>> one = Tr(Constant(1.0))

    Build an evaluator for floats where the context is the value of ``x``:

    >>> evalf = Evaluator[float]()
    >>> evalf.add_atom(Constant, lambda value, x: value)
    >>> evalf.add_atom(Linear, lambda coeff, x: coeff * x)
    >>> evalf.add_op1(sin, math.sin)
    >>> evalf.add_opn(Sum, sum)
    >>> evalf(Sum(sin(x), one), 0.0)
    1.0

    The same tree can be folded into strings by another evaluator:

    >>> evalstr = Evaluator[str]()
    >>> evalstr.add_atom(Constant, lambda value, fmt: fmt(value))
    >>> evalstr.add_atom(Linear, lambda coeff, fmt: 'x')
    >>> evalstr.add_op1(sin, lambda a: f'sin({a})')
    >>> evalstr.add_opn(Sum, lambda args: '(' + ' + '.join(args) + ')')
    >>> evalstr(Sum(sin(x), one), str)
    '(sin(x) + 1.0)'
    """

    atoms: dict[AtomType[Any], AtomFunc[_T]]
    operations: dict[Tree, OpN[_T]]

    def __init__(self) -> None:
        """Create an evaluator with no rules."""
        self.atoms = {}
        self.operations = {}

    def add_atom(self, atom_type: AtomType[Any], func: AtomFunc[_T]) -> None:
        """Set the rule ``func(value, context)`` for atoms of ``atom_type``."""
        self.atoms[atom_type] = func

    def add_op1(self, head: Tree, func: Op1[_T]) -> None:
        """Set the rule for a head taking one argument."""
        self.operations[head] = lambda args: func(*args)

    def add_op2(self, head: Tree, func: Op2[_T]) -> None:
        """Set the rule for a head taking two arguments."""
        self.operations[head] = lambda args: func(*args)

    def add_opn(self, head: Tree, func: OpN[_T]) -> None:
        """Set the rule for a head taking its arguments as one sequence."""
        self.operations[head] = func

    def eval_atom(self, atom: Tree, context: Any) -> _T:
        """Value of an atomic tree."""
        rule = self.atoms.get(atom.value.atom_type)
        if rule is None:
            raise NoEvaluationRuleError(f"No rule for atom: {atom!r}")
        return rule(atom.value.value, context)

    def eval_operation(self, head: Tree, argvals: Sequence[_T]) -> _T:
        """Apply the rule for ``head`` to the values of its arguments."""
        rule = self.operations.get(head)
        if rule is None:
            raise NoEvaluationRuleError(f"No rule for head: {head!r}")
        return rule(argvals)

    def evaluate(self, expr: Tree, context: Any) -> _T:
        """Evaluate the expression using the registered rules."""
        return self.eval_forward(expr, context)

    def eval_recursive(self, expr: Tree, context: Any) -> _T:
        """Evaluate by recursing into the children.

        Simple but limited by the recursion limit. Used for testing
        :meth:`eval_forward`.
        """
        if not expr.children:
            return self.eval_atom(expr, context)
        head, *args = expr.children
        return self.eval_operation(
            head, [self.eval_recursive(arg, context) for arg in args]
        )

    def eval_forward(self, expr: Tree, context: Any) -> _T:
        """Evaluate each distinct subexpression once, children first."""
        graph = forward_graph(expr)

        values = [self.eval_atom(atom, context) for atom in graph.atoms]
        for head, positions in graph.operations:
            values.append(self.eval_operation(head, [values[i] for i in positions]))

        return values[-1]

    def __call__(self, expr: Tree, context: Any = None) -> _T:
        """Short-hand for evaluate."""
        return self.evaluate(expr, context)
