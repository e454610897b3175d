"""Core routines for differentiating at Tree level.

This module implements the forward accumulation algorithm. The rules
themselves are supplied by higher level code in :mod:`symcalc.expr` which
registers one rule per kind of atom and one rule per head.
"""
from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from typing import TYPE_CHECKING as _TYPE_CHECKING

from symcalc.core.exceptions import NoDifferentiationRuleError
from symcalc.core.tree import forward_graph


__all__ = [
    "DiffProperties",
    "diff_forward",
    "product_rule_forward",
]


if _TYPE_CHECKING:
    from typing import Any, Callable, Sequence
    from symcalc.core.atom import AtomType
    from symcalc.core.tree import Tree

    AtomDiffRule = Callable[[Any], Tree]
    DiffRule = Callable[[Sequence[Tree], Sequence[Tree]], Tree]


@dataclass(frozen=True)
class DiffProperties:
    """Collection of rules needed for differentiation.

    An atom rule maps the value of an atom to its derivative. A head rule maps
    the arguments of an operation together with the derivatives of those
    arguments to the derivative of the operation.
    """

    atom_rules: dict[AtomType[Any], AtomDiffRule] = field(default_factory=dict)
    rules: dict[Tree, DiffRule] = field(default_factory=dict)

    def add_atom_rule(self, atom_type: AtomType[Any], func: AtomDiffRule) -> None:
        """Add a rule like :math:`(c)' = 0` for a kind of atom."""
        self.atom_rules[atom_type] = func

    def add_rule(self, head: Tree, func: DiffRule) -> None:
        """Add a rule like :math:`sin(u)' = cos(u) u'` for a head."""
        self.rules[head] = func

    def diff_atom(self, atom: Tree) -> Tree:
        """Derivative of an atomic expression."""
        func = self.atom_rules.get(atom.value.atom_type)
        if func is None:
            raise NoDifferentiationRuleError("No rule for atom: " + repr(atom))
        return func(atom.value.value)


def diff_forward(expression: Tree, prop: DiffProperties) -> Tree:
    """Derivative of expression wrt the variable.

    Uses forward accumulation: the derivative of every distinct subexpression
    is computed once, children before parents, so a subexpression that occurs
    many times is only differentiated once and no recursion is needed.
    """
    rules = prop.rules

    graph = forward_graph(expression)

    stack = list(graph.atoms)
    diff_stack = [prop.diff_atom(atom) for atom in stack]

    for head, indices in graph.operations:
        args = [stack[i] for i in indices]
        diff_args = [diff_stack[i] for i in indices]

        rule = rules.get(head)
        if rule is None:
            raise NoDifferentiationRuleError("No rule for head: " + repr(head))

        stack.append(head(*args))
        diff_stack.append(rule(args, diff_args))

    # stack is a topological sort of expression and diff_stack holds the
    # derivative of each entry so the top of diff_stack is the answer.
    return diff_stack[-1]


def product_rule_forward(
    args: Sequence[Tree],
    diff_args: Sequence[Tree],
    zero: Tree,
    mul: Tree,
) -> list[Tree]:
    """Product rule in forward accumulation.

    Returns one term per factor with that factor replaced by its derivative.
    A term whose differentiated factor is exactly ``zero`` is left out.
    """
    terms: list[Tree] = []
    for n, diff_arg in enumerate(diff_args):
        if diff_arg != zero:
            term = mul(*args[:n], diff_arg, *args[n + 1 :])
            terms.append(term)
    return terms
