"""symcalc.core.tree module.

Every expression is stored as a :class:`Tree`. Trees are interned: there is
at most one :class:`Tree` object for any given structure so that comparing
two trees is an identity check and subtrees can be shared freely.

The walks defined here (:func:`topological_sort` and :func:`forward_graph`)
use an explicit stack rather than recursion so that the depth of an
expression is not limited by the interpreter's recursion limit.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING as _TYPE_CHECKING
from typing import Callable, Hashable, Iterator
from weakref import WeakValueDictionary as _WeakDict

from symcalc.core.atom import Atom


if _TYPE_CHECKING:
    from symcalc.core.atom import AnyAtom


__all__ = [
    "Tree",
    "Tr",
    "ForwardGraph",
    "topological_sort",
    "topological_split",
    "forward_graph",
]


#
# Atomic trees are keyed by their Atom and compound trees by the tuple of
# their children.
#
_interned: _WeakDict[Hashable, Tree] = _WeakDict()


def _intern(key: Hashable, build: Callable[[], Tree]) -> Tree:
    existing = _interned.get(key)
    if existing is None:
        existing = _interned.setdefault(key, build())
    return existing


class Tree:
    """Immutable expression tree.

    A :class:`Tree` is either atomic, holding an :class:`Atom` as its
    ``value`` and no ``children``, or compound. The first child of a compound
    tree is its *head*, an atomic tree naming the operation, and the remaining
    children are the arguments.

    >>> from symcalc.core.atom import AtomType
    >>> from symcalc.core.tree import Tr, Tree
    >>> Function = AtomType('Function', str)
    >>> Constant = AtomType('Constant', float)
    >>> sin = Tr(Function('sin'))
    >>> two = Tr(Constant(2.0))
    >>> sin
    Tr(Function('sin'))
    >>> expr = sin(two)
    >>> expr
    Tree(Tr(Function('sin')), Tr(Constant(2.0)))
    >>> print(expr)
    sin(2.0)
    >>> expr.children[0] is sin
    True
    >>> two.children
    ()
    >>> two.value
    Constant(2.0)

    Building the same tree twice gives the same object:

    >>> sin(two) is expr
    True
    >>> Tree(sin, two) is expr
    True
    """

    __slots__ = (
        "__weakref__",
        "value",
        "children",
    )

    children: tuple[Tree, ...]
    value: AnyAtom

    def __new__(cls, *children: Tree) -> Tree:
        """Compound tree with the given head and arguments."""
        for child in children:
            if not isinstance(child, Tree):
                raise TypeError(f"Children of a Tree should be Tree, not {child!r}")

        def build() -> Tree:
            tree = object.__new__(cls)
            tree.children = children
            return tree

        return _intern(children, build)

    @classmethod
    def atom(cls, value: AnyAtom) -> Tree:
        """Atomic tree holding ``value``."""
        if not isinstance(value, Atom):
            raise TypeError(f"Expected an Atom, not {value!r}")

        def build() -> Tree:
            tree = object.__new__(cls)
            tree.value = value
            tree.children = ()
            return tree

        return _intern(value, build)

    def __call__(self, *args: Tree) -> Tree:
        """Apply this tree as a head: ``head(*args)``."""
        return Tree(self, *args)

    def __repr__(self) -> str:
        """Constructor-like representation."""
        if not self.children:
            return f"Tr({self.value!r})"
        return "Tree(" + ", ".join(repr(c) for c in self.children) + ")"

    def __str__(self) -> str:
        """Function call notation e.g. ``sin(2.0)``."""
        if not self.children:
            return str(self.value)
        head, *args = self.children
        return f"{head}(" + ", ".join(str(a) for a in args) + ")"


# Shorthand for creating atomic trees
Tr = Tree.atom


def topological_sort(
    expression: Tree,
    *,
    heads: bool = False,
) -> list[Tree]:
    """List of the distinct subexpressions of a :class:`Tree`.

    No expression appears before any of its children and every repeated
    subexpression appears only once:

    >>> from symcalc.core.atom import AtomType
    >>> from symcalc.core.tree import Tr, topological_sort
    >>> Function = AtomType('Function', str)
    >>> Linear = AtomType('Linear', float)
    >>> sin, Sum = Tr(Function('sin')), Tr(Function('Sum'))
    >>> x = Tr(Linear(1.0))
    >>> for e in topological_sort(Sum(sin(x), sin(sin(x)))):
    ...     print(e)
    1.0
    sin(1.0)
    sin(sin(1.0))
    Sum(sin(1.0), sin(sin(1.0)))

    Heads are left out unless ``heads=True`` is passed.
    """
    start = 0 if heads else 1

    def operands(expr: Tree) -> Iterator[Tree]:
        return iter(expr.children[start:])

    order: list[Tree] = []
    visited = {expression}
    # Each stack entry is a node and an iterator over its unvisited operands.
    pending = [(expression, operands(expression))]

    while pending:
        node, remaining = pending[-1]
        for child in remaining:
            if child not in visited:
                visited.add(child)
                pending.append((child, operands(child)))
                break
        else:
            pending.pop()
            order.append(node)

    return order


def topological_split(expr: Tree) -> tuple[list[Tree], set[Tree], list[Tree]]:
    """Topological sort split into atoms, heads and compound expressions.

    See Also
    ========

    topological_sort
    """
    atoms: list[Tree] = []
    heads: set[Tree] = set()
    compound: list[Tree] = []

    for node in topological_sort(expr):
        if node.children:
            heads.add(node.children[0])
            compound.append(node)
        else:
            atoms.append(node)

    return atoms, heads, compound


@dataclass
class ForwardGraph:
    """Expression flattened into atoms and numbered operations.

    Position ``i`` refers to ``atoms[i]`` when ``i < len(atoms)`` and
    otherwise to the result of ``operations[i - len(atoms)]``.

    See Also
    ========

    forward_graph: The function that builds this from a :class:`Tree`.
    """

    atoms: list[Tree]
    operations: list[tuple[Tree, list[int]]]


def forward_graph(expr: Tree) -> ForwardGraph:
    """Build a :class:`ForwardGraph` from a :class:`Tree`.

    The graph lists the atoms of ``expr`` followed by one operation per
    compound subexpression. Each operation refers to its arguments by their
    position so replaying the operations in order rebuilds (or evaluates) the
    expression:

    >>> from symcalc.core.atom import AtomType
    >>> from symcalc.core.tree import Tr, forward_graph
    >>> Function = AtomType('Function', str)
    >>> Constant = AtomType('Constant', float)
    >>> Linear = AtomType('Linear', float)
    >>> Product = Tr(Function('Product'))
    >>> x, two = Tr(Linear(1.0)), Tr(Constant(2.0))
    >>> graph = forward_graph(Product(x, Product(two, x)))
    >>> graph.atoms == [x, two]
    True
    >>> graph.operations == [(Product, [1, 0]), (Product, [0, 2])]
    True
    >>> values = list(graph.atoms)
    >>> for head, positions in graph.operations:
    ...     values.append(head(*[values[i] for i in positions]))
    >>> values[-1] == Product(x, Product(two, x))
    True
    """
    atoms, _, compound = topological_split(expr)

    position = {atom: i for i, atom in enumerate(atoms)}
    operations: list[tuple[Tree, list[int]]] = []

    for node in compound:
        head, *args = node.children
        operations.append((head, [position[arg] for arg in args]))
        position[node] = len(position)

    return ForwardGraph(atoms, operations)
