"""The Expr class."""
from __future__ import annotations

import numbers
from functools import wraps
from typing import TYPE_CHECKING as _TYPE_CHECKING
from typing import Any, Callable, Optional, Union
from weakref import WeakValueDictionary as _WeakDict

import numpy as np

from symcalc.core.atom import AtomType
from symcalc.core.differentiate import DiffProperties
from symcalc.core.differentiate import diff_forward
from symcalc.core.differentiate import product_rule_forward
from symcalc.core.evaluate import Evaluator
from symcalc.core.tree import Tr
from symcalc.core.tree import Tree
from symcalc.core.tree import topological_sort
from symcalc.exceptions import ArityError, ExpressifyError
from symcalc.formatting import default_formatter


if _TYPE_CHECKING:
    from typing import Sequence

    from numpy.typing import ArrayLike, NDArray

    from symcalc.formatting import NumberFormatter

    Expressifiable = Union["Expr", float]
    ExprBinOp = Callable[["Expr", "Expr"], "Expr"]
    ExpressifyBinOp = Callable[["Expr", Expressifiable], "Expr"]


#
# Leaves hold a float: the value of a constant or the coefficient of a linear
# term. Compound expressions have a Head atom naming the operation. Scalar
# parameters such as the exponent of a power are stored as Constant leaves
# after the children.
#
ConstantType = AtomType("Constant", float)
LinearType = AtomType("Linear", float)
Head = AtomType("Head", str)


def _to_float(value: Any, what: str) -> float:
    """Check that ``value`` is a real number and convert it to ``float``."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ExpressifyError(f"{what} should be a real number, not {value!r}")
    return float(value)


def expressify(obj: Any) -> Expr:
    """Convert a real number to a constant ``Expr``.

    >>> from symcalc import expressify, x
    >>> expressify(2)
    2
    >>> expressify(2).kind
    'Constant'
    >>> expressify(x) is x
    True

    Anything that is neither an :class:`Expr` nor a real number raises
    :class:`ExpressifyError`.
    """
    if isinstance(obj, Expr):
        return obj
    return Constant(_to_float(obj, "Expression"))


def expressify_other(method: ExprBinOp) -> ExpressifyBinOp:
    """Call ``expressify`` on operands in ``__add__`` etc."""

    @wraps(method)
    def expressify_method(self: Expr, other: Expressifiable) -> Expr:
        if not isinstance(other, Expr):
            try:
                other = expressify(other)
            except ExpressifyError:
                return NotImplemented
        return method(self, other)

    return expressify_method


class Expr:
    """Immutable real valued expression in the variable ``x``.

    Expressions are built from the construction functions and combined with
    the usual Python operators:

    >>> from symcalc import x, sin, Power, Product, Constant
    >>> expr = Product(Constant(3), Power(x, 2))
    >>> expr
    (3*(x^2))
    >>> expr.evaluate(2.0)
    12.0
    >>> expr.differentiate()
    ((3*(2*(x^1)*1)))
    >>> sin(x) + 1
    (sin(x)+1)
    >>> x**3 - 2*x
    ((x^3)-(2*x))

    No simplification is done beyond dropping product rule terms whose
    differentiated factor is exactly zero. The ``3`` above has derivative
    zero so only one term of the product rule survives.

    Expressions are interned so equal expressions are the same object and
    equality is cheap:

    >>> sin(x) is sin(x)
    True

    See Also
    --------
    evaluate
    differentiate
    render
    """

    _instances: _WeakDict[Tree, Expr] = _WeakDict()

    rep: Tree

    def __new__(cls, rep: Tree) -> Expr:
        """Wrap ``rep`` or return the existing wrapper of it."""
        if not isinstance(rep, Tree):
            raise TypeError(f"Expr should wrap a Tree, not {rep!r}")
        expr = cls._instances.get(rep)
        if expr is None:
            expr = object.__new__(cls)
            expr.rep = rep
            expr = cls._instances.setdefault(rep, expr)
        return expr

    def __repr__(self) -> str:
        """Formula rendered with the default formatter."""
        return self.render()

    def __str__(self) -> str:
        """Formula rendered with the default formatter."""
        return self.render()

    def _sympy_(self) -> Any:
        """Support SymPy's ``sympify`` function."""
        return self.to_sympy()

    @property
    def kind(self) -> str:
        """Name of the kind of this expression e.g. ``'Sum'``."""
        rep = self.rep
        if rep.children:
            return rep.children[0].value.value  # type: ignore
        else:
            return rep.value.atom_type.name

    @property
    def children(self) -> tuple[Expr, ...]:
        """Child expressions, excluding any scalar parameter.

        >>> from symcalc import x, Power, Sum
        >>> Sum(x, 1).children
        (x, 1)
        >>> Power(x, 3).children
        (x,)
        >>> x.children
        ()
        """
        args = self.rep.children[1:]
        operator = _operators.get(self.rep.children[0]) if args else None
        if operator is not None and operator.nparams:
            args = args[: -operator.nparams]
        return tuple(Expr(arg) for arg in args)

    @property
    def parameter(self) -> Optional[float]:
        """Scalar parameter of a Constant, Linear or Power expression.

        >>> from symcalc import Constant, Linear, Power, x
        >>> Constant(2.5).parameter
        2.5
        >>> Linear(0.7).parameter
        0.7
        >>> Power(x, -1).parameter
        -1.0
        >>> (x + 1).parameter is None
        True
        """
        rep = self.rep
        if not rep.children:
            return rep.value.value  # type: ignore
        operator = _operators.get(rep.children[0])
        if operator is not None and operator.nparams:
            return rep.children[-1].value.value  # type: ignore
        return None

    def __pos__(self) -> Expr:
        """+Expr -> Expr."""
        return self

    def __neg__(self) -> Expr:
        """-Expr -> Expr."""
        return Product(negone, self)

    @expressify_other
    def __add__(self, other: Expr) -> Expr:
        """Expr + Expr -> Expr."""
        return Sum(self, other)

    @expressify_other
    def __radd__(self, other: Expr) -> Expr:
        """Expr + Expr -> Expr."""
        return Sum(other, self)

    @expressify_other
    def __sub__(self, other: Expr) -> Expr:
        """Expr - Expr -> Expr."""
        return Difference(self, other)

    @expressify_other
    def __rsub__(self, other: Expr) -> Expr:
        """Expr - Expr -> Expr."""
        return Difference(other, self)

    @expressify_other
    def __mul__(self, other: Expr) -> Expr:
        """Expr * Expr -> Expr."""
        return Product(self, other)

    @expressify_other
    def __rmul__(self, other: Expr) -> Expr:
        """Expr * Expr -> Expr."""
        return Product(other, self)

    @expressify_other
    def __truediv__(self, other: Expr) -> Expr:
        """Expr / Expr -> Expr."""
        return Product(self, Power(other, -1))

    @expressify_other
    def __rtruediv__(self, other: Expr) -> Expr:
        """Expr / Expr -> Expr."""
        return Product(other, Power(self, -1))

    def __pow__(self, exponent: float) -> Expr:
        """Expr ** float -> Expr."""
        if isinstance(exponent, bool) or not isinstance(exponent, numbers.Real):
            return NotImplemented
        return Power(self, exponent)

    def evaluate(self, x: ArrayLike) -> float | NDArray[np.float64]:
        """Evaluate the expression at ``x``.

        >>> from symcalc import x, Sqrt, Power, Product, Constant
        >>> Product(Constant(0.5), x).evaluate(3)
        1.5

        Domain errors are not exceptions. They give ``nan`` or ``inf`` just
        like IEEE 754 floating point arithmetic:

        >>> Sqrt(x).evaluate(-1.0)
        nan
        >>> Power(x, -1).evaluate(0.0)
        inf

        An array of points gives an array of values:

        >>> Power(x, 2).evaluate([1.0, 2.0, 3.0])
        array([1., 4., 9.])
        """
        return eval_f64(self, x)

    def differentiate(self, ntimes: int = 1) -> Expr:
        """Derivative of the expression with respect to ``x``.

        >>> from symcalc import x, sin, cos, tan
        >>> sin(x).differentiate()
        (cos(x)*1)
        >>> cos(x).differentiate()
        (-1*sin(x)*1)
        >>> tan(x).differentiate().evaluate(0.0)
        1.0

        Higher derivatives are found by passing ``ntimes``:

        >>> sin(x).differentiate(2)
        (((-1*sin(x)*1)*1))

        Every rule applies the chain rule even when the inner expression is
        just ``x`` and nothing is simplified so derivatives grow quickly:

        >>> expr = sin(sin(sin(x)))
        >>> expr.count_ops_tree(), expr.differentiate().count_ops_tree()
        (4, 13)
        """
        if ntimes < 0:
            raise ValueError("ntimes should be a non-negative integer.")
        deriv = self.rep
        for _ in range(ntimes):
            deriv = diff_forward(deriv, derivatives)
        return Expr(deriv)

    def render(self, formatter: Optional[NumberFormatter] = None) -> str:
        """Render the expression as a formula.

        The ``formatter`` turns each number into text. The default is a
        :class:`~symcalc.formatting.DecimalFormatter`.

        >>> from symcalc import x, Sum, Power, Constant, Linear
        >>> Power(x, 2).render()
        '(x^2)'
        >>> Sum(Linear(0.7), Constant(-1)).render()
        '(0.7*x-1)'
        >>> Sum(Linear(0.7), Constant(-1)).render(str)
        '(0.7*x-1.0)'
        """
        if formatter is None:
            formatter = default_formatter
        return eval_render(self.rep, formatter)

    def to_sympy(self, symbol: Any = None) -> Any:
        """Convert to a SymPy expression.

        >>> # xdoctest: +REQUIRES(module:sympy)
        >>> from symcalc import x, sin
        >>> sin(x**2).to_sympy()
        sin(x**2)

        See Also
        --------
        from_sympy
        """
        from symcalc.sympy_conversions import to_sympy

        return to_sympy(self, symbol)

    @classmethod
    def from_sympy(cls, expr: Any) -> Expr:
        """Create an ``Expr`` from a SymPy expression in one symbol.

        >>> # xdoctest: +REQUIRES(module:sympy)
        >>> import sympy
        >>> from symcalc import Expr
        >>> x = sympy.Symbol('x')
        >>> Expr.from_sympy(sympy.cos(x) + 1)
        (1+cos(x))

        See Also
        --------
        to_sympy
        """
        from symcalc.sympy_conversions import from_sympy

        return from_sympy(expr)

    def count_ops_tree(self) -> int:
        """Count nodes of the expression counted with repetition.

        See :meth:`count_ops_graph` for an explanation.
        """
        counts: dict[Tree, int] = {}
        for subexpr in topological_sort(self.rep):
            args = subexpr.children[1:]
            counts[subexpr] = 1 + sum(counts[arg] for arg in args)
        return counts[self.rep]

    def count_ops_graph(self) -> int:
        """Count the distinct subexpressions of the expression.

        Derivatives reuse the same subexpressions in many places. Counted as
        a tree every occurrence counts separately but counted as a graph each
        distinct subexpression counts once:

        >>> from symcalc import x, Product
        >>> expr = Product(x, x, x)
        >>> expr.count_ops_tree(), expr.count_ops_graph()
        (4, 2)
        """
        return len(topological_sort(self.rep))


class Operator:
    """Head of a compound expression together with its arity.

    Calling an :class:`Operator` builds an :class:`Expr`. The number of
    children is checked when the expression is built:

    >>> from symcalc import Difference, sin, x
    >>> Difference(x, 1)
    (x-1)
    >>> sin(x, x)
    Traceback (most recent call last):
        ...
    symcalc.exceptions.ArityError: Sine takes 1 argument but 2 were given

    Real numbers given as children become constants. Trailing scalar
    parameters (``nparams`` of them) are stored as plain numbers.
    """

    name: str
    rep: Tree
    min_args: int
    max_args: Optional[int]
    nparams: int

    def __init__(
        self, name: str, min_args: int, max_args: Optional[int], nparams: int = 0
    ):
        """Create a new operator and register it by its head."""
        self.name = name
        self.rep = Tr(Head(name))
        self.min_args = min_args
        self.max_args = max_args
        self.nparams = nparams
        _operators[self.rep] = self

    def __repr__(self) -> str:
        """Name of the operator."""
        return self.name

    def __call__(self, *args: Any) -> Expr:
        """Build an expression with this operator as its head."""
        nargs = len(args) - self.nparams
        if nargs < self.min_args or (
            self.max_args is not None and nargs > self.max_args
        ):
            raise ArityError(self._arity_message(len(args)))
        children = [expressify(arg).rep for arg in args[:nargs]]
        params = [Tr(ConstantType(_to_float(p, "Parameter"))) for p in args[nargs:]]
        return Expr(self.rep(*children, *params))

    def _arity_message(self, given: int) -> str:
        if self.max_args is None:
            expected = f"at least {self.min_args + self.nparams}"
        else:
            expected = str(self.min_args + self.nparams)
        noun = "argument" if self.min_args + self.nparams == 1 else "arguments"
        verb = "was" if given == 1 else "were"
        return f"{self.name} takes {expected} {noun} but {given} {verb} given"


_operators: dict[Tree, Operator] = {}


def Constant(value: float) -> Expr:
    """Constant function ``c``.

    >>> from symcalc import Constant
    >>> Constant(2.5)
    2.5
    """
    return Expr(Tr(ConstantType(_to_float(value, "Constant value"))))


def Linear(coefficient: float) -> Expr:
    """Linear function ``c*x``. ``Linear(1)`` is the variable ``x`` itself.

    >>> from symcalc import Linear, x
    >>> Linear(0.7)
    0.7*x
    >>> Linear(1) is x
    True
    """
    return Expr(Tr(LinearType(_to_float(coefficient, "Coefficient"))))


Sum = Operator("Sum", 0, None)
Difference = Operator("Difference", 1, None)
Product = Operator("Product", 0, None)
Power = Operator("Power", 1, 1, nparams=1)
Sqrt = Operator("SquareRoot", 1, 1)
Abs = Operator("AbsoluteValue", 1, 1)
sin = Operator("Sine", 1, 1)
cos = Operator("Cosine", 1, 1)
tan = Operator("Tangent", 1, 1)

OPERATORS = (Sum, Difference, Product, Power, Sqrt, Abs, sin, cos, tan)
ATOM_TYPES = (ConstantType, LinearType)

zero = Constant(0)
one = Constant(1)
negone = Constant(-1)

x = Linear(1)

#
# Evaluators. The rules are added in symcalc.functions.
#
eval_f64_tree = Evaluator[Any]()
eval_render = Evaluator[str]()


def eval_f64(expr: Expr, x: ArrayLike) -> float | NDArray[np.float64]:
    """Evaluate ``expr`` at ``x`` with 64-bit floating point.

    Invalid operations, division by zero and overflow give ``nan`` or ``inf``
    silently. A scalar ``x`` gives a ``float`` and an array gives an array of
    the same shape.
    """
    point = np.asarray(x, dtype=np.float64)
    with np.errstate(all="ignore"):
        value = np.asarray(eval_f64_tree(expr.rep, point), dtype=np.float64)
    if point.ndim:
        return np.broadcast_to(value, point.shape).copy()
    return float(value)


#
# Differentiation.
#

derivatives = DiffProperties()


def _const(value: float) -> Tree:
    return Tr(ConstantType(float(value)))


def diff_sum(args: Sequence[Tree], diff_args: Sequence[Tree]) -> Tree:
    """(u + v)' = u' + v'."""
    return Sum.rep(*diff_args)


def diff_difference(args: Sequence[Tree], diff_args: Sequence[Tree]) -> Tree:
    """(u - v)' = u' - v'."""
    return Difference.rep(*diff_args)


def diff_product(args: Sequence[Tree], diff_args: Sequence[Tree]) -> Tree:
    """(u*v)' = u'*v + u*v' leaving out terms with a zero factor."""
    terms = product_rule_forward(args, diff_args, zero.rep, Product.rep)
    return Sum.rep(*terms)


def diff_power(args: Sequence[Tree], diff_args: Sequence[Tree]) -> Tree:
    """(u^n)' = n*u^(n-1)*u'."""
    base, exponent = args
    n = exponent.value.value
    return Product.rep(_const(n), Power.rep(base, _const(n - 1)), diff_args[0])


def diff_sqrt(args: Sequence[Tree], diff_args: Sequence[Tree]) -> Tree:
    """sqrt(u)' = 0.5*u^(-0.5)*u'."""
    [base] = args
    return Product.rep(_const(0.5), Power.rep(base, _const(-0.5)), diff_args[0])


def diff_abs(args: Sequence[Tree], diff_args: Sequence[Tree]) -> Tree:
    """|u|' = u*|u^(-1)|*u' which is undefined at u = 0."""
    [base] = args
    sign = Product.rep(base, Abs.rep(Power.rep(base, negone.rep)))
    return Product.rep(sign, diff_args[0])


def diff_sin(args: Sequence[Tree], diff_args: Sequence[Tree]) -> Tree:
    """sin(u)' = cos(u)*u'."""
    [base] = args
    return Product.rep(cos.rep(base), diff_args[0])


def diff_cos(args: Sequence[Tree], diff_args: Sequence[Tree]) -> Tree:
    """cos(u)' = -1*sin(u)*u'."""
    if not args:
        return zero.rep
    [base] = args
    return Product.rep(negone.rep, sin.rep(base), diff_args[0])


def diff_tan(args: Sequence[Tree], diff_args: Sequence[Tree]) -> Tree:
    """tan(u)' = cos(u)^(-2)*u'."""
    [base] = args
    return Product.rep(Power.rep(cos.rep(base), _const(-2)), diff_args[0])


derivatives.add_atom_rule(ConstantType, lambda value: zero.rep)
derivatives.add_atom_rule(LinearType, lambda coeff: _const(coeff))
derivatives.add_rule(Sum.rep, diff_sum)
derivatives.add_rule(Difference.rep, diff_difference)
derivatives.add_rule(Product.rep, diff_product)
derivatives.add_rule(Power.rep, diff_power)
derivatives.add_rule(Sqrt.rep, diff_sqrt)
derivatives.add_rule(Abs.rep, diff_abs)
derivatives.add_rule(sin.rep, diff_sin)
derivatives.add_rule(cos.rep, diff_cos)
derivatives.add_rule(tan.rep, diff_tan)
