"""Exception types raised when building expressions."""
from symcalc.core.exceptions import SymCalcError


class ExpressionError(SymCalcError):
    """Base class for errors in constructing expressions."""

    pass


class ExpressifyError(ExpressionError, TypeError):
    """Raised when an object cannot be converted to an expression."""

    pass


class ArityError(ExpressionError, TypeError):
    """Raised when an expression is built with the wrong number of children."""

    pass
