"""Module for all symcalc exceptions."""


class SymCalcError(Exception):
    """Superclass for all symcalc exceptions."""

    pass


class NoEvaluationRuleError(SymCalcError):
    """Raised when an :class:`Evaluator` has no rule for an expression."""

    pass


class NoDifferentiationRuleError(SymCalcError):
    """Raised when :class:`DiffProperties` has no rule for an expression."""

    pass
