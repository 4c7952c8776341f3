"""
Error kinds raised while computing closure coefficients.

Input problems also derive from ValueError and internal invariant breaches
from ArithmeticError.
"""


class ClosureError(Exception):
    """Base class for every closure-coefficient failure."""


class InvalidVarietyError(ClosureError, ValueError):
    """The (I, J, K, L) data does not define a valid Schubert variety."""


class RedundancyError(ClosureError):
    """Every defining condition of S is redundant (S has no essential condition)."""


class ContainmentError(ClosureError, ValueError):
    """S' is not contained in S."""


class ClosureArithmeticError(ClosureError, ArithmeticError):
    """An exactness or sign invariant of the recursion was violated."""


class PolynomialDivisionError(ClosureArithmeticError):
    """A polynomial division that must be exact was not."""
