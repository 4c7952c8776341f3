"""
Polynomial building blocks for the Kazhdan-Lusztig closure recursion.

All polynomials are exact ``sympy.Poly`` objects over ZZ in the single formal
variable ``x``. Only even powers of ``x`` ever appear in the building blocks
(x**2 plays the role of the usual KL variable q), but the helpers below do not
rely on that.

Provided here:
- basic ring helpers (zero, one, degree, constant term, exact division)
- basic_factor / factor_product: the q-integers and q-factorials in q = x**2
- fiber_polynomial: the fiber polynomial A_TX of two containment-related vectors
- trunc_symmetrize: the truncation-symmetrization operator used to split a raw
  polynomial into its palindromic part G and its residual B
"""

from typing import Dict, Sequence

import sympy as sp
from sympy.polys.polyerrors import ExactQuotientFailed

from closure_errors import PolynomialDivisionError


X = sp.Symbol('x')

_FACTOR_PRODUCT_CACHE: Dict[int, sp.Poly] = {}


def zero() -> sp.Poly:
    """The zero polynomial."""
    return sp.Poly(0, X, domain='ZZ')


def one() -> sp.Poly:
    """The multiplicative identity."""
    return sp.Poly(1, X, domain='ZZ')


def from_coefficients(coefficients: Dict[int, int]) -> sp.Poly:
    """
    Build a polynomial from a {degree: coefficient} mapping.

    Args:
        coefficients: Mapping from non-negative degree to integer coefficient

    Returns:
        The polynomial sum(c * x**d)
    """
    terms = [int(c) * X**int(d) for d, c in coefficients.items() if c]
    return sp.Poly(sp.Add(*terms), X, domain='ZZ')


def add(f: sp.Poly, g: sp.Poly) -> sp.Poly:
    return f + g


def multiply(f: sp.Poly, g: sp.Poly) -> sp.Poly:
    return f * g


def degree(f: sp.Poly) -> int:
    """Degree of f, with the zero polynomial taken to have degree 0."""
    if f.is_zero:
        return 0
    return int(f.degree())


def eval_at_zero(f: sp.Poly) -> int:
    """Constant term of f."""
    return int(f.nth(0))


def exact_divide(f: sp.Poly, g: sp.Poly) -> sp.Poly:
    """
    Exact quotient f / g.

    Raises:
        PolynomialDivisionError: If g is zero or does not divide f exactly
    """
    if g.is_zero:
        raise PolynomialDivisionError(f"Division of {f.as_expr()} by the zero polynomial")
    try:
        return f.exquo(g)
    except ExactQuotientFailed as exc:
        raise PolynomialDivisionError(
            f"{g.as_expr()} does not divide {f.as_expr()} exactly"
        ) from exc


def basic_factor(b: int) -> sp.Poly:
    """
    The q-integer 1 + x**2 + ... + x**(2b).

    Returns the zero polynomial for b < 0.
    """
    if b < 0:
        return zero()
    return from_coefficients({2 * a: 1 for a in range(b + 1)})


def factor_product(b: int) -> sp.Poly:
    """
    The q-factorial prod_{a=0}^{b-1} basic_factor(a).

    Equal to one() for b in {0, 1} and to the zero polynomial for b < 0.
    Results are memoised per b.
    """
    if b < 0:
        return zero()
    cached = _FACTOR_PRODUCT_CACHE.get(b)
    if cached is not None:
        return cached
    result = one()
    for a in range(1, b):
        result = multiply(result, basic_factor(a))
    _FACTOR_PRODUCT_CACHE[b] = result
    return result


def fiber_polynomial(node, conditions: Sequence[int], target: Sequence[int]) -> sp.Poly:
    """
    Fiber polynomial A_TX of a node T and a vector X with T <= X.

    The first essential position e1 contributes the q-binomial

        FP(I[e1] + X[e1]) / (FP(I[e1] + T[e1]) * FP(X[e1] - T[e1]))

    and every further essential position e_k contributes the same ratio with
    I[e_(k-1)] + T[e_(k-1)] subtracted from the first two arguments.

    Args:
        node: Object with ``vector`` and ``essential`` attributes (a PosetNode)
        conditions: Condition positions I of the base variety
        target: The vector X

    Returns:
        A_TX as an integer polynomial

    Raises:
        ValueError: If the node has no essential positions
        PolynomialDivisionError: If T <= X does not hold
    """
    essential = node.essential
    if not essential:
        raise ValueError("fiber_polynomial requires a node with at least one essential position")
    t = node.vector

    first = essential[0]
    result = exact_divide(
        factor_product(conditions[first] + target[first]),
        multiply(factor_product(conditions[first] + t[first]), factor_product(target[first] - t[first])),
    )
    for prev, cur in zip(essential, essential[1:]):
        offset = conditions[prev] + t[prev]
        result = multiply(result, exact_divide(
            factor_product(conditions[cur] + target[cur] - offset),
            multiply(factor_product(conditions[cur] + t[cur] - offset), factor_product(target[cur] - t[cur])),
        ))
    return result


def trunc_symmetrize(n: int, f: sp.Poly) -> sp.Poly:
    """
    Palindromic part of f around degree n.

    With M = degree(f) and c_i the coefficient of f at degree n + i, the result
    keeps c_i at degree n + i (i = 0..M-n) and mirrors c_t to degree n - t for
    t = 1..M-n, dropping mirrored terms that would land below degree 0.

    Edge cases follow the defining formula literally: M = 0 (which includes
    every non-zero constant) gives zero, n > M gives zero and n = 0 gives the
    constant term of f.

    Args:
        n: Non-negative symmetry degree (the codimension MTX in the recursion)
        f: Polynomial to split

    Returns:
        The truncated-symmetrized polynomial G
    """
    n = int(n)
    if n < 0:
        raise ValueError(f"Symmetry degree must be non-negative (got {n})")
    m = degree(f)
    if m == 0 or n > m:
        return zero()
    if n == 0:
        return from_coefficients({0: eval_at_zero(f)})

    coefficients: Dict[int, int] = {}
    for i in range(m - n + 1):
        c = int(f.nth(n + i))
        if c == 0:
            continue
        coefficients[n + i] = c
        if i > 0 and n - i >= 0:
            coefficients[n - i] = c
    return from_coefficients(coefficients)
