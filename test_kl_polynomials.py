"""
Tests for the polynomial building blocks (q-factorials, fiber polynomials,
truncation-symmetrization).
"""

import pytest
import sympy as sp

from admissible_poset import PosetNode
from closure_errors import PolynomialDivisionError
from kl_polynomials import (
    X,
    add,
    basic_factor,
    degree,
    eval_at_zero,
    exact_divide,
    factor_product,
    fiber_polynomial,
    from_coefficients,
    multiply,
    one,
    trunc_symmetrize,
    zero,
)


def expr(poly):
    return sp.expand(poly.as_expr())


class TestRingHelpers:
    """Test the basic polynomial helpers"""

    def test_zero_and_one(self):
        """Test the additive and multiplicative identities"""
        assert zero().is_zero
        assert expr(one()) == 1

    def test_from_coefficients(self):
        """Test building a polynomial from a degree mapping"""
        assert expr(from_coefficients({0: 1, 2: 3})) == 1 + 3 * X**2
        assert from_coefficients({}).is_zero
        assert from_coefficients({4: 0}).is_zero

    def test_add_and_multiply(self):
        """Test ring operations on small polynomials"""
        f = from_coefficients({0: 1, 2: 1})
        g = from_coefficients({2: 1})
        assert expr(add(f, g)) == 1 + 2 * X**2
        assert expr(multiply(f, g)) == X**2 + X**4
        assert multiply(f, zero()).is_zero

    def test_degree_of_zero_is_zero(self):
        """Test that the zero polynomial is taken to have degree 0"""
        assert degree(zero()) == 0
        assert degree(one()) == 0
        assert degree(from_coefficients({4: 1})) == 4

    def test_eval_at_zero(self):
        """Test that the constant term is returned"""
        assert eval_at_zero(from_coefficients({0: 7, 2: 1})) == 7
        assert eval_at_zero(from_coefficients({2: 1})) == 0

    def test_exact_divide(self):
        """Test exact division and its failure modes"""
        f = sp.Poly(X**2 - 1, X, domain='ZZ')
        g = sp.Poly(X - 1, X, domain='ZZ')
        assert expr(exact_divide(f, g)) == X + 1

        with pytest.raises(PolynomialDivisionError, match="does not divide"):
            exact_divide(sp.Poly(X**2 + 1, X, domain='ZZ'), g)
        with pytest.raises(PolynomialDivisionError, match="zero polynomial"):
            exact_divide(f, zero())


class TestFactorials:
    """Test q-integers and q-factorials in q = x**2"""

    def test_basic_factor(self):
        """Test 1 + x**2 + ... + x**(2b)"""
        assert expr(basic_factor(0)) == 1
        assert expr(basic_factor(1)) == 1 + X**2
        assert expr(basic_factor(2)) == 1 + X**2 + X**4
        assert basic_factor(-1).is_zero

    def test_factor_product(self):
        """Test the q-factorial"""
        assert expr(factor_product(0)) == 1
        assert expr(factor_product(1)) == 1
        assert expr(factor_product(2)) == 1 + X**2
        assert expr(factor_product(3)) == sp.expand((1 + X**2) * (1 + X**2 + X**4))
        assert factor_product(-2).is_zero

    def test_factor_product_at_one_is_factorial(self):
        """Test that the q-factorial specialises to the ordinary factorial"""
        for b in range(6):
            assert factor_product(b).eval(1) == sp.factorial(b)


class TestFiberPolynomial:
    """Test the fiber polynomial A_TX"""

    def test_divisor_at_point(self):
        """Test A between the base and Q for the G(2,4) divisor"""
        node = PosetNode((0,), (0,))
        assert expr(fiber_polynomial(node, (1,), (1,))) == 1 + X**2

    def test_equal_vectors_give_one(self):
        """Test that A_TT = 1"""
        node = PosetNode((1, 2), (0, 1))
        assert expr(fiber_polynomial(node, (1, 3), (1, 2))) == 1

    def test_two_essential_positions(self):
        """Test the offset applied to the second essential position"""
        node = PosetNode((0, 0), (0, 1))
        result = fiber_polynomial(node, (1, 3), (1, 1))
        assert expr(result) == sp.expand((1 + X**2) * (1 + X**2 + X**4))

    def test_positive_at_one(self):
        """Test that the fiber polynomial at x=1 is a positive integer"""
        node = PosetNode((0, 0), (0, 1))
        for target in [(0, 1), (1, 0), (1, 1), (2, 1)]:
            assert fiber_polynomial(node, (1, 3), target).eval(1) > 0

    def test_not_contained_raises(self):
        """Test that T <= X failing makes the division non-exact"""
        node = PosetNode((1,), (0,))
        with pytest.raises(PolynomialDivisionError):
            fiber_polynomial(node, (1,), (0,))

    def test_empty_essential_set(self):
        """Test that a node without essential positions is rejected"""
        with pytest.raises(ValueError, match="at least one essential"):
            fiber_polynomial(PosetNode((0,), ()), (1,), (1,))


class TestTruncSymmetrize:
    """Test the truncation-symmetrization operator"""

    def test_palindromic_input_is_kept(self):
        """Test that a palindrome around n is returned unchanged"""
        f = from_coefficients({0: 1, 2: 1, 4: 1})
        assert expr(trunc_symmetrize(2, f)) == 1 + X**2 + X**4

    def test_mirroring(self):
        """Test that upper coefficients are mirrored below n"""
        f = from_coefficients({0: 1, 2: 2, 4: 3})
        assert expr(trunc_symmetrize(2, f)) == 3 + 2 * X**2 + 3 * X**4

    def test_mirrored_terms_below_zero_are_dropped(self):
        """Test that mirrors landing at negative degree disappear"""
        f = from_coefficients({1: 1, 3: 2})
        assert expr(trunc_symmetrize(1, f)) == X + 2 * X**3

    def test_single_top_term(self):
        """Test the smooth G(2,4) split of 1 + x**2 at n = 2"""
        f = from_coefficients({0: 1, 2: 1})
        g = trunc_symmetrize(2, f)
        assert expr(g) == X**2
        assert expr(f - g) == 1

    def test_n_above_degree(self):
        """Test that n > deg f gives zero"""
        assert trunc_symmetrize(3, from_coefficients({0: 1, 2: 1})).is_zero

    def test_constant_input_gives_zero(self):
        """Test the M = 0 case, including non-zero constants"""
        assert trunc_symmetrize(0, from_coefficients({0: 5})).is_zero
        assert trunc_symmetrize(0, zero()).is_zero
        assert trunc_symmetrize(2, one()).is_zero

    def test_n_zero_keeps_constant(self):
        """Test that n = 0 keeps only the constant term"""
        assert expr(trunc_symmetrize(0, from_coefficients({0: 4, 2: 1}))) == 4

    def test_negative_n(self):
        """Test that a negative symmetry degree is rejected"""
        with pytest.raises(ValueError, match="non-negative"):
            trunc_symmetrize(-1, one())

    def test_idempotent(self):
        """Test that applying the operator twice changes nothing for n >= 1"""
        cases = [
            (2, from_coefficients({0: 1, 2: 2, 4: 3})),
            (1, from_coefficients({0: 2, 1: 1, 3: 2})),
            (3, from_coefficients({0: 1, 3: 4, 5: 1, 6: 2})),
        ]
        for n, f in cases:
            once = trunc_symmetrize(n, f)
            assert expr(trunc_symmetrize(n, once)) == expr(once)
