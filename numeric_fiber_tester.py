"""
Numeric Fiber Tester Module

This module recomputes the fiber polynomials of a poset at x = 1 with ordinary
binomial coefficients and compares them against the symbolic fiber
polynomials. At x = 1 every q-binomial becomes the ordinary binomial
coefficient, so A_TX(1) counts the cells of the fiber of T over X.

The primary use case is testing: the symbolic path goes through exact
polynomial division of q-factorials, the numeric path never divides, so
agreement on every containment pair of a poset checks the division logic
independently of sympy.
"""

from math import comb
from typing import List, Sequence, Tuple

import numpy as np

from admissible_poset import AdmissiblePoset, PosetNode
from kl_polynomials import fiber_polynomial
from schubert_data import dominates


class NumericFiberTester:
    """
    Numerical evaluation of fiber polynomials at x = 1.

    Attributes
    ----------
    poset : AdmissiblePoset
        Poset whose containment pairs are checked
    conditions : Tuple[int, ...]
        Condition positions I of the (reduced) base variety
    """

    def __init__(self, poset: AdmissiblePoset):
        self.poset = poset
        self.conditions = tuple(poset.data.I)

    def numeric_fiber_count(self, t: PosetNode, x: Sequence[int]) -> int:
        """
        A_TX(1) as a product of binomial coefficients.

        Parameters
        ----------
        t : PosetNode
            Lower node T
        x : Sequence[int]
            Upper vector X with T <= X

        Returns
        -------
        int
            Number of cells of the fiber (0 when T <= X fails)
        """
        if not dominates(x, t.vector):
            return 0
        I = self.conditions
        count = 1
        offset = 0
        for e in t.essential:
            count *= comb(I[e] + x[e] - offset, x[e] - t.vector[e])
            offset = I[e] + t.vector[e]
        return count

    def symbolic_fiber_count(self, t: PosetNode, x: Sequence[int]) -> int:
        """Symbolic fiber polynomial evaluated at x = 1."""
        return int(fiber_polynomial(t, self.conditions, x).eval(1))

    def count_matrix(self, h: int, sigma: int) -> np.ndarray:
        """
        Numeric fiber counts between layer h and layer h + sigma.

        Returns
        -------
        np.ndarray
            Integer matrix of shape (len(layer h), len(layer h + sigma))
        """
        lower = self.poset[h]
        upper = self.poset[h + sigma]
        counts = np.zeros((len(lower), len(upper)), dtype=np.int64)
        for z, t in enumerate(lower):
            for w, x in enumerate(upper):
                counts[z, w] = self.numeric_fiber_count(t, x.vector)
        return counts

    def verify_poset(self) -> List[Tuple[Tuple[int, ...], Tuple[int, ...], int, int]]:
        """
        Compare numeric and symbolic counts on every containment pair.

        Returns
        -------
        List[Tuple]
            (T, X, numeric, symbolic) for each disagreeing pair; empty when
            the two paths agree everywhere
        """
        mismatches = []
        n = len(self.poset)
        for sigma in range(1, n):
            for h in range(n - sigma):
                counts = self.count_matrix(h, sigma)
                for z, t in enumerate(self.poset[h]):
                    for w, x in enumerate(self.poset[h + sigma]):
                        if not dominates(x.vector, t.vector):
                            continue
                        numeric = int(counts[z, w])
                        symbolic = self.symbolic_fiber_count(t, x.vector)
                        if numeric != symbolic:
                            mismatches.append((t.vector, x.vector, numeric, symbolic))
        return mismatches
