"""
Schubert variety data and the vector / essential-condition analyzer.

A Schubert variety S in the Grassmannian G(K, L) of K-planes in an
L-dimensional space is described by Omega incidence conditions

    dim(V ∩ F_{J[t]}) >= I[t]        t = 0..Omega-1

with respect to a fixed reference flag F. Sub-varieties of S are described by
an increment vector P >= 0: the variety with conditions I + P on the same
flag positions J. All positions in this module are 0-based.

Provided here:
- SchubertData: immutable (I, J, K, L) record
- is_valid_variety / essential_indices: validity bounds and essential positions
- is_admissible_relative_to / project_onto_flag: admissibility tests used by
  the poset generator and the recursion engine
- lambda_sequence / replace: the partition of a variety and the canonical
  representative of S' inside S
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np

from closure_errors import InvalidVarietyError


Vector = Tuple[int, ...]
EssentialSet = Tuple[int, ...]


@dataclass(frozen=True)
class SchubertData:
    """
    Defining data (I, J, K, L) of a Schubert variety.

    Attributes:
        I: Strictly increasing condition positions (intersection dimensions)
        J: Flag indices, one per condition
        K: Dimension of the subspaces
        L: Dimension of the ambient space
    """

    I: Tuple[int, ...]
    J: Tuple[int, ...]
    K: int
    L: int

    def __post_init__(self):
        object.__setattr__(self, 'I', tuple(int(v) for v in self.I))
        object.__setattr__(self, 'J', tuple(int(v) for v in self.J))
        object.__setattr__(self, 'K', int(self.K))
        object.__setattr__(self, 'L', int(self.L))
        if not self.I:
            raise InvalidVarietyError("At least one condition is required (I is empty)")
        if len(self.I) != len(self.J):
            raise InvalidVarietyError(
                f"I and J must have the same length (got {len(self.I)} and {len(self.J)})"
            )
        if any(a >= b for a, b in zip(self.I, self.I[1:])):
            raise InvalidVarietyError(f"I must be strictly increasing (got {list(self.I)})")

    @property
    def omega(self) -> int:
        """Number of conditions."""
        return len(self.I)

    def zero_vector(self) -> Vector:
        return (0,) * self.omega

    def is_valid(self, vector: Optional[Sequence[int]] = None) -> bool:
        if vector is None:
            vector = self.zero_vector()
        return is_valid_variety(vector, self.I, self.J, self.K, self.L)

    def essential_indices(self, vector: Optional[Sequence[int]] = None) -> EssentialSet:
        if vector is None:
            vector = self.zero_vector()
        return essential_indices(vector, self.I, self.J, self.K, self.L)

    def lambda_sequence(self, vector: Optional[Sequence[int]] = None) -> np.ndarray:
        """Partition of the sub-variety with conditions I + vector."""
        if vector is None:
            vector = self.zero_vector()
        shifted = [i + p for i, p in zip(self.I, vector)]
        return lambda_sequence(shifted, self.J, self.K, self.L)

    def restricted_to(self, positions: Sequence[int]) -> 'SchubertData':
        """Copy of this data keeping only the given condition positions."""
        return SchubertData(
            tuple(self.I[p] for p in positions),
            tuple(self.J[p] for p in positions),
            self.K,
            self.L,
        )


def dominates(upper: Sequence[int], lower: Sequence[int]) -> bool:
    """True iff lower[i] <= upper[i] for every coordinate."""
    return all(u >= v for u, v in zip(upper, lower))


def is_valid_variety(P: Sequence[int], I: Sequence[int], J: Sequence[int], K: int, L: int) -> bool:
    """
    Check that the increment P defines a Schubert variety.

    Walks the conditions in order and fails at the first violated bound:
    the first coordinate must keep I + P below J; interior coordinates must
    keep I + P non-decreasing with jumps no larger than the jumps of J; the
    last coordinate additionally has to stay inside [K - L + J - I, K - I] so
    that the condition is realisable by a K-plane.
    """
    omega = len(I)
    if len(P) != omega:
        return False

    if not 0 <= P[0] <= J[0] - I[0]:
        return False
    if omega == 1:
        return K - L + J[0] - I[0] <= P[0] <= K - I[0]

    for a in range(1, omega):
        prev = I[a - 1] + P[a - 1]
        lower = max(0, prev - I[a])
        upper = min(J[a] - J[a - 1] + prev - I[a], J[a] - I[a])
        if a == omega - 1:
            lower = max(lower, K - L + J[a] - I[a])
            upper = min(upper, K - I[a])
        if not lower <= P[a] <= upper:
            return False
    return True


def essential_indices(P: Sequence[int], I: Sequence[int], J: Sequence[int], K: int, L: int) -> EssentialSet:
    """
    Positions of the conditions of I + P that cannot be dropped.

    A condition is redundant when it is implied by its right neighbour (the
    jump of I + P reaches the jump of J), when it coincides with its left
    neighbour (I + P does not increase), or, for the last condition, when every
    K-plane satisfies it.
    """
    omega = len(I)
    if omega == 1:
        return (0,)

    pi = [i + p for i, p in zip(I, P)]
    essential = []
    if pi[1] - pi[0] < J[1] - J[0]:
        essential.append(0)
    for a in range(1, omega - 1):
        if pi[a + 1] - pi[a] < J[a + 1] - J[a] and pi[a - 1] < pi[a]:
            essential.append(a)
    last = omega - 1
    if K + J[last] < L + pi[last] and pi[last - 1] < pi[last]:
        essential.append(last)
    return tuple(essential)


def is_admissible_relative_to(base: Sequence[int], candidate: Sequence[int]) -> bool:
    """True iff candidate is no longer than base and all its positions are in base."""
    if len(candidate) > len(base):
        return False
    members = set(base)
    return all(position in members for position in candidate)


def project_onto_flag(node, I: Sequence[int], J: Sequence[int], K: int, L: int,
                      vector: Sequence[int]) -> EssentialSet:
    """
    Essential positions of a vector seen through the flag of a node.

    Only the node's essential positions are kept; the essential rule is
    re-applied to that subsequence and the result is mapped back to the
    original positions.

    Args:
        node: Object with an ``essential`` attribute (a PosetNode)
        I, J, K, L: Data of the base variety
        vector: Vector contained in the node's variety

    Returns:
        The projected essential positions, in increasing order
    """
    positions = node.essential
    projected = essential_indices(
        [vector[p] for p in positions],
        [I[p] for p in positions],
        [J[p] for p in positions],
        K,
        L,
    )
    return tuple(positions[k] for k in projected)


def lambda_sequence(I: Sequence[int], J: Sequence[int], K: int, L: int) -> np.ndarray:
    """
    Partition (length K) of the Schubert variety with conditions (I, J).

    The coordinates I[t-1]+1 .. I[t] (1-based, I[-1] = 0) carry the value
    L - K - J[t] + I[t]; the coordinates past the last condition are zero.

    Raises:
        InvalidVarietyError: If I is decreasing somewhere or exceeds K
    """
    conditions = np.asarray(I, dtype=np.int64)
    jumps = np.asarray(J, dtype=np.int64)
    widths = np.diff(conditions, prepend=0)
    if np.any(widths < 0) or conditions[-1] > K:
        raise InvalidVarietyError(
            f"Conditions {conditions.tolist()} do not fit a {K}-plane"
        )
    values = L - K - jumps + conditions
    padding = np.zeros(K - int(conditions[-1]), dtype=np.int64)
    return np.concatenate([np.repeat(values, widths), padding])


def replace(I: Sequence[int], J: Sequence[int], K: int, L: int, lam_prime: Sequence[int]) -> Vector:
    """
    Canonical representative Q of S' inside S.

    The breakpoints L - K + h - lam_prime[h] (h = 1..K, followed by the
    sentinel L + 1) are the flag indices at which a generic point of S' gains
    one dimension. For each condition t of S, the number of breakpoints not
    exceeding J[t] is the intersection dimension a generic point of S' has
    with F_{J[t]}; Q[t] is its excess over I[t].

    Args:
        I, J, K, L: Data of S (restricted to its essential conditions)
        lam_prime: Partition of S' (see lambda_sequence)

    Returns:
        The representative vector Q
    """
    lam_prime = np.asarray(lam_prime, dtype=np.int64)
    breakpoints = L - K + np.arange(1, K + 1, dtype=np.int64) - lam_prime
    breakpoints = np.append(breakpoints, L + 1)
    counts = np.searchsorted(breakpoints, np.asarray(J, dtype=np.int64), side='right')
    return tuple(int(c) - int(i) for c, i in zip(counts, I))
