"""
Kazhdan-Lusztig closure coefficient calculator

Computes the coefficient B0Q of the closure of one Schubert variety S' inside
another Schubert variety S in the Grassmannian G(K, L):

- reduce: validate both inputs and drop the redundant conditions of S
- representative: check S' is contained in S and compute the vector Q
  describing S' relative to the reduced S
- build_poset: the layered poset ADM between the zero vector and Q
- compute: run the double recursion and read off B0Q

Every step is cached on the calculator, so the steps may be called one at a
time for tracing and compute() reuses whatever was already built.
"""

import time
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

import sympy as sp

from admissible_poset import AdmissiblePoset
from closure_errors import ContainmentError, InvalidVarietyError, RedundancyError
from kl_polynomials import one
from kl_recursion import KLRecursionEngine
from schubert_data import EssentialSet, SchubertData, Vector, replace


STATUS_COMPUTED = 'computed'
STATUS_TRIVIAL = 'trivial'
STATUS_REDUNDANT = 'redundant'

# pipeline stages in execution order
STAGES = ('reduce', 'representative', 'build_poset', 'recursion')


@dataclass
class ClosureResult:
    """
    Outcome of a closure-coefficient computation.

    Attributes:
        status: 'computed', 'trivial' (S' generic in S, coefficient 1) or
            'redundant' (S has no essential condition, no coefficient)
        coefficient: B0Q as a sympy Poly in x, None when redundant
        schubert: S restricted to its essential conditions (the input S when redundant)
        schubert_prime: The input S'
        essential: Essential positions of the input S
        representative: The vector Q, None when redundant
        poset: AdmissiblePoset, only for status 'computed'
        engine: KLRecursionEngine holding the A, G, B tables, only for 'computed'
        message: Human-readable summary
        elapsed: Wall-clock seconds spent in compute()
    """

    status: str
    coefficient: Optional[sp.Poly]
    schubert: SchubertData
    schubert_prime: SchubertData
    essential: EssentialSet = ()
    representative: Optional[Vector] = None
    poset: Optional[AdmissiblePoset] = None
    engine: Optional[KLRecursionEngine] = None
    message: str = ''
    elapsed: float = 0.0

    @property
    def is_redundant(self) -> bool:
        return self.status == STATUS_REDUNDANT

    @property
    def is_trivial(self) -> bool:
        return self.status == STATUS_TRIVIAL

    def coefficient_expr(self):
        """Coefficient as a sympy expression (None when redundant)."""
        if self.coefficient is None:
            return None
        return self.coefficient.as_expr()


class ClosureCoefficientCalculator:
    """
    Closure coefficient B0Q of S' inside S.

    The calculator holds one pair (S, S') and caches each intermediate result
    (reduced data, representative, poset, recursion engine).
    """

    def __init__(self, schubert: SchubertData, schubert_prime: SchubertData, *,
                 verbose=False, show_performance_warnings=False, poset_size_threshold=5000):
        """
        Initialize the calculator.

        Args:
            schubert: Data (I, J, K, L) of the ambient variety S
            schubert_prime: Data (I', J', K, L) of the sub-variety S'
            verbose: If True, print a progress line for each stage
            show_performance_warnings: If True, print a warning when the poset
                has more than poset_size_threshold nodes
            poset_size_threshold: Node count above which the poset is considered large

        Raises:
            TypeError: If either argument is not a SchubertData
            InvalidVarietyError: If S and S' live in different Grassmannians
        """
        if not isinstance(schubert, SchubertData) or not isinstance(schubert_prime, SchubertData):
            raise TypeError("schubert and schubert_prime must be SchubertData instances")
        if (schubert.K, schubert.L) != (schubert_prime.K, schubert_prime.L):
            raise InvalidVarietyError(
                f"S lives in G({schubert.K},{schubert.L}) but S' lives in "
                f"G({schubert_prime.K},{schubert_prime.L})"
            )
        self.schubert = schubert
        self.schubert_prime = schubert_prime

        self.verbose = verbose
        self.show_performance_warnings = show_performance_warnings
        self.poset_size_threshold = poset_size_threshold

        self._reduced: Optional[Tuple[SchubertData, EssentialSet]] = None
        self._representative: Optional[Vector] = None
        self._poset: Optional[AdmissiblePoset] = None
        self._engine: Optional[KLRecursionEngine] = None
        self._result: Optional[ClosureResult] = None

        self._stage_time = dict.fromkeys(STAGES, 0.0)
        self._stage_calls = dict.fromkeys(STAGES, 0)

    @classmethod
    def from_conditions(cls, I: Sequence[int], J: Sequence[int], K: int, L: int,
                        I_prime: Sequence[int], J_prime: Sequence[int], **kwargs):
        """
        Create a calculator from raw condition lists (0-based data, as everywhere).

        Example:
            >>> calc = ClosureCoefficientCalculator.from_conditions([1], [2], 2, 4, [2], [2])
            >>> calc.compute().coefficient_expr()
            x**2 + 1
        """
        return cls(SchubertData(I, J, K, L), SchubertData(I_prime, J_prime, K, L), **kwargs)

    def _log(self, message: str):
        if self.verbose:
            print(message)

    def _record(self, stage: str, start: float):
        self._stage_time[stage] += time.perf_counter() - start
        self._stage_calls[stage] += 1

    def reduce(self) -> Tuple[SchubertData, EssentialSet]:
        """
        Validate S and S' and restrict S to its essential conditions.

        Returns:
            (reduced S, essential positions of the input S)

        Raises:
            InvalidVarietyError: If S or S' is not a valid variety
            RedundancyError: If every condition of S is redundant
        """
        if self._reduced is not None:
            return self._reduced
        start = time.perf_counter()
        try:
            for name, data in (("S", self.schubert), ("S'", self.schubert_prime)):
                if not data.is_valid():
                    raise InvalidVarietyError(
                        f"input does not define a valid variety: {name} = "
                        f"(I={list(data.I)}, J={list(data.J)}, K={data.K}, L={data.L})"
                    )
            essential = self.schubert.essential_indices()
            if not essential:
                raise RedundancyError("all conditions redundant")
            reduced = self.schubert.restricted_to(essential)
        finally:
            self._record('reduce', start)
        self._log(f"Reduced S to conditions {list(essential)}: I={list(reduced.I)}, J={list(reduced.J)}")
        self._reduced = (reduced, essential)
        return self._reduced

    def representative(self) -> Vector:
        """
        Vector Q describing S' relative to the reduced S.

        Raises:
            ContainmentError: If the partition of S exceeds that of S' somewhere
        """
        if self._representative is not None:
            return self._representative
        reduced, _ = self.reduce()
        start = time.perf_counter()
        try:
            lam = reduced.lambda_sequence()
            lam_prime = self.schubert_prime.lambda_sequence()
            if (lam > lam_prime).any():
                raise ContainmentError(
                    f"S' not contained in S: partition {lam.tolist()} exceeds {lam_prime.tolist()}"
                )
            q = replace(reduced.I, reduced.J, reduced.K, reduced.L, lam_prime)
        finally:
            self._record('representative', start)
        self._log(f"Representative Q = {list(q)}")
        self._representative = q
        return q

    def build_poset(self) -> AdmissiblePoset:
        """
        Layered poset ADM between the zero vector and Q.

        Raises:
            ValueError: If Q is the zero vector (there is nothing between S and S')
        """
        if self._poset is not None:
            return self._poset
        reduced, _ = self.reduce()
        q = self.representative()
        start = time.perf_counter()
        try:
            poset = AdmissiblePoset.build(reduced, q)
        finally:
            self._record('build_poset', start)
        if self.show_performance_warnings and poset.node_count > self.poset_size_threshold:
            print(f"Warning: Poset size ({poset.node_count}) exceeds threshold ({self.poset_size_threshold}). "
                  f"The recursion visits every pair of nodes.")
        self._log(f"Built poset with layer sizes {poset.layer_sizes}")
        self._poset = poset
        return poset

    def compute(self) -> ClosureResult:
        """
        Compute B0Q.

        A redundant S is reported through the result status rather than an
        exception; invalid input, failed containment and arithmetic failures
        propagate.

        Returns:
            ClosureResult
        """
        if self._result is not None:
            return self._result
        start = time.perf_counter()

        try:
            reduced, essential = self.reduce()
        except RedundancyError as exc:
            self._result = ClosureResult(
                status=STATUS_REDUNDANT,
                coefficient=None,
                schubert=self.schubert,
                schubert_prime=self.schubert_prime,
                message=str(exc),
                elapsed=time.perf_counter() - start,
            )
            return self._result

        q = self.representative()
        if not any(q):
            self._result = ClosureResult(
                status=STATUS_TRIVIAL,
                coefficient=one(),
                schubert=reduced,
                schubert_prime=self.schubert_prime,
                essential=essential,
                representative=q,
                message="S' is generic in S",
                elapsed=time.perf_counter() - start,
            )
            return self._result

        poset = self.build_poset()
        engine = KLRecursionEngine(poset, reduced)
        recursion_start = time.perf_counter()
        try:
            coefficient = engine.run()
        finally:
            self._record('recursion', recursion_start)
        self._engine = engine
        self._log(f"B0Q = {coefficient.as_expr()}")

        self._result = ClosureResult(
            status=STATUS_COMPUTED,
            coefficient=coefficient,
            schubert=reduced,
            schubert_prime=self.schubert_prime,
            essential=essential,
            representative=q,
            poset=poset,
            engine=engine,
            message=f"computed over {poset.node_count} poset nodes",
            elapsed=time.perf_counter() - start,
        )
        return self._result

    def get_cache_statistics(self) -> Dict[str, object]:
        """
        Get statistics about cached computations.

        Returns:
            Dictionary with:
            - poset_nodes: Number of nodes in ADM (0 before build_poset)
            - layer_sizes: Node count per layer
            - A_entries, G_entries, B_entries: Written table cells
            - replacement_lookups: Non-admissible pairs sent to the replacement search
            - unmatched_pairs: Searches that found no replacement node
            - undefined_borrows: Matches whose borrowed B entry was undefined
        """
        stats = {
            'poset_nodes': self._poset.node_count if self._poset is not None else 0,
            'layer_sizes': self._poset.layer_sizes if self._poset is not None else [],
            'A_entries': 0,
            'G_entries': 0,
            'B_entries': 0,
            'replacement_lookups': 0,
            'unmatched_pairs': 0,
            'undefined_borrows': 0,
        }
        if self._engine is not None:
            stats.update(self._engine.get_table_statistics())
        return stats

    def get_timing_statistics(self) -> Dict[str, Dict[str, float]]:
        """Per-stage total_time, call_count and avg_time, in pipeline order."""
        return {
            stage: {
                'total_time': self._stage_time[stage],
                'call_count': self._stage_calls[stage],
                'avg_time': self._stage_time[stage] / self._stage_calls[stage] if self._stage_calls[stage] else 0.0,
            }
            for stage in STAGES
        }

    def reset_timing_statistics(self):
        self._stage_time = dict.fromkeys(STAGES, 0.0)
        self._stage_calls = dict.fromkeys(STAGES, 0)

    def print_performance_report(self):
        """Print table sizes and the time spent in each stage that ran."""
        cache_stats = self.get_cache_statistics()
        print(f"\nClosure statistics ({self.schubert.omega} conditions, G({self.schubert.K},{self.schubert.L}))")
        print(f"  poset: {cache_stats['poset_nodes']} nodes, layers {cache_stats['layer_sizes']}")
        print(f"  tables: A={cache_stats['A_entries']} G={cache_stats['G_entries']} B={cache_stats['B_entries']}")
        print(f"  replacements: {cache_stats['replacement_lookups']} lookups, "
              f"{cache_stats['unmatched_pairs']} unmatched, {cache_stats['undefined_borrows']} undefined borrows")
        for stage, stats in self.get_timing_statistics().items():
            if stats['call_count']:
                print(f"  {stage:<16} {stats['total_time']:.4f} s ({stats['call_count']} call(s))")


def compute_closure_coefficient(schubert, schubert_prime, **options) -> ClosureResult:
    """
    Compute the closure coefficient B0Q of S' inside S.

    Args:
        schubert: SchubertData or an (I, J, K, L) tuple for S
        schubert_prime: SchubertData or an (I', J', K, L) tuple for S'
        **options: Keyword arguments for ClosureCoefficientCalculator

    Returns:
        ClosureResult
    """
    if not isinstance(schubert, SchubertData):
        schubert = SchubertData(*schubert)
    if not isinstance(schubert_prime, SchubertData):
        schubert_prime = SchubertData(*schubert_prime)
    return ClosureCoefficientCalculator(schubert, schubert_prime, **options).compute()
