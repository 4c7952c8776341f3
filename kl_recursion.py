"""
Double recursion over ADM computing the A, G and B polynomial tables.

For every ordered pair of nodes T = node(h, z), X = node(h + sigma, w):

  A[h,z,sigma,w]  fiber polynomial of T over X (zero unless T <= X)
  G[h,z,sigma,w]  palindromic part of the raw polynomial R (admissible pairs)
  B[h,z,sigma,w]  residual R - G, or a value borrowed from a replacement node
                  when X is not admissible relative to T

Entries for offset sigma only read entries with strictly smaller offsets, so
the tables are filled in ascending sigma and every cell is written once. The
closure coefficient is the corner B[0,0,n-1,0].
"""

import warnings
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

import sympy as sp

from admissible_poset import AdmissiblePoset, PosetNode
from closure_errors import ClosureArithmeticError
from kl_polynomials import add, fiber_polynomial, multiply, one, trunc_symmetrize, zero
from schubert_data import SchubertData, Vector, dominates, is_admissible_relative_to, project_onto_flag


_UNSET = object()


class PairTable:
    """
    Write-once table indexed by (layer h, position z, offset sigma, position w).

    Storage is one fixed-size block per (h, sigma) holding
    len(layer h) x len(layer h + sigma) cells. Reading an unwritten cell
    returns the table default.
    """

    def __init__(self, layer_sizes: Sequence[int], default=None, name: str = "table"):
        self.layer_sizes = list(layer_sizes)
        self.default = default
        self.name = name
        n = len(self.layer_sizes)
        self._cells: List[List[Optional[List[list]]]] = []
        for h in range(n):
            # offset 0 is never used; keep the slot so sigma indexes directly
            blocks: List[Optional[List[list]]] = [None]
            for sigma in range(1, n - h):
                blocks.append([[_UNSET] * self.layer_sizes[h + sigma] for _ in range(self.layer_sizes[h])])
            self._cells.append(blocks)
        self._written = 0

    def get(self, h: int, z: int, sigma: int, w: int):
        value = self._cells[h][sigma][z][w]
        return self.default if value is _UNSET else value

    def is_set(self, h: int, z: int, sigma: int, w: int) -> bool:
        return self._cells[h][sigma][z][w] is not _UNSET

    def set(self, h: int, z: int, sigma: int, w: int, value) -> None:
        row = self._cells[h][sigma][z]
        if row[w] is not _UNSET:
            raise RuntimeError(f"{self.name}[{h},{z},{sigma},{w}] is already written")
        row[w] = value
        self._written += 1

    def __len__(self) -> int:
        """Number of written cells."""
        return self._written

    def entries(self) -> Iterator[Tuple[Tuple[int, int, int, int], object]]:
        """Written cells in (sigma, h, z, w) order."""
        n = len(self.layer_sizes)
        for sigma in range(1, n):
            for h in range(n - sigma):
                for z, row in enumerate(self._cells[h][sigma]):
                    for w, value in enumerate(row):
                        if value is not _UNSET:
                            yield (h, z, sigma, w), value


class KLRecursionEngine:
    """
    Computes the A, G, B tables over an AdmissiblePoset.

    Attributes:
        poset: The poset ADM
        data: SchubertData of the base variety (restricted to essential conditions)
        A, G, B: PairTable instances (A defaults to zero, G and B to None)
    """

    def __init__(self, poset: AdmissiblePoset, data: Optional[SchubertData] = None):
        self.poset = poset
        self.data = data if data is not None else poset.data
        sizes = poset.layer_sizes
        self.A = PairTable(sizes, default=zero(), name="A")
        self.G = PairTable(sizes, default=None, name="G")
        self.B = PairTable(sizes, default=None, name="B")

        # sum of the partition of every node; MTX is a difference of two of them
        self._weights: Dict[Vector, int] = {}
        for layer in poset:
            for node in layer:
                self._weights[node.vector] = int(self.data.lambda_sequence(node.vector).sum())

        self.replacement_lookups = 0
        self.unmatched_pairs = 0
        self.undefined_borrows = 0
        self._result: Optional[sp.Poly] = None

    def run(self) -> sp.Poly:
        """
        Fill the tables and return the closure coefficient B[0,0,n-1,0].

        Raises:
            ClosureArithmeticError: If a codimension is negative or the corner
                entry stays undefined
        """
        if self._result is not None:
            return self._result

        layers = self.poset.layers
        n = len(layers)
        if n < 2:
            raise ValueError("The poset needs at least a base layer and a target layer")

        for sigma in range(1, n):
            for h in range(n - sigma):
                for z, t in enumerate(layers[h]):
                    for w, x in enumerate(layers[h + sigma]):
                        self._fill_pair(h, z, sigma, w, t, x)

        result = self.B.get(0, 0, n - 1, 0)
        if result is None:
            raise ClosureArithmeticError(
                f"B between the base node and Q={self.poset.target.vector} is undefined"
            )
        self._result = result
        return result

    def codimension(self, t: PosetNode, x: PosetNode) -> int:
        """MTX: difference of the partition sizes of X and T."""
        mtx = self._weights[x.vector] - self._weights[t.vector]
        if mtx < 0:
            warnings.warn(
                f"Negative codimension {mtx} between {t.vector} and {x.vector}",
                RuntimeWarning,
            )
            raise ClosureArithmeticError(
                f"Codimension between {t.vector} and {x.vector} is negative ({mtx})"
            )
        return mtx

    def find_replacement(self, h: int, sigma: int, projected: Sequence[int],
                         vector: Sequence[int]) -> Optional[Tuple[int, int]]:
        """
        First node in layers h .. h+sigma-1 standing in for a non-admissible vector.

        A node qualifies when its essential set has len(projected) positions and
        it agrees with ``vector`` on every projected position. Only the
        contiguous block of each layer with that essential size is scanned.

        Returns:
            (layer, position) of the first match, or None
        """
        size = len(projected)
        for hh in range(h, h + sigma):
            layer = self.poset.layers[hh]
            for position in layer.positions_with_essential_size(size):
                candidate = layer[position].vector
                if all(candidate[i] == vector[i] for i in projected):
                    return hh, position
        return None

    def _fill_pair(self, h: int, z: int, sigma: int, w: int, t: PosetNode, x: PosetNode) -> None:
        if not dominates(x.vector, t.vector):
            return
        a = fiber_polynomial(t, self.data.I, x.vector)
        self.A.set(h, z, sigma, w, a)
        if a.is_zero:
            return

        if is_admissible_relative_to(t.essential, x.essential):
            mtx = self.codimension(t, x)
            raw = a
            for delta in range(1, sigma):
                hy = h + delta
                for y in range(len(self.poset.layers[hy])):
                    if self.A.get(h, z, delta, y).is_zero or self.A.get(hy, y, sigma - delta, w).is_zero:
                        continue
                    g = self.G.get(h, z, delta, y)
                    b = self.B.get(hy, y, sigma - delta, w)
                    if g is None or b is None:
                        continue
                    raw = add(raw, -multiply(g, b))
            g_hat = trunc_symmetrize(mtx, raw)
            self.G.set(h, z, sigma, w, g_hat)
            self.B.set(h, z, sigma, w, add(raw, -g_hat))
            return

        data = self.data
        projected = project_onto_flag(t, data.I, data.J, data.K, data.L, x.vector)
        self.replacement_lookups += 1
        match = self.find_replacement(h, sigma, projected, x.vector)
        if match is None:
            self.unmatched_pairs += 1
            return
        hh, position = match
        if hh == h:
            self.B.set(h, z, sigma, w, one())
            return
        borrowed = self.B.get(h, z, hh - h, position)
        if borrowed is None:
            self.undefined_borrows += 1
            return
        self.B.set(h, z, sigma, w, borrowed)

    def get_table_statistics(self) -> Dict[str, int]:
        """Number of written cells per table and replacement bookkeeping."""
        return {
            'A_entries': len(self.A),
            'G_entries': len(self.G),
            'B_entries': len(self.B),
            'replacement_lookups': self.replacement_lookups,
            'unmatched_pairs': self.unmatched_pairs,
            'undefined_borrows': self.undefined_borrows,
        }
