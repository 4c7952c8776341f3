"""
Admissible-vector generation and the layered poset ADM.

ADM holds every admissible vector between the zero vector (the base variety S)
and the representative Q of S'. Layer h holds the vectors of total degree h;
layer 0 is the base node and the last layer is Q. Inside a layer nodes are
ordered by the size of their essential set so that the recursion engine can
restrict a search to the nodes with a given essential size.
"""

from bisect import bisect_left, bisect_right
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Sequence, Tuple

from schubert_data import (
    EssentialSet,
    SchubertData,
    Vector,
    dominates,
    essential_indices,
    is_admissible_relative_to,
    is_valid_variety,
)


@dataclass(frozen=True)
class PosetNode:
    """A vector together with its essential positions."""

    vector: Vector
    essential: EssentialSet


class PosetLayer:
    """
    One layer of ADM.

    Nodes are stored sorted ascending by essential-set size (stable, so the
    generator's lexicographic order is kept between nodes of equal size).
    """

    def __init__(self, nodes: Iterable[PosetNode]):
        self.nodes: Tuple[PosetNode, ...] = tuple(sorted(nodes, key=lambda node: len(node.essential)))
        self._sizes = [len(node.essential) for node in self.nodes]

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[PosetNode]:
        return iter(self.nodes)

    def __getitem__(self, position: int) -> PosetNode:
        return self.nodes[position]

    def essential_sizes(self) -> List[int]:
        return list(self._sizes)

    def positions_with_essential_size(self, size: int) -> range:
        """Contiguous positions of the nodes whose essential set has the given size."""
        return range(bisect_left(self._sizes, size), bisect_right(self._sizes, size))

    def __repr__(self):
        return f"PosetLayer({[node.vector for node in self.nodes]})"


def vectors_between(lower: Sequence[int], upper: Sequence[int]) -> List[List[Vector]]:
    """
    All vectors strictly between two vectors, grouped by total degree.

    Degree-d exponent vectors are generated from the degree-(d-1) ones by
    adding a unit vector at a coordinate no smaller than the last coordinate
    that was raised, which enumerates each vector exactly once in
    degree-then-lexicographic order. Vectors leaving the box below ``upper``
    are pruned as they appear; the survivors are filtered against ``lower``.

    Args:
        lower: Vector P
        upper: Vector Q with P <= Q

    Returns:
        One bucket per degree sum(P)+1 .. sum(Q)-1, each listing the vectors V
        with P <= V <= Q of that degree. Empty when sum(Q) - sum(P) <= 1.

    Example:
        >>> vectors_between((0, 0), (1, 1))
        [[(1, 0), (0, 1)]]
    """
    omega = len(upper)
    low_degree = sum(lower)
    high_degree = sum(upper)

    buckets: List[List[Vector]] = []
    # (vector, smallest coordinate that may still be raised)
    frontier: List[Tuple[Vector, int]] = [((0,) * omega, 0)]
    for degree in range(1, high_degree):
        extended = []
        for vector, start in frontier:
            for j in range(start, omega):
                if vector[j] < upper[j]:
                    raised = vector[:j] + (vector[j] + 1,) + vector[j + 1:]
                    extended.append((raised, j))
        frontier = extended
        if degree > low_degree:
            buckets.append([vector for vector, _ in frontier if dominates(vector, lower)])
    return buckets


def filter_admissible(base: Sequence[int], I: Sequence[int], J: Sequence[int], K: int, L: int,
                      candidates: Iterable[Sequence[int]]) -> List[PosetNode]:
    """
    Keep the candidates that are valid and admissible relative to ``base``.

    Returns:
        PosetNodes in the order of ``candidates``
    """
    base_essential = essential_indices(base, I, J, K, L)
    nodes = []
    for candidate in candidates:
        if not is_valid_variety(candidate, I, J, K, L):
            continue
        essential = essential_indices(candidate, I, J, K, L)
        if is_admissible_relative_to(base_essential, essential):
            nodes.append(PosetNode(tuple(candidate), essential))
    return nodes


class AdmissiblePoset:
    """
    The layered poset ADM between the base vector and a representative Q.

    Attributes:
        data: The (reduced) SchubertData of the base variety
        layers: List of PosetLayer, layer h at distance h from the base node
    """

    def __init__(self, data: SchubertData, layers: List[PosetLayer]):
        self.data = data
        self.layers = layers

    @classmethod
    def build(cls, data: SchubertData, representative: Sequence[int]) -> 'AdmissiblePoset':
        """
        Build ADM for the base variety ``data`` and the target vector Q.

        Args:
            data: SchubertData of S restricted to its essential conditions
            representative: The non-zero vector Q

        Returns:
            AdmissiblePoset with sum(Q) + 1 layers
        """
        representative = tuple(int(v) for v in representative)
        if len(representative) != data.omega:
            raise ValueError(
                f"Representative has {len(representative)} coordinates, expected {data.omega}"
            )
        if not any(representative):
            raise ValueError("The representative must be non-zero to build a poset")

        base_vector = data.zero_vector()
        base = PosetNode(base_vector, data.essential_indices(base_vector))
        target = PosetNode(representative, data.essential_indices(representative))

        layers = [PosetLayer([base])]
        for bucket in vectors_between(base_vector, representative):
            layers.append(PosetLayer(filter_admissible(base_vector, data.I, data.J, data.K, data.L, bucket)))
        layers.append(PosetLayer([target]))
        return cls(data, layers)

    def __len__(self) -> int:
        return len(self.layers)

    def __getitem__(self, h: int) -> PosetLayer:
        return self.layers[h]

    def __iter__(self) -> Iterator[PosetLayer]:
        return iter(self.layers)

    @property
    def base(self) -> PosetNode:
        return self.layers[0][0]

    @property
    def target(self) -> PosetNode:
        return self.layers[-1][0]

    @property
    def layer_sizes(self) -> List[int]:
        return [len(layer) for layer in self.layers]

    @property
    def node_count(self) -> int:
        return sum(self.layer_sizes)

    def node(self, h: int, position: int) -> PosetNode:
        return self.layers[h][position]

    def __repr__(self):
        return f"AdmissiblePoset(layers={self.layer_sizes}, target={self.target.vector})"
