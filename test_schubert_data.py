"""
Tests for SchubertData and the vector / essential-condition analyzer
"""

import numpy as np
import pytest

from admissible_poset import PosetNode
from closure_errors import InvalidVarietyError
from schubert_data import (
    SchubertData,
    dominates,
    essential_indices,
    is_admissible_relative_to,
    is_valid_variety,
    lambda_sequence,
    project_onto_flag,
    replace,
)


WORKED_S = ((1, 3, 5), (8, 12, 17), 7, 20)
WORKED_S_PRIME = ((2, 5, 6), (6, 11, 16), 7, 20)


class TestSchubertData:
    """Test construction and convenience methods"""

    def test_coerces_to_tuples(self):
        """Test that list input is stored as tuples of int"""
        data = SchubertData([1, 3], [4, 6], 3, 7)
        assert data.I == (1, 3)
        assert data.J == (4, 6)
        assert data.omega == 2
        assert data.zero_vector() == (0, 0)

    def test_empty_conditions(self):
        """Test that an empty I is rejected"""
        with pytest.raises(InvalidVarietyError, match="At least one condition"):
            SchubertData([], [], 2, 4)

    def test_length_mismatch(self):
        """Test that I and J must have the same length"""
        with pytest.raises(InvalidVarietyError, match="same length"):
            SchubertData([1, 2], [3], 2, 4)

    def test_not_increasing(self):
        """Test that I must be strictly increasing"""
        with pytest.raises(InvalidVarietyError, match="strictly increasing"):
            SchubertData([2, 2], [3, 4], 3, 6)

    def test_invalid_variety_error_is_value_error(self):
        """Test that input errors are ValueErrors as well"""
        with pytest.raises(ValueError):
            SchubertData([1, 2], [3], 2, 4)

    def test_restricted_to(self):
        """Test restriction to a subset of conditions"""
        data = SchubertData(*WORKED_S)
        restricted = data.restricted_to((0, 2))
        assert restricted.I == (1, 5)
        assert restricted.J == (8, 17)
        assert (restricted.K, restricted.L) == (7, 20)


class TestValidity:
    """Test is_valid_variety"""

    def test_worked_example_inputs_are_valid(self):
        """Test both worked-example varieties at the zero vector"""
        assert SchubertData(*WORKED_S).is_valid()
        assert SchubertData(*WORKED_S_PRIME).is_valid()

    def test_single_condition(self):
        """Test the G(2,4) single-condition bounds"""
        assert is_valid_variety((0,), (1,), (2,), 2, 4)
        assert is_valid_variety((1,), (1,), (2,), 2, 4)
        assert not is_valid_variety((2,), (1,), (2,), 2, 4)
        assert not is_valid_variety((0,), (3,), (2,), 2, 4)

    def test_interior_jump_bound(self):
        """Test that increments cannot outgrow the jumps of J"""
        I, J, K, L = WORKED_S
        assert is_valid_variety((0, 2, 0), I, J, K, L)
        assert not is_valid_variety((0, 3, 0), I, J, K, L)

    def test_last_condition_bound(self):
        """Test that the last condition stays realisable by a K-plane"""
        I, J, K, L = WORKED_S
        assert is_valid_variety((1, 2, 1), I, J, K, L)
        assert not is_valid_variety((0, 0, 3), I, J, K, L)

    def test_wrong_length(self):
        """Test that a vector of the wrong length is invalid"""
        I, J, K, L = WORKED_S
        assert not is_valid_variety((0, 0), I, J, K, L)


class TestEssentialIndices:
    """Test essential_indices and the admissibility helpers"""

    def test_worked_example_base(self):
        """Test that every condition of the worked example is essential"""
        assert SchubertData(*WORKED_S).essential_indices() == (0, 1, 2)

    def test_worked_example_vectors(self):
        """Test the essential sets of the three non-generic poset vectors"""
        I, J, K, L = WORKED_S
        assert essential_indices((0, 2, 0), I, J, K, L) == (1,)
        assert essential_indices((0, 2, 1), I, J, K, L) == (1, 2)
        assert essential_indices((1, 2, 0), I, J, K, L) == (0, 1)
        assert essential_indices((1, 1, 1), I, J, K, L) == (0, 1, 2)

    def test_single_condition_always_essential(self):
        """Test that a one-condition variety keeps its condition"""
        assert essential_indices((0,), (1,), (3,), 2, 4) == (0,)

    def test_all_redundant(self):
        """Test conditions satisfied by the whole Grassmannian G(2,3)"""
        assert essential_indices((0, 0), (1, 2), (2, 3), 2, 3) == ()

    def test_admissible_relative_to(self):
        """Test the subset-and-length admissibility rule"""
        assert is_admissible_relative_to((0, 1, 2), (1, 2))
        assert is_admissible_relative_to((0, 1, 2), (0, 1, 2))
        assert not is_admissible_relative_to((0, 1), (0, 1, 2))
        assert not is_admissible_relative_to((0, 2), (1,))

    def test_project_onto_flag(self):
        """Test essential positions seen through a node's conditions"""
        I, J, K, L = WORKED_S
        base = PosetNode((0, 0, 0), (0, 1, 2))
        assert project_onto_flag(base, I, J, K, L, (0, 2, 0)) == (1,)
        assert project_onto_flag(base, I, J, K, L, (1, 2, 0)) == (0, 1)
        partial = PosetNode((0, 1, 0), (1, 2))
        assert project_onto_flag(partial, I, J, K, L, (0, 2, 0)) == (1,)

    def test_dominates(self):
        """Test the coordinate-wise order"""
        assert dominates((1, 2, 1), (0, 2, 0))
        assert dominates((1, 1), (1, 1))
        assert not dominates((1, 0), (0, 1))


class TestPartitions:
    """Test lambda_sequence and replace"""

    def test_worked_example_partitions(self):
        """Test the partitions of both worked-example varieties"""
        assert lambda_sequence(*WORKED_S).tolist() == [6, 4, 4, 1, 1, 0, 0]
        assert lambda_sequence(*WORKED_S_PRIME).tolist() == [9, 9, 7, 7, 7, 3, 0]

    def test_partition_of_shifted_vector(self):
        """Test SchubertData.lambda_sequence with an increment"""
        data = SchubertData((1,), (2,), 2, 4)
        assert data.lambda_sequence().tolist() == [1, 0]
        assert data.lambda_sequence((1,)).tolist() == [2, 2]

    def test_partition_rejects_oversized_conditions(self):
        """Test that conditions larger than K are rejected"""
        with pytest.raises(InvalidVarietyError, match="do not fit"):
            lambda_sequence((3,), (3,), 2, 4)

    def test_replace_worked_example(self):
        """Test the representative of the worked example"""
        I, J, K, L = WORKED_S
        lam_prime = lambda_sequence(*WORKED_S_PRIME)
        assert replace(I, J, K, L, lam_prime) == (1, 2, 1)

    def test_replace_point_in_divisor(self):
        """Test Q for the point inside the G(2,4) divisor"""
        assert replace((1,), (2,), 2, 4, np.array([2, 2])) == (1,)

    def test_replace_of_itself_is_zero(self):
        """Test that a variety is its own generic point"""
        I, J, K, L = WORKED_S
        assert replace(I, J, K, L, lambda_sequence(I, J, K, L)) == (0, 0, 0)

    def test_replace_returns_plain_ints(self):
        """Test that Q holds Python ints"""
        q = replace((1,), (2,), 2, 4, [2, 2])
        assert all(type(v) is int for v in q)
