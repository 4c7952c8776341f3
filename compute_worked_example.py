#!/usr/bin/env python3
"""
Compute B0Q for S = (I=[1,3,5], J=[8,12,17]) and S' = (I'=[2,5,6], J'=[6,11,16]) in G(7,20)
"""

from closure_calculator import ClosureCoefficientCalculator
from closure_cli import format_poset, format_vector
from numeric_fiber_tester import NumericFiberTester


def main():
    print("="*70)
    print("Closure coefficient for S' = ([2,5,6],[6,11,16]) in S = ([1,3,5],[8,12,17]), G(7,20)")
    print("="*70)

    calc = ClosureCoefficientCalculator.from_conditions(
        [1, 3, 5], [8, 12, 17], 7, 20,
        [2, 5, 6], [6, 11, 16],
    )

    reduced, essential = calc.reduce()
    print(f"\nEssential conditions of S: {format_vector(essential)}")
    print(f"Reduced S: I={format_vector(reduced.I)} J={format_vector(reduced.J)}")
    print(f"Partition of S:  {reduced.lambda_sequence().tolist()}")
    print(f"Partition of S': {calc.schubert_prime.lambda_sequence().tolist()}")

    q = calc.representative()
    print(f"\nRepresentative Q = {format_vector(q)}")

    poset = calc.build_poset()
    print(f"\nPoset layer sizes: {poset.layer_sizes}")
    print(format_poset(poset))

    print("\nChecking fiber polynomials at x=1 against binomial counts...")
    mismatches = NumericFiberTester(poset).verify_poset()
    print(f"  Mismatches: {len(mismatches)}")

    print("\nRunning the recursion...")
    result = calc.compute()
    print(f"\nB0Q = {result.coefficient_expr()}")
    print(f"Elapsed: {result.elapsed:.4f} s")

    calc.print_performance_report()


if __name__ == "__main__":
    main()
