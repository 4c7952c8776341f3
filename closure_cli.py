"""
Command-line runner for closure coefficients.

Computes B0Q for a pair of Schubert varieties S' inside S in G(K, L), prints
a trace of the computation and writes the result files.

Usage example (local):
  python closure_cli.py \
    --I 1,3,5 --J 8,12,17 --K 7 --L 20 \
    --I-prime 2,5,6 --J-prime 6,11,16 \
    --out-prefix results/run1 \
    --latex

All condition positions are 0-based.

Outputs:
- <prefix>.b0q.txt:     str(B0Q)
- <prefix>.b0q.srepr:   srepr(B0Q)
- <prefix>.poset.txt:   vectors of every poset layer
- <prefix>.meta.json:   metadata (inputs, reduced data, Q, layer sizes, ...)
- <prefix>.b0q.tex:     LaTeX (optional with --latex)
- <prefix>.tables.txt:  every written A, G, B entry (optional with --dump-tables)
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Any, Dict, List, Optional, Sequence

import sympy as sp

from admissible_poset import AdmissiblePoset
from closure_calculator import ClosureCoefficientCalculator, ClosureResult
from closure_errors import ClosureArithmeticError, ContainmentError, InvalidVarietyError
from kl_recursion import KLRecursionEngine


def _parse_int_list(s: str) -> List[int]:
    """Parse a comma-separated list of integers.

    Args:
        s: String like "1,3,5"

    Returns:
        List of integers.

    Raises:
        ValueError: If the input is empty or an element is not an integer.
    """
    elements = [e.strip() for e in s.split(',')]
    if not elements or any(not e for e in elements):
        raise ValueError(f"Empty element in '{s}'")
    try:
        return [int(e) for e in elements]
    except ValueError as e:
        raise ValueError(f"Invalid integer in '{s}': {e}") from e


def format_vector(vector: Sequence[int]) -> str:
    return "[" + ",".join(str(v) for v in vector) + "]"


def format_polynomial(poly: Optional[sp.Poly]) -> str:
    """Polynomial as a plain sympy expression string ('undefined' for None)."""
    if poly is None:
        return "undefined"
    return str(poly.as_expr())


def format_latex(poly: sp.Poly, inline=True) -> str:
    """
    Format a polynomial as LaTeX.

    Args:
        poly: sympy Poly
        inline: If True, wrap in $...$; if False, use $$...$$ for display mode

    Returns:
        LaTeX formatted string
    """
    latex_str = sp.latex(poly.as_expr())
    delim = "$" if inline else "$$"
    return f"{delim}{latex_str}{delim}"


def format_poset(poset: AdmissiblePoset) -> str:
    """One line per layer listing each node's vector and essential positions."""
    lines = []
    for h, layer in enumerate(poset):
        nodes = " ".join(f"{format_vector(node.vector)}{format_vector(node.essential)}" for node in layer)
        lines.append(f"Layer {h}: {nodes}")
    return "\n".join(lines)


def format_tables(engine: KLRecursionEngine) -> str:
    lines = []
    for name, table in (("A", engine.A), ("G", engine.G), ("B", engine.B)):
        for (h, z, sigma, w), value in table.entries():
            lines.append(f"{name}[{h},{z},{sigma},{w}] = {format_polynomial(value)}")
    return "\n".join(lines)


def _coefficients(poly: Optional[sp.Poly]) -> Optional[List[int]]:
    """Coefficients in ascending degree."""
    if poly is None:
        return None
    return [int(c) for c in reversed(poly.all_coeffs())]


def build_meta(args: argparse.Namespace, result: ClosureResult) -> Dict[str, Any]:
    reduced = result.schubert
    meta = {
        "I": args.I,
        "J": args.J,
        "K": args.K,
        "L": args.L,
        "I_prime": args.I_prime,
        "J_prime": args.J_prime,
        "status": result.status,
        "essential": list(result.essential),
        "reduced": {"I": list(reduced.I), "J": list(reduced.J), "K": reduced.K, "L": reduced.L},
        "representative": list(result.representative) if result.representative is not None else None,
        "layer_sizes": result.poset.layer_sizes if result.poset is not None else [],
        "b0q": format_polynomial(result.coefficient) if result.coefficient is not None else None,
        "coefficients": _coefficients(result.coefficient),
        "message": result.message,
        "elapsed": result.elapsed,
    }
    if result.engine is not None:
        meta["table_statistics"] = result.engine.get_table_statistics()
    return meta


def print_trace(result: ClosureResult) -> None:
    reduced = result.schubert
    print(f"Reduced S: I={format_vector(reduced.I)} J={format_vector(reduced.J)} K={reduced.K} L={reduced.L}")
    print(f"Essential conditions: {format_vector(result.essential)}")
    print(f"Q = {format_vector(result.representative)}")
    if result.poset is not None:
        print(format_poset(result.poset))
    print(f"B0Q = {format_polynomial(result.coefficient)}")
    print(f"Elapsed: {result.elapsed:.4f} s")


def main(argv: Optional[Sequence[str]] = None) -> None:
    ap = argparse.ArgumentParser(description="Compute the Kazhdan-Lusztig closure coefficient B0Q of S' in S.")
    ap.add_argument("--I", required=True, help='conditions of S, e.g. "1,3,5"')
    ap.add_argument("--J", required=True, help='flag indices of S, e.g. "8,12,17"')
    ap.add_argument("--K", required=True, type=int, help="dimension of the subspaces")
    ap.add_argument("--L", required=True, type=int, help="dimension of the ambient space")
    ap.add_argument("--I-prime", dest="I_prime", required=True, help="conditions of S'")
    ap.add_argument("--J-prime", dest="J_prime", required=True, help="flag indices of S'")
    ap.add_argument("--out-prefix", default="closure_out")
    ap.add_argument("--latex", action="store_true", help="also write LaTeX (b0q.tex)")
    ap.add_argument("--dump-tables", action="store_true", help="write every A, G, B entry (tables.txt)")
    ap.add_argument("--verbose", action="store_true", help="print stage progress and a performance report")
    args = ap.parse_args(argv)

    for name in ("I", "J", "I_prime", "J_prime"):
        try:
            setattr(args, name, _parse_int_list(getattr(args, name)))
        except ValueError as e:
            ap.error(f"Error parsing --{name.replace('_', '-')}: {e}")

    try:
        calc = ClosureCoefficientCalculator.from_conditions(
            args.I, args.J, args.K, args.L, args.I_prime, args.J_prime,
            verbose=args.verbose,
            show_performance_warnings=True,
        )
        result = calc.compute()
    except (InvalidVarietyError, ContainmentError, ClosureArithmeticError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    # Ensure output directory exists
    out_dir = os.path.dirname(args.out_prefix)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)

    meta = build_meta(args, result)
    with open(f"{args.out_prefix}.meta.json", "w", encoding="utf-8") as f:
        json.dump(meta, f, indent=2)

    if result.is_redundant:
        print(result.message)
        return

    print_trace(result)
    if args.verbose:
        calc.print_performance_report()

    expr = result.coefficient.as_expr()
    with open(f"{args.out_prefix}.b0q.txt", "w", encoding="utf-8") as f:
        f.write(str(expr))
    with open(f"{args.out_prefix}.b0q.srepr", "w", encoding="utf-8") as f:
        f.write(sp.srepr(expr))
    with open(f"{args.out_prefix}.poset.txt", "w", encoding="utf-8") as f:
        f.write(format_poset(result.poset) if result.poset is not None else "")
    if args.latex:
        with open(f"{args.out_prefix}.b0q.tex", "w", encoding="utf-8") as f:
            f.write(format_latex(result.coefficient))
    if args.dump_tables and result.engine is not None:
        with open(f"{args.out_prefix}.tables.txt", "w", encoding="utf-8") as f:
            f.write(format_tables(result.engine))


if __name__ == "__main__":
    main()
