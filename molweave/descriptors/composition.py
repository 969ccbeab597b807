"""
Molecular formula and weight.
"""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING

from molweave.elements import Element

if TYPE_CHECKING:
    from molweave.types import Molecule


def element_counts(mol: Molecule) -> Counter[str]:
    """Count atoms per element, implicit hydrogens included."""
    counts: Counter[str] = Counter()
    for atom in mol.atoms:
        counts[atom.symbol] += 1
        if atom.implicit_hydrogens:
            counts["H"] += atom.implicit_hydrogens
    return counts


def molecular_formula(mol: Molecule) -> str:
    """Molecular formula in Hill order.

    Carbon comes first and hydrogen second when carbon is present; all other
    elements (and hydrogen, without carbon) follow alphabetically. A net
    charge is appended as ``+``/``-`` with its magnitude.

    Example:
        >>> molecular_formula(parse("CCO"))
        'C2H6O'
    """
    counts = element_counts(mol)
    symbols = sorted(counts)
    if "C" in counts:
        symbols = ["C"] + (["H"] if "H" in counts else []) + [
            s for s in symbols if s not in ("C", "H")
        ]

    parts = [s if counts[s] == 1 else f"{s}{counts[s]}" for s in symbols]

    charge = sum(atom.charge for atom in mol.atoms)
    if charge:
        sign = "+" if charge > 0 else "-"
        parts.append(sign if abs(charge) == 1 else f"{sign}{abs(charge)}")

    return "".join(parts)


def molecular_weight(mol: Molecule) -> float:
    """Average molecular weight from standard atomic weights.

    Example:
        >>> round(molecular_weight(parse("CCO")), 3)
        46.069
    """
    total = 0.0
    for symbol, count in element_counts(mol).items():
        elem = Element.from_symbol(symbol)
        assert elem is not None
        total += elem.mass * count
    return total
