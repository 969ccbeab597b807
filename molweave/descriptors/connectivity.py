"""
Kier-Hall molecular connectivity (chi) indices.

The chi index of order n sums, over every simple path of n bonds in the
hydrogen-suppressed graph, the product of 1/sqrt(delta) over the path's
atoms. The simple delta of an atom is its number of heavy neighbours; the
valence delta is (Zv - h) / (Z - Zv - 1), which reduces to Zv - h for
second-row elements. Zv is the neutral outer electron count; formal charge
only enters through the hydrogen count.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Iterator

from molweave.descriptors.topology import HeavyAtomGraph, heavy_atom_graph
from molweave.elements import get_outer_electrons

if TYPE_CHECKING:
    from molweave.types import Molecule


def valence_delta(mol: Molecule, atom_idx: int, graph: HeavyAtomGraph | None = None) -> float:
    """Kier-Hall valence delta of an atom.

    Args:
        mol: Parent molecule.
        atom_idx: Heavy atom index.
        graph: Precomputed hydrogen-suppressed graph.

    Returns:
        The valence delta; 0.0 for elements without a valence electron count.
    """
    graph = graph or heavy_atom_graph(mol)
    atom = mol.atoms[atom_idx]
    z = atom.atomic_number
    zv = get_outer_electrons(z)
    if z <= 1 or zv <= 0:
        return 0.0
    if z <= 10:
        return float(zv - graph.hydrogens[atom_idx])
    return (zv - graph.hydrogens[atom_idx]) / (z - zv - 1)


def atom_deltas(mol: Molecule, valence: bool = True) -> dict[int, float]:
    """Simple or valence delta of every heavy atom."""
    graph = heavy_atom_graph(mol)
    if valence:
        return {idx: valence_delta(mol, idx, graph) for idx in graph.atoms}
    return {idx: float(graph.degree(idx)) for idx in graph.atoms}


def iter_paths(graph: HeavyAtomGraph, length: int) -> Iterator[tuple[int, ...]]:
    """Yield every simple path of ``length`` bonds exactly once.

    Paths are enumerated from each start atom with an explicit stack; a
    path is reported only in the direction whose first atom is the smaller
    endpoint.
    """
    if length == 0:
        for idx in graph.atoms:
            yield (idx,)
        return

    for start in graph.atoms:
        stack: list[tuple[int, ...]] = [(start,)]
        while stack:
            path = stack.pop()
            if len(path) == length + 1:
                if path[0] < path[-1]:
                    yield path
                continue
            for nbr in graph.neighbors[path[-1]]:
                if nbr not in path:
                    stack.append(path + (nbr,))


def chi_index(mol: Molecule, order: int, valence: bool = True) -> float:
    """Kier-Hall chi path index.

    Args:
        mol: Molecule to analyze.
        order: Path length in bonds (0 sums over atoms).
        valence: Use valence deltas (chi-v) instead of simple deltas.

    Returns:
        The chi index. Paths through an atom with zero delta contribute 0.

    Raises:
        ValueError: If ``order`` is negative.

    Example:
        >>> round(chi_index(parse("CCO"), 1), 4)
        1.0233
    """
    if order < 0:
        raise ValueError(f"Chi order must be non-negative, got {order}")

    deltas = atom_deltas(mol, valence)
    total = 0.0

    for path in iter_paths(heavy_atom_graph(mol), order):
        product = 1.0
        for atom_idx in path:
            product *= deltas[atom_idx]
        if product > 0:
            total += 1.0 / math.sqrt(product)

    return total
