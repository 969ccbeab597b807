"""
Graph-distance helpers shared by the descriptor modules.

Descriptors work on the hydrogen-suppressed graph: explicit hydrogen atoms
are folded into the hydrogen count of the heavy atom they are bonded to.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from molweave.types import Molecule


@dataclass(frozen=True, slots=True)
class HeavyAtomGraph:
    """Hydrogen-suppressed view of a molecule.

    Attributes:
        atoms: Heavy atom indices in molecule order.
        neighbors: Heavy neighbours of each heavy atom.
        hydrogens: Total hydrogen count (implicit plus explicit) per heavy atom.
    """

    atoms: tuple[int, ...]
    neighbors: dict[int, tuple[int, ...]]
    hydrogens: dict[int, int]

    def degree(self, atom_idx: int) -> int:
        """Number of heavy neighbours."""
        return len(self.neighbors[atom_idx])


def heavy_atom_graph(mol: Molecule) -> HeavyAtomGraph:
    """Build the hydrogen-suppressed graph of a molecule.

    A hydrogen is kept as a heavy atom only if it is not bonded to any other
    heavy atom (e.g. the atoms of H2 or a hydride ion).
    """
    cached = mol._cache.get("heavy_atom_graph")
    if cached is not None:
        return cached

    def is_folded(atom_idx: int) -> bool:
        atom = mol.atoms[atom_idx]
        if atom.symbol != "H" or atom.degree(mol) != 1:
            return False
        nbr = next(atom.neighbors(mol))
        return mol.atoms[nbr].symbol != "H"

    heavy = tuple(a.idx for a in mol.atoms if not is_folded(a.idx))
    heavy_set = set(heavy)
    neighbors = {
        idx: tuple(n for n in mol.atoms[idx].neighbors(mol) if n in heavy_set)
        for idx in heavy
    }
    hydrogens = {idx: mol.atoms[idx].total_hydrogens(mol) for idx in heavy}

    graph = HeavyAtomGraph(heavy, neighbors, hydrogens)
    mol._cache["heavy_atom_graph"] = graph
    return graph


def distance_matrix(mol: Molecule) -> tuple[tuple[int | None, ...], ...]:
    """All-pairs shortest path lengths (in bonds) by breadth-first search.

    Args:
        mol: Molecule to analyze.

    Returns:
        Square matrix indexed by atom index; None marks atoms in different
        components. Cached until the next structural mutation.

    Example:
        >>> distance_matrix(parse("CCO"))[0][2]
        2
    """
    cached = mol._cache.get("distance_matrix")
    if cached is not None:
        return cached

    n = len(mol.atoms)
    rows: list[tuple[int | None, ...]] = []

    for source in range(n):
        dist: list[int | None] = [None] * n
        dist[source] = 0
        queue = deque([source])
        while queue:
            u = queue.popleft()
            for v in mol.atoms[u].neighbors(mol):
                if dist[v] is None:
                    dist[v] = dist[u] + 1
                    queue.append(v)
        rows.append(tuple(dist))

    matrix = tuple(rows)
    mol._cache["distance_matrix"] = matrix
    return matrix
