"""
Electrotopological state (E-state) indices.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from molweave.descriptors.topology import distance_matrix, heavy_atom_graph
from molweave.elements import get_outer_electrons, principal_quantum_number

if TYPE_CHECKING:
    from molweave.types import Molecule


def intrinsic_states(mol: Molecule) -> dict[int, float]:
    """Intrinsic state I = ((2/N)^2 * delta_v + 1) / delta of each heavy atom.

    N is the principal quantum number, delta_v = Zv - h and delta the number
    of heavy neighbours. An isolated heavy atom (delta = 0) gets 0.
    """
    graph = heavy_atom_graph(mol)
    states: dict[int, float] = {}

    for idx in graph.atoms:
        atom = mol.atoms[idx]
        delta = graph.degree(idx)
        if delta == 0:
            states[idx] = 0.0
            continue
        n = principal_quantum_number(atom.atomic_number)
        delta_v = get_outer_electrons(atom.atomic_number) - graph.hydrogens[idx]
        states[idx] = ((2.0 / n) ** 2 * delta_v + 1.0) / delta

    return states


def estate_indices(mol: Molecule) -> dict[int, float]:
    """E-state index of every heavy atom.

    S_i = I_i + sum_j (I_i - I_j) / (d_ij + 1)^2 over heavy atoms j in the
    same component, where d_ij is the topological distance.

    Args:
        mol: Molecule to analyze.

    Returns:
        Mapping of heavy atom index to its E-state index.

    Example:
        >>> [round(s, 4) for s in estate_indices(parse("CCO")).values()]
        [1.6806, 0.25, 7.5694]
    """
    states = intrinsic_states(mol)
    dist = distance_matrix(mol)
    indices: dict[int, float] = {}

    for i, state_i in states.items():
        perturbation = 0.0
        for j, state_j in states.items():
            d = dist[i][j]
            if i == j or d is None:
                continue
            perturbation += (state_i - state_j) / (d + 1) ** 2
        indices[i] = state_i + perturbation

    return indices
