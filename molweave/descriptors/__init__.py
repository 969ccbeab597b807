"""Graph-theoretic molecular descriptors."""

from __future__ import annotations

from typing import TYPE_CHECKING

from molweave.descriptors.composition import element_counts, molecular_formula, molecular_weight
from molweave.descriptors.connectivity import atom_deltas, chi_index, valence_delta
from molweave.descriptors.estate import estate_indices, intrinsic_states
from molweave.descriptors.topology import HeavyAtomGraph, distance_matrix, heavy_atom_graph

if TYPE_CHECKING:
    from molweave.types import Molecule

# Chi path orders reported by compute_descriptors
CHI_ORDERS = (0, 1, 2, 3)


def compute_descriptors(mol: Molecule) -> dict[str, float | str]:
    """Compute the standard descriptor set of a molecule.

    Args:
        mol: Molecule to describe.

    Returns:
        Flat mapping with the formula, molecular weight, heavy atom, bond and
        ring counts, simple and valence chi indices of orders 0-3, and the
        sum, minimum and maximum E-state index.

    Example:
        >>> compute_descriptors(parse("CCO"))["formula"]
        'C2H6O'
    """
    graph = heavy_atom_graph(mol)
    estate = list(estate_indices(mol).values())

    result: dict[str, float | str] = {
        "formula": molecular_formula(mol),
        "molecular_weight": molecular_weight(mol),
        "heavy_atoms": float(len(graph.atoms)),
        "bonds": float(sum(len(n) for n in graph.neighbors.values()) // 2),
        "rings": float(len(mol.rings)),
        "ring_systems": float(len(mol.ring_systems)),
    }
    for order in CHI_ORDERS:
        result[f"chi{order}"] = chi_index(mol, order, valence=False)
        result[f"chi{order}v"] = chi_index(mol, order, valence=True)

    result["estate_sum"] = sum(estate)
    result["estate_min"] = min(estate, default=0.0)
    result["estate_max"] = max(estate, default=0.0)
    return result


__all__ = [
    "HeavyAtomGraph",
    "heavy_atom_graph",
    "distance_matrix",
    "valence_delta",
    "atom_deltas",
    "chi_index",
    "intrinsic_states",
    "estate_indices",
    "element_counts",
    "molecular_formula",
    "molecular_weight",
    "compute_descriptors",
]
