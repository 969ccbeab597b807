"""
Ring detection algorithms.

This module finds the Smallest Set of Smallest Rings (SSSR) of a molecule
and groups the rings into ring systems. Cycles are collected with
breadth-first searches over the leaf-pruned graph and kept while they are
linearly independent over GF(2), with bonds encoded as integer bit masks.

Results are cached on the Molecule and dropped on the next structural
mutation.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING

from molweave.elements import BondOrder

if TYPE_CHECKING:
    from molweave.types import Molecule


@dataclass(frozen=True, slots=True)
class Ring:
    """A ring of the SSSR.

    Attributes:
        atoms: Atom indices in cyclic order, starting at the lowest index and
            proceeding towards its lower-indexed ring neighbour.
        bonds: Bond indices; ``bonds[i]`` joins ``atoms[i]`` and
            ``atoms[i + 1]`` (the last one closes the cycle).
        is_aromatic: True if every member bond is aromatic.
        generation: Molecule generation the ring was computed for.
    """

    atoms: tuple[int, ...]
    bonds: tuple[int, ...]
    is_aromatic: bool
    generation: int

    @property
    def size(self) -> int:
        """Number of atoms in the ring."""
        return len(self.atoms)

    def __len__(self) -> int:
        return len(self.atoms)

    def __contains__(self, atom_idx: int) -> bool:
        return atom_idx in self.atoms


@dataclass(frozen=True, slots=True)
class RingSystem:
    """Rings connected through shared atoms (fused, bridged or spiro).

    Attributes:
        rings: Member rings, in SSSR order.
        atoms: Sorted union of the member ring atoms.
        bonds: Sorted union of the member ring bonds.
        generation: Molecule generation the system was computed for.
    """

    rings: tuple[Ring, ...]
    atoms: tuple[int, ...]
    bonds: tuple[int, ...]
    generation: int

    def __len__(self) -> int:
        return len(self.rings)

    def __contains__(self, atom_idx: int) -> bool:
        return atom_idx in self.atoms


def _cycle_rank(mol: "Molecule") -> int:
    return len(mol.bonds) - len(mol.atoms) + len(mol.connected_components())


def _prune_leaves(mol: "Molecule") -> set[int]:
    """Repeatedly remove degree-1 atoms; the survivors carry every ring."""
    degree = {atom.idx: len(atom.bond_indices) for atom in mol.atoms}
    alive = {idx for idx, d in degree.items() if d > 0}
    queue = deque(idx for idx, d in degree.items() if d == 1)

    while queue:
        idx = queue.popleft()
        if idx not in alive:
            continue
        alive.discard(idx)
        for nbr in mol.atoms[idx].neighbors(mol):
            if nbr in alive:
                degree[nbr] -= 1
                if degree[nbr] == 1:
                    queue.append(nbr)

    return alive


def _candidate_cycles(
    mol: "Molecule", core: set[int]
) -> dict[frozenset[int], tuple[int, ...]]:
    """Collect short cycles: for each root, BFS tree plus one non-tree edge.

    Returns:
        Mapping of bond set to the cycle's atoms in path order.
    """
    candidates: dict[frozenset[int], tuple[int, ...]] = {}

    for root in sorted(core):
        parent: dict[int, tuple[int, int] | None] = {root: None}
        order = [root]
        queue = deque([root])

        while queue:
            u = queue.popleft()
            for v, bond_idx in mol.get_adjacency(u):
                if v in core and v not in parent:
                    parent[v] = (u, bond_idx)
                    order.append(v)
                    queue.append(v)

        def path_to_root(atom_idx: int) -> tuple[list[int], list[int]]:
            atoms = [atom_idx]
            bonds: list[int] = []
            step = parent[atom_idx]
            while step is not None:
                prev, bond_idx = step
                atoms.append(prev)
                bonds.append(bond_idx)
                step = parent[prev]
            return atoms, bonds

        tree_bonds = {step[1] for step in parent.values() if step is not None}

        for u in order:
            for v, bond_idx in mol.get_adjacency(u):
                if v not in parent or bond_idx in tree_bonds or u > v:
                    continue
                atoms_u, bonds_u = path_to_root(u)
                atoms_v, bonds_v = path_to_root(v)
                if set(atoms_u) & set(atoms_v) != {root}:
                    continue
                bond_set = frozenset(bonds_u + bonds_v + [bond_idx])
                if bond_set not in candidates:
                    # root ... u, v ... (back towards root)
                    candidates[bond_set] = tuple(reversed(atoms_u)) + tuple(atoms_v[:-1])

    return candidates


def _normalize(mol: "Molecule", cycle: tuple[int, ...]) -> tuple[tuple[int, ...], tuple[int, ...]]:
    """Rotate and orient a cycle; return (atoms, bonds)."""
    n = len(cycle)
    start = cycle.index(min(cycle))
    forward = cycle[start:] + cycle[:start]
    backward = (forward[0],) + tuple(reversed(forward[1:]))
    atoms = forward if forward[1] < backward[1] else backward

    bonds = []
    for i in range(n):
        bond = mol.get_bond_between(atoms[i], atoms[(i + 1) % n])
        assert bond is not None
        bonds.append(bond.idx)
    return atoms, tuple(bonds)


def _is_aromatic_bond(mol: "Molecule", bond_idx: int) -> bool:
    bond = mol.bonds[bond_idx]
    return bond.is_aromatic or bond.order == BondOrder.AROMATIC


def find_sssr(mol: "Molecule") -> tuple[Ring, ...]:
    """Find the Smallest Set of Smallest Rings (SSSR).

    Args:
        mol: Molecule to analyze.

    Returns:
        Rings sorted by size, then by atom indices. The number of rings
        equals the cycle rank ``bonds - atoms + components``.

    Example:
        >>> mol = parse("c1ccccc1")  # benzene
        >>> rings = find_sssr(mol)
        >>> len(rings)
        1
        >>> rings[0].size
        6
    """
    cached = mol._cache.get("sssr")
    if cached is not None:
        return cached

    rank = _cycle_rank(mol)
    rings: list[Ring] = []

    if rank > 0:
        core = _prune_leaves(mol)
        candidates = _candidate_cycles(mol, core)
        ordered = sorted(candidates.items(), key=lambda item: (len(item[0]), sorted(item[1])))

        # GF(2) basis keyed by the highest set bit of each reduced vector
        basis: dict[int, int] = {}
        for bond_set, cycle in ordered:
            vector = 0
            for bond_idx in bond_set:
                vector |= 1 << bond_idx

            while vector:
                pivot = vector.bit_length() - 1
                if pivot not in basis:
                    basis[pivot] = vector
                    break
                vector ^= basis[pivot]

            if not vector:
                continue

            atoms, bonds = _normalize(mol, cycle)
            aromatic = all(_is_aromatic_bond(mol, b) for b in bonds)
            rings.append(Ring(atoms, bonds, aromatic, mol.generation))
            if len(rings) == rank:
                break

    rings.sort(key=lambda ring: (ring.size, ring.atoms))
    result = tuple(rings)
    mol._cache["sssr"] = result
    return result


def find_ring_systems(mol: "Molecule") -> tuple[RingSystem, ...]:
    """Group SSSR rings into ring systems.

    Two rings belong to the same system if they share at least one atom,
    so fused, bridged and spiro rings are all grouped together.

    Args:
        mol: Molecule to analyze.

    Returns:
        Ring systems ordered by their lowest atom index.

    Example:
        >>> mol = parse("c1ccc2ccccc2c1")  # naphthalene
        >>> systems = find_ring_systems(mol)
        >>> len(systems)
        1
        >>> len(systems[0])
        2
    """
    cached = mol._cache.get("ring_systems")
    if cached is not None:
        return cached

    rings = find_sssr(mol)
    n = len(rings)
    parent = list(range(n))

    def find(x: int) -> int:
        while parent[x] != x:
            parent[x] = parent[parent[x]]
            x = parent[x]
        return x

    def union(x: int, y: int) -> None:
        px, py = find(x), find(y)
        if px != py:
            parent[max(px, py)] = min(px, py)

    owner: dict[int, int] = {}
    for i, ring in enumerate(rings):
        for atom_idx in ring.atoms:
            if atom_idx in owner:
                union(owner[atom_idx], i)
            else:
                owner[atom_idx] = i

    groups: dict[int, list[Ring]] = {}
    for i, ring in enumerate(rings):
        groups.setdefault(find(i), []).append(ring)

    systems = []
    for members in groups.values():
        atoms = sorted({a for ring in members for a in ring.atoms})
        bonds = sorted({b for ring in members for b in ring.bonds})
        systems.append(RingSystem(tuple(members), tuple(atoms), tuple(bonds), mol.generation))

    systems.sort(key=lambda system: system.atoms[0])
    result = tuple(systems)
    mol._cache["ring_systems"] = result
    return result


def get_ring_bonds(mol: "Molecule") -> frozenset[int]:
    """Get the indices of all bonds that lie in a ring."""
    cached = mol._cache.get("ring_bonds")
    if cached is None:
        cached = frozenset(b for ring in find_sssr(mol) for b in ring.bonds)
        mol._cache["ring_bonds"] = cached
    return cached


def get_ring_membership(mol: "Molecule") -> dict[int, int]:
    """Count how many SSSR rings each atom belongs to.

    Args:
        mol: Molecule to analyze.

    Returns:
        Dict mapping every atom index to its ring count (0 if acyclic).
    """
    cached = mol._cache.get("ring_membership")
    if cached is None:
        cached = {atom.idx: 0 for atom in mol.atoms}
        for ring in find_sssr(mol):
            for atom_idx in ring.atoms:
                cached[atom_idx] += 1
        mol._cache["ring_membership"] = cached
    return dict(cached)


def get_min_ring_sizes(mol: "Molecule") -> dict[int, int]:
    """Get the smallest SSSR ring size per atom (0 for acyclic atoms)."""
    sizes = {atom.idx: 0 for atom in mol.atoms}
    for ring in find_sssr(mol):
        for atom_idx in ring.atoms:
            if sizes[atom_idx] == 0 or ring.size < sizes[atom_idx]:
                sizes[atom_idx] = ring.size
    return sizes
