"""
Kekulization - convert aromatic representation to explicit double bonds.

Consumers that cannot perceive aromaticity themselves (InChI generation
through RDKit, older Molfile readers) need every aromatic bond resolved to
single or double. An aromatic atom takes a ring double bond when its
current bonding plus hydrogens falls exactly one unit short of an allowed
valence; the double bonds are then a perfect matching over those atoms.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from molweave.elements import BondOrder, get_allowed_valences, get_outer_electrons
from molweave.exceptions import KekulizeError

if TYPE_CHECKING:
    from molweave.types import Atom, Molecule


def _atom_needs_double_bond(atom: Atom, mol: Molecule) -> bool:
    """Check whether an aromatic atom contributes a double bond to its ring.

    Pyridine ``n`` and benzene ``c`` do; pyrrole ``[nH]``, furan ``o`` and
    carbonyl carbons of pyridones do not. Charge shifts the target valence
    the same way the hydrogen count model does.
    """
    valences = get_allowed_valences(atom.atomic_number)
    if not valences:
        return False

    if atom.charge > 0 and get_outer_electrons(atom.atomic_number) >= 5:
        adjust = atom.charge
    else:
        adjust = -abs(atom.charge)

    # Hydrogen neighbours are already in the bond order sum
    used = atom.bond_order_sum(mol) + atom.implicit_hydrogens
    for valence in valences:
        target = valence + adjust
        if target >= used:
            return target == used + 1
    return False


def kekulize(mol: Molecule, in_place: bool = False) -> Molecule:
    """Convert aromatic bonds to alternating single/double bonds (Kekulé form).

    Hydrogen counts are left untouched, so the Kekulé form has the same
    formula as the aromatic one. Atom and bond aromatic flags are cleared.

    Args:
        mol: Molecule to kekulize.
        in_place: If True, modify molecule in-place; otherwise return a copy.

    Returns:
        Kekulized molecule (copy if in_place=False, otherwise the same object).

    Raises:
        KekulizeError: If no alternating assignment exists (e.g. ``c1cccc1``).

    Example:
        >>> mol = kekulize(parse("c1ccccc1"))
        >>> sum(1 for bond in mol.bonds if bond.order == BondOrder.DOUBLE)
        3
    """
    if not in_place:
        mol = mol.copy()

    aromatic_bonds = [
        bond for bond in mol.bonds
        if bond.is_aromatic or bond.order == BondOrder.AROMATIC
    ]
    aromatic_atoms = {atom.idx for atom in mol.atoms if atom.is_aromatic}
    for bond in aromatic_bonds:
        aromatic_atoms.update(bond.key)

    if not aromatic_atoms:
        return mol

    needing = {
        idx for idx in aromatic_atoms
        if _atom_needs_double_bond(mol.atoms[idx], mol)
    }

    # Candidate partners: aromatic neighbours that also need a double bond
    partners: dict[int, list[tuple[int, int]]] = {idx: [] for idx in needing}
    for bond in aromatic_bonds:
        a, b = bond.atom1_idx, bond.atom2_idx
        if a in needing and b in needing:
            partners[a].append((b, bond.idx))
            partners[b].append((a, bond.idx))

    matching: dict[int, int] = {}

    def try_match() -> bool:
        """Match the most constrained free atom first, backtracking on failure."""
        free = [idx for idx in needing if idx not in matching]
        if not free:
            return True

        atom_idx = min(
            free,
            key=lambda idx: (sum(1 for nbr, _ in partners[idx] if nbr not in matching), idx),
        )
        for nbr_idx, bond_idx in partners[atom_idx]:
            if nbr_idx in matching:
                continue
            matching[atom_idx] = bond_idx
            matching[nbr_idx] = bond_idx
            if try_match():
                return True
            del matching[atom_idx]
            del matching[nbr_idx]
        return False

    if not try_match():
        unmatched = sorted(needing)
        raise KekulizeError(
            f"Cannot kekulize: no alternating bond pattern covers atoms {unmatched}"
        )

    double_bonds = set(matching.values())
    for bond in aromatic_bonds:
        bond.order = BondOrder.DOUBLE if bond.idx in double_bonds else BondOrder.SINGLE
        bond.is_aromatic = False
    for idx in aromatic_atoms:
        mol.atoms[idx].is_aromatic = False

    # Bond orders changed; coordinates stay valid
    mol.generation += 1
    mol._cache.clear()
    return mol
