"""
SMILES string writer.

This module converts Molecule objects back to SMILES strings. Each
connected component is written by a depth-first traversal that starts at
its lowest atom index; the output re-parses to an isomorphic graph.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Final, Iterator

from molweave.elements import BondOrder, is_organic_symbol
from molweave.exceptions import InvalidReference

if TYPE_CHECKING:
    from molweave.types import Atom, Bond, Molecule


# Marker for the implicit hydrogen of a chiral bracket atom in neighbour lists
_IMPLICIT_H: Final[int] = -1

_INVERTED_CHIRALITY: Final[dict[str, str]] = {
    "@": "@@",
    "@@": "@",
    "@TH1": "@TH2",
    "@TH2": "@TH1",
}

_FLIPPED_DIRECTION: Final[dict[str, str]] = {"/": "\\", "\\": "/"}


def count_swaps_to_interconvert(ref: list[int], probe: list[int]) -> int:
    """Count swaps needed to convert probe to match ref.

    Uses bubble-sort swap counting algorithm.

    Args:
        ref: Reference ordering.
        probe: Ordering to transform.

    Returns:
        Number of swaps needed.

    Raises:
        ValueError: If lists have different elements.
    """
    if len(ref) != len(probe):
        raise ValueError("Size mismatch")

    probe = list(probe)
    n_swaps = 0

    for i, ref_val in enumerate(ref):
        if probe[i] != ref_val:
            j = i + 1
            while j < len(probe) and probe[j] != ref_val:
                j += 1

            if j >= len(probe):
                raise ValueError(f"Element {ref_val} not found in probe")

            probe[i], probe[j] = probe[j], probe[i]
            n_swaps += 1

    return n_swaps


class SmilesWriter:
    """SMILES string writer.

    The traversal algorithm:
    1. Start from the lowest atom index in each component (or ``start``)
    2. Depth-first search; back edges become ring closures
    3. Ring closures are written right after the atom, closings first
    4. Ring digits are the lowest free digit, released after the atom

    Example:
        >>> from molweave import parse
        >>> mol = parse("C(C)CC")
        >>> SmilesWriter(mol).to_smiles()
        'C(C)CC'
    """

    def __init__(self, mol: Molecule, start: int | None = None) -> None:
        """Initialize writer.

        Args:
            mol: Molecule to write.
            start: Atom to start its component's traversal from.

        Raises:
            InvalidReference: If ``start`` is not an atom of ``mol``.
        """
        if start is not None and not 0 <= start < len(mol.atoms):
            raise InvalidReference(f"Start atom {start} out of range", start)
        self._mol = mol
        self._start = start

    def to_smiles(self) -> str:
        """Generate the SMILES string.

        Returns:
            SMILES string, components joined with '.'.
        """
        parts: list[str] = []

        for comp in self._mol.connected_components():
            root = comp[0]
            if self._start is not None and self._start in comp:
                root = self._start
            parts.append(self._write_component(root))

        return ".".join(parts)

    def _traverse(
        self, root: int
    ) -> tuple[dict[int, list[int]], dict[int, list[int]]]:
        """Phase 1: find tree children and ring closures without recursion.

        Returns:
            Tuple of (children, closures): for each atom, the tree bonds to
            its children in visit order and the ring-closure bonds it carries.
        """
        mol = self._mol
        children: dict[int, list[int]] = {root: []}
        closures: dict[int, list[int]] = {root: []}
        on_path: set[int] = {root}
        handled: set[int] = set()

        stack: list[tuple[int, int | None, Iterator[int]]] = [
            (root, None, iter(mol.atoms[root].bond_indices))
        ]

        while stack:
            atom_idx, in_bond, bonds = stack[-1]
            advanced = False

            for bond_idx in bonds:
                if bond_idx == in_bond or bond_idx in handled:
                    continue
                nbr = mol.bonds[bond_idx].other_atom(atom_idx)
                handled.add(bond_idx)

                if nbr not in children:
                    children[atom_idx].append(bond_idx)
                    children[nbr] = []
                    closures[nbr] = []
                    on_path.add(nbr)
                    stack.append((nbr, bond_idx, iter(mol.atoms[nbr].bond_indices)))
                    advanced = True
                    break

                if nbr in on_path:
                    # Back edge to an ancestor: the ancestor opens the ring
                    closures[nbr].append(bond_idx)
                    closures[atom_idx].append(bond_idx)

            if not advanced:
                on_path.discard(atom_idx)
                stack.pop()

        return children, closures

    def _write_component(self, root: int) -> str:
        """Phase 2: emit SMILES for the component containing ``root``."""
        mol = self._mol
        children, closures = self._traverse(root)

        out: list[str] = []
        open_digits: dict[int, int] = {}
        used_digits: set[int] = set()

        # Work stack of ("atom", atom_idx, in_bond) or ("text", str)
        work: list[tuple] = [("atom", root, None)]

        while work:
            item = work.pop()
            if item[0] == "text":
                out.append(item[1])
                continue

            _, atom_idx, in_bond = item
            atom = mol.atoms[atom_idx]
            child_bonds = children[atom_idx]
            closing = [b for b in closures[atom_idx] if b in open_digits]
            opening = [b for b in closures[atom_idx] if b not in open_digits]

            invert = False
            if atom.chirality:
                invert = self._chirality_inverted(atom, in_bond, closing + opening, child_bonds)
            out.append(self._atom_to_smiles(atom, invert))

            released: list[int] = []

            for bond_idx in closing:
                digit = open_digits.pop(bond_idx)
                out.append(self._bond_to_smiles(mol.bonds[bond_idx], atom_idx))
                out.append(self._ring_number_to_smiles(digit))
                released.append(digit)

            for bond_idx in opening:
                digit = 1
                while digit in used_digits:
                    digit += 1
                used_digits.add(digit)
                open_digits[bond_idx] = digit
                out.append(self._ring_number_to_smiles(digit))

            used_digits.difference_update(released)

            # Push children in reverse so the first is written first
            last = len(child_bonds) - 1
            for i in range(last, -1, -1):
                bond_idx = child_bonds[i]
                child = mol.bonds[bond_idx].other_atom(atom_idx)
                if i < last:
                    work.append(("text", ")"))
                work.append(("atom", child, bond_idx))
                work.append(("text", self._bond_to_smiles(mol.bonds[bond_idx], atom_idx)))
                if i < last:
                    work.append(("text", "("))

        return "".join(out)

    def _chirality_inverted(
        self,
        atom: Atom,
        in_bond: int | None,
        ring_bonds: list[int],
        child_bonds: list[int],
    ) -> bool:
        """Whether the output neighbour order flips the tetrahedral marker."""
        written = ([in_bond] if in_bond is not None else []) + ring_bonds + child_bonds
        stored = list(atom.bond_indices)

        if atom.implicit_hydrogens == 1:
            stored.insert(0 if atom._was_first_in_component else 1, _IMPLICIT_H)
            written.insert(0 if in_bond is None else 1, _IMPLICIT_H)

        if len(stored) < 3:
            return False
        return count_swaps_to_interconvert(written, stored) % 2 == 1

    def _atom_to_smiles(self, atom: Atom, invert_chirality: bool = False) -> str:
        """Convert atom to SMILES string."""
        symbol = atom.symbol.lower() if atom.is_aromatic else atom.symbol

        if not self._needs_brackets(atom):
            return symbol

        chirality = atom.chirality
        if invert_chirality and chirality:
            chirality = _INVERTED_CHIRALITY.get(chirality, chirality)

        parts = ["["]
        if atom.isotope is not None:
            parts.append(str(atom.isotope))
        parts.append(symbol)

        if chirality:
            parts.append(chirality)

        if atom.implicit_hydrogens > 0:
            parts.append("H")
            if atom.implicit_hydrogens > 1:
                parts.append(str(atom.implicit_hydrogens))

        if atom.charge > 0:
            parts.append("+")
            if atom.charge > 1:
                parts.append(str(atom.charge))
        elif atom.charge < 0:
            parts.append("-")
            if atom.charge < -1:
                parts.append(str(-atom.charge))

        if atom.atom_class is not None:
            parts.append(":")
            parts.append(str(atom.atom_class))

        parts.append("]")
        return "".join(parts)

    def _needs_brackets(self, atom: Atom) -> bool:
        """Check if atom needs bracket notation.

        An atom needs brackets if:
        - It's not in the organic subset (or aromatic organic subset)
        - It has a charge, isotope, chirality or atom class
        - Its hydrogen count differs from what the valence model implies
        """
        symbol = atom.symbol.lower() if atom.is_aromatic else atom.symbol
        if not is_organic_symbol(symbol):
            return True

        if atom.charge != 0 or atom.isotope is not None:
            return True

        if atom.chirality or atom.atom_class is not None:
            return True

        return atom.implicit_hydrogens != atom.valence_hydrogens(self._mol)

    def _bond_to_smiles(self, bond: Bond, from_atom: int) -> str:
        """Convert bond to SMILES string as written leaving ``from_atom``.

        Single bonds between aromatic atoms that are not themselves aromatic
        need an explicit '-' to distinguish from implicit aromatic bonds.
        """
        a1 = self._mol.atoms[bond.atom1_idx]
        a2 = self._mol.atoms[bond.atom2_idx]
        both_aromatic = a1.is_aromatic and a2.is_aromatic

        if bond.is_aromatic or bond.order == BondOrder.AROMATIC:
            return "" if both_aromatic else ":"

        if bond.order == BondOrder.SINGLE:
            if bond.direction:
                if from_atom == bond.atom2_idx:
                    return _FLIPPED_DIRECTION[bond.direction]
                return bond.direction
            return "-" if both_aromatic else ""

        if bond.order == BondOrder.DOUBLE:
            return "="

        if bond.order == BondOrder.TRIPLE:
            return "#"

        return ""

    def _ring_number_to_smiles(self, n: int) -> str:
        """Format ring closure digit."""
        if 1 <= n <= 9:
            return str(n)
        if 10 <= n <= 99:
            return f"%{n}"
        return f"%({n})"


def to_smiles(mol: Molecule, start: int | None = None) -> str:
    """Convert a Molecule to a SMILES string.

    Args:
        mol: Molecule to convert.
        start: Optional atom to start its component's traversal from.

    Returns:
        SMILES string.

    Example:
        >>> mol = parse("OCC")
        >>> to_smiles(mol)
        'OCC'
    """
    return SmilesWriter(mol, start).to_smiles()
