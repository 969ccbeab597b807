"""
Core molecular data types.

This module defines the Graph Store: the Atom, Bond and Molecule classes.
The Molecule owns its atoms and bonds, keeps the per-atom adjacency in step
with every mutation, and caches derived views (rings, ring systems,
distances). Every mutating call bumps ``Molecule.generation`` and drops the
cache, so derived views are recomputed lazily on next access.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterator

from .elements import (
    BondOrder,
    BondStereo,
    Element,
    get_atomic_number,
    implicit_hydrogen_count,
)
from .exceptions import DuplicateBond, InvalidReference, MalformedInput

if TYPE_CHECKING:
    from typing import Self

    from .rings.detection import Ring, RingSystem


@dataclass(slots=True)
class Bond:
    """Represents a chemical bond between two atoms.

    Attributes:
        idx: Index of this bond in the molecule (-1 once removed).
        atom1_idx: Index of the first atom ("from" end for serialization).
        atom2_idx: Index of the second atom.
        order: Bond order (single, double, triple or aromatic).
        stereo: Wedge flag (none, up, down, either).
        direction: SMILES directional marker ('/' or '\\') read from
            atom1 towards atom2.
        is_aromatic: Whether this bond is aromatic.
    """

    idx: int
    atom1_idx: int
    atom2_idx: int
    order: BondOrder = BondOrder.SINGLE
    stereo: BondStereo = BondStereo.NONE
    direction: str | None = None
    is_aromatic: bool = False

    def other_atom(self, atom_idx: int) -> int:
        """Get the index of the atom on the other end of this bond.

        Args:
            atom_idx: Index of one atom in the bond.

        Returns:
            Index of the other atom.

        Raises:
            ValueError: If atom_idx is not part of this bond.
        """
        if atom_idx == self.atom1_idx:
            return self.atom2_idx
        if atom_idx == self.atom2_idx:
            return self.atom1_idx
        raise ValueError(f"Atom {atom_idx} not in bond {self.idx}")

    @property
    def key(self) -> tuple[int, int]:
        """Unordered atom pair as a sorted tuple."""
        return (min(self.atom1_idx, self.atom2_idx), max(self.atom1_idx, self.atom2_idx))

    def __contains__(self, atom_idx: int) -> bool:
        """Check if atom is part of this bond."""
        return atom_idx in (self.atom1_idx, self.atom2_idx)


@dataclass(slots=True)
class Atom:
    """Represents an atom in a molecule.

    Attributes:
        idx: Index of this atom in the molecule (-1 once removed).
        symbol: Element symbol in canonical case (e.g., "C", "Cl").
        charge: Formal charge.
        isotope: Mass number, or None for natural abundance.
        is_aromatic: Whether this atom is aromatic.
        implicit_hydrogens: Hydrogens attached but not stored as atoms.
        hydrogens_fixed: True if the hydrogen count was stated explicitly
            (SMILES bracket atom) rather than inferred from valence.
        chirality: Tetrahedral marker ('@' or '@@') from SMILES.
        stereo_parity: Molfile atom parity (0 none, 1 odd, 2 even, 3 either).
        atom_class: Atom map number from SMILES.
        coords: 2D position, or None if no layout is attached.
        z: Depth coordinate read from a Molfile (kept for round-trips).
        bond_indices: Indices of incident bonds in neighbour order.
    """

    idx: int
    symbol: str
    charge: int = 0
    isotope: int | None = None
    is_aromatic: bool = False
    implicit_hydrogens: int = 0
    hydrogens_fixed: bool = False
    chirality: str | None = None
    stereo_parity: int = 0
    atom_class: int | None = None
    coords: tuple[float, float] | None = None
    z: float = 0.0
    bond_indices: list[int] = field(default_factory=list)
    _was_first_in_component: bool = False

    @property
    def atomic_number(self) -> int:
        """Get the atomic number for this element."""
        return get_atomic_number(self.symbol)

    @property
    def element(self) -> Element:
        """Element data for this atom."""
        elem = Element.from_symbol(self.symbol)
        assert elem is not None
        return elem

    def degree(self, mol: "Molecule") -> int:
        """Get the number of bonds to this atom."""
        return len(self.bond_indices)

    def neighbors(self, mol: "Molecule") -> Iterator[int]:
        """Iterate over indices of neighboring atoms.

        Args:
            mol: Parent molecule.

        Yields:
            Indices of atoms bonded to this atom.
        """
        for bond_idx in self.bond_indices:
            yield mol.bonds[bond_idx].other_atom(self.idx)

    def get_bonds(self, mol: "Molecule") -> Iterator[Bond]:
        """Iterate over bonds connected to this atom."""
        for bond_idx in self.bond_indices:
            yield mol.bonds[bond_idx]

    def bond_order_sum(self, mol: "Molecule") -> int:
        """Sum of incident bond orders, aromatic bonds counting 1."""
        return sum(bond.order.valence_contribution for bond in self.get_bonds(mol))

    def explicit_hydrogen_neighbors(self, mol: "Molecule") -> int:
        """Number of hydrogen atoms stored as graph neighbours."""
        return sum(1 for nbr in self.neighbors(mol) if mol.atoms[nbr].symbol == "H")

    def total_hydrogens(self, mol: "Molecule") -> int:
        """Calculate total hydrogen count (implicit + hydrogen neighbours).

        Args:
            mol: Parent molecule.

        Returns:
            Total number of hydrogens attached to this atom.
        """
        return self.implicit_hydrogens + self.explicit_hydrogen_neighbors(mol)

    def valence_hydrogens(self, mol: "Molecule") -> int | None:
        """Hydrogen count the valence model predicts for the current bonds."""
        return implicit_hydrogen_count(
            self.atomic_number,
            self.bond_order_sum(mol),
            self.charge,
            self.is_aromatic,
        )


@dataclass
class Molecule:
    """Represents a molecular structure.

    A molecule consists of atoms connected by bonds. This class provides
    methods for building, mutating and querying molecular structures.

    Attributes:
        atoms: List of atoms in the molecule.
        bonds: List of bonds in the molecule.
        name: Optional molecule name/identifier.
        properties: String-valued metadata (e.g. SDF data items).
        atom_properties: String-valued per-atom side table keyed by atom index.

    Example:
        >>> mol = Molecule()
        >>> c1 = mol.add_atom("C")
        >>> c2 = mol.add_atom("C")
        >>> mol.add_bond(c1, c2)
        0
        >>> len(mol)
        2
    """

    atoms: list[Atom] = field(default_factory=list)
    bonds: list[Bond] = field(default_factory=list)
    name: str | None = None
    properties: dict[str, str] = field(default_factory=dict)
    atom_properties: dict[int, dict[str, str]] = field(default_factory=dict)
    generation: int = field(default=0, compare=False)
    _bond_lookup: dict[tuple[int, int], int] = field(default_factory=dict, repr=False, compare=False)
    _has_coords: bool = field(default=False, repr=False, compare=False)
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    def __len__(self) -> int:
        """Return number of atoms."""
        return len(self.atoms)

    def __iter__(self) -> Iterator[Atom]:
        """Iterate over atoms."""
        return iter(self.atoms)

    def __getitem__(self, idx: int) -> Atom:
        """Get atom by index."""
        return self.atom(idx)

    def __contains__(self, atom: Atom) -> bool:
        return 0 <= atom.idx < len(self.atoms) and self.atoms[atom.idx] is atom

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add_atom(
        self,
        symbol: str,
        *,
        charge: int = 0,
        isotope: int | None = None,
        is_aromatic: bool = False,
        implicit_hydrogens: int = 0,
        hydrogens_fixed: bool = False,
        chirality: str | None = None,
        atom_class: int | None = None,
    ) -> int:
        """Add an atom to the molecule.

        Args:
            symbol: Element symbol (lowercase aromatic forms are accepted
                and normalised, setting ``is_aromatic``).
            charge: Formal charge.
            isotope: Mass number.
            is_aromatic: Whether atom is aromatic.
            implicit_hydrogens: Implicit hydrogen count.
            hydrogens_fixed: Whether the hydrogen count is explicit.
            chirality: Stereochemistry marker.
            atom_class: Atom class for reaction mapping.

        Returns:
            Index of the newly added atom.

        Raises:
            MalformedInput: If the element symbol is unknown.
        """
        elem = Element.from_symbol(symbol)
        if elem is None:
            raise MalformedInput(f"Unknown element symbol '{symbol}'")
        if symbol != elem.symbol and symbol.islower():
            is_aromatic = True

        idx = len(self.atoms)
        self.atoms.append(Atom(
            idx=idx,
            symbol=elem.symbol,
            charge=charge,
            isotope=isotope,
            is_aromatic=is_aromatic,
            implicit_hydrogens=implicit_hydrogens,
            hydrogens_fixed=hydrogens_fixed,
            chirality=chirality,
            atom_class=atom_class,
        ))
        self._invalidate()
        return idx

    def add_bond(
        self,
        atom1_idx: int,
        atom2_idx: int,
        *,
        order: int = BondOrder.SINGLE,
        stereo: int = BondStereo.NONE,
        direction: str | None = None,
        is_aromatic: bool | None = None,
    ) -> int:
        """Add a bond between two atoms.

        Args:
            atom1_idx: Index of the first atom.
            atom2_idx: Index of the second atom.
            order: Bond order.
            stereo: Wedge flag.
            direction: SMILES directional marker ('/' or '\\').
            is_aromatic: Aromatic flag; defaults to ``order == AROMATIC``.

        Returns:
            Index of the newly added bond.

        Raises:
            InvalidReference: If atom indices are out of bounds or equal.
            DuplicateBond: If the two atoms are already bonded.
        """
        self._check_atom(atom1_idx)
        self._check_atom(atom2_idx)
        if atom1_idx == atom2_idx:
            raise InvalidReference(f"Cannot bond atom {atom1_idx} to itself", atom1_idx)

        key = (min(atom1_idx, atom2_idx), max(atom1_idx, atom2_idx))
        if key in self._bond_lookup:
            raise DuplicateBond(atom1_idx, atom2_idx)

        order = BondOrder(order)
        if is_aromatic is None:
            is_aromatic = order is BondOrder.AROMATIC

        idx = len(self.bonds)
        self.bonds.append(Bond(
            idx=idx,
            atom1_idx=atom1_idx,
            atom2_idx=atom2_idx,
            order=order,
            stereo=BondStereo(stereo),
            direction=direction,
            is_aromatic=is_aromatic,
        ))
        self._bond_lookup[key] = idx
        self.atoms[atom1_idx].bond_indices.append(idx)
        self.atoms[atom2_idx].bond_indices.append(idx)
        self._invalidate()
        return idx

    def remove_bond(self, bond_idx: int) -> None:
        """Remove a bond, compacting the indices of the bonds after it.

        Args:
            bond_idx: Index of the bond to remove.

        Raises:
            InvalidReference: If the bond does not exist.
        """
        self._check_bond(bond_idx)
        self._remove_bonds({bond_idx})
        self._invalidate()

    def remove_atom(self, atom_idx: int) -> None:
        """Remove an atom together with all its bonds.

        Atom and bond indices are compacted afterwards: every atom or bond
        that followed a removed one moves down. Callers must treat all
        previously obtained indices and derived views as stale.

        Args:
            atom_idx: Index of the atom to remove.

        Raises:
            InvalidReference: If the atom does not exist.
        """
        self._check_atom(atom_idx)
        removed = self.atoms[atom_idx]
        self._remove_bonds(set(removed.bond_indices))

        del self.atoms[atom_idx]
        removed.idx = -1
        removed.bond_indices = []
        for atom in self.atoms[atom_idx:]:
            atom.idx -= 1

        def shift(i: int) -> int:
            return i - 1 if i > atom_idx else i

        for bond in self.bonds:
            bond.atom1_idx = shift(bond.atom1_idx)
            bond.atom2_idx = shift(bond.atom2_idx)
        self._bond_lookup = {bond.key: bond.idx for bond in self.bonds}
        self.atom_properties = {
            shift(i): props for i, props in self.atom_properties.items() if i != atom_idx
        }
        self._invalidate()

    def _remove_bonds(self, doomed: set[int]) -> None:
        """Drop bonds and renumber the survivors."""
        if not doomed:
            return
        remap: dict[int, int] = {}
        kept: list[Bond] = []
        for bond in self.bonds:
            if bond.idx in doomed:
                bond.idx = -1
                continue
            remap[bond.idx] = len(kept)
            bond.idx = len(kept)
            kept.append(bond)
        self.bonds = kept
        for atom in self.atoms:
            atom.bond_indices = [remap[b] for b in atom.bond_indices if b in remap]
        self._bond_lookup = {bond.key: bond.idx for bond in self.bonds}

    def _invalidate(self) -> None:
        """Drop derived views and attached coordinates after a mutation."""
        self.generation += 1
        self._cache.clear()
        if self._has_coords:
            for atom in self.atoms:
                atom.coords = None
            self._has_coords = False

    def set_coordinates(self, coords: list[tuple[float, float]]) -> None:
        """Attach 2D positions to all atoms, in atom order.

        Coordinates are not a structural change: caches and the generation
        counter are left alone. They are cleared by the next mutation.

        Raises:
            ValueError: If the number of positions does not match.
        """
        if len(coords) != len(self.atoms):
            raise ValueError(f"Expected {len(self.atoms)} coordinates, got {len(coords)}")
        for atom, (x, y) in zip(self.atoms, coords):
            atom.coords = (float(x), float(y))
        self._has_coords = bool(self.atoms)

    def _check_atom(self, atom_idx: int) -> None:
        if not isinstance(atom_idx, int) or not 0 <= atom_idx < len(self.atoms):
            raise InvalidReference(f"Atom index out of range: {atom_idx}", atom_idx)

    def _check_bond(self, bond_idx: int) -> None:
        if not isinstance(bond_idx, int) or not 0 <= bond_idx < len(self.bonds):
            raise InvalidReference(f"Bond index out of range: {bond_idx}", bond_idx)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def atom(self, atom_idx: int) -> Atom:
        """Get an atom by index, raising InvalidReference if absent."""
        self._check_atom(atom_idx)
        return self.atoms[atom_idx]

    def bond(self, bond_idx: int) -> Bond:
        """Get a bond by index, raising InvalidReference if absent."""
        self._check_bond(bond_idx)
        return self.bonds[bond_idx]

    def get_adjacency(self, atom_idx: int) -> list[tuple[int, int]]:
        """Neighbours of an atom paired with the connecting bond index.

        Args:
            atom_idx: Index of the atom.

        Returns:
            List of ``(neighbor_idx, bond_idx)`` in neighbour order.

        Raises:
            InvalidReference: If the atom does not exist.
        """
        atom = self.atom(atom_idx)
        return [(self.bonds[b].other_atom(atom_idx), b) for b in atom.bond_indices]

    def get_bond_between(self, atom1_idx: int, atom2_idx: int) -> Bond | None:
        """Find the bond between two atoms.

        Args:
            atom1_idx: Index of the first atom.
            atom2_idx: Index of the second atom.

        Returns:
            Bond object if found, None otherwise.
        """
        bond_idx = self._bond_lookup.get((min(atom1_idx, atom2_idx), max(atom1_idx, atom2_idx)))
        return None if bond_idx is None else self.bonds[bond_idx]

    def connected_components(self) -> list[list[int]]:
        """Find connected components in the molecule.

        Returns:
            List of components, each being a sorted list of atom indices,
            ordered by their lowest atom index.
        """
        cached = self._cache.get("components")
        if cached is not None:
            return [list(c) for c in cached]

        visited: set[int] = set()
        components: list[list[int]] = []

        for start in range(len(self.atoms)):
            if start in visited:
                continue

            component: list[int] = []
            stack = [start]
            visited.add(start)

            while stack:
                atom_idx = stack.pop()
                component.append(atom_idx)

                for neighbor in self.atoms[atom_idx].neighbors(self):
                    if neighbor not in visited:
                        visited.add(neighbor)
                        stack.append(neighbor)

            components.append(sorted(component))

        self._cache["components"] = tuple(tuple(c) for c in components)
        return components

    def copy(self) -> "Self":
        """Create a deep copy of the molecule.

        Returns:
            New Molecule instance with copied data (derived caches are not
            copied; coordinates are).
        """
        mol = Molecule(
            name=self.name,
            properties=dict(self.properties),
            atom_properties={i: dict(p) for i, p in self.atom_properties.items()},
        )
        for atom in self.atoms:
            mol.atoms.append(Atom(
                idx=atom.idx,
                symbol=atom.symbol,
                charge=atom.charge,
                isotope=atom.isotope,
                is_aromatic=atom.is_aromatic,
                implicit_hydrogens=atom.implicit_hydrogens,
                hydrogens_fixed=atom.hydrogens_fixed,
                chirality=atom.chirality,
                stereo_parity=atom.stereo_parity,
                atom_class=atom.atom_class,
                coords=atom.coords,
                z=atom.z,
                bond_indices=list(atom.bond_indices),
                _was_first_in_component=atom._was_first_in_component,
            ))
        for bond in self.bonds:
            mol.bonds.append(Bond(
                idx=bond.idx,
                atom1_idx=bond.atom1_idx,
                atom2_idx=bond.atom2_idx,
                order=bond.order,
                stereo=bond.stereo,
                direction=bond.direction,
                is_aromatic=bond.is_aromatic,
            ))
        mol._bond_lookup = dict(self._bond_lookup)
        mol._has_coords = self._has_coords
        return mol

    @property
    def num_atoms(self) -> int:
        """Number of atoms in the molecule."""
        return len(self.atoms)

    @property
    def num_bonds(self) -> int:
        """Number of bonds in the molecule."""
        return len(self.bonds)

    @property
    def is_connected(self) -> bool:
        """Check if molecule is a single connected component."""
        return len(self.connected_components()) <= 1

    @property
    def has_coordinates(self) -> bool:
        """True if every atom carries a 2D position."""
        return bool(self.atoms) and all(a.coords is not None for a in self.atoms)

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    @property
    def rings(self) -> tuple["Ring", ...]:
        """Smallest set of smallest rings (cached until the next mutation)."""
        from .rings.detection import find_sssr

        return find_sssr(self)

    @property
    def ring_systems(self) -> tuple["RingSystem", ...]:
        """Fused/spiro ring systems (cached until the next mutation)."""
        from .rings.detection import find_ring_systems

        return find_ring_systems(self)

    def is_ring_atom(self, atom_idx: int) -> bool:
        """Whether the atom belongs to at least one ring."""
        self._check_atom(atom_idx)
        from .rings.detection import get_ring_membership

        return get_ring_membership(self)[atom_idx] > 0

    def is_ring_bond(self, bond_idx: int) -> bool:
        """Whether the bond belongs to at least one ring."""
        self._check_bond(bond_idx)
        from .rings.detection import get_ring_bonds

        return bond_idx in get_ring_bonds(self)

    def is_current(self, view: Any) -> bool:
        """Whether a derived view (Ring, RingSystem) is still valid."""
        return getattr(view, "generation", None) == self.generation
