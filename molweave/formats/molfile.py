"""
MDL Molfile reader and writer (V2000 and V3000 connection tables).

V2000 is a fixed-column format; V3000 stores the connection table in
``M  V30`` lines of whitespace-separated fields with ``KEY=value``
properties. Both readers report errors with the 1-based line number of the
offending line.
"""

from __future__ import annotations

import logging
from typing import Final, Sequence

from molweave.elements import BondOrder, BondStereo, Element, implicit_hydrogen_count
from molweave.exceptions import DuplicateBond, InvalidReference, MalformedInput
from molweave.transform.kekulize import kekulize as kekulized
from molweave.types import Atom, Molecule

logger = logging.getLogger(__name__)


# V2000 charge column code -> formal charge (4 is a doublet radical)
_CHARGE_CODES: Final[dict[int, int]] = {0: 0, 1: 3, 2: 2, 3: 1, 4: 0, 5: -1, 6: -2, 7: -3}
_CHARGE_TO_CODE: Final[dict[int, int]] = {3: 1, 2: 2, 1: 3, 0: 0, -1: 5, -2: 6, -3: 7}

_BOND_TYPES: Final[dict[int, BondOrder]] = {
    1: BondOrder.SINGLE,
    2: BondOrder.DOUBLE,
    3: BondOrder.TRIPLE,
    4: BondOrder.AROMATIC,
}

_V2000_SINGLE_STEREO: Final[dict[int, BondStereo]] = {
    0: BondStereo.NONE,
    1: BondStereo.UP,
    4: BondStereo.EITHER,
    6: BondStereo.DOWN,
}
_V2000_DOUBLE_STEREO: Final[dict[int, BondStereo]] = {0: BondStereo.NONE, 3: BondStereo.EITHER}
_V2000_STEREO_CODE: Final[dict[BondStereo, int]] = {
    BondStereo.NONE: 0,
    BondStereo.UP: 1,
    BondStereo.EITHER: 4,
    BondStereo.DOWN: 6,
}

_V3000_BOND_CFG: Final[dict[int, BondStereo]] = {
    0: BondStereo.NONE,
    1: BondStereo.UP,
    2: BondStereo.EITHER,
    3: BondStereo.DOWN,
}
_V3000_CFG_CODE: Final[dict[BondStereo, int]] = {v: k for k, v in _V3000_BOND_CFG.items()}

# Hydrogen isotope shorthands
_ISOTOPE_SYMBOLS: Final[dict[str, tuple[str, int]]] = {"D": ("H", 2), "T": ("H", 3)}

# Property lines in the V2000 properties block that are read past
_SKIPPED_WITH_TEXT: Final[tuple[str, ...]] = ("A  ", "V  ", "G  ")

V2000_MAX_ENTRIES: Final[int] = 999


class MolfileReader:
    """Connection table reader for one Molfile (or one SDF record).

    Args:
        lines: The Molfile lines without line terminators.
        first_line: 1-based line number of ``lines[0]`` in the surrounding
            document; used for error messages.
    """

    def __init__(self, lines: Sequence[str], first_line: int = 1) -> None:
        self._lines = lines
        self._first_line = first_line
        self._pos = 0
        self._mol = Molecule()
        self._coords: list[tuple[float, float, float]] = []

    @property
    def consumed(self) -> int:
        """Number of lines read, including ``M  END``."""
        return self._pos

    def _lineno(self, offset: int | None = None) -> int:
        return self._first_line + (self._pos if offset is None else offset)

    def _error(self, message: str, offset: int | None = None) -> MalformedInput:
        return MalformedInput(message, line=self._lineno(offset))

    def _next_line(self, what: str) -> str:
        if self._pos >= len(self._lines):
            raise self._error(f"Unexpected end of input, expected {what}")
        line = self._lines[self._pos]
        self._pos += 1
        return line

    def read(self) -> Molecule:
        """Parse the connection table.

        Returns:
            The parsed Molecule, named after the header's first line.

        Raises:
            MalformedInput: On count mismatches, unparseable fields, bad atom
                references, unknown element symbols or a missing ``M  END``.
        """
        name = self._next_line("header").strip()
        self._next_line("program line")
        self._next_line("comment line")
        counts = self._next_line("counts line")

        if "V3000" in counts[33:]:
            self._read_v3000()
        else:
            self._read_v2000(counts)

        mol = self._mol
        mol.name = name or None
        self._finish()
        return mol

    def _finish(self) -> None:
        mol = self._mol

        if self._coords and any(c != (0.0, 0.0, 0.0) for c in self._coords):
            mol.set_coordinates([(x, y) for x, y, _ in self._coords])
            for atom, (_, _, z) in zip(mol.atoms, self._coords):
                atom.z = z

        for atom in mol.atoms:
            if not atom.hydrogens_fixed:
                atom.implicit_hydrogens = atom.valence_hydrogens(mol) or 0

    # ------------------------------------------------------------------
    # V2000
    # ------------------------------------------------------------------

    def _int_field(self, line: str, start: int, end: int, what: str, default: int = 0) -> int:
        text = line[start:end].strip()
        if not text:
            return default
        try:
            return int(text)
        except ValueError:
            raise self._error(f"Unparseable {what} field '{text}'", self._pos - 1) from None

    def _float_field(self, line: str, start: int, end: int, what: str) -> float:
        text = line[start:end].strip()
        try:
            return float(text)
        except ValueError:
            raise self._error(f"Unparseable {what} field '{text}'", self._pos - 1) from None

    def _read_v2000(self, counts: str) -> None:
        n_atoms = self._int_field(counts, 0, 3, "atom count")
        n_bonds = self._int_field(counts, 3, 6, "bond count")

        for i in range(n_atoms):
            line = self._atom_block_line(i, n_atoms)
            self._read_v2000_atom(line)

        for i in range(n_bonds):
            line = self._next_line(f"bond line {i + 1} of {n_bonds}")
            self._read_v2000_bond(line, n_atoms)

        self._read_properties(n_atoms)

    def _atom_block_line(self, i: int, n_atoms: int) -> str:
        line = self._next_line(f"atom line {i + 1} of {n_atoms}")
        if line.startswith("M  "):
            raise self._error(
                f"Count mismatch: expected {n_atoms} atom lines, found {i}", self._pos - 1
            )
        return line

    def _read_v2000_atom(self, line: str) -> None:
        x = self._float_field(line, 0, 10, "x coordinate")
        y = self._float_field(line, 10, 20, "y coordinate")
        z = self._float_field(line, 20, 30, "z coordinate")
        symbol = line[31:34].strip()
        mass_diff = self._int_field(line, 34, 36, "mass difference")
        charge_code = self._int_field(line, 36, 39, "charge")
        parity = self._int_field(line, 39, 42, "stereo parity")
        h_code = self._int_field(line, 42, 45, "hydrogen count")
        atom_map = self._int_field(line, 60, 63, "atom map")

        if charge_code not in _CHARGE_CODES:
            raise self._error(f"Invalid charge code {charge_code}", self._pos - 1)

        atom_idx = self._add_atom(symbol, self._pos - 1)
        atom = self._mol.atoms[atom_idx]
        atom.charge = _CHARGE_CODES[charge_code]
        if mass_diff:
            atom.isotope = round(atom.element.mass) + mass_diff
        atom.stereo_parity = parity
        if h_code > 0:
            # hhh stores count + 1 so that 0 can mean "not specified"
            atom.implicit_hydrogens = h_code - 1
            atom.hydrogens_fixed = True
        if atom_map:
            atom.atom_class = atom_map
        self._coords.append((x, y, z))

    def _add_atom(self, symbol: str, offset: int) -> int:
        isotope = None
        if symbol in _ISOTOPE_SYMBOLS:
            symbol, isotope = _ISOTOPE_SYMBOLS[symbol]

        elem = Element.from_symbol(symbol)
        if elem is None or elem.symbol != symbol.capitalize():
            raise self._error(f"Unknown element symbol '{symbol}'", offset)
        return self._mol.add_atom(elem.symbol, isotope=isotope)

    def _read_v2000_bond(self, line: str, n_atoms: int) -> None:
        if line.startswith("M  "):
            raise self._error("Count mismatch: bond block ended early", self._pos - 1)

        a1 = self._int_field(line, 0, 3, "bond atom")
        a2 = self._int_field(line, 3, 6, "bond atom")
        bond_type = self._int_field(line, 6, 9, "bond type")
        stereo_code = self._int_field(line, 9, 12, "bond stereo")

        order = _BOND_TYPES.get(bond_type)
        if order is None:
            raise self._error(f"Unsupported bond type {bond_type}", self._pos - 1)

        table = _V2000_DOUBLE_STEREO if order == BondOrder.DOUBLE else _V2000_SINGLE_STEREO
        stereo = table.get(stereo_code, BondStereo.NONE)
        self._add_bond(a1, a2, order, stereo, n_atoms, self._pos - 1)

    def _add_bond(
        self,
        a1: int,
        a2: int,
        order: BondOrder,
        stereo: BondStereo,
        n_atoms: int,
        offset: int,
    ) -> None:
        for ref in (a1, a2):
            if not 1 <= ref <= n_atoms:
                raise self._error(f"Bond references atom {ref} out of 1..{n_atoms}", offset)

        try:
            self._mol.add_bond(a1 - 1, a2 - 1, order=order, stereo=stereo)
        except (DuplicateBond, InvalidReference) as err:
            raise self._error(str(err), offset) from err

        if order == BondOrder.AROMATIC:
            self._mol.atoms[a1 - 1].is_aromatic = True
            self._mol.atoms[a2 - 1].is_aromatic = True

    def _read_properties(self, n_atoms: int) -> None:
        charges_reset = False
        isotopes_reset = False

        while True:
            line = self._next_line("M  END")

            if line.startswith("M  END"):
                return

            if line.startswith("M  CHG") or line.startswith("M  ISO"):
                is_charge = line.startswith("M  CHG")
                if is_charge and not charges_reset:
                    for atom in self._mol.atoms:
                        atom.charge = 0
                    charges_reset = True
                if not is_charge and not isotopes_reset:
                    for atom in self._mol.atoms:
                        atom.isotope = None
                    isotopes_reset = True

                for atom_ref, value in self._property_pairs(line, n_atoms):
                    atom = self._mol.atoms[atom_ref - 1]
                    if is_charge:
                        atom.charge = value
                    else:
                        atom.isotope = value
                continue

            if line.startswith("M  ") or line.startswith("S  SKP"):
                logger.debug("Ignoring property line: %s", line.rstrip())
                continue

            if line.startswith(_SKIPPED_WITH_TEXT):
                self._next_line("property text")
                continue

            raise self._error(
                f"Count mismatch: unexpected line in properties block: '{line.rstrip()}'",
                self._pos - 1,
            )

    def _property_pairs(self, line: str, n_atoms: int) -> list[tuple[int, int]]:
        fields = line[6:].split()
        try:
            values = [int(f) for f in fields]
        except ValueError:
            raise self._error("Unparseable property line", self._pos - 1) from None

        if not values or len(values) != 1 + 2 * values[0]:
            raise self._error("Count mismatch in property line", self._pos - 1)

        pairs = list(zip(values[1::2], values[2::2]))
        for atom_ref, _ in pairs:
            if not 1 <= atom_ref <= n_atoms:
                raise self._error(f"Property references atom {atom_ref} out of 1..{n_atoms}", self._pos - 1)
        return pairs

    # ------------------------------------------------------------------
    # V3000
    # ------------------------------------------------------------------

    def _next_v30(self) -> tuple[str, int]:
        """Read one logical ``M  V30`` line, joining '-' continuations."""
        start = self._pos
        parts: list[str] = []

        while True:
            line = self._next_line("M  V30 line").rstrip()
            if not line.startswith("M  V30"):
                raise self._error(f"Expected 'M  V30' line, got '{line}'", self._pos - 1)
            content = line[7:]
            if content.endswith("-"):
                parts.append(content[:-1])
                continue
            parts.append(content)
            return "".join(parts).strip(), start

    def _read_v3000(self) -> None:
        content, start = self._next_v30()
        if content != "BEGIN CTAB":
            raise self._error("Expected 'M  V30 BEGIN CTAB'", start)

        content, start = self._next_v30()
        fields = content.split()
        if not fields or fields[0] != "COUNTS" or len(fields) < 3:
            raise self._error("Expected 'M  V30 COUNTS' line", start)
        try:
            n_atoms, n_bonds = int(fields[1]), int(fields[2])
        except ValueError:
            raise self._error("Unparseable COUNTS line", start) from None

        while True:
            content, start = self._next_v30()
            if content == "END CTAB":
                break
            if content == "BEGIN ATOM":
                self._read_v3000_atoms(n_atoms)
            elif content == "BEGIN BOND":
                self._read_v3000_bonds(n_bonds, n_atoms)
            elif content.startswith("BEGIN "):
                self._skip_v3000_block(content[6:].strip())
            else:
                raise self._error(f"Unexpected V3000 line '{content}'", start)

        if len(self._mol.atoms) != n_atoms:
            raise self._error(
                f"Count mismatch: COUNTS declares {n_atoms} atoms, found {len(self._mol.atoms)}"
            )
        if len(self._mol.bonds) != n_bonds:
            raise self._error(
                f"Count mismatch: COUNTS declares {n_bonds} bonds, found {len(self._mol.bonds)}"
            )

        line = self._next_line("M  END")
        if not line.startswith("M  END"):
            raise self._error("Expected 'M  END'", self._pos - 1)

    def _skip_v3000_block(self, block: str) -> None:
        logger.debug("Skipping V3000 %s block", block)
        while True:
            content, _ = self._next_v30()
            if content == f"END {block}":
                return

    def _read_v3000_atoms(self, n_atoms: int) -> None:
        while True:
            content, start = self._next_v30()
            if content == "END ATOM":
                return

            fields = _split_v3000(content)
            if len(fields) < 6:
                raise self._error("Truncated V3000 atom line", start)

            try:
                x, y, z = float(fields[2]), float(fields[3]), float(fields[4])
                atom_map = int(fields[5])
            except ValueError:
                raise self._error("Unparseable V3000 atom field", start) from None

            atom_idx = self._add_atom(fields[1], start)
            atom = self._mol.atoms[atom_idx]
            if atom_map:
                atom.atom_class = atom_map
            self._coords.append((x, y, z))

            for key, value in _key_values(fields[6:]):
                try:
                    if key == "CHG":
                        atom.charge = int(value)
                    elif key == "MASS":
                        atom.isotope = int(value)
                    elif key == "CFG":
                        atom.stereo_parity = int(value)
                    elif key == "HCOUNT":
                        count = int(value)
                        if count:
                            atom.implicit_hydrogens = max(count, 0)
                            atom.hydrogens_fixed = True
                    else:
                        self._mol.atom_properties.setdefault(atom_idx, {})[key] = value
                except ValueError:
                    raise self._error(f"Unparseable {key} value '{value}'", start) from None

    def _read_v3000_bonds(self, n_bonds: int, n_atoms: int) -> None:
        while True:
            content, start = self._next_v30()
            if content == "END BOND":
                return

            fields = _split_v3000(content)
            if len(fields) < 4:
                raise self._error("Truncated V3000 bond line", start)

            try:
                bond_type, a1, a2 = int(fields[1]), int(fields[2]), int(fields[3])
            except ValueError:
                raise self._error("Unparseable V3000 bond field", start) from None

            order = _BOND_TYPES.get(bond_type)
            if order is None:
                raise self._error(f"Unsupported bond type {bond_type}", start)

            stereo = BondStereo.NONE
            for key, value in _key_values(fields[4:]):
                if key == "CFG":
                    if not value.isdigit():
                        raise self._error(f"Unparseable CFG value '{value}'", start)
                    stereo = _V3000_BOND_CFG.get(int(value), BondStereo.NONE)

            self._add_bond(a1, a2, order, stereo, n_atoms, start)


def _split_v3000(content: str) -> list[str]:
    """Split a V3000 line on whitespace, keeping (...) and "..." together."""
    fields: list[str] = []
    current: list[str] = []
    depth = 0
    quoted = False

    for char in content:
        if char == '"':
            quoted = not quoted
        elif not quoted and char == "(":
            depth += 1
        elif not quoted and char == ")":
            depth -= 1

        if char.isspace() and depth == 0 and not quoted:
            if current:
                fields.append("".join(current))
                current = []
        else:
            current.append(char)

    if current:
        fields.append("".join(current))
    return fields


def _key_values(fields: Sequence[str]) -> list[tuple[str, str]]:
    pairs = []
    for field in fields:
        key, sep, value = field.partition("=")
        if sep:
            pairs.append((key.upper(), value))
    return pairs


# ----------------------------------------------------------------------
# Writers
# ----------------------------------------------------------------------


def _header(mol: Molecule) -> list[str]:
    dim = "2D" if mol.has_coordinates else "  "
    return [mol.name or "", f"  MOLWEAVE{'':10}{dim}", ""]


def _atom_position(mol: Molecule, idx: int) -> tuple[float, float, float]:
    atom = mol.atoms[idx]
    if atom.coords is None:
        return 0.0, 0.0, atom.z
    return atom.coords[0], atom.coords[1], atom.z


def _bond_type(order: BondOrder, is_aromatic: bool) -> int:
    return 4 if is_aromatic or order == BondOrder.AROMATIC else int(order)


def _stated_hydrogens(mol: Molecule, atom: Atom) -> int | None:
    """Hydrogen count to store on the atom line, or None if a reader infers it.

    Readers derive hydrogens from the valence model, which has no way to
    tell pyrrole ``[nH]`` from a radical ``n`` once bonds are written as
    aromatic. Counts that differ from the inferred value are stated.
    """
    aromatic = any(_bond_type(bond.order, bond.is_aromatic) == 4 for bond in atom.get_bonds(mol))
    inferred = implicit_hydrogen_count(
        atom.atomic_number, atom.bond_order_sum(mol), atom.charge, aromatic
    )
    if (inferred or 0) == atom.implicit_hydrogens:
        return None
    return atom.implicit_hydrogens


def write_v2000(mol: Molecule) -> str:
    """Serialise a molecule as a V2000 Molfile.

    Raises:
        ValueError: If the molecule has more than 999 atoms or bonds.
    """
    if len(mol.atoms) > V2000_MAX_ENTRIES or len(mol.bonds) > V2000_MAX_ENTRIES:
        raise ValueError("V2000 cannot hold more than 999 atoms or bonds")

    lines = _header(mol)
    lines.append(f"{len(mol.atoms):3d}{len(mol.bonds):3d}  0  0  0  0  0  0  0  0999 V2000")

    charges: list[tuple[int, int]] = []
    isotopes: list[tuple[int, int]] = []

    for atom in mol.atoms:
        x, y, z = _atom_position(mol, atom.idx)
        code = _CHARGE_TO_CODE.get(atom.charge, 0)
        atom_map = atom.atom_class or 0
        hydrogens = _stated_hydrogens(mol, atom)
        h_code = 0 if hydrogens is None else hydrogens + 1
        lines.append(
            f"{x:10.4f}{y:10.4f}{z:10.4f} {atom.symbol:<3} 0{code:3d}{atom.stereo_parity:3d}"
            f"{h_code:3d}  0  0  0  0  0{atom_map:3d}  0  0"
        )
        if atom.charge:
            charges.append((atom.idx + 1, atom.charge))
        if atom.isotope is not None:
            isotopes.append((atom.idx + 1, atom.isotope))

    for bond in mol.bonds:
        bond_type = _bond_type(bond.order, bond.is_aromatic)
        if bond.order == BondOrder.DOUBLE:
            stereo = 3 if bond.stereo == BondStereo.EITHER else 0
        else:
            stereo = _V2000_STEREO_CODE[bond.stereo]
        lines.append(
            f"{bond.atom1_idx + 1:3d}{bond.atom2_idx + 1:3d}{bond_type:3d}{stereo:3d}  0  0  0"
        )

    for tag, entries in (("CHG", charges), ("ISO", isotopes)):
        for start in range(0, len(entries), 8):
            chunk = entries[start:start + 8]
            body = "".join(f" {idx:3d} {value:3d}" for idx, value in chunk)
            lines.append(f"M  {tag}{len(chunk):3d}{body}")

    lines.append("M  END")
    return "\n".join(lines) + "\n"


def _v30_lines(content: str) -> list[str]:
    """Wrap a V3000 logical line at 80 columns with '-' continuations."""
    prefix = "M  V30 "
    width = 80 - len(prefix) - 1
    lines = []
    while len(content) > width + 1:
        lines.append(prefix + content[:width] + "-")
        content = content[width:]
    lines.append(prefix + content)
    return lines


def write_v3000(mol: Molecule) -> str:
    """Serialise a molecule as a V3000 Molfile."""
    lines = _header(mol)
    lines.append("  0  0  0     0  0            999 V3000")
    lines.extend(_v30_lines("BEGIN CTAB"))
    lines.extend(_v30_lines(f"COUNTS {len(mol.atoms)} {len(mol.bonds)} 0 0 0"))
    lines.extend(_v30_lines("BEGIN ATOM"))

    for atom in mol.atoms:
        x, y, z = _atom_position(mol, atom.idx)
        parts = [f"{atom.idx + 1} {atom.symbol} {x:.4f} {y:.4f} {z:.4f} {atom.atom_class or 0}"]
        if atom.charge:
            parts.append(f"CHG={atom.charge}")
        if atom.isotope is not None:
            parts.append(f"MASS={atom.isotope}")
        if atom.stereo_parity:
            parts.append(f"CFG={atom.stereo_parity}")
        hydrogens = _stated_hydrogens(mol, atom)
        if hydrogens is not None:
            # HCOUNT=-1 means no hydrogens
            parts.append(f"HCOUNT={hydrogens or -1}")
        for key, value in mol.atom_properties.get(atom.idx, {}).items():
            parts.append(f"{key}={value}")
        lines.extend(_v30_lines(" ".join(parts)))

    lines.extend(_v30_lines("END ATOM"))
    lines.extend(_v30_lines("BEGIN BOND"))

    for bond in mol.bonds:
        bond_type = _bond_type(bond.order, bond.is_aromatic)
        content = f"{bond.idx + 1} {bond_type} {bond.atom1_idx + 1} {bond.atom2_idx + 1}"
        if bond.stereo != BondStereo.NONE:
            content += f" CFG={_V3000_CFG_CODE[bond.stereo]}"
        lines.extend(_v30_lines(content))

    lines.extend(_v30_lines("END BOND"))
    lines.extend(_v30_lines("END CTAB"))
    lines.append("M  END")
    return "\n".join(lines) + "\n"


def write_molfile(mol: Molecule, version: str | None = None, kekulize: bool = False) -> str:
    """Serialise a molecule as a Molfile.

    Args:
        mol: Molecule to write.
        version: "V2000", "V3000", or None to pick V2000 unless the molecule
            has more than 999 atoms or bonds.
        kekulize: Write aromatic systems as alternating single and double
            bonds (type 1/2) instead of aromatic bonds (type 4), for readers
            that do not accept aromatic bond types.

    Returns:
        Molfile text ending in ``M  END`` and a newline.

    Raises:
        ValueError: If ``version`` is unknown or V2000 cannot hold the
            molecule.
        KekulizeError: If ``kekulize`` is set and no Kekulé form exists.
    """
    if kekulize:
        mol = kekulized(mol)

    if version is None:
        too_big = len(mol.atoms) > V2000_MAX_ENTRIES or len(mol.bonds) > V2000_MAX_ENTRIES
        version = "V3000" if too_big else "V2000"

    version = version.upper()
    if version == "V2000":
        return write_v2000(mol)
    if version == "V3000":
        return write_v3000(mol)
    raise ValueError(f"Unknown Molfile version '{version}'")


def read_molfile(text: str) -> Molecule:
    """Parse a Molfile (V2000 or V3000) into a Molecule.

    Args:
        text: Molfile content.

    Returns:
        Parsed Molecule. Atom coordinates are attached unless every atom
        sits at the origin.

    Raises:
        MalformedInput: If the Molfile is malformed; the error carries the
            1-based line number.

    Example:
        >>> mol = read_molfile(write_molfile(parse("CCO")))
        >>> mol.num_atoms
        3
    """
    return MolfileReader(text.splitlines()).read()
