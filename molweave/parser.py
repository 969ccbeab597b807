"""
SMILES string parser.

This module converts SMILES strings into Molecule objects with a single
left-to-right scan over the string.

Supported features:
    - Organic subset atoms (B, C, N, O, P, S, F, Cl, Br, I) and their
      aromatic forms (b, c, n, o, p, s)
    - Bracket atoms with isotopes, chirality, hydrogen counts, charges and
      atom classes
    - Single, double, triple and aromatic bonds, directional bonds (/ and \\)
    - Ring closures (1-9, %10-99, %(100+))
    - Branches (parentheses)
    - Multi-component molecules (dot separator)

After the scan, unmarked bonds between aromatic atoms are made aromatic if
they lie in a ring, and implicit hydrogens of organic-subset atoms are
inferred from the valence model. The molecule is only returned when the
whole string was accepted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Final

from molweave.elements import (
    ORGANIC_AROMATIC_SUBSET,
    ORGANIC_SUBSET,
    TWO_LETTER_ORGANIC,
    BondOrder,
    Element,
    get_allowed_valences,
    is_aromatic_symbol,
)
from molweave.exceptions import (
    DuplicateBond,
    InvalidReference,
    MalformedInput,
    UnsatisfiableValence,
)
from molweave.types import Molecule


class _Tokenizer:
    """Low-level SMILES tokenizer.

    Provides character-by-character access to a SMILES string with
    lookahead capability.
    """

    __slots__ = ("_string", "_pos")

    def __init__(self, string: str) -> None:
        self._string = string
        self._pos = 0

    @property
    def position(self) -> int:
        """Current position in the string."""
        return self._pos

    def peek(self, offset: int = 0) -> str | None:
        """Look at character at current position + offset without consuming.

        Args:
            offset: Positions ahead to look (default 0 = current).

        Returns:
            Character at position, or None if past end.
        """
        pos = self._pos + offset
        if pos >= len(self._string):
            return None
        return self._string[pos]

    def next(self) -> str | None:
        """Consume and return the next character.

        Returns:
            Next character, or None if at end.
        """
        if self._pos >= len(self._string):
            return None
        char = self._string[self._pos]
        self._pos += 1
        return char

    def read_while(self, predicate) -> str:
        """Read characters while predicate is true.

        Args:
            predicate: Function(char) -> bool.

        Returns:
            String of consumed characters.
        """
        start = self._pos
        while self._pos < len(self._string) and predicate(self._string[self._pos]):
            self._pos += 1
        return self._string[start:self._pos]

    def read_number(self) -> int | None:
        """Read and return an integer, or None if no digits present."""
        digits = self.read_while(str.isdigit)
        return int(digits) if digits else None

    def is_eof(self) -> bool:
        """Check if at end of string."""
        return self._pos >= len(self._string)


@dataclass(slots=True)
class _RingOpening:
    """A ring-closure digit waiting for its partner."""

    atom_idx: int
    bond_symbol: str | None
    position: int


@dataclass
class _ParserState:
    """Mutable state for the SMILES parser."""

    # Ring closure tracking: ring number -> opening
    open_rings: dict[int, _RingOpening] = field(default_factory=dict)

    # Branch stack for parentheses: (atom index, position of '(')
    branch_stack: list[tuple[int, int]] = field(default_factory=list)

    # Current state
    prev_atom: int | None = None
    pending_bond: str | None = None
    pending_bond_pos: int = 0

    # Neighbour ordering: (atom, bond) -> position of the token introducing it
    bond_rank: dict[tuple[int, int], int] = field(default_factory=dict)

    # Bonds written without a symbol between two aromatic atoms
    implicit_aromatic_bonds: list[int] = field(default_factory=list)


class SmilesParser:
    """SMILES string parser.

    Parses SMILES (Simplified Molecular Input Line Entry System) strings
    into Molecule objects.

    Example:
        >>> parser = SmilesParser("CCO")
        >>> mol = parser.parse()
        >>> len(mol.atoms)
        3

    For convenience, use the module-level `parse()` function:
        >>> from molweave import parse
        >>> mol = parse("CCO")
    """

    # Bond character mapping: char -> (order, direction)
    _BOND_CHARS: Final[dict[str, tuple[BondOrder, str | None]]] = {
        "-": (BondOrder.SINGLE, None),
        "=": (BondOrder.DOUBLE, None),
        "#": (BondOrder.TRIPLE, None),
        ":": (BondOrder.AROMATIC, None),
        "/": (BondOrder.SINGLE, "/"),
        "\\": (BondOrder.SINGLE, "\\"),
    }

    # Symbols that mean the same bond order at both ring-closure ends
    _ORDER_CLASS: Final[dict[str, str]] = {"/": "-", "\\": "-"}

    _FLIPPED: Final[dict[str, str]] = {"/": "\\", "\\": "/"}

    # Two-letter chirality classes (@TH1, @AL2, @SP3, @TB12, @OH25)
    _CHIRAL_CLASSES: Final[frozenset[str]] = frozenset({"TH", "AL", "SP", "TB", "OH"})

    def __init__(self, smiles: str) -> None:
        """Initialize parser with a SMILES string.

        Args:
            smiles: SMILES string to parse.
        """
        self._smiles = smiles
        self._tokenizer = _Tokenizer(smiles)
        self._mol = Molecule()
        self._state = _ParserState()

    def parse(self) -> Molecule:
        """Parse the SMILES string into a Molecule.

        Returns:
            Parsed Molecule object.

        Raises:
            MalformedInput: If the SMILES syntax is invalid.
            UnsatisfiableValence: If an organic-subset atom has no
                consistent valence.
        """
        try:
            self._scan()
            self._finalize()
        except (DuplicateBond, InvalidReference) as err:
            raise MalformedInput(str(err), self._smiles, self._tokenizer.position) from err
        return self._mol

    def _error(self, message: str, position: int | None = None) -> MalformedInput:
        if position is None:
            position = self._tokenizer.position
        return MalformedInput(message, self._smiles, position)

    def _scan(self) -> None:
        tok = self._tokenizer

        while not tok.is_eof():
            char = tok.peek()

            if char == ".":
                self._check_no_pending_bond()
                tok.next()
                self._state.prev_atom = None
                continue

            if char in self._BOND_CHARS:
                if self._state.pending_bond is not None:
                    raise self._error(f"Unexpected bond symbol '{char}'")
                if self._state.prev_atom is None:
                    raise self._error(f"Bond symbol '{char}' without preceding atom")
                self._state.pending_bond = char
                self._state.pending_bond_pos = tok.position
                tok.next()
                continue

            if char == "(":
                if self._state.prev_atom is None:
                    raise self._error("Branch without preceding atom")
                self._check_no_pending_bond()
                self._state.branch_stack.append((self._state.prev_atom, tok.position))
                tok.next()
                continue

            if char == ")":
                self._check_no_pending_bond()
                if not self._state.branch_stack:
                    raise self._error("Unmatched ')'")
                tok.next()
                self._state.prev_atom = self._state.branch_stack.pop()[0]
                continue

            if char.isdigit() or char == "%":
                self._parse_ring_closure()
                continue

            if char == "[":
                self._parse_bracket_atom()
                continue

            if char.isalpha():
                self._parse_organic_atom()
                continue

            raise self._error(f"Unexpected character: '{char}'")

        self._check_no_pending_bond()

        if self._state.branch_stack:
            raise self._error("Unclosed branch", self._state.branch_stack[-1][1])

        if self._state.open_rings:
            unclosed = sorted(self._state.open_rings)
            opening = self._state.open_rings[unclosed[0]]
            raise self._error(f"Unclosed ring indices: {unclosed}", opening.position)

    def _check_no_pending_bond(self) -> None:
        if self._state.pending_bond is not None:
            raise self._error(
                f"Bond symbol '{self._state.pending_bond}' not followed by an atom",
                self._state.pending_bond_pos,
            )

    def _parse_ring_closure(self) -> None:
        """Parse a ring closure digit."""
        tok = self._tokenizer
        start = tok.position

        ring_num = self._read_ring_index()

        if self._state.prev_atom is None:
            raise self._error("Ring closure without preceding atom", start)

        symbol = self._state.pending_bond
        self._state.pending_bond = None
        atom_idx = self._state.prev_atom

        opening = self._state.open_rings.pop(ring_num, None)
        if opening is None:
            self._state.open_rings[ring_num] = _RingOpening(atom_idx, symbol, start)
            return

        if opening.atom_idx == atom_idx:
            raise self._error(f"Ring closure {ring_num} bonds an atom to itself", start)

        first = opening.bond_symbol
        if first is not None and symbol is not None:
            if self._ORDER_CLASS.get(first, first) != self._ORDER_CLASS.get(symbol, symbol):
                raise self._error(
                    f"Conflicting bond symbols '{first}' and '{symbol}' for ring closure {ring_num}",
                    start,
                )

        # The bond runs from the opening atom to the closing atom; a direction
        # written at the closing end points the other way.
        if first is not None:
            effective = first
        elif symbol is not None:
            effective = self._FLIPPED.get(symbol, symbol)
        else:
            effective = None

        bond_idx = self._add_bond(opening.atom_idx, atom_idx, effective)
        self._state.bond_rank[(opening.atom_idx, bond_idx)] = opening.position
        self._state.bond_rank[(atom_idx, bond_idx)] = start

    def _read_ring_index(self) -> int:
        """Read a ring closure index (1-9, %nn, %(n))."""
        tok = self._tokenizer

        if tok.peek() == "%":
            tok.next()

            if tok.peek() == "(":
                tok.next()
                num = tok.read_number()
                if num is None:
                    raise self._error("Empty ring index in %()")
                if tok.next() != ")":
                    raise self._error("Expected ')' after ring index", tok.position - 1)
                return num

            d1 = tok.next()
            d2 = tok.next()
            if not (d1 and d1.isdigit() and d2 and d2.isdigit()):
                raise self._error("Expected two digits after %")
            return int(d1 + d2)

        return int(tok.next())

    def _parse_organic_atom(self) -> None:
        """Parse an organic subset atom (not in brackets)."""
        tok = self._tokenizer
        start = tok.position

        char1 = tok.next()
        assert char1 is not None
        symbol = char1

        char2 = tok.peek()
        if char2 and (char1 + char2) in TWO_LETTER_ORGANIC:
            tok.next()
            symbol = char1 + char2

        if symbol in ORGANIC_SUBSET:
            aromatic = False
        elif symbol in ORGANIC_AROMATIC_SUBSET:
            aromatic = True
        else:
            raise self._error(f"Unknown organic subset atom '{symbol}'", start)

        atom_idx = self._mol.add_atom(symbol, is_aromatic=aromatic)
        self._attach(atom_idx, start)

    def _parse_bracket_atom(self) -> None:
        """Parse a bracket atom [...].

        Supports:
        - Basic: [C], [N+], [O-]
        - Isotopes: [13C], [2H]
        - Chirality: [C@H], [C@@H], [C@TH1]
        - Hydrogen count: [NH4+], [CH2]
        - Atom classes: [CH3:1]
        """
        tok = self._tokenizer
        start = tok.position
        tok.next()  # consume '['

        isotope = tok.read_number()
        symbol, aromatic = self._read_bracket_symbol()

        chirality: str | None = None
        hydrogens = 0
        charge = 0
        atom_class: int | None = None

        if tok.peek() == "@":
            tok.next()
            if tok.peek() == "@":
                tok.next()
                chirality = "@@"
            else:
                chirality = "@"
                tag = (tok.peek() or "") + (tok.peek(1) or "")
                if tag in self._CHIRAL_CLASSES:
                    tok.next()
                    tok.next()
                    num = tok.read_number()
                    if num is None:
                        raise self._error(f"Expected number after chirality class '@{tag}'")
                    chirality = f"@{tag}{num}"

        if tok.peek() == "H":
            tok.next()
            h_count = tok.read_number()
            hydrogens = h_count if h_count is not None else 1

        if tok.peek() in ("+", "-"):
            charge = self._parse_charge()

        if tok.peek() == ":":
            tok.next()
            atom_class = tok.read_number()
            if atom_class is None:
                raise self._error("Expected atom class number after ':'")

        if tok.peek() != "]":
            if tok.is_eof():
                raise self._error("Unclosed bracket atom", start)
            raise self._error(f"Unexpected character in bracket atom: '{tok.peek()}'")
        tok.next()

        atom_idx = self._mol.add_atom(
            symbol,
            charge=charge,
            isotope=isotope,
            is_aromatic=aromatic,
            implicit_hydrogens=hydrogens,
            hydrogens_fixed=True,
            chirality=chirality,
            atom_class=atom_class,
        )
        self._attach(atom_idx, start)

    def _read_bracket_symbol(self) -> tuple[str, bool]:
        """Read the element symbol of a bracket atom.

        Returns:
            Tuple of (canonical element symbol, is_aromatic).
        """
        tok = self._tokenizer
        start = tok.position
        char1 = tok.peek()

        if char1 is None or not char1.isalpha():
            raise self._error("Expected element symbol in bracket atom")

        tok.next()
        char2 = tok.peek()

        if char1.isupper():
            pair = Element.from_symbol(char1 + char2) if char2 and char2.islower() else None
            if pair is not None and pair.symbol == char1 + char2:
                tok.next()
                return char1 + char2, False
            elem = Element.from_symbol(char1)
            if elem is None or elem.symbol != char1:
                raise self._error(f"Unknown element symbol '{char1}'", start)
            return char1, False

        if char2 and char2.islower() and is_aromatic_symbol(char1 + char2):
            tok.next()
            return (char1 + char2).capitalize(), True
        if is_aromatic_symbol(char1):
            return char1.upper(), True
        raise self._error(f"Unknown aromatic element symbol '{char1}'", start)

    def _parse_charge(self) -> int:
        """Parse a charge (+, -, ++, --, +2, -3, etc.)."""
        tok = self._tokenizer

        char = tok.peek()
        sign = 1 if char == "+" else -1

        # Count consecutive + or -
        count = 0
        while tok.peek() == char:
            tok.next()
            count += 1

        num = tok.read_number()
        if num is not None:
            if count > 1:
                raise self._error("Charge with both repeated signs and a number")
            return sign * num

        return sign * count

    def _attach(self, atom_idx: int, position: int) -> None:
        """Bond a freshly added atom to the current atom and advance."""
        state = self._state
        atom = self._mol.atoms[atom_idx]
        atom._was_first_in_component = state.prev_atom is None

        if state.prev_atom is not None:
            symbol = state.pending_bond
            state.pending_bond = None
            bond_idx = self._add_bond(state.prev_atom, atom_idx, symbol)
            state.bond_rank[(state.prev_atom, bond_idx)] = position
            # The bond to the preceding atom is always first in the new
            # atom's neighbour order.
            state.bond_rank[(atom_idx, bond_idx)] = -1

        state.prev_atom = atom_idx

    def _add_bond(self, atom1_idx: int, atom2_idx: int, symbol: str | None) -> int:
        """Create a bond from an optional SMILES bond symbol."""
        atoms = self._mol.atoms

        if symbol is None:
            bond_idx = self._mol.add_bond(atom1_idx, atom2_idx)
            if atoms[atom1_idx].is_aromatic and atoms[atom2_idx].is_aromatic:
                self._state.implicit_aromatic_bonds.append(bond_idx)
            return bond_idx

        order, direction = self._BOND_CHARS[symbol]
        return self._mol.add_bond(atom1_idx, atom2_idx, order=order, direction=direction)

    def _finalize(self) -> None:
        """Post-scan passes: neighbour order, aromatic bonds, hydrogens."""
        mol = self._mol
        rank = self._state.bond_rank

        for atom in mol.atoms:
            atom.bond_indices.sort(key=lambda b, a=atom.idx: rank.get((a, b), 0))

        if self._state.implicit_aromatic_bonds:
            from molweave.rings.detection import get_ring_bonds

            ring_bonds = get_ring_bonds(mol)
            for bond_idx in self._state.implicit_aromatic_bonds:
                if bond_idx in ring_bonds:
                    bond = mol.bonds[bond_idx]
                    bond.order = BondOrder.AROMATIC
                    bond.is_aromatic = True
            # Ring views computed above saw the pre-resolution bond orders.
            mol._cache.clear()

        for atom in mol.atoms:
            if atom.hydrogens_fixed:
                continue
            hydrogens = atom.valence_hydrogens(mol)
            if hydrogens is None:
                raise UnsatisfiableValence(
                    f"No valence of {atom.symbol} fits atom {atom.idx} "
                    f"(bond order sum {atom.bond_order_sum(mol)})",
                    atom_symbol=atom.symbol,
                    allowed_valences=get_allowed_valences(atom.atomic_number),
                    actual_valence=atom.bond_order_sum(mol),
                    source=self._smiles,
                )
            atom.implicit_hydrogens = hydrogens


def parse(smiles: str) -> Molecule:
    """Parse a SMILES string into a Molecule.

    This is a convenience function that creates a SmilesParser and
    calls parse(). Leading and trailing whitespace is ignored.

    Args:
        smiles: SMILES string to parse.

    Returns:
        Parsed Molecule object.

    Raises:
        MalformedInput: If SMILES syntax is invalid.

    Example:
        >>> mol = parse("CCO")
        >>> len(mol.atoms)
        3
    """
    return SmilesParser(smiles.strip()).parse()
