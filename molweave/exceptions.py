"""
Custom exceptions for molweave.

This module defines a hierarchy of exceptions for handling chemistry-related
errors in a structured way. Codec errors carry the position (SMILES) or line
number (Molfile/SDF) where the problem was found.
"""

from __future__ import annotations


class ChemError(Exception):
    """Base exception for all chemistry-related errors."""

    pass


class MalformedInput(ChemError):
    """Grammar or field violation while reading a structure notation.

    Attributes:
        message: Description of what went wrong.
        source: The text being parsed (a SMILES string or a Molfile line).
        position: Character position in ``source`` where the error occurred.
        line: 1-based line number for line-oriented formats.
    """

    def __init__(
        self,
        message: str,
        source: str | None = None,
        position: int | None = None,
        line: int | None = None,
    ) -> None:
        self.message = message
        self.source = source
        self.position = position
        self.line = line

        # Build detailed error message
        parts = [message]
        if line is not None:
            parts.append(f" (line {line})")
        if source is not None and position is not None:
            parts.append(f"\n  {source}")
            parts.append(f"\n  {' ' * position}^")
        elif source is not None:
            parts.append(f" in: {source}")

        super().__init__("".join(parts))


class UnsatisfiableValence(MalformedInput):
    """No allowed valence of the element fits the atom's bonding.

    Attributes:
        atom_symbol: The element symbol of the problematic atom.
        allowed_valences: Valences the element may take.
        actual_valence: The bond order sum found.
    """

    def __init__(
        self,
        message: str,
        atom_symbol: str | None = None,
        allowed_valences: tuple[int, ...] | None = None,
        actual_valence: int | None = None,
        source: str | None = None,
    ) -> None:
        self.atom_symbol = atom_symbol
        self.allowed_valences = allowed_valences
        self.actual_valence = actual_valence
        super().__init__(message, source)


class InvalidReference(ChemError, IndexError):
    """Graph operation on an out-of-range, stale or self-referencing index."""

    def __init__(self, message: str, index: int | None = None) -> None:
        self.message = message
        self.index = index
        super().__init__(message)


class DuplicateBond(ChemError, ValueError):
    """A bond already exists between the two atoms."""

    def __init__(self, atom1_idx: int, atom2_idx: int) -> None:
        self.atom1_idx = atom1_idx
        self.atom2_idx = atom2_idx
        super().__init__(f"Bond already exists between atoms {atom1_idx} and {atom2_idx}")


class ExternalCodecUnavailable(ChemError):
    """An external notation library is missing or failed to convert."""

    pass


class KekulizeError(ChemError):
    """No alternating single/double bond assignment covers the aromatic atoms."""

    pass
