"""
Chemical elements and constants.

This module provides element data, periodic table information, and constants
used throughout the library: bond orders and stereo flags, the SMILES organic
subset, the valence model used for implicit hydrogens, and the electronic
parameters needed by the descriptor engine.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import ClassVar, Final, FrozenSet


class BondOrder(IntEnum):
    """Bond order enumeration.

    Values follow the MDL bond type codes so they can be written to
    Molfiles unchanged.
    """

    SINGLE = 1
    DOUBLE = 2
    TRIPLE = 3
    AROMATIC = 4

    def __str__(self) -> str:
        return self.name.lower()

    @property
    def valence_contribution(self) -> int:
        """Bond order counted towards an atom's valence (aromatic counts 1)."""
        return 1 if self is BondOrder.AROMATIC else int(self)


class BondStereo(IntEnum):
    """Bond stereo flag (wedge information)."""

    NONE = 0
    UP = 1
    DOWN = 2
    EITHER = 3

    def __str__(self) -> str:
        return self.name.lower()


@dataclass(frozen=True, slots=True)
class Element:
    """Immutable element data.

    Attributes:
        atomic_number: Atomic number (proton count).
        symbol: Element symbol (e.g., "C", "Cl").
        name: Full element name.
        mass: Standard atomic weight in g/mol.
    """

    atomic_number: int
    symbol: str
    name: str
    mass: float

    # Class-level registry
    _by_symbol: ClassVar[dict[str, "Element"]] = {}
    _by_number: ClassVar[dict[int, "Element"]] = {}

    def __post_init__(self) -> None:
        Element._by_symbol[self.symbol] = self
        Element._by_number[self.atomic_number] = self

    @classmethod
    def from_symbol(cls, symbol: str) -> "Element | None":
        """Look up element by symbol (lowercase aromatic forms accepted)."""
        if symbol in cls._by_symbol:
            return cls._by_symbol[symbol]
        # Aromatic lowercase form (e.g., "c" -> "C", "se" -> "Se")
        return cls._by_symbol.get(symbol.capitalize())

    @classmethod
    def from_atomic_number(cls, num: int) -> "Element | None":
        """Look up element by atomic number."""
        return cls._by_number.get(num)

    @property
    def period(self) -> int:
        """Period (row) of the periodic table, i.e. principal quantum number."""
        return principal_quantum_number(self.atomic_number)


_ELEMENTS_DATA: Final[list[tuple[int, str, str, float]]] = [
    # (atomic_number, symbol, name, standard atomic weight)
    (1, "H", "Hydrogen", 1.008),
    (2, "He", "Helium", 4.0026),
    (3, "Li", "Lithium", 6.94),
    (4, "Be", "Beryllium", 9.0122),
    (5, "B", "Boron", 10.81),
    (6, "C", "Carbon", 12.011),
    (7, "N", "Nitrogen", 14.007),
    (8, "O", "Oxygen", 15.999),
    (9, "F", "Fluorine", 18.998),
    (10, "Ne", "Neon", 20.180),
    (11, "Na", "Sodium", 22.990),
    (12, "Mg", "Magnesium", 24.305),
    (13, "Al", "Aluminum", 26.982),
    (14, "Si", "Silicon", 28.085),
    (15, "P", "Phosphorus", 30.974),
    (16, "S", "Sulfur", 32.06),
    (17, "Cl", "Chlorine", 35.45),
    (18, "Ar", "Argon", 39.948),
    (19, "K", "Potassium", 39.098),
    (20, "Ca", "Calcium", 40.078),
    (21, "Sc", "Scandium", 44.956),
    (22, "Ti", "Titanium", 47.867),
    (23, "V", "Vanadium", 50.942),
    (24, "Cr", "Chromium", 51.996),
    (25, "Mn", "Manganese", 54.938),
    (26, "Fe", "Iron", 55.845),
    (27, "Co", "Cobalt", 58.933),
    (28, "Ni", "Nickel", 58.693),
    (29, "Cu", "Copper", 63.546),
    (30, "Zn", "Zinc", 65.38),
    (31, "Ga", "Gallium", 69.723),
    (32, "Ge", "Germanium", 72.630),
    (33, "As", "Arsenic", 74.922),
    (34, "Se", "Selenium", 78.971),
    (35, "Br", "Bromine", 79.904),
    (36, "Kr", "Krypton", 83.798),
    (37, "Rb", "Rubidium", 85.468),
    (38, "Sr", "Strontium", 87.62),
    (39, "Y", "Yttrium", 88.906),
    (40, "Zr", "Zirconium", 91.224),
    (41, "Nb", "Niobium", 92.906),
    (42, "Mo", "Molybdenum", 95.95),
    (43, "Tc", "Technetium", 98.0),
    (44, "Ru", "Ruthenium", 101.07),
    (45, "Rh", "Rhodium", 102.91),
    (46, "Pd", "Palladium", 106.42),
    (47, "Ag", "Silver", 107.87),
    (48, "Cd", "Cadmium", 112.41),
    (49, "In", "Indium", 114.82),
    (50, "Sn", "Tin", 118.71),
    (51, "Sb", "Antimony", 121.76),
    (52, "Te", "Tellurium", 127.60),
    (53, "I", "Iodine", 126.90),
    (54, "Xe", "Xenon", 131.29),
    (55, "Cs", "Cesium", 132.91),
    (56, "Ba", "Barium", 137.33),
    (57, "La", "Lanthanum", 138.91),
    (58, "Ce", "Cerium", 140.12),
    (59, "Pr", "Praseodymium", 140.91),
    (60, "Nd", "Neodymium", 144.24),
    (61, "Pm", "Promethium", 145.0),
    (62, "Sm", "Samarium", 150.36),
    (63, "Eu", "Europium", 151.96),
    (64, "Gd", "Gadolinium", 157.25),
    (65, "Tb", "Terbium", 158.93),
    (66, "Dy", "Dysprosium", 162.50),
    (67, "Ho", "Holmium", 164.93),
    (68, "Er", "Erbium", 167.26),
    (69, "Tm", "Thulium", 168.93),
    (70, "Yb", "Ytterbium", 173.05),
    (71, "Lu", "Lutetium", 174.97),
    (72, "Hf", "Hafnium", 178.49),
    (73, "Ta", "Tantalum", 180.95),
    (74, "W", "Tungsten", 183.84),
    (75, "Re", "Rhenium", 186.21),
    (76, "Os", "Osmium", 190.23),
    (77, "Ir", "Iridium", 192.22),
    (78, "Pt", "Platinum", 195.08),
    (79, "Au", "Gold", 196.97),
    (80, "Hg", "Mercury", 200.59),
    (81, "Tl", "Thallium", 204.38),
    (82, "Pb", "Lead", 207.2),
    (83, "Bi", "Bismuth", 208.98),
    (84, "Po", "Polonium", 209.0),
    (85, "At", "Astatine", 210.0),
    (86, "Rn", "Radon", 222.0),
    (87, "Fr", "Francium", 223.0),
    (88, "Ra", "Radium", 226.0),
    (89, "Ac", "Actinium", 227.0),
    (90, "Th", "Thorium", 232.04),
    (91, "Pa", "Protactinium", 231.04),
    (92, "U", "Uranium", 238.03),
    (93, "Np", "Neptunium", 237.0),
    (94, "Pu", "Plutonium", 244.0),
    (95, "Am", "Americium", 243.0),
    (96, "Cm", "Curium", 247.0),
    (97, "Bk", "Berkelium", 247.0),
    (98, "Cf", "Californium", 251.0),
    (99, "Es", "Einsteinium", 252.0),
    (100, "Fm", "Fermium", 257.0),
    (101, "Md", "Mendelevium", 258.0),
    (102, "No", "Nobelium", 259.0),
    (103, "Lr", "Lawrencium", 262.0),
    (104, "Rf", "Rutherfordium", 267.0),
    (105, "Db", "Dubnium", 268.0),
    (106, "Sg", "Seaborgium", 269.0),
    (107, "Bh", "Bohrium", 270.0),
    (108, "Hs", "Hassium", 269.0),
    (109, "Mt", "Meitnerium", 278.0),
    (110, "Ds", "Darmstadtium", 281.0),
    (111, "Rg", "Roentgenium", 282.0),
    (112, "Cn", "Copernicium", 285.0),
    (113, "Nh", "Nihonium", 286.0),
    (114, "Fl", "Flerovium", 289.0),
    (115, "Mc", "Moscovium", 290.0),
    (116, "Lv", "Livermorium", 293.0),
    (117, "Ts", "Tennessine", 294.0),
    (118, "Og", "Oganesson", 294.0),
]

# Initialize elements
ELEMENTS: Final[tuple[Element, ...]] = tuple(
    Element(num, sym, name, mass)
    for num, sym, name, mass in _ELEMENTS_DATA
)

# Daylight "organic subset" - atoms that can appear without brackets
# when they have standard valence and no charge
ORGANIC_SUBSET: Final[FrozenSet[str]] = frozenset({
    "B", "C", "N", "O", "P", "S", "F", "Cl", "Br", "I",
})

# Aromatic symbols allowed without brackets
ORGANIC_AROMATIC_SUBSET: Final[FrozenSet[str]] = frozenset({
    "b", "c", "n", "o", "p", "s",
})

# Aromatic element symbols allowed in lowercase SMILES form inside brackets
AROMATIC_SUBSET: Final[FrozenSet[str]] = frozenset({
    "b", "c", "n", "o", "p", "s", "as", "se", "te",
})

# Two-letter elements in organic subset (need special handling in parser)
TWO_LETTER_ORGANIC: Final[FrozenSet[str]] = frozenset({"Cl", "Br"})

# Allowed valences for implicit hydrogen calculation, lowest first
ALLOWED_VALENCES: Final[dict[int, tuple[int, ...]]] = {
    1: (1,),          # H
    5: (3,),          # B
    6: (4,),          # C
    7: (3, 5),        # N
    8: (2,),          # O
    9: (1,),          # F
    15: (3, 5),       # P
    16: (2, 4, 6),    # S
    17: (1,),         # Cl
    35: (1,),         # Br
    53: (1,),         # I
    33: (3, 5),       # As
    34: (2, 4, 6),    # Se
    52: (2, 4, 6),    # Te
}

# Outer (valence shell) electrons for main group elements
OUTER_ELECTRONS: Final[dict[int, int]] = {
    1: 1,    # H
    3: 1, 11: 1, 19: 1, 37: 1, 55: 1,      # Group 1
    4: 2, 12: 2, 20: 2, 38: 2, 56: 2,      # Group 2
    30: 2, 48: 2, 80: 2,                   # Group 12
    5: 3, 13: 3, 31: 3, 49: 3, 81: 3,      # Group 13
    6: 4, 14: 4, 32: 4, 50: 4, 82: 4,      # Group 14
    7: 5, 15: 5, 33: 5, 51: 5, 83: 5,      # Group 15
    8: 6, 16: 6, 34: 6, 52: 6, 84: 6,      # Group 16
    9: 7, 17: 7, 35: 7, 53: 7, 85: 7,      # Group 17
}

# Last atomic number of each period
_PERIOD_ENDS: Final[tuple[int, ...]] = (2, 10, 18, 36, 54, 86, 118)


def get_atomic_number(symbol: str) -> int:
    """Get atomic number for an element symbol.

    Args:
        symbol: Element symbol (e.g., "C", "cl", "Cl").

    Returns:
        Atomic number, or 0 if not found.
    """
    elem = Element.from_symbol(symbol)
    return elem.atomic_number if elem else 0


def get_allowed_valences(atomic_num: int) -> tuple[int, ...]:
    """Get the valences an element may take in the implicit-hydrogen model.

    Args:
        atomic_num: Atomic number.

    Returns:
        Allowed valences in increasing order, empty if the element has no
        implicit hydrogens.
    """
    return ALLOWED_VALENCES.get(atomic_num, ())


def get_outer_electrons(atomic_num: int) -> int:
    """Get number of outer (valence) electrons for an element.

    Args:
        atomic_num: Atomic number.

    Returns:
        Number of outer electrons, or 0 if unknown.
    """
    return OUTER_ELECTRONS.get(atomic_num, 0)


def principal_quantum_number(atomic_num: int) -> int:
    """Get the principal quantum number of an element's valence shell."""
    for period, last in enumerate(_PERIOD_ENDS, start=1):
        if atomic_num <= last:
            return period
    return len(_PERIOD_ENDS)


def is_organic_symbol(symbol: str) -> bool:
    """Check if symbol may be written without brackets."""
    return symbol in ORGANIC_SUBSET or symbol in ORGANIC_AROMATIC_SUBSET


def is_aromatic_symbol(symbol: str) -> bool:
    """Check if symbol represents an aromatic atom."""
    return symbol in AROMATIC_SUBSET


def implicit_hydrogen_count(
    atomic_num: int,
    bond_order_sum: int,
    charge: int = 0,
    is_aromatic: bool = False,
) -> int | None:
    """Infer the implicit hydrogen count from the valence model.

    The smallest allowed valence that accommodates the bonds is used. For
    aromatic atoms one extra valence unit is reserved for the delocalized
    pi bond when it fits (``c`` in benzene gets one hydrogen, ``o`` in
    furan none). Positive charges on group 15/16 atoms raise the valence
    (NH4+), negative charges and charges on other elements lower it.

    Args:
        atomic_num: Atomic number.
        bond_order_sum: Sum of bond orders, aromatic bonds counting 1.
        charge: Formal charge.
        is_aromatic: Whether the atom is aromatic.

    Returns:
        Implicit hydrogen count, 0 for elements outside the valence model,
        or None if no allowed valence can be satisfied.
    """
    valences = get_allowed_valences(atomic_num)
    if not valences:
        return 0

    outer = get_outer_electrons(atomic_num)
    if charge > 0 and outer >= 5:
        adjust = charge
    else:
        adjust = -abs(charge)

    for valence in valences:
        target = valence + adjust
        if is_aromatic and target - bond_order_sum - 1 >= 0:
            return target - bond_order_sum - 1
        if target - bond_order_sum >= 0:
            return target - bond_order_sum
    return None
