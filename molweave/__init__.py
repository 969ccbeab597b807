"""
Molweave - molecular graph toolkit.

Reads and writes SMILES, MDL Molfiles (V2000/V3000) and SDF streams,
perceives rings and ring systems, generates 2D depiction coordinates and
computes connectivity and E-state descriptors.

    >>> from molweave import parse, to_smiles
    >>> mol = parse("OCC")
    >>> to_smiles(mol)
    'OCC'

Submodules:
    molweave.rings       - Ring detection (SSSR, ring systems)
    molweave.formats     - Molfile and SDF codecs
    molweave.layout      - 2D coordinate generation
    molweave.descriptors - Chi, E-state, formula and weight
    molweave.transform   - Kekulization
    molweave.batch       - Parallel descriptor batches
"""

__version__ = "0.1.0"

# Core types
from molweave.types import Atom, Bond, Molecule

# Parsing and writing
from molweave.parser import parse, SmilesParser
from molweave.writer import to_smiles, SmilesWriter
from molweave.formats import (
    read_molfile,
    write_molfile,
    iter_sdf,
    read_sdf,
    write_sdf,
)

# Exceptions
from molweave.exceptions import (
    ChemError,
    MalformedInput,
    UnsatisfiableValence,
    InvalidReference,
    DuplicateBond,
    ExternalCodecUnavailable,
    KekulizeError,
)

# Element data
from molweave.elements import Element, BondOrder, BondStereo, ORGANIC_SUBSET, AROMATIC_SUBSET

# Layout and descriptors
from molweave.config import LayoutConfig
from molweave.layout import generate_coordinates
from molweave.descriptors import compute_descriptors
from molweave.transform import kekulize

# Submodules
from molweave import descriptors, formats, layout, rings, transform

__all__ = [
    # Types
    "Atom", "Bond", "Molecule",
    # Parsing and writing
    "parse", "SmilesParser", "to_smiles", "SmilesWriter",
    "read_molfile", "write_molfile", "iter_sdf", "read_sdf", "write_sdf",
    # Exceptions
    "ChemError", "MalformedInput", "UnsatisfiableValence", "InvalidReference",
    "DuplicateBond", "ExternalCodecUnavailable", "KekulizeError",
    # Elements
    "Element", "BondOrder", "BondStereo", "ORGANIC_SUBSET", "AROMATIC_SUBSET",
    # Layout and descriptors
    "LayoutConfig", "generate_coordinates", "compute_descriptors", "kekulize",
    # Submodules
    "descriptors", "formats", "layout", "rings", "transform",
]
