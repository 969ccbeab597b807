"""
InChI and InChIKey generation through RDKit.

The molecule is handed over as a Kekulé V2000 Molfile; RDKit is an optional
dependency (the ``inchi`` extra) and is imported on first use.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from molweave.exceptions import ExternalCodecUnavailable, KekulizeError
from molweave.formats.molfile import write_molfile

if TYPE_CHECKING:
    from molweave.types import Molecule


def _rdkit_mol(mol: Molecule):
    try:
        from rdkit import Chem
    except ImportError as err:
        raise ExternalCodecUnavailable(
            "InChI generation requires RDKit (pip install molweave[inchi])"
        ) from err

    try:
        block = write_molfile(mol, kekulize=True)
    except KekulizeError as err:
        raise ExternalCodecUnavailable(f"RDKit needs a Kekulé form: {err}") from err

    rd_mol = Chem.MolFromMolBlock(block)
    if rd_mol is None:
        raise ExternalCodecUnavailable("RDKit could not read the molecule")
    return Chem, rd_mol


def to_inchi(mol: Molecule) -> str:
    """Standard InChI of a molecule.

    Raises:
        ExternalCodecUnavailable: If RDKit is missing or the conversion fails.

    Example:
        >>> to_inchi(parse("CCO"))
        'InChI=1S/C2H6O/c1-2-3/h3H,2H2,1H3'
    """
    chem, rd_mol = _rdkit_mol(mol)
    inchi = chem.MolToInchi(rd_mol)
    if not inchi:
        raise ExternalCodecUnavailable("InChI conversion failed")
    return inchi


def to_inchikey(mol: Molecule) -> str:
    """Standard InChIKey of a molecule.

    Raises:
        ExternalCodecUnavailable: If RDKit is missing or the conversion fails.
    """
    chem, rd_mol = _rdkit_mol(mol)
    key = chem.MolToInchiKey(rd_mol)
    if not key:
        raise ExternalCodecUnavailable("InChIKey conversion failed")
    return key
