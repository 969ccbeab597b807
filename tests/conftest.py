"""Test configuration and fixtures for molweave tests."""

import math

import pytest

# RDKit is used as reference for canonical SMILES and Molfile parsing
from rdkit import Chem

from molweave import Molecule


def rdkit_canonical(smiles: str) -> str:
    """Get RDKit canonical SMILES for comparison.

    Args:
        smiles: Input SMILES string.

    Returns:
        RDKit's canonical SMILES.
    """
    mol = Chem.MolFromSmiles(smiles)
    if mol is None:
        raise ValueError(f"RDKit could not parse: {smiles}")
    return Chem.MolToSmiles(mol, canonical=True, isomericSmiles=False)


def rdkit_canonical_isomeric(smiles: str) -> str:
    """Get RDKit canonical SMILES with stereochemistry for comparison.

    Args:
        smiles: Input SMILES string.

    Returns:
        RDKit's canonical isomeric SMILES (includes stereochemistry).
    """
    mol = Chem.MolFromSmiles(smiles)
    if mol is None:
        raise ValueError(f"RDKit could not parse: {smiles}")
    return Chem.MolToSmiles(mol, canonical=True, isomericSmiles=True)


def bond_lengths(mol: Molecule) -> list[float]:
    """Euclidean length of every bond of a laid-out molecule."""
    lengths = []
    for bond in mol.bonds:
        x1, y1 = mol.atoms[bond.atom1_idx].coords
        x2, y2 = mol.atoms[bond.atom2_idx].coords
        lengths.append(math.hypot(x2 - x1, y2 - y1))
    return lengths


@pytest.fixture
def simple_smiles() -> list[str]:
    """Basic valid SMILES strings for smoke testing."""
    return [
        "C",
        "CC",
        "CCC",
        "CCCC",
        "CCO",
        "C=C",
        "C#C",
        "C=O",
        "C#N",
    ]


@pytest.fixture
def aromatic_smiles() -> list[str]:
    """Aromatic SMILES strings."""
    return [
        "c1ccccc1",
        "c1cnccc1",
        "n1ccccc1",
        "c1ccoc1",
        "c1cc[nH]c1",
        "c1ccc2ccccc2c1",
    ]


@pytest.fixture
def ring_smiles() -> list[str]:
    """SMILES with ring closures."""
    return [
        "C1CC1",
        "C1CCC1",
        "C1CCCC1",
        "C1CCCCC1",
        "C1CC2CCCCC2C1",
        "C12CC1CC2",
    ]


@pytest.fixture
def charged_smiles() -> list[str]:
    """SMILES with charged atoms."""
    return [
        "[O-]",
        "[NH4+]",
        "[Na+].[Cl-]",
        "CC([O-])=O",
        "C[N+](C)(C)C",
        "[N+](=O)[O-]",
    ]


@pytest.fixture
def chiral_smiles() -> list[str]:
    """SMILES with tetrahedral chirality."""
    return [
        "C[C@H](O)F",
        "C[C@@H](O)F",
        "F[C@H](Cl)Br",
        "F[C@@H](Cl)Br",
        "[C@H](Br)(Cl)F",
        "N[C@@H](C)C(=O)O",
    ]


@pytest.fixture
def complex_smiles() -> list[str]:
    """Complex real-world molecules."""
    return [
        # Aspirin
        "CC(=O)OC1=CC=CC=C1C(=O)O",
        # Caffeine
        "CN1C=NC2=C1C(=O)N(C(=O)N2C)C",
        # Ibuprofen
        "CC(C)Cc1ccc(cc1)C(C)C(=O)O",
        # Acetaminophen
        "CC(=O)Nc1ccc(O)cc1",
        # Anthracene
        "c1ccc2cc3ccccc3cc2c1",
        # Pyrene
        "c1cc2ccc3cccc4ccc(c1)c2c34",
        # Biphenyl
        "c1ccc(-c2ccccc2)cc1",
        # Spiro[4.5]decane
        "C1CCC2(C1)CCCCC2",
    ]
