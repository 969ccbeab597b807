"""Tests for the SMILES writer.

Written SMILES are read back by RDKit and compared through RDKit's
canonical form, so any valid spelling of the same graph passes.
"""

import pytest

from molweave import parse, to_smiles, Molecule, BondOrder
from molweave.exceptions import InvalidReference
from molweave.writer import SmilesWriter, count_swaps_to_interconvert

from conftest import rdkit_canonical, rdkit_canonical_isomeric


def assert_same_graph(a: Molecule, b: Molecule) -> None:
    """Same atom multiset and same bond multiset (by element pair and order)."""
    def atoms(mol):
        return sorted((x.symbol, x.charge, x.isotope or 0, x.implicit_hydrogens, x.is_aromatic)
                      for x in mol.atoms)

    def bonds(mol):
        return sorted(
            (tuple(sorted((mol.atoms[b.atom1_idx].symbol, mol.atoms[b.atom2_idx].symbol))),
             int(b.order))
            for b in mol.bonds
        )

    assert atoms(a) == atoms(b)
    assert bonds(a) == bonds(b)


class TestBasicWriting:
    """Test SMILES output for simple molecules."""

    def test_chain(self):
        """A chain is written in atom order."""
        assert to_smiles(parse("CCO")) == "CCO"

    def test_branch(self):
        """Branches are parenthesized."""
        assert to_smiles(parse("CC(C)(C)O")) == "CC(C)(C)O"

    def test_bond_symbols(self):
        """Multiple bonds are written explicitly."""
        assert to_smiles(parse("C=CC#N")) == "C=CC#N"

    def test_brackets(self):
        """Charges, isotopes and classes need brackets."""
        assert to_smiles(parse("[NH4+]")) == "[NH4+]"
        assert to_smiles(parse("[13CH4]")) == "[13CH4]"
        assert to_smiles(parse("[CH3:1]C")) == "[CH3:1]C"
        assert to_smiles(parse("[Fe+3]")) == "[Fe+3]"

    def test_brackets_outside_organic_subset(self):
        """Elements outside the organic subsets are always bracketed."""
        assert to_smiles(parse("C[Si](C)(C)C")) == "C[Si](C)(C)C"
        assert to_smiles(parse("c1cc[se]c1")) == "c1cc[se]c1"
        assert to_smiles(parse("Clc1ccncc1")) == "Clc1ccncc1"
        assert to_smiles(parse("BrB(Br)Br")) == "BrB(Br)Br"

    def test_radical_keeps_brackets(self):
        """A hydrogen count below the valence model needs brackets."""
        assert to_smiles(parse("[CH2]C")) == "[CH2]C"

    def test_components(self):
        """Components are joined with dots."""
        assert to_smiles(parse("[Na+].[Cl-]")) == "[Na+].[Cl-]"

    def test_empty(self):
        """An empty molecule gives an empty string."""
        assert to_smiles(Molecule()) == ""


class TestRings:
    """Test ring closure output."""

    def test_benzene(self):
        """Aromatic ring bonds are implicit."""
        smiles = to_smiles(parse("c1ccccc1"))
        assert smiles == "c1ccccc1"

    def test_ring_digit_reused(self):
        """A released ring digit is used again."""
        smiles = to_smiles(parse("C1CCCCC1C2CCCCC2"))
        assert "2" not in smiles
        assert rdkit_canonical(smiles) == rdkit_canonical("C1CCCCC1C1CCCCC1")

    def test_aromatic_link_explicit(self):
        """A single bond joining aromatic atoms is written as '-'."""
        smiles = to_smiles(parse("c1ccccc1c1ccccc1"))
        assert "-" in smiles
        assert rdkit_canonical(smiles) == rdkit_canonical("c1ccc(-c2ccccc2)cc1")

    def test_many_open_rings(self):
        """More than nine simultaneous ring closures use %nn."""
        mol = Molecule()
        for _ in range(22):
            mol.add_atom("C")
        for i in range(21):
            mol.add_bond(i, i + 1)
        # Nested cross-links keep ten rings open along the chain
        for i in range(10):
            mol.add_bond(i, 21 - i)
        for atom in mol.atoms:
            atom.implicit_hydrogens = 4 - atom.degree(mol)

        smiles = to_smiles(mol)
        assert "%10" in smiles
        reparsed = parse(smiles)
        assert reparsed.num_atoms == 22
        assert reparsed.num_bonds == 31


class TestRoundTrip:
    """Test parse/write/parse round trips against RDKit."""

    def test_simple(self, simple_smiles):
        """Simple molecules round-trip."""
        for smi in simple_smiles:
            assert rdkit_canonical(to_smiles(parse(smi))) == rdkit_canonical(smi), smi

    def test_aromatic(self, aromatic_smiles):
        """Aromatic molecules round-trip."""
        for smi in aromatic_smiles:
            assert rdkit_canonical(to_smiles(parse(smi))) == rdkit_canonical(smi), smi

    def test_rings(self, ring_smiles):
        """Ring molecules round-trip."""
        for smi in ring_smiles:
            assert rdkit_canonical(to_smiles(parse(smi))) == rdkit_canonical(smi), smi

    def test_charged(self, charged_smiles):
        """Charged molecules round-trip."""
        for smi in charged_smiles:
            assert rdkit_canonical(to_smiles(parse(smi))) == rdkit_canonical(smi), smi

    def test_complex(self, complex_smiles):
        """Drug-like molecules round-trip."""
        for smi in complex_smiles:
            assert rdkit_canonical(to_smiles(parse(smi))) == rdkit_canonical(smi), smi

    def test_graph_preserved(self, complex_smiles):
        """Re-parsing the output gives the same atoms and bonds."""
        for smi in complex_smiles:
            mol = parse(smi)
            assert_same_graph(parse(to_smiles(mol)), mol)


class TestStereo:
    """Test that stereo markers survive writing."""

    def test_chirality(self, chiral_smiles):
        """Tetrahedral centres round-trip."""
        for smi in chiral_smiles:
            out = to_smiles(parse(smi))
            assert rdkit_canonical_isomeric(out) == rdkit_canonical_isomeric(smi), smi

    def test_chirality_from_other_start(self):
        """Starting at the stereocentre adjusts the marker."""
        smi = "N[C@@H](C)C(=O)O"
        out = to_smiles(parse(smi), start=1)
        assert out.startswith("[C@H]")
        assert rdkit_canonical_isomeric(out) == rdkit_canonical_isomeric(smi)

    @pytest.mark.parametrize("smiles", ["F/C=C/F", r"F/C=C\F", r"C/C=C\C"])
    def test_double_bond_direction(self, smiles):
        """Directional single bonds round-trip."""
        out = to_smiles(parse(smiles))
        assert rdkit_canonical_isomeric(out) == rdkit_canonical_isomeric(smiles)


class TestStartAtom:
    """Test the traversal start override."""

    def test_start(self):
        """Writing starts at the requested atom."""
        assert to_smiles(parse("CCO"), start=2) == "OCC"
        assert to_smiles(parse("CCO"), start=1) == "C(C)O"

    def test_start_out_of_range(self):
        """An invalid start atom is rejected."""
        with pytest.raises(InvalidReference):
            SmilesWriter(parse("CCO"), start=3)

    def test_start_other_component(self):
        """Only the component holding the start atom is rerooted."""
        assert to_smiles(parse("CC.NO"), start=3) == "CC.ON"


class TestSwapCount:
    """Test permutation parity helper."""

    def test_identity(self):
        """No swaps for identical orders."""
        assert count_swaps_to_interconvert([1, 2, 3], [1, 2, 3]) == 0

    def test_single_swap(self):
        """One transposition."""
        assert count_swaps_to_interconvert([1, 2, 3], [2, 1, 3]) % 2 == 1

    def test_rotation(self):
        """A three-cycle is even."""
        assert count_swaps_to_interconvert([1, 2, 3], [2, 3, 1]) % 2 == 0
