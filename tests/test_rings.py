"""Tests for ring perception.

Ring counts are checked against RDKit's SSSR, which must always equal the
cycle rank of the molecular graph.
"""

import pytest
from rdkit import Chem

from molweave import parse, Molecule
from molweave.rings import (
    find_sssr,
    find_ring_systems,
    get_ring_bonds,
    get_ring_membership,
    get_min_ring_sizes,
)


def rdkit_ring_sizes(smiles: str) -> list[int]:
    """Sorted SSSR ring sizes according to RDKit."""
    mol = Chem.MolFromSmiles(smiles)
    return sorted(len(ring) for ring in Chem.GetSSSR(mol))


class TestSSSR:
    """Test smallest set of smallest rings."""

    def test_benzene(self):
        """Benzene has one aromatic six-membered ring."""
        mol = parse("c1ccccc1")
        rings = find_sssr(mol)
        assert len(rings) == 1
        assert rings[0].size == 6
        assert rings[0].is_aromatic
        assert all(mol.bonds[b].is_aromatic for b in rings[0].bonds)

    def test_cyclohexane_not_aromatic(self):
        """Saturated rings are not aromatic."""
        ring = find_sssr(parse("C1CCCCC1"))[0]
        assert not ring.is_aromatic

    def test_acyclic(self):
        """Chains have no rings."""
        assert find_sssr(parse("CCCC(C)C")) == ()

    def test_empty_and_single_atom(self):
        """Degenerate molecules give empty results."""
        assert find_sssr(Molecule()) == ()
        assert find_ring_systems(Molecule()) == ()
        assert find_sssr(parse("C")) == ()
        assert get_ring_membership(parse("C")) == {0: 0}

    def test_naphthalene(self):
        """Naphthalene has two six-membered rings."""
        rings = find_sssr(parse("c1ccc2ccccc2c1"))
        assert [r.size for r in rings] == [6, 6]

    def test_bicyclic_bridge(self):
        """Bicyclo[2.1.0]pentane keeps the three- and four-membered rings."""
        rings = find_sssr(parse("C12CC1CC2"))
        assert [r.size for r in rings] == [3, 4]

    def test_cubane(self):
        """Cubane's ring count equals its cycle rank."""
        rings = find_sssr(parse("C12C3C4C1C5C2C3C45"))
        assert len(rings) == 5
        assert all(r.size == 4 for r in rings)

    def test_ring_sizes_match_rdkit(self, ring_smiles, complex_smiles):
        """Ring sizes agree with RDKit."""
        for smi in ring_smiles + complex_smiles:
            sizes = sorted(r.size for r in find_sssr(parse(smi)))
            assert sizes == rdkit_ring_sizes(smi), smi

    def test_ring_orientation(self):
        """Ring atoms start at the lowest index and bonds follow the atoms."""
        mol = parse("C1CCCCC1")
        ring = find_sssr(mol)[0]
        assert ring.atoms == (0, 1, 2, 3, 4, 5)
        for i, bond_idx in enumerate(ring.bonds):
            bond = mol.bonds[bond_idx]
            assert ring.atoms[i] in bond
            assert ring.atoms[(i + 1) % 6] in bond

    def test_ring_contains(self):
        """Ring membership tests."""
        ring = find_sssr(parse("C1CC1C"))[0]
        assert 0 in ring
        assert 3 not in ring
        assert len(ring) == 3


class TestRingSystems:
    """Test grouping of rings into systems."""

    def test_bicyclohexyl(self):
        """Two rings joined by a chain bond are separate systems."""
        mol = parse("C1CCCCC1C2CCCCC2")
        assert len(mol.rings) == 2
        assert len(mol.ring_systems) == 2

    def test_fused(self):
        """Naphthalene rings form one system sharing a bond."""
        mol = parse("c1ccc2ccccc2c1")
        systems = mol.ring_systems
        assert len(systems) == 1
        assert len(systems[0]) == 2
        assert len(systems[0].atoms) == 10
        assert len(systems[0].bonds) == 11

    def test_spiro(self):
        """Spiro rings share a single atom and form one system."""
        mol = parse("C1CCC12CCC2")
        assert len(mol.rings) == 2
        systems = mol.ring_systems
        assert len(systems) == 1
        assert len(systems[0].atoms) == 7

    def test_systems_ordered(self):
        """Systems are ordered by their lowest atom."""
        mol = parse("C1CC1CCC1CCCC1")
        systems = mol.ring_systems
        assert [len(s.atoms) for s in systems] == [3, 5]
        assert systems[0].atoms[0] < systems[1].atoms[0]


class TestRingQueries:
    """Test per-atom and per-bond ring queries."""

    def test_ring_bonds(self):
        """Chain bonds are not ring bonds."""
        mol = parse("C1CC1C")
        assert get_ring_bonds(mol) == frozenset({0, 1, 2})

    def test_membership(self):
        """Fusion atoms belong to two rings."""
        membership = get_ring_membership(parse("c1ccc2ccccc2c1"))
        assert membership[3] == 2
        assert membership[8] == 2
        assert membership[0] == 1

    def test_min_ring_sizes(self):
        """Smallest ring per atom."""
        sizes = get_min_ring_sizes(parse("C12CC1CC2C"))
        assert sizes[0] == 3
        assert sizes[3] == 4
        assert sizes[5] == 0
