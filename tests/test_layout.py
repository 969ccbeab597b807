"""Tests for 2D coordinate generation."""

import math

import pytest

from molweave import parse, Molecule, LayoutConfig
from molweave.layout import generate_coordinates, layout_ring_system

from conftest import bond_lengths


# Molecules whose rings are fused or spiro, so every bond can be drawn at
# the ideal length.
REGULAR_SMILES = [
    "c1ccccc1",
    "c1ccc2ccccc2c1",
    "c1ccc2cc3ccccc3cc2c1",
    "c1ccc(-c2ccccc2)cc1",
    "CN1C=NC2=C1C(=O)N(C(=O)N2C)C",
    "CC(C)Cc1ccc(cc1)C(C)C(=O)O",
    "C1CCC2(C1)CCCCC2",
    "C1CC1CCC1CCCC1",
]


def distance(mol: Molecule, a: int, b: int) -> float:
    (x1, y1), (x2, y2) = mol.atoms[a].coords, mol.atoms[b].coords
    return math.hypot(x2 - x1, y2 - y1)


class TestBasicLayout:
    """Test coordinate generation on simple molecules."""

    def test_all_atoms_placed(self, complex_smiles):
        """Every atom receives coordinates."""
        for smi in complex_smiles:
            mol = parse(smi)
            coords = generate_coordinates(mol)
            assert len(coords) == mol.num_atoms
            assert mol.has_coordinates, smi

    def test_empty(self):
        """An empty molecule lays out to nothing."""
        mol = Molecule()
        assert generate_coordinates(mol) == []
        assert not mol.has_coordinates

    def test_single_atom(self):
        """A lone atom sits at the origin."""
        mol = parse("[Na+]")
        assert generate_coordinates(mol) == [(0.0, 0.0)]

    def test_deterministic(self, complex_smiles):
        """Two runs on an unmodified molecule agree exactly."""
        for smi in complex_smiles:
            mol = parse(smi)
            assert generate_coordinates(mol) == generate_coordinates(mol), smi

    def test_overwrites_existing(self):
        """Existing coordinates are replaced."""
        mol = parse("CC")
        mol.set_coordinates([(5.0, 5.0), (9.0, 9.0)])
        generate_coordinates(mol)
        assert distance(mol, 0, 1) == pytest.approx(1.0)


class TestBondLengths:
    """Test that bonds are drawn at the configured length."""

    @pytest.mark.parametrize("smiles", REGULAR_SMILES)
    def test_unit_bonds(self, smiles):
        """All bonds have the ideal length."""
        mol = parse(smiles)
        generate_coordinates(mol)
        for length in bond_lengths(mol):
            assert length == pytest.approx(1.0, abs=1e-6)

    def test_ring_bonds_equal(self):
        """Ring neighbours are equidistant in a fused system."""
        mol = parse("c1ccc2ccccc2c1")
        generate_coordinates(mol)
        for ring in mol.rings:
            lengths = [distance(mol, a, b) for a, b in zip(ring.atoms, ring.atoms[1:] + ring.atoms[:1])]
            assert max(lengths) - min(lengths) < 1e-6

    def test_custom_bond_length(self):
        """Coordinates scale with the configured bond length."""
        mol = parse("c1ccccc1CC")
        generate_coordinates(mol, LayoutConfig(bond_length=1.5))
        for length in bond_lengths(mol):
            assert length == pytest.approx(1.5, abs=1e-6)

    def test_invalid_config(self):
        """Non-positive bond lengths are rejected."""
        with pytest.raises(ValueError):
            LayoutConfig(bond_length=0.0)
        with pytest.raises(ValueError):
            LayoutConfig(max_retries=-1)


class TestGeometry:
    """Test chain and ring shapes."""

    def test_zigzag(self):
        """Butane is drawn in the extended zig-zag."""
        mol = parse("CCCC")
        generate_coordinates(mol)
        assert distance(mol, 0, 2) == pytest.approx(math.sqrt(3.0))
        assert distance(mol, 0, 3) == pytest.approx(math.sqrt(7.0))

    def test_triple_bond_linear(self):
        """Atoms of a triple bond line up with their neighbours."""
        mol = parse("CC#CC")
        generate_coordinates(mol)
        assert distance(mol, 0, 3) == pytest.approx(3.0)

    def test_regular_hexagon(self):
        """Benzene is a regular hexagon."""
        mol = parse("c1ccccc1")
        generate_coordinates(mol)
        assert distance(mol, 0, 3) == pytest.approx(2.0)
        assert distance(mol, 0, 2) == pytest.approx(math.sqrt(3.0))

    def test_fused_rings_do_not_overlap(self):
        """The second naphthalene ring lies outside the first."""
        mol = parse("c1ccc2ccccc2c1")
        generate_coordinates(mol)
        first, second = mol.rings
        ca = [sum(mol.atoms[a].coords[i] for a in first.atoms) / 6 for i in (0, 1)]
        cb = [sum(mol.atoms[a].coords[i] for a in second.atoms) / 6 for i in (0, 1)]
        assert math.hypot(ca[0] - cb[0], ca[1] - cb[1]) == pytest.approx(math.sqrt(3.0))

    def test_substituents_spread(self):
        """Neopentane's methyls are evenly spread."""
        mol = parse("CC(C)(C)C")
        generate_coordinates(mol)
        for a in (0, 2, 3, 4):
            for b in (0, 2, 3, 4):
                if a < b:
                    assert distance(mol, a, b) > 1.0

    def test_ring_system_local_frame(self):
        """Ring systems lay out on their own with unit bonds."""
        mol = parse("C1CCC12CCC2")
        pos = layout_ring_system(mol.ring_systems[0])
        assert set(pos) == set(range(7))
        for bond in mol.bonds:
            (x1, y1), (x2, y2) = pos[bond.atom1_idx], pos[bond.atom2_idx]
            assert math.hypot(x2 - x1, y2 - y1) == pytest.approx(1.0)


# Bridged polycycles whose rings cannot all be arcs on the first polygon
BRIDGED_SMILES = [
    # Adamantane
    "C1C2CC3CC1CC(C2)C3",
    # Morphine
    "CN1CCC23C4C1CC5=C2C(=C(C=C5)O)OC3C(C=C4)O",
    # Norbornane
    "C1CC2CCC1C2",
]


class TestBridgedSystems:
    """Test ring systems that need relaxation after the arc layout."""

    @pytest.mark.parametrize("smiles", BRIDGED_SMILES)
    def test_local_ring_bonds_unit(self, smiles):
        """Every ring bond of the system keeps unit length."""
        mol = parse(smiles)
        system = max(mol.ring_systems, key=lambda s: len(s.atoms))
        pos = layout_ring_system(system)
        for bond_idx in system.bonds:
            bond = mol.bonds[bond_idx]
            (x1, y1), (x2, y2) = pos[bond.atom1_idx], pos[bond.atom2_idx]
            assert math.hypot(x2 - x1, y2 - y1) == pytest.approx(1.0, abs=0.05)

    @pytest.mark.parametrize("smiles", BRIDGED_SMILES)
    def test_local_atoms_apart(self, smiles):
        """No two ring atoms share a position."""
        mol = parse(smiles)
        system = max(mol.ring_systems, key=lambda s: len(s.atoms))
        pos = layout_ring_system(system)
        atoms = sorted(pos)
        for i, a in enumerate(atoms):
            for b in atoms[i + 1:]:
                (x1, y1), (x2, y2) = pos[a], pos[b]
                assert math.hypot(x2 - x1, y2 - y1) > 0.45, (a, b)

    @pytest.mark.parametrize("smiles", BRIDGED_SMILES)
    def test_molecule_bonds_unit(self, smiles):
        """Full layouts keep every bond, ring or chain, near unit length."""
        mol = parse(smiles)
        generate_coordinates(mol)
        for length in bond_lengths(mol):
            assert length == pytest.approx(1.0, abs=0.05)

    def test_morphine_ring_atoms_distinct(self):
        """The two atoms that used to collide in morphine are drawn apart."""
        mol = parse("CN1CCC23C4C1CC5=C2C(=C(C=C5)O)OC3C(C=C4)O")
        generate_coordinates(mol)
        assert distance(mol, 8, 19) > 0.45

    def test_fused_systems_untouched(self):
        """Layouts without defects come straight from the arcs."""
        mol = parse("c1ccc2ccccc2c1")
        pos = layout_ring_system(mol.ring_systems[0])
        (x1, y1), (x2, y2) = pos[0], pos[3]
        assert math.hypot(x2 - x1, y2 - y1) == pytest.approx(2.0)


class TestComponents:
    """Test disconnected molecules."""

    def test_components_separated(self):
        """Components are placed left to right with a gap."""
        mol = parse("CCC.O.c1ccccc1")
        generate_coordinates(mol)
        comps = mol.connected_components()
        extents = [
            (min(mol.atoms[a].coords[0] for a in comp), max(mol.atoms[a].coords[0] for a in comp))
            for comp in comps
        ]
        for (_, right), (left, _) in zip(extents, extents[1:]):
            assert left - right == pytest.approx(2.0)

    def test_components_centered(self):
        """Each component is centred on the x axis."""
        mol = parse("CCC.c1ccccc1")
        generate_coordinates(mol)
        for comp in mol.connected_components():
            ys = [mol.atoms[a].coords[1] for a in comp]
            assert min(ys) + max(ys) == pytest.approx(0.0, abs=1e-9)
