"""Tests for InChI generation through RDKit."""

import pytest

pytest.importorskip("rdkit")

from molweave import parse
from molweave.exceptions import ExternalCodecUnavailable
from molweave.inchi import to_inchi, to_inchikey


class TestInchi:
    """Test InChI and InChIKey output."""

    def test_ethanol(self):
        """Standard InChI of ethanol."""
        assert to_inchi(parse("CCO")) == "InChI=1S/C2H6O/c1-2-3/h3H,2H2,1H3"

    def test_inchikey(self):
        """Standard InChIKey of ethanol."""
        assert to_inchikey(parse("OCC")) == "LFQSCWFLJHTTHZ-UHFFFAOYSA-N"

    def test_aromatic(self):
        """Aromatic input gives the same InChI as its Kekule form."""
        assert to_inchi(parse("c1ccccc1O")) == to_inchi(parse("C1=CC=CC=C1O"))

    def test_charged(self):
        """Charges reach the InChI."""
        assert "/p-1" in to_inchi(parse("CC(=O)[O-]"))

    @pytest.mark.parametrize(
        "smiles",
        ["c1cc[nH]c1", "c1ccc2[nH]ccc2c1", "c1ccc2c(c1)[nH]c1ccccc12", "Cn1cnc2c1c(=O)n(C)c(=O)n2C"],
    )
    def test_aromatic_nh_matches_rdkit(self, smiles):
        """Pyrrole-type rings reach RDKit with their hydrogens."""
        from rdkit import Chem

        expected = Chem.MolToInchi(Chem.MolFromSmiles(smiles))
        assert to_inchi(parse(smiles)) == expected

    def test_no_kekule_form(self):
        """Unkekulizable input reports an unavailable conversion."""
        with pytest.raises(ExternalCodecUnavailable):
            to_inchi(parse("c1cccc1"))
