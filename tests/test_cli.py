"""Tests for the command line interface."""

import csv
import io
import logging

import pytest

from molweave import parse, BondOrder
from molweave.cli import build_parser, main
from molweave.formats import read_molfile, read_sdf, write_sdf


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers main() attaches so they do not outlive capsys."""
    yield
    logger = logging.getLogger("molweave")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def smiles_file(tmp_path):
    path = tmp_path / "input.smi"
    path.write_text("# library\nCCO ethanol\nc1ccc2ccccc2c1 naphthalene\n")
    return path


class TestConvert:
    """Test the convert command."""

    def test_literal_smiles(self, capsys):
        """A SMILES string argument is converted directly."""
        assert main(["convert", "OCC"]) == 0
        assert capsys.readouterr().out == "OCC\n"

    def test_smiles_file_to_sdf(self, smiles_file, tmp_path):
        """Names and generated coordinates reach the SDF."""
        out = tmp_path / "out.sdf"
        assert main(["convert", str(smiles_file), "-o", str(out)]) == 0
        result = read_sdf(out.read_text())
        assert [m.name for m in result.molecules] == ["ethanol", "naphthalene"]
        assert all(m.has_coordinates for m in result.molecules)

    def test_molfile_output(self, capsys):
        """--to mol writes a Molfile to stdout."""
        assert main(["convert", "c1ccccc1", "--to", "mol", "--v3000"]) == 0
        mol = read_molfile(capsys.readouterr().out)
        assert mol.num_atoms == 6
        assert mol.has_coordinates

    def test_sdf_back_to_smiles(self, smiles_file, tmp_path, capsys):
        """SDF input is detected from the extension."""
        sdf = tmp_path / "lib.sdf"
        main(["convert", str(smiles_file), "-o", str(sdf)])
        assert main(["convert", str(sdf)]) == 0
        assert capsys.readouterr().out.splitlines() == ["CCO ethanol", "c1ccc2ccccc2c1 naphthalene"]

    def test_bad_line_reported(self, tmp_path, capsys):
        """Unreadable lines fail the run but the rest is written."""
        path = tmp_path / "bad.smi"
        path.write_text("CCO good\nC1CC bad\n")
        assert main(["convert", str(path)]) == 1
        captured = capsys.readouterr()
        assert captured.out == "CCO good\n"
        assert "line 2" in captured.err

    def test_bad_literal(self, capsys):
        """An invalid SMILES argument exits with status 1."""
        assert main(["convert", "C1CC"]) == 1
        assert "Unclosed ring" in capsys.readouterr().err


class TestDescriptors:
    """Test the descriptors command."""

    def test_tsv(self, smiles_file, capsys):
        """One header and one row per molecule."""
        assert main(["descriptors", str(smiles_file)]) == 0
        lines = capsys.readouterr().out.splitlines()
        header = lines[0].split("\t")
        assert header[:4] == ["name", "smiles", "formula", "molecular_weight"]
        assert "chi1v" in header
        assert len(lines) == 3
        row = dict(zip(header, lines[1].split("\t")))
        assert row["name"] == "ethanol"
        assert row["formula"] == "C2H6O"
        assert row["chi1v"] == "1.0233"

    def test_names_with_tabs_quoted(self, tmp_path, capsys):
        """Field separators inside a record name do not split the row."""
        mol = parse("CCN")
        mol.name = "ethyl\tamine"
        path = tmp_path / "amine.sdf"
        path.write_text(write_sdf([mol]))
        assert main(["descriptors", str(path)]) == 0
        rows = list(csv.DictReader(io.StringIO(capsys.readouterr().out), delimiter="\t"))
        assert len(rows) == 1
        assert rows[0]["name"] == "ethyl\tamine"
        assert rows[0]["formula"] == "C2H7N"

    def test_molfile_input_described_directly(self, tmp_path, capsys):
        """Molecules read from SDF keep their stated hydrogen counts."""
        mol = parse("c1cc[nH]c1")
        mol.name = "pyrrole"
        path = tmp_path / "pyrrole.sdf"
        path.write_text(write_sdf([mol]))
        assert main(["descriptors", str(path)]) == 0
        rows = list(csv.DictReader(io.StringIO(capsys.readouterr().out), delimiter="\t"))
        assert rows[0]["formula"] == "C4H5N"
        assert rows[0]["smiles"] == "c1cc[nH]c1"


class TestKekuleOutput:
    """Test the convert --kekulize option."""

    def test_smiles(self, capsys):
        """Aromatic input is written with alternating bonds."""
        assert main(["convert", "c1ccccc1", "--kekulize"]) == 0
        out = capsys.readouterr().out.strip()
        assert out.count("=") == 3
        assert out == out.upper()

    def test_molfile(self, tmp_path):
        """Molfile output has no aromatic bond types."""
        out = tmp_path / "out.mol"
        assert main(["convert", "c1cc[nH]c1", "-o", str(out), "--kekulize"]) == 0
        mol = read_molfile(out.read_text())
        assert all(bond.order != BondOrder.AROMATIC for bond in mol.bonds)
        assert sum(a.implicit_hydrogens for a in mol.atoms) == 5

    def test_failure_reported(self, capsys):
        """A structure without a Kekulé form fails with exit status 1."""
        assert main(["convert", "c1cccc1", "--kekulize"]) == 1


class TestRings:
    """Test the rings command."""

    def test_summary(self, capsys):
        """Ring counts, sizes and systems."""
        assert main(["rings", "c1ccc2ccccc2c1"]) == 0
        lines = capsys.readouterr().out.splitlines()
        assert lines[0] == "name\trings\tsizes\tring_systems\taromatic_rings"
        assert lines[1].split("\t")[1:] == ["2", "6,6", "1", "2"]


class TestParser:
    """Test argument parsing."""

    def test_version(self, capsys):
        """--version prints and exits."""
        with pytest.raises(SystemExit):
            main(["--version"])
        assert "molweave" in capsys.readouterr().out

    def test_command_required(self):
        """A subcommand is required."""
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_quiet_and_verbose_exclusive(self):
        """-q and -v cannot be combined."""
        with pytest.raises(SystemExit):
            build_parser().parse_args(["-q", "-v", "rings", "C"])
