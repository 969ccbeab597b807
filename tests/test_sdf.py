"""Tests for SDF stream reading and writing."""

import io

import pytest

from molweave import parse
from molweave.exceptions import MalformedInput
from molweave.formats import iter_sdf, read_sdf, write_sdf
from molweave.formats.sdf import SdfResult


def named(smiles: str, name: str, **properties):
    mol = parse(smiles)
    mol.name = name
    mol.properties.update(properties)
    return mol


def broken_record() -> str:
    """A record whose bond points past the atom table."""
    text = write_sdf([named("CC", "broken")])
    return text.replace("  1  2  1  0", "  1  7  1  0")


class TestReading:
    """Test reading SDF streams."""

    def test_records_in_order(self):
        """Every record is read, in order."""
        text = write_sdf([named("CCO", "ethanol"), named("c1ccccc1", "benzene")])
        result = read_sdf(text)
        assert [m.name for m in result.molecules] == ["ethanol", "benzene"]
        assert result.failures == []

    def test_data_items(self):
        """Data items become molecule properties."""
        text = write_sdf([named("CCO", "ethanol", ID="MW-1", NOTE="line one\nline two")])
        mol = read_sdf(text).molecules[0]
        assert mol.properties == {"ID": "MW-1", "NOTE": "line one\nline two"}

    def test_malformed_record_skipped(self):
        """A bad record among good ones is reported, not fatal."""
        good = write_sdf([named("CCO", "first")])
        last = write_sdf([named("CCN", "last")])
        result = read_sdf(good + broken_record() + last)

        assert len(result.records) == 3
        assert [m.name for m in result.molecules] == ["first", "last"]
        assert len(result.failures) == 1

        failure = result.failures[0]
        assert failure.index == 1
        assert failure.molecule is None
        assert isinstance(failure.error, MalformedInput)
        assert [r.ok for r in result.records] == [True, False, True]

    def test_failure_line_numbers(self):
        """Failed records report where they start."""
        good = write_sdf([named("CCO", "first")])
        result = read_sdf(good + broken_record())
        failure = result.failures[0]
        assert failure.line == len(good.splitlines()) + 1
        # Bond line of the broken record: header (3) + counts + two atoms + 1
        assert failure.error.line == failure.line + 6

    def test_iter_lazily(self):
        """iter_sdf accepts a text stream and yields records one by one."""
        text = write_sdf([named("C", "a"), named("N", "b"), named("O", "c")])
        records = iter_sdf(io.StringIO(text))
        first = next(records)
        assert first.ok
        assert first.molecule.name == "a"
        assert [r.molecule.name for r in records] == ["b", "c"]

    def test_missing_final_separator(self):
        """A trailing record without $$$$ is still read."""
        text = write_sdf([named("CC", "x")]).rstrip().removesuffix("$$$$")
        assert [m.name for m in read_sdf(text).molecules] == ["x"]

    def test_empty(self):
        """An empty stream has no records."""
        assert read_sdf("").records == []

    def test_failure_logged(self, caplog):
        """Skipped records are logged as warnings."""
        with caplog.at_level("WARNING", logger="molweave"):
            read_sdf(broken_record())
        assert "Skipping SDF record 0" in caplog.text


class TestWriting:
    """Test SDF output."""

    def test_separators(self):
        """Each record ends with $$$$."""
        text = write_sdf([parse("C"), parse("N")])
        assert text.count("$$$$\n") == 2

    def test_stream(self):
        """Records are also written to a stream."""
        out = io.StringIO()
        text = write_sdf([parse("C")], out)
        assert out.getvalue() == text

    def test_v3000(self):
        """Records can use V3000 tables."""
        text = write_sdf([parse("CCO")], version="V3000")
        assert "M  V30 BEGIN CTAB" in text
        assert read_sdf(text).molecules[0].num_atoms == 3

    def test_result_type(self):
        """read_sdf returns an SdfResult."""
        assert isinstance(read_sdf(write_sdf([parse("C")])), SdfResult)
