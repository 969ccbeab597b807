"""
Structure-data file (SDF) reading and writing.

An SDF stream is a sequence of Molfile records, each followed by optional
data items and terminated by a ``$$$$`` line. A malformed record does not
stop the stream: it is logged, reported as a failed record, and reading
resumes at the next record.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, Iterator, TextIO

from molweave.exceptions import MalformedInput
from molweave.formats.molfile import MolfileReader, write_molfile
from molweave.types import Molecule

logger = logging.getLogger(__name__)

RECORD_SEPARATOR = "$$$$"

_DATA_HEADER = re.compile(r"^>.*<([^>]*)>")


@dataclass(slots=True)
class SdfRecord:
    """Outcome of reading one SDF record.

    Attributes:
        index: 0-based position of the record in the stream.
        line: 1-based line number where the record starts.
        molecule: Parsed molecule, or None if the record failed.
        error: The parse error for a failed record.
    """

    index: int
    line: int
    molecule: Molecule | None = None
    error: MalformedInput | None = None

    @property
    def ok(self) -> bool:
        """Whether the record parsed successfully."""
        return self.error is None


@dataclass(slots=True)
class SdfResult:
    """All records of an SDF stream, in input order."""

    records: list[SdfRecord] = field(default_factory=list)

    @property
    def molecules(self) -> list[Molecule]:
        """Successfully parsed molecules, in input order."""
        return [r.molecule for r in self.records if r.molecule is not None]

    @property
    def failures(self) -> list[SdfRecord]:
        """Records that failed to parse."""
        return [r for r in self.records if not r.ok]


def _parse_record(lines: list[str], first_line: int) -> Molecule:
    """Parse one record's lines (without the ``$$$$`` terminator)."""
    reader = MolfileReader(lines, first_line)
    mol = reader.read()

    key: str | None = None
    values: list[str] = []

    for line in lines[reader.consumed:]:
        if key is None:
            match = _DATA_HEADER.match(line)
            if match:
                key = match.group(1)
                values = []
            continue

        if line.strip():
            values.append(line.rstrip())
        else:
            mol.properties[key] = "\n".join(values)
            key = None

    if key is not None:
        mol.properties[key] = "\n".join(values)
    return mol


def _split_records(lines: Iterable[str]) -> Iterator[tuple[list[str], int]]:
    """Group lines into records, yielding (lines, first line number)."""
    current: list[str] = []
    start = 1

    for lineno, raw in enumerate(lines, start=1):
        line = raw.rstrip("\r\n")
        if line.strip() == RECORD_SEPARATOR:
            yield current, start
            current = []
            start = lineno + 1
        else:
            current.append(line)

    if any(line.strip() for line in current):
        yield current, start


def iter_sdf(source: str | TextIO | Iterable[str]) -> Iterator[SdfRecord]:
    """Iterate over the records of an SDF stream.

    Args:
        source: SDF text, an open text file, or any iterable of lines.

    Yields:
        One SdfRecord per record, in input order. Failed records carry the
        error instead of a molecule.

    Example:
        >>> for record in iter_sdf(open("library.sdf")):
        ...     if record.ok:
        ...         print(record.molecule.name)
    """
    lines = source.splitlines() if isinstance(source, str) else source

    for index, (record_lines, first_line) in enumerate(_split_records(lines)):
        try:
            mol = _parse_record(record_lines, first_line)
        except MalformedInput as err:
            logger.warning("Skipping SDF record %d starting at line %d: %s", index, first_line, err)
            yield SdfRecord(index, first_line, error=err)
            continue
        yield SdfRecord(index, first_line, molecule=mol)


def read_sdf(source: str | TextIO | Iterable[str]) -> SdfResult:
    """Read every record of an SDF stream.

    Args:
        source: SDF text, an open text file, or any iterable of lines.

    Returns:
        SdfResult with all records; ``molecules`` and ``failures`` give the
        successful and failed ones.
    """
    result = SdfResult(list(iter_sdf(source)))
    if result.failures:
        logger.info(
            "Read %d SDF records, %d failed", len(result.records), len(result.failures)
        )
    return result


def write_sdf(
    molecules: Iterable[Molecule],
    stream: TextIO | None = None,
    version: str | None = None,
    kekulize: bool = False,
) -> str:
    """Serialise molecules as SDF records with their data items.

    Args:
        molecules: Molecules to write; ``properties`` become data items.
        stream: Optional text stream to write to as well.
        version: Connection table version, as for ``write_molfile``.
        kekulize: Write Kekulé bonds instead of aromatic ones.

    Returns:
        The SDF text.
    """
    chunks: list[str] = []

    for mol in molecules:
        parts = [write_molfile(mol, version, kekulize)]
        for key, value in mol.properties.items():
            parts.append(f"> <{key}>\n{value}\n\n")
        parts.append(RECORD_SEPARATOR + "\n")
        chunk = "".join(parts)
        chunks.append(chunk)
        if stream is not None:
            stream.write(chunk)

    return "".join(chunks)
