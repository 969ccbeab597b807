"""
Command line interface.

    molweave convert input.sdf -o output.smi
    molweave convert "c1ccccc1O" --to mol --layout
    molweave descriptors library.smi --workers 4 --progress
    molweave rings input.mol
"""

from __future__ import annotations

import argparse
import csv
import logging
import sys
from pathlib import Path
from typing import Iterator, TextIO

from molweave import __version__
from molweave.batch import compute_batch
from molweave.config import LayoutConfig
from molweave.exceptions import ChemError, KekulizeError
from molweave.formats.molfile import read_molfile, write_molfile
from molweave.formats.sdf import iter_sdf, write_sdf
from molweave.layout import generate_coordinates
from molweave.parser import parse
from molweave.transform import kekulize
from molweave.types import Molecule
from molweave.writer import to_smiles

logger = logging.getLogger(__name__)

_EXTENSIONS = {
    ".smi": "smi",
    ".smiles": "smi",
    ".txt": "smi",
    ".mol": "mol",
    ".sdf": "sdf",
    ".sd": "sdf",
}


def setup_logging(verbosity: int = 0) -> logging.Logger:
    """Attach a stream handler to the package logger.

    Args:
        verbosity: -1 for errors only, 0 for warnings, 1 for info, 2+ for debug.
    """
    levels = {-1: logging.ERROR, 0: logging.WARNING, 1: logging.INFO}
    logger = logging.getLogger("molweave")
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(levels.get(verbosity, logging.DEBUG))
    return logger


def _detect_format(source: str, explicit: str | None) -> str:
    if explicit:
        return explicit
    suffix = Path(source).suffix.lower()
    if suffix in _EXTENSIONS and Path(source).exists():
        return _EXTENSIONS[suffix]
    return "smi"


def _read_text(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text()


class _Failures:
    """Counts input records that could not be read."""

    def __init__(self) -> None:
        self.count = 0

    def report(self, where: str, err: Exception) -> None:
        self.count += 1
        logger.error("%s: %s", where, err)


def read_molecules(source: str, fmt: str, failures: _Failures) -> Iterator[Molecule]:
    """Yield the molecules of an input, logging unreadable records.

    A SMILES input is either a file with one ``SMILES [name]`` per line or,
    if no such file exists, a literal SMILES string.
    """
    if fmt == "mol":
        yield read_molfile(_read_text(source))
        return

    if fmt == "sdf":
        lines = sys.stdin if source == "-" else _read_text(source).splitlines()
        for record in iter_sdf(lines):
            if record.ok:
                yield record.molecule
            else:
                failures.report(f"record {record.index} (line {record.line})", record.error)
        return

    if source != "-" and not Path(source).exists():
        yield parse(source)
        return

    for lineno, line in enumerate(_read_text(source).splitlines(), start=1):
        fields = line.split(None, 1)
        if not fields or fields[0].startswith("#"):
            continue
        try:
            mol = parse(fields[0])
        except ChemError as err:
            failures.report(f"line {lineno}", err)
            continue
        if len(fields) > 1:
            mol.name = fields[1].strip()
        yield mol


def _open_output(path: str | None) -> TextIO:
    if path is None or path == "-":
        return sys.stdout
    return open(path, "w")


def _write_smiles(mol: Molecule) -> str:
    smiles = to_smiles(mol)
    return f"{smiles} {mol.name}\n" if mol.name else smiles + "\n"


def cmd_convert(args: argparse.Namespace) -> int:
    failures = _Failures()
    in_fmt = _detect_format(args.input, args.input_format)
    out_fmt = args.output_format or (
        _EXTENSIONS.get(Path(args.output).suffix.lower(), "smi") if args.output else "smi"
    )
    config = LayoutConfig(bond_length=args.bond_length)

    out = _open_output(args.output)
    try:
        for mol in read_molecules(args.input, in_fmt, failures):
            if args.layout or (out_fmt in ("mol", "sdf") and not mol.has_coordinates):
                generate_coordinates(mol, config)

            version = "V3000" if args.v3000 else None
            try:
                if out_fmt == "smi":
                    out.write(_write_smiles(kekulize(mol) if args.kekulize else mol))
                elif out_fmt == "mol":
                    out.write(write_molfile(mol, version, args.kekulize))
                else:
                    write_sdf([mol], out, version, args.kekulize)
            except KekulizeError as err:
                failures.report(mol.name or to_smiles(mol), err)
    finally:
        if out is not sys.stdout:
            out.close()

    return 1 if failures.count else 0


def cmd_descriptors(args: argparse.Namespace) -> int:
    failures = _Failures()
    in_fmt = _detect_format(args.input, args.input_format)

    molecules = list(read_molecules(args.input, in_fmt, failures))
    results = compute_batch(molecules, max_workers=args.workers, progress=args.progress)

    out = _open_output(args.output)
    try:
        writer: csv.DictWriter | None = None
        for mol, result in zip(molecules, results):
            if not result.ok:
                failures.report(f"item {result.index}", ChemError(result.error))
                continue
            if writer is None:
                fieldnames = ["name", "smiles", *result.descriptors]
                writer = csv.DictWriter(
                    out, fieldnames=fieldnames, delimiter="\t", lineterminator="\n"
                )
                writer.writeheader()
            row = {"name": mol.name or "", "smiles": result.smiles}
            for key, value in result.descriptors.items():
                row[key] = f"{value:.4f}" if isinstance(value, float) else value
            writer.writerow(row)
    finally:
        if out is not sys.stdout:
            out.close()

    return 1 if failures.count else 0


def cmd_rings(args: argparse.Namespace) -> int:
    failures = _Failures()
    in_fmt = _detect_format(args.input, args.input_format)

    out = _open_output(args.output)
    try:
        writer = csv.writer(out, delimiter="\t", lineterminator="\n")
        writer.writerow(["name", "rings", "sizes", "ring_systems", "aromatic_rings"])
        for mol in read_molecules(args.input, in_fmt, failures):
            rings = mol.rings
            writer.writerow([
                mol.name or to_smiles(mol),
                len(rings),
                ",".join(str(r.size) for r in rings),
                len(mol.ring_systems),
                sum(1 for r in rings if r.is_aromatic),
            ])
    finally:
        if out is not sys.stdout:
            out.close()

    return 1 if failures.count else 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="molweave",
        description="Read, write, lay out and describe molecular structures",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="count", default=0, help="More log output")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Only log errors")

    sub = parser.add_subparsers(dest="command", required=True)

    def add_io(p: argparse.ArgumentParser) -> None:
        p.add_argument("input", help="Input file, '-' for stdin, or a SMILES string")
        p.add_argument("-o", "--output", help="Output file (default: stdout)")
        p.add_argument(
            "-f", "--from", dest="input_format", choices=["smi", "mol", "sdf"],
            help="Input format (default: from the file extension)",
        )

    convert = sub.add_parser("convert", help="Convert between SMILES, Molfile and SDF")
    add_io(convert)
    convert.add_argument(
        "-t", "--to", dest="output_format", choices=["smi", "mol", "sdf"],
        help="Output format (default: from the output extension, else SMILES)",
    )
    convert.add_argument("--layout", action="store_true", help="Generate 2D coordinates")
    convert.add_argument("--v3000", action="store_true", help="Write V3000 connection tables")
    convert.add_argument(
        "--kekulize", action="store_true", help="Write alternating single/double bonds, not aromatic"
    )
    convert.add_argument(
        "--bond-length", type=float, default=LayoutConfig().bond_length,
        help="Bond length of generated coordinates",
    )
    convert.set_defaults(func=cmd_convert)

    descriptors = sub.add_parser("descriptors", help="Compute descriptors as TSV")
    add_io(descriptors)
    descriptors.add_argument("-j", "--workers", type=int, default=1, help="Worker processes")
    descriptors.add_argument("--progress", action="store_true", help="Show a progress bar")
    descriptors.set_defaults(func=cmd_descriptors)

    rings = sub.add_parser("rings", help="Summarise rings and ring systems")
    add_io(rings)
    rings.set_defaults(func=cmd_rings)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Entry point of the ``molweave`` console script."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(-1 if args.quiet else args.verbose)

    try:
        return args.func(args)
    except (ChemError, OSError) as err:
        logger.error("%s", err)
        return 1


if __name__ == "__main__":
    sys.exit(main())
