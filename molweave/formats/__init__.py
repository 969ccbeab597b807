"""Molfile and SDF codecs."""

from molweave.formats.molfile import (
    MolfileReader,
    read_molfile,
    write_molfile,
    write_v2000,
    write_v3000,
)
from molweave.formats.sdf import (
    SdfRecord,
    SdfResult,
    iter_sdf,
    read_sdf,
    write_sdf,
)

__all__ = [
    "MolfileReader",
    "read_molfile",
    "write_molfile",
    "write_v2000",
    "write_v3000",
    "SdfRecord",
    "SdfResult",
    "iter_sdf",
    "read_sdf",
    "write_sdf",
]
