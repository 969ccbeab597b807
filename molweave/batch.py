"""
Descriptor computation over many molecules.

Molecules are independent, so a batch is spread over a process pool one
item per task. Items are SMILES strings or already-read Molecule objects;
the latter skip the parse and keep whatever a Molfile reader attached. A
failing item is logged and reported in its result; it does not stop the
batch.
"""

from __future__ import annotations

import logging
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Sequence, Union

from tqdm import tqdm

from molweave.descriptors import compute_descriptors
from molweave.exceptions import ChemError
from molweave.parser import parse
from molweave.types import Molecule
from molweave.writer import to_smiles

logger = logging.getLogger(__name__)

BatchItem = Union[str, Molecule]


@dataclass(slots=True)
class BatchResult:
    """Descriptors (or the error) for one input item.

    ``smiles`` is the input string, or the written SMILES of an input
    Molecule.
    """

    index: int
    smiles: str
    descriptors: dict[str, float | str] | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _describe(index: int, item: BatchItem) -> BatchResult:
    smiles = item if isinstance(item, str) else to_smiles(item)
    try:
        mol = parse(item) if isinstance(item, str) else item
        descriptors = compute_descriptors(mol)
    except ChemError as err:
        return BatchResult(index, smiles, error=str(err))
    return BatchResult(index, smiles, descriptors=descriptors)


def compute_batch(
    items: Sequence[BatchItem],
    max_workers: int | None = None,
    progress: bool = False,
) -> list[BatchResult]:
    """Compute descriptors for a list of SMILES strings or molecules.

    Args:
        items: Input SMILES strings or Molecule objects.
        max_workers: Worker processes; 1 or less runs inline, None lets the
            executor choose.
        progress: Show a tqdm progress bar.

    Returns:
        One BatchResult per input, in input order.
    """
    results: list[BatchResult | None] = [None] * len(items)

    if max_workers is not None and max_workers <= 1:
        for i, item in enumerate(tqdm(items, desc="Computing descriptors", disable=not progress)):
            results[i] = _describe(i, item)
    else:
        with ProcessPoolExecutor(max_workers=max_workers) as executor:
            # Copies drop derived caches before pickling
            futures = [
                executor.submit(_describe, i, item if isinstance(item, str) else item.copy())
                for i, item in enumerate(items)
            ]
            for future in tqdm(
                as_completed(futures),
                total=len(futures),
                desc="Computing descriptors",
                disable=not progress,
            ):
                result = future.result()
                results[result.index] = result

    failed = 0
    for result in results:
        if not result.ok:
            failed += 1
            logger.warning("Item %d (%s) failed: %s", result.index, result.smiles, result.error)
    if failed:
        logger.info("%d of %d items failed", failed, len(results))

    return results
