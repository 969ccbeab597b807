#!/usr/bin/env python3
"""
Benchmark script comparing 2D coordinate generation and ring perception
between RDKit and molweave.

Usage:
    python benchmarks/bench_layout.py [--extended]

Options:
    --extended    Run every test molecule and also time ring perception
"""

import sys
import time
from dataclasses import dataclass
from typing import Callable, Optional

# Test molecules with varying complexity
TEST_MOLECULES = {
    "small_ether": "CCOCC",
    "medium_drug": "CC(C)Cc1ccc(cc1)C(C)C(=O)O",  # Ibuprofen
    "drug_like": "Cc1ccc(cc1Nc2nccc(n2)c3cccnc3)NC(=O)c4ccc(cc4)CN5CCN(CC5)C",  # Imatinib
    "polycyclic": "c1cc2ccc3cccc4ccc(c1)c2c34",  # Pyrene
    "steroid": "CC12CCC3C(C1CCC2O)CCC4=CC(=O)CCC34C",  # Testosterone skeleton
}

DEFAULT_MOLECULE = TEST_MOLECULES["drug_like"]

ITERATIONS = 500
EXTENDED_ITERATIONS = 200


@dataclass
class BenchmarkResult:
    """Results from a single benchmark run."""
    smiles: str
    time_seconds: float
    iterations: int
    num_atoms: int
    num_rings: int

    @property
    def time_per_call_ms(self) -> float:
        return (self.time_seconds / self.iterations) * 1000

    @property
    def time_per_atom_us(self) -> float:
        """Microseconds per atom per call."""
        return (self.time_seconds / self.iterations / self.num_atoms) * 1_000_000


def _time(func: Callable[[], object], iterations: int) -> float:
    func()  # warmup
    start = time.perf_counter()
    for _ in range(iterations):
        func()
    return time.perf_counter() - start


def benchmark_rdkit_layout(smiles: str, iterations: int) -> BenchmarkResult:
    """Benchmark RDKit Compute2DCoords."""
    from rdkit import Chem
    from rdkit.Chem import rdDepictor

    mol = Chem.MolFromSmiles(smiles)
    if mol is None:
        raise ValueError(f"RDKit failed to parse SMILES: {smiles}")

    elapsed = _time(lambda: rdDepictor.Compute2DCoords(mol), iterations)
    return BenchmarkResult(smiles, elapsed, iterations, mol.GetNumAtoms(), mol.GetRingInfo().NumRings())


def benchmark_molweave_layout(smiles: str, iterations: int) -> BenchmarkResult:
    """Benchmark molweave generate_coordinates.

    Ring systems are cached on the molecule, so only the first call pays for
    ring perception; this times the layout itself.
    """
    from molweave import parse
    from molweave.layout import generate_coordinates

    mol = parse(smiles)
    elapsed = _time(lambda: generate_coordinates(mol), iterations)
    return BenchmarkResult(smiles, elapsed, iterations, mol.num_atoms, len(mol.rings))


def benchmark_rdkit_rings(smiles: str, iterations: int) -> BenchmarkResult:
    """Benchmark RDKit SSSR."""
    from rdkit import Chem

    mol = Chem.MolFromSmiles(smiles)
    elapsed = _time(lambda: Chem.GetSSSR(mol), iterations)
    return BenchmarkResult(smiles, elapsed, iterations, mol.GetNumAtoms(), len(Chem.GetSSSR(mol)))


def benchmark_molweave_rings(smiles: str, iterations: int) -> BenchmarkResult:
    """Benchmark molweave SSSR on a fresh cache each call."""
    from molweave import parse
    from molweave.rings import find_sssr

    mol = parse(smiles)

    def run():
        mol._cache.clear()
        return find_sssr(mol)

    elapsed = _time(run, iterations)
    return BenchmarkResult(smiles, elapsed, iterations, mol.num_atoms, len(find_sssr(mol)))


def _run(label: str, func, smiles: str, iterations: int) -> Optional[BenchmarkResult]:
    try:
        result = func(smiles, iterations)
    except ImportError:
        print(f"  {label:<9} SKIPPED (not installed)")
        return None
    print(f"  {label:<9} {result.time_per_call_ms:.4f} ms/call | {result.num_rings} rings")
    return result


def _compare(name: str, rdkit_res: Optional[BenchmarkResult], ours: Optional[BenchmarkResult]) -> None:
    if rdkit_res and ours:
        ratio = ours.time_seconds / rdkit_res.time_seconds
        print(f"{name:<14} {ours.num_atoms:>6} {rdkit_res.time_per_call_ms:>10.4f} "
              f"{ours.time_per_call_ms:>10.4f} {ratio:>7.2f}x {ours.time_per_atom_us:>10.2f}")
    elif ours:
        print(f"{name:<14} {ours.num_atoms:>6} {'N/A':>10} {ours.time_per_call_ms:>10.4f} "
              f"{'N/A':>8} {ours.time_per_atom_us:>10.2f}")
    else:
        print(f"{name:<14} {'N/A':>6} {'N/A':>10} {'N/A':>10} {'N/A':>8} {'N/A':>10}")


def run_single_benchmark():
    """Run the layout benchmark on one molecule."""
    print("=" * 70)
    print("2D Layout Benchmark: RDKit vs molweave")
    print("=" * 70)
    print(f"\nTest molecule: {DEFAULT_MOLECULE}")
    print(f"Iterations: {ITERATIONS}")
    print("-" * 70)

    rdkit_res = _run("RDKit", benchmark_rdkit_layout, DEFAULT_MOLECULE, ITERATIONS)
    ours = _run("molweave", benchmark_molweave_layout, DEFAULT_MOLECULE, ITERATIONS)

    print("\n" + "=" * 70)
    if rdkit_res and ours:
        ratio = ours.time_seconds / rdkit_res.time_seconds
        if ratio < 1:
            print(f"molweave is {1/ratio:.2f}x FASTER than RDKit")
        else:
            print(f"molweave is {ratio:.2f}x SLOWER than RDKit")
    else:
        print("Could not compare (one or both libraries failed)")


def run_extended_benchmark():
    """Run layout and ring benchmarks over every test molecule."""
    for title, rdkit_func, our_func in (
        ("2D Layout", benchmark_rdkit_layout, benchmark_molweave_layout),
        ("Ring Perception (SSSR)", benchmark_rdkit_rings, benchmark_molweave_rings),
    ):
        print("=" * 80)
        print(f"EXTENDED {title} Benchmark: RDKit vs molweave")
        print("=" * 80)

        results = {}
        for name, smiles in TEST_MOLECULES.items():
            print(f"\n[{name}] {smiles[:60]}")
            results[name] = (
                _run("RDKit", rdkit_func, smiles, EXTENDED_ITERATIONS),
                _run("molweave", our_func, smiles, EXTENDED_ITERATIONS),
            )

        print("\n" + "-" * 80)
        print(f"{'Molecule':<14} {'Atoms':>6} {'RDKit ms':>10} {'ours ms':>10} {'Ratio':>8} {'µs/atom':>10}")
        print("-" * 80)
        for name, (rdkit_res, ours) in results.items():
            _compare(name, rdkit_res, ours)
        print()


def main():
    if "--extended" in sys.argv or "-e" in sys.argv:
        run_extended_benchmark()
    else:
        run_single_benchmark()
        print("\n" + "-" * 70)
        print("TIP: Run with --extended for every molecule and ring perception")


if __name__ == "__main__":
    main()
