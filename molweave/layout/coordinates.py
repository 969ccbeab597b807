"""
2D coordinate generation.

Coordinates are built per connected component:

1. The largest ring system is laid out first. Its first ring becomes a
   regular polygon; every further ring arcs its unplaced atoms between the
   already placed ones (fused and bridged rings) or hangs off a single shared
   atom (spiro rings). Bridged systems whose arcs leave a ring bond off unit
   length or two atoms on top of each other are relaxed afterwards.
2. The remaining atoms are placed breadth-first from what is already
   placed: chains zig-zag at 120 degrees, triple bonds and cumulated double
   bonds stay linear, and branch points spread their substituents evenly
   over the largest free angle. Ring systems reached from a chain are laid
   out in their own frame and attached rigidly.
3. Components are placed left to right.

Clashes are resolved greedily by trying alternative angles for the atom
being placed; there is no global optimisation.
"""

from __future__ import annotations

import logging
import math
from collections import deque
from typing import TYPE_CHECKING, Final

from molweave.config import LayoutConfig
from molweave.elements import BondOrder
from molweave.rings.detection import RingSystem, find_ring_systems

if TYPE_CHECKING:
    from molweave.rings.detection import Ring
    from molweave.types import Molecule

logger = logging.getLogger(__name__)

Point = tuple[float, float]

_ZIGZAG: Final[float] = 2.0 * math.pi / 3.0
_RETRY_STEP: Final[float] = math.pi / 6.0
_BISECTION_STEPS: Final[int] = 60

# Acceptance limits for a ring system layout
_BOND_TOLERANCE: Final[float] = 0.02
_MIN_SEPARATION: Final[float] = 0.5
# Relaxation pushes non-bonded atoms further apart than the acceptance limit
_RELAX_SEPARATION: Final[float] = 0.8
_RELAX_ITERATIONS: Final[int] = 1000
_RELAX_CHECK_EVERY: Final[int] = 10


def _add(a: Point, b: Point) -> Point:
    return a[0] + b[0], a[1] + b[1]


def _sub(a: Point, b: Point) -> Point:
    return a[0] - b[0], a[1] - b[1]


def _scale(a: Point, k: float) -> Point:
    return a[0] * k, a[1] * k


def _dist(a: Point, b: Point) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


def _angle(origin: Point, target: Point) -> float:
    return math.atan2(target[1] - origin[1], target[0] - origin[0])


def _polar(origin: Point, angle: float, length: float = 1.0) -> Point:
    return origin[0] + length * math.cos(angle), origin[1] + length * math.sin(angle)


def _centroid(points: list[Point]) -> Point:
    n = len(points)
    return sum(p[0] for p in points) / n, sum(p[1] for p in points) / n


def _rotate(point: Point, angle: float) -> Point:
    c, s = math.cos(angle), math.sin(angle)
    return point[0] * c - point[1] * s, point[0] * s + point[1] * c


def _chord_angle(chords: int, span: float) -> float:
    """Central angle per unit chord so that ``chords`` chords span ``span``.

    Solves sin(chords * t / 2) / sin(t / 2) = span for t by bisection; the
    left side falls monotonically from ``chords`` to 0 on (0, 2*pi/chords).
    """
    lo, hi = 1e-9, 2.0 * math.pi / chords
    if span >= chords:
        return lo
    for _ in range(_BISECTION_STEPS):
        mid = 0.5 * (lo + hi)
        if math.sin(chords * mid / 2.0) / math.sin(mid / 2.0) > span:
            lo = mid
        else:
            hi = mid
    return 0.5 * (lo + hi)


# ----------------------------------------------------------------------
# Ring systems
# ----------------------------------------------------------------------


def _polygon(ring_atoms: tuple[int, ...], center: Point, start_angle: float) -> dict[int, Point]:
    n = len(ring_atoms)
    radius = 1.0 / (2.0 * math.sin(math.pi / n))
    return {
        atom_idx: _polar(center, start_angle + 2.0 * math.pi * i / n, radius)
        for i, atom_idx in enumerate(ring_atoms)
    }


def _place_run(
    pos: dict[int, Point], run: list[int], p: Point, q: Point, away_from: Point
) -> None:
    """Place a run of atoms on a unit-chord arc from p to q."""
    chords = len(run) + 1
    theta = _chord_angle(chords, _dist(p, q))
    radius = 1.0 / (2.0 * math.sin(theta / 2.0))
    half = chords * theta / 2.0

    mid = _scale(_add(p, q), 0.5)
    pq = _sub(q, p)
    length = math.hypot(*pq) or 1.0
    normal = (-pq[1] / length, pq[0] / length)
    outward = _sub(mid, away_from)
    if normal[0] * outward[0] + normal[1] * outward[1] < 0:
        normal = (-normal[0], -normal[1])

    center = _sub(mid, _scale(normal, radius * math.cos(half)))
    start = _angle(center, p)
    rel = _sub(p, center)
    # Turn from p towards the arc apex, which lies along the normal
    sign = 1.0 if rel[0] * normal[1] - rel[1] * normal[0] >= 0 else -1.0

    for j, atom_idx in enumerate(run, start=1):
        pos[atom_idx] = _polar(center, start + sign * j * theta, radius)


def _unplaced_runs(ring: Ring, placed: dict[int, Point]) -> list[tuple[int, list[int], int]]:
    """Maximal runs of unplaced ring atoms with their placed end atoms."""
    atoms = ring.atoms
    n = len(atoms)
    first = next(i for i in range(n) if atoms[i] in placed)
    runs = []
    run: list[int] = []
    before = atoms[first]

    for step in range(1, n + 1):
        atom_idx = atoms[(first + step) % n]
        if atom_idx in placed:
            if run:
                runs.append((before, run, atom_idx))
                run = []
            before = atom_idx
        else:
            run.append(atom_idx)

    return runs


def layout_ring_system(system: RingSystem) -> dict[int, Point]:
    """Lay out a ring system in a local frame with unit bond length.

    Args:
        system: The ring system to lay out.

    Returns:
        Mapping of every system atom to its local position.
    """
    rings = sorted(system.rings, key=lambda r: (-r.size, r.atoms))
    first = rings[0]
    n = first.size
    pos = _polygon(first.atoms, (0.0, 0.0), -math.pi / 2.0 - math.pi / n)
    pending = rings[1:]

    while pending:
        best = max(pending, key=lambda r: sum(1 for a in r.atoms if a in pos))
        pending.remove(best)
        shared = [a for a in best.atoms if a in pos]

        if len(shared) == len(best.atoms):
            continue

        center = _centroid(list(pos.values()))

        if len(shared) == 1:
            pivot = pos[shared[0]]
            direction = _angle(center, pivot) if _dist(center, pivot) > 1e-9 else 0.0
            radius = 1.0 / (2.0 * math.sin(math.pi / best.size))
            ring_center = _polar(pivot, direction, radius)
            k = best.atoms.index(shared[0])
            ordered = best.atoms[k:] + best.atoms[:k]
            pos.update(
                (a, p) for a, p in _polygon(ordered, ring_center, direction + math.pi).items()
                if a not in pos
            )
            continue

        for before, run, after in _unplaced_runs(best, pos):
            _place_run(pos, run, pos[before], pos[after], center)

    bonds = _ring_bond_pairs(system)
    if _layout_defects(pos, bonds):
        pos = _relaxed_layout(system, pos, bonds)
    return pos


def _ring_bond_pairs(system: RingSystem) -> set[tuple[int, int]]:
    """Sorted atom pairs of every bond inside the ring system."""
    pairs = set()
    for ring in system.rings:
        for i, a in enumerate(ring.atoms):
            b = ring.atoms[i - 1]
            pairs.add((min(a, b), max(a, b)))
    return pairs


def _layout_defects(pos: dict[int, Point], bonds: set[tuple[int, int]]) -> int:
    """Count ring bonds off unit length and non-bonded pairs that crowd."""
    atoms = sorted(pos)
    defects = 0
    for i, a in enumerate(atoms):
        for b in atoms[i + 1:]:
            d = _dist(pos[a], pos[b])
            if (a, b) in bonds:
                if abs(d - 1.0) > _BOND_TOLERANCE:
                    defects += 1
            elif d < _MIN_SEPARATION:
                defects += 1
    return defects


def _separate(p: Point, q: Point, target: float, a: int, b: int) -> tuple[Point, Point]:
    """Move p and q symmetrically along their axis until they are ``target`` apart."""
    d = _dist(p, q)
    if d < 1e-9:
        # Coincident atoms: split along a direction fixed by their indices
        angle = ((a * 31 + b * 17) % 36) * math.pi / 18.0
        unit = (math.cos(angle), math.sin(angle))
        d = 0.0
    else:
        unit = _scale(_sub(q, p), 1.0 / d)
    shift = _scale(unit, 0.5 * (target - d))
    return _sub(p, shift), _add(q, shift)


def _relax(pos: dict[int, Point], bonds: set[tuple[int, int]]) -> dict[int, Point]:
    """Project ring bonds to unit length and push crowded atoms apart.

    Each sweep visits every atom pair once in index order, so the result is
    deterministic. Sweeps stop as soon as the layout has no defects.
    """
    pos = dict(pos)
    atoms = sorted(pos)
    pairs = [(a, b) for i, a in enumerate(atoms) for b in atoms[i + 1:]]

    for sweep in range(1, _RELAX_ITERATIONS + 1):
        for a, b in pairs:
            if (a, b) in bonds:
                pos[a], pos[b] = _separate(pos[a], pos[b], 1.0, a, b)
            elif _dist(pos[a], pos[b]) < _RELAX_SEPARATION:
                pos[a], pos[b] = _separate(pos[a], pos[b], _RELAX_SEPARATION, a, b)
        if sweep % _RELAX_CHECK_EVERY == 0 and not _layout_defects(pos, bonds):
            break
    return pos


def _relaxed_layout(
    system: RingSystem, pos: dict[int, Point], bonds: set[tuple[int, int]]
) -> dict[int, Point]:
    """Repair a defective ring system layout.

    The arc layout is relaxed first. If defects remain, the system atoms are
    spread on one large circle in ring order and relaxed from there; the
    start with fewer defects wins.
    """
    best = _relax(pos, bonds)
    best_defects = _layout_defects(best, bonds)

    if best_defects:
        rings = sorted(system.rings, key=lambda r: (-r.size, r.atoms))
        order = tuple(dict.fromkeys(a for ring in rings for a in ring.atoms))
        retry = _relax(_polygon(order, (0.0, 0.0), 0.0), bonds)
        retry_defects = _layout_defects(retry, bonds)
        if retry_defects < best_defects:
            best, best_defects = retry, retry_defects

    if best_defects:
        logger.debug(
            "Ring system at atom %d keeps %d layout defects after relaxation",
            system.atoms[0], best_defects,
        )
    return best


# ----------------------------------------------------------------------
# Component layout
# ----------------------------------------------------------------------


class _ComponentLayout:
    """Breadth-first placement of one connected component."""

    def __init__(
        self,
        mol: Molecule,
        component: list[int],
        systems: dict[int, RingSystem],
        config: LayoutConfig,
    ) -> None:
        self._mol = mol
        self._component = component
        self._systems = systems
        self._min_distance = config.min_distance
        self._max_retries = config.max_retries
        self._pos: dict[int, Point] = {}
        # Zig-zag turn direction (+1 or -1) to take at each placed atom
        self._turn: dict[int, float] = {}
        self._queue: deque[int] = deque()

    def run(self) -> dict[int, Point]:
        members = set(self._component)
        local_systems = {
            s.atoms[0]: s for a, s in self._systems.items() if a in members
        }
        if local_systems:
            largest = max(local_systems.values(), key=lambda s: (len(s.atoms), -s.atoms[0]))
            self._place_all(layout_ring_system(largest))
        else:
            self._place_all({self._component[0]: (0.0, 0.0)})

        while self._queue:
            self._expand(self._queue.popleft())

        return self._pos

    def _place_all(self, positions: dict[int, Point]) -> None:
        for atom_idx in sorted(positions):
            self._place(atom_idx, positions[atom_idx], 1.0)

    def _place(self, atom_idx: int, point: Point, turn: float) -> None:
        self._pos[atom_idx] = point
        self._turn[atom_idx] = turn
        self._queue.append(atom_idx)

    def _is_linear(self, atom_idx: int) -> bool:
        orders = [b.order for b in self._mol.atoms[atom_idx].get_bonds(self._mol)]
        return BondOrder.TRIPLE in orders or orders.count(BondOrder.DOUBLE) >= 2

    def _expand(self, u: int) -> None:
        mol = self._mol
        origin = self._pos[u]
        placed_angles: list[float] = []
        todo: list[int] = []

        for nbr in mol.atoms[u].neighbors(mol):
            if nbr in self._pos:
                placed_angles.append(_angle(origin, self._pos[nbr]))
            else:
                todo.append(nbr)

        if not todo:
            return

        for v, (candidates, turns) in zip(todo, self._child_slots(u, placed_angles, len(todo))):
            if v in self._pos:
                continue
            angle, choice = self._resolve_clash(u, candidates)
            target = _polar(origin, angle)

            system = self._systems.get(v)
            if system is not None and not any(a in self._pos for a in system.atoms):
                self._attach_system(system, v, origin, target)
            else:
                self._place(v, target, turns[min(choice, len(turns) - 1)])

    def _child_slots(
        self, u: int, placed_angles: list[float], k: int
    ) -> list[tuple[list[float], list[float]]]:
        """Preferred angles for ``k`` new neighbours of ``u``.

        Returns:
            One (candidate angles, turns) pair per neighbour; the turn at
            position i is handed to the neighbour if candidate i is used.
        """
        if not placed_angles:
            if k == 1:
                return [([math.pi / 6.0], [1.0])]
            if k == 2 and self._is_linear(u):
                return [([0.0], [1.0]), ([math.pi], [1.0])]
            if k == 2:
                return [([math.pi / 6.0], [1.0]), ([5.0 * math.pi / 6.0], [-1.0])]
            return [([2.0 * math.pi * i / k], [1.0]) for i in range(k)]

        if len(placed_angles) == 1 and k == 1:
            incoming = placed_angles[0]
            if self._is_linear(u):
                return [([incoming + math.pi], [1.0])]
            turn = self._turn[u]
            # Taking the preferred turn hands the opposite one to the child
            return [([incoming + turn * _ZIGZAG, incoming - turn * _ZIGZAG], [-turn, turn])]

        # Evenly spaced slots inside the largest free angular gap
        ordered = sorted(_wrap_positive(a) for a in placed_angles)
        best_start, best_gap = ordered[-1], 2.0 * math.pi - ordered[-1] + ordered[0]
        for a, b in zip(ordered, ordered[1:]):
            if b - a > best_gap:
                best_start, best_gap = a, b - a
        return [([best_start + best_gap * (i + 1) / (k + 1)], [1.0]) for i in range(k)]

    def _clearance(self, u: int, point: Point) -> float:
        """Distance to the closest placed atom other than ``u``."""
        closest = math.inf
        for atom_idx, other in self._pos.items():
            if atom_idx != u:
                closest = min(closest, _dist(point, other))
        return closest

    def _resolve_clash(self, u: int, preferred: list[float]) -> tuple[float, int]:
        """Pick the first angle whose position keeps ``min_distance``.

        Returns:
            Tuple of (angle, index of the chosen candidate).
        """
        origin = self._pos[u]
        candidates = list(preferred)
        base = preferred[0]
        for j in range(1, self._max_retries + 1):
            step = ((j + 1) // 2) * _RETRY_STEP
            candidates.append(base + step if j % 2 else base - step)

        best, best_clearance = 0, -1.0
        for i, candidate in enumerate(candidates):
            clearance = self._clearance(u, _polar(origin, candidate))
            if clearance >= self._min_distance:
                return candidate, i
            if clearance > best_clearance:
                best, best_clearance = i, clearance

        logger.debug("No clash-free position next to atom %d; closest approach %.3f", u, best_clearance)
        return candidates[best], best

    def _attach_system(self, system: RingSystem, v: int, origin: Point, target: Point) -> None:
        """Place a ring system so ``v`` sits at ``target``, pointing away from ``origin``."""
        local = layout_ring_system(system)
        center = _centroid(list(local.values()))
        local_dir = _angle(local[v], center) if _dist(local[v], center) > 1e-9 else 0.0
        rotation = _angle(origin, target) - local_dir

        anchor = _rotate(local[v], rotation)
        shift = _sub(target, anchor)
        self._place_all({a: _add(_rotate(p, rotation), shift) for a, p in local.items()})


def _wrap_positive(angle: float) -> float:
    return angle % (2.0 * math.pi)


def generate_coordinates(mol: Molecule, config: LayoutConfig | None = None) -> list[Point]:
    """Generate 2D coordinates for every atom of a molecule.

    The result is deterministic and overwrites any existing coordinates.

    Args:
        mol: Molecule to lay out.
        config: Layout parameters (defaults to ``LayoutConfig()``).

    Returns:
        List of (x, y) positions indexed by atom index; also stored on the
        atoms.

    Example:
        >>> mol = parse("c1ccccc1")
        >>> coords = generate_coordinates(mol)
        >>> len(coords)
        6
    """
    config = config or LayoutConfig()

    systems: dict[int, RingSystem] = {}
    for system in find_ring_systems(mol):
        for atom_idx in system.atoms:
            systems[atom_idx] = system

    positions: dict[int, Point] = {}
    offset_x = 0.0

    for component in mol.connected_components():
        local = _ComponentLayout(mol, component, systems, config).run()

        xs = [p[0] for p in local.values()]
        ys = [p[1] for p in local.values()]
        dx = offset_x - min(xs)
        dy = -0.5 * (min(ys) + max(ys))
        for atom_idx, (x, y) in local.items():
            positions[atom_idx] = (x + dx, y + dy)
        offset_x = max(xs) + dx + config.component_gap

    scale = config.bond_length
    coords = [(positions[i][0] * scale, positions[i][1] * scale) for i in range(len(mol.atoms))]
    mol.set_coordinates(coords)
    return coords
