"""
Structural Stability Engine
===========================
Decides which confirmed cubes are supported by the ground.

Why is this file needed?
------------------------
1. Support rule: `is_support_adjacent` is the single definition of which cube
   pairs can carry each other. Everything else builds on it.
2. Reachability: `analyze` floods outward from the grounded cubes over the
   support graph. Whatever the flood cannot reach is unstable.

Note: This module is pure. It never mutates its input and never logs, so the
same cube set always yields the same partition.
"""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from itertools import product
from typing import Dict, FrozenSet, Iterable, List, Sequence, Tuple

from voxelstructure.config import ADJACENCY_RULE, GRID_TOLERANCE, AdjacencyRule
from voxelstructure.model.cube import Cube, cell_key

CellKey = Tuple[int, int, int]


def _is_zero(delta: float) -> bool:
    return delta <= GRID_TOLERANCE


def _is_one(delta: float) -> bool:
    return abs(delta - 1.0) <= GRID_TOLERANCE


def is_support_adjacent(a: Cube, b: Cube, rule: AdjacencyRule = ADJACENCY_RULE) -> bool:
    """
    True when the two cubes can support each other.

    FACE: exactly one axis differs by one unit, the others are equal.
    FACE_EDGE: additionally accepts two axes differing by one unit
    (diagonal bracing across a shared edge).

    The relation is symmetric and irreflexive.
    """
    if a is b or a.id == b.id:
        return False

    deltas = (abs(a.x - b.x), abs(a.y - b.y), abs(a.z - b.z))
    ones = sum(1 for d in deltas if _is_one(d))
    zeros = sum(1 for d in deltas if _is_zero(d))

    if ones == 1 and zeros == 2:
        return True
    if rule == AdjacencyRule.FACE_EDGE:
        return ones == 2 and zeros == 1
    return False


def neighbour_offsets(rule: AdjacencyRule = ADJACENCY_RULE) -> List[CellKey]:
    """Cell offsets that may hold a support-adjacent cube under `rule`."""
    allowed = 1 if rule == AdjacencyRule.FACE else 2
    return [
        offset for offset in product((-1, 0, 1), repeat=3)
        if 0 < sum(1 for c in offset if c != 0) <= allowed
    ]


@dataclass(frozen=True)
class StabilityReport:
    """Partition of the analysed cubes into supported and unstable ids."""
    supported: FrozenSet[int] = field(default_factory=frozenset)
    unstable: FrozenSet[int] = field(default_factory=frozenset)

    @property
    def is_stable(self) -> bool:
        return not self.unstable


def _index_cells(cubes: Iterable[Cube]) -> Dict[CellKey, List[Cube]]:
    cells: Dict[CellKey, List[Cube]] = {}
    for cube in cubes:
        cells.setdefault(cell_key(cube.x, cube.y, cube.z), []).append(cube)
    return cells


def analyze(cubes: Sequence[Cube], rule: AdjacencyRule = ADJACENCY_RULE) -> StabilityReport:
    """
    Breadth-first flood from the grounded cubes over the support graph.

    Every cube touching the ground is a seed. A spatial hash keyed by integer
    cell keeps the neighbour lookup linear on average; candidates found in
    neighbouring cells are still confirmed with `is_support_adjacent`.

    Args:
        cubes: Snapshot of the confirmed cubes. Not modified.
        rule: Adjacency rule used for the support graph.

    Returns:
        StabilityReport whose supported and unstable sets are disjoint and
        together cover every id in `cubes`.
    """
    if not cubes:
        return StabilityReport()

    cells = _index_cells(cubes)
    offsets = neighbour_offsets(rule)

    seeds = [cube for cube in cubes if cube.touches_ground()]
    supported = {cube.id for cube in seeds}
    queue = deque(seeds)

    while queue:
        current = queue.popleft()
        cx, cy, cz = cell_key(current.x, current.y, current.z)
        for dx, dy, dz in offsets:
            for neighbour in cells.get((cx + dx, cy + dy, cz + dz), ()):
                if neighbour.id in supported:
                    continue
                if is_support_adjacent(current, neighbour, rule):
                    supported.add(neighbour.id)
                    queue.append(neighbour)

    all_ids = frozenset(cube.id for cube in cubes)
    return StabilityReport(
        supported=frozenset(supported),
        unstable=all_ids - supported,
    )


def unstable_ids_in_order(cubes: Sequence[Cube], rule: AdjacencyRule = ADJACENCY_RULE) -> Tuple[int, ...]:
    """Unstable ids ordered as the cubes appear in `cubes`."""
    report = analyze(cubes, rule)
    return tuple(cube.id for cube in cubes if cube.id in report.unstable)
