"""
Cube Records
============
Defines the unit cube placed on the building grid and the helpers that keep
grid coordinates consistent.

Grid convention
---------------
x and z are integers. The vertical axis is offset by half a unit so that a
cube resting on the ground has its centre at ``y == GROUND_LEVEL`` (0.5), the
next layer at 1.5, and so on.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Tuple

from voxelstructure.config import GROUND_LEVEL, GRID_TOLERANCE
from voxelstructure.model.materials import Material

GridPosition = Tuple[float, float, float]


class CubeStatus(StrEnum):
    DRAFT = "draft"
    CONFIRMED = "confirmed"


@dataclass(frozen=True)
class Cube:
    """
    A unit volume at a grid-aligned position.

    Attributes:
        id: Unique identifier, issued by the store and never reused.
        x, y, z: Centre of the cube in grid coordinates.
        material: Material descriptor (opaque to the stability engine).
        status: DRAFT until the owning batch is confirmed.
    """
    id: int
    x: float
    y: float
    z: float
    material: Material
    status: CubeStatus = CubeStatus.DRAFT

    @property
    def position(self) -> GridPosition:
        return (self.x, self.y, self.z)

    def with_status(self, status: CubeStatus) -> Cube:
        if status == self.status:
            return self
        return replace(self, status=status)

    def touches_ground(self) -> bool:
        return abs(self.y - GROUND_LEVEL) <= GRID_TOLERANCE


def _is_integral(value: float) -> bool:
    return abs(value - round(value)) <= GRID_TOLERANCE


def is_on_grid(x: float, y: float, z: float) -> bool:
    """True when x, z are integers and y sits on a half-unit layer."""
    if not all(math.isfinite(v) for v in (x, y, z)):
        return False
    return _is_integral(x) and _is_integral(z) and _is_integral(y - GROUND_LEVEL)


def is_above_ground(y: float) -> bool:
    return y >= GROUND_LEVEL - GRID_TOLERANCE


def cell_key(x: float, y: float, z: float) -> Tuple[int, int, int]:
    """
    Integer key of the grid cell containing the given centre.
    Layer 0 is the ground layer (y == 0.5).
    """
    return (round(x), round(y - GROUND_LEVEL), round(z))


def _round_half_up(value: float) -> float:
    return float(math.floor(value + 0.5))


def snap_to_grid(x: float, y: float, z: float) -> GridPosition:
    """Round an arbitrary point to the nearest cube centre (halves round up)."""
    return (
        _round_half_up(x),
        _round_half_up(y - GROUND_LEVEL) + GROUND_LEVEL,
        _round_half_up(z),
    )


def adjacent_position(position: GridPosition, face_normal: Tuple[float, float, float]) -> GridPosition:
    """
    Cell across the given face of the cube at `position`.

    The face normal is expected to be a unit axis vector (as reported by a
    pointer hit on a cube face); it is rounded before use.
    """
    nx, ny, nz = (round(c) for c in face_normal)
    if sorted((abs(nx), abs(ny), abs(nz))) != [0, 0, 1]:
        raise ValueError(f"Face normal must be a unit axis vector, got {face_normal}")
    x, y, z = position
    return (x + nx, y + ny, z + nz)
