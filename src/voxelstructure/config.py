"""
Configuration & Global Constants
================================
This module serves as the central registry for the constants that shape the
structural simulation.

Why is this file needed?
------------------------
1. Consistency: The ground level, the countdown length and the adjacency rule
   are shared by the stability engine, the store and the collapse timer.
   Defining them twice would let the pieces drift apart.
2. Deployment: A few values can be overridden through environment variables
   (handy for tests and for running the session headless on slow machines).

Exports:
    GROUND_LEVEL (float): y coordinate of a cube centre resting on the ground.
    COLLAPSE_COUNTDOWN_SECONDS (int): Starting value of the collapse countdown.
    COLLAPSE_TICK_INTERVAL_MS (int): Real-time length of one countdown tick.
    ADJACENCY_RULE (AdjacencyRule): Rule used to decide support adjacency.
    STRICT_INVARIANTS (bool): Raise on invariant violations instead of logging.
"""
import os
from enum import StrEnum


class AdjacencyRule(StrEnum):
    """Geometric relation used as the edge set of the support graph."""
    FACE = "face"
    FACE_EDGE = "face_edge"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        print(f"WARNING: {name}={raw!r} is not an integer, using {default}")
        return default


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in ("1", "true", "yes", "on")


def get_adjacency_rule() -> AdjacencyRule:
    """
    Read the adjacency rule from VOXELSTRUCTURE_ADJACENCY (face | face_edge).
    """
    raw = os.getenv("VOXELSTRUCTURE_ADJACENCY", AdjacencyRule.FACE.value)
    try:
        return AdjacencyRule(raw.strip().lower())
    except ValueError:
        print(f"WARNING: Unknown adjacency rule {raw!r}, using '{AdjacencyRule.FACE}'")
        return AdjacencyRule.FACE


# Global Constants
GROUND_LEVEL: float = 0.5
GRID_TOLERANCE: float = 1e-6

COLLAPSE_COUNTDOWN_SECONDS: int = 3
COLLAPSE_TICK_INTERVAL_MS: int = _env_int("VOXELSTRUCTURE_TICK_MS", 1000)

ADJACENCY_RULE: AdjacencyRule = get_adjacency_rule()
STRICT_INVARIANTS: bool = _env_flag("VOXELSTRUCTURE_STRICT")
