"""
Gesture Input
=============
Turns tracked hand landmarks into the same symbolic actions the mouse sends.

Why is this file needed?
------------------------
1. Classification: `classify_pose` reduces the 21 hand landmarks reported by
   a hand tracker (MediaPipe indexing) to one of a fixed set of poses.
2. Cursor: The index finger tip drives a 3D cursor on the ground layer,
   smoothed so tracker jitter does not make it flicker between cells.
3. Actions: `GestureInterpreter` fires an action only when a pose is
   *entered*, so holding a fist deletes one cube, not one per frame.

Note: Nothing here touches the structure store. The interpreter only hands
(kind, payload) pairs to whatever dispatch callable it was given, normally
`ActionRouter.route`.
"""
from __future__ import annotations

from enum import StrEnum
import logging
from typing import Any, Callable, Dict, Mapping, Optional

import numpy as np
import numpy.typing as npt

from voxelstructure.config import GROUND_LEVEL
from voxelstructure.controller.actions import ActionKind
from voxelstructure.model.cube import GridPosition, snap_to_grid

logger = logging.getLogger(__name__)

# MediaPipe hand landmark indices
WRIST = 0
THUMB_MCP, THUMB_IP, THUMB_TIP = 2, 3, 4
INDEX_MCP, INDEX_PIP, INDEX_TIP = 5, 6, 8
MIDDLE_MCP, MIDDLE_PIP, MIDDLE_TIP = 9, 10, 12
RING_PIP, RING_TIP = 14, 16
PINKY_PIP, PINKY_TIP = 18, 20
N_LANDMARKS = 21

# Thresholds are relative to the palm size (wrist -> middle finger MCP)
EXTENSION_RATIO = 1.1
PINCH_RATIO = 0.25
PINCH_REACH_RATIO = 1.0
THUMB_OUT_RATIO = 0.5
THUMB_VERTICAL_RATIO = 0.3

WORLD_HALF_EXTENT = 5.0
SMOOTHING_FACTOR = 0.3


class Pose(StrEnum):
    IDLE = "idle"
    POINT = "point"
    FIST = "fist"
    OPEN_PALM = "open_palm"
    ROTATE_POSE = "rotate"
    PINCH = "pinch"
    THUMBS_UP = "thumbs_up"
    THUMBS_DOWN = "thumbs_down"


# Pose entered -> action fired
POSE_ACTIONS: Dict[Pose, ActionKind] = {
    Pose.PINCH: ActionKind.PLACE,
    Pose.FIST: ActionKind.DELETE,
    Pose.OPEN_PALM: ActionKind.CONFIRM_DRAFT,
    Pose.THUMBS_DOWN: ActionKind.UNDO,
    Pose.THUMBS_UP: ActionKind.CANCEL_COLLAPSE,
    Pose.ROTATE_POSE: ActionKind.ROTATE_START,
}


def _as_points(landmarks: npt.ArrayLike) -> npt.NDArray[np.float64]:
    pts = np.asarray(landmarks, dtype=np.float64)
    if pts.ndim != 2 or pts.shape[0] != N_LANDMARKS or pts.shape[1] < 2:
        raise ValueError(f"Expected ({N_LANDMARKS}, 2|3) landmarks, got shape {pts.shape}")
    # Image plane only; tracker depth is too noisy to classify on
    return pts[:, :2]


def _dist(pts: npt.NDArray[np.float64], a: int, b: int) -> float:
    return float(np.linalg.norm(pts[a] - pts[b]))


def classify_pose(landmarks: npt.ArrayLike) -> Pose:
    """
    Classify a single hand.

    Args:
        landmarks: 21 x 2 (or 21 x 3) normalised image coordinates, y pointing
            down as delivered by the tracker.

    Returns:
        The recognised Pose, IDLE when nothing matches.
    """
    pts = _as_points(landmarks)
    palm = _dist(pts, WRIST, MIDDLE_MCP)
    if palm < 1e-6:
        return Pose.IDLE

    def extended(tip: int, pip: int) -> bool:
        return _dist(pts, tip, WRIST) > _dist(pts, pip, WRIST) * EXTENSION_RATIO

    # Pinch is made in front of the palm, a fist also brings the tips together
    if (_dist(pts, THUMB_TIP, INDEX_TIP) < PINCH_RATIO * palm
            and _dist(pts, INDEX_TIP, WRIST) > PINCH_REACH_RATIO * palm):
        return Pose.PINCH

    index = extended(INDEX_TIP, INDEX_PIP)
    middle = extended(MIDDLE_TIP, MIDDLE_PIP)
    ring = extended(RING_TIP, RING_PIP)
    pinky = extended(PINKY_TIP, PINKY_PIP)

    if index and middle and ring and pinky:
        return Pose.OPEN_PALM
    if index and middle and not ring and not pinky:
        return Pose.ROTATE_POSE
    if index and not (middle or ring or pinky):
        return Pose.POINT
    if index or middle or ring or pinky:
        return Pose.IDLE

    thumb_out = _dist(pts, THUMB_TIP, INDEX_MCP) > THUMB_OUT_RATIO * palm
    if thumb_out:
        rise = pts[THUMB_MCP, 1] - pts[THUMB_TIP, 1]
        if rise > THUMB_VERTICAL_RATIO * palm:
            return Pose.THUMBS_UP
        if rise < -THUMB_VERTICAL_RATIO * palm:
            return Pose.THUMBS_DOWN
    return Pose.FIST


def hand_to_world(landmark: npt.ArrayLike) -> GridPosition:
    """
    Map a normalised image point to a ground-layer cell in -5..5 on x and z.
    Image x drives world x, image y drives world z.
    """
    point = np.asarray(landmark, dtype=np.float64)
    wx = (point[0] - 0.5) * 2 * WORLD_HALF_EXTENT
    wz = (point[1] - 0.5) * 2 * WORLD_HALF_EXTENT
    return snap_to_grid(float(wx), GROUND_LEVEL, float(wz))


class CursorSmoother:
    """
    Exponential smoothing of the cursor. The unrounded position is kept
    between frames so small moves accumulate instead of rounding away.
    """

    def __init__(self, factor: float = SMOOTHING_FACTOR,
                 start: GridPosition = (0.0, GROUND_LEVEL, 0.0)) -> None:
        if not 0.0 < factor <= 1.0:
            raise ValueError(f"Smoothing factor must be in (0, 1], got {factor}")
        self.factor = factor
        self._raw = np.array(start, dtype=np.float64)

    @property
    def position(self) -> GridPosition:
        x, _, z = self._raw
        return snap_to_grid(float(x), GROUND_LEVEL, float(z))

    def update(self, target: GridPosition) -> GridPosition:
        self._raw = self._raw * (1.0 - self.factor) + np.asarray(target, dtype=np.float64) * self.factor
        return self.position


Dispatch = Callable[[str, Mapping[str, Any]], Any]


class GestureInterpreter:
    """Edge-triggered mapping from tracked frames to symbolic actions."""

    def __init__(self, dispatch: Dispatch, smoother: Optional[CursorSmoother] = None) -> None:
        self.dispatch = dispatch
        self.cursor = smoother if smoother is not None else CursorSmoother()
        self.pose = Pose.IDLE

    @property
    def cursor_position(self) -> GridPosition:
        return self.cursor.position

    def update(self, landmarks: Optional[npt.ArrayLike]) -> Pose:
        """
        Feed one tracker frame. None means the hand was lost.
        """
        if landmarks is None:
            self._enter(Pose.IDLE)
            return self.pose

        pts = _as_points(landmarks)
        self.cursor.update(hand_to_world(pts[INDEX_TIP]))
        self._enter(classify_pose(pts))
        return self.pose

    def _enter(self, pose: Pose) -> None:
        previous = self.pose
        if pose == previous:
            return
        self.pose = pose
        logger.debug(f"Pose {previous} -> {pose}")

        if previous == Pose.ROTATE_POSE:
            self.dispatch(ActionKind.ROTATE_END.value, {})

        action = POSE_ACTIONS.get(pose)
        if action is None:
            return
        if action in (ActionKind.PLACE, ActionKind.DELETE):
            self.dispatch(action.value, {"position": self.cursor_position})
        else:
            self.dispatch(action.value, {})
