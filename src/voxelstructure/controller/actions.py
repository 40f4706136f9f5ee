"""
Action Router (Input Abstraction Layer)
=======================================
Single entry point for every input source: mouse, keyboard and gestures all
send symbolic actions here, and only the router turns them into store
commands.

Why is this file needed?
------------------------
1. Consistency: Each input source would otherwise assemble its own payloads
   and the sources would drift apart (e.g. which delete applies to a cube).
2. Serialisation: Requests are applied one at a time. A request issued while
   another is still being applied (typically from a signal handler reacting
   to the first) waits in a FIFO queue until the current one finishes.
3. Camera requests (rotate/zoom) are forwarded as a signal and never touch
   the structure.
"""
from __future__ import annotations

from collections import deque
from enum import StrEnum
import logging
import math
from typing import Any, Deque, Mapping, Optional, Tuple

from PySide6.QtCore import QObject, Signal

from voxelstructure.app.state import Store
from voxelstructure.model.cube import CubeStatus, GridPosition, adjacent_position
from voxelstructure.model.materials import Material, create_custom_material, get_material_by_name
from voxelstructure.model.results import Applied, Rejected, RejectReason, TransitionResult

logger = logging.getLogger(__name__)


class ActionKind(StrEnum):
    PLACE = "place"
    DELETE = "delete"
    DELETE_DRAFT = "delete_draft"
    DELETE_CONFIRMED = "delete_confirmed"
    SET_MATERIAL = "set_material"
    CONFIRM_DRAFT = "confirm_draft"
    UNDO = "undo"
    COLLAPSE = "collapse"
    CANCEL_COLLAPSE = "cancel_collapse"
    ROTATE_START = "rotate_start"
    ROTATE_END = "rotate_end"
    ZOOM_IN = "zoom_in"
    ZOOM_OUT = "zoom_out"


CAMERA_ACTIONS = frozenset({
    ActionKind.ROTATE_START, ActionKind.ROTATE_END, ActionKind.ZOOM_IN, ActionKind.ZOOM_OUT,
})

# Names used by older callers
_ALIASES = {
    "place_draft": ActionKind.PLACE,
    "confirm": ActionKind.CONFIRM_DRAFT,
}


class InvalidPayload(ValueError):
    pass


def parse_kind(kind: str | ActionKind) -> Optional[ActionKind]:
    if isinstance(kind, ActionKind):
        return kind
    key = str(kind).strip().lower()
    if key in _ALIASES:
        return _ALIASES[key]
    try:
        return ActionKind(key)
    except ValueError:
        return None


def _require(payload: Mapping[str, Any], key: str) -> Any:
    if key not in payload:
        raise InvalidPayload(f"missing '{key}'")
    return payload[key]


def _as_position(value: Any) -> GridPosition:
    try:
        x, y, z = (float(v) for v in value)
    except (TypeError, ValueError) as e:
        raise InvalidPayload(f"bad position {value!r}") from e
    if not all(math.isfinite(v) for v in (x, y, z)):
        raise InvalidPayload(f"non-finite position {value!r}")
    return (x, y, z)


def resolve_position(payload: Mapping[str, Any]) -> GridPosition:
    """
    Target cell of a placement: either explicit x/y/z, a position triple, or
    a hit cube position plus the normal of the face that was hit.
    """
    if "position" in payload:
        position = _as_position(payload["position"])
    elif all(k in payload for k in ("x", "y", "z")):
        position = _as_position((payload["x"], payload["y"], payload["z"]))
    else:
        raise InvalidPayload("placement needs 'position' or x/y/z")

    normal = payload.get("face_normal")
    if normal is None:
        return position
    try:
        return adjacent_position(position, _as_position(normal))
    except ValueError as e:
        raise InvalidPayload(str(e)) from e


def resolve_material(payload: Mapping[str, Any]) -> Optional[Material]:
    if "color" in payload:
        try:
            return create_custom_material(str(payload["color"]))
        except ValueError as e:
            raise InvalidPayload(str(e)) from e
    value = payload.get("material")
    if value is None or isinstance(value, Material):
        return value
    if isinstance(value, str):
        return get_material_by_name(value)
    raise InvalidPayload(f"bad material {value!r}")


def _as_id(payload: Mapping[str, Any]) -> int:
    value = _require(payload, "id")
    if isinstance(value, bool):
        raise InvalidPayload(f"bad cube id {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError) as e:
        raise InvalidPayload(f"bad cube id {value!r}") from e


class ActionRouter(QObject):
    """
    Serialised entry point from input sources to the store.

    `route` returns None for a request made while another one is still being
    applied (e.g. from a store signal handler): that request is queued and its
    result only arrives through `action_routed`. Callers that may run inside
    such a handler must not assume a result object.
    """
    camera_requested = Signal(str)
    action_routed = Signal(str, object)  # (action kind, TransitionResult)

    def __init__(self, store: Store, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self.store = store
        self._pending: Deque[Tuple[ActionKind, Mapping[str, Any]]] = deque()
        self._draining = False

    def route(self, kind: str | ActionKind, payload: Optional[Mapping[str, Any]] = None) -> Optional[TransitionResult]:
        """
        Apply a symbolic action.

        Returns the result when the action ran immediately, or None when it
        was queued behind an action that is still being applied. Every result
        is also published through `action_routed`.
        """
        parsed = parse_kind(kind)
        if parsed is None:
            logger.warning(f"Unknown action kind: {kind!r}")
            result = Rejected(str(kind), RejectReason.UNKNOWN_ACTION)
            self.action_routed.emit(str(kind), result)
            return result

        self._pending.append((parsed, dict(payload or {})))
        if self._draining:
            logger.debug(f"Queued {parsed} behind running action")
            return None

        first: Optional[TransitionResult] = None
        self._draining = True
        try:
            while self._pending:
                action, data = self._pending.popleft()
                result = self._dispatch(action, data)
                if first is None:
                    first = result
                self.action_routed.emit(action.value, result)
        finally:
            self._draining = False
        return first

    def _dispatch(self, kind: ActionKind, payload: Mapping[str, Any]) -> TransitionResult:
        logger.debug(f"Action: {kind} {dict(payload)}")
        try:
            return self._apply(kind, payload)
        except InvalidPayload as e:
            logger.warning(f"Rejected {kind}: {e}")
            return Rejected(kind.value, RejectReason.INVALID_PAYLOAD, str(e))

    def _apply(self, kind: ActionKind, payload: Mapping[str, Any]) -> TransitionResult:
        store = self.store

        if kind in CAMERA_ACTIONS:
            self.camera_requested.emit(kind.value)
            return Applied(kind.value)

        if kind == ActionKind.PLACE:
            x, y, z = resolve_position(payload)
            return store.place(x, y, z, resolve_material(payload))

        if kind == ActionKind.DELETE:
            return self._delete_by_status(payload)

        if kind == ActionKind.DELETE_DRAFT:
            return store.delete_draft(_as_id(payload))

        if kind == ActionKind.DELETE_CONFIRMED:
            return store.delete_confirmed(_as_id(payload))

        if kind == ActionKind.SET_MATERIAL:
            material = resolve_material(payload)
            if material is None:
                raise InvalidPayload("missing 'material'")
            return store.set_material(material)

        if kind == ActionKind.CONFIRM_DRAFT:
            return store.confirm_draft()

        if kind == ActionKind.UNDO:
            return store.undo()

        if kind == ActionKind.COLLAPSE:
            return store.collapse()

        return store.cancel_collapse()

    def _delete_by_status(self, payload: Mapping[str, Any]) -> TransitionResult:
        if "id" in payload:
            cube = self.store.find_cube(_as_id(payload))
        else:
            cube = self.store.cube_at(resolve_position(payload))

        if cube is None:
            return Rejected(ActionKind.DELETE.value, RejectReason.UNKNOWN_CUBE, str(dict(payload)))
        if cube.status == CubeStatus.DRAFT:
            return self.store.delete_draft(cube.id)
        return self.store.delete_confirmed(cube.id)
