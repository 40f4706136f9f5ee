"""
Structure State Transitions
===========================
The draft / confirm / collapse / undo state machine as pure functions.

Each transition takes the current `StructureState` and returns a new one
together with a `TransitionResult`. States are frozen, so a caller either
sees the whole previous state or the whole next one, never a half-updated
mix. Rejected transitions return the input state unchanged.

Collapse sub-machine::

    stable  --confirm with unstable cubes-->  warning
    warning --collapse | cancel | undo confirm-->  stable
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
import logging
import math
from typing import Optional, Tuple

from voxelstructure import config
from voxelstructure.config import AdjacencyRule, COLLAPSE_COUNTDOWN_SECONDS
from voxelstructure.controller.stability import unstable_ids_in_order
from voxelstructure.model.cube import (
    Cube, CubeStatus, cell_key, is_above_ground, is_on_grid,
)
from voxelstructure.model.history import (
    CollapseRecord, ConfirmDraftRecord, DeleteConfirmedRecord, DeleteDraftRecord,
    HistoryRecord, PlaceRecord, is_undoable,
)
from voxelstructure.model.materials import DEFAULT_MATERIAL, Material
from voxelstructure.model.results import (
    Applied, InvariantViolation, Rejected, RejectReason, TransitionResult,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CollapseState:
    warning_active: bool = False
    unstable_ids: Tuple[int, ...] = ()
    countdown: int = COLLAPSE_COUNTDOWN_SECONDS


STABLE = CollapseState()


@dataclass(frozen=True)
class StructureState:
    """
    The whole structure aggregate.

    draft_cubes keeps placement order (it drives undo). history is append-only
    except for undo popping its tail.
    """
    draft_cubes: Tuple[Cube, ...] = ()
    confirmed_cubes: Tuple[Cube, ...] = ()
    current_material: Material = DEFAULT_MATERIAL
    history: Tuple[HistoryRecord, ...] = ()
    collapse: CollapseState = field(default_factory=CollapseState)
    next_id: int = 1

    @property
    def live_cubes(self) -> Tuple[Cube, ...]:
        return self.draft_cubes + self.confirmed_cubes

    def cube_at(self, x: float, y: float, z: float) -> Optional[Cube]:
        if not all(math.isfinite(v) for v in (x, y, z)):
            return None
        key = cell_key(x, y, z)
        for cube in self.live_cubes:
            if cell_key(cube.x, cube.y, cube.z) == key:
                return cube
        return None

    def find_cube(self, cube_id: int) -> Optional[Cube]:
        for cube in self.live_cubes:
            if cube.id == cube_id:
                return cube
        return None


Transition = Tuple[StructureState, TransitionResult]


def invariant_failed(message: str) -> None:
    """
    Report a bookkeeping defect. Raises in strict mode, logs otherwise.
    """
    if config.STRICT_INVARIANTS:
        raise InvariantViolation(message)
    logger.error(f"Invariant violated: {message}")


# ---------------------------------------------------------------------------
# Placement & deletion
# ---------------------------------------------------------------------------

def place(state: StructureState, x: float, y: float, z: float,
          material: Optional[Material] = None) -> Transition:
    kind = "place"
    if not is_on_grid(x, y, z):
        return state, Rejected(kind, RejectReason.OFF_GRID, f"({x}, {y}, {z})")
    if not is_above_ground(y):
        return state, Rejected(kind, RejectReason.BELOW_GROUND, f"y={y}")
    occupant = state.cube_at(x, y, z)
    if occupant is not None:
        return state, Rejected(kind, RejectReason.OCCUPIED, f"cube {occupant.id}")

    cube = Cube(
        id=state.next_id,
        x=float(x), y=float(y), z=float(z),
        material=material if material is not None else state.current_material,
        status=CubeStatus.DRAFT,
    )
    new_state = replace(
        state,
        draft_cubes=state.draft_cubes + (cube,),
        history=state.history + (PlaceRecord(cube=cube, previous_next_id=state.next_id),),
        next_id=state.next_id + 1,
    )
    return new_state, Applied(kind)


def delete_draft(state: StructureState, cube_id: int) -> Transition:
    kind = "delete_draft"
    target = next((c for c in state.draft_cubes if c.id == cube_id), None)
    if target is None:
        return state, Rejected(kind, RejectReason.UNKNOWN_CUBE, f"draft id {cube_id}")

    new_state = replace(
        state,
        draft_cubes=tuple(c for c in state.draft_cubes if c.id != cube_id),
        history=state.history + (DeleteDraftRecord(cube=target),),
    )
    return new_state, Applied(kind)


def delete_confirmed(state: StructureState, cube_id: int) -> Transition:
    """
    Remove a confirmed cube. The structure is not re-analysed; the id is only
    dropped from the pending unstable set so that set stays a subset of the
    confirmed cubes.
    """
    kind = "delete_confirmed"
    target = next((c for c in state.confirmed_cubes if c.id == cube_id), None)
    if target is None:
        return state, Rejected(kind, RejectReason.UNKNOWN_CUBE, f"confirmed id {cube_id}")

    collapse = state.collapse
    if cube_id in collapse.unstable_ids:
        remaining = tuple(i for i in collapse.unstable_ids if i != cube_id)
        collapse = replace(collapse, unstable_ids=remaining) if remaining else STABLE

    new_state = replace(
        state,
        confirmed_cubes=tuple(c for c in state.confirmed_cubes if c.id != cube_id),
        history=state.history + (DeleteConfirmedRecord(cube=target),),
        collapse=collapse,
    )
    return new_state, Applied(kind)


def set_material(state: StructureState, material: Material) -> Transition:
    # Material choice is not part of the undo log
    return replace(state, current_material=material), Applied("set_material")


# ---------------------------------------------------------------------------
# Confirm & collapse
# ---------------------------------------------------------------------------

def confirm_draft(state: StructureState, rule: AdjacencyRule = config.ADJACENCY_RULE) -> Transition:
    """
    Move every draft cube into the confirmed structure and re-run the
    stability analysis over the result. An empty draft list changes nothing,
    so an active countdown is never reset by a stray confirm.
    """
    kind = "confirm_draft"
    if not state.draft_cubes:
        return state, Rejected(kind, RejectReason.EMPTY_DRAFT)

    promoted = tuple(c.with_status(CubeStatus.CONFIRMED) for c in state.draft_cubes)
    confirmed = state.confirmed_cubes + promoted
    unstable = unstable_ids_in_order(confirmed, rule)

    new_state = replace(
        state,
        draft_cubes=(),
        confirmed_cubes=confirmed,
        history=state.history + (ConfirmDraftRecord(previous_drafts=state.draft_cubes),),
        collapse=CollapseState(
            warning_active=bool(unstable),
            unstable_ids=unstable,
            countdown=COLLAPSE_COUNTDOWN_SECONDS,
        ),
    )
    return new_state, Applied(kind)


def collapse(state: StructureState) -> Transition:
    kind = "collapse"
    if not state.collapse.warning_active:
        return state, Rejected(kind, RejectReason.NO_WARNING)

    doomed = set(state.collapse.unstable_ids)
    removed = tuple(c for c in state.confirmed_cubes if c.id in doomed)
    if len(removed) != len(doomed):
        invariant_failed(
            f"unstable ids {sorted(doomed)} are not all confirmed cubes"
        )

    new_state = replace(
        state,
        confirmed_cubes=tuple(c for c in state.confirmed_cubes if c.id not in doomed),
        history=state.history + (CollapseRecord(removed=removed),),
        collapse=STABLE,
    )
    return new_state, Applied(kind)


def cancel_collapse(state: StructureState) -> Transition:
    kind = "cancel_collapse"
    if not state.collapse.warning_active:
        return state, Rejected(kind, RejectReason.NO_WARNING)
    return replace(state, collapse=STABLE), Applied(kind)


def update_countdown(state: StructureState, countdown: int) -> Transition:
    """Timer tick carrier. Not recorded in history."""
    kind = "update_countdown"
    if not state.collapse.warning_active:
        return state, Rejected(kind, RejectReason.NO_WARNING)
    if countdown < 0:
        return state, Rejected(kind, RejectReason.INVALID_PAYLOAD, f"countdown={countdown}")
    return replace(state, collapse=replace(state.collapse, countdown=countdown)), Applied(kind)


# ---------------------------------------------------------------------------
# Undo
# ---------------------------------------------------------------------------

def _undo_place(state: StructureState, record: PlaceRecord) -> StructureState:
    cube = record.cube
    drafts = state.draft_cubes
    if not any(c.id == cube.id for c in drafts):
        invariant_failed(f"undo of placement {cube.id} but the cube is no longer a draft")
    elif drafts[-1].id != cube.id:
        # A restored delete was appended after it; remove by id regardless
        logger.warning(f"Undoing placement {cube.id} which is not the newest draft")
    if state.next_id != cube.id + 1:
        invariant_failed(
            f"undo of placement {cube.id} with next id {state.next_id} (expected {cube.id + 1})"
        )

    remaining = tuple(c for c in drafts if c.id != cube.id)
    live_ids = [c.id for c in remaining + state.confirmed_cubes]
    # Never hand out an id that is still live
    next_id = max([record.previous_next_id] + [i + 1 for i in live_ids])
    return replace(state, draft_cubes=remaining, next_id=next_id)


def _undo_delete_draft(state: StructureState, record: DeleteDraftRecord) -> StructureState:
    restored = record.cube.with_status(CubeStatus.DRAFT)
    return replace(state, draft_cubes=state.draft_cubes + (restored,))


def _undo_confirm(state: StructureState, record: ConfirmDraftRecord) -> StructureState:
    batch_ids = {c.id for c in record.previous_drafts}
    reverted = tuple(c.with_status(CubeStatus.DRAFT) for c in record.previous_drafts)
    return replace(
        state,
        confirmed_cubes=tuple(c for c in state.confirmed_cubes if c.id not in batch_ids),
        draft_cubes=reverted + state.draft_cubes,
        collapse=STABLE,
    )


def undo(state: StructureState) -> Transition:
    """
    Reverse the newest history record. Undo never appends to history, so
    there is no redo.
    """
    kind = "undo"
    if not state.history:
        return state, Rejected(kind, RejectReason.EMPTY_HISTORY)

    record = state.history[-1]
    if not is_undoable(record):
        return state, Rejected(kind, RejectReason.NOT_UNDOABLE, type(record).__name__)

    popped = replace(state, history=state.history[:-1])
    if isinstance(record, PlaceRecord):
        new_state = _undo_place(popped, record)
    elif isinstance(record, DeleteDraftRecord):
        new_state = _undo_delete_draft(popped, record)
    else:
        new_state = _undo_confirm(popped, record)
    return new_state, Applied(kind)


def check_invariants(state: StructureState) -> None:
    """Verify the aggregate's bookkeeping. Used after every store transition."""
    live = state.live_cubes
    ids = [c.id for c in live]
    if len(ids) != len(set(ids)):
        invariant_failed(f"duplicate cube ids {ids}")
    if ids and state.next_id <= max(ids):
        invariant_failed(f"next id {state.next_id} is not above live id {max(ids)}")
    cells = [cell_key(c.x, c.y, c.z) for c in live]
    if len(cells) != len(set(cells)):
        invariant_failed("two live cubes share a cell")
    confirmed_ids = {c.id for c in state.confirmed_cubes}
    if not set(state.collapse.unstable_ids) <= confirmed_ids:
        invariant_failed(
            f"unstable ids {state.collapse.unstable_ids} are not all confirmed"
        )
