from __future__ import annotations

import logging
from typing import Callable, Optional, Tuple

from PySide6.QtCore import QObject, Signal

from voxelstructure.config import ADJACENCY_RULE, AdjacencyRule
from voxelstructure.controller.stability import analyze
from voxelstructure.model import transitions as tr
from voxelstructure.model.cube import Cube, GridPosition
from voxelstructure.model.history import ConfirmDraftRecord, HistoryRecord
from voxelstructure.model.materials import Material
from voxelstructure.model.results import TransitionResult
from voxelstructure.model.transitions import CollapseState, StructureState

logger = logging.getLogger(__name__)


class Store(QObject):
    """
    Central structure store with signals for renderer/timer sync.

    Owns the only StructureState. Every command swaps in a complete new state
    and only then emits the signals describing what changed.
    """
    drafts_changed = Signal(object)
    confirmed_changed = Signal(object)
    material_changed = Signal(object)
    collapse_changed = Signal(object)
    history_changed = Signal(int)

    warning_raised = Signal(object)
    warning_cleared = Signal()

    def __init__(self, rule: AdjacencyRule = ADJACENCY_RULE,
                 state: Optional[StructureState] = None,
                 parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self.rule = rule
        self._state = state if state is not None else StructureState()

    # ------------------------------------------------------------------------------
    # Query surface
    # ------------------------------------------------------------------------------

    @property
    def state(self) -> StructureState:
        return self._state

    @property
    def draft_cubes(self) -> Tuple[Cube, ...]:
        return self._state.draft_cubes

    @property
    def confirmed_cubes(self) -> Tuple[Cube, ...]:
        return self._state.confirmed_cubes

    @property
    def current_material(self) -> Material:
        return self._state.current_material

    @property
    def collapse_state(self) -> CollapseState:
        return self._state.collapse

    @property
    def history(self) -> Tuple[HistoryRecord, ...]:
        return self._state.history

    @property
    def next_id(self) -> int:
        return self._state.next_id

    @property
    def draft_count(self) -> int:
        return len(self._state.draft_cubes)

    @property
    def confirmed_count(self) -> int:
        return len(self._state.confirmed_cubes)

    def cube_at(self, position: GridPosition) -> Optional[Cube]:
        return self._state.cube_at(*position)

    def find_cube(self, cube_id: int) -> Optional[Cube]:
        return self._state.find_cube(cube_id)

    # ------------------------------------------------------------------------------
    # Command surface
    # ------------------------------------------------------------------------------

    def place(self, x: float, y: float, z: float, material: Optional[Material] = None) -> TransitionResult:
        return self._apply(lambda s: tr.place(s, x, y, z, material))

    def delete_draft(self, cube_id: int) -> TransitionResult:
        return self._apply(lambda s: tr.delete_draft(s, cube_id))

    def delete_confirmed(self, cube_id: int) -> TransitionResult:
        return self._apply(lambda s: tr.delete_confirmed(s, cube_id))

    def set_material(self, material: Material) -> TransitionResult:
        return self._apply(lambda s: tr.set_material(s, material))

    def confirm_draft(self) -> TransitionResult:
        return self._apply(lambda s: tr.confirm_draft(s, self.rule))

    def undo(self) -> TransitionResult:
        undone = self._state.history[-1] if self._state.history else None
        result = self._apply(tr.undo)
        if result.ok and isinstance(undone, ConfirmDraftRecord):
            self._report_leftover_instability()
        return result

    def collapse(self) -> TransitionResult:
        return self._apply(tr.collapse)

    def cancel_collapse(self) -> TransitionResult:
        return self._apply(tr.cancel_collapse)

    def update_countdown(self, countdown: int) -> TransitionResult:
        return self._apply(lambda s: tr.update_countdown(s, countdown))

    # ------------------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------------------

    def _apply(self, transition: Callable[[StructureState], tr.Transition]) -> TransitionResult:
        old = self._state
        new, result = transition(old)
        if not result.ok:
            logger.info(str(result))
            return result

        tr.check_invariants(new)
        self._state = new
        logger.debug(
            f"{result.kind}: drafts={len(new.draft_cubes)} confirmed={len(new.confirmed_cubes)} "
            f"history={len(new.history)} next_id={new.next_id}"
        )
        self._emit_changes(old, new, result.kind)
        return result

    def _emit_changes(self, old: StructureState, new: StructureState, kind: str) -> None:
        if new.draft_cubes != old.draft_cubes:
            self.drafts_changed.emit(new.draft_cubes)
        if new.confirmed_cubes != old.confirmed_cubes:
            self.confirmed_changed.emit(new.confirmed_cubes)
        if new.current_material != old.current_material:
            self.material_changed.emit(new.current_material)
        if len(new.history) != len(old.history):
            self.history_changed.emit(len(new.history))

        if new.collapse != old.collapse:
            self.collapse_changed.emit(new.collapse)

        was_active = old.collapse.warning_active
        is_active = new.collapse.warning_active
        if is_active and (not was_active or kind == "confirm_draft"):
            logger.warning(
                f"Structure unstable: {len(new.collapse.unstable_ids)} cube(s) "
                f"{list(new.collapse.unstable_ids)} collapse in {new.collapse.countdown}s"
            )
            self.warning_raised.emit(new.collapse.unstable_ids)
        elif was_active and not is_active:
            logger.info(f"Collapse warning cleared by {kind}")
            self.warning_cleared.emit()

    def _report_leftover_instability(self) -> None:
        # Undoing a confirm clears the warning even if older cubes still float
        report = analyze(self._state.confirmed_cubes, self.rule)
        if report.unstable:
            logger.warning(
                f"Warning cleared by undo, but {len(report.unstable)} confirmed cube(s) "
                f"{sorted(report.unstable)} remain unsupported"
            )
