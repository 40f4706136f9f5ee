"""
History Log Records
===================
Tagged records appended to the store's history, one variant per recorded
transition. Each variant carries exactly the data its inverse needs.

Only PlaceRecord, DeleteDraftRecord and ConfirmDraftRecord can be undone.
DeleteConfirmedRecord and CollapseRecord are kept for the record but block
undo while they sit at the tail of the log.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple, Union

from voxelstructure.model.cube import Cube


@dataclass(frozen=True)
class PlaceRecord:
    cube: Cube
    previous_next_id: int


@dataclass(frozen=True)
class DeleteDraftRecord:
    cube: Cube


@dataclass(frozen=True)
class DeleteConfirmedRecord:
    cube: Cube


@dataclass(frozen=True)
class ConfirmDraftRecord:
    # Draft list as it was before the confirm, in placement order
    previous_drafts: Tuple[Cube, ...]


@dataclass(frozen=True)
class CollapseRecord:
    removed: Tuple[Cube, ...]


HistoryRecord = Union[
    PlaceRecord,
    DeleteDraftRecord,
    DeleteConfirmedRecord,
    ConfirmDraftRecord,
    CollapseRecord,
]

UNDOABLE_RECORDS = (PlaceRecord, DeleteDraftRecord, ConfirmDraftRecord)


def is_undoable(record: HistoryRecord) -> bool:
    return isinstance(record, UNDOABLE_RECORDS)
