from __future__ import annotations

import logging
from enum import Enum

from timegrid.core.config import Settings, get_settings
from timegrid.core.exceptions import DataIntegrityError, TimetableLockedError
from timegrid.schemas.edit import (
    CellRef,
    ChangeDescriptor,
    EditDecision,
    GestureRejection,
    MoveChange,
    SwapChange,
)
from timegrid.schemas.timetable import ClassAssignment, GeneratedTimetable
from timegrid.services.grid import SingleGrid, find_assignment, grid_cell
from timegrid.services.time_slots import slot_count

logger = logging.getLogger(__name__)


def build_edit_descriptor(
    grid: SingleGrid,
    source: ClassAssignment,
    target_day: str,
    target_slot: int,
    settings: Settings | None = None,
) -> EditDecision:
    """Turn a drop of ``source`` onto (target_day, target_slot) into a move or swap.

    Gestures that cannot be honoured come back as a no-op decision carrying the
    reason. Conflicts are not checked here; they are detected after commit.
    """
    settings = settings or get_settings()

    # The grid may have changed under the drag; trust its copy of the source, not the gesture's.
    current = find_assignment(grid, source.id)
    if current is None:
        logger.debug("Drop ignored: assignment %s is no longer in the grid", source.id)
        return EditDecision(rejection=GestureRejection.stale_source)

    if target_day not in settings.working_days or not 0 <= target_slot < slot_count(settings):
        return EditDecision(rejection=GestureRejection.outside_grid)

    if current.cell == (target_day, target_slot):
        return EditDecision(rejection=GestureRejection.same_cell)

    occupant = grid_cell(grid, target_day, target_slot)
    if occupant is not None:
        return EditDecision(change=SwapChange(assignment1=current, assignment2=occupant))
    return EditDecision(change=MoveChange(assignment=current, to=CellRef(day=target_day, slot=target_slot)))


class DragState(str, Enum):
    idle = "idle"
    dragging = "dragging"
    committing = "committing"


class DragSession:
    """Idle -> Dragging(source) -> Idle | Committing(change)."""

    def __init__(self, editable: bool = True, settings: Settings | None = None):
        self.editable = editable
        self.settings = settings
        self.state = DragState.idle
        self.source: ClassAssignment | None = None
        self.pending: ChangeDescriptor | None = None

    def start(self, assignment: ClassAssignment) -> bool:
        if not self.editable:
            return False
        self.state = DragState.dragging
        self.source = assignment
        self.pending = None
        return True

    def drop(self, grid: SingleGrid, target_day: str, target_slot: int) -> EditDecision:
        if not self.editable:
            return EditDecision(rejection=GestureRejection.not_editable)
        if self.state != DragState.dragging or self.source is None:
            return EditDecision(rejection=GestureRejection.no_drag)

        decision = build_edit_descriptor(grid, self.source, target_day, target_slot, self.settings)
        self.source = None
        if decision.is_noop:
            self.state = DragState.idle
        else:
            self.state = DragState.committing
            self.pending = decision.change
        return decision

    def cancel(self) -> None:
        self.state = DragState.idle
        self.source = None
        self.pending = None

    def commit(self) -> ChangeDescriptor | None:
        change = self.pending
        self.cancel()
        return change


def changed_assignment_ids(change: ChangeDescriptor) -> list[str]:
    if isinstance(change, MoveChange):
        return [change.assignment.id]
    return [change.assignment1.id, change.assignment2.id]


def invert_change(change: ChangeDescriptor) -> ChangeDescriptor:
    if isinstance(change, MoveChange):
        moved = change.assignment.model_copy(update={"day": change.to.day, "slot": change.to.slot})
        return MoveChange(assignment=moved, to=CellRef(day=change.assignment.day, slot=change.assignment.slot))
    first, second = change.assignment1, change.assignment2
    return SwapChange(
        assignment1=first.model_copy(update={"day": second.day, "slot": second.slot}),
        assignment2=second.model_copy(update={"day": first.day, "slot": first.slot}),
    )


def _take(batch_grid: dict, assignment: ClassAssignment) -> None:
    day_cells = batch_grid.get(assignment.day, {})
    stored = day_cells.get(assignment.slot)
    if stored is None or stored.id != assignment.id:
        raise DataIntegrityError(
            f"Assignment {assignment.id} is not at {assignment.day} slot {assignment.slot}",
            details={"assignment_id": assignment.id},
        )
    del day_cells[assignment.slot]
    if not day_cells:
        del batch_grid[assignment.day]


def _place(batch_grid: dict, assignment: ClassAssignment, day: str, slot: int) -> None:
    day_cells = batch_grid.setdefault(day, {})
    occupant = day_cells.get(slot)
    if occupant is not None:
        raise DataIntegrityError(
            f"Cannot place {assignment.id} at {day} slot {slot}: occupied by {occupant.id}",
            details={"assignment_id": assignment.id, "occupant_id": occupant.id},
        )
    day_cells[slot] = assignment.model_copy(update={"day": day, "slot": slot})


def apply_change(timetable: GeneratedTimetable, change: ChangeDescriptor) -> GeneratedTimetable:
    """Return a copy of ``timetable`` with ``change`` applied; the input is untouched.

    A swap exchanges day and slot while each assignment stays in its own batch
    grid. A swap built from a faculty grid can pair assignments of two batches,
    and the target cell may already be taken in the other batch's grid; that
    swap cannot be placed and raises ``DataIntegrityError`` without touching
    the input.
    """
    if timetable.is_approved:
        raise TimetableLockedError(timetable.id)

    updated = timetable.model_copy(deep=True)
    grid = updated.timetable

    if isinstance(change, MoveChange):
        batch_grid = grid.get(change.assignment.batch_id)
        if batch_grid is None:
            logger.warning("Move of %s dropped: batch %s not in timetable %s",
                           change.assignment.id, change.assignment.batch_id, timetable.id)
            return timetable
        _take(batch_grid, change.assignment)
        _place(batch_grid, change.assignment, change.to.day, change.to.slot)
        return updated

    first, second = change.assignment1, change.assignment2
    first_grid = grid.get(first.batch_id)
    second_grid = grid.get(second.batch_id)
    if first_grid is None or second_grid is None:
        logger.warning("Swap of %s and %s dropped: batch grid missing in timetable %s",
                       first.id, second.id, timetable.id)
        return timetable
    _take(first_grid, first)
    _take(second_grid, second)
    _place(first_grid, first, second.day, second.slot)
    _place(second_grid, second, first.day, first.slot)
    return updated
