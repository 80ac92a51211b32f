from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from timegrid.core.config import Settings, get_settings
from timegrid.schemas.timetable import ClassAssignment, GeneratedTimetable, day_index
from timegrid.services.time_slots import slot_count

# day -> slot -> assignment, for one batch or one faculty member
SingleGrid = dict[str, dict[int, ClassAssignment]]


@dataclass(frozen=True)
class CellKey:
    batch_id: str
    day: str
    slot: int


@dataclass(frozen=True)
class CellCollision:
    """Two or more assignments competing for one (day, slot) of a single-entity grid."""

    day: str
    slot: int
    assignment_ids: tuple[str, ...]


class TimetableIndex:
    """Flat (batch, day, slot) table over a generated timetable."""

    def __init__(self, timetable: GeneratedTimetable):
        self.timetable_id = timetable.id
        self.batch_ids: tuple[str, ...] = tuple(timetable.batch_ids)
        self._cells: dict[CellKey, ClassAssignment] = {}
        self._by_id: dict[str, CellKey] = {}

        batch_rank = {batch_id: rank for rank, batch_id in enumerate(self.batch_ids)}
        ordered_batches = sorted(
            timetable.timetable.items(),
            key=lambda item: (batch_rank.get(item[0], len(batch_rank)), item[0]),
        )
        for batch_id, days in ordered_batches:
            for day in sorted(days, key=day_index):
                for slot in sorted(days[day]):
                    key = CellKey(batch_id, day, slot)
                    assignment = days[day][slot]
                    self._cells[key] = assignment
                    self._by_id.setdefault(assignment.id, key)

    def __len__(self) -> int:
        return len(self._cells)

    def __iter__(self) -> Iterator[ClassAssignment]:
        return iter(self._cells.values())

    def items(self) -> Iterator[tuple[CellKey, ClassAssignment]]:
        return iter(self._cells.items())

    def get(self, batch_id: str, day: str, slot: int) -> ClassAssignment | None:
        return self._cells.get(CellKey(batch_id, day, slot))

    def locate(self, assignment_id: str) -> CellKey | None:
        return self._by_id.get(assignment_id)

    def batch_assignments(self, batch_id: str) -> list[ClassAssignment]:
        return [assignment for key, assignment in self._cells.items() if key.batch_id == batch_id]


def lookup(
    timetable: GeneratedTimetable,
    batch_id: str,
    day: str,
    slot: int,
    settings: Settings | None = None,
) -> ClassAssignment | None:
    settings = settings or get_settings()
    if batch_id not in timetable.batch_ids:
        return None
    if day not in settings.working_days:
        return None
    if slot < 0 or slot >= slot_count(settings):
        return None
    return timetable.timetable.get(batch_id, {}).get(day, {}).get(slot)


def flatten_timetable(timetable: GeneratedTimetable) -> list[ClassAssignment]:
    return list(TimetableIndex(timetable))


def build_grid(assignments: Iterable[ClassAssignment]) -> tuple[SingleGrid, list[CellCollision]]:
    """Regrid assignments by (day, slot).

    The first assignment seen keeps the cell; every cell with more than one
    candidate is returned as a collision instead of being overwritten.
    """
    grid: SingleGrid = {}
    contenders: dict[tuple[str, int], list[str]] = {}
    for assignment in assignments:
        day_cells = grid.setdefault(assignment.day, {})
        contenders.setdefault(assignment.cell, []).append(assignment.id)
        if assignment.slot not in day_cells:
            day_cells[assignment.slot] = assignment

    collisions = [
        CellCollision(day=day, slot=slot, assignment_ids=tuple(ids))
        for (day, slot), ids in contenders.items()
        if len(ids) > 1
    ]
    collisions.sort(key=lambda item: (day_index(item.day), item.slot))
    return grid, collisions


def iter_grid(grid: SingleGrid) -> Iterator[ClassAssignment]:
    for day in sorted(grid, key=day_index):
        for slot in sorted(grid[day]):
            yield grid[day][slot]


def grid_cell(grid: SingleGrid, day: str, slot: int) -> ClassAssignment | None:
    return grid.get(day, {}).get(slot)


def find_assignment(grid: SingleGrid, assignment_id: str) -> ClassAssignment | None:
    return next((assignment for assignment in iter_grid(grid) if assignment.id == assignment_id), None)
