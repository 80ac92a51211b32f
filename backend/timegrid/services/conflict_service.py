import logging
from collections.abc import Iterable
from typing import Dict, List, Optional, Tuple

from timegrid.core.config import Settings, get_settings
from timegrid.schemas.conflict import ConflictEntry, ConflictMap, ConflictReport, ConflictType
from timegrid.schemas.timetable import Batch, ClassAssignment, Faculty, Room

logger = logging.getLogger(__name__)


def _catalog(items) -> dict:
    if items is None:
        return {}
    if isinstance(items, dict):
        return items
    return {item.id: item for item in items}


class ConflictService:
    """Scans assignments for double-booked rooms and faculty and undersized rooms.

    Every call recomputes the report from scratch; nothing is cached between calls.
    """

    def __init__(
        self,
        rooms: Iterable[Room] | Dict[str, Room] | None = None,
        batches: Iterable[Batch] | Dict[str, Batch] | None = None,
        faculty: Iterable[Faculty] | Dict[str, Faculty] | None = None,
        check_capacity: Optional[bool] = None,
    ):
        self.room_map: Dict[str, Room] = _catalog(rooms)
        self.batch_map: Dict[str, Batch] = _catalog(batches)
        self.faculty_map: Dict[str, Faculty] = _catalog(faculty)
        if check_capacity is None:
            check_capacity = get_settings().check_room_capacity
        self.check_capacity = check_capacity

    def _batch_label(self, batch_id: str) -> str:
        batch = self.batch_map.get(batch_id)
        return batch.name if batch else batch_id

    def _batches_involved(self, members: List[ClassAssignment]) -> str:
        labels = list(dict.fromkeys(self._batch_label(member.batch_id) for member in members))
        return " vs ".join(labels)

    def detect_conflicts(
        self,
        assignments: Iterable[ClassAssignment],
        external_assignments: Iterable[ClassAssignment] = (),
    ) -> ConflictReport:
        primary: List[ClassAssignment] = []
        seen: set[str] = set()
        for assignment in assignments:
            if assignment.id in seen:
                logger.debug("Ignoring repeated assignment id %s in conflict scan", assignment.id)
                continue
            seen.add(assignment.id)
            primary.append(assignment)
        primary_ids = set(seen)

        # External commitments occupy resources but are only reported alongside a primary assignment.
        pool = list(primary)
        for assignment in external_assignments:
            if assignment.id not in seen:
                seen.add(assignment.id)
                pool.append(assignment)

        room_groups: Dict[Tuple[str, int, str], List[ClassAssignment]] = {}
        faculty_groups: Dict[Tuple[str, int, str], List[ClassAssignment]] = {}
        for assignment in pool:
            if assignment.room_id is not None:
                room_groups.setdefault((assignment.day, assignment.slot, assignment.room_id), []).append(assignment)
            for faculty_id in assignment.faculty_ids:
                faculty_groups.setdefault((assignment.day, assignment.slot, faculty_id), []).append(assignment)

        conflicts: List[ConflictEntry] = []

        for (_, _, room_id), members in room_groups.items():
            if len(members) < 2 or not any(member.id in primary_ids for member in members):
                continue
            room = self.room_map.get(room_id)
            room_name = room.name if room else room_id
            conflicts.append(ConflictEntry(
                type=ConflictType.room,
                message=f"Room {room_name} double booked ({self._batches_involved(members)})",
                assignment_ids=[member.id for member in members],
            ))

        for (_, _, faculty_id), members in faculty_groups.items():
            if len(members) < 2 or not any(member.id in primary_ids for member in members):
                continue
            faculty = self.faculty_map.get(faculty_id)
            faculty_name = faculty.name if faculty else faculty_id
            conflicts.append(ConflictEntry(
                type=ConflictType.faculty,
                message=f"Faculty {faculty_name} double booked ({self._batches_involved(members)})",
                assignment_ids=[member.id for member in members],
            ))

        if self.check_capacity:
            for assignment in primary:
                batch = self.batch_map.get(assignment.batch_id)
                room = self.room_map.get(assignment.room_id) if assignment.room_id else None
                if batch and room and batch.student_count > room.capacity:
                    conflicts.append(ConflictEntry(
                        type=ConflictType.capacity,
                        message=(
                            f"Room Capacity Issue: {room.name} ({room.capacity}) is too small "
                            f"for {batch.name} ({batch.student_count} students)"
                        ),
                        assignment_ids=[assignment.id],
                    ))

        by_assignment: ConflictMap = {}
        for conflict in conflicts:
            for assignment_id in conflict.assignment_ids:
                by_assignment.setdefault(assignment_id, []).append(conflict)

        logger.debug("Conflict scan over %d assignments found %d conflict(s)", len(pool), len(conflicts))
        return ConflictReport(conflicts=conflicts, by_assignment=by_assignment)


def detect_conflicts(
    assignments: Iterable[ClassAssignment],
    rooms: Iterable[Room] | Dict[str, Room] | None = None,
    batches: Iterable[Batch] | Dict[str, Batch] | None = None,
    faculty: Iterable[Faculty] | Dict[str, Faculty] | None = None,
    external_assignments: Iterable[ClassAssignment] = (),
    settings: Settings | None = None,
) -> ConflictMap:
    settings = settings or get_settings()
    service = ConflictService(rooms, batches, faculty, check_capacity=settings.check_room_capacity)
    return service.detect_conflicts(assignments, external_assignments).by_assignment
