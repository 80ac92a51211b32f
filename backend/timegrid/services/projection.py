from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from timegrid.core.exceptions import DataIntegrityError
from timegrid.schemas.timetable import ClassAssignment, GeneratedTimetable
from timegrid.services.grid import CellCollision, SingleGrid, TimetableIndex, build_grid

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IntegrityIssue:
    viewer_id: str
    day: str
    slot: int
    assignment_ids: tuple[str, ...]

    @property
    def message(self) -> str:
        return (
            f"{self.viewer_id} has {len(self.assignment_ids)} classes at {self.day} slot {self.slot}: "
            f"{', '.join(self.assignment_ids)}"
        )


def integrity_issues_from(viewer_id: str, collisions: list[CellCollision]) -> list[IntegrityIssue]:
    return [
        IntegrityIssue(viewer_id=viewer_id, day=item.day, slot=item.slot, assignment_ids=item.assignment_ids)
        for item in collisions
    ]


@dataclass
class FacultyProjection:
    faculty_id: str
    grid: SingleGrid = field(default_factory=dict)
    batch_ids: list[str] = field(default_factory=list)
    assignments: list[ClassAssignment] = field(default_factory=list)
    integrity_issues: list[IntegrityIssue] = field(default_factory=list)

    @property
    def is_consistent(self) -> bool:
        return not self.integrity_issues

    def ensure_consistent(self) -> None:
        if self.integrity_issues:
            raise DataIntegrityError(
                "; ".join(issue.message for issue in self.integrity_issues),
                details={
                    "faculty_id": self.faculty_id,
                    "cells": [
                        {"day": issue.day, "slot": issue.slot, "assignment_ids": list(issue.assignment_ids)}
                        for issue in self.integrity_issues
                    ],
                },
            )


def project_batch(timetable: GeneratedTimetable, batch_id: str) -> SingleGrid:
    if batch_id not in timetable.batch_ids:
        return {}
    batch_grid = timetable.timetable.get(batch_id, {})
    return {day: dict(slots) for day, slots in batch_grid.items() if slots}


def faculty_assignments(timetables: Iterable[GeneratedTimetable], faculty_id: str) -> list[ClassAssignment]:
    collected: list[ClassAssignment] = []
    for timetable in timetables:
        if not timetable.is_approved:
            continue
        collected.extend(assignment for assignment in TimetableIndex(timetable) if assignment.teaches(faculty_id))
    return collected


def project_faculty(approved_timetables: Iterable[GeneratedTimetable], faculty_id: str) -> FacultyProjection:
    assignments = faculty_assignments(approved_timetables, faculty_id)
    grid, collisions = build_grid(assignments)
    issues = integrity_issues_from(faculty_id, collisions)
    for issue in issues:
        logger.warning("Data integrity: %s", issue.message)

    return FacultyProjection(
        faculty_id=faculty_id,
        grid=grid,
        batch_ids=list(dict.fromkeys(assignment.batch_id for assignment in assignments)),
        assignments=assignments,
        integrity_issues=issues,
    )
