from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date

from timegrid.core.exceptions import ResourceNotFoundError
from timegrid.schemas.timetable import ClassAssignment, GeneratedTimetable, Substitution
from timegrid.services.grid import SingleGrid, TimetableIndex, build_grid
from timegrid.services.projection import IntegrityIssue, faculty_assignments, integrity_issues_from

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolutionWarning:
    substitution_id: str
    code: str
    message: str


@dataclass
class SubstitutionResolution:
    """What one faculty member actually teaches on one date."""

    faculty_id: str
    evaluation_date: date
    grid: SingleGrid = field(default_factory=dict)
    assignments: list[ClassAssignment] = field(default_factory=list)
    batch_ids: list[str] = field(default_factory=list)
    suppressed_ids: set[str] = field(default_factory=set)
    injected: list[ClassAssignment] = field(default_factory=list)
    warnings: list[ResolutionWarning] = field(default_factory=list)
    integrity_issues: list[IntegrityIssue] = field(default_factory=list)


def active_substitutions(substitutions: Iterable[Substitution], evaluation_date: date) -> list[Substitution]:
    return [item for item in substitutions if item.is_active_on(evaluation_date)]


def build_substitute_assignment(
    substitution: Substitution, original: ClassAssignment | None = None
) -> ClassAssignment:
    # The substitution id doubles as the assignment id so UI keys stay stable across renders.
    room_id = substitution.room_id
    if room_id is None and original is not None:
        room_id = original.room_id
    return ClassAssignment(
        id=substitution.id,
        batch_id=substitution.batch_id,
        subject_id=substitution.substitute_subject_id,
        faculty_ids=[substitution.substitute_faculty_id],
        room_id=room_id,
        day=substitution.day,
        slot=substitution.slot,
    )


def _assignments_by_id(timetables: Iterable[GeneratedTimetable]) -> dict[str, ClassAssignment]:
    found: dict[str, ClassAssignment] = {}
    for timetable in timetables:
        if not timetable.is_approved:
            continue
        for assignment in TimetableIndex(timetable):
            found.setdefault(assignment.id, assignment)
    return found


def _synthesize(
    substitutions: Iterable[Substitution],
    originals: dict[str, ClassAssignment],
    warnings: list[ResolutionWarning],
) -> list[ClassAssignment]:
    synthesized: list[ClassAssignment] = []
    for substitution in substitutions:
        original = originals.get(substitution.original_assignment_id)
        if original is None:
            logger.warning(
                "Substitution %s references missing assignment %s; skipped",
                substitution.id,
                substitution.original_assignment_id,
            )
            error = ResourceNotFoundError("ClassAssignment", substitution.original_assignment_id)
            warnings.append(ResolutionWarning(substitution_id=substitution.id, code=error.code, message=error.message))
            continue
        synthesized.append(build_substitute_assignment(substitution, original))
    return synthesized


def substitution_assignments(
    approved_timetables: Iterable[GeneratedTimetable],
    substitutions: Iterable[Substitution],
    evaluation_date: date,
) -> list[ClassAssignment]:
    """Every covering assignment in force on a date, for use as external conflict commitments.

    The substitution record is self-contained here: a commitment is built even
    when its original assignment has left the approved set, so the substitute
    and the record's room stay blocked.
    """
    active = active_substitutions(substitutions, evaluation_date)
    if not active:
        return []
    originals = _assignments_by_id(approved_timetables)
    return [build_substitute_assignment(item, originals.get(item.original_assignment_id)) for item in active]


def resolve_substitutions(
    viewer_faculty_id: str,
    approved_timetables: Iterable[GeneratedTimetable],
    substitutions: Iterable[Substitution],
    evaluation_date: date,
) -> SubstitutionResolution:
    """Build the effective grid for a faculty member on a given date.

    Substitutions are directional. An active substitution hides the original
    class from the absent faculty member's grid and injects a synthetic class
    into the substitute's grid, both from the same record.
    """
    timetables = list(approved_timetables)
    active = active_substitutions(substitutions, evaluation_date)

    suppressed_ids = {item.original_assignment_id for item in active if item.original_faculty_id == viewer_faculty_id}
    own = [
        assignment
        for assignment in faculty_assignments(timetables, viewer_faculty_id)
        if assignment.id not in suppressed_ids
    ]

    warnings: list[ResolutionWarning] = []
    covering = [item for item in active if item.substitute_faculty_id == viewer_faculty_id]
    injected = _synthesize(covering, _assignments_by_id(timetables), warnings) if covering else []

    assignments = own + injected
    grid, collisions = build_grid(assignments)
    issues = integrity_issues_from(viewer_faculty_id, collisions)
    for issue in issues:
        logger.warning("Substitution overlay collision: %s", issue.message)

    logger.debug(
        "Resolved %s on %s: %d own, %d suppressed, %d injected",
        viewer_faculty_id,
        evaluation_date.isoformat(),
        len(own),
        len(suppressed_ids),
        len(injected),
    )
    return SubstitutionResolution(
        faculty_id=viewer_faculty_id,
        evaluation_date=evaluation_date,
        grid=grid,
        assignments=assignments,
        batch_ids=list(dict.fromkeys(assignment.batch_id for assignment in assignments)),
        suppressed_ids=suppressed_ids,
        injected=injected,
        warnings=warnings,
        integrity_issues=issues,
    )
