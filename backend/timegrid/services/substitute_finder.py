from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field

from timegrid.schemas.timetable import Batch, ClassAssignment, Faculty, FacultyAvailability, Subject

CAN_TEACH_ORIGINAL_POINTS = 40
ALLOCATED_TO_BATCH_POINTS = 30
LIGHT_WORKLOAD_POINTS = 20
COMPACT_DAY_POINTS = 10


@dataclass
class RankedSubstitute:
    faculty: Faculty
    suitable_subject_ids: list[str]
    score: int
    reasons: list[str] = field(default_factory=list)


def faculty_workload(faculty_id: str, assignments: Iterable[ClassAssignment]) -> int:
    return sum(1 for assignment in assignments if assignment.teaches(faculty_id))


def day_gaps(slots: Iterable[int]) -> int:
    ordered = sorted(set(slots))
    return sum(later - earlier - 1 for earlier, later in zip(ordered, ordered[1:]))


def _is_free(
    faculty_id: str,
    day: str,
    slot: int,
    busy: set[tuple[str, str, int]],
    availability: FacultyAvailability | None,
) -> bool:
    if availability is not None and not availability.allows(day, slot):
        return False
    return (faculty_id, day, slot) not in busy


def rank_substitutes(
    target: ClassAssignment,
    faculty: Iterable[Faculty],
    assignments: Iterable[ClassAssignment],
    availabilities: Iterable[FacultyAvailability] = (),
    batches: Iterable[Batch] = (),
    subjects: Iterable[Subject] | None = None,
) -> list[RankedSubstitute]:
    """Rank who could cover ``target``.

    A candidate must not already teach the class, must be free at its day and
    slot, and must teach at least one known subject. Higher score is better.
    """
    assignments = list(assignments)
    availability_by_faculty = {item.faculty_id: item for item in availabilities}
    batch = next((item for item in batches if item.id == target.batch_id), None)
    known_subjects = {item.id for item in subjects} if subjects is not None else None

    busy: set[tuple[str, str, int]] = set()
    day_slots: dict[tuple[str, str], list[int]] = defaultdict(list)
    workloads: dict[str, int] = defaultdict(int)
    for assignment in assignments:
        for faculty_id in assignment.faculty_ids:
            busy.add((faculty_id, assignment.day, assignment.slot))
            day_slots[(faculty_id, assignment.day)].append(assignment.slot)
            workloads[faculty_id] += 1

    candidates: list[tuple[Faculty, list[str]]] = []
    for member in faculty:
        if target.teaches(member.id):
            continue
        if not _is_free(member.id, target.day, target.slot, busy, availability_by_faculty.get(member.id)):
            continue
        suitable = [
            subject_id for subject_id in member.subject_ids
            if known_subjects is None or subject_id in known_subjects
        ]
        if suitable:
            candidates.append((member, suitable))

    if not candidates:
        return []

    heaviest = max(workloads.get(member.id, 0) for member, _ in candidates)
    ranked: list[RankedSubstitute] = []
    for member, suitable in candidates:
        score = 0
        reasons: list[str] = []

        if target.subject_id in suitable:
            score += CAN_TEACH_ORIGINAL_POINTS
            reasons.append("Can teach the original subject")
        if batch is not None and member.id in batch.allocated_faculty_ids:
            score += ALLOCATED_TO_BATCH_POINTS
            reasons.append("Already allocated to this batch")

        workload = workloads.get(member.id, 0)
        if heaviest > 0:
            light = round(LIGHT_WORKLOAD_POINTS * (heaviest - workload) / heaviest)
        else:
            light = LIGHT_WORKLOAD_POINTS
        if light > 0:
            score += light
            reasons.append(f"Has a light workload this week ({workload} classes)")

        current_gaps = day_gaps(day_slots.get((member.id, target.day), []))
        new_gaps = day_gaps(day_slots.get((member.id, target.day), []) + [target.slot])
        if new_gaps <= current_gaps:
            score += COMPACT_DAY_POINTS
            reasons.append("Maintains a compact schedule")

        if not reasons:
            reasons.append("Availability confirmed")
        ranked.append(RankedSubstitute(faculty=member, suitable_subject_ids=suitable, score=score, reasons=reasons))

    ranked.sort(key=lambda item: (-item.score, item.faculty.name))
    return ranked
