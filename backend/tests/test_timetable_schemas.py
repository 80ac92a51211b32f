from datetime import date

import pytest
from pydantic import ValidationError

from timegrid.schemas.timetable import ClassAssignment, GeneratedTimetable, Substitution, TimetableStatus


def substitution_payload(**overrides):
    payload = {
        "id": "sub-x",
        "originalAssignmentId": "a-2",
        "originalFacultyId": "fac-a",
        "substituteFacultyId": "fac-b",
        "substituteSubjectId": "sub-9",
        "batchId": "b1",
        "day": "Monday",
        "slot": 2,
        "startDate": "2026-03-02",
        "endDate": "2026-03-04",
    }
    payload.update(overrides)
    return payload


def test_assignment_accepts_store_document():
    assignment = ClassAssignment.model_validate({
        "id": "a-1",
        "batchId": "b1",
        "subjectId": "sub-1",
        "facultyIds": ["fac-a", " fac-b ", "fac-a"],
        "roomId": None,
        "day": " Monday ",
        "slot": 0,
    })

    assert assignment.faculty_ids == ["fac-a", "fac-b"]
    assert assignment.room_id is None
    assert assignment.cell == ("Monday", 0)
    assert assignment.teaches("fac-b")
    assert not assignment.teaches("fac-c")


@pytest.mark.parametrize(
    "overrides",
    [
        {"day": "Funday"},
        {"facultyIds": []},
        {"facultyIds": ["  "]},
        {"slot": -1},
        {"id": ""},
    ],
)
def test_assignment_rejects_bad_documents(overrides):
    payload = {"id": "a-1", "batchId": "b1", "subjectId": "s", "facultyIds": ["f"], "day": "Monday", "slot": 0}
    payload.update(overrides)
    with pytest.raises(ValidationError):
        ClassAssignment.model_validate(payload)


def test_assignment_accepts_long_opaque_ids():
    long_id = "tt-2026-spring/" + "x" * 120
    assignment = ClassAssignment(
        id=long_id, batch_id=long_id, subject_id=long_id, faculty_ids=["fac-a"], day="Monday", slot=0
    )
    assert assignment.id == long_id
    assert assignment.batch_id == long_id


def test_timetable_coerces_slot_keys_from_json():
    timetable = GeneratedTimetable.model_validate({
        "id": "tt-1",
        "batchIds": ["b1"],
        "status": "Approved",
        "timetable": {
            "b1": {
                "Tuesday": {
                    "2": {"id": "a-1", "batchId": "b1", "subjectId": "s", "facultyIds": ["f"], "day": "Tuesday", "slot": 2},
                },
            },
        },
        "feedback": [{"id": "fb-1", "timetableId": "tt-1", "facultyId": "f", "rating": 4}],
    })

    assert timetable.status == TimetableStatus.approved
    assert timetable.is_approved
    assert timetable.timetable["b1"]["Tuesday"][2].id == "a-1"
    assert timetable.feedback_for("f").rating == 4
    assert timetable.feedback_for("someone-else") is None


def test_timetable_rejects_assignment_stored_under_wrong_cell():
    with pytest.raises(ValidationError, match="stored under"):
        GeneratedTimetable.model_validate({
            "id": "tt-1",
            "batchIds": ["b1"],
            "timetable": {
                "b1": {
                    "Monday": {
                        "1": {"id": "a-1", "batchId": "b1", "subjectId": "s", "facultyIds": ["f"], "day": "Monday", "slot": 3},
                    },
                },
            },
        })


def test_timetable_defaults_to_draft():
    timetable = GeneratedTimetable(id="tt-1")
    assert timetable.status == TimetableStatus.draft
    assert timetable.timetable == {}


def test_substitution_window_is_inclusive():
    substitution = Substitution.model_validate(substitution_payload())

    assert substitution.is_active_on(date(2026, 3, 2))
    assert substitution.is_active_on(date(2026, 3, 4))
    assert not substitution.is_active_on(date(2026, 3, 1))
    assert not substitution.is_active_on(date(2026, 3, 5))


def test_substitution_rejects_inverted_window():
    with pytest.raises(ValidationError, match="endDate"):
        Substitution.model_validate(substitution_payload(startDate="2026-03-04", endDate="2026-03-02"))


def test_single_day_substitution():
    substitution = Substitution.model_validate(substitution_payload(startDate="2026-03-03", endDate="2026-03-03"))
    assert substitution.is_active_on(date(2026, 3, 3))
