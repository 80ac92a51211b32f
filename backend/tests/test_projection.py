import pytest

from conftest import make_assignment, make_timetable
from timegrid.core.exceptions import DataIntegrityError
from timegrid.services.grid import flatten_timetable, iter_grid
from timegrid.services.projection import project_batch, project_faculty


@pytest.mark.parametrize("batch_id", ["b1", "b2"])
def test_project_batch_is_sound_and_complete(approved_timetable, batch_id):
    grid = project_batch(approved_timetable, batch_id)

    projected = {assignment.id for assignment in iter_grid(grid)}
    expected = {assignment.id for assignment in flatten_timetable(approved_timetable) if assignment.batch_id == batch_id}
    assert projected == expected
    for day, slots in grid.items():
        for slot, assignment in slots.items():
            assert (assignment.batch_id, assignment.day, assignment.slot) == (batch_id, day, slot)


def test_project_unknown_batch_is_empty(approved_timetable):
    assert project_batch(approved_timetable, "b-unknown") == {}


def test_project_batch_does_not_alias_the_canonical_grid(approved_timetable):
    grid = project_batch(approved_timetable, "b1")
    grid["Monday"].pop(0)

    assert approved_timetable.timetable["b1"]["Monday"][0].id == "a-1"


def test_project_faculty_collects_cross_batch_classes(approved_timetable):
    projection = project_faculty([approved_timetable], "fac-a")

    assert [assignment.id for assignment in projection.assignments] == ["a-1", "a-2", "a-5"]
    assert projection.batch_ids == ["b1", "b2"]
    assert projection.grid["Monday"][0].id == "a-1"
    assert projection.grid["Monday"][2].id == "a-2"
    assert projection.grid["Wednesday"][3].id == "a-5"
    assert projection.is_consistent


def test_project_faculty_matches_any_member_of_a_team(approved_timetable):
    projection = project_faculty([approved_timetable], "fac-c")
    assert [assignment.id for assignment in iter_grid(projection.grid)] == ["a-5"]
    assert projection.batch_ids == ["b2"]


def test_project_faculty_skips_unapproved_timetables(approved_timetable):
    draft = make_timetable(
        [make_assignment("d-1", day="Friday", slot=1, faculty_ids=["fac-a"])],
        id="tt-draft",
        status="Draft",
    )
    projection = project_faculty([draft, approved_timetable], "fac-a")
    assert "d-1" not in {assignment.id for assignment in projection.assignments}


def test_project_faculty_for_unknown_faculty(approved_timetable):
    projection = project_faculty([approved_timetable], "fac-z")
    assert projection.grid == {}
    assert projection.batch_ids == []


def test_project_faculty_surfaces_double_booking(approved_timetable):
    # Same faculty, same cell, in a second approved timetable
    other = make_timetable(
        [make_assignment("o-1", batch_id="b3", day="Monday", slot=0, faculty_ids=["fac-a"], room_id="r3")],
        id="tt-2",
        batch_ids=["b3"],
    )
    projection = project_faculty([approved_timetable, other], "fac-a")

    assert not projection.is_consistent
    assert len(projection.integrity_issues) == 1
    issue = projection.integrity_issues[0]
    assert (issue.day, issue.slot, issue.assignment_ids) == ("Monday", 0, ("a-1", "o-1"))
    # Both are kept for the conflict detector; the grid does not silently drop one
    assert {assignment.id for assignment in projection.assignments} >= {"a-1", "o-1"}

    with pytest.raises(DataIntegrityError) as exc_info:
        projection.ensure_consistent()
    assert exc_info.value.details["cells"] == [{"day": "Monday", "slot": 0, "assignment_ids": ["a-1", "o-1"]}]
