import pytest

from timegrid.core.config import Settings, get_settings
from timegrid.schemas.timetable import Batch, ClassAssignment, Faculty, GeneratedTimetable, Room


def make_assignment(
    id,
    batch_id="b1",
    day="Monday",
    slot=0,
    subject_id="sub-1",
    faculty_ids=("fac-a",),
    room_id="r1",
):
    return ClassAssignment(
        id=id,
        batch_id=batch_id,
        subject_id=subject_id,
        faculty_ids=list(faculty_ids),
        room_id=room_id,
        day=day,
        slot=slot,
    )


def nest(assignments):
    """batch -> day -> slot -> assignment, the shape the document store keeps."""
    grid = {}
    for assignment in assignments:
        grid.setdefault(assignment.batch_id, {}).setdefault(assignment.day, {})[assignment.slot] = assignment
    return grid


def make_timetable(assignments, id="tt-1", batch_ids=("b1", "b2"), status="Approved"):
    return GeneratedTimetable(
        id=id,
        batch_ids=list(batch_ids),
        status=status,
        timetable=nest(assignments),
    )


@pytest.fixture(autouse=True)
def fresh_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings():
    # Monday-Saturday, 09:00-17:00 in 60 minute periods with a 13:00 lunch: slots 0..6
    return Settings(
        working_days=["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"],
        college_start_time="09:00",
        college_end_time="17:00",
        period_minutes=60,
        breaks=[{"name": "Lunch Break", "start_time": "13:00", "end_time": "14:00"}],
        check_room_capacity=True,
    )


@pytest.fixture
def sample_assignments():
    return [
        make_assignment("a-1", batch_id="b1", day="Monday", slot=0, subject_id="sub-1", faculty_ids=["fac-a"], room_id="r1"),
        make_assignment("a-2", batch_id="b1", day="Monday", slot=2, subject_id="sub-2", faculty_ids=["fac-a"], room_id="r1"),
        make_assignment("a-3", batch_id="b1", day="Tuesday", slot=1, subject_id="sub-3", faculty_ids=["fac-b"], room_id="r1"),
        make_assignment("a-4", batch_id="b2", day="Monday", slot=0, subject_id="sub-4", faculty_ids=["fac-b"], room_id="r2"),
        make_assignment("a-5", batch_id="b2", day="Wednesday", slot=3, subject_id="sub-1", faculty_ids=["fac-a", "fac-c"], room_id="r1"),
    ]


@pytest.fixture
def approved_timetable(sample_assignments):
    return make_timetable(sample_assignments)


@pytest.fixture
def draft_timetable(sample_assignments):
    return make_timetable(sample_assignments, id="tt-draft", status="Draft")


@pytest.fixture
def catalogs():
    return {
        "rooms": [
            Room(id="r1", name="Room 1", capacity=60),
            Room(id="r2", name="Room 2", capacity=40),
        ],
        "batches": [
            Batch(id="b1", name="CSE-A", student_count=50, allocated_faculty_ids=["fac-a", "fac-b"]),
            Batch(id="b2", name="CSE-B", student_count=30),
        ],
        "faculty": [
            Faculty(id="fac-a", name="Prof A", subject_ids=["sub-1", "sub-2"]),
            Faculty(id="fac-b", name="Prof B", subject_ids=["sub-3", "sub-4"]),
            Faculty(id="fac-c", name="Prof C", subject_ids=["sub-1"]),
        ],
    }
