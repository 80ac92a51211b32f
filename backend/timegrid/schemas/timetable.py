from __future__ import annotations

import re
from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator

DAY_ORDER = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
DAY_VALUES = set(DAY_ORDER)

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def parse_time_to_minutes(value: str) -> int:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def day_index(day: str) -> int:
    return DAY_ORDER.index(day)


def _validate_day(value: str) -> str:
    day = value.strip()
    if day not in DAY_VALUES:
        raise ValueError("Invalid day value")
    return day


class TimetableStatus(str, Enum):
    draft = "Draft"
    submitted = "Submitted"
    approved = "Approved"
    rejected = "Rejected"
    archived = "Archived"


class ClassAssignment(BaseModel):
    """One scheduled class occurrence."""

    id: str = Field(min_length=1)
    batch_id: str = Field(alias="batchId", min_length=1)
    subject_id: str = Field(alias="subjectId", min_length=1)
    faculty_ids: list[str] = Field(alias="facultyIds", min_length=1)
    room_id: str | None = Field(default=None, alias="roomId")
    day: str
    slot: int = Field(ge=0)

    model_config = {
        "populate_by_name": True,
        "from_attributes": True,
    }

    @field_validator("day")
    @classmethod
    def validate_day(cls, value: str) -> str:
        return _validate_day(value)

    @field_validator("faculty_ids")
    @classmethod
    def dedupe_faculty(cls, value: list[str]) -> list[str]:
        cleaned = [item.strip() for item in value if item and item.strip()]
        if not cleaned:
            raise ValueError("An assignment needs at least one faculty member")
        return list(dict.fromkeys(cleaned))

    @property
    def cell(self) -> tuple[str, int]:
        return self.day, self.slot

    def teaches(self, faculty_id: str) -> bool:
        return faculty_id in self.faculty_ids


class TimetableFeedback(BaseModel):
    id: str
    timetable_id: str = Field(alias="timetableId")
    faculty_id: str = Field(alias="facultyId")
    rating: int = Field(ge=1, le=5)
    comment: str | None = None
    created_at: datetime | None = Field(default=None, alias="createdAt")

    model_config = {"populate_by_name": True}


# batch_id -> day -> slot -> assignment, exactly as the document store keeps it
TimetableGrid = dict[str, dict[str, dict[int, ClassAssignment]]]


class GeneratedTimetable(BaseModel):
    id: str = Field(min_length=1)
    batch_ids: list[str] = Field(default_factory=list, alias="batchIds")
    version: int = Field(default=1, ge=1)
    status: TimetableStatus = TimetableStatus.draft
    timetable: TimetableGrid = Field(default_factory=dict)
    feedback: list[TimetableFeedback] = Field(default_factory=list)

    model_config = {
        "populate_by_name": True,
        "from_attributes": True,
    }

    @model_validator(mode="after")
    def validate_cell_keys(self) -> "GeneratedTimetable":
        for batch_id, days in self.timetable.items():
            for day, slots in days.items():
                if day not in DAY_VALUES:
                    raise ValueError(f"Timetable {self.id} uses unknown day {day!r}")
                for slot, assignment in slots.items():
                    if (assignment.batch_id, assignment.day, assignment.slot) != (batch_id, day, slot):
                        raise ValueError(
                            f"Assignment {assignment.id} is stored under {batch_id}/{day}/{slot} "
                            f"but declares {assignment.batch_id}/{assignment.day}/{assignment.slot}"
                        )
        return self

    @property
    def is_approved(self) -> bool:
        return self.status == TimetableStatus.approved

    def feedback_for(self, faculty_id: str) -> TimetableFeedback | None:
        return next((item for item in self.feedback if item.faculty_id == faculty_id), None)


class Substitution(BaseModel):
    """A time-bounded reassignment of one class occurrence to another faculty member."""

    id: str = Field(min_length=1)
    original_assignment_id: str = Field(alias="originalAssignmentId", min_length=1)
    original_faculty_id: str = Field(alias="originalFacultyId", min_length=1)
    substitute_faculty_id: str = Field(alias="substituteFacultyId", min_length=1)
    substitute_subject_id: str = Field(alias="substituteSubjectId", min_length=1)
    batch_id: str = Field(alias="batchId", min_length=1)
    day: str
    slot: int = Field(ge=0)
    start_date: date = Field(alias="startDate")
    end_date: date = Field(alias="endDate")
    room_id: str | None = Field(default=None, alias="roomId")
    created_at: datetime | None = Field(default=None, alias="createdAt")

    model_config = {
        "populate_by_name": True,
        "from_attributes": True,
    }

    @field_validator("day")
    @classmethod
    def validate_day(cls, value: str) -> str:
        return _validate_day(value)

    @model_validator(mode="after")
    def validate_window(self) -> "Substitution":
        if self.end_date < self.start_date:
            raise ValueError("endDate must not be before startDate")
        return self

    def is_active_on(self, evaluation_date: date) -> bool:
        return self.start_date <= evaluation_date <= self.end_date


class Room(BaseModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1, max_length=100)
    capacity: int = Field(ge=1, le=5000)
    type: str = "Lecture Hall"


class Batch(BaseModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1, max_length=200)
    student_count: int = Field(default=0, alias="studentCount", ge=0)
    subject_ids: list[str] = Field(default_factory=list, alias="subjectIds")
    allocated_faculty_ids: list[str] = Field(default_factory=list, alias="allocatedFacultyIds")

    model_config = {"populate_by_name": True}


class Faculty(BaseModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1, max_length=200)
    subject_ids: list[str] = Field(default_factory=list, alias="subjectIds")

    model_config = {"populate_by_name": True}


class Subject(BaseModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1, max_length=200)
    code: str = Field(default="", max_length=50)


class FacultyAvailability(BaseModel):
    faculty_id: str = Field(alias="facultyId")
    availability: dict[str, list[int]] = Field(default_factory=dict)

    model_config = {"populate_by_name": True}

    @field_validator("availability")
    @classmethod
    def validate_days(cls, value: dict[str, list[int]]) -> dict[str, list[int]]:
        invalid = [day for day in value if day not in DAY_VALUES]
        if invalid:
            raise ValueError(f"Invalid availability day(s): {', '.join(invalid)}")
        return value

    def allows(self, day: str, slot: int) -> bool:
        return slot in self.availability.get(day, [])
