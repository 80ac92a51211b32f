from enum import Enum
from typing import List, Dict

from pydantic import BaseModel, Field


class ConflictType(str, Enum):
    room = "ROOM"
    faculty = "FACULTY"
    capacity = "CAPACITY"


class ConflictEntry(BaseModel):
    type: ConflictType
    message: str
    assignment_ids: List[str] = Field(alias="assignmentIds")  # every assignment involved

    model_config = {"populate_by_name": True}


ConflictMap = Dict[str, List[ConflictEntry]]


class ConflictReport(BaseModel):
    conflicts: List[ConflictEntry] = Field(default_factory=list)
    by_assignment: ConflictMap = Field(default_factory=dict)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)

    def conflicts_for(self, assignment_id: str) -> List[ConflictEntry]:
        return self.by_assignment.get(assignment_id, [])
