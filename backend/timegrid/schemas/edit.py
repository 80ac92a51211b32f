from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

from timegrid.schemas.timetable import ClassAssignment, DAY_VALUES


class CellRef(BaseModel):
    day: str
    slot: int = Field(ge=0)

    @field_validator("day")
    @classmethod
    def validate_day(cls, value: str) -> str:
        day = value.strip()
        if day not in DAY_VALUES:
            raise ValueError("Invalid day value")
        return day


class MoveChange(BaseModel):
    type: Literal["move"] = "move"
    assignment: ClassAssignment
    to: CellRef


class SwapChange(BaseModel):
    type: Literal["swap"] = "swap"
    assignment1: ClassAssignment
    assignment2: ClassAssignment


ChangeDescriptor = Annotated[Union[MoveChange, SwapChange], Field(discriminator="type")]


class GestureRejection(str, Enum):
    same_cell = "same_cell"
    stale_source = "stale_source"
    outside_grid = "outside_grid"
    not_editable = "not_editable"
    no_drag = "no_drag"


class EditDecision(BaseModel):
    """Outcome of a drop: a change to commit, or a no-op with the reason."""

    change: Optional[ChangeDescriptor] = None
    rejection: GestureRejection | None = None

    @property
    def is_noop(self) -> bool:
        return self.change is None
