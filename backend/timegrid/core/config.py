from functools import lru_cache
import json
from pathlib import Path

from pydantic import BaseModel, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from timegrid.core.exceptions import ConfigurationError
from timegrid.schemas.timetable import DAY_ORDER, DAY_VALUES, TIME_PATTERN, parse_time_to_minutes


BACKEND_ENV_FILE = Path(__file__).resolve().parents[2] / ".env"


class BreakWindow(BaseModel):
    name: str
    start_time: str
    end_time: str

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        if not TIME_PATTERN.match(value):
            raise ValueError("Time must be in HH:MM 24-hour format")
        return value

    @model_validator(mode="after")
    def validate_time_order(self) -> "BreakWindow":
        if parse_time_to_minutes(self.end_time) <= parse_time_to_minutes(self.start_time):
            raise ValueError("Break end time must be after start time")
        return self


class Settings(BaseSettings):
    # Resolve to backend/.env so the engine picks up the same file from any cwd.
    model_config = SettingsConfigDict(
        env_prefix="TIMEGRID_",
        env_file=str(BACKEND_ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    working_days: list[str] = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

    college_start_time: str = "09:00"
    college_end_time: str = "17:00"
    period_minutes: int = 60
    breaks: list[BreakWindow] = [BreakWindow(name="Lunch Break", start_time="13:00", end_time="14:00")]

    check_room_capacity: bool = True

    @field_validator("working_days", mode="before")
    @classmethod
    def split_working_days(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            stripped = value.strip()
            if stripped.startswith("["):
                try:
                    parsed = json.loads(stripped)
                    if isinstance(parsed, list):
                        return [str(item).strip() for item in parsed if str(item).strip()]
                except json.JSONDecodeError:
                    pass
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("working_days")
    @classmethod
    def order_working_days(cls, value: list[str]) -> list[str]:
        invalid = [day for day in value if day not in DAY_VALUES]
        if invalid:
            raise ValueError(f"Invalid working day(s): {', '.join(invalid)}")
        return sorted(set(value), key=DAY_ORDER.index)

    @field_validator("college_start_time", "college_end_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        if not TIME_PATTERN.match(value):
            raise ValueError("Time must be in HH:MM 24-hour format")
        return value

    @field_validator("period_minutes")
    @classmethod
    def validate_period(cls, value: int) -> int:
        if value < 5 or value > 240:
            raise ValueError("period_minutes must be between 5 and 240")
        return value

    def ensure_usable(self) -> None:
        if not self.working_days:
            raise ConfigurationError("At least one working day must be configured")
        start = parse_time_to_minutes(self.college_start_time)
        end = parse_time_to_minutes(self.college_end_time)
        if end - start < self.period_minutes:
            raise ConfigurationError(
                f"College day {self.college_start_time}-{self.college_end_time} "
                f"cannot fit a {self.period_minutes} minute period"
            )


@lru_cache
def get_settings() -> Settings:
    return Settings()
