from __future__ import annotations

from dataclasses import dataclass

from timegrid.core.config import Settings, get_settings
from timegrid.schemas.timetable import parse_time_to_minutes

# Guards against a break list that never lets the cursor advance.
MAX_SLOT_ITERATIONS = 50


@dataclass(frozen=True)
class TimeSlot:
    index: int
    start_time: str
    end_time: str
    label: str


def minutes_to_time(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def minutes_to_readable_time(minutes: int) -> str:
    hours, mins = divmod(minutes, 60)
    suffix = "PM" if hours >= 12 else "AM"
    hours = hours % 12 or 12
    return f"{hours}:{mins:02d} {suffix}"


def generate_time_slots(settings: Settings | None = None) -> list[TimeSlot]:
    """Lay out the teaching periods of one day.

    A period that starts inside a break, or would run into one, is dropped and
    the cursor jumps to the end of that break.
    """
    settings = settings or get_settings()
    settings.ensure_usable()
    start = parse_time_to_minutes(settings.college_start_time)
    end = parse_time_to_minutes(settings.college_end_time)
    duration = settings.period_minutes

    breaks = sorted(
        (
            (parse_time_to_minutes(item.start_time), parse_time_to_minutes(item.end_time))
            for item in settings.breaks
        ),
        key=lambda window: window[0],
    )

    slots: list[TimeSlot] = []
    current = start
    iterations = 0
    while current + duration <= end and iterations < MAX_SLOT_ITERATIONS:
        iterations += 1

        inside = next((b_end for b_start, b_end in breaks if b_start <= current < b_end), None)
        if inside is not None:
            current = inside
            continue

        proposed_end = current + duration
        overlapping = next((b_end for b_start, b_end in breaks if current < b_end and proposed_end > b_start), None)
        if overlapping is not None:
            current = overlapping
            continue

        slots.append(
            TimeSlot(
                index=len(slots),
                start_time=minutes_to_time(current),
                end_time=minutes_to_time(proposed_end),
                label=f"{minutes_to_readable_time(current)} - {minutes_to_readable_time(proposed_end)}",
            )
        )
        current = proposed_end

    return slots


def slot_count(settings: Settings | None = None) -> int:
    return len(generate_time_slots(settings))
