"""Slot/shift editing for a doctor's weekly schedule.

Every operation returns a new ``WeeklySchedule``; the input is never
modified.  Overlapping slots are accepted on write and surfaced through
``find_overlaps`` as a data-quality concern.
"""

from collections.abc import Mapping

from pydantic import ValidationError as PydanticValidationError

from ecura.domain.exceptions import ValidationError
from ecura.domain.models import DaySchedule, TimeRange, Weekday, WeeklySchedule
from ecura.scheduling.schedule import day_schedule, parse_weekday, replace_day


def _coerce_range(slot: TimeRange | Mapping[str, str] | tuple[str, str]) -> TimeRange:
    if isinstance(slot, TimeRange):
        return slot
    try:
        if isinstance(slot, Mapping):
            return TimeRange.model_validate(slot)
        start, end = slot
        return TimeRange(start=start, end=end)
    except (TypeError, ValueError, PydanticValidationError) as exc:
        raise ValidationError("slot", f"{slot!r} is not a pair of HH:MM times") from exc


def _entry(schedule: WeeklySchedule, weekday: Weekday) -> DaySchedule:
    entry = day_schedule(schedule, weekday)
    return entry if entry is not None else DaySchedule(day=weekday)


def add_slot(
    schedule: WeeklySchedule,
    day: Weekday | str,
    slot: TimeRange | Mapping[str, str] | tuple[str, str],
) -> WeeklySchedule:
    weekday = parse_weekday(day)
    new_slot = _coerce_range(slot)
    if not new_slot.is_valid:
        raise ValidationError("slot", f"start {new_slot.start} must be before end {new_slot.end}")

    entry = _entry(schedule, weekday)
    return replace_day(schedule, entry.model_copy(update={"slots": (*entry.slots, new_slot)}))


def remove_slot(schedule: WeeklySchedule, day: Weekday | str, index: int) -> WeeklySchedule:
    """Remove the slot at ``index``.

    Raises:
        IndexError: For any index outside ``0 <= index < len(slots)``.
    """
    weekday = parse_weekday(day)
    entry = _entry(schedule, weekday)
    if not 0 <= index < len(entry.slots):
        raise IndexError(f"{weekday.value} has no slot at index {index}")

    slots = entry.slots[:index] + entry.slots[index + 1 :]
    return replace_day(schedule, entry.model_copy(update={"slots": slots}))


def toggle_day(schedule: WeeklySchedule, day: Weekday | str) -> WeeklySchedule:
    entry = _entry(schedule, parse_weekday(day))
    return replace_day(schedule, entry.model_copy(update={"enabled": not entry.enabled}))


def find_overlaps(entry: DaySchedule) -> list[tuple[TimeRange, TimeRange]]:
    """Pairs of slots on the same day that overlap or duplicate each other.

    Touching slots (one ends exactly when the next starts) do not count.
    """
    ordered = sorted(entry.slots, key=lambda s: (s.start, s.end))
    overlaps: list[tuple[TimeRange, TimeRange]] = []
    for i, first in enumerate(ordered):
        for second in ordered[i + 1 :]:
            if second.start >= first.end:
                break
            overlaps.append((first, second))
    return overlaps
