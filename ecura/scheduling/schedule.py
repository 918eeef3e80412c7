"""Weekly schedule queries.

A schedule is a plain structural container: nothing here sorts, merges or
de-duplicates slots.  Disabled days are inert even when they still carry
slots, so they survive a disable/re-enable cycle.
"""

import datetime as dt

from ecura.domain.exceptions import ValidationError
from ecura.domain.models import DaySchedule, TimeRange, Weekday, WeeklySchedule

_DAY_NAMES: dict[str, Weekday] = {d.value.lower(): d for d in Weekday}


def parse_weekday(day: Weekday | str) -> Weekday:
    """Resolve a full weekday name (case-insensitive) or raise ``ValidationError``."""
    if isinstance(day, Weekday):
        return day
    if isinstance(day, str):
        weekday = _DAY_NAMES.get(day.strip().lower())
        if weekday is not None:
            return weekday
    raise ValidationError("day", f"{day!r} is not a recognised weekday name")


def weekday_for(date: dt.date) -> Weekday:
    return Weekday.from_date(date)


def day_schedule(schedule: WeeklySchedule, day: Weekday | str) -> DaySchedule | None:
    weekday = parse_weekday(day)
    return next((d for d in schedule.days if d.day == weekday), None)


def is_day_enabled(schedule: WeeklySchedule, day: Weekday | str) -> bool:
    entry = day_schedule(schedule, day)
    return entry is not None and entry.enabled


def slots_for(schedule: WeeklySchedule, day: Weekday | str) -> list[TimeRange]:
    """Slots of ``day`` in stored order; empty when the day is disabled."""
    entry = day_schedule(schedule, day)
    if entry is None or not entry.enabled:
        return []
    return list(entry.slots)


def available_days(schedule: WeeklySchedule) -> list[Weekday]:
    """Enabled days that carry at least one slot."""
    return [d.day for d in schedule.days if d.enabled and d.slots]


def replace_day(schedule: WeeklySchedule, entry: DaySchedule) -> WeeklySchedule:
    return WeeklySchedule(days=tuple(entry if d.day == entry.day else d for d in schedule.days))


def _day(day: Weekday, *ranges: tuple[str, str]) -> DaySchedule:
    return DaySchedule(
        day=day,
        enabled=bool(ranges),
        slots=tuple(TimeRange(start=start, end=end) for start, end in ranges),
    )


def default_weekly_schedule() -> WeeklySchedule:
    """Schedule given to newly created doctors.

    Monday, Tuesday, Wednesday and Friday are working days; Thursday and the
    weekend are off.
    """
    return WeeklySchedule(
        days=(
            _day(Weekday.MONDAY, ("09:00", "12:00"), ("14:00", "17:00")),
            _day(Weekday.TUESDAY, ("10:00", "15:00")),
            _day(Weekday.WEDNESDAY, ("09:00", "13:00")),
            _day(Weekday.THURSDAY),
            _day(Weekday.FRIDAY, ("09:00", "12:00")),
            _day(Weekday.SATURDAY),
            _day(Weekday.SUNDAY),
        )
    )
