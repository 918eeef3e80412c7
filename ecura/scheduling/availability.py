"""Availability resolution: the single answer to "can this doctor be booked then?".

Everything here is a pure function of the schedule and the requested moment.
Ranges with ``start >= end`` are never offered, and exact duplicates are
offered once.
"""

import datetime as dt
from collections.abc import Iterator

from ecura.domain.models import TimeRange, WeeklySchedule
from ecura.scheduling.schedule import slots_for, weekday_for
from ecura.scheduling.time_helpers import hhmm_to_time, parse_clock_time, parse_iso_date

DEFAULT_HORIZON_DAYS = 30


def open_slots_for_day(schedule: WeeklySchedule, date: dt.date | str) -> list[TimeRange]:
    """Valid slots for ``date``'s weekday, sorted by start, duplicates removed."""
    day = parse_iso_date(date)
    unique = {(s.start, s.end): s for s in slots_for(schedule, weekday_for(day)) if s.is_valid}
    return [unique[key] for key in sorted(unique)]


def is_bookable(schedule: WeeklySchedule, date: dt.date | str, time: dt.time | str) -> bool:
    """True iff ``time`` falls inside one of the day's slots, both ends inclusive."""
    requested = parse_clock_time(time)
    return any(
        hhmm_to_time(slot.start) <= requested <= hhmm_to_time(slot.end)
        for slot in open_slots_for_day(schedule, date)
    )


def iter_open_slots(
    schedule: WeeklySchedule,
    from_date: dt.date | str,
    from_time: dt.time | str | None = None,
    horizon_days: int = DEFAULT_HORIZON_DAYS,
) -> Iterator[tuple[dt.date, TimeRange]]:
    """Lazily yield ``(date, slot)`` candidates at or after the requested moment.

    The scan covers ``horizon_days`` calendar days starting at ``from_date``
    and then stops, so a schedule with no enabled day terminates.  On the
    first day, a slot qualifies while the requested time is not past its end.
    """
    start_day = parse_iso_date(from_date, "from_date")
    earliest = parse_clock_time(from_time, "from_time") if from_time is not None else None

    for offset in range(horizon_days):
        day = start_day + dt.timedelta(days=offset)
        for slot in open_slots_for_day(schedule, day):
            if offset == 0 and earliest is not None and hhmm_to_time(slot.end) < earliest:
                continue
            yield day, slot


def next_available_slot(
    schedule: WeeklySchedule,
    from_date: dt.date | str,
    from_time: dt.time | str | None = None,
    horizon_days: int = DEFAULT_HORIZON_DAYS,
) -> tuple[dt.date, TimeRange] | None:
    """First open slot at or after the requested moment, or None past the horizon."""
    return next(iter_open_slots(schedule, from_date, from_time, horizon_days), None)
