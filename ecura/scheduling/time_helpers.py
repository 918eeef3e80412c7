import datetime as dt
import re

from ecura.domain.exceptions import ValidationError

_CLOCK_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*([AaPp]\.?[Mm]\.?)?\s*$")


def parse_clock_time(value: dt.time | str, field_name: str = "time") -> dt.time:
    """Parse ``14:30``, ``9:05``, ``10:00 AM`` or ``2:30pm`` into a ``dt.time``.

    Appointment times are free-form display strings, so both 24-hour and
    12-hour notations are accepted.
    """
    if isinstance(value, dt.time):
        return value.replace(second=0, microsecond=0)
    if not isinstance(value, str):
        raise ValidationError(field_name, "must be a time string such as '14:30' or '2:30 PM'")

    match = _CLOCK_RE.match(value)
    if not match:
        raise ValidationError(field_name, f"unrecognised time {value!r}")

    hour, minute = int(match.group(1)), int(match.group(2))
    period = match.group(3)
    if minute > 59:
        raise ValidationError(field_name, f"unrecognised time {value!r}")

    if period:
        if not 1 <= hour <= 12:
            raise ValidationError(field_name, f"unrecognised time {value!r}")
        is_pm = period[0].lower() == "p"
        hour = hour % 12 + (12 if is_pm else 0)
    elif hour > 23:
        raise ValidationError(field_name, f"unrecognised time {value!r}")

    return dt.time(hour, minute)


def parse_iso_date(value: dt.date | str, field_name: str = "date") -> dt.date:
    """Parse a ``YYYY-MM-DD`` string."""
    if isinstance(value, dt.date):
        return value
    try:
        return dt.date.fromisoformat(value.strip())
    except (AttributeError, ValueError) as exc:
        raise ValidationError(field_name, f"{value!r} is not a YYYY-MM-DD date") from exc


def hhmm_to_time(value: str) -> dt.time:
    """Convert a stored ``HH:MM`` slot boundary to a ``dt.time``."""
    hour, minute = value.split(":")
    return dt.time(int(hour), int(minute))


def time_to_hhmm(time: dt.time) -> str:
    return time.strftime("%H:%M")


def time_to_12h(time: dt.time) -> str:
    """Convert ``time(14, 30)`` → ``02:30 PM``, the display format of booked appointments."""
    hour = time.hour % 12 or 12
    period = "AM" if time.hour < 12 else "PM"
    return f"{hour:02d}:{time.strftime('%M')} {period}"
