"""Day, week and rolling-window boundaries plus interval overlap.

All functions take ``now`` explicitly. The tzinfo carried by ``now`` is
treated as the local zone; boundaries are computed in that zone.
"""

from datetime import date, datetime, time, timedelta, timezone

_END_OF_DAY = time(23, 59, 59, 999999)


def local_now() -> datetime:
    """Current instant in the host's local time zone."""
    return datetime.now().astimezone()


def start_of_today(now: datetime) -> datetime:
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def end_of_today(now: datetime) -> datetime:
    return now.replace(
        hour=_END_OF_DAY.hour,
        minute=_END_OF_DAY.minute,
        second=_END_OF_DAY.second,
        microsecond=_END_OF_DAY.microsecond,
    )


def end_of_next_days(now: datetime, days: int) -> datetime:
    """End of the calendar day ``days`` days after today."""
    return end_of_today(start_of_today(now) + timedelta(days=days))


def end_of_next_7_days(now: datetime) -> datetime:
    return end_of_next_days(now, 7)


def end_of_next_30_days(now: datetime) -> datetime:
    return end_of_next_days(now, 30)


def start_of_week(now: datetime) -> datetime:
    """Sunday 00:00 of the week containing ``now``."""
    # Python weekday(): Monday=0 .. Sunday=6
    days_since_sunday = (now.weekday() + 1) % 7
    return start_of_today(now) - timedelta(days=days_since_sunday)


def end_of_week(now: datetime) -> datetime:
    """Saturday 23:59:59.999999 of the week containing ``now``."""
    return end_of_today(start_of_week(now) + timedelta(days=6))


def in_window(instant: datetime, start: datetime, end: datetime) -> bool:
    """Closed-interval membership, used by the date filters."""
    return start <= instant <= end


def overlaps(start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime) -> bool:
    """Half-open interval intersection; touching intervals do not overlap."""
    return start_a < end_b and start_b < end_a


def parse_instant(value: str | datetime) -> datetime:
    """Resolve an ISO-8601 string (or datetime) to an aware datetime.

    Offsets are taken as given. Naive values are read as local time, which
    is whatever the host reports; no further normalisation is attempted.
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.astimezone()
    return parsed


def combine_date_time(day: str | date, hhmm: str, utc_offset: str) -> datetime:
    """Build an instant from a stored date, an ``HH:MM`` time and a fixed offset."""
    day_text = day.isoformat() if isinstance(day, date) else day
    clock = hhmm if hhmm.count(":") == 2 else f"{hhmm}:00"
    return parse_instant(f"{day_text}T{clock}{utc_offset}")


def fixed_offset(utc_offset: str) -> timezone:
    """``"+08:00"`` -> a fixed-offset tzinfo."""
    sign = -1 if utc_offset.startswith("-") else 1
    hours, minutes = utc_offset.lstrip("+-").split(":")
    return timezone(sign * timedelta(hours=int(hours), minutes=int(minutes)))


def today_at_offset(utc_offset: str, now: datetime | None = None) -> date:
    """Calendar date at a fixed offset, as stored in the activities table."""
    now = local_now() if now is None else now
    return now.astimezone(fixed_offset(utc_offset)).date()
