"""
Event normalizer for converting raw date strings into a NormalizedSchedule.
Handles the "HH:DD:MM:YYYY" start and "DD:MM" end formats requested from the
model, falling back to timestamp defaults instead of failing.
"""

from datetime import datetime, timedelta
from typing import Optional

from dateutil.relativedelta import relativedelta

from ticketcal.event_models import ExtractedFields, NormalizedSchedule
from ticketcal.logging_helper import Log

START_FORMAT = "%H:%d:%m:%Y"
DAY_FORMAT = "%d:%m"
DEFAULT_DURATION = timedelta(hours=2)


def _parse_day(value: str, year: int) -> datetime:
    # Parsing with an explicit year keeps 29:02 valid in leap years
    return datetime.strptime(f"{value}:{year}", f"{DAY_FORMAT}:%Y")


def _parse_start(start_raw: Optional[str]) -> Optional[datetime]:
    if not start_raw:
        return None
    try:
        return datetime.strptime(start_raw.strip(), START_FORMAT)
    except ValueError:
        return None


def _parse_end(end_raw: Optional[str], start: datetime) -> Optional[datetime]:
    if not end_raw:
        return None
    value = end_raw.strip()
    try:
        day = _parse_day(value, start.year)
    except ValueError:
        return None

    end = day.replace(hour=23, minute=59, second=59)
    # No year in the input: a day before the start belongs to the next year
    if end.date() < start.date():
        try:
            end = _parse_day(value, start.year + 1).replace(hour=23, minute=59, second=59)
        except ValueError:
            end = end + relativedelta(years=1)
    return end


def normalize_schedule(
    start_raw: Optional[str],
    end_raw: Optional[str],
    now: Optional[datetime] = None,
) -> NormalizedSchedule:
    """
    Turn raw start/end strings into a naive local schedule.

    Args:
        start_raw: "HH:DD:MM:YYYY" (hour:day:month:year)
        end_raw: "DD:MM", the last day the ticket is valid
        now: Evaluation time used for fallbacks (defaults to datetime.now())

    Returns:
        NormalizedSchedule whose end is always after its start
    """
    if now is None:
        now = datetime.now()
    now = now.replace(microsecond=0)

    start = _parse_start(start_raw)
    if start is None:
        Log.warn(f"Could not parse start '{start_raw}', using current time")
        Log.kv({"stage": "normalize", "field": "start", "result": "fallback", "raw": start_raw})
        start = now

    end = _parse_end(end_raw, start)
    if end is None:
        if end_raw:
            Log.warn(f"Could not parse end '{end_raw}', using default duration")
            Log.kv({"stage": "normalize", "field": "end", "result": "fallback", "raw": end_raw})
        end = start + DEFAULT_DURATION
    elif end <= start:
        Log.warn(f"End '{end_raw}' is not after start {start.isoformat()}, using default duration")
        end = start + DEFAULT_DURATION

    schedule = NormalizedSchedule(start=start, end=end)
    Log.kv({
        "stage": "normalize",
        "result": "success",
        "start": schedule.start.isoformat(),
        "end": schedule.end.isoformat(),
        "duration_min": schedule.duration_minutes()
    })
    return schedule


def normalize_fields(fields: ExtractedFields, now: Optional[datetime] = None) -> NormalizedSchedule:
    """Normalize the schedule carried by extracted fields."""
    return normalize_schedule(fields.start_raw, fields.end_raw, now=now)
