"""
Builds the CalendarEvent for one ticket from its fields and schedule.
"""

from datetime import datetime
from typing import Callable, Optional

from dateutil import tz as dateutil_tz

from ticketcal.event_models import CalendarEvent, ExtractedFields, NormalizedSchedule

EVENT_ID_PREFIX = "event_"


def event_id_for(moment: datetime) -> str:
    """
    Id from whole seconds since the epoch.
    Two tickets synthesized within the same second get the same id.
    """
    return f"{EVENT_ID_PREFIX}{int(moment.timestamp())}"


def synthesize_event(
    fields: ExtractedFields,
    schedule: NormalizedSchedule,
    now: Optional[datetime] = None,
    id_source: Optional[Callable[[datetime], str]] = None,
) -> CalendarEvent:
    """
    Combine extracted fields and a normalized schedule into a CalendarEvent.
    No validation is done here: empty summary and location are kept as-is.
    """
    if now is None:
        now = datetime.now(dateutil_tz.tzutc())
    elif now.tzinfo is None:
        now = now.replace(tzinfo=dateutil_tz.tzlocal())

    make_id = id_source or event_id_for
    return CalendarEvent(
        id=make_id(now),
        created_at=now.astimezone(dateutil_tz.tzutc()).replace(microsecond=0),
        summary=fields.summary,
        location=fields.place,
        start=schedule.start,
        end=schedule.end,
    )
