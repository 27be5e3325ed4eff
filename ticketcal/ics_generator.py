"""
ICS Generator for creating iCalendar (.ics) files.
Generates RFC5545-compliant ICS text for one CalendarEvent, names the file
after the event summary and writes it to the output directory.
"""

import re
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Union

from dateutil import tz as dateutil_tz

from ticketcal.errors import WriteError
from ticketcal.event_models import CalendarEvent
from ticketcal.logging_helper import Log

ICS_EXTENSION = ".ics"
PRODID = "-//TicketCal//TicketCal//EN"
MAX_LINE_OCTETS = 75

UTC_FORMAT = '%Y%m%dT%H%M%SZ'
LOCAL_FORMAT = '%Y%m%dT%H%M%S'


def _escape_ical_text(text: str) -> str:
    """
    Escape text for iCalendar format (RFC5545).
    Escapes commas, semicolons, backslashes, and newlines.

    Args:
        text: Text to escape

    Returns:
        Escaped text safe for iCalendar
    """
    if text is None:
        return ""

    # Replace backslashes first (before other replacements)
    text = text.replace('\\', '\\\\')
    text = text.replace(';', '\\;')
    text = text.replace(',', '\\,')
    text = text.replace('\r\n', '\n').replace('\r', '')
    text = text.replace('\n', '\\n')
    return text


def _unescape_ical_text(text: str) -> str:
    return re.sub(
        r'\\([\\;,nN])',
        lambda m: '\n' if m.group(1) in 'nN' else m.group(1),
        text,
    )


def _fold_line(line: str) -> str:
    """
    Fold a content line at 75 octets; continuation lines start with a space.
    Never splits a multi-byte character.
    """
    if len(line.encode('utf-8')) <= MAX_LINE_OCTETS:
        return line

    lines = []
    current_line = ""
    for char in line:
        test_line = current_line + char
        if len(test_line.encode('utf-8')) <= MAX_LINE_OCTETS:
            current_line = test_line
        else:
            lines.append(current_line)
            current_line = " " + char
    if current_line:
        lines.append(current_line)
    return '\r\n'.join(lines)


def _format_utc_datetime(dt: datetime) -> str:
    """Format datetime as UTC basic form (YYYYMMDDTHHMMSSZ)."""
    if dt.tzinfo is not None:
        dt = dt.astimezone(dateutil_tz.tzutc())
    return dt.strftime(UTC_FORMAT)


def _format_local_datetime(dt: datetime) -> str:
    """Format naive local datetime as floating basic form (YYYYMMDDTHHMMSS)."""
    return dt.strftime(LOCAL_FORMAT)


def render_ics(event: CalendarEvent) -> str:
    """
    Build the ICS text for a single event.

    Args:
        event: CalendarEvent to serialize

    Returns:
        Calendar text with CRLF line endings
    """
    ics_lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{PRODID}",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
        "BEGIN:VEVENT",
        f"UID:{_escape_ical_text(event.id)}",
        f"DTSTAMP:{_format_utc_datetime(event.created_at)}",
        f"SUMMARY:{_escape_ical_text(event.summary)}",
        f"LOCATION:{_escape_ical_text(event.location)}",
        f"DTSTART:{_format_local_datetime(event.start)}",
        f"DTEND:{_format_local_datetime(event.end)}",
        "END:VEVENT",
        "END:VCALENDAR",
    ]
    return '\r\n'.join(_fold_line(line) for line in ics_lines) + '\r\n'


def ics_filename(summary: str) -> str:
    """
    File name for an event: whitespace runs become underscores.
    An empty summary yields just ".ics".
    """
    name = re.sub(r'\s+', '_', (summary or "").strip())
    # Keep the file inside the output directory
    name = re.sub(r'[/\\]', '_', name)
    return f"{name}{ICS_EXTENSION}"


def write_ics(event: CalendarEvent, output_dir: Union[str, Path] = ".") -> Path:
    """
    Write the event's ICS file into output_dir, replacing any file with the same name.

    Args:
        event: CalendarEvent to write
        output_dir: Target directory (defaults to the working directory)

    Returns:
        Path of the written file

    Raises:
        WriteError: if the file cannot be written
    """
    Log.section("ICS Generator")
    Log.info(f"Generating ICS file for: {event.summary!r}")

    ics_path = Path(output_dir) / ics_filename(event.summary)
    if not event.summary:
        Log.warn(f"Event has no summary, writing to {ics_path}")

    try:
        ics_content = render_ics(event)
        # newline='' keeps the CRLF endings on every platform
        with open(ics_path, 'w', encoding='utf-8', newline='') as handle:
            handle.write(ics_content)
    except OSError as e:
        Log.error(f"ICS write failed: {e}")
        Log.kv({"stage": "ics", "result": "failed", "ics_path": str(ics_path), "error": str(e)})
        raise WriteError(f"Could not write {ics_path}: {e}", path=ics_path) from e

    Log.info(f"ICS file generated: {ics_path}")
    Log.kv({
        "stage": "ics",
        "result": "success",
        "ics_path": str(ics_path),
        "event_id": event.id,
        "event_title": event.summary
    })
    return ics_path


def _unfold(text: str) -> List[str]:
    lines: List[str] = []
    for line in text.replace('\r\n', '\n').split('\n'):
        if line.startswith((' ', '\t')) and lines:
            lines[-1] += line[1:]
        elif line:
            lines.append(line)
    return lines


def _parse_datetime(value: str) -> datetime:
    if value.endswith('Z'):
        return datetime.strptime(value, UTC_FORMAT).replace(tzinfo=dateutil_tz.tzutc())
    return datetime.strptime(value, LOCAL_FORMAT)


def parse_ics(text: str) -> CalendarEvent:
    """
    Read the first VEVENT of an ICS document back into a CalendarEvent.

    Raises:
        ValueError: if the text holds no VEVENT or a required property is missing
    """
    props: Dict[str, str] = {}
    in_event = False
    for line in _unfold(text):
        if line == "BEGIN:VEVENT":
            in_event = True
            continue
        if line == "END:VEVENT":
            break
        if not in_event or ':' not in line:
            continue
        name, value = line.split(':', 1)
        # Drop parameters such as DTSTART;TZID=...
        props[name.split(';', 1)[0].upper()] = value

    if not in_event:
        raise ValueError("No VEVENT found in calendar text")

    try:
        return CalendarEvent(
            id=_unescape_ical_text(props["UID"]),
            created_at=_parse_datetime(props["DTSTAMP"]),
            summary=_unescape_ical_text(props.get("SUMMARY", "")),
            location=_unescape_ical_text(props.get("LOCATION", "")),
            start=_parse_datetime(props["DTSTART"]),
            end=_parse_datetime(props["DTEND"]),
        )
    except KeyError as e:
        raise ValueError(f"VEVENT is missing {e.args[0]}") from e
