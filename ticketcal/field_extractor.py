"""
Field extractor for the model's free-text ticket description.
Scans each line for one of the labels requested in TICKET_PROMPT and
collects the values into ExtractedFields. Pure functions only, no I/O.
"""

from typing import Optional

from ticketcal.event_models import ExtractedFields

EVENT_NAME_LABEL = "Event name:"
LOCATION_LABEL = "Location of the event:"
DATE_TIME_LABEL = "Date and time:"
VALIDITY_LABEL = "Days during which the ticket is valid:"

RANGE_SEPARATOR = " to "

# Checked in this order for every line
_FIELD_LABELS = (
    (EVENT_NAME_LABEL, "event_name"),
    (LOCATION_LABEL, "location"),
    (DATE_TIME_LABEL, "start_raw"),
)


def _split_validity(value: str):
    """Split '<start> to <end>' into its halves; no separator means start only."""
    if RANGE_SEPARATOR not in value:
        return value.strip(), None
    start, end = value.split(RANGE_SEPARATOR, 1)
    return start.strip(), end.strip()


def extract_fields(response: Optional[str]) -> ExtractedFields:
    """
    Extract labeled fields from a model response.

    Later lines overwrite earlier ones, so a duplicated label keeps its last
    value and a validity line after "Date and time:" replaces the start.

    Args:
        response: Raw multi-line text returned by the model

    Returns:
        ExtractedFields with every unmatched field left as None
    """
    fields = ExtractedFields()
    if not response:
        return fields

    for raw_line in response.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        for label, attr in _FIELD_LABELS:
            if line.startswith(label):
                setattr(fields, attr, line[len(label):].strip())
                break
        else:
            if line.startswith(VALIDITY_LABEL):
                start, end = _split_validity(line[len(VALIDITY_LABEL):])
                fields.start_raw = start
                if end is not None:
                    fields.end_raw = end

    return fields
