"""
Data models for ticket-to-calendar conversion.
Defines ExtractedFields (from the model's text), NormalizedSchedule,
CalendarEvent (ready for ICS output) and WatchEvent (from the folder watcher).
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple


@dataclass
class ExtractedFields:
    """
    Labeled fields scanned out of the model's free-text answer.
    Absent labels stay None.
    """
    event_name: Optional[str] = None
    location: Optional[str] = None
    start_raw: Optional[str] = None  # "HH:DD:MM:YYYY", or "DD:MM" from the validity line
    end_raw: Optional[str] = None    # "DD:MM"

    @property
    def summary(self) -> str:
        return self.event_name or ""

    @property
    def place(self) -> str:
        return self.location or ""


@dataclass(frozen=True)
class NormalizedSchedule:
    """Naive local start/end pair. end is always after start."""
    start: datetime
    end: datetime

    def duration_minutes(self) -> int:
        """Get schedule duration in minutes."""
        delta = self.end - self.start
        return int(delta.total_seconds() / 60)


@dataclass(frozen=True)
class CalendarEvent:
    """
    One calendar entry, built once per ticket.
    created_at is UTC-aware; start and end are naive local time.
    """
    id: str
    created_at: datetime
    summary: str
    location: str
    start: datetime
    end: datetime


class WatchEventKind(Enum):
    CREATED = "created"
    OTHER = "other"


@dataclass(frozen=True)
class WatchEvent:
    """Filesystem notification forwarded by the watcher."""
    kind: WatchEventKind
    paths: Tuple[Path, ...] = field(default_factory=tuple)

    @property
    def triggers_processing(self) -> bool:
        """Only creation events that carry a path start a pipeline run."""
        return self.kind is WatchEventKind.CREATED and len(self.paths) > 0
