"""
Error types raised across the ticket pipeline.

ConfigError is fatal at startup. PerTicketError and its subclasses are
confined to one ticket: the pipeline logs them and moves on.
"""

from pathlib import Path
from typing import Optional, Union


class TicketCalError(Exception):
    """Base class for all ticketcal errors."""


class ConfigError(TicketCalError):
    """Required startup configuration is missing or malformed."""


class WatchError(TicketCalError):
    """The watch channel could not be set up or has failed."""


class PerTicketError(TicketCalError):
    """Failure confined to a single input file."""

    stage = "ticket"

    def __init__(self, message: str, path: Optional[Union[str, Path]] = None):
        super().__init__(message)
        self.path = str(path) if path is not None else None


class RenderError(PerTicketError):
    """The input could not be rendered to an image (unreadable, corrupt, not a PDF)."""

    stage = "render"


class QueryError(PerTicketError):
    """The model request failed or returned an unsupported response shape."""

    stage = "query"


class WriteError(PerTicketError):
    """The calendar file could not be written."""

    stage = "write"
