"""Pytest fixtures shared across ticketcal tests."""

from datetime import datetime

import pytest
from dateutil import tz as dateutil_tz
from PIL import Image

from ticketcal.event_models import CalendarEvent
from ticketcal.image_llm_client import StubImageLLMClient
from ticketcal.pipeline import TicketPipeline

JAZZ_RESPONSE = (
    "Event name: Jazz Night\n"
    "Location of the event: Blue Note\n"
    "Date and time: 20:15:06:2025"
)


@pytest.fixture
def jazz_response() -> str:
    """Well-formed model answer for a single-evening event."""
    return JAZZ_RESPONSE


@pytest.fixture
def fixed_now() -> datetime:
    """Evaluation time used wherever a clock is injected."""
    return datetime(2025, 5, 1, 10, 30, 0)


@pytest.fixture
def sample_event() -> CalendarEvent:
    return CalendarEvent(
        id="event_1746095400",
        created_at=datetime(2025, 5, 1, 10, 30, 0, tzinfo=dateutil_tz.tzutc()),
        summary="Jazz Night; Late, Set",
        location="Blue Note\nNew York",
        start=datetime(2025, 6, 15, 20, 0, 0),
        end=datetime(2025, 6, 15, 22, 0, 0),
    )


@pytest.fixture
def blank_image() -> Image.Image:
    return Image.new("RGB", (40, 60), "white")


@pytest.fixture
def make_pipeline(tmp_path, blank_image, fixed_now):
    """Pipeline factory with an in-memory renderer and fixed clock."""

    def factory(client=None, renderer=None, output_dir=None):
        return TicketPipeline(
            client=client or StubImageLLMClient(JAZZ_RESPONSE),
            output_dir=output_dir or tmp_path,
            renderer=renderer or (lambda path: blank_image),
            clock=lambda: fixed_now,
        )

    return factory
