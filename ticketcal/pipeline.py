"""
Ticket pipeline orchestrator.

Drains WatchEvents from a queue one at a time and, for every created path,
runs: render page -> query model -> extract fields -> normalize dates ->
synthesize event -> write ICS. Tickets never run concurrently; events that
arrive while one is being processed wait in the queue.
"""

import queue
import threading
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Union

from dateutil import tz as dateutil_tz
from PIL import Image

from ticketcal.errors import PerTicketError, WatchError
from ticketcal.event_models import WatchEvent
from ticketcal.event_normalizer import normalize_fields
from ticketcal.event_synthesizer import synthesize_event
from ticketcal.field_extractor import extract_fields
from ticketcal.ics_generator import write_ics
from ticketcal.image_llm_client import TICKET_PROMPT, ImageLLMClient
from ticketcal.logging_helper import Log
from ticketcal.ticket_renderer import image_to_data_uri, render_first_page

# Seconds between stop checks while the queue is empty
POLL_INTERVAL = 0.5


class PipelineState(Enum):
    IDLE = "idle"
    PROCESSING = "processing"


class TicketPipeline:
    """
    Context object holding every collaborator a ticket run needs.
    Built once at startup and owned by the consumer loop.
    """

    def __init__(
        self,
        client: ImageLLMClient,
        output_dir: Union[str, Path] = ".",
        renderer: Callable[[Path], Image.Image] = render_first_page,
        encoder: Callable[[Image.Image], str] = image_to_data_uri,
        clock: Optional[Callable[[], datetime]] = None,
        prompt: str = TICKET_PROMPT,
    ):
        self.client = client
        self.output_dir = Path(output_dir)
        self.renderer = renderer
        self.encoder = encoder
        self.clock = clock or (lambda: datetime.now(dateutil_tz.tzlocal()))
        self.prompt = prompt
        self.state = PipelineState.IDLE
        self.processed = 0
        self.failed = 0

    def process_ticket(self, path: Union[str, Path]) -> Optional[Path]:
        """
        Run the whole pipeline for one file.

        Returns:
            Path of the written ICS file, or None if this ticket failed
        """
        path = Path(path)
        Log.section("Ticket")
        Log.info(f"Processing ticket: {path}")
        self.state = PipelineState.PROCESSING
        try:
            image = self.renderer(path)
            image_data_uri = self.encoder(image)
            # Drop the raster before the network wait
            del image

            response = self.client.complete(self.prompt, image_data_uri)

            fields = extract_fields(response)
            Log.kv({
                "stage": "extract",
                "event_name": fields.event_name,
                "location": fields.location,
                "start_raw": fields.start_raw,
                "end_raw": fields.end_raw
            })

            now = self.clock()
            schedule = normalize_fields(fields, now=now.replace(tzinfo=None))
            event = synthesize_event(fields, schedule, now=now)
            ics_path = write_ics(event, self.output_dir)
        except PerTicketError as e:
            self.failed += 1
            Log.error(f"Ticket {path} failed at {e.stage}: {e}")
            Log.kv({"stage": e.stage, "result": "failed", "path": str(path), "error": str(e)})
            return None
        except Exception as e:
            self.failed += 1
            Log.error(f"Unexpected error processing {path}: {e}")
            Log.kv({"stage": "ticket", "result": "failed", "reason": "unexpected_error", "path": str(path), "error": str(e)})
            return None
        finally:
            self.state = PipelineState.IDLE

        self.processed += 1
        Log.info(f"Ticket {path} -> {ics_path}")
        return ics_path

    def handle_event(self, event: WatchEvent) -> int:
        """Process every path of a creation event in order. Returns files written."""
        if not event.triggers_processing:
            return 0
        written = 0
        for path in event.paths:
            if self.process_ticket(path) is not None:
                written += 1
        return written

    def run(
        self,
        events: "queue.Queue[Optional[WatchEvent]]",
        stop: Optional[threading.Event] = None,
        source_alive: Optional[Callable[[], bool]] = None,
    ) -> int:
        """
        Consume events until a None sentinel arrives or stop is set.

        Args:
            events: Queue filled by the watcher
            stop: Optional event that ends the loop once set
            source_alive: Optional liveness check for the event producer,
                polled whenever the queue is empty

        Returns:
            Number of ICS files written

        Raises:
            WatchError: if source_alive reports the producer has gone away
        """
        Log.info("Pipeline waiting for tickets")
        polling = stop is not None or source_alive is not None
        written = 0
        while stop is None or not stop.is_set():
            try:
                event = events.get(timeout=POLL_INTERVAL) if polling else events.get()
            except queue.Empty:
                # Events queued before the producer died are still drained
                if source_alive is not None and not source_alive():
                    Log.kv({"stage": "pipeline", "result": "failed", "reason": "event_source_closed"})
                    raise WatchError("Event source stopped; no further tickets can arrive")
                continue
            try:
                if event is None:
                    break
                written += self.handle_event(event)
            finally:
                events.task_done()
        Log.kv({"stage": "pipeline", "result": "stopped", "processed": self.processed, "failed": self.failed})
        return written
