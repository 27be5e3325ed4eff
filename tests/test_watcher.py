"""Tests for translating filesystem notifications into WatchEvents."""

import queue
from pathlib import Path

import pytest
from watchdog.events import DirCreatedEvent, FileCreatedEvent, FileModifiedEvent, FileMovedEvent

from ticketcal.errors import WatchError
from ticketcal.event_models import WatchEventKind
from ticketcal.watcher import TicketEventHandler, start_watching, to_watch_event


class TestToWatchEvent:

    def test_file_created(self):
        event = to_watch_event(FileCreatedEvent("/tickets/a.pdf"))
        assert event.kind is WatchEventKind.CREATED
        assert event.paths == (Path("/tickets/a.pdf"),)
        assert event.triggers_processing

    def test_directory_created_is_forwarded(self):
        event = to_watch_event(DirCreatedEvent("/tickets/new"))
        assert event.kind is WatchEventKind.CREATED
        assert event.triggers_processing

    def test_modified_is_other(self):
        event = to_watch_event(FileModifiedEvent("/tickets/a.pdf"))
        assert event.kind is WatchEventKind.OTHER
        assert not event.triggers_processing

    def test_moved_carries_both_paths(self):
        event = to_watch_event(FileMovedEvent("/tickets/a.pdf", "/tickets/b.pdf"))
        assert event.kind is WatchEventKind.OTHER
        assert event.paths == (Path("/tickets/a.pdf"), Path("/tickets/b.pdf"))


def test_handler_queues_every_event():
    events = queue.Queue()
    handler = TicketEventHandler(events)
    handler.dispatch(FileCreatedEvent("/tickets/a.pdf"))
    handler.dispatch(FileModifiedEvent("/tickets/a.pdf"))
    kinds = [events.get_nowait().kind, events.get_nowait().kind]
    assert kinds == [WatchEventKind.CREATED, WatchEventKind.OTHER]


def test_missing_directory_is_a_watch_error(tmp_path):
    with pytest.raises(WatchError):
        start_watching(tmp_path / "missing", queue.Queue())


def test_observer_reports_new_file(tmp_path):
    events = queue.Queue()
    observer = start_watching(tmp_path, events)
    try:
        (tmp_path / "ticket.pdf").write_bytes(b"%PDF-1.4")
        created = None
        while created is None:
            event = events.get(timeout=5)
            if event.kind is WatchEventKind.CREATED:
                created = event
    finally:
        observer.stop()
        observer.join()
    assert created.paths[0].name == "ticket.pdf"
