"""
Folder watcher.
Forwards filesystem notifications under the watched directory into a
blocking queue as WatchEvent objects. The pipeline is the only consumer.
"""

import queue
from pathlib import Path
from typing import Union

from watchdog.events import FileCreatedEvent, DirCreatedEvent, FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ticketcal.errors import WatchError
from ticketcal.event_models import WatchEvent, WatchEventKind
from ticketcal.logging_helper import Log


def to_watch_event(event: FileSystemEvent) -> WatchEvent:
    """Translate a watchdog event; directory creations are forwarded too."""
    kind = WatchEventKind.CREATED if isinstance(event, (FileCreatedEvent, DirCreatedEvent)) else WatchEventKind.OTHER
    paths = [event.src_path]
    dest_path = getattr(event, "dest_path", "")
    if dest_path:
        paths.append(dest_path)
    return WatchEvent(kind=kind, paths=tuple(Path(p) for p in paths if p))


class TicketEventHandler(FileSystemEventHandler):
    """Puts every filesystem event on the queue; filtering happens in the pipeline."""

    def __init__(self, events: "queue.Queue[WatchEvent]"):
        super().__init__()
        self.events = events

    def on_any_event(self, event: FileSystemEvent) -> None:
        self.events.put(to_watch_event(event))


def start_watching(directory: Union[str, Path], events: "queue.Queue[WatchEvent]") -> Observer:
    """
    Start a recursive observer on directory.

    Returns:
        The running Observer; call stop() and join() to shut it down

    Raises:
        WatchError: if the directory is missing or the observer cannot start
    """
    Log.section("Folder Watcher")
    directory = Path(directory)
    if not directory.is_dir():
        raise WatchError(f"Watch directory does not exist: {directory}")

    observer = Observer()
    try:
        observer.schedule(TicketEventHandler(events), str(directory), recursive=True)
        observer.start()
    except OSError as e:
        raise WatchError(f"Could not watch {directory}: {e}") from e

    Log.info(f"Watching {directory} for new tickets")
    Log.kv({"stage": "watch", "result": "started", "path": str(directory)})
    return observer
