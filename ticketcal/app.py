"""
Main entry point for TicketCal.
Watches a folder for ticket PDFs and writes one .ics file per ticket.
"""

import argparse
import queue
from typing import Optional, Sequence

from ticketcal.errors import ConfigError, WatchError
from ticketcal.image_llm_client import get_llm_client
from ticketcal.logging_helper import Log, close_log_file, configure_log_file
from ticketcal.pipeline import TicketPipeline
from ticketcal.settings_manager import load_log_dir, load_settings
from ticketcal.watcher import start_watching

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="ticketcal",
        description="Turn ticket PDFs dropped into a folder into .ics calendar files.",
    )
    parser.add_argument(
        "--once",
        metavar="PATH",
        help="process a single ticket file and exit instead of watching",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the app."""
    args = _parse_args(argv)

    try:
        configure_log_file(load_log_dir())
    except OSError as e:
        Log.warn(f"Could not open log file, logging to stdout only: {e}")

    Log.section("TicketCal")
    Log.info("Starting TicketCal")
    Log.info(f"Log file: {Log.get_log_path()}")

    try:
        return _run(args)
    finally:
        close_log_file()


def _run(args: argparse.Namespace) -> int:
    try:
        settings = load_settings()
    except ConfigError as e:
        Log.error(f"Configuration error: {e}")
        return EXIT_CONFIG_ERROR

    pipeline = TicketPipeline(client=get_llm_client(settings), output_dir=settings.output_dir)

    if args.once:
        return EXIT_OK if pipeline.process_ticket(args.once) is not None else EXIT_FAILURE

    events = queue.Queue()
    try:
        observer = start_watching(settings.watch_dir, events)
    except WatchError as e:
        Log.error(f"Watch setup failed: {e}")
        return EXIT_FAILURE

    try:
        pipeline.run(events, source_alive=observer.is_alive)
    except WatchError as e:
        Log.error(f"Watcher stopped: {e}")
        return EXIT_FAILURE
    except KeyboardInterrupt:
        Log.info("Interrupted, shutting down")
    finally:
        observer.stop()
        observer.join()
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
