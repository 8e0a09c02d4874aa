"""
Session Replay Sync Tool

Entry point for the replaysync command line interface. It assembles a
recording from exported chunk files, prints an overview of the recording and
its call window, and optionally writes the assembled events in replay wire
shape for a replay front end.

Usage:
    replaysync --chunks ./recordings --session-id <id> --output events.json
"""

import argparse
import logging
import sys
import time
from pathlib import Path

from dotenv import load_dotenv
from halo import Halo

from replaysync.config import reload_settings
from replaysync.domain import recording_duration_ms
from replaysync.errors import ReplaySyncError
from replaysync.ingest import DirectoryChunkFetcher, RecordingAssembler
from replaysync.playback.session import build_call_window
from replaysync.playback.timeline import format_time
from replaysync.utils import configure_logging, get_logger
from replaysync.utils.timeline_utils import (
    build_timeline,
    count_event_types,
    print_event_counts,
    print_timeline,
    save_events_to_json,
)

logger: logging.Logger = get_logger("replaysync")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Session Replay Sync Tool")
    parser.add_argument(
        "--chunks",
        type=str,
        help="Directory of exported chunk files (defaults to REPLAY_CHUNKS_DIR)",
    )
    parser.add_argument(
        "--session-id",
        type=str,
        help="Recording session id; chunks are read from <chunks>/<session-id>",
    )
    parser.add_argument(
        "--output",
        type=str,
        help="Write the assembled events to this JSON file",
    )
    parser.add_argument(
        "--no-summary",
        action="store_true",
        help="Skip printing the recording overview",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Logging level (overrides LOG_LEVEL)",
    )
    return parser


def main() -> None:
    """
    Main function to handle the command line interface logic.
    """
    load_dotenv()
    settings = reload_settings()
    args: argparse.Namespace = _build_parser().parse_args()
    configure_logging(args.log_level)

    chunks_dir = Path(args.chunks) if args.chunks else settings.ingest.chunks_folder
    session_id: str | None = args.session_id or settings.ingest.session_id
    fetcher = DirectoryChunkFetcher(chunks_dir)
    assembler = RecordingAssembler(fetcher, max_workers=settings.ingest.fetch_workers)

    start_time = time.time()
    try:
        with Halo(text="Assembling recording", spinner="dots", text_color="green"):
            events = assembler.assemble(fetcher.list_sources(session_id))
    except ReplaySyncError as err:
        logger.error("Failed to load session: %s", err)
        sys.exit(1)
    logger.info(
        "Assembled %d events in %.2f seconds", len(events), time.time() - start_time
    )

    window = build_call_window(settings.call.to_call_config())
    if not args.no_summary:
        print_event_counts(count_event_types(events), recording_duration_ms(events))
        if window is not None:
            print(
                f"Call window {format_time(window.offset_ms)} - "
                f"{format_time(window.end_ms)} ({window.audio_url})"
            )
        print_timeline(build_timeline(events, window))

    if args.output:
        output_path = save_events_to_json(events, args.output)
        logger.info("Events saved to %s", output_path)


if __name__ == "__main__":
    main()
