"""
Main entry point for the soundboard.

Provides main(), which loads configuration, builds a Soundboard and runs
one command:

    soundboard list [--filter FILE]      clip names playable under the filter
    soundboard files                     filter choices (source files)
    soundboard play NAME [--filter FILE] play one clip and wait for it to end
    soundboard sequence [--filter FILE]  random clips back-to-back until Ctrl+C
"""

import argparse
import asyncio
import logging
import logging.handlers
import signal
import sys
from typing import Optional

from soundboard.app.soundboard import Soundboard
from soundboard.catalog.clip_catalog import segments_by_file
from soundboard.config import SoundboardConfig

logger = logging.getLogger(__name__)


class _SafeWatchedFileHandler(logging.handlers.WatchedFileHandler):
    """WatchedFileHandler whose write failures degrade silently."""

    def emit(self, record):
        try:
            super().emit(record)
        except (IOError, OSError):
            pass


def configure_logging(config: SoundboardConfig) -> None:
    """
    Initialize logging with a clear format, plus an optional rotation-tolerant file.
    """
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    if not config.log_file:
        return

    try:
        # WatchedFileHandler reopens the file after external rotation
        handler = _SafeWatchedFileHandler(config.log_file, mode='a')
    except OSError as e:
        # Logging must never stop the soundboard from starting
        logger.warning(f"[SOUNDBOARD] Cannot open log file {config.log_file}: {e}")
        return
    handler.setFormatter(logging.Formatter('%(asctime)s [%(levelname)s] %(name)s: %(message)s'))
    logging.getLogger().addHandler(handler)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="soundboard", description="Play random excerpts of named clips.")
    parser.add_argument("--catalog", help="Clip document path or URL (overrides SOUNDBOARD_CATALOG)")
    parser.add_argument("--media-root", help="Directory or URL that segment files resolve against")
    parser.add_argument("--output", choices=("sounddevice", "null"), help="Output mode (overrides SOUNDBOARD_OUTPUT_MODE)")

    commands = parser.add_subparsers(dest="command", required=True)

    list_cmd = commands.add_parser("list", help="List clip names")
    list_cmd.add_argument("--filter", default=None, help="Only clips with a segment in this file")

    commands.add_parser("files", help="List source files usable as filters")

    play_cmd = commands.add_parser("play", help="Play one clip and wait for it to end")
    play_cmd.add_argument("name", help="Clip name")
    play_cmd.add_argument("--filter", default=None, help="Only segments from this file")

    sequence_cmd = commands.add_parser("sequence", help="Play random clips until interrupted")
    sequence_cmd.add_argument("--filter", default=None, help="Only clips/segments from this file")

    return parser


def _install_stop_signals(loop: asyncio.AbstractEventLoop, board: Soundboard, stopped: asyncio.Event) -> None:
    def request_stop(sig_name: str) -> None:
        if stopped.is_set():
            logger.debug("[SOUNDBOARD] Stop already in progress, ignoring duplicate signal")
            return
        logger.info(f"[SOUNDBOARD] Received {sig_name} - stopping")
        stopped.set()
        board.stop()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, request_stop, sig.name)
        except (NotImplementedError, RuntimeError):
            # No loop signal handlers on this platform; Ctrl+C raises KeyboardInterrupt instead
            pass


async def _play_once(board: Soundboard, name: str, stopped: asyncio.Event) -> int:
    ended = asyncio.Event()

    class _EndWatcher:
        def on_playback_started(self, clip_name: str) -> None:
            print(f"▶ {clip_name}")

        def on_playback_ended(self, clip_name: str) -> None:
            ended.set()

    board.add_listener(_EndWatcher())

    task = board.play(name)
    if task is None:
        logger.warning(f"[SOUNDBOARD] Nothing playable for '{name}' (filter={board.controller.active_filter})")
        return 1
    if not await task:
        logger.warning(f"[SOUNDBOARD] '{name}' did not start")
        return 1

    waiters = [asyncio.ensure_future(ended.wait()), asyncio.ensure_future(stopped.wait())]
    await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
    for waiter in waiters:
        waiter.cancel()
    return 0


async def _run_sequence(board: Soundboard) -> int:
    class _Announcer:
        def on_playback_started(self, clip_name: str) -> None:
            print(f"▶ {clip_name}")

        def on_playback_ended(self, clip_name: str) -> None:
            return

    board.add_listener(_Announcer())
    completed = await board.sequence.run_sequence()
    logger.info(f"[SOUNDBOARD] Sequence finished ({completed} clips played)")
    return 0


async def run(args: argparse.Namespace, config: SoundboardConfig) -> int:
    """Build the soundboard, run one command, and close it."""
    board = Soundboard(config)
    stopped = asyncio.Event()
    _install_stop_signals(asyncio.get_running_loop(), board, stopped)

    try:
        await board.start()
        board.set_filter(getattr(args, "filter", None))

        if args.command == "list":
            for name in board.clip_names():
                print(name)
            return 0

        if args.command == "files":
            grouped = segments_by_file(board.catalog)
            for value, label in board.catalog.filter_options()[1:]:
                print(f"{value}\t{label}\t{len(grouped.get(value, ()))} segments")
            return 0

        if args.command == "play":
            return await _play_once(board, args.name, stopped)

        if args.command == "sequence":
            return await _run_sequence(board)

        raise ValueError(f"Unknown command: {args.command}")
    finally:
        await board.aclose()


def main(args: Optional[list] = None) -> int:
    """
    Main entry point for the soundboard.
    """
    parsed = build_parser().parse_args(args)

    try:
        config = SoundboardConfig.load_config()
        if parsed.catalog:
            config.catalog_location = parsed.catalog
        if parsed.media_root:
            config.media_root = parsed.media_root
        if parsed.output:
            config.output_mode = parsed.output
        config.validate()
    except ValueError as e:
        print(f"soundboard: configuration error: {e}", file=sys.stderr)
        return 2

    configure_logging(config)

    try:
        return asyncio.run(run(parsed, config))
    except KeyboardInterrupt:
        logger.info("[SOUNDBOARD] Interrupted by user (KeyboardInterrupt)")
        return 0


if __name__ == "__main__":
    sys.exit(main())
