"""
normalizer.cli
~~~~~~~~~~~~~~
``normalize-videos [ROOT] [--interval SECONDS] ...``

Exit codes
----------
  0    the batch completed (per-file failures are in the summary)
  1    precondition failure: root missing, ffmpeg/ffprobe missing, bad config
  130  interrupted
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
from pathlib import Path

from PySide6.QtCore import QCoreApplication, QTimer

from normalizer.config import Settings, load_settings
from normalizer.errors import PreconditionError
from normalizer.pipeline import PipelineRunner, check_preconditions
from normalizer.report import ConsoleReporter, print_summary
from normalizer.scheduler import IntervalScheduler

EXIT_OK           = 0
EXIT_PRECONDITION = 1
EXIT_INTERRUPTED  = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="normalize-videos",
        description="Transcode legacy videos to MP4 and create a thumbnail for every MP4.",
    )
    parser.add_argument("root", nargs="?", type=Path,
                        help="media tree to normalize (default: $ROOT_DIR, then the current directory)")
    parser.add_argument("--config", type=Path,
                        help="JSON file with settings overrides")
    parser.add_argument("--thumb-dir", dest="thumb_root", type=Path,
                        help="where thumbnails go (default: <root>/.thumb)")
    parser.add_argument("--width", dest="thumbnail_width", type=int,
                        help="thumbnail width in pixels")
    parser.add_argument("--interval", type=int, metavar="SECONDS",
                        help="keep running, re-scanning every SECONDS")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="debug logging on stderr")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )

    try:
        settings = load_settings(
            config_file=args.config,
            root=args.root,
            thumb_root=args.thumb_root,
            thumbnail_width=args.thumbnail_width,
        )
        print("Starting video normalization...")
        print(f"ROOT_DIR: {settings.root}\n")
        print("Checking dependencies...")
        check_preconditions(settings)
        print(f"✓ ffmpeg found: {settings.ffmpeg_bin}")
        print(f"✓ ffprobe found: {settings.ffprobe_bin}")

        if args.interval:
            return _run_forever(settings, args.interval, args.verbose)
        return _run_once(settings, args.verbose)

    except PreconditionError as exc:
        print(f"\n✗ ERROR: {exc}", file=sys.stderr)
        return EXIT_PRECONDITION
    except KeyboardInterrupt:
        print("\n✗ Interrupted", file=sys.stderr)
        return EXIT_INTERRUPTED


def _run_once(settings: Settings, verbose: bool = False) -> int:
    # No event loop here: signals use direct connections and Ctrl-C
    # surfaces as KeyboardInterrupt out of runner.run().
    runner = PipelineRunner(settings)
    reporter = ConsoleReporter(settings.root, verbose=verbose)
    reporter.attach(runner)

    result = runner.run()
    print_summary(result)
    return EXIT_OK


def _run_forever(settings: Settings, interval: int, verbose: bool = False) -> int:
    app = QCoreApplication.instance() or QCoreApplication(sys.argv)

    runner = PipelineRunner(settings)
    reporter = ConsoleReporter(settings.root, verbose=verbose)
    reporter.attach(runner)

    scheduler = IntervalScheduler(runner, interval)
    scheduler.pass_finished.connect(print_summary)
    scheduler.pass_failed.connect(lambda msg: print(f"\n✗ ERROR: {msg}", file=sys.stderr))

    # A pass runs synchronously inside a timer slot, where a raised
    # KeyboardInterrupt would be swallowed by Qt. The handler asks the runner
    # to stop after the current file and ends the loop once the slot returns.
    interrupted = []

    def _on_sigint(signum, frame):
        if not interrupted:
            print("\nStopping after the current file...", file=sys.stderr)
        interrupted.append(signum)
        runner.request_stop()
        scheduler.stop()
        app.quit()

    previous_handler = signal.signal(signal.SIGINT, _on_sigint)
    # Qt's loop never returns to Python on its own, so Ctrl-C between passes
    # would only be seen at the next tick. A no-op timer gives the
    # interpreter a chance to run the handler.
    heartbeat = QTimer()
    heartbeat.timeout.connect(lambda: None)
    heartbeat.start(500)

    print(f"\nWatching every {interval}s (Ctrl-C to stop)")
    try:
        scheduler.start()
        app.exec()
    finally:
        scheduler.stop()
        heartbeat.stop()
        signal.signal(signal.SIGINT, previous_handler)
    return EXIT_INTERRUPTED if interrupted else EXIT_OK
