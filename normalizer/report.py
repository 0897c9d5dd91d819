"""
normalizer.report
~~~~~~~~~~~~~~~~~
Human-readable output: one line per outcome while the run is going,
a full summary at the end.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

from normalizer.models import RunResult

if TYPE_CHECKING:
    from normalizer.pipeline import PipelineRunner


def render_summary(result: RunResult) -> str:
    lines = ["", "Summary:", "========"]

    lines.append(f"Transcoded: {len(result.transcoded)}")
    lines.extend(f"  - {src} → {dst}" for src, dst in result.transcoded)

    lines.append("")
    lines.append(f"Thumbnails: {len(result.thumbnails)}")
    lines.extend(f"  - {thumb}" for thumb in result.thumbnails)

    lines.append("")
    lines.append(f"Errors: {len(result.errors)}")
    lines.extend(f"  - {path}: {message}" for path, message in result.errors)

    lines.append("")
    lines.append(
        f"Skipped: {result.skipped_transcodes} transcode(s), "
        f"{result.skipped_thumbnails} thumbnail(s) already done or in progress"
    )
    if result.interrupted:
        lines.append("Interrupted: the pass stopped early, the next run picks up the rest")
    lines.append(f"Completed in {result.elapsed:.1f}s")
    return "\n".join(lines)


def print_summary(result: RunResult, stream: TextIO | None = None) -> None:
    print(render_summary(result), file=stream or sys.stdout)


class ConsoleReporter:
    """
    Prints progress lines as the runner's signals fire.

    Skips are only listed when *verbose*. Per-file encode percentages are
    drawn in place on a terminal and left out of redirected output.
    """

    def __init__(self, root: Path, stream: TextIO | None = None, verbose: bool = False):
        self._root = root
        self._stream = stream or sys.stdout
        self._verbose = verbose
        self._live = self._stream.isatty()
        self._progress_shown = False

    def attach(self, runner: PipelineRunner) -> None:
        runner.phase_changed.connect(self.on_phase)
        runner.transcoded.connect(self.on_transcoded)
        runner.transcode_progress.connect(self.on_progress)
        runner.thumbnail_created.connect(self.on_thumbnail)
        runner.skipped.connect(self.on_skipped)
        runner.error_recorded.connect(self.on_error)

    def on_phase(self, title: str) -> None:
        self._print(f"\n{title}")

    def on_transcoded(self, src: Path, dst: Path) -> None:
        self._print(f"✓ Transcoded: {self._rel(src)} → {self._rel(dst)}")

    def on_progress(self, src: Path, percent: float) -> None:
        if not self._live:
            return
        self._stream.write(f"\r\x1b[K  {self._rel(src)} {percent:5.1f}%")
        self._stream.flush()
        self._progress_shown = True

    def on_thumbnail(self, thumb: Path) -> None:
        self._print(f"✓ Thumbnail: {self._rel(thumb)}")

    def on_skipped(self, path: Path, reason: str) -> None:
        if self._verbose:
            self._print(f"- Skipped ({reason}): {self._rel(path)}")

    def on_error(self, path: str, message: str) -> None:
        self._print(f"✗ {path}: {message}")

    def _rel(self, path: Path) -> Path:
        try:
            return path.relative_to(self._root)
        except ValueError:
            return path

    def _print(self, text: str) -> None:
        if self._progress_shown:
            # wipe the in-place percentage line first
            self._stream.write("\r\x1b[K")
            self._progress_shown = False
        print(text, file=self._stream, flush=True)
