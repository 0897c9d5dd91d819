"""
normalizer.pipeline
~~~~~~~~~~~~~~~~~~~
PipelineRunner drives one full pass over the tree:

  phase 1  walk → transcode every legacy file, collect every canonical video
  phase 2  thumbnail every canonical video

Everything runs in the calling thread. Signals fire synchronously as each
outcome lands, so observers (ConsoleReporter, the scheduler) never touch
the RunResult while it is being built. request_stop() ends a pass after
the file in hand; the partial result comes back with ``interrupted`` set.
"""

from __future__ import annotations

import logging
from pathlib import Path

from PySide6.QtCore import QObject, Signal

from normalizer.config import Settings
from normalizer.errors import PreconditionError
from normalizer.models import JobStatus, RunResult
from normalizer.paths import validate_binaries
from normalizer.scanner import walk
from normalizer.thumbnails import thumbnail
from normalizer.transcoder import normalize

logger = logging.getLogger(__name__)


def check_preconditions(settings: Settings) -> None:
    """
    Raises:
        PreconditionError – root missing / not a directory, or ffmpeg /
                            ffprobe missing or not executable
    """
    if not settings.root.exists():
        raise PreconditionError(f"ROOT_DIR does not exist: {settings.root}")
    if not settings.root.is_dir():
        raise PreconditionError(f"ROOT_DIR is not a directory: {settings.root}")

    errors = validate_binaries(settings.ffmpeg_bin, settings.ffprobe_bin)
    if errors:
        raise PreconditionError(
            "ffmpeg and ffprobe must be installed: " + "; ".join(errors)
        )


class PipelineRunner(QObject):

    phase_changed      = Signal(str)
    transcoded         = Signal(object, object)   # (input Path, output Path)
    transcode_progress = Signal(object, float)    # (input Path, 0–100)
    thumbnail_created  = Signal(object)           # thumbnail Path
    skipped            = Signal(object, str)      # (Path, reason)
    error_recorded     = Signal(str, str)         # (relative path, message)

    def __init__(self, settings: Settings, parent=None):
        super().__init__(parent)
        self._settings = settings
        self._stop_requested = False

    @property
    def settings(self) -> Settings:
        return self._settings

    def request_stop(self) -> None:
        """Stop after the current file. Safe to call from a signal handler."""
        self._stop_requested = True

    # ── Entry point ───────────────────────────────────────────────────────────

    def run(self) -> RunResult:
        """
        One full pass. Per-file failures end up in ``result.errors``;
        only PreconditionError escapes.
        """
        check_preconditions(self._settings)
        try:
            self._settings.thumb_root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PreconditionError(f"Cannot create thumbnail directory: {exc}") from exc

        result = RunResult(root=self._settings.root)
        self._stop_requested = False
        videos = self._transcode_phase(result)
        if not self._stop_requested:
            self._thumbnail_phase(videos, result)

        result.interrupted = self._stop_requested
        result.finish()
        logger.info(
            "pass done: %d transcoded, %d thumbnails, %d errors in %.1fs",
            len(result.transcoded), len(result.thumbnails),
            len(result.errors), result.elapsed,
        )
        return result

    # ── Phases ────────────────────────────────────────────────────────────────

    def _transcode_phase(self, result: RunResult) -> list[Path]:
        """Returns every canonical video known after this phase, in walk order."""
        settings = self._settings
        self.phase_changed.emit("Transcoding videos...")

        # dict keeps insertion order and drops a second .mov/.wmv hitting
        # the same .mp4
        videos: dict[Path, None] = {}

        entries = walk(
            settings.root,
            settings.excluded_dirs,
            on_error=lambda err: self._record_error(result, err.path, err.message),
        )
        for entry in entries:
            if self._stop_requested:
                logger.info("stop requested, ending transcode phase")
                break

            if entry.extension in settings.source_extensions:
                job = normalize(
                    entry.path,
                    settings,
                    on_progress=lambda pct, p=entry.path: self.transcode_progress.emit(p, pct),
                )
                if job.status is JobStatus.FAILED:
                    self._record_error(result, job.input_path, str(job.error))
                    continue

                result.record_transcode(job)
                if job.status is JobStatus.SUCCESS:
                    self.transcoded.emit(job.input_path, job.output_path)
                    videos[job.output_path] = None
                elif job.status is JobStatus.SKIPPED_BUSY:
                    # Still being written by someone else; not a video yet.
                    self.skipped.emit(job.input_path, "busy")
                else:
                    self.skipped.emit(job.input_path, "exists")

            elif entry.extension == settings.video_extension:
                videos[entry.path] = None

        return list(videos)

    def _thumbnail_phase(self, videos: list[Path], result: RunResult) -> None:
        self.phase_changed.emit("Generating thumbnails...")

        for video in videos:
            if self._stop_requested:
                logger.info("stop requested, ending thumbnail phase")
                break

            job = thumbnail(video, self._settings)
            if job.status is JobStatus.FAILED:
                self._record_error(result, job.video_path, str(job.error))
                continue

            result.record_thumbnail(job)
            if job.status is JobStatus.SUCCESS:
                self.thumbnail_created.emit(job.thumb_path)
            else:
                self.skipped.emit(job.video_path, "exists")

    # ── Helpers ───────────────────────────────────────────────────────────────

    def _record_error(self, result: RunResult, path: Path, message: str) -> None:
        result.record_error(path, message)
        rel_path, message = result.errors[-1]
        self.error_recorded.emit(str(rel_path), message)
