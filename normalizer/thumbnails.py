"""
normalizer.thumbnails
~~~~~~~~~~~~~~~~~~~~~
One JPEG preview per canonical video, grabbed from the middle of it.

ffmpeg writes straight to the destination (no temp + rename), so a
reader can briefly see a half-written image. A failed extraction removes
whatever it left behind, so the next run tries again.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from normalizer.command_builder import build_thumbnail_command, command_as_string
from normalizer.config import Settings
from normalizer.errors import NormalizeError, ThumbnailError, tool_diagnostic
from normalizer.models import JobStatus, ThumbnailJob
from normalizer.paths import build_thumbnail_path
from normalizer.probe import probe_duration

logger = logging.getLogger(__name__)


def thumbnail(video_path: Path, settings: Settings) -> ThumbnailJob:
    """
    Create the thumbnail for *video_path* unless it already exists.

    Returns a job that is SKIPPED_EXISTS, SUCCESS or FAILED (``job.error``
    holds a ProbeError or ThumbnailError).
    """
    job = ThumbnailJob(
        video_path=video_path,
        thumb_path=build_thumbnail_path(
            video_path, settings.root, settings.thumb_root, settings.thumbnail_extension
        ),
    )

    if job.thumb_path.exists():
        job.status = JobStatus.SKIPPED_EXISTS
        return job

    try:
        job.timestamp = sample_timestamp(probe_duration(settings, video_path))
        job.status = JobStatus.RUNNING
        _extract_frame(settings, job)
    except NormalizeError as exc:
        logger.error("%s: %s", video_path, exc)
        job.status = JobStatus.FAILED
        job.error = exc
        return job

    job.status = JobStatus.SUCCESS
    return job


def sample_timestamp(duration: float) -> float:
    """Midpoint of the video; 0 for a zero-length one."""
    if duration <= 0:
        return 0.0
    return duration / 2


def _extract_frame(settings: Settings, job: ThumbnailJob) -> None:
    try:
        job.thumb_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ThumbnailError(f"Failed to generate thumbnail: {exc}") from exc

    cmd = build_thumbnail_command(settings, job.video_path, job.thumb_path, job.timestamp)
    logger.debug("thumbnail: %s", command_as_string(cmd))

    try:
        result = subprocess.run(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        )
    except OSError as exc:
        raise ThumbnailError(f"Failed to generate thumbnail: {exc}") from exc

    if result.returncode != 0:
        _remove_partial(job.thumb_path)
        raise ThumbnailError(
            f"Failed to generate thumbnail: ffmpeg exited with code "
            f"{result.returncode}: {tool_diagnostic(result.stderr)}"
        )

    # Seeking past the last frame exits 0 with nothing written.
    if not job.thumb_path.exists() or job.thumb_path.stat().st_size == 0:
        _remove_partial(job.thumb_path)
        raise ThumbnailError(
            f"Failed to generate thumbnail: no frame written at {job.timestamp:.3f}s"
        )


def _remove_partial(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.warning("could not remove partial thumbnail %s: %s", path, exc)
