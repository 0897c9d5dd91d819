"""
normalizer.transcoder
~~~~~~~~~~~~~~~~~~~~~
Re-encodes one legacy file into the canonical container.

The output only ever appears under its final name complete: ffmpeg writes
to ``<output>.tmp`` and a single ``os.replace`` publishes it. The temp
file doubles as the busy marker for overlapping runs against the same
tree:

    temp missing               → claim it (O_EXCL) and encode
    temp touched recently      → someone is encoding it, skip
    temp older than the limit  → leftover from a crash, remove and claim
"""

from __future__ import annotations

import logging
import os
import subprocess
import threading
import time
from pathlib import Path
from typing import Callable

from normalizer.command_builder import build_transcode_command, command_as_string
from normalizer.config import Settings
from normalizer.errors import TranscodeError, tool_diagnostic
from normalizer.models import JobStatus, TranscodeJob
from normalizer.paths import build_output_path, build_temp_path
from normalizer.probe import get_duration

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]


# ── Public API ────────────────────────────────────────────────────────────────

def normalize(
    input_path: Path,
    settings: Settings,
    on_progress: ProgressCallback | None = None,
) -> TranscodeJob:
    """
    Transcode *input_path* next to itself with the canonical extension.

    Never raises for a per-file problem: the returned job is
    SKIPPED_EXISTS, SKIPPED_BUSY, SUCCESS or FAILED (``job.error`` set).
    KeyboardInterrupt still propagates, after the temp file is removed.
    """
    output_path = build_output_path(input_path, settings.video_extension)
    job = TranscodeJob(
        input_path=input_path,
        output_path=output_path,
        temp_path=build_temp_path(output_path, settings.temp_suffix),
    )

    if job.output_path.exists():
        logger.debug("skip %s: %s exists", input_path, job.output_path.name)
        job.status = JobStatus.SKIPPED_EXISTS
        return job

    if job.temp_path.exists():
        if not _reclaim_stale(job.temp_path, settings.stale_temp_seconds):
            logger.info("skip %s: %s in progress elsewhere", input_path, job.temp_path.name)
            job.status = JobStatus.SKIPPED_BUSY
            return job

    try:
        _claim(job.temp_path)
    except FileExistsError:
        # Lost the race to another invocation between the check and here.
        job.status = JobStatus.SKIPPED_BUSY
        return job
    except OSError as exc:
        return _fail(job, TranscodeError(f"Transcode failed: cannot create {job.temp_path.name}: {exc}"))

    job.status = JobStatus.RUNNING
    try:
        duration = get_duration(settings, input_path) if on_progress else 0.0
        cmd = build_transcode_command(settings, input_path, job.temp_path)
        logger.info("running %s", command_as_string(cmd))
        _run_ffmpeg(cmd, duration, on_progress)
        os.replace(job.temp_path, job.output_path)
    except TranscodeError as exc:
        _discard(job.temp_path)
        return _fail(job, exc)
    except OSError as exc:
        _discard(job.temp_path)
        return _fail(job, TranscodeError(f"Transcode failed: {exc}"))
    except BaseException:
        _discard(job.temp_path)
        raise

    job.status = JobStatus.SUCCESS
    return job


# ── Temp file handling ────────────────────────────────────────────────────────

def _claim(temp_path: Path) -> None:
    """Create *temp_path* empty, failing if it already exists."""
    fd = os.open(temp_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
    os.close(fd)


def _reclaim_stale(temp_path: Path, max_age: float) -> bool:
    """
    Remove *temp_path* if nothing has written to it for *max_age* seconds.
    Returns True when the path is free to claim.
    """
    try:
        age = time.time() - temp_path.stat().st_mtime
    except FileNotFoundError:
        return True
    if age < max_age:
        return False

    logger.warning("removing stale %s (untouched for %.0fs)", temp_path, age)
    _discard(temp_path)
    return True


def _discard(temp_path: Path) -> None:
    try:
        temp_path.unlink()
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.warning("could not remove %s: %s", temp_path, exc)


def _fail(job: TranscodeJob, error: TranscodeError) -> TranscodeJob:
    logger.error("%s: %s", job.input_path, error)
    job.status = JobStatus.FAILED
    job.error = error
    return job


# ── ffmpeg process ────────────────────────────────────────────────────────────

def _run_ffmpeg(
    cmd: list[str],
    duration: float,
    on_progress: ProgressCallback | None,
) -> None:
    try:
        process = subprocess.Popen(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        )
    except OSError as exc:
        raise TranscodeError(f"Transcode failed: cannot start ffmpeg: {exc}") from exc

    # ffmpeg writes encoding info to stderr. If we only read stdout, the
    # stderr pipe buffer fills up, ffmpeg blocks on it and stdout stalls.
    stderr_lines: list[str] = []

    def _drain_stderr():
        for line in process.stderr:
            stripped = line.rstrip()
            if stripped:
                stderr_lines.append(stripped)

    stderr_thread = threading.Thread(target=_drain_stderr, daemon=True)
    stderr_thread.start()

    try:
        for line in process.stdout:
            pct = _parse_progress_line(line.strip(), duration)
            if pct is not None and on_progress is not None:
                on_progress(pct)
        process.wait()
    except BaseException:
        process.kill()
        process.wait()
        raise
    finally:
        stderr_thread.join()

    if process.returncode != 0:
        diagnostic = tool_diagnostic("\n".join(stderr_lines))
        raise TranscodeError(
            f"Transcode failed: ffmpeg exited with code {process.returncode}: {diagnostic}"
        )


# ── Progress line parser ──────────────────────────────────────────────────────

def _parse_progress_line(line: str, duration: float) -> float | None:
    if not line.startswith("out_time=") or duration <= 0:
        return None

    seconds = _hhmmss_to_seconds(line.split("=", 1)[1])
    return max(0.0, min(seconds / duration * 100.0, 100.0))


def _hhmmss_to_seconds(time_str: str) -> float:
    try:
        h, m, s = time_str.split(":")
        return float(h) * 3600 + float(m) * 60 + float(s)
    except ValueError:
        return 0.0
