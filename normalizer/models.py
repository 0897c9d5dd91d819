"""
normalizer.models
~~~~~~~~~~~~~~~~~
Pure dataclasses, no Qt and no I/O.
These travel freely between the engines, the runner and the reporter.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path


# ── Enums ─────────────────────────────────────────────────────────────────────

class JobStatus(Enum):
    PENDING        = auto()  # created, nothing checked yet
    SKIPPED_EXISTS = auto()  # artifact already there
    SKIPPED_BUSY   = auto()  # a fresh temp file says someone else is on it
    RUNNING        = auto()  # external tool launched
    SUCCESS        = auto()
    FAILED         = auto()

    @property
    def is_terminal(self) -> bool:
        return self not in (JobStatus.PENDING, JobStatus.RUNNING)

    @property
    def is_skip(self) -> bool:
        return self in (JobStatus.SKIPPED_EXISTS, JobStatus.SKIPPED_BUSY)


# ── Walker output ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class FileEntry:
    """A regular file found under the root."""
    path: Path          # absolute
    extension: str      # lower-cased, with the dot
    relative: Path      # relative to the root

    @classmethod
    def from_path(cls, path: Path, root: Path) -> FileEntry:
        return cls(
            path=path,
            extension=path.suffix.lower(),
            relative=path.relative_to(root),
        )


# ── Jobs ──────────────────────────────────────────────────────────────────────

@dataclass
class TranscodeJob:
    """
    One legacy file on its way to the canonical container.

        input_path  = /media/a/clip.mov
        output_path = /media/a/clip.mp4
        temp_path   = /media/a/clip.mp4.tmp
    """
    input_path: Path
    output_path: Path
    temp_path: Path
    status: JobStatus = JobStatus.PENDING
    error: Exception | None = None


@dataclass
class ThumbnailJob:
    """One preview image for one canonical video."""
    video_path: Path
    thumb_path: Path
    timestamp: float = 0.0         # seconds into the video
    status: JobStatus = JobStatus.PENDING
    error: Exception | None = None


# ── Run result ────────────────────────────────────────────────────────────────

@dataclass
class RunResult:
    """
    Everything one invocation did. Paths are stored relative to the root
    so the summary reads the same wherever the tree is mounted.
    """
    root: Path
    transcoded: list[tuple[Path, Path]] = field(default_factory=list)
    thumbnails: list[Path]              = field(default_factory=list)
    errors: list[tuple[Path, str]]      = field(default_factory=list)
    skipped_transcodes: int = 0
    skipped_thumbnails: int = 0
    interrupted: bool = False         # the pass was stopped early
    started_at: float  = field(default_factory=time.monotonic)
    finished_at: float | None = None

    def relative(self, path: Path) -> Path:
        try:
            return path.relative_to(self.root)
        except ValueError:
            return path

    def record_transcode(self, job: TranscodeJob) -> None:
        if job.status is JobStatus.SUCCESS:
            self.transcoded.append(
                (self.relative(job.input_path), self.relative(job.output_path))
            )
        elif job.status.is_skip:
            self.skipped_transcodes += 1
        elif job.status is JobStatus.FAILED:
            self.record_error(job.input_path, str(job.error))

    def record_thumbnail(self, job: ThumbnailJob) -> None:
        if job.status is JobStatus.SUCCESS:
            self.thumbnails.append(self.relative(job.thumb_path))
        elif job.status.is_skip:
            self.skipped_thumbnails += 1
        elif job.status is JobStatus.FAILED:
            self.record_error(job.video_path, str(job.error))

    def record_error(self, path: Path, message: str) -> None:
        self.errors.append((self.relative(path), message))

    def finish(self) -> None:
        self.finished_at = time.monotonic()

    @property
    def elapsed(self) -> float:
        end = self.finished_at if self.finished_at is not None else time.monotonic()
        return end - self.started_at
