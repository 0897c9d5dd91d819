from .models import FileEntry, TranscodeJob, ThumbnailJob, RunResult, JobStatus
from .config import Settings, load_settings
from .errors import (
    NormalizeError, PreconditionError, WalkError,
    TranscodeError, ProbeError, ThumbnailError,
)
from .scanner import walk
from .transcoder import normalize
from .thumbnails import thumbnail
from .pipeline import PipelineRunner, check_preconditions

__all__ = [
    "FileEntry", "TranscodeJob", "ThumbnailJob", "RunResult", "JobStatus",
    "Settings", "load_settings",
    "NormalizeError", "PreconditionError", "WalkError",
    "TranscodeError", "ProbeError", "ThumbnailError",
    "walk",
    "normalize",
    "thumbnail",
    "PipelineRunner", "check_preconditions",
]
