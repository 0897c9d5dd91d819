"""
normalizer.errors
~~~~~~~~~~~~~~~~~
Exception types raised by the engines.

Only PreconditionError is fatal. Everything else is caught at the job
boundary and ends up as a line in the run summary.
"""

from __future__ import annotations

from pathlib import Path


class NormalizeError(Exception):
    """Base class for everything this package raises on purpose."""


class PreconditionError(NormalizeError):
    """The run cannot start: missing root, missing tools."""


class WalkError(NormalizeError):
    """A directory could not be listed."""

    def __init__(self, path: Path, message: str):
        super().__init__(message)
        self.path = path
        self.message = message


class TranscodeError(NormalizeError):
    pass


class ProbeError(NormalizeError):
    pass


class ThumbnailError(NormalizeError):
    pass


def tool_diagnostic(stderr: str, max_lines: int = 5) -> str:
    """Last few non-empty lines of a tool's stderr, joined for one-line reports."""
    lines = [line.strip() for line in stderr.splitlines() if line.strip()]
    return " | ".join(lines[-max_lines:])
