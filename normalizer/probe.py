"""
normalizer.probe
~~~~~~~~~~~~~~~~
Thin wrapper around the ffprobe CLI. No Qt, no side effects.
"""

from __future__ import annotations

import logging
import math
import subprocess
from pathlib import Path

from normalizer.command_builder import build_probe_command, command_as_string
from normalizer.config import Settings
from normalizer.errors import ProbeError, tool_diagnostic

logger = logging.getLogger(__name__)


# ── Public API ────────────────────────────────────────────────────────────────

def probe_duration(settings: Settings, file: Path) -> float:
    """
    Run ffprobe on *file* and return its duration in seconds.

    Raises:
        ProbeError – ffprobe could not be launched, exited non-zero, or
                     printed something that is not a non-negative number
    """
    cmd = build_probe_command(settings, file)
    logger.debug("probe: %s", command_as_string(cmd))

    try:
        result = subprocess.run(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        )
    except OSError as exc:
        raise ProbeError(f"Failed to get video duration: {exc}") from exc

    if result.returncode != 0:
        raise ProbeError(
            f"Failed to get video duration: ffprobe exited with code "
            f"{result.returncode}: {tool_diagnostic(result.stderr)}"
        )

    return parse_duration(result.stdout)


def get_duration(settings: Settings, file: Path) -> float:
    """
    Convenience shortcut for progress reporting.
    Returns 0.0 if the duration cannot be determined.
    """
    try:
        return probe_duration(settings, file)
    except ProbeError as exc:
        logger.debug("duration unknown for %s: %s", file, exc)
        return 0.0


def parse_duration(output: str) -> float:
    """
    Parse ffprobe's ``nokey=1`` output, e.g. ``"10.000000\\n"``.
    ffprobe prints ``N/A`` for streams without a container duration.
    """
    text = output.strip()
    try:
        duration = float(text)
    except ValueError:
        raise ProbeError(f"Failed to get video duration: unparsable output {text!r}") from None

    if math.isnan(duration) or math.isinf(duration) or duration < 0:
        raise ProbeError(f"Failed to get video duration: invalid value {text!r}")
    return duration
