"""
normalizer.command_builder
~~~~~~~~~~~~~~~~~~~~~~~~~~
Builds ffmpeg / ffprobe CLI commands as plain list[str].

Keeping command construction separate means you can:
  - log / print the exact command before running it
  - paste it straight into a terminal for debugging
  - unit-test flag generation without running any process

Paths are always single argv items. Nothing here goes through a shell,
so quotes, spaces and ``#`` in file names need no escaping.
"""

from __future__ import annotations

import shlex
from pathlib import Path

from normalizer.config import Settings


def build_transcode_command(
    settings: Settings,
    input_file: Path,
    output_file: Path,
) -> list[str]:
    """
    Build the full ffmpeg command for re-encoding one file.

    The command structure is:
        ffmpeg
          -nostdin               ← never wait on the terminal
          -i <input>
          -nostats               ← suppress human-readable stats on stderr
          -progress pipe:1       ← machine-readable key=value progress on stdout
          -c:v libx264 -preset medium -crf 23
          -c:a aac
          -movflags +faststart   ← moov atom up front for progressive download
          -f mp4                 ← output is a .tmp name, so say the container
          -y                     ← the temp file was pre-claimed empty
          <output>
    """
    return [
        str(settings.ffmpeg_bin),
        "-nostdin",
        "-i", str(input_file),
        "-nostats",
        "-progress", "pipe:1",
        "-c:v", settings.video_codec,
        "-preset", settings.preset,
        "-crf", str(settings.crf),
        "-c:a", settings.audio_codec,
        "-movflags", "+faststart",
        "-f", "mp4",
        "-y",
        str(output_file),
    ]


def build_probe_command(settings: Settings, input_file: Path) -> list[str]:
    """ffprobe printing nothing but the container duration in seconds."""
    return [
        str(settings.ffprobe_bin),
        "-v", "error",
        "-show_entries", "format=duration",
        "-of", "default=noprint_wrappers=1:nokey=1",
        str(input_file),
    ]


def build_thumbnail_command(
    settings: Settings,
    video_file: Path,
    thumb_file: Path,
    timestamp: float,
) -> list[str]:
    """
    Seek first (fast input seek), then grab one frame and scale it to
    the configured width; ``-1`` keeps the aspect ratio. ``-update 1``
    makes the image muxer write the literal file name, so a ``%d`` in it
    is not read as a frame-number pattern.
    """
    return [
        str(settings.ffmpeg_bin),
        "-nostdin",
        "-v", "error",
        "-ss", f"{timestamp:.3f}",
        "-i", str(video_file),
        "-vf", f"scale={settings.thumbnail_width}:-1",
        "-vframes", "1",
        "-q:v", "2",
        "-update", "1",
        "-y",
        str(thumb_file),
    ]


def command_as_string(cmd: list[str]) -> str:
    """Human-readable, copy-pasteable version of the command for logging."""
    return shlex.join(cmd)
