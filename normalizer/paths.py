"""
normalizer.paths
~~~~~~~~~~~~~~~~
Single source of truth for the external tool binaries and the path
arithmetic shared by the engines. Import these instead of building paths
by hand anywhere else.
"""

from __future__ import annotations

import os
import shutil
from pathlib import Path

# Project root = the directory that contains main.py
PROJECT_ROOT = Path(__file__).resolve().parent.parent

# A checkout-local bin/ wins over $PATH, so a pinned ffmpeg build can be
# dropped next to main.py.
BIN_DIR = PROJECT_ROOT / "bin"


def find_binary(name: str) -> Path:
    """
    Resolve *name* ("ffmpeg", "ffprobe") to a path.

    Lookup order: ``bin/<name>`` next to main.py, then ``$PATH``. When
    neither has it the bare name comes back, and validate_binaries() will
    report it.
    """
    local = BIN_DIR / name
    if local.exists():
        return local
    found = shutil.which(name)
    return Path(found) if found else Path(name)


def validate_binaries(*binaries: Path) -> list[str]:
    """
    Return a list of error strings for any missing/non-executable binaries.
    Empty list means all good.
    """
    errors: list[str] = []
    for binary in binaries:
        if not binary.exists():
            errors.append(f"Binary not found: {binary}")
        elif not binary.is_file():
            errors.append(f"Not a file: {binary}")
        elif not os.access(binary, os.X_OK):
            errors.append(f"Not executable: {binary}")
    return errors


# ── Output path rules ─────────────────────────────────────────────────────────

def build_output_path(input_file: Path, video_extension: str) -> Path:
    """
    Canonical output sits next to the input, extension swapped.

        /media/a/clip.mov  →  /media/a/clip.mp4
    """
    return input_file.with_name(input_file.stem + video_extension)


def build_temp_path(output_file: Path, temp_suffix: str) -> Path:
    """/media/a/clip.mp4  →  /media/a/clip.mp4.tmp"""
    return output_file.with_name(output_file.name + temp_suffix)


def build_thumbnail_path(
    video_file: Path,
    root: Path,
    thumb_root: Path,
    thumbnail_extension: str,
) -> Path:
    """
    Thumbnails mirror the video's directory under the thumbnail root.
    The listing API looks them up with exactly this rule.

        root       = /media
        thumb_root = /media/.thumb
        video_file = /media/b/clip.mp4
        →  /media/.thumb/b/clip.jpg
    """
    relative = video_file.relative_to(root)
    return thumb_root / relative.parent / (relative.stem + thumbnail_extension)
