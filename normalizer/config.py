"""
normalizer.config
~~~~~~~~~~~~~~~~~
Run settings and where they come from.

Priority, lowest first
----------------------
  1. dataclass defaults below
  2. environment, on top of a ``.env`` file found from the working directory
       ROOT_DIR, THUMB_DIR, FFMPEG_BIN, FFPROBE_BIN
  3. JSON config file (``--config``), keys named like the Settings fields
  4. explicit keyword overrides (the CLI flags)
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping

from dotenv import dotenv_values, find_dotenv

from normalizer.errors import PreconditionError
from normalizer.paths import find_binary

DEFAULT_SOURCE_EXTENSIONS = (".mov", ".wmv", ".flv")
DEFAULT_EXCLUDED_DIRS     = ("tags", ".trash", ".thumb")
THUMB_DIR_NAME            = ".thumb"

_PATH_FIELDS  = {"root", "thumb_root", "ffmpeg_bin", "ffprobe_bin"}
_TUPLE_FIELDS = {"source_extensions", "excluded_dirs"}


@dataclass
class Settings:
    root: Path
    thumb_root: Path | None = None     # defaults to <root>/.thumb
    source_extensions: tuple[str, ...] = DEFAULT_SOURCE_EXTENSIONS
    video_extension: str     = ".mp4"
    thumbnail_extension: str = ".jpg"
    excluded_dirs: tuple[str, ...] = DEFAULT_EXCLUDED_DIRS
    thumbnail_width: int     = 160     # height follows the aspect ratio
    temp_suffix: str         = ".tmp"
    stale_temp_seconds: int  = 900     # older temp files are crash leftovers

    # Encoder parameters, fixed per deployment
    video_codec: str = "libx264"
    preset: str      = "medium"
    crf: int         = 23
    audio_codec: str = "aac"

    ffmpeg_bin: Path  = field(default_factory=lambda: find_binary("ffmpeg"))
    ffprobe_bin: Path = field(default_factory=lambda: find_binary("ffprobe"))

    def __post_init__(self):
        self.root = Path(self.root).expanduser().resolve()
        if self.thumb_root is None:
            self.thumb_root = self.root / THUMB_DIR_NAME
        else:
            self.thumb_root = Path(self.thumb_root).expanduser().resolve()
        self.source_extensions = tuple(e.lower() for e in self.source_extensions)
        self.video_extension = self.video_extension.lower()
        self.excluded_dirs = tuple(self.excluded_dirs)
        self.ffmpeg_bin = Path(self.ffmpeg_bin)
        self.ffprobe_bin = Path(self.ffprobe_bin)


# ── Public API ────────────────────────────────────────────────────────────────

def load_settings(
    config_file: Path | None = None,
    environ: Mapping[str, str] | None = None,
    **overrides: Any,
) -> Settings:
    """
    Build Settings from the environment, an optional JSON file and
    keyword overrides. ``None`` overrides are ignored so argparse
    namespaces can be passed straight through.

    Raises:
        PreconditionError – if *config_file* is unreadable or malformed
    """
    if environ is None:
        environ = _dotenv_environ()

    values: dict[str, Any] = _from_environ(environ)
    if config_file is not None:
        values.update(_read_config_file(Path(config_file)))
    values.update({k: v for k, v in overrides.items() if v is not None})
    values.setdefault("root", Path.cwd())

    return _dict_to_settings(values)


# ── Internal helpers ──────────────────────────────────────────────────────────

def _dotenv_environ() -> dict[str, str]:
    """``.env`` from the working directory, overridden by the real environment."""
    dotenv = dotenv_values(find_dotenv(usecwd=True))
    values = {k: v for k, v in dotenv.items() if v is not None}
    values.update(os.environ)
    return values


def _from_environ(environ: Mapping[str, str]) -> dict[str, Any]:
    mapping = {
        "ROOT_DIR":    "root",
        "THUMB_DIR":   "thumb_root",
        "FFMPEG_BIN":  "ffmpeg_bin",
        "FFPROBE_BIN": "ffprobe_bin",
    }
    return {key: environ[var] for var, key in mapping.items() if environ.get(var)}


def _read_config_file(path: Path) -> dict[str, Any]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise PreconditionError(f"Cannot read config file {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise PreconditionError(f"Config file {path} must hold a JSON object")

    known = {f.name for f in fields(Settings)}
    unknown = sorted(set(payload) - known)
    if unknown:
        raise PreconditionError(
            f"Unknown key(s) in config file {path}: {', '.join(unknown)}"
        )
    return payload


def _dict_to_settings(d: dict[str, Any]) -> Settings:
    kwargs: dict[str, Any] = {}
    for key, value in d.items():
        if key in _PATH_FIELDS:
            kwargs[key] = Path(value)
        elif key in _TUPLE_FIELDS:
            kwargs[key] = tuple(value)
        else:
            kwargs[key] = value
    try:
        return Settings(**kwargs)
    except (TypeError, ValueError) as exc:
        raise PreconditionError(f"Invalid settings: {exc}") from exc
