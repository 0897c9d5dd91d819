"""
normalizer.scanner
~~~~~~~~~~~~~~~~~~
Lazy directory walk. No Qt, no subprocess.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, Iterable, Iterator

from normalizer.errors import WalkError
from normalizer.models import FileEntry

logger = logging.getLogger(__name__)

HIDDEN_PREFIX = "."


# ── Public API ────────────────────────────────────────────────────────────────

def walk(
    root: Path,
    excluded: Iterable[str] = (),
    on_error: Callable[[WalkError], None] | None = None,
) -> Iterator[FileEntry]:
    """
    Yield every regular file under *root*, depth-first in name order.

    Skipped together with everything beneath them:
      - entries whose name starts with ``.``
      - directories whose first path segment below *root* is in *excluded*
      - symlinks, whether they point at files or directories

    A directory that cannot be listed is handed to *on_error* as a
    WalkError and the walk carries on with its siblings. Without a
    handler the error is only logged.

    Each call starts a fresh traversal.
    """
    excluded = frozenset(excluded)
    stack: list[Path] = [root]

    while stack:
        directory = stack.pop()
        try:
            entries = _list_directory(directory)
        except OSError as exc:
            error = WalkError(directory, exc.strerror or str(exc))
            logger.warning("cannot list %s: %s", directory, error.message)
            if on_error is not None:
                on_error(error)
            continue

        subdirs: list[Path] = []
        for entry in entries:
            if entry.name.startswith(HIDDEN_PREFIX):
                continue
            path = Path(entry.path)
            try:
                if entry.is_dir(follow_symlinks=False):
                    if not is_excluded(path, root, excluded):
                        subdirs.append(path)
                elif entry.is_file(follow_symlinks=False):
                    yield FileEntry.from_path(path, root)
            except OSError as exc:
                logger.warning("cannot stat %s: %s", path, exc)

        # Reversed so the alphabetically first subdirectory is walked next.
        stack.extend(reversed(subdirs))


def is_excluded(directory: Path, root: Path, excluded: frozenset[str]) -> bool:
    """True if the first segment of *directory* below *root* is excluded."""
    parts = directory.relative_to(root).parts
    return bool(parts) and parts[0] in excluded


# ── Internal helpers ──────────────────────────────────────────────────────────

def _list_directory(directory: Path) -> list[os.DirEntry]:
    with os.scandir(directory) as it:
        return sorted(it, key=lambda e: e.name)
