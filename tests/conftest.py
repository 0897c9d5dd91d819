import stat
from pathlib import Path

import pytest
from PySide6.QtCore import QCoreApplication

from normalizer.config import Settings


# Stand-ins for the real tools. A "video" is a text file holding its
# duration, so ffprobe just prints the file and a transcode just copies it.
# Inputs whose name contains "broken" fail, "interrupt" dies mid-write.

FAKE_FFPROBE = r"""#!/bin/sh
for a in "$@"; do f="$a"; done
case "$f" in
  *broken*) echo "$f: Invalid data found when processing input" >&2; exit 1 ;;
esac
cat "$f"
"""

FAKE_FFMPEG = r"""#!/bin/sh
log="$(dirname "$0")/ffmpeg.log"
for a in "$@"; do printf '%s\n' "$a" >> "$log"; done
echo "--END--" >> "$log"

prev=""; in=""; out=""
for a in "$@"; do
  if [ "$prev" = "-i" ]; then in="$a"; fi
  prev="$a"; out="$a"
done

case "$in" in
  *broken*) echo "$in: Invalid data found when processing input" >&2; exit 1 ;;
  *interrupt*) printf 'partial' > "$out"; echo "Exiting normally, received signal 2." >&2; exit 255 ;;
esac

case " $* " in
  *" -vframes "*) printf 'JPEG' > "$out" ;;
  *) echo "out_time=00:00:05.000000"; echo "progress=end"; cat "$in" > "$out" ;;
esac
"""


class FakeTools:

    def __init__(self, bin_dir: Path):
        self.bin_dir = bin_dir
        self.ffmpeg = self._install("ffmpeg", FAKE_FFMPEG)
        self.ffprobe = self._install("ffprobe", FAKE_FFPROBE)
        self.log = bin_dir / "ffmpeg.log"

    def _install(self, name: str, script: str) -> Path:
        path = self.bin_dir / name
        path.write_text(script)
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return path

    def ffmpeg_calls(self) -> list[list[str]]:
        if not self.log.exists():
            return []
        calls, current = [], []
        for line in self.log.read_text().splitlines():
            if line == "--END--":
                calls.append(current)
                current = []
            else:
                current.append(line)
        return calls

    def transcode_calls(self) -> list[list[str]]:
        return [c for c in self.ffmpeg_calls() if "-vframes" not in c]

    def thumbnail_calls(self) -> list[list[str]]:
        return [c for c in self.ffmpeg_calls() if "-vframes" in c]


@pytest.fixture(scope="session", autouse=True)
def qapp():
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture()
def tools(tmp_path) -> FakeTools:
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    return FakeTools(bin_dir)


@pytest.fixture()
def media_root(tmp_path) -> Path:
    root = tmp_path / "media"
    root.mkdir()
    return root


@pytest.fixture()
def settings(media_root, tools) -> Settings:
    return Settings(root=media_root, ffmpeg_bin=tools.ffmpeg, ffprobe_bin=tools.ffprobe)

