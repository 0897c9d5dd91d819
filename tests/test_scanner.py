import os
from pathlib import Path

from helpers import write_video

from normalizer import scanner
from normalizer.scanner import walk


def _walked(root: Path, excluded=("tags", ".trash", ".thumb"), on_error=None) -> list[str]:
    return [str(e.relative) for e in walk(root, excluded, on_error=on_error)]


def test_empty_tree(media_root):
    assert _walked(media_root) == []


def test_walk_finds_nested_files_depth_first(media_root):
    write_video(media_root, "z.mov")
    write_video(media_root, "a/clip.mov")
    write_video(media_root, "a/deeper/x.mp4")
    write_video(media_root, "b/clip.mp4")

    assert _walked(media_root) == ["z.mov", "a/clip.mov", "a/deeper/x.mp4", "b/clip.mp4"]


def test_entries_carry_lowercase_extension_and_absolute_path(media_root):
    write_video(media_root, "a/CLIP.MOV")

    (entry,) = list(walk(media_root))
    assert entry.extension == ".mov"
    assert entry.path == media_root / "a" / "CLIP.MOV"
    assert entry.relative == Path("a/CLIP.MOV")


def test_hidden_entries_are_skipped_with_their_subtree(media_root):
    write_video(media_root, ".hidden.mov")
    write_video(media_root, ".cache/clip.mov")
    write_video(media_root, "a/.secret/clip.mov")
    write_video(media_root, "a/visible.mov")

    assert _walked(media_root) == ["a/visible.mov"]


def test_excluded_top_level_directories_are_never_entered(media_root):
    write_video(media_root, "tags/favourites/clip.mov")
    write_video(media_root, "tags/clip.mp4")
    write_video(media_root, "a/tags/clip.mov")

    # Only the first segment counts: a nested "tags" is an ordinary folder.
    assert _walked(media_root) == ["a/tags/clip.mov"]


def test_excluded_name_as_a_file_is_still_visited(media_root):
    (media_root / "tags").write_text("not a directory")
    assert _walked(media_root) == ["tags"]


def test_symlinks_are_not_followed(media_root, tmp_path):
    outside = tmp_path / "outside"
    write_video(outside, "clip.mov")
    write_video(media_root, "real.mov")
    os.symlink(outside, media_root / "linked-dir")
    os.symlink(media_root / "real.mov", media_root / "linked.mov")

    assert _walked(media_root) == ["real.mov"]


def test_unlistable_directory_is_reported_and_walk_continues(media_root, monkeypatch):
    write_video(media_root, "a/clip.mov")
    write_video(media_root, "locked/clip.mov")
    write_video(media_root, "z/clip.mov")

    real_list = scanner._list_directory

    def _list(directory):
        if directory.name == "locked":
            raise PermissionError(13, "Permission denied", str(directory))
        return real_list(directory)

    monkeypatch.setattr(scanner, "_list_directory", _list)

    errors = []
    assert _walked(media_root, on_error=errors.append) == ["a/clip.mov", "z/clip.mov"]
    assert len(errors) == 1
    assert errors[0].path == media_root / "locked"
    assert errors[0].message == "Permission denied"


def test_walk_is_restartable(media_root):
    write_video(media_root, "a/clip.mov")
    write_video(media_root, "b/clip.mov")

    assert _walked(media_root) == _walked(media_root)
