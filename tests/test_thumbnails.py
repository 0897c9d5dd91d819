import pytest
from helpers import write_video

from normalizer.errors import ProbeError, ThumbnailError
from normalizer.models import JobStatus
from normalizer.thumbnails import sample_timestamp, thumbnail


def _seek(call: list[str]) -> str:
    return call[call.index("-ss") + 1]


@pytest.mark.parametrize("duration, expected", [
    (10.0, 5.0),
    (7.0, 3.5),
    (0.0, 0.0),
])
def test_sample_timestamp_is_the_midpoint(duration, expected):
    assert sample_timestamp(duration) == expected


def test_thumbnail_mirrors_directory_under_thumb_root(settings, media_root, tools):
    video = write_video(media_root, "a/b/clip.mp4", duration=10.0)

    job = thumbnail(video, settings)

    assert job.status is JobStatus.SUCCESS
    assert job.thumb_path == media_root / ".thumb" / "a" / "b" / "clip.jpg"
    assert job.thumb_path.read_text() == "JPEG"
    assert job.timestamp == 5.0
    (call,) = tools.thumbnail_calls()
    assert _seek(call) == "5.000"
    assert call[call.index("-vf") + 1] == "scale=160:-1"


def test_zero_length_video_is_sampled_at_zero(settings, media_root, tools):
    job = thumbnail(write_video(media_root, "empty.mp4", duration=0.0), settings)

    assert job.status is JobStatus.SUCCESS
    assert job.timestamp == 0.0
    assert _seek(tools.thumbnail_calls()[0]) == "0.000"


def test_existing_thumbnail_is_skipped(settings, media_root, tools):
    video = write_video(media_root, "clip.mp4")
    existing = media_root / ".thumb" / "clip.jpg"
    existing.parent.mkdir(parents=True)
    existing.write_text("old")

    job = thumbnail(video, settings)

    assert job.status is JobStatus.SKIPPED_EXISTS
    assert existing.read_text() == "old"
    assert tools.ffmpeg_calls() == []


def test_probe_failure_fails_the_thumbnail(settings, media_root, tools):
    job = thumbnail(write_video(media_root, "broken.mp4"), settings)

    assert job.status is JobStatus.FAILED
    assert isinstance(job.error, ProbeError)
    assert not job.thumb_path.exists()
    assert tools.ffmpeg_calls() == []


def test_extraction_failure_removes_partial_output(settings, media_root, tools):
    broken_ffmpeg = tools.bin_dir / "ffmpeg-broken"
    broken_ffmpeg.write_text(
        '#!/bin/sh\nfor a in "$@"; do out="$a"; done\n'
        'printf "half" > "$out"\necho "Conversion failed!" >&2\nexit 1\n'
    )
    broken_ffmpeg.chmod(0o755)
    settings.ffmpeg_bin = broken_ffmpeg

    job = thumbnail(write_video(media_root, "clip.mp4"), settings)

    assert job.status is JobStatus.FAILED
    assert isinstance(job.error, ThumbnailError)
    assert "Conversion failed!" in str(job.error)
    assert not job.thumb_path.exists()


def test_exit_zero_without_a_frame_is_a_failure(settings, media_root, tools):
    silent_ffmpeg = tools.bin_dir / "ffmpeg-silent"
    silent_ffmpeg.write_text("#!/bin/sh\nexit 0\n")
    silent_ffmpeg.chmod(0o755)
    settings.ffmpeg_bin = silent_ffmpeg

    job = thumbnail(write_video(media_root, "clip.mp4"), settings)

    assert job.status is JobStatus.FAILED
    assert "no frame written" in str(job.error)


def test_custom_thumb_root(settings, media_root, tmp_path):
    settings.thumb_root = tmp_path / "thumbs"

    job = thumbnail(write_video(media_root, "a/clip.mp4"), settings)

    assert job.thumb_path == tmp_path / "thumbs" / "a" / "clip.jpg"
    assert job.thumb_path.exists()
