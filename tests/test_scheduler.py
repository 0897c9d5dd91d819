import pytest
from helpers import write_video

from normalizer.pipeline import PipelineRunner
from normalizer.scheduler import IntervalScheduler


@pytest.fixture()
def scheduler(settings, qapp):
    sched = IntervalScheduler(PipelineRunner(settings), interval_seconds=60)
    yield sched
    sched.stop()


def test_run_once_emits_the_result(scheduler, media_root):
    write_video(media_root, "a/clip.mov")
    finished = []
    scheduler.pass_finished.connect(finished.append)

    result = scheduler.run_once()

    assert finished == [result]
    assert len(result.transcoded) == 1


def test_stop_request_ends_the_pass_early(settings, qapp, media_root, tools):
    write_video(media_root, "a/one.mov")
    write_video(media_root, "b/two.mov")
    runner = PipelineRunner(settings)
    sched = IntervalScheduler(runner, interval_seconds=60)
    runner.transcoded.connect(lambda src, dst: runner.request_stop())

    result = sched.run_once()

    assert result.interrupted
    assert [str(src) for src, _ in result.transcoded] == ["a/one.mov"]
    assert tools.thumbnail_calls() == []


def test_precondition_failure_keeps_the_scheduler_alive(scheduler, settings, tmp_path):
    settings.root = tmp_path / "unmounted"
    failures = []
    scheduler.pass_failed.connect(failures.append)

    assert scheduler.run_once() is None
    assert len(failures) == 1
    assert "does not exist" in failures[0]


def test_start_and_stop(scheduler):
    scheduler.start(run_immediately=False)
    assert scheduler.is_active
    scheduler.stop()
    assert not scheduler.is_active


def test_interval_must_be_positive(settings, qapp):
    with pytest.raises(ValueError):
        IntervalScheduler(PipelineRunner(settings), interval_seconds=0)
