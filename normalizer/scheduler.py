"""
normalizer.scheduler
~~~~~~~~~~~~~~~~~~~~
IntervalScheduler re-runs the whole pipeline on a QTimer, for hosts
without cron. Each tick is a complete, independent pass. A pass runs
inside the timer slot on the event-loop thread, so ticks cannot overlap;
Qt coalesces the ones that fall due during a long pass into one.
"""

from __future__ import annotations

import logging

from PySide6.QtCore import QObject, QTimer, Signal

from normalizer.errors import PreconditionError
from normalizer.models import RunResult
from normalizer.pipeline import PipelineRunner

logger = logging.getLogger(__name__)


class IntervalScheduler(QObject):

    pass_finished = Signal(object)   # RunResult
    pass_failed   = Signal(str)      # precondition message

    def __init__(self, runner: PipelineRunner, interval_seconds: int, parent=None):
        super().__init__(parent)
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._runner = runner
        self._interval_seconds = interval_seconds

        self._timer = QTimer(self)
        self._timer.setInterval(interval_seconds * 1000)
        self._timer.timeout.connect(self.run_once)

    @property
    def interval_seconds(self) -> int:
        return self._interval_seconds

    @property
    def is_active(self) -> bool:
        return self._timer.isActive()

    def start(self, run_immediately: bool = True) -> None:
        logger.info("scheduler: every %ds over %s",
                    self._interval_seconds, self._runner.settings.root)
        self._timer.start()
        if run_immediately:
            QTimer.singleShot(0, self.run_once)

    def stop(self) -> None:
        self._timer.stop()

    def run_once(self) -> RunResult | None:
        try:
            result = self._runner.run()
        except PreconditionError as exc:
            # The root can be an unmounted share for a while; try again next tick.
            logger.error("scheduler: pass aborted: %s", exc)
            self.pass_failed.emit(str(exc))
            return None

        self.pass_finished.emit(result)
        return result
