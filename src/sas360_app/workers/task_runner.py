"""Run stitching jobs in background threads."""
from __future__ import annotations

import traceback
from typing import Any, Callable, Optional

import numpy as np
from PyQt6.QtCore import QObject, QRunnable, QThreadPool, pyqtSignal

STITCH_FAILED_MESSAGE = "Failed to create panorama"


class StitchSignals(QObject):
    """Signals available from a background stitch."""

    finished = pyqtSignal(object)
    failed = pyqtSignal(str)


class StitchTask(QRunnable):
    """Wrap a stitching callable for execution in the Qt thread pool.

    The callable follows the stitcher convention of returning ``None`` on
    failure, which is reported through ``failed`` just like an exception.
    """

    def __init__(self, fn: Callable[..., Optional[np.ndarray]], *args: Any, **kwargs: Any) -> None:
        super().__init__()
        self.fn = fn
        self.args = args
        self.kwargs = kwargs
        self.signals = StitchSignals()

    def run(self) -> None:
        try:
            result = self.fn(*self.args, **self.kwargs)
        except Exception as exc:  # noqa: BLE001
            tb = traceback.format_exc()
            self.signals.failed.emit(f"{exc}\n{tb}")
            return

        if result is None:
            self.signals.failed.emit(STITCH_FAILED_MESSAGE)
        else:
            self.signals.finished.emit(result)


class TaskRunner:
    """Thin wrapper around QThreadPool for convenience."""

    def __init__(self, max_threads: int | None = None) -> None:
        self._pool = QThreadPool.globalInstance()
        if max_threads is not None:
            self._pool.setMaxThreadCount(max_threads)

    def submit(self, task: StitchTask) -> None:
        self._pool.start(task)
