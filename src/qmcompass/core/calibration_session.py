"""Interactive calibration run: sample while the user rotates the sensor."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Iterator, Optional, Protocol, Union

from ..analysis.calibration import CalibrationTracker
from .errors import InvalidConfiguration, IoFailure
from .models import CalibrationFit, CalibrationProgress

logger = logging.getLogger(__name__)

DEFAULT_DURATION_SECONDS = 10.0

Clock = Callable[[], float]


class ProgressSink(Protocol):
    """Event sink notified synchronously for every progress event."""

    def on_progress(self, progress: float, changed: bool) -> None:  # pragma: no cover - protocol
        ...


ProgressCallback = Union[ProgressSink, Callable[[float, bool], None]]


def _dispatch(target: ProgressCallback | None, event: CalibrationProgress) -> None:
    if target is None:
        return
    if hasattr(target, "on_progress"):
        target.on_progress(event.progress, event.changed)  # type: ignore[union-attr]
    else:
        target(event.progress, event.changed)  # type: ignore[operator]


class CalibrationSession:
    """
    Blocking calibration loop over a transport and a :class:`CalibrationTracker`.

    The loop polls ``clock`` and the transport back to back without sleeping,
    so the calling thread is busy for the whole duration unless ``cancel`` is
    set from another thread.  Failed reads are skipped.
    """

    def __init__(
        self,
        tracker: CalibrationTracker,
        transport,
        *,
        clock: Clock = time.monotonic,
    ) -> None:
        self.tracker = tracker
        self.transport = transport
        self.clock = clock
        self.fit: CalibrationFit | None = None
        self.samples = 0
        self.failed_reads = 0
        self.elapsed = 0.0

    @staticmethod
    def resolve_duration(duration_seconds: float) -> float:
        duration = float(duration_seconds)
        if duration < 0:
            raise InvalidConfiguration(
                f"calibration duration must be >= 0, got {duration_seconds}"
            )
        if duration == 0:
            return DEFAULT_DURATION_SECONDS
        return duration

    def events(
        self,
        duration_seconds: float,
        cancel: Optional[threading.Event] = None,
    ) -> Iterator[CalibrationProgress]:
        """
        Run the session lazily, yielding one event per step.

        The first event is ``(0.0, True)`` and the last is ``(1.0, False)``;
        the fitted offsets/scales are committed just before the last event.
        """
        duration = self.resolve_duration(duration_seconds)

        seed = self.transport.read_raw_sample()
        self.tracker.reset()
        self.tracker.seed(seed)
        self.samples = 1
        self.failed_reads = 0
        self.elapsed = 0.0

        start = self.clock()
        yield CalibrationProgress(0.0, True)

        while True:
            self.elapsed = max(self.clock() - start, 0.0)
            elapsed = min(self.elapsed, duration)
            progress = elapsed / duration
            try:
                raw = self.transport.read_raw_sample()
            except IoFailure as exc:
                self.failed_reads += 1
                logger.debug("Skipping failed calibration read: %s", exc)
                changed = False
            else:
                self.samples += 1
                changed = self.tracker.observe(raw)
            yield CalibrationProgress(progress, changed)

            if elapsed >= duration:
                break
            if cancel is not None and cancel.is_set():
                logger.info("Calibration cancelled at %.0f%%", progress * 100)
                break

        state = self.tracker.state
        self.fit = self.tracker.derive_from_min_max(
            state.minimum[0],
            state.maximum[0],
            state.minimum[1],
            state.maximum[1],
            state.minimum[2],
            state.maximum[2],
        )
        logger.info(
            "Calibration finished after %.1f s, %d samples (%d failed reads): offset=%s scale=%s",
            self.elapsed,
            self.samples,
            self.failed_reads,
            tuple(self.fit.offset),
            tuple(self.fit.scale),
        )
        yield CalibrationProgress(1.0, False)

    def run(
        self,
        duration_seconds: float,
        on_progress: ProgressCallback | None = None,
        cancel: Optional[threading.Event] = None,
    ) -> CalibrationFit:
        """Run to completion, dispatching every event to ``on_progress``."""
        for event in self.events(duration_seconds, cancel):
            _dispatch(on_progress, event)
        assert self.fit is not None
        return self.fit
