import threading
from itertools import cycle

import pytest

from qmcompass.analysis.calibration import CalibrationTracker
from qmcompass.core.calibration_session import (
    DEFAULT_DURATION_SECONDS,
    CalibrationSession,
)
from qmcompass.core.errors import (
    DegenerateCalibrationWarning,
    InvalidConfiguration,
    IoFailure,
)
from qmcompass.core.models import CalibrationProgress, Vector3
from qmcompass.sensors.qmc5883l import RepeatingTransport, SequenceTransport


class FakeClock:
    """Monotonic clock that advances by ``step`` on every call."""

    def __init__(self, step: float = 1.0) -> None:
        self.step = step
        self.now = 0.0

    def __call__(self) -> float:
        value = self.now
        self.now += self.step
        return value


class RecordingSink:
    def __init__(self) -> None:
        self.events: list[tuple[float, bool]] = []

    def on_progress(self, progress: float, changed: bool) -> None:
        self.events.append((progress, changed))


ROTATION = [
    Vector3(100, 0, 0),
    Vector3(-100, 50, 0),
    Vector3(0, -50, 0),
    Vector3(50, 10, 0),
]


def test_emits_initial_and_final_events() -> None:
    session = CalibrationSession(
        CalibrationTracker(),
        SequenceTransport(cycle([Vector3(1, 2, 3), Vector3(3, 4, 3)])),
        clock=FakeClock(),
    )
    events = []
    with pytest.warns(DegenerateCalibrationWarning):
        session.run(3, lambda p, c: events.append((p, c)))

    assert events[0] == (0.0, True)
    assert events[-1] == (1.0, False)
    progress = [p for p, _ in events[1:-1]]
    assert progress == pytest.approx([1 / 3, 2 / 3, 1.0])
    assert progress == sorted(progress)


def test_commits_fit_and_clamps_flat_axis() -> None:
    tracker = CalibrationTracker()
    session = CalibrationSession(
        tracker, SequenceTransport(cycle(ROTATION)), clock=FakeClock()
    )

    with pytest.warns(DegenerateCalibrationWarning):
        fit = session.run(3)

    assert tracker.state.minimum == [-100, -50, 0]
    assert tracker.state.maximum == [100, 50, 0]
    assert tuple(fit.offset) == (0.0, 0.0, 0.0)
    assert fit.scale.x == pytest.approx(0.5)
    assert fit.scale.y == pytest.approx(1.0)
    assert tracker.get_scale(2) == 1.0
    assert fit.degenerate_axes == (2,)


def test_changed_flags_follow_new_extrema() -> None:
    sink = RecordingSink()
    session = CalibrationSession(
        CalibrationTracker(), SequenceTransport(cycle(ROTATION)), clock=FakeClock()
    )
    with pytest.warns(DegenerateCalibrationWarning):
        session.run(3, sink)
    # Seeded from (100, 0, 0); the last sample stays inside the tracked range.
    assert [c for _, c in sink.events] == [True, True, True, False, False]


def test_zero_duration_uses_default() -> None:
    session = CalibrationSession(
        CalibrationTracker(), RepeatingTransport(Vector3(1, 1, 1)), clock=FakeClock()
    )
    with pytest.warns(DegenerateCalibrationWarning):
        events = list(session.events(0))
    assert len(events) == int(DEFAULT_DURATION_SECONDS) + 2
    assert events[-1] == CalibrationProgress(1.0, False)


def test_negative_duration_rejected() -> None:
    session = CalibrationSession(CalibrationTracker(), RepeatingTransport(Vector3(0, 0, 0)))
    with pytest.raises(InvalidConfiguration):
        session.run(-1)


def test_failed_reads_are_skipped() -> None:
    transport = SequenceTransport([Vector3(1, 2, 3), None, Vector3(5, 2, 3)])
    session = CalibrationSession(CalibrationTracker(), transport, clock=FakeClock())
    with pytest.warns(DegenerateCalibrationWarning):
        events = list(session.events(3))

    assert session.samples == 2
    assert session.failed_reads == 2
    assert [e.changed for e in events] == [True, False, True, False, False]
    assert session.tracker.state.maximum == [5, 2, 3]


def test_seed_failure_propagates() -> None:
    tracker = CalibrationTracker()
    tracker.set_offsets(7.0, 7.0, 7.0)
    session = CalibrationSession(tracker, SequenceTransport([None]), clock=FakeClock())
    with pytest.raises(IoFailure):
        session.run(1)
    assert tracker.get_offset(0) == 7.0


def test_cancel_stops_after_current_iteration() -> None:
    cancel = threading.Event()
    cancel.set()
    session = CalibrationSession(
        CalibrationTracker(), RepeatingTransport(Vector3(4, 4, 4)), clock=FakeClock(0.001)
    )
    with pytest.warns(DegenerateCalibrationWarning):
        events = list(session.events(60, cancel=cancel))
    assert len(events) == 3
    assert events[-1] == CalibrationProgress(1.0, False)
    assert session.fit is not None


def test_session_resets_previous_calibration() -> None:
    tracker = CalibrationTracker()
    tracker.set_offsets(50.0, 50.0, 50.0)
    tracker.set_scales(2.0, 2.0, 2.0)
    transport = SequenceTransport(
        cycle([Vector3(-10, -20, -30), Vector3(10, 20, 30)])
    )
    fit = CalibrationSession(tracker, transport, clock=FakeClock()).run(2)
    assert tuple(fit.offset) == (0.0, 0.0, 0.0)
    assert fit.scale.y == pytest.approx(1.0)
    assert tracker.offset == fit.offset


def test_records_elapsed_time_from_injected_clock() -> None:
    session = CalibrationSession(
        CalibrationTracker(), RepeatingTransport(Vector3(2, 2, 2)), clock=FakeClock(0.5)
    )
    with pytest.warns(DegenerateCalibrationWarning):
        session.run(2)
    assert session.elapsed == pytest.approx(2.0)
    assert session.samples == 5
