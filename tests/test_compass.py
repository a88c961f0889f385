import pytest

from qmcompass.config import CompassConfig
from qmcompass.core.compass import Compass
from qmcompass.core.errors import (
    DegenerateCalibrationWarning,
    InvalidConfiguration,
    IoFailure,
)
from qmcompass.core.models import Vector3
from qmcompass.sensors.qmc5883l import RepeatingTransport, SequenceTransport


def test_end_to_end_north() -> None:
    compass = Compass(SequenceTransport([Vector3(100, 0, 0)]))
    compass.set_magnetic_declination(0, 0)
    compass.read()

    az = compass.get_azimuth()
    assert az == 0
    assert compass.get_bearing(az) == 0
    assert compass.get_direction(az) == "  N"
    assert (compass.get_x(), compass.get_y(), compass.get_z()) == (100, 0, 0)


def test_declination_shifts_heading() -> None:
    compass = Compass(RepeatingTransport(Vector3(0, 100, 0)))
    compass.set_magnetic_declination(10, 30)
    compass.read()
    assert compass.get_azimuth() == pytest.approx(100.5)
    assert compass.get_direction(compass.get_azimuth()) == "  E"


def test_rejects_non_finite_declination() -> None:
    compass = Compass(RepeatingTransport(Vector3(0, 0, 0)))
    with pytest.raises(InvalidConfiguration):
        compass.set_magnetic_declination(float("nan"))
    assert compass.declination == 0.0


def test_calibration_is_applied_before_heading() -> None:
    compass = Compass(RepeatingTransport(Vector3(150, 200, 10)))
    compass.set_calibration_offsets(50.0, 200.0, 10.0)
    compass.set_calibration_scales(2.0, 1.0, 1.0)
    compass.read()
    assert compass.raw == Vector3(150, 200, 10)
    assert compass.calibrated == Vector3(200, 0, 0)
    assert compass.get_azimuth() == 0.0


def test_io_failure_leaves_previous_outputs() -> None:
    compass = Compass(SequenceTransport([Vector3(0, 50, 0), None]))
    compass.set_smoothing(3)
    compass.read()
    before = (compass.raw, compass.vector, len(compass.smoothing.ring))

    with pytest.raises(IoFailure):
        compass.read()

    assert (compass.raw, compass.vector, len(compass.smoothing.ring)) == before


def test_auto_calibrate_reports_new_extrema() -> None:
    samples = [Vector3(10, 0, 0), Vector3(10, 0, 0), Vector3(-30, 0, 0)]
    compass = Compass(SequenceTransport(samples))
    compass.set_auto_calibrate(True)
    assert compass.read() is True
    assert compass.read() is False
    assert compass.read() is True
    assert compass.get_calibration_offset(0) == -10.0


def test_auto_calibrate_off_never_reports_changes() -> None:
    compass = Compass(SequenceTransport([Vector3(10, 0, 0), Vector3(-30, 0, 0)]))
    assert compass.read() is False
    assert compass.read() is False
    assert compass.get_calibration_offset(0) == 0.0


def test_smoothing_output_replaces_calibrated_axes() -> None:
    compass = Compass(SequenceTransport([Vector3(v, 0, 0) for v in (0, 0, 0, 0, 20)]))
    compass.set_smoothing(5)
    for _ in range(5):
        compass.read()
    assert compass.calibrated.x == 20
    assert compass.get_x() == 4

    compass.disable_smoothing()
    assert compass.get_x() == 20


def test_set_calibration_from_extrema() -> None:
    compass = Compass(RepeatingTransport(Vector3(0, 0, 0)))
    fit = compass.set_calibration(-100, 100, -200, 200, -300, 300)
    assert compass.get_calibration_offset(2) == 0.0
    assert compass.get_calibration_scale(0) == pytest.approx(2.0)
    assert fit.scale == compass.tracker.scale


def test_calibrate_runs_session_with_injected_clock() -> None:
    ticks = iter(range(100))
    transport = SequenceTransport(
        [Vector3(100, 0, 5), Vector3(-100, 40, 5), Vector3(0, -40, 5), Vector3(0, 0, 5)]
    )
    compass = Compass(transport, clock=lambda: float(next(ticks)))
    events = []
    with pytest.warns(DegenerateCalibrationWarning):
        fit = compass.calibrate(3, lambda p, c: events.append((p, c)))

    assert events[0] == (0.0, True)
    assert events[-1] == (1.0, False)
    assert fit.degenerate_axes == (2,)
    assert compass.calibration_mapping() == {
        "offsets": [0.0, 0.0, 5.0],
        "scales": [pytest.approx(140 / 3 / 100), pytest.approx(140 / 3 / 40), 1.0],
    }


def test_clear_calibration_restores_identity() -> None:
    compass = Compass(RepeatingTransport(Vector3(0, 0, 0)))
    compass.set_calibration_offsets(1, 2, 3)
    compass.set_calibration_scales(2, 2, 2)
    compass.clear_calibration()
    assert compass.calibration_mapping() == {
        "offsets": [0.0, 0.0, 0.0],
        "scales": [1.0, 1.0, 1.0],
    }


def test_from_config() -> None:
    cfg = CompassConfig(
        declination_degrees=-5,
        smoothing_enabled=True,
        smoothing_steps=4,
        smoothing_advanced=True,
        offsets=(1.0, 2.0, 3.0),
        scales=(1.0, 0.5, 1.0),
    )
    compass = Compass.from_config(RepeatingTransport(Vector3(1, 2, 3)), cfg)
    assert compass.declination == -5.0
    assert compass.smoothing.enabled
    assert compass.smoothing.steps == 4
    assert compass.smoothing.advanced
    assert compass.get_calibration_scale(1) == 0.5
    assert not compass.auto_calibrate


def test_calibrate_defaults_to_configured_duration() -> None:
    ticks = iter(range(100))
    compass = Compass.from_config(
        RepeatingTransport(Vector3(1, 1, 1)),
        CompassConfig(calibration_seconds=4),
        clock=lambda: float(next(ticks)),
    )
    assert compass.calibration_seconds == 4.0
    events = []
    with pytest.warns(DegenerateCalibrationWarning):
        compass.calibrate(on_progress=lambda p, c: events.append(p))
    assert events == pytest.approx([0.0, 0.25, 0.5, 0.75, 1.0, 1.0])


def test_calibrate_without_configured_duration_uses_session_default() -> None:
    ticks = iter(range(100))
    compass = Compass(RepeatingTransport(Vector3(1, 1, 1)), clock=lambda: float(next(ticks)))
    events = []
    with pytest.warns(DegenerateCalibrationWarning):
        compass.calibrate(on_progress=lambda p, c: events.append(p))
    # seeded event, ten one-second steps, final event
    assert len(events) == 12
