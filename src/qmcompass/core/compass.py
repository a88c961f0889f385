"""
High-level QMC5883L compass driver built on the numeric core.

Each :meth:`Compass.read` pulls one raw sample from the transport and runs it
through auto-calibration (optional), offset/scale correction and smoothing
(optional).  Heading helpers then work on the latest output.

A ``Compass`` instance is not thread-safe; guard it with a lock if several
threads share it.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from ..analysis import heading
from ..analysis.calibration import CalibrationTracker
from ..analysis.filters import DEFAULT_STEPS, SmoothingFilter
from .calibration_session import CalibrationSession, Clock, ProgressCallback
from .models import ZERO, CalibrationFit, Vector3, check_axis

logger = logging.getLogger(__name__)


class Compass:
    def __init__(self, transport, *, clock: Clock | None = None) -> None:
        self.transport = transport
        self.clock = clock
        self.tracker = CalibrationTracker()
        self.smoothing = SmoothingFilter(DEFAULT_STEPS)
        self.auto_calibrate = False
        self.declination = 0.0
        # 0 selects the session default.
        self.calibration_seconds = 0.0
        self._raw = ZERO
        self._calibrated = ZERO
        self._smoothed = ZERO

    @classmethod
    def from_config(cls, transport, cfg, *, clock: Clock | None = None) -> "Compass":
        """Build a compass from a :class:`~qmcompass.config.CompassConfig`."""
        compass = cls(transport, clock=clock)
        compass.apply_config(cfg)
        return compass

    def apply_config(self, cfg) -> None:
        self.set_magnetic_declination(cfg.declination_degrees, cfg.declination_minutes)
        self.set_auto_calibrate(cfg.auto_calibrate)
        self.calibration_seconds = float(cfg.calibration_seconds)
        if cfg.smoothing_enabled:
            self.set_smoothing(cfg.smoothing_steps, cfg.smoothing_advanced)
        else:
            self.disable_smoothing()
        self.set_calibration_offsets(*cfg.offsets)
        self.set_calibration_scales(*cfg.scales)

    # ------------------------------------------------------------------ setup
    def set_auto_calibrate(self, enabled: bool) -> None:
        self.auto_calibrate = bool(enabled)

    def set_magnetic_declination(self, degrees: float, minutes: float = 0) -> None:
        self.declination = heading.declination_from_dms(degrees, minutes)

    def set_smoothing(self, steps: int, advanced: bool = False) -> None:
        self.smoothing.configure(steps, advanced)
        self.smoothing.enabled = True

    def disable_smoothing(self) -> None:
        self.smoothing.enabled = False
        self.smoothing.reset()

    # ------------------------------------------------------------ calibration
    def calibrate(
        self,
        seconds: float | None = None,
        on_progress: ProgressCallback | None = None,
        cancel: Optional[threading.Event] = None,
        clock: Clock | None = None,
    ) -> CalibrationFit:
        """
        Run a blocking calibration session; see :class:`CalibrationSession`.

        ``seconds`` defaults to :attr:`calibration_seconds`.
        """
        if seconds is None:
            seconds = self.calibration_seconds
        session_clock = clock or self.clock
        if session_clock is None:
            session = CalibrationSession(self.tracker, self.transport)
        else:
            session = CalibrationSession(self.tracker, self.transport, clock=session_clock)
        return session.run(seconds, on_progress, cancel)

    def set_calibration(
        self,
        x_min: int,
        x_max: int,
        y_min: int,
        y_max: int,
        z_min: int,
        z_max: int,
    ) -> CalibrationFit:
        return self.tracker.derive_from_min_max(x_min, x_max, y_min, y_max, z_min, z_max)

    def set_calibration_offsets(self, x: float, y: float, z: float) -> None:
        self.tracker.set_offsets(x, y, z)

    def set_calibration_scales(self, x: float, y: float, z: float) -> None:
        self.tracker.set_scales(x, y, z)

    def get_calibration_offset(self, index: int) -> float:
        return self.tracker.get_offset(index)

    def get_calibration_scale(self, index: int) -> float:
        return self.tracker.get_scale(index)

    def clear_calibration(self, *, extrema: bool = True) -> None:
        self.tracker.reset(extrema=extrema)

    def calibration_mapping(self) -> dict:
        """Offsets and scales as plain floats, for the caller to persist."""
        return {
            "offsets": [float(v) for v in self.tracker.offset],
            "scales": [float(v) for v in self.tracker.scale],
        }

    # ---------------------------------------------------------------- reading
    def read(self) -> bool:
        """
        Take one sample through the pipeline.

        Returns True when auto-calibration found a new extremum.  A transport
        :class:`~qmcompass.core.errors.IoFailure` propagates and leaves every
        previous output untouched.
        """
        raw = self.transport.read_raw_sample()

        changed = False
        if self.auto_calibrate:
            changed = self.tracker.observe(raw)

        calibrated = self.tracker.apply(raw)
        smoothed = self.smoothing.push(calibrated) if self.smoothing.enabled else calibrated

        self._raw = raw
        self._calibrated = calibrated
        self._smoothed = smoothed
        return changed

    @property
    def raw(self) -> Vector3:
        return self._raw

    @property
    def calibrated(self) -> Vector3:
        return self._calibrated

    @property
    def vector(self) -> Vector3:
        """Smoothed sample when smoothing is on, otherwise the calibrated one."""
        return self._smoothed if self.smoothing.enabled else self._calibrated

    def get(self, index: int) -> int:
        return int(self.vector[check_axis(index)])

    def get_x(self) -> int:
        return self.get(0)

    def get_y(self) -> int:
        return self.get(1)

    def get_z(self) -> int:
        return self.get(2)

    # ---------------------------------------------------------------- heading
    def get_azimuth(self) -> float:
        vec = self.vector
        return heading.azimuth(vec.x, vec.y, self.declination)

    def get_bearing(self, azimuth: float) -> int:
        return heading.bearing_sector(azimuth)

    def get_direction(self, azimuth: float) -> str:
        return heading.direction_for_azimuth(azimuth)
