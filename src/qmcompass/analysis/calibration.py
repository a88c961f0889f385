"""
Hard-iron / soft-iron calibration for the 3-axis magnetometer.

Offsets are the midpoint of each axis' observed range and scales equalise the
three half-ranges to their mean, following the min/max method described in
https://appelsiini.net/2018/calibrate-magnetometer/.  All three axes use the
midpoint ``(min + max) / 2``; older drivers computed the Z offset as
``(min * max) / 2``, which is not reproduced here.
"""

from __future__ import annotations

import logging
import math
import warnings
from typing import Sequence

from ..core.errors import (
    DegenerateCalibrationWarning,
    InvalidConfiguration,
)
from ..core.models import (
    AXES,
    MAX_SENTINEL,
    MIN_SENTINEL,
    UNIT,
    ZERO,
    CalibrationFit,
    CalibrationState,
    Vector3,
    check_axis,
    round_half_away,
)

logger = logging.getLogger(__name__)


def _finite_vector(name: str, x: float, y: float, z: float) -> Vector3:
    try:
        values = (float(x), float(y), float(z))
    except (TypeError, ValueError) as exc:
        raise InvalidConfiguration(f"{name} must be numeric: {exc}") from exc
    if not all(math.isfinite(v) for v in values):
        raise InvalidConfiguration(f"{name} must be finite, got {values}")
    return Vector3(*values)


def fit_from_extrema(minimum: Sequence[int], maximum: Sequence[int]) -> CalibrationFit:
    """
    Derive offset/scale from per-axis extrema.

    Axes with a zero half-range get a scale of 1.0 and are reported in
    ``degenerate_axes`` instead of producing inf/NaN.
    """
    if len(minimum) != 3 or len(maximum) != 3:
        raise InvalidConfiguration("extrema must have exactly 3 components")
    for axis, (lo, hi) in enumerate(zip(minimum, maximum)):
        if lo > hi:
            raise InvalidConfiguration(
                f"{AXES[axis]} minimum {lo} exceeds maximum {hi}"
            )

    offsets = [(float(lo) + float(hi)) / 2 for lo, hi in zip(minimum, maximum)]
    deltas = [(float(hi) - float(lo)) / 2 for lo, hi in zip(minimum, maximum)]
    avg_delta = sum(deltas) / 3

    scales: list[float] = []
    degenerate: list[int] = []
    for axis, delta in enumerate(deltas):
        if delta == 0 or avg_delta == 0:
            scales.append(1.0)
            degenerate.append(axis)
        else:
            scales.append(avg_delta / delta)

    return CalibrationFit(
        offset=Vector3(*offsets),
        scale=Vector3(*scales),
        degenerate_axes=tuple(degenerate),
    )


def correct(raw: Vector3, offset: Vector3, scale: Vector3) -> Vector3:
    """Apply ``(raw - offset) * scale`` per axis, rounded half away from zero."""
    return Vector3(
        *(round_half_away((r - o) * s) for r, o, s in zip(raw, offset, scale))
    )


class CalibrationTracker:
    """
    Owns the :class:`CalibrationState` of one compass.

    ``observe()`` widens the running extrema and refits offset/scale whenever
    an axis reaches a new minimum or maximum.  Manual offsets/scales and the
    min/max entry point overwrite the same state.
    """

    def __init__(self) -> None:
        self._state = CalibrationState()
        self._last_fit: CalibrationFit | None = None
        self._warned_fit: CalibrationFit | None = None

    @property
    def state(self) -> CalibrationState:
        return self._state.copy()

    @property
    def offset(self) -> Vector3:
        return self._state.offset

    @property
    def scale(self) -> Vector3:
        return self._state.scale

    @property
    def last_fit(self) -> CalibrationFit | None:
        """
        Most recent fit, from ``observe()`` or ``derive_from_min_max()``.

        A degenerate fit from auto-calibration is only logged at DEBUG while
        tracking; reading it here raises the warning once.
        """
        fit = self._last_fit
        if fit is not None and fit.degenerate:
            self._warn_degenerate(fit, stacklevel=3)
        return fit

    def get_offset(self, index: int) -> float:
        return self._state.offset[check_axis(index)]

    def get_scale(self, index: int) -> float:
        return self._state.scale[check_axis(index)]

    def set_offsets(self, x: float, y: float, z: float) -> None:
        self._state.offset = _finite_vector("offsets", x, y, z)

    def set_scales(self, x: float, y: float, z: float) -> None:
        self._state.scale = _finite_vector("scales", x, y, z)

    def set_extrema(self, minimum: Sequence[int], maximum: Sequence[int]) -> None:
        if len(minimum) != 3 or len(maximum) != 3:
            raise InvalidConfiguration("extrema must have exactly 3 components")
        self._state.minimum = [int(v) for v in minimum]
        self._state.maximum = [int(v) for v in maximum]

    def reset_extrema(self) -> None:
        self._state.minimum = [MIN_SENTINEL] * 3
        self._state.maximum = [MAX_SENTINEL] * 3

    def seed(self, raw: Vector3) -> None:
        """Collapse the extrema onto a single sample."""
        values = [int(v) for v in raw]
        self.set_extrema(values, values)

    def reset(self, *, extrema: bool = False) -> None:
        """Return to identity correction; optionally restart extrema tracking."""
        self._state.offset = ZERO
        self._state.scale = UNIT
        self._last_fit = None
        if extrema:
            self.reset_extrema()

    def observe(self, raw: Vector3) -> bool:
        """Track a raw sample; return True if any extremum moved."""
        changed = False
        for axis, value in enumerate(raw):
            value = int(value)
            if value < self._state.minimum[axis]:
                self._state.minimum[axis] = value
                changed = True
            if value > self._state.maximum[axis]:
                self._state.maximum[axis] = value
                changed = True

        if changed:
            fit = fit_from_extrema(self._state.minimum, self._state.maximum)
            self._commit(fit)
            if fit.degenerate:
                # Expected until the sensor has moved on every axis.
                logger.debug(
                    "Auto-calibration still degenerate on axes %s",
                    [AXES[a] for a in fit.degenerate_axes],
                )
        return changed

    def derive_from_min_max(
        self,
        xmin: int,
        xmax: int,
        ymin: int,
        ymax: int,
        zmin: int,
        zmax: int,
    ) -> CalibrationFit:
        """Fit and commit offset/scale from explicit extrema."""
        minimum = (xmin, ymin, zmin)
        maximum = (xmax, ymax, zmax)
        fit = fit_from_extrema(minimum, maximum)
        self.set_extrema(minimum, maximum)
        self._commit(fit)
        if fit.degenerate:
            self._warn_degenerate(fit, stacklevel=3)
        return fit

    def apply(self, raw: Vector3) -> Vector3:
        return correct(raw, self._state.offset, self._state.scale)

    def _commit(self, fit: CalibrationFit) -> None:
        self._state.offset = fit.offset
        self._state.scale = fit.scale
        self._last_fit = fit

    def _warn_degenerate(self, fit: CalibrationFit, stacklevel: int) -> None:
        if fit is self._warned_fit:
            return
        self._warned_fit = fit
        names = ", ".join(AXES[a] for a in fit.degenerate_axes)
        logger.warning(
            "Degenerate calibration: no movement on axis %s, scale clamped to 1.0",
            names,
        )
        warnings.warn(
            f"calibration axis {names} never varied; scale clamped to 1.0",
            DegenerateCalibrationWarning,
            stacklevel=stacklevel,
        )
