"""Rolling-average smoothing of calibrated samples."""

from __future__ import annotations

import logging

from ..core.errors import InvalidConfiguration
from ..core.models import Vector3, round_half_away
from ..core.ringbuffer import MAX_DEPTH, HistoryRing

logger = logging.getLogger(__name__)

DEFAULT_STEPS = 5


class SmoothingFilter:
    """
    Per-axis rolling average over the last ``steps`` calibrated samples.

    In advanced mode one maximum and one minimum slot are dropped per axis
    before averaging over ``steps - 2``.

    Until ``steps`` samples have been pushed the ring still holds zero slots,
    which pull early outputs toward zero (and, in advanced mode, can be picked
    as the trimmed minimum).  Check :attr:`steady` when that matters.
    """

    def __init__(self, steps: int = DEFAULT_STEPS, advanced: bool = False) -> None:
        self.enabled = False
        self._steps = DEFAULT_STEPS
        self._advanced = False
        self._ring = HistoryRing(DEFAULT_STEPS)
        self.configure(steps, advanced)

    @property
    def steps(self) -> int:
        return self._steps

    @property
    def advanced(self) -> bool:
        return self._advanced

    @property
    def warming(self) -> bool:
        return not self._ring.full

    @property
    def steady(self) -> bool:
        return self._ring.full

    @property
    def ring(self) -> HistoryRing:
        return self._ring

    def configure(self, steps: int, advanced: bool = False) -> None:
        """
        Set the window depth and mode, clearing the history.

        Depths above 10 are clamped to 10.  Raises
        :class:`InvalidConfiguration` for a non-positive depth or for advanced
        mode with fewer than 3 steps.
        """
        steps = int(steps)
        if steps <= 0:
            raise InvalidConfiguration(f"smoothing steps must be >= 1, got {steps}")
        if steps > MAX_DEPTH:
            logger.debug("Clamping smoothing steps %d to %d", steps, MAX_DEPTH)
            steps = MAX_DEPTH
        advanced = bool(advanced)
        if advanced and steps < 3:
            raise InvalidConfiguration(
                f"advanced smoothing needs at least 3 steps, got {steps}"
            )
        self._steps = steps
        self._advanced = advanced
        self._ring = HistoryRing(steps)

    def reset(self) -> None:
        self._ring.clear()

    def push(self, calibrated: Vector3) -> Vector3:
        self._ring.push(calibrated)
        totals = self._ring.totals

        if not self._advanced:
            return Vector3(*(round_half_away(int(t) / self._steps) for t in totals))

        slots = self._ring.slots
        hi = self._ring.argmax()
        lo = self._ring.argmin()
        out = []
        for axis in range(3):
            trimmed = int(totals[axis]) - int(slots[hi[axis], axis]) - int(
                slots[lo[axis], axis]
            )
            out.append(round_half_away(trimmed / (self._steps - 2)))
        return Vector3(*out)
