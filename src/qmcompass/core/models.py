"""Shared dataclasses for compass samples and calibration state."""

from __future__ import annotations

import math
import operator
from dataclasses import dataclass, field
from typing import Iterator, Sequence

from .errors import InvalidArgument

AXES = ("x", "y", "z")

# Sentinels sit outside the 16-bit ADC range so any real sample replaces them.
MIN_SENTINEL = 65000
MAX_SENTINEL = -65000


def round_half_away(value: float) -> int:
    """Round to the nearest integer, ties away from zero."""
    if not math.isfinite(value):
        raise InvalidArgument(f"cannot round non-finite value {value!r}")
    magnitude = abs(value)
    whole = math.floor(magnitude)
    if magnitude - whole >= 0.5:
        whole += 1
    return -whole if value < 0 else whole


def check_axis(index: int) -> int:
    try:
        axis = operator.index(index)
    except TypeError as exc:
        raise InvalidArgument(f"axis index must be an integer, got {index!r}") from exc
    if axis not in (0, 1, 2):
        raise InvalidArgument(f"axis index must be 0, 1 or 2, got {index!r}")
    return axis


@dataclass(frozen=True, slots=True)
class Vector3:
    x: float
    y: float
    z: float

    @classmethod
    def of(cls, values: Sequence[float]) -> "Vector3":
        if len(values) != 3:
            raise InvalidArgument(f"expected 3 components, got {len(values)}")
        return cls(values[0], values[1], values[2])

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y
        yield self.z

    def __getitem__(self, index: int) -> float:
        return (self.x, self.y, self.z)[check_axis(index)]

    def __len__(self) -> int:
        return 3


ZERO = Vector3(0.0, 0.0, 0.0)
UNIT = Vector3(1.0, 1.0, 1.0)


@dataclass
class CalibrationState:
    """
    Hard-iron offsets, soft-iron scales and the running extrema they came from.

    ``minimum``/``maximum`` start at the sentinels until a sample is observed.
    """

    offset: Vector3 = ZERO
    scale: Vector3 = UNIT
    minimum: list[int] = field(default_factory=lambda: [MIN_SENTINEL] * 3)
    maximum: list[int] = field(default_factory=lambda: [MAX_SENTINEL] * 3)

    def copy(self) -> "CalibrationState":
        return CalibrationState(
            offset=self.offset,
            scale=self.scale,
            minimum=list(self.minimum),
            maximum=list(self.maximum),
        )

    @property
    def has_extrema(self) -> bool:
        return all(lo <= hi for lo, hi in zip(self.minimum, self.maximum))


@dataclass(frozen=True)
class CalibrationFit:
    offset: Vector3
    scale: Vector3
    # Axes whose scale was clamped to 1.0 because min == max.
    degenerate_axes: tuple[int, ...] = ()

    @property
    def degenerate(self) -> bool:
        return bool(self.degenerate_axes)


@dataclass(frozen=True)
class CalibrationProgress:
    """One progress event emitted by a calibration session."""

    progress: float
    changed: bool
