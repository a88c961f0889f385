"""Error and warning types raised by the compass core."""

from __future__ import annotations


class CompassError(Exception):
    """Base class for every recoverable compass condition."""


class InvalidConfiguration(CompassError, ValueError):
    """A smoothing depth, declination or calibration value was rejected."""


class InvalidArgument(CompassError, IndexError):
    """An axis or sector index was outside its valid range."""


class IoFailure(CompassError, OSError):
    """The transport did not deliver a complete raw sample."""


class DegenerateCalibrationWarning(UserWarning):
    """An axis never moved during calibration; its scale was clamped to 1.0."""
