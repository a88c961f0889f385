"""Core value types, errors and driver orchestration.

The numeric modules in :mod:`qmcompass.analysis` import their shared types from
here, so this package only re-exports the leaf modules.  The driver facade
lives in :mod:`qmcompass.core.compass` and the interactive calibration loop in
:mod:`qmcompass.core.calibration_session`.
"""

from .errors import (
    CompassError,
    DegenerateCalibrationWarning,
    InvalidArgument,
    InvalidConfiguration,
    IoFailure,
)
from .models import (
    CalibrationFit,
    CalibrationProgress,
    CalibrationState,
    Vector3,
    round_half_away,
)
from .ringbuffer import HistoryRing

__all__ = [
    "CompassError",
    "DegenerateCalibrationWarning",
    "InvalidArgument",
    "InvalidConfiguration",
    "IoFailure",
    "CalibrationFit",
    "CalibrationProgress",
    "CalibrationState",
    "Vector3",
    "round_half_away",
    "HistoryRing",
]
