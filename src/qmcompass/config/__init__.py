"""Configuration objects and helpers for qmcompass.

``compass.yaml`` files describe declination, smoothing and stored calibration
for one sensor; :mod:`runtime` turns them into a typed :class:`CompassConfig`.
"""

from .runtime import CompassConfig, config_from_mapping, load_config

__all__ = ["CompassConfig", "config_from_mapping", "load_config"]
