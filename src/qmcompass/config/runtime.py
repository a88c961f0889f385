"""Runtime configuration for a compass instance."""

from __future__ import annotations

import math
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping, MutableMapping

import yaml

from ..core.ringbuffer import MAX_DEPTH


def _triple(value: Any, default: float) -> tuple[float, float, float]:
    try:
        items = [float(v) for v in value]
    except (TypeError, ValueError):
        return (default, default, default)
    if len(items) != 3 or not all(math.isfinite(v) for v in items):
        return (default, default, default)
    return (items[0], items[1], items[2])


@dataclass(slots=True)
class CompassConfig:
    """
    Declination, smoothing and stored calibration for one sensor.

    Offsets and scales are whatever the caller saved from a previous
    calibration; nothing here writes them back automatically.
    """

    declination_degrees: float = 0.0
    declination_minutes: float = 0.0
    auto_calibrate: bool = False

    smoothing_enabled: bool = False
    smoothing_steps: int = 5
    smoothing_advanced: bool = False

    calibration_seconds: float = 10.0
    offsets: tuple[float, float, float] = (0.0, 0.0, 0.0)
    scales: tuple[float, float, float] = (1.0, 1.0, 1.0)

    def sanitized(self) -> CompassConfig:
        """Return a copy with derived limits applied."""
        steps = max(1, min(MAX_DEPTH, int(self.smoothing_steps)))
        advanced = bool(self.smoothing_advanced)
        if advanced and steps < 3:
            steps = 3
        return CompassConfig(
            declination_degrees=float(self.declination_degrees),
            declination_minutes=float(self.declination_minutes),
            auto_calibrate=bool(self.auto_calibrate),
            smoothing_enabled=bool(self.smoothing_enabled),
            smoothing_steps=steps,
            smoothing_advanced=advanced,
            calibration_seconds=max(0.0, float(self.calibration_seconds)),
            offsets=_triple(self.offsets, 0.0),
            scales=_triple(self.scales, 1.0),
        )

    def to_mapping(self) -> dict:
        """Serialize back into a mapping suitable for YAML."""
        return {
            "compass": {
                "declination_degrees": float(self.declination_degrees),
                "declination_minutes": float(self.declination_minutes),
                "auto_calibrate": bool(self.auto_calibrate),
                "smoothing_enabled": bool(self.smoothing_enabled),
                "smoothing_steps": int(self.smoothing_steps),
                "smoothing_advanced": bool(self.smoothing_advanced),
                "calibration_seconds": float(self.calibration_seconds),
                "offsets": [float(v) for v in self.offsets],
                "scales": [float(v) for v in self.scales],
            }
        }


def _recognized_fields() -> set[str]:
    """Return the dataclass field names accepted by :class:`CompassConfig`."""
    return {f.name for f in fields(CompassConfig)}


def _normalize_mapping(data: Mapping[str, Any]) -> MutableMapping[str, Any]:
    """Flatten an optional top-level ``compass`` block."""
    if "compass" in data and isinstance(data["compass"], Mapping):
        merged: MutableMapping[str, Any] = {}
        for key, value in data.items():
            if key == "compass":
                merged.update(value)
            else:
                merged[key] = value
        return merged
    return dict(data)


def config_from_mapping(data: Mapping[str, Any] | None) -> CompassConfig:
    """Build :class:`CompassConfig` from ``data`` (ignoring unknown keys)."""
    if not data:
        return CompassConfig()
    normalized = _normalize_mapping(data)
    known = _recognized_fields()
    payload = {key: normalized[key] for key in normalized.keys() & known}
    return CompassConfig(**payload).sanitized()


def load_config(path: str | Path | None) -> CompassConfig:
    """
    Load configuration from ``path``.

    Missing files fall back to default :class:`CompassConfig`.
    """
    if path is None:
        return CompassConfig()
    cfg_path = Path(path)
    if not cfg_path.exists():
        return CompassConfig()
    with cfg_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}
    if not isinstance(raw, Mapping):
        raise ValueError(f"Expected mapping in {cfg_path}, got {type(raw).__name__}")
    return config_from_mapping(raw)


def save_config(cfg: CompassConfig, path: str | Path) -> Path:
    """Write ``cfg`` as YAML, creating parent directories as needed."""
    cfg_path = Path(path)
    cfg_path.parent.mkdir(parents=True, exist_ok=True)
    with cfg_path.open("w", encoding="utf-8") as fh:
        yaml.safe_dump(cfg.to_mapping(), fh, sort_keys=False)
    return cfg_path


__all__ = ["CompassConfig", "config_from_mapping", "load_config", "save_config"]
