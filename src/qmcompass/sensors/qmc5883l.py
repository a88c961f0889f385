"""
Raw-sample codec and transports for the QMC5883L magnetometer.

The chip exposes X, Y and Z as little-endian signed 16-bit words starting at
data register 0x00.  Recorded raw logs use one sample per line, either JSON::

  {"x": -1203, "y": 455, "z": 87}

or the bare CSV form ``x,y,z``.  ``parse_line()`` accepts both; bad lines are
logged and return ``None`` so replays can skip them.
"""

from __future__ import annotations

import json
import logging
import struct
from collections.abc import Iterable, Iterator
from typing import Protocol, Sequence, Union

from ..core.errors import IoFailure
from ..core.models import Vector3

logger = logging.getLogger(__name__)

DATA_BLOCK_SIZE = 6
INT16_MIN = -32768
INT16_MAX = 32767

_XYZ = struct.Struct("<hhh")


class Transport(Protocol):
    """Source of raw samples, one bus transaction per call."""

    def read_raw_sample(self) -> Vector3:  # pragma: no cover - protocol
        ...


def decode_xyz(block: bytes) -> Vector3:
    """Decode the 6-byte data register block into a raw sample."""
    if len(block) < DATA_BLOCK_SIZE:
        raise IoFailure(
            f"short read: expected {DATA_BLOCK_SIZE} bytes, got {len(block)}"
        )
    x, y, z = _XYZ.unpack_from(bytes(block), 0)
    return Vector3(x, y, z)


def _check_range(values: Sequence[int]) -> bool:
    return all(INT16_MIN <= v <= INT16_MAX for v in values)


def _parse_json_line(text: str) -> Vector3 | None:
    try:
        obj = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.warning("Bad JSON in raw magnetometer log: %r (%s)", text, exc)
        return None
    if not isinstance(obj, dict):
        logger.warning("Expected a JSON object in raw magnetometer log: %r", text)
        return None

    values = []
    for name in ("x", "y", "z"):
        raw = obj.get(name)
        if raw is None:
            logger.warning("Missing field %s in raw magnetometer line: %r", name, obj)
            return None
        try:
            values.append(int(raw))
        except (TypeError, ValueError) as exc:
            logger.warning("Bad field value in raw magnetometer line %r (%s)", obj, exc)
            return None

    if not _check_range(values):
        logger.warning("Raw magnetometer sample out of int16 range: %r", values)
        return None
    return Vector3(*values)


def _parse_csv_line(text: str) -> Vector3 | None:
    parts = text.split(",")
    if len(parts) < 3:
        logger.warning(
            "Expected at least 3 comma-separated values for raw sample, got %d: %r",
            len(parts),
            text,
        )
        return None
    try:
        values = [int(p) for p in parts[:3]]
    except ValueError as exc:
        logger.warning("Bad CSV field in raw magnetometer line %r (%s)", text, exc)
        return None
    if not _check_range(values):
        logger.warning("Raw magnetometer sample out of int16 range: %r", values)
        return None
    return Vector3(*values)


def parse_line(line: str) -> Vector3 | None:
    """Parse one raw log line (JSON or CSV) into a raw sample."""
    text = line.strip()
    if not text or text.startswith("#"):
        return None

    if text[0] == "{":
        return _parse_json_line(text)
    return _parse_csv_line(text)


SampleLike = Union[Vector3, Sequence[int], str, bytes, None]


class SequenceTransport:
    """
    Transport that replays a finite sequence of samples.

    Items may be :class:`Vector3`, ``(x, y, z)`` tuples, raw log lines, 6-byte
    register blocks, or ``None`` to simulate a failed bus transaction.
    Exhaustion also raises :class:`IoFailure`.
    """

    def __init__(self, samples: Iterable[SampleLike]) -> None:
        self._samples: Iterator[SampleLike] = iter(samples)
        self.reads = 0

    def read_raw_sample(self) -> Vector3:
        self.reads += 1
        try:
            item = next(self._samples)
        except StopIteration:
            raise IoFailure("sample sequence exhausted") from None
        if item is None:
            raise IoFailure("simulated bus failure")
        if isinstance(item, Vector3):
            return item
        if isinstance(item, (bytes, bytearray)):
            return decode_xyz(item)
        if isinstance(item, str):
            sample = parse_line(item)
            if sample is None:
                raise IoFailure(f"unreadable raw line: {item!r}")
            return sample
        return Vector3.of([int(v) for v in item])


class RepeatingTransport:
    """Transport that returns the same raw sample forever."""

    def __init__(self, sample: Vector3) -> None:
        self.sample = sample
        self.reads = 0

    def read_raw_sample(self) -> Vector3:
        self.reads += 1
        return self.sample
