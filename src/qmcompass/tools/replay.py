#!/usr/bin/env python3
"""
Replay a raw magnetometer log through the compass pipeline.

Each usable line of the log (``x,y,z`` CSV or JSON objects with ``x``/``y``/``z``
keys) is fed to a :class:`~qmcompass.core.compass.Compass` configured from
``--config`` and the command-line overrides, and one CSV row is printed per
sample::

    x,y,z,azimuth,bearing,direction
"""

from __future__ import annotations

import argparse
import csv
import logging
import sys
from pathlib import Path
from typing import Iterable, Sequence, TextIO

from ..config import load_config
from ..core.compass import Compass
from ..core.errors import CompassError
from ..core.models import Vector3
from ..sensors.qmc5883l import SequenceTransport, parse_line

logger = logging.getLogger(__name__)

HEADERS = ("x", "y", "z", "azimuth", "bearing", "direction")


def _looks_like_header(line: str) -> bool:
    stripped = line.strip()
    if not stripped or stripped[0] == "{":
        return False
    tokens = [t for t in stripped.split(",") if t]
    try:
        for t in tokens:
            float(t)
    except ValueError:
        return True
    return False


def load_samples(lines: Iterable[str]) -> list[Vector3]:
    samples: list[Vector3] = []
    for lineno, line in enumerate(lines, start=1):
        if lineno == 1 and _looks_like_header(line):
            continue
        sample = parse_line(line)
        if sample is not None:
            samples.append(sample)
    return samples


def replay(compass: Compass, count: int, out: TextIO) -> int:
    """Read ``count`` samples from ``compass`` and write heading rows to ``out``."""
    writer = csv.writer(out)
    writer.writerow(HEADERS)
    rows = 0
    for _ in range(count):
        compass.read()
        az = compass.get_azimuth()
        writer.writerow(
            [
                compass.get_x(),
                compass.get_y(),
                compass.get_z(),
                f"{az:.2f}",
                compass.get_bearing(az),
                compass.get_direction(az).strip(),
            ]
        )
        rows += 1
    return rows


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Replay a raw QMC5883L log and print headings."
    )
    parser.add_argument("file", type=str, help="Raw log file (.csv or .jsonl).")
    parser.add_argument(
        "-c",
        "--config",
        type=str,
        help="YAML compass configuration (declination, smoothing, calibration).",
    )
    parser.add_argument(
        "-d",
        "--declination",
        type=float,
        nargs="+",
        metavar=("DEGREES", "MINUTES"),
        help="Magnetic declination as degrees and optional arc-minutes.",
    )
    parser.add_argument(
        "-s",
        "--smooth",
        type=int,
        metavar="STEPS",
        help="Enable rolling-average smoothing over STEPS samples (max 10).",
    )
    parser.add_argument(
        "--advanced",
        action="store_true",
        help="Drop the min and max sample of each window before averaging.",
    )
    parser.add_argument(
        "-a",
        "--auto-calibrate",
        action="store_true",
        help="Track min/max while replaying and refit offsets/scales.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    path = Path(args.file).expanduser()
    if not path.exists():
        parser.error(f"Log file not found: {path}")
    if args.declination is not None and len(args.declination) > 2:
        parser.error("--declination takes DEGREES and at most one MINUTES value")

    try:
        cfg = load_config(args.config)
        with path.open("r", encoding="utf-8") as fh:
            samples = load_samples(fh)

        compass = Compass.from_config(SequenceTransport(samples), cfg)
        if args.declination is not None:
            compass.set_magnetic_declination(*args.declination)
        if args.smooth is not None:
            compass.set_smoothing(args.smooth, args.advanced)
        elif args.advanced:
            compass.set_smoothing(cfg.smoothing_steps, True)
        if args.auto_calibrate:
            compass.set_auto_calibrate(True)

        rows = replay(compass, len(samples), sys.stdout)
    except (CompassError, ValueError) as exc:
        logger.error("Replay failed: %s", exc)
        return 1

    logger.info("Replayed %d samples from %s", rows, path)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
