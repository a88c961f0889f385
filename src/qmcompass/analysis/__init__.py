"""Numeric signal conditioning (calibration, smoothing and heading math).

Modules here are pure Python/NumPy and know nothing about buses or clocks, so
they can be reused from replays, tests, or a live driver alike.
"""
