"""Sensor-specific codecs and transports.

:mod:`qmc5883l` decodes the chip's data registers and raw log lines into
:class:`~qmcompass.core.models.Vector3` samples.
"""
