"""
Configuration for the derivative engine.

Usage:
    >>> from gridops.config import DifferencingConfig, resolve_differencing
    >>> config = DifferencingConfig(ddx={"first": "C4"}, ddz={"first": "FFT"})
    >>> resolve_differencing(config).x.first
    <DiffMethod.C4: 'C4'>
"""

from __future__ import annotations

from gridops.config.differencing import (
    SPECTRAL_AXES,
    AxisMethods,
    AxisSchemes,
    DifferencingConfig,
    DifferencingMethods,
    check_spectral_axis,
    resolve_differencing,
)
from gridops.config.io import load_differencing_config, save_differencing_config

__all__ = [
    "SPECTRAL_AXES",
    "AxisMethods",
    "AxisSchemes",
    "DifferencingConfig",
    "DifferencingMethods",
    "check_spectral_axis",
    "load_differencing_config",
    "resolve_differencing",
    "save_differencing_config",
]
