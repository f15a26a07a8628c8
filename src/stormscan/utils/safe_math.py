"""Safe math helpers for finite and stable calculations."""

from __future__ import annotations

import numpy as np


class NumericalDegeneracy(ArithmeticError):
    """Raised when a grid quantity would silently produce NaN or infinity."""


def require_spacing(value: float, name: str) -> float:
    """Return a finite, nonzero grid spacing or raise NumericalDegeneracy."""

    spacing = float(value)
    if not np.isfinite(spacing) or spacing == 0.0:
        raise NumericalDegeneracy(f"Grid spacing '{name}' must be finite and nonzero, got {value!r}")
    return spacing


def clipped_arccos(x: np.ndarray | float) -> np.ndarray | float:
    return np.arccos(np.clip(x, -1.0, 1.0))


def clipped_arcsin(x: np.ndarray | float) -> np.ndarray | float:
    return np.arcsin(np.clip(x, -1.0, 1.0))
