"""Great-circle geometry on the unit sphere."""

from __future__ import annotations

import numpy as np

from stormscan.utils.safe_math import clipped_arccos, clipped_arcsin


def great_circle_deg(lat0: float, lon0: float, lat1: np.ndarray | float, lon1: np.ndarray | float) -> np.ndarray | float:
    """Angular distance in degrees between points given in radians (spherical law of cosines)."""

    cos_d = np.sin(lat0) * np.sin(lat1) + np.cos(lat0) * np.cos(lat1) * np.cos(lon1 - lon0)
    return np.rad2deg(clipped_arccos(cos_d))


def unit_vectors(lat: np.ndarray | float, lon: np.ndarray | float) -> np.ndarray:
    """Embed (lat, lon) in radians as (x, y, z) = (sin lon cos lat, cos lon cos lat, sin lat)."""

    lat_arr = np.atleast_1d(np.asarray(lat, dtype=float))
    lon_arr = np.atleast_1d(np.asarray(lon, dtype=float))
    cos_lat = np.cos(lat_arr)
    return np.column_stack([np.sin(lon_arr) * cos_lat, np.cos(lon_arr) * cos_lat, np.sin(lat_arr)])


def chord_to_angle_deg(chord: np.ndarray | float) -> np.ndarray | float:
    """Convert straight-line distance between unit vectors to angular degrees."""

    return np.rad2deg(2.0 * clipped_arcsin(0.5 * np.clip(chord, 0.0, 2.0)))
