"""Finite-difference Laplacians on uniformly spaced lat-lon rasters.

Coordinates are radians; results are returned per square degree, the unit the
sharpness thresholds are expressed in.
"""

from __future__ import annotations

import numpy as np

from stormscan.utils.safe_math import NumericalDegeneracy, require_spacing

RAD2_TO_DEG2 = (np.pi / 180.0) ** 2


def nine_point_coefficients(dlat: float, dlon: float, half_width: int) -> tuple[float, float, float, float]:
    """Return (A, B, C, D): diagonal, longitude-offset, latitude-offset and centre weights."""

    k = _check_half_width(half_width)
    dx = require_spacing(dlon, "dlon") * k
    dy = require_spacing(dlat, "dlat") * k
    dx2 = dx * dx
    dy2 = dy * dy
    a = 1.0 / 12.0 * (1.0 / dx2 + 1.0 / dy2)
    b = 5.0 / (6.0 * dx2) - 1.0 / (6.0 * dy2)
    c = -1.0 / (6.0 * dx2) + 5.0 / (6.0 * dy2)
    d = -5.0 / 3.0 * (1.0 / dx2 + 1.0 / dy2)
    return a, b, c, d


def nine_point_laplacian(
    field: np.ndarray,
    lat: np.ndarray,
    lon: np.ndarray,
    half_width: int,
    regional: bool = False,
) -> np.ndarray:
    """9-point Laplacian with stencil offset ``half_width`` cells.

    Longitude wraps. Rows within ``half_width`` of either latitude edge (and,
    for regional grids, columns within ``half_width`` of either longitude
    edge) are NaN. A grid with no row farther than ``half_width`` from both
    latitude edges gives an all-NaN result.
    """

    data = np.asarray(field, dtype=float)
    lat_arr = np.asarray(lat, dtype=float)
    lon_arr = np.asarray(lon, dtype=float)
    if data.ndim != 2 or data.shape != (lat_arr.size, lon_arr.size):
        raise ValueError(f"Field shape {data.shape} does not match axes ({lat_arr.size}, {lon_arr.size})")
    if lat_arr.size < 2 or lon_arr.size < 2:
        raise NumericalDegeneracy("Laplacian needs at least two latitudes and two longitudes")

    k = _check_half_width(half_width)
    a, b, c, d = nine_point_coefficients(lat_arr[1] - lat_arr[0], lon_arr[1] - lon_arr[0], k)
    n_lat, n_lon = data.shape
    out = np.full(data.shape, np.nan, dtype=float)
    if n_lat <= 2 * k:
        return out

    west = np.roll(data, k, axis=1)
    east = np.roll(data, -k, axis=1)
    lo, hi = k, n_lat - k

    def rows(arr: np.ndarray, offset: int) -> np.ndarray:
        return arr[lo + offset : hi + offset]

    inner = (
        a * rows(west, -k)
        + b * rows(west, 0)
        + a * rows(west, k)
        + c * rows(data, -k)
        + d * rows(data, 0)
        + c * rows(data, k)
        + a * rows(east, -k)
        + b * rows(east, 0)
        + a * rows(east, k)
    )

    out[lo:hi] = inner * RAD2_TO_DEG2
    if regional:
        out[:, :k] = np.nan
        out[:, n_lon - k :] = np.nan
    return out


def spherical_laplacian_at(
    field: np.ndarray,
    lat: np.ndarray,
    lon: np.ndarray,
    row: int,
    col: int,
) -> float:
    """Second-order spherical Laplacian at one interior node.

    ``d2f/dphi2 - tan(phi) df/dphi + sec(phi)^2 d2f/dlambda2`` with centred
    differences; longitude wraps.
    """

    data = np.asarray(field, dtype=float)
    lat_arr = np.asarray(lat, dtype=float)
    lon_arr = np.asarray(lon, dtype=float)
    n_lat, n_lon = data.shape
    if row <= 0 or row >= n_lat - 1:
        raise IndexError(f"Row {row} has no latitude neighbors on both sides")
    dlat = require_spacing(lat_arr[1] - lat_arr[0], "dlat")
    dlon = require_spacing(lon_arr[1] - lon_arr[0], "dlon")

    i, j = int(col), int(row)
    inext = (i + 1) % n_lon
    ilast = (i + n_lon - 1) % n_lon
    center = data[j, i]

    d_phi = (data[j + 1, i] - data[j - 1, i]) / (2.0 * dlat)
    d2_phi = (data[j + 1, i] - 2.0 * center + data[j - 1, i]) / (dlat * dlat)
    d2_lambda = (data[j, inext] - 2.0 * center + data[j, ilast]) / (dlon * dlon)

    cos_lat = np.cos(lat_arr[j])
    if abs(cos_lat) < 1.0e-12:
        raise NumericalDegeneracy(f"Row {row} lies on a pole; sec(lat) is unbounded")
    sec_lat = 1.0 / cos_lat
    lap = d2_phi - np.tan(lat_arr[j]) * d_phi + sec_lat * sec_lat * d2_lambda
    return float(lap * RAD2_TO_DEG2)


def _check_half_width(half_width: int) -> int:
    k = int(half_width)
    if k < 1:
        raise NumericalDegeneracy(f"Stencil half-width must be >= 1, got {half_width}")
    return k
