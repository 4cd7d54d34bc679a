"""Planar ring helpers on longitude/latitude degrees."""

from __future__ import annotations

import math
from typing import Any, Iterable, Sequence

from .models import LonLat, Ring


MIN_RING_POINTS = 4
DEFAULT_MAX_RING_POINTS = 2000
_DEGENERATE_AREA = 1e-12


def ring_area_deg2(ring: Sequence[LonLat]) -> float:
    """Unsigned shoelace area of a closed ring, in square degrees."""
    area = 0.0
    for (x1, y1), (x2, y2) in zip(ring, ring[1:]):
        area += x1 * y2 - x2 * y1
    return abs(area) / 2.0


def ring_centroid_deg(ring: Sequence[LonLat]) -> LonLat:
    """Area-weighted centroid of a closed ring.

    Near-zero areas (collinear or repeated points) and sums that overflow
    fall back to the plain mean of every ring point, closing point included.
    """
    a = 0.0
    cx = 0.0
    cy = 0.0
    for (x1, y1), (x2, y2) in zip(ring, ring[1:]):
        cross = x1 * y2 - x2 * y1
        a += cross
        cx += (x1 + x2) * cross
        cy += (y1 + y2) * cross

    a *= 0.5
    if abs(a) >= _DEGENERATE_AREA:
        centroid = (cx / (6.0 * a), cy / (6.0 * a))
        if math.isfinite(centroid[0]) and math.isfinite(centroid[1]):
            return centroid
    n = len(ring) or 1
    return (sum(x / n for x, _ in ring), sum(y / n for _, y in ring))


def normalize_ring(raw: Any) -> Ring | None:
    """Drop invalid points and close the ring; None if fewer than 4 remain."""
    if not isinstance(raw, (list, tuple)) or len(raw) < MIN_RING_POINTS:
        return None

    cleaned: list[LonLat] = []
    for point in raw:
        coords = _point_lon_lat(point)
        if coords is not None:
            cleaned.append(coords)
    if len(cleaned) < MIN_RING_POINTS:
        return None

    if cleaned[0] != cleaned[-1]:
        cleaned.append(cleaned[0])
    return tuple(cleaned)


def ring_to_degrees_array(ring: Iterable[LonLat]) -> list[float]:
    """Flatten a ring into ``[lon0, lat0, lon1, lat1, ...]``."""
    flat: list[float] = []
    for lon, lat in ring:
        flat.extend((lon, lat))
    return flat


def select_outer_ring(
    rings: Any,
    *,
    max_points: int = DEFAULT_MAX_RING_POINTS,
) -> tuple[Ring | None, int, int]:
    """Pick the largest-area valid ring of one ring-set.

    Returns ``(ring, rejected_invalid, rejected_too_large)``. Ties keep the
    earlier ring.
    """
    best: Ring | None = None
    best_area = -1.0
    rejected_invalid = 0
    rejected_too_large = 0
    if not isinstance(rings, (list, tuple)):
        return (None, 0, 0)

    for raw in rings:
        ring = normalize_ring(raw)
        if ring is None:
            rejected_invalid += 1
            continue
        if len(ring) > max_points:
            rejected_too_large += 1
            continue
        area = ring_area_deg2(ring)
        if area > best_area:
            best_area = area
            best = ring
    return (best, rejected_invalid, rejected_too_large)


def _point_lon_lat(point: Any) -> LonLat | None:
    if not isinstance(point, (list, tuple)) or len(point) < 2:
        return None
    lon, lat = point[0], point[1]
    if not _is_finite_number(lon) or not _is_finite_number(lat):
        return None
    return (float(lon), float(lat))


def _is_finite_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False
