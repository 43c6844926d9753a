"""Great-circle distance helpers for proximity ordering."""

from __future__ import annotations

from typing import Any, Sequence

import numpy as np

EARTH_RADIUS_M = 6_371_008.8


def haversine_m(
    origin_lng: float,
    origin_lat: float,
    lngs: np.ndarray,
    lats: np.ndarray,
) -> np.ndarray:
    """Vectorised haversine distance in metres from one origin to many points."""
    lng0, lat0 = np.radians(origin_lng), np.radians(origin_lat)
    lng1, lat1 = np.radians(lngs), np.radians(lats)

    a = (
        np.sin((lat1 - lat0) / 2.0) ** 2
        + np.cos(lat0) * np.cos(lat1) * np.sin((lng1 - lng0) / 2.0) ** 2
    )
    return 2.0 * EARTH_RADIUS_M * np.arcsin(np.sqrt(np.clip(a, 0.0, 1.0)))


def extract_coord(doc: dict[str, Any]) -> tuple[float, float] | None:
    """Return ``(lng, lat)`` from ``address.coord``, or ``None`` if unusable."""
    coord = (doc.get("address") or {}).get("coord")
    if not isinstance(coord, (list, tuple)) or len(coord) != 2:
        return None
    try:
        return float(coord[0]), float(coord[1])
    except (TypeError, ValueError):
        return None


def sort_by_proximity(
    docs: Sequence[dict[str, Any]],
    lng: float,
    lat: float,
) -> list[dict[str, Any]]:
    """
    Order documents nearest-first from ``(lng, lat)``.

    Documents without a usable coordinate keep their relative order and go last.
    """
    located: list[dict[str, Any]] = []
    points: list[tuple[float, float]] = []
    unlocated: list[dict[str, Any]] = []
    for doc in docs:
        coord = extract_coord(doc)
        if coord is None:
            unlocated.append(doc)
        else:
            located.append(doc)
            points.append(coord)

    if not located:
        return unlocated

    arr = np.asarray(points, dtype=float)
    distances = haversine_m(lng, lat, arr[:, 0], arr[:, 1])
    order = np.argsort(distances, kind="stable")
    return [located[i] for i in order] + unlocated
