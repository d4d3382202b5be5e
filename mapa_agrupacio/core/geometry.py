from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Sequence, Tuple

import numpy as np

LatLng = Tuple[float, float]

# en dessous, l'aire est considérée nulle (points alignés / confondus)
_AREA_EPS = 1e-12


@dataclass(frozen=True)
class VertexList:
    """
    Liste ordonnée de sommets [lat, lng] venant de la surface de dessin.
    Anneau fermé implicite : le dernier sommet n'est pas répété.
    """
    points: Tuple[LatLng, ...] = ()

    @classmethod
    def from_latlngs(cls, coords: Iterable[Sequence[Any]] | None) -> "VertexList":
        if coords is None:
            return cls(())
        pts: List[LatLng] = []
        for i, c in enumerate(coords):
            if isinstance(c, (str, bytes)) or not isinstance(c, Sequence) or len(c) != 2:
                raise ValueError(f"Sommet {i} invalide (attendu [lat, lng]): {c!r}")
            try:
                lat = float(c[0])
                lng = float(c[1])
            except (TypeError, ValueError):
                raise ValueError(f"Sommet {i} non numérique: {c!r}") from None
            if not (np.isfinite(lat) and np.isfinite(lng)):
                raise ValueError(f"Sommet {i} non fini: {c!r}")
            pts.append((lat, lng))
        return cls(tuple(pts))

    @classmethod
    def from_geojson(cls, geometry: dict | None) -> "VertexList":
        """
        Geometry GeoJSON Polygon -> anneau extérieur en [lat, lng].
        GeoJSON est en [lng, lat] et répète le premier sommet en fin d'anneau.
        """
        if not isinstance(geometry, dict):
            return cls(())
        if geometry.get("type") != "Polygon":
            raise ValueError(f"Géométrie non supportée: {geometry.get('type')!r}")
        rings = geometry.get("coordinates") or []
        if not rings:
            return cls(())
        ring = list(rings[0])
        if len(ring) > 1 and list(ring[0]) == list(ring[-1]):
            ring = ring[:-1]
        return cls.from_latlngs([(c[1], c[0]) for c in ring if isinstance(c, Sequence) and len(c) >= 2])

    def __len__(self) -> int:
        return len(self.points)

    def __bool__(self) -> bool:
        return bool(self.points)

    @property
    def is_renderable(self) -> bool:
        return len(self.points) >= 3

    def as_lists(self) -> List[List[float]]:
        return [[lat, lng] for lat, lng in self.points]


def _xy(coords: Sequence[Sequence[float]]) -> Tuple[np.ndarray, np.ndarray]:
    arr = np.asarray(coords, dtype=float).reshape(-1, 2)
    # x = lng, y = lat
    return arr[:, 1], arr[:, 0]


def signed_area(coords: Sequence[Sequence[float]]) -> float:
    """Aire signée (formule du lacet) en degrés², positive si anti-horaire en (lng, lat)."""
    if len(coords) < 3:
        return 0.0
    x, y = _xy(coords)
    xj, yj = np.roll(x, -1), np.roll(y, -1)
    return float(np.sum(x * yj - xj * y) / 2.0)


def centroid(coords: Sequence[Sequence[float]]) -> Optional[LatLng]:
    """
    Centroïde [lat, lng] d'un polygone par l'algorithme de l'aire signée.

    - polygone vide -> None
    - aire nulle (moins de 3 points, points alignés) -> moyenne des sommets,
      jamais Infinity/NaN
    """
    if not coords:
        return None
    x, y = _xy(coords)
    area = signed_area(coords)
    if abs(area) < _AREA_EPS:
        return float(np.mean(y)), float(np.mean(x))

    xj, yj = np.roll(x, -1), np.roll(y, -1)
    cross = x * yj - xj * y
    factor = 1.0 / (6.0 * area)
    cx = float(np.sum((x + xj) * cross) * factor)
    cy = float(np.sum((y + yj) * cross) * factor)
    return cy, cx


def bounds(coords: Sequence[Sequence[float]]) -> Optional[Tuple[LatLng, LatLng]]:
    """((lat_min, lng_min), (lat_max, lng_max)) ou None si vide."""
    if not coords:
        return None
    x, y = _xy(coords)
    return (float(y.min()), float(x.min())), (float(y.max()), float(x.max()))


def contains_point(coords: Sequence[Sequence[float]], lat: float, lng: float) -> bool:
    """Test pair-impair (ray casting) ; anneau fermé implicite."""
    if len(coords) < 3:
        return False
    inside = False
    n = len(coords)
    for i in range(n):
        yi, xi = float(coords[i][0]), float(coords[i][1])
        yj, xj = float(coords[i - 1][0]), float(coords[i - 1][1])
        if (yi > lat) != (yj > lat):
            x_cross = (xj - xi) * (lat - yi) / (yj - yi) + xi
            if lng < x_cross:
                inside = not inside
    return inside
