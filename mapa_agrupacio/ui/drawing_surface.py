from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import folium
from folium import plugins

from mapa_agrupacio.core.geometry import VertexList

logger = logging.getLogger(__name__)

_SHAPE_STYLE = {"fillOpacity": 0.5, "weight": 3}
_DEFAULT_COLOR = "#f97316"


def _style(color: str) -> Dict[str, Any]:
    return {"color": color, "fillColor": color, **_SHAPE_STYLE}


class FoliumDrawingSurface:
    """
    Surface de dessin au-dessus de folium.plugins.Draw / st_folium.

    La carte est reconstruite à chaque rerun Streamlit : la géométrie
    « vivante » est celle renvoyée par le dernier st_folium (ingest()).
    """

    def __init__(self) -> None:
        self.polygon = VertexList()
        self.color = _DEFAULT_COLOR
        self._live: Optional[VertexList] = None
        self._last_raw: Any = None

    # --------------------------------------------------
    # DrawingSurface
    # --------------------------------------------------
    def show(self, polygon: VertexList, color: str) -> None:
        self.polygon = polygon
        self.color = color
        self._live = None
        self._last_raw = None

    def set_color(self, color: str) -> None:
        self.color = color

    def current_polygon(self) -> Optional[VertexList]:
        return self._live

    def clear(self) -> None:
        self.show(VertexList(), _DEFAULT_COLOR)

    # --------------------------------------------------
    # folium
    # --------------------------------------------------
    def add_to(self, m: folium.Map) -> folium.FeatureGroup:
        """Ajoute le polygone éditable et les contrôles de dessin à la carte."""
        drawn = folium.FeatureGroup(name="edicio")
        shape = self._live or self.polygon
        if shape:
            folium.Polygon(locations=shape.as_lists(), **_style(self.color)).add_to(drawn)
        drawn.add_to(m)

        plugins.Draw(
            export=False,
            feature_group=drawn,
            draw_options={
                "polygon": {"allowIntersection": False, "shapeOptions": _style(self.color)},
                "polyline": False,
                "rectangle": False,
                "circle": False,
                "circlemarker": False,
                "marker": False,
            },
            edit_options={"remove": False},
        ).add_to(m)
        return drawn

    def ingest(self, map_data: Dict[str, Any] | None) -> Optional[VertexList]:
        """
        Lit le retour de st_folium. Renvoie la nouvelle géométrie si elle a
        changé depuis le dernier appel, sinon None.
        """
        if not map_data:
            return None
        drawings: List[Dict[str, Any]] = map_data.get("all_drawings") or []
        if not drawings and map_data.get("last_active_drawing"):
            drawings = [map_data["last_active_drawing"]]

        polygons = [d for d in drawings if isinstance(d, dict) and (d.get("geometry") or {}).get("type") == "Polygon"]
        if not polygons:
            return None

        raw = polygons[-1]["geometry"]
        if raw == self._last_raw:
            return None
        self._last_raw = raw

        try:
            vl = VertexList.from_geojson(raw)
        except ValueError as e:
            logger.warning("Géométrie ignorée: %s", e)
            return None
        self._live = vl
        return vl
