import folium

from mapa_agrupacio.core.geometry import VertexList
from mapa_agrupacio.ui.drawing_surface import FoliumDrawingSurface


def _feature(ring):
    return {"type": "Feature", "properties": {}, "geometry": {"type": "Polygon", "coordinates": [ring]}}


RING = [[2.26, 41.49], [2.26, 41.50], [2.27, 41.50], [2.26, 41.49]]


def test_ingest_converts_geojson_to_latlng():
    s = FoliumDrawingSurface()
    live = s.ingest({"all_drawings": [_feature(RING)]})
    assert live.as_lists() == [[41.49, 2.26], [41.50, 2.26], [41.50, 2.27]]
    assert s.current_polygon() == live


def test_ingest_reports_only_changes():
    s = FoliumDrawingSurface()
    data = {"all_drawings": [_feature(RING)]}
    assert s.ingest(data) is not None
    assert s.ingest(data) is None
    assert s.ingest(None) is None
    assert s.ingest({"all_drawings": []}) is None


def test_ingest_uses_last_polygon_and_ignores_markers():
    s = FoliumDrawingSurface()
    marker = {"type": "Feature", "geometry": {"type": "Point", "coordinates": [2.0, 41.0]}}
    other = [[2.0, 41.0], [2.1, 41.0], [2.1, 41.1]]
    live = s.ingest({"all_drawings": [_feature(RING), marker, _feature(other)]})
    assert live.as_lists() == [[41.0, 2.0], [41.0, 2.1], [41.1, 2.1]]


def test_show_and_clear_reset_live_geometry():
    s = FoliumDrawingSurface()
    s.ingest({"last_active_drawing": _feature(RING)})
    s.show(VertexList.from_latlngs([[0, 0], [0, 1], [1, 1]]), "#123456")
    assert s.current_polygon() is None
    assert s.color == "#123456"
    s.set_color("#654321")
    assert s.color == "#654321"
    s.clear()
    assert not s.polygon


def test_add_to_map():
    s = FoliumDrawingSurface()
    s.show(VertexList.from_latlngs([[41.49, 2.26], [41.50, 2.26], [41.50, 2.27]]), "#123456")
    m = folium.Map(location=[41.49, 2.26], zoom_start=15)
    group = s.add_to(m)
    assert isinstance(group, folium.FeatureGroup)
    assert any(isinstance(c, folium.Polygon) for c in group._children.values())
