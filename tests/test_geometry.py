import math

import pytest

from mapa_agrupacio.core.geometry import VertexList, bounds, centroid, contains_point, signed_area

TRIANGLE = [[0, 0], [0, 1], [1, 1]]
SQUARE = [[41.0, 2.0], [41.0, 2.2], [41.2, 2.2], [41.2, 2.0]]


def test_centroid_triangle():
    lat, lng = centroid(TRIANGLE)
    assert lat == pytest.approx(1 / 3)
    assert lng == pytest.approx(2 / 3)


def test_centroid_square_both_orientations():
    ccw = centroid(SQUARE)
    cw = centroid(list(reversed(SQUARE)))
    assert ccw == pytest.approx((41.1, 2.1))
    assert cw == pytest.approx((41.1, 2.1))


def test_signed_area_sign_depends_on_orientation():
    a = signed_area(SQUARE)
    assert a != 0
    assert signed_area(list(reversed(SQUARE))) == pytest.approx(-a)
    assert abs(a) == pytest.approx(0.04)


def test_centroid_zero_area_falls_back_to_vertex_mean():
    collinear = [[0, 0], [1, 1], [2, 2]]
    lat, lng = centroid(collinear)
    assert (lat, lng) == pytest.approx((1.0, 1.0))
    assert math.isfinite(lat) and math.isfinite(lng)


def test_centroid_short_and_empty():
    assert centroid([]) is None
    assert centroid([[41.5, 2.25]]) == pytest.approx((41.5, 2.25))
    assert centroid([[0, 0], [2, 4]]) == pytest.approx((1.0, 2.0))


def test_bounds():
    assert bounds(SQUARE) == ((41.0, 2.0), (41.2, 2.2))
    assert bounds([]) is None


def test_contains_point():
    assert contains_point(SQUARE, 41.1, 2.1)
    assert not contains_point(SQUARE, 41.3, 2.1)
    assert not contains_point([[0, 0], [1, 1]], 0.5, 0.5)


def test_vertex_list_validates_pairs():
    vl = VertexList.from_latlngs([(41.0, 2.0), [41.1, "2.1"]])
    assert vl.as_lists() == [[41.0, 2.0], [41.1, 2.1]]
    assert len(vl) == 2
    assert not vl.is_renderable
    assert not VertexList.from_latlngs(None)


@pytest.mark.parametrize(
    "coords",
    [
        [[41.0]],
        [[41.0, 2.0, 3.0]],
        [[float("nan"), 2.0]],
        [[41.0, float("inf")]],
        [["a", "b"]],
        ["xy"],
    ],
)
def test_vertex_list_rejects_invalid(coords):
    with pytest.raises(ValueError):
        VertexList.from_latlngs(coords)


def test_vertex_list_from_geojson_swaps_axes_and_drops_closing_vertex():
    geometry = {
        "type": "Polygon",
        "coordinates": [[[2.0, 41.0], [2.2, 41.0], [2.2, 41.2], [2.0, 41.0]]],
    }
    vl = VertexList.from_geojson(geometry)
    assert vl.as_lists() == [[41.0, 2.0], [41.0, 2.2], [41.2, 2.2]]


def test_vertex_list_from_geojson_rejects_other_types():
    with pytest.raises(ValueError):
        VertexList.from_geojson({"type": "Point", "coordinates": [2.0, 41.0]})
    assert not VertexList.from_geojson(None)
