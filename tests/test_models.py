import colorsys
import random
import re

import pytest

from mapa_agrupacio.core.errors import ParseError
from mapa_agrupacio.core.models import (
    DEFAULT_ABREVIACIO,
    DEFAULT_NOM,
    Associacio,
    generate_id,
    hsl_to_hex,
    is_valid_color,
    new_associacio,
    random_color,
)

from conftest import make_assoc

ID_RE = re.compile(r"^assoc-\d+-[0-9a-z]{9}$")


def test_generate_id_format_and_uniqueness():
    ids = {generate_id() for _ in range(500)}
    assert len(ids) == 500
    assert all(ID_RE.match(i) for i in ids)
    assert generate_id(now_ms=1700000000000).startswith("assoc-1700000000000-")


@pytest.mark.parametrize(
    "hsl, expected",
    [
        ((0, 100, 50), "#ff0000"),
        ((120, 100, 50), "#00ff00"),
        ((240, 100, 25), "#000080"),
        ((0, 0, 100), "#ffffff"),
    ],
)
def test_hsl_to_hex(hsl, expected):
    assert hsl_to_hex(*hsl) == expected


def test_random_color_stays_in_saturation_and_lightness_band():
    rng = random.Random(42)
    for _ in range(200):
        c = random_color(rng)
        assert is_valid_color(c)
        r, g, b = (int(c[i : i + 2], 16) / 255 for i in (1, 3, 5))
        _, l, s = colorsys.rgb_to_hls(r, g, b)
        assert 0.39 <= l <= 0.61
        assert 0.57 <= s <= 0.92


def test_is_valid_color():
    assert is_valid_color("#A1b2C3")
    assert not is_valid_color("#abc")
    assert not is_valid_color("red")
    assert not is_valid_color(None)


def test_from_obj_round_trip_keeps_unknown_keys():
    raw = make_assoc("a1", email="x@y.cat", barri="Centre")
    a = Associacio.from_obj(raw)
    assert a.email == "x@y.cat"
    assert a.extra == {"barri": "Centre"}
    assert a.to_dict() == raw


def test_to_dict_omits_absent_optional_fields():
    d = Associacio.from_obj(make_assoc("a1")).to_dict()
    assert set(d) == {"id", "nom", "abreviacio", "color", "poligon"}


@pytest.mark.parametrize(
    "raw",
    [
        ["not", "an", "object"],
        {"nom": "sense id", "color": "#ffffff"},
        make_assoc("a1", color="vermell"),
        make_assoc("a1", poligon=[[41.0, "x"]]),
    ],
)
def test_from_obj_rejects_invalid(raw):
    with pytest.raises(ParseError):
        Associacio.from_obj(raw)


def test_merged_is_shallow_and_keeps_id():
    a = Associacio.from_obj(make_assoc("a1"))
    b = a.merged({"nom": "Nou nom", "poligon": [[0, 0], [0, 1], [1, 1]]})
    assert b.id == "a1"
    assert b.nom == "Nou nom"
    assert b.poligon == [[0.0, 0.0], [0.0, 1.0], [1.0, 1.0]]
    assert a.nom == "Test"


def test_merged_rejects_id_change():
    a = Associacio.from_obj(make_assoc("a1"))
    with pytest.raises(ValueError):
        a.merged({"id": "a2"})


def test_new_associacio_defaults():
    a = new_associacio()
    assert ID_RE.match(a.id)
    assert a.nom == DEFAULT_NOM
    assert a.abreviacio == DEFAULT_ABREVIACIO
    assert a.poligon == []
    assert is_valid_color(a.color)
    assert a.email == ""


def test_optional_field_types_survive_export():
    raw = make_assoc("a1", telefon=933950000, email="x@y.cat")
    a = Associacio.from_obj(raw)
    assert a.telefon == 933950000
    assert a.to_dict() == raw
