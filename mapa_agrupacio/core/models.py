# ======================================================
# mapa_agrupacio/core/models.py
# Associacio : entité publiée (un fichier JSON par associació)
# - les clés inconnues du JSON sont conservées (extra) et ré-émises
# - couleurs générées en HSL (saturation 60-90 %, luminosité 40-60 %)
# ======================================================

from __future__ import annotations

import colorsys
import random
import re
import string
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from mapa_agrupacio.core.errors import ParseError
from mapa_agrupacio.core.geometry import VertexList

HEX_COLOR_RE = re.compile(r"^#[0-9a-fA-F]{6}$")

REQUIRED_FIELDS = ("id", "nom", "abreviacio", "color", "poligon")
OPTIONAL_FIELDS = ("url", "descripcio", "contacte", "email", "telefon")
EDITABLE_FIELDS = ("nom", "abreviacio", "color", "poligon") + OPTIONAL_FIELDS

DEFAULT_NOM = "Nova Associació"
DEFAULT_ABREVIACIO = "NOVA"

_BASE36 = string.digits + string.ascii_lowercase


@dataclass
class Associacio:
    id: str
    nom: str = ""
    abreviacio: str = ""
    color: str = "#f97316"
    poligon: List[List[float]] = field(default_factory=list)
    url: Optional[Any] = None
    descripcio: Optional[Any] = None
    contacte: Optional[Any] = None
    email: Optional[Any] = None
    telefon: Optional[Any] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    # --------------------------------------------------
    # Parsing / sérialisation
    # --------------------------------------------------
    @classmethod
    def from_obj(cls, obj: Any) -> "Associacio":
        if not isinstance(obj, dict):
            raise ParseError(f"Associació invalide (attendu un objet JSON): {type(obj).__name__}")

        entity_id = obj.get("id")
        if not isinstance(entity_id, str) or not entity_id.strip():
            raise ParseError("Associació sans 'id'.")

        color = obj.get("color", "")
        if not is_valid_color(color):
            raise ParseError(f"Couleur invalide pour {entity_id}: {color!r}")

        try:
            poligon = VertexList.from_latlngs(obj.get("poligon") or []).as_lists()
        except ValueError as e:
            raise ParseError(f"Polygone invalide pour {entity_id}: {e}") from e

        # valeurs optionnelles gardées telles quelles (un telefon numérique reste numérique)
        optional = {k: obj.get(k) for k in OPTIONAL_FIELDS}

        extra = {k: v for k, v in obj.items() if k not in REQUIRED_FIELDS and k not in OPTIONAL_FIELDS}

        return cls(
            id=entity_id,
            nom=str(obj.get("nom", "") or ""),
            abreviacio=str(obj.get("abreviacio", "") or ""),
            color=color,
            poligon=poligon,
            extra=extra,
            **optional,
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "nom": self.nom,
            "abreviacio": self.abreviacio,
            "color": self.color,
            "poligon": [list(p) for p in self.poligon],
        }
        for k in OPTIONAL_FIELDS:
            v = getattr(self, k)
            if v is not None:
                out[k] = v
        out.update(self.extra)
        return out

    def merged(self, patch: Dict[str, Any]) -> "Associacio":
        """Fusion superficielle du patch sur l'entité (l'id reste immuable)."""
        if "id" in patch and patch["id"] != self.id:
            raise ValueError(f"L'id d'une associació est immuable ({self.id} -> {patch['id']}).")
        data = self.to_dict()
        data.update(patch)
        if isinstance(data.get("poligon"), VertexList):
            data["poligon"] = data["poligon"].as_lists()
        return Associacio.from_obj(data)

    @property
    def vertices(self) -> VertexList:
        return VertexList.from_latlngs(self.poligon)


# ======================================================
# Ids & couleurs
# ======================================================
def generate_id(rng: random.Random | None = None, now_ms: int | None = None) -> str:
    """assoc-<epoch ms>-<9 caractères base36>"""
    r = rng or random
    ts = int(time.time() * 1000) if now_ms is None else int(now_ms)
    suffix = "".join(r.choice(_BASE36) for _ in range(9))
    return f"assoc-{ts}-{suffix}"


def is_valid_color(value: Any) -> bool:
    return isinstance(value, str) and bool(HEX_COLOR_RE.match(value))


def hsl_to_hex(hue: float, saturation: float, lightness: float) -> str:
    """hue en degrés [0, 360), saturation / lightness en pourcents."""
    r, g, b = colorsys.hls_to_rgb((hue % 360) / 360.0, lightness / 100.0, saturation / 100.0)
    return "#" + "".join(f"{round(c * 255):02x}" for c in (r, g, b))


def random_color(rng: random.Random | None = None) -> str:
    r = rng or random
    hue = r.randrange(360)
    saturation = 60 + r.randrange(30)
    lightness = 40 + r.randrange(20)
    return hsl_to_hex(hue, saturation, lightness)


def new_associacio(entity_id: str | None = None, color: str | None = None) -> Associacio:
    """Entité vide avec les valeurs par défaut de l'éditeur."""
    return Associacio(
        id=entity_id or generate_id(),
        nom=DEFAULT_NOM,
        abreviacio=DEFAULT_ABREVIACIO,
        color=color or random_color(),
        poligon=[],
        url="",
        descripcio="",
        contacte="",
        email="",
        telefon="",
    )
