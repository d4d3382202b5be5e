import json
from typing import Any, Dict, List, Optional

import pytest
import requests

from mapa_agrupacio.core.geometry import VertexList
from mapa_agrupacio.core.store import AssociacionsStore
from mapa_agrupacio.io.catalog_loader import CatalogLoader
from mapa_agrupacio.io.local_storage import MemoryStorage, PersistenceAdapter

BASE_URL = "https://example.test/data"
SLOT = "mapa-tiana-dirty-data"


def make_assoc(entity_id: str, nom: str = "Test", color: str = "#ff0000", poligon=None, **extra) -> Dict[str, Any]:
    d = {
        "id": entity_id,
        "nom": nom,
        "abreviacio": nom[:3].upper(),
        "color": color,
        "poligon": poligon if poligon is not None else [[41.49, 2.26], [41.50, 2.26], [41.50, 2.27]],
    }
    d.update(extra)
    return d


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, text: Optional[str] = None) -> None:
        self.status_code = status_code
        self._payload = payload
        self._text = text

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)

    def json(self) -> Any:
        if self._text is not None:
            return json.loads(self._text)
        return self._payload


class FakeSession:
    """Routes url -> FakeResponse | Exception ; url inconnue -> 404."""

    def __init__(self, routes: Optional[Dict[str, Any]] = None) -> None:
        self.routes: Dict[str, Any] = dict(routes or {})
        self.calls: List[tuple] = []

    def add_json(self, name: str, payload: Any, status: int = 200) -> None:
        self.routes[f"{BASE_URL}/{name}"] = FakeResponse(status, payload)

    def get(self, url: str, timeout: Optional[float] = None) -> FakeResponse:
        self.calls.append((url, timeout))
        route = self.routes.get(url)
        if route is None:
            return FakeResponse(404)
        if isinstance(route, Exception):
            raise route
        return route


def publish(session: FakeSession, associacions: List[Dict[str, Any]]) -> None:
    """Publie un catalogue complet (index + un fichier par associació)."""
    files = [f"{a['id']}.json" for a in associacions]
    session.add_json("index.json", {"files": files})
    for fn, a in zip(files, associacions):
        session.add_json(fn, a)


class RecordingSurface:
    def __init__(self) -> None:
        self.shown: List[tuple] = []
        self.colors: List[str] = []
        self.live: Optional[VertexList] = None
        self.cleared = 0

    def show(self, polygon: VertexList, color: str) -> None:
        self.shown.append((polygon, color))
        self.live = None

    def set_color(self, color: str) -> None:
        self.colors.append(color)

    def current_polygon(self) -> Optional[VertexList]:
        return self.live

    def clear(self) -> None:
        self.cleared += 1
        self.live = None


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def persistence(storage) -> PersistenceAdapter:
    return PersistenceAdapter(storage, SLOT, strict=True)


@pytest.fixture
def loader(session) -> CatalogLoader:
    return CatalogLoader(BASE_URL, session=session, timeout=5.0, max_workers=4)


@pytest.fixture
def published() -> List[Dict[str, Any]]:
    return [
        make_assoc("a1", "Centre", "#d9472b"),
        make_assoc("a2", "Mas Fuster", "#2b7bd9", descripcio="Barri alt"),
    ]


@pytest.fixture
def store(session, loader, persistence, published) -> AssociacionsStore:
    publish(session, published)
    s = AssociacionsStore(loader, persistence)
    s.initialize()
    return s


@pytest.fixture
def surface() -> RecordingSurface:
    return RecordingSurface()
