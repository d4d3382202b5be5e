from __future__ import annotations

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, List

import requests

from mapa_agrupacio.config import settings
from mapa_agrupacio.core.errors import NetworkError, ParseError
from mapa_agrupacio.core.models import Associacio

logger = logging.getLogger(__name__)


def _is_http(base: str) -> bool:
    return base.lower().startswith(("http://", "https://"))


class CatalogLoader:
    """
    Charge le catalogue publié.

    1) index.json ({"files": [...]}) puis chaque fichier listé, en parallèle
    2) si un seul de ces fetchs échoue : associacions.json ({"associacions": [...]})

    `base` est une URL http(s) ou un dossier local.
    """

    def __init__(
        self,
        base: str | Path | None = None,
        session: requests.Session | None = None,
        timeout: float | None = None,
        max_workers: int | None = None,
        index_filename: str = settings.INDEX_FILENAME,
        legacy_filename: str = settings.LEGACY_FILENAME,
    ) -> None:
        self.base = str(base if base is not None else settings.DATA_URL)
        self.session = session
        self.timeout = settings.FETCH_TIMEOUT if timeout is None else timeout
        self.max_workers = max_workers or settings.FETCH_WORKERS
        self.index_filename = index_filename
        self.legacy_filename = legacy_filename

    # --------------------------------------------------
    # Public API
    # --------------------------------------------------
    def load_catalog(self) -> List[Associacio]:
        try:
            return self._load_from_index()
        except (NetworkError, ParseError) as e:
            logger.info("Index indisponible (%s), lecture du fichier unique %s", e, self.legacy_filename)
        return self._load_legacy()

    # --------------------------------------------------
    # Internals
    # --------------------------------------------------
    def _load_from_index(self) -> List[Associacio]:
        index = self._fetch_json(self.index_filename)
        files = index.get("files") if isinstance(index, dict) else None
        if not isinstance(files, list) or not all(isinstance(f, str) for f in files):
            raise ParseError(f"{self.index_filename} invalide (attendu {{'files': [str, ...]}})")
        if not files:
            return []

        workers = min(self.max_workers, len(files))
        with ThreadPoolExecutor(max_workers=workers) as exe:
            futures = [exe.submit(self._fetch_json, fn) for fn in files]
            # ordre de l'index ; la première erreur invalide tout le lot
            docs = [f.result() for f in futures]
        return [Associacio.from_obj(d) for d in docs]

    def _load_legacy(self) -> List[Associacio]:
        data = self._fetch_json(self.legacy_filename)
        if not isinstance(data, dict):
            raise ParseError(f"{self.legacy_filename} invalide (attendu un objet JSON)")
        items = data.get("associacions") or []
        if not isinstance(items, list):
            raise ParseError(f"{self.legacy_filename} invalide ('associacions' n'est pas une liste)")
        return [Associacio.from_obj(o) for o in items]

    def _location(self, name: str) -> str:
        if _is_http(self.base):
            return f"{self.base.rstrip('/')}/{name}"
        return str(Path(self.base).expanduser() / name)

    def _fetch_json(self, name: str) -> Any:
        location = self._location(name)
        if _is_http(self.base):
            return self._fetch_http(location)
        return self._read_local(Path(location))

    def _fetch_http(self, url: str) -> Any:
        http = self.session or requests
        try:
            resp = http.get(url, timeout=self.timeout)
            resp.raise_for_status()
        except requests.HTTPError as e:
            status = getattr(e.response, "status_code", None)
            raise NetworkError(f"HTTP {status} pour {url}", url=url, status=status) from e
        except requests.RequestException as e:
            raise NetworkError(f"Requête échouée pour {url}: {e}", url=url) from e
        try:
            return resp.json()
        except ValueError as e:
            raise ParseError(f"JSON invalide: {url}") from e

    def _read_local(self, path: Path) -> Any:
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            raise NetworkError(f"Lecture impossible: {path} ({e})", url=str(path)) from e
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise ParseError(f"JSON invalide: {path}") from e
