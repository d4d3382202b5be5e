# ======================================================
# mapa_agrupacio/core/store.py
# Copie de travail + baseline publiée + flag dirty
# - chaque mutation : mémoire -> slot local (copie complète) -> dirty
# - diff par égalité structurelle des dicts (pas de comparaison de chaînes JSON)
# - aucune erreur de chargement ne remonte : collection vide + warning
# ======================================================

from __future__ import annotations

import json
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Set

import pandas as pd

from mapa_agrupacio.core.errors import MapaError, NotFoundError
from mapa_agrupacio.core.models import Associacio
from mapa_agrupacio.io.catalog_loader import CatalogLoader
from mapa_agrupacio.io.local_storage import PersistenceAdapter

logger = logging.getLogger(__name__)

COLLECTION_FILENAME = "associacions.json"


@dataclass(frozen=True)
class ExportDocument:
    filename: str
    content: str
    mime: str = "application/json"


def entity_document(assoc: Associacio) -> ExportDocument:
    return ExportDocument(
        filename=f"{assoc.id}.json",
        content=json.dumps(assoc.to_dict(), ensure_ascii=False, indent=2),
    )


def collection_document(associacions: List[Associacio]) -> ExportDocument:
    payload = {"associacions": [a.to_dict() for a in associacions]}
    return ExportDocument(
        filename=COLLECTION_FILENAME,
        content=json.dumps(payload, ensure_ascii=False, indent=2),
    )


class AssociacionsStore:
    """
    Store des associacions.

    ignore_local_storage=True (visualiseur) : on ne lit jamais le slot local
    et on ne charge pas la baseline.
    """

    def __init__(
        self,
        loader: CatalogLoader,
        persistence: PersistenceAdapter,
        ignore_local_storage: bool = False,
    ) -> None:
        self.loader = loader
        self.persistence = persistence
        self.ignore_local_storage = ignore_local_storage

        self._working: List[Associacio] = []
        self._baseline: List[Associacio] = []
        self._baseline_future: Optional[Future] = None
        self.is_dirty = False
        self.loading = False

    # --------------------------------------------------
    # Chargement
    # --------------------------------------------------
    def initialize(self) -> None:
        self.loading = True
        if not self.ignore_local_storage:
            self._start_baseline_load()
        try:
            saved = None if self.ignore_local_storage else self.persistence.load_or_none()
            if saved is not None:
                self._working = saved
                self.is_dirty = True
                logger.info("Session locale restaurée (%d associacions)", len(saved))
                return

            self._working = self._load_catalog_safe("copie de travail")
            self.is_dirty = False
        finally:
            self.loading = False

    def _load_catalog_safe(self, label: str) -> List[Associacio]:
        try:
            return self.loader.load_catalog()
        except MapaError as e:
            logger.warning("Chargement %s impossible, collection vide: %s", label, e)
            return []

    def _start_baseline_load(self) -> None:
        self._baseline = []
        exe = ThreadPoolExecutor(max_workers=1, thread_name_prefix="baseline")
        self._baseline_future = exe.submit(self._load_catalog_safe, "baseline")
        exe.shutdown(wait=False)

    @property
    def baseline(self) -> List[Associacio]:
        """Baseline publiée ; attend la fin du chargement en arrière-plan si besoin."""
        fut = self._baseline_future
        if fut is not None:
            self._baseline = fut.result()
            self._baseline_future = None
        return list(self._baseline)

    # --------------------------------------------------
    # Lecture
    # --------------------------------------------------
    @property
    def associacions(self) -> List[Associacio]:
        return list(self._working)

    def get(self, entity_id: str) -> Associacio:
        idx = self._find_index(entity_id)
        if idx is None:
            raise NotFoundError(entity_id)
        return self._working[idx]

    def ids(self) -> List[str]:
        return [a.id for a in self._working]

    # --------------------------------------------------
    # Mutations
    # --------------------------------------------------
    def create(self, assoc: Associacio) -> None:
        self._commit(self._working + [assoc])

    def update(self, entity_id: str, patch: Dict[str, Any]) -> None:
        if not patch:
            return
        idx = self._find_index(entity_id)
        if idx is None:
            # une suppression a pu passer avant cette mise à jour
            logger.debug("update ignoré, associació absente: %s", entity_id)
            return
        updated = list(self._working)
        updated[idx] = updated[idx].merged(patch)
        self._commit(updated)

    def delete(self, entity_id: str) -> None:
        if self._find_index(entity_id) is None:
            raise NotFoundError(entity_id)
        self._commit([a for a in self._working if a.id != entity_id])

    def discard(self) -> None:
        self.persistence.clear()
        self.is_dirty = False
        self.initialize()

    def _commit(self, associacions: List[Associacio]) -> None:
        self.persistence.save(associacions)
        self._working = associacions
        self.is_dirty = True

    # --------------------------------------------------
    # Diff / export
    # --------------------------------------------------
    def diff(self) -> Set[str]:
        """Ids nouveaux (absents de la baseline) ou modifiés (contenu différent)."""
        published = {a.id: a.to_dict() for a in self.baseline}
        dirty: Set[str] = set()
        for a in self._working:
            ref = published.get(a.id)
            if ref is None or ref != a.to_dict():
                dirty.add(a.id)
        return dirty

    def export_entity(self, entity_id: str | None = None) -> ExportDocument:
        if entity_id is None:
            return collection_document(self._working)
        return entity_document(self.get(entity_id))

    def summary_frame(self) -> pd.DataFrame:
        dirty = self.diff() if self._working else set()
        rows = [
            {
                "id": a.id,
                "nom": a.nom,
                "abreviacio": a.abreviacio,
                "color": a.color,
                "punts": len(a.poligon),
                "modificat": a.id in dirty,
            }
            for a in self._working
        ]
        return pd.DataFrame(rows, columns=["id", "nom", "abreviacio", "color", "punts", "modificat"])

    # --------------------------------------------------
    # Internals
    # --------------------------------------------------
    def _find_index(self, entity_id: str) -> Optional[int]:
        for i, a in enumerate(self._working):
            if a.id == entity_id:
                return i
        return None
