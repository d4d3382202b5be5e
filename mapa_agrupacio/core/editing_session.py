from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, Optional, Protocol, Sequence

from mapa_agrupacio.core.geometry import VertexList
from mapa_agrupacio.core.models import EDITABLE_FIELDS, is_valid_color, new_associacio
from mapa_agrupacio.core.store import AssociacionsStore, ExportDocument, entity_document

logger = logging.getLogger(__name__)


class EditorMode(str, Enum):
    VIEW = "view"
    EDIT = "edit"
    CREATE = "create"


class DrawingSurface(Protocol):
    """Surface de dessin externe (carte) : un seul polygone éditable à la fois."""

    def show(self, polygon: VertexList, color: str) -> None: ...

    def set_color(self, color: str) -> None: ...

    def current_polygon(self) -> Optional[VertexList]: ...

    def clear(self) -> None: ...


class EditingSession:
    """
    Machine à états de l'éditeur : VIEW, EDIT(id), CREATE(id).

    Les champs modifiés restent dans un buffer local jusqu'à close() ;
    seule la couleur est poussée tout de suite vers la surface (aperçu).
    À la fermeture, la géométrie vivante de la surface fait foi.
    """

    def __init__(self, store: AssociacionsStore, surface: DrawingSurface) -> None:
        self.store = store
        self.surface = surface
        self.mode = EditorMode.VIEW
        self.selected_id: Optional[str] = None
        self.editing: Optional[Dict[str, Any]] = None

    @property
    def is_active(self) -> bool:
        return self.mode is not EditorMode.VIEW

    # --------------------------------------------------
    # Transitions
    # --------------------------------------------------
    def start_edit(self, entity_id: str) -> None:
        self.store.get(entity_id)
        if self.is_active:
            self.close()
        # relu après close() : rouvrir la même entité part des valeurs committées
        assoc = self.store.get(entity_id)
        self._open(assoc.to_dict(), EditorMode.EDIT)

    def start_create(self) -> str:
        if self.is_active:
            self.close()
        assoc = new_associacio()
        # créée tout de suite : fermer sans dessiner laisse une entité récupérable
        self.store.create(assoc)
        self._open(assoc.to_dict(), EditorMode.CREATE)
        return assoc.id

    def close(self) -> None:
        if not self.is_active or self.editing is None:
            return
        merged = dict(self.editing)
        live = self.surface.current_polygon()
        if live:
            merged["poligon"] = live.as_lists()
        self.store.update(self.selected_id, merged)
        logger.debug("Session fermée pour %s (%d points)", self.selected_id, len(merged.get("poligon") or []))
        self._reset()

    def delete(self) -> None:
        if not self.is_active:
            return
        self.store.delete(self.selected_id)
        self._reset()

    # --------------------------------------------------
    # Édition
    # --------------------------------------------------
    def update_field(self, name: str, value: Any) -> None:
        self._require_active()
        if name not in EDITABLE_FIELDS or name == "poligon":
            raise KeyError(f"Champ non éditable: {name}")
        if name == "color":
            if not is_valid_color(value):
                raise ValueError(f"Couleur invalide: {value!r}")
            self.surface.set_color(value)
        self.editing[name] = value

    def on_shape_finalized(self, vertices: VertexList | Sequence[Sequence[float]]) -> None:
        self._set_polygon(vertices)

    def on_shape_reshaped(self, vertices: VertexList | Sequence[Sequence[float]]) -> None:
        self._set_polygon(vertices)

    def current_document(self) -> ExportDocument:
        """Export de l'entité en cours, avec la géométrie vivante de la surface."""
        self._require_active()
        data = dict(self.editing)
        live = self.surface.current_polygon()
        if live:
            data["poligon"] = live.as_lists()
        return entity_document(self.store.get(self.selected_id).merged(data))

    # --------------------------------------------------
    # Internals
    # --------------------------------------------------
    def _open(self, fields: Dict[str, Any], mode: EditorMode) -> None:
        self.mode = mode
        self.selected_id = fields["id"]
        self.editing = fields
        self.surface.show(VertexList.from_latlngs(fields.get("poligon")), fields["color"])

    def _set_polygon(self, vertices: VertexList | Sequence[Sequence[float]]) -> None:
        self._require_active()
        vl = vertices if isinstance(vertices, VertexList) else VertexList.from_latlngs(vertices)
        self.editing["poligon"] = vl.as_lists()

    def _require_active(self) -> None:
        if not self.is_active or self.editing is None:
            raise RuntimeError("Aucune associació en cours d'édition.")

    def _reset(self) -> None:
        self.surface.clear()
        self.mode = EditorMode.VIEW
        self.selected_id = None
        self.editing = None
