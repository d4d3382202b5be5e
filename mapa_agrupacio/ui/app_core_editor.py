# ======================================================
# mapa_agrupacio/ui/app_core_editor.py
# Éditeur : liste des associacions + formulaire + dessin du polygone
# - une seule associació éditable à la fois (EditingSession)
# - les champs restent dans le buffer de session jusqu'à "Tancar"
# - la couleur est appliquée tout de suite au polygone en cours
# - supprimer via st.dialog (une ligne + un bouton rouge)
# ======================================================

from __future__ import annotations

import html
from typing import List

import folium
import streamlit as st
from streamlit_folium import st_folium

from mapa_agrupacio.config import settings
from mapa_agrupacio.core.editing_session import EditingSession, EditorMode
from mapa_agrupacio.core.errors import MapaError
from mapa_agrupacio.core.models import Associacio
from mapa_agrupacio.core.store import AssociacionsStore
from mapa_agrupacio.ui.drawing_surface import FoliumDrawingSurface
from mapa_agrupacio.ui.ui import get_store, reload_button

STORE_KEY = "editor_store"
SESSION_KEY = "editor_session"

_TEXT_FIELDS = [
    ("nom", "Nom"),
    ("abreviacio", "Abreviació"),
]
_CONTACT_FIELDS = [
    ("contacte", "Persona de contacte"),
    ("email", "Email"),
    ("telefon", "Telèfon"),
    ("url", "Web"),
]


# ======================================================
# Helpers
# ======================================================
def _rerun_after(toast: str | None = None, icon: str | None = None) -> None:
    if toast:
        st.toast(toast, icon=icon)
    st.rerun()


def _get_session(store: AssociacionsStore) -> EditingSession:
    session = st.session_state.get(SESSION_KEY)
    if session is None or session.store is not store:
        session = EditingSession(store, FoliumDrawingSurface())
        st.session_state[SESSION_KEY] = session
    return session


def _swatch(color: str) -> str:
    return (
        f'<span style="display:inline-block;width:14px;height:14px;border-radius:3px;'
        f'background:{html.escape(color)};vertical-align:middle"></span>'
    )


# ======================================================
# Carte
# ======================================================
def build_editor_map(associacions: List[Associacio], session: EditingSession) -> folium.Map:
    m = folium.Map(
        location=list(settings.MAP_CENTER),
        zoom_start=settings.MAP_ZOOM,
        tiles=settings.TILES_URL,
        attr=settings.TILES_ATTRIBUTION,
    )
    for a in associacions:
        if a.id == session.selected_id or len(a.poligon) < 3:
            continue
        folium.Polygon(
            locations=a.poligon,
            color=a.color,
            fill_color=a.color,
            fill_opacity=0.3,
            weight=2,
            tooltip=a.nom,
        ).add_to(m)
    if session.is_active:
        session.surface.add_to(m)
    return m


def _render_map(store: AssociacionsStore, session: EditingSession) -> None:
    map_data = st_folium(
        build_editor_map(store.associacions, session),
        use_container_width=True,
        height=760,
        returned_objects=["all_drawings", "last_active_drawing"],
        key=f"editor_map::{session.selected_id or 'view'}",
    )
    if not session.is_active:
        return
    had_polygon = bool(session.editing.get("poligon"))
    live = session.surface.ingest(map_data)
    if live is None:
        return
    if had_polygon:
        session.on_shape_reshaped(live)
    else:
        session.on_shape_finalized(live)


# ======================================================
# Dialogs
# ======================================================
@st.dialog(" ")
def _dialog_delete(session: EditingSession) -> None:
    nom = (session.editing or {}).get("nom", "")
    st.markdown(f"### Eliminar l'associació **{nom}**?")
    if st.button("🗑 Eliminar", type="primary", use_container_width=True, key="ed_delete_red_btn"):
        try:
            session.delete()
        except MapaError as e:
            st.error(f"No s'ha pogut eliminar: {e}")
            return
        _rerun_after("Associació eliminada", icon="🗑")


@st.dialog(" ")
def _dialog_discard(store: AssociacionsStore) -> None:
    st.markdown("### Descartar tots els canvis locals?")
    st.caption("Es tornaran a carregar les dades publicades.")
    if st.button("Descartar", type="primary", use_container_width=True, key="ed_discard_btn"):
        st.session_state.pop(SESSION_KEY, None)
        store.discard()
        _rerun_after("Canvis descartats", icon="↩")


# ======================================================
# Panneau latéral
# ======================================================
def _render_list(store: AssociacionsStore, session: EditingSession) -> None:
    if st.button("➕ Afegir nova associació", type="primary", use_container_width=True):
        session.start_create()
        st.rerun()

    st.markdown("#### Associacions existents")
    frame = store.summary_frame()
    if frame.empty:
        st.caption("Cap associació.")
    for row in frame.itertuples(index=False):
        c1, c2 = st.columns([4, 1])
        marker = " ✏️" if row.modificat else ""
        c1.markdown(
            f"{_swatch(row.color)} **{html.escape(row.nom)}**{marker}<br>"
            f"<small>{html.escape(row.abreviacio)} · {row.punts} punts</small>",
            unsafe_allow_html=True,
        )
        if c2.button("Editar", key=f"ed_edit::{row.id}"):
            session.start_edit(row.id)
            st.rerun()

    st.divider()
    doc = store.export_entity()
    st.download_button(
        "⬇ Descarregar totes (JSON)",
        data=doc.content,
        file_name=doc.filename,
        mime=doc.mime,
        use_container_width=True,
    )
    if store.is_dirty and st.button("↩ Descartar canvis locals", use_container_width=True):
        _dialog_discard(store)


def _text(value) -> str:
    return "" if value is None else str(value)


def _render_form(session: EditingSession) -> None:
    fields = session.editing
    sid = session.selected_id
    title = "Nova associació" if session.mode is EditorMode.CREATE else "Propietats de l'associació"

    c1, c2 = st.columns([3, 1])
    c1.markdown(f"#### {title}")

    # widgets -> buffer avant le bouton Tancar
    for name, label in _TEXT_FIELDS:
        val = st.text_input(label, value=_text(fields.get(name)), key=f"ed::{sid}::{name}")
        if val != _text(fields.get(name)):
            session.update_field(name, val)

    color = st.color_picker("Color", value=fields.get("color"), key=f"ed::{sid}::color")
    if color != fields.get("color"):
        session.update_field("color", color)

    desc = st.text_area("Descripció", value=_text(fields.get("descripcio")), key=f"ed::{sid}::descripcio")
    if desc != _text(fields.get("descripcio")):
        session.update_field("descripcio", desc)

    for name, label in _CONTACT_FIELDS:
        val = st.text_input(label, value=_text(fields.get(name)), key=f"ed::{sid}::{name}")
        if val != _text(fields.get(name)):
            session.update_field(name, val)

    if c2.button("✕ Tancar", key="ed_close"):
        session.close()
        _rerun_after("Canvis desats localment", icon="💾")
        return

    n_points = len(fields.get("poligon") or [])
    if n_points == 0:
        st.info("Dibuixa el polígon sobre el mapa.")
    elif n_points < 3:
        st.warning(f"Polígon incomplet ({n_points} punts).")
    else:
        st.caption(f"Polígon: {n_points} punts")

    try:
        doc = session.current_document()
        st.download_button(
            "⬇ Descarregar JSON",
            data=doc.content,
            file_name=doc.filename,
            mime=doc.mime,
            use_container_width=True,
        )
    except MapaError as e:
        st.error(f"Exportació impossible: {e}")

    if st.button("🗑 Eliminar", use_container_width=True, key="ed_delete"):
        _dialog_delete(session)


# ======================================================
# Main
# ======================================================
def render_editor() -> None:
    store = get_store(STORE_KEY)
    reload_button(STORE_KEY)
    session = _get_session(store)

    col_map, col_panel = st.columns([3, 1])
    with col_map:
        if store.is_dirty:
            st.markdown("**✏️ Canvis no publicats**")
        _render_map(store, session)

    with col_panel:
        if session.is_active:
            _render_form(session)
        else:
            _render_list(store, session)
