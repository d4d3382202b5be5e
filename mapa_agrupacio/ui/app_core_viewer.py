# ======================================================
# mapa_agrupacio/ui/app_core_viewer.py
# Visualiseur public : polygones + étiquettes au centroïde,
# clic sur un polygone -> fiche de l'associació
# ======================================================

from __future__ import annotations

import html
from typing import List, Optional

import folium
import streamlit as st
from streamlit_folium import st_folium

from mapa_agrupacio.config import settings
from mapa_agrupacio.core.geometry import centroid, contains_point
from mapa_agrupacio.core.models import Associacio
from mapa_agrupacio.ui.ui import get_store, reload_button

STORE_KEY = "viewer_store"


# ------------------------------------------------------
# Carte
# ------------------------------------------------------
def _label_icon(text: str) -> folium.DivIcon:
    return folium.DivIcon(
        class_name="polygon-label-wrapper",
        html=f'<div class="polygon-label-content">{html.escape(text)}</div>',
        icon_size=(100, 40),
        icon_anchor=(50, 20),
    )


def build_viewer_map(associacions: List[Associacio]) -> folium.Map:
    m = folium.Map(
        location=list(settings.MAP_CENTER),
        zoom_start=settings.MAP_ZOOM,
        tiles=settings.TILES_URL,
        attr=settings.TILES_ATTRIBUTION,
    )
    for a in associacions:
        # < 3 points : dessin incomplet, rien à afficher
        if len(a.poligon) < 3:
            continue
        folium.Polygon(
            locations=a.poligon,
            color=a.color,
            fill_color=a.color,
            fill_opacity=0.4,
            weight=3,
            tooltip=a.nom,
        ).add_to(m)
        c = centroid(a.poligon)
        if c is not None:
            folium.Marker(location=list(c), icon=_label_icon(a.abreviacio)).add_to(m)
    return m


def find_clicked(associacions: List[Associacio], clicked: Optional[dict]) -> Optional[Associacio]:
    if not clicked:
        return None
    try:
        lat, lng = float(clicked["lat"]), float(clicked["lng"])
    except (KeyError, TypeError, ValueError):
        return None
    for a in associacions:
        if contains_point(a.poligon, lat, lng):
            return a
    return None


# ------------------------------------------------------
# Fiche
# ------------------------------------------------------
def _render_details(a: Associacio) -> None:
    st.markdown(
        f'<div style="background:{a.color};color:white;padding:10px 14px;'
        f'border-radius:0.6rem;font-weight:700">{html.escape(a.nom)}</div>',
        unsafe_allow_html=True,
    )
    if a.descripcio:
        st.write(a.descripcio)
    if a.contacte:
        st.markdown(f"**Contacte:** {a.contacte}")
    if a.email:
        st.markdown(f"**Email:** [{a.email}](mailto:{a.email})")
    if a.telefon:
        st.markdown(f"**Telèfon:** [{a.telefon}](tel:{a.telefon})")
    if a.url:
        st.markdown(f"[Visitar web]({a.url})")
    if st.button("Tancar", key="viewer_close"):
        st.session_state.pop("viewer_selected", None)
        st.rerun()


# ------------------------------------------------------
# Main
# ------------------------------------------------------
def render_viewer() -> None:
    store = get_store(STORE_KEY, ignore_local_storage=True)
    reload_button(STORE_KEY)

    associacions = store.associacions
    if not associacions:
        st.info("Cap associació publicada.")

    col_map, col_info = st.columns([3, 1])
    with col_map:
        map_data = st_folium(
            build_viewer_map(associacions),
            use_container_width=True,
            height=720,
            returned_objects=["last_object_clicked"],
            key="viewer_map",
        )

    # st_folium renvoie le dernier clic à chaque rerun : on ne réagit qu'aux nouveaux
    last_click = (map_data or {}).get("last_object_clicked")
    if last_click and last_click != st.session_state.get("viewer_last_click"):
        st.session_state["viewer_last_click"] = last_click
        clicked = find_clicked(associacions, last_click)
        if clicked is not None:
            st.session_state["viewer_selected"] = clicked.id

    with col_info:
        selected_id = st.session_state.get("viewer_selected")
        selected = next((a for a in associacions if a.id == selected_id), None)
        if selected is None:
            st.caption("Fes clic sobre una zona per veure'n la informació.")
        else:
            _render_details(selected)
