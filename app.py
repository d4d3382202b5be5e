from __future__ import annotations

import logging

import streamlit as st
from streamlit_option_menu import option_menu

from mapa_agrupacio.config import settings
from mapa_agrupacio.ui.app_core_editor import render_editor
from mapa_agrupacio.ui.app_core_viewer import render_viewer
from mapa_agrupacio.ui.ui import inject_css, sidebar_brand


# ======================================================
# PATHS & CONFIG
# ======================================================
settings.configure_logging()
logger = logging.getLogger("mapa_agrupacio.app")

st.set_page_config(
    page_title="Mapa d'Associacions",
    page_icon=str(settings.ASSETS / "favicon.png") if (settings.ASSETS / "favicon.png").exists() else "🗺",
    layout="wide",
    initial_sidebar_state="expanded",
)

inject_css(settings.STYLES)


# ======================================================
# NAV
# ======================================================
NAV = {
    "Mapa": "map",
    "Editor": "pencil-square",
}

SIDEBAR_STYLES = {
    "container": {"padding": "0!important"},
    "icon": {"font-size": "0.95rem", "opacity": "0.85"},
    "nav-link": {
        "font-size": "0.92rem",
        "padding": "6px 10px",
        "border-radius": "0.5rem",
        "transition": "background-color 120ms ease",
    },
    "nav-link-hover": {"background-color": "rgba(0,0,0,0.06)"},
    "nav-link-selected": {
        "background-color": "rgba(0,0,0,0.10)",
        "font-weight": "700",
        "border-radius": "0.5rem",
    },
}


def _sidebar_nav() -> str:
    sidebar_brand(settings.ASSETS, subtitle="Agrupació de Tiana")
    with st.sidebar:
        return option_menu(
            menu_title=None,
            options=list(NAV.keys()),
            icons=list(NAV.values()),
            orientation="vertical",
            key="main_nav",
            styles=SIDEBAR_STYLES,
        )


# ======================================================
# PAGES
# ======================================================
def page_viewer() -> None:
    try:
        render_viewer()
    except Exception as e:
        logger.exception("Visualiseur cassé")
        st.error("💥 El mapa ha fallat (error real a sota) :")
        st.exception(e)


def page_editor() -> None:
    if not settings.IS_LOCAL:
        st.warning("L'editor desa els canvis en aquest servidor; cal exportar-los i publicar-los manualment.")
    try:
        render_editor()
    except Exception as e:
        logger.exception("Éditeur cassé")
        st.error("💥 L'editor ha fallat (error real a sota) :")
        st.exception(e)


ROUTES: dict[str, callable] = {
    "Mapa": page_viewer,
    "Editor": page_editor,
}


# ======================================================
# RUN
# ======================================================
selected_page = _sidebar_nav()
handler = ROUTES.get(selected_page)

if not handler:
    st.error("Navegació desconeguda.")
else:
    handler()
    st.stop()
