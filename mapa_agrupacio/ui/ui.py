from pathlib import Path

import streamlit as st

from mapa_agrupacio.config import settings
from mapa_agrupacio.core.store import AssociacionsStore
from mapa_agrupacio.io.catalog_loader import CatalogLoader
from mapa_agrupacio.io.local_storage import JsonFileStorage, MemoryStorage, PersistenceAdapter


def inject_css(styles_dir: Path) -> None:
    """
    Injecte le CSS global (styles/main.css).
    """
    css_path = styles_dir / "main.css"
    if not css_path.exists():
        return
    css = css_path.read_text(encoding="utf-8")
    st.markdown(f"<style>{css}</style>", unsafe_allow_html=True)


def sidebar_brand(assets_dir: Path, subtitle: str = "") -> None:
    logo = assets_dir / "logo.png"
    if logo.exists():
        st.sidebar.image(str(logo), width=140)
    st.sidebar.markdown("### Mapa d'Associacions")
    if subtitle:
        st.sidebar.caption(subtitle)
    st.sidebar.divider()


def build_store(ignore_local_storage: bool = False) -> AssociacionsStore:
    storage = MemoryStorage() if ignore_local_storage else JsonFileStorage(settings.STORAGE_DIR)
    persistence = PersistenceAdapter(storage, settings.STORAGE_KEY, strict=settings.IS_LOCAL)
    store = AssociacionsStore(CatalogLoader(), persistence, ignore_local_storage=ignore_local_storage)
    store.initialize()
    return store


def get_store(key: str, ignore_local_storage: bool = False) -> AssociacionsStore:
    """Un store par page, conservé dans st.session_state entre les reruns."""
    if key not in st.session_state:
        st.session_state[key] = build_store(ignore_local_storage=ignore_local_storage)
    return st.session_state[key]


def reload_button(key: str) -> None:
    if st.sidebar.button("Recarregar dades", key=f"reload::{key}"):
        st.session_state.pop(key, None)
        st.rerun()
