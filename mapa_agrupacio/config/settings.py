from __future__ import annotations

import logging
import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parents[2]

# Données
DATA_DIR = BASE_DIR / "data"
ASSETS = BASE_DIR / "assets"
STYLES = BASE_DIR / "styles"

MAPA_ENV = os.getenv("MAPA_ENV", "local").strip().lower()
IS_LOCAL = MAPA_ENV == "local"

# Catalogue publié : URL http(s) ou dossier local contenant index.json
DATA_URL = os.getenv("MAPA_DATA_URL", str(DATA_DIR / "associacions")).strip()
INDEX_FILENAME = "index.json"
LEGACY_FILENAME = "associacions.json"

# Slot durable des modifications locales
STORAGE_DIR = Path(os.getenv("MAPA_STORAGE_DIR", str(DATA_DIR / "local_storage"))).expanduser()
STORAGE_KEY = os.getenv("MAPA_STORAGE_KEY", "mapa-tiana-dirty-data").strip() or "mapa-tiana-dirty-data"


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


FETCH_TIMEOUT = _env_float("MAPA_FETCH_TIMEOUT", 10.0)
FETCH_WORKERS = max(1, _env_int("MAPA_FETCH_WORKERS", 8))

# Carte (Tiana)
MAP_CENTER = (41.4917, 2.2647)
MAP_ZOOM = 15
TILES_URL = "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png"
TILES_ATTRIBUTION = "&copy; OpenStreetMap contributors"

LOG_LEVEL = os.getenv("MAPA_LOG_LEVEL", "INFO").strip().upper()
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_logging_configured = False


def configure_logging(level: str | None = None) -> None:
    """Configure le logging racine une seule fois (Streamlit ré-exécute le script)."""
    global _logging_configured
    if _logging_configured:
        return
    _logging_configured = True
    logging.basicConfig(level=(level or LOG_LEVEL), format=LOG_FORMAT)
