from __future__ import annotations

import json
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

from mapa_agrupacio.core.errors import ParseError, StorageError
from mapa_agrupacio.core.models import Associacio

logger = logging.getLogger(__name__)


class KeyValueStorage(Protocol):
    """Stockage clé -> texte, durable dès le retour de set_item/remove_item."""

    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


# ======================================================
# Implémentations
# ======================================================
class MemoryStorage:
    """Stockage en mémoire (tests, mode lecture seule)."""

    def __init__(self, initial: Dict[str, str] | None = None) -> None:
        self.items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        self.items.pop(key, None)


class JsonFileStorage:
    """Un fichier <clé>.json par clé dans `folder`, écriture atomique (tmp + replace)."""

    def __init__(self, folder: Path) -> None:
        self.folder = Path(folder)

    def _path(self, key: str) -> Path:
        safe = re.sub(r"[^A-Za-z0-9._-]+", "_", key).strip("._") or "slot"
        return self.folder / f"{safe}.json"

    def get_item(self, key: str) -> Optional[str]:
        p = self._path(key)
        if not p.exists():
            return None
        return p.read_text(encoding="utf-8")

    def set_item(self, key: str, value: str) -> None:
        self.folder.mkdir(parents=True, exist_ok=True)
        p = self._path(key)
        fd, tmp_path = tempfile.mkstemp(prefix=".slot_tmp_", suffix=".json", dir=str(self.folder))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, str(p))
        finally:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)

    def remove_item(self, key: str) -> None:
        p = self._path(key)
        if p.exists():
            p.unlink()


# ======================================================
# Persistence Adapter : un seul slot nommé
# ======================================================
class PersistenceAdapter:
    """
    Sauvegarde la copie de travail complète (tableau JSON brut, non enveloppé)
    dans un slot unique du stockage injecté.

    strict=True (développement) : une écriture échouée lève StorageError.
    strict=False (production) : warning, la copie en mémoire reste la référence.
    """

    def __init__(self, storage: KeyValueStorage, key: str, strict: bool = False) -> None:
        self.storage = storage
        self.key = key
        self.strict = strict

    def save(self, associacions: List[Associacio]) -> bool:
        payload = json.dumps([a.to_dict() for a in associacions], ensure_ascii=False)
        try:
            self.storage.set_item(self.key, payload)
        except OSError as e:
            if self.strict:
                raise StorageError(f"Écriture du slot '{self.key}' impossible: {e}") from e
            logger.warning("Écriture du slot '%s' impossible, modifications gardées en mémoire: %s", self.key, e)
            return False
        return True

    def load(self) -> Optional[List[Associacio]]:
        try:
            raw = self.storage.get_item(self.key)
        except UnicodeDecodeError as e:
            raise ParseError(f"Slot '{self.key}' illisible (encodage): {e}") from e
        if raw is None or not raw.strip():
            return None
        try:
            data: Any = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ParseError(f"Slot '{self.key}' illisible: {e}") from e
        if not isinstance(data, list):
            raise ParseError(f"Slot '{self.key}' invalide (attendu une liste)")
        return [Associacio.from_obj(o) for o in data]

    def load_or_none(self) -> Optional[List[Associacio]]:
        """load() où un contenu illisible équivaut à l'absence de session."""
        try:
            return self.load()
        except ParseError as e:
            logger.warning("Session locale ignorée: %s", e)
            return None
        except OSError as e:
            logger.warning("Slot '%s' inaccessible, session locale ignorée: %s", self.key, e)
            return None

    def clear(self) -> None:
        try:
            self.storage.remove_item(self.key)
        except OSError as e:
            if self.strict:
                raise StorageError(f"Suppression du slot '{self.key}' impossible: {e}") from e
            logger.warning("Suppression du slot '%s' impossible: %s", self.key, e)
