from __future__ import annotations


class MapaError(Exception):
    """Erreur de base de l'application."""


class NetworkError(MapaError):
    """Lecture impossible (requête échouée, statut non 2xx, fichier absent)."""

    def __init__(self, message: str, url: str | None = None, status: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status = status


class ParseError(MapaError, ValueError):
    """Contenu JSON invalide ou document de forme inattendue."""


class NotFoundError(MapaError, KeyError):
    """L'id demandé n'existe pas dans la copie de travail."""

    def __init__(self, entity_id: str) -> None:
        super().__init__(f"Associació introuvable: {entity_id}")
        self.entity_id = entity_id

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class StorageError(MapaError):
    """Écriture du slot local impossible (quota, disque, permissions)."""
