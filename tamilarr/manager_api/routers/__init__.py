"""Router collection for the Manager API."""

from . import sync, titles

__all__ = ["sync", "titles"]
