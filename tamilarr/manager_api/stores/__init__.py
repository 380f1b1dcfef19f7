"""Persistence stores backing the manager API."""

from .catalog_store import CatalogStore

__all__ = ["CatalogStore"]
