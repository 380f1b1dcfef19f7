"""Tamilarr Manager API: catalog queries, manual linking and sync triggers."""

from .app import create_app

__all__ = ["create_app"]
