"""
Resolver package for Tamilarr.

This package bundles the session-authenticated Tamilan24 scrapers and the
TMDB identity resolver used by the sync pipeline.
"""

__all__ = ["errors", "identity", "metadata_fetcher", "models", "retry", "scrapers", "session"]
