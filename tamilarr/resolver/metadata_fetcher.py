"""
TMDB metadata fetcher helper.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from .errors import TransientFetchError
from .retry import RetryPolicy

logger = logging.getLogger(__name__)


class TmdbClient:
    TMDB_ENDPOINT = "https://api.themoviedb.org/3"
    IMAGE_BASE = "https://image.tmdb.org/t/p/w500"

    def __init__(
        self,
        api_key: Optional[str],
        *,
        session: Optional[requests.Session] = None,
        retry: Optional[RetryPolicy] = None,
        timeout: float = 20,
    ) -> None:
        self.api_key = api_key
        self.enabled = bool(self.api_key)
        self._session = session or requests.Session()
        self._retry = retry or RetryPolicy()
        self.timeout = timeout
        if not self.enabled:
            logger.warning("TMDB API key not set; titles will be stored unlinked.")

    def search_movie(
        self,
        query: str,
        *,
        year: Optional[int] = None,
        region: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {"query": query, "include_adult": "false"}
        if year:
            params["year"] = year
        if region:
            params["region"] = region
        data = self._get("/search/movie", params)
        if not data:
            return []
        return [item for item in data.get("results") or [] if isinstance(item, dict) and item.get("id")]

    def movie_details(self, tmdb_id: int | str) -> Optional[Dict[str, Any]]:
        return self._get(f"/movie/{tmdb_id}", {"append_to_response": "external_ids"})

    def find_by_imdb(self, imdb_id: str) -> Optional[Dict[str, Any]]:
        data = self._get(f"/find/{imdb_id}", {"external_source": "imdb_id"})
        if not data:
            return None
        results = data.get("movie_results") or []
        return results[0] if results else None

    def image_url(self, path: Optional[str]) -> Optional[str]:
        if not path:
            return None
        return f"{self.IMAGE_BASE}{path}"

    def _get(self, path: str, params: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        if not self.enabled:
            return None
        try:
            return self._retry.call(self._request, path, params)
        except TransientFetchError as exc:
            logger.warning("TMDB request %s failed after retries: %s (status=%s)", path, exc, exc.status)
            return None

    def _request(self, path: str, params: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        url = f"{self.TMDB_ENDPOINT}{path}"
        try:
            resp = self._session.get(
                url, params={"api_key": self.api_key, **params}, timeout=self.timeout
            )
        except requests.RequestException as exc:
            raise TransientFetchError(f"TMDB request failed: {exc}", url=url) from exc
        if resp.status_code >= 500 or resp.status_code == 429:
            raise TransientFetchError(
                f"TMDB responded with HTTP {resp.status_code}", url=url, status=resp.status_code
            )
        if resp.status_code != 200:
            logger.debug("TMDB %s returned HTTP %d", path, resp.status_code)
            return None
        try:
            payload = resp.json()
        except ValueError:
            logger.warning("TMDB %s returned invalid JSON", path)
            return None
        return payload if isinstance(payload, dict) else None
