"""
Tamilan24 listing and detail page scrapers.
"""
from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional, Tuple
from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup

from ..errors import ContentAbsentError, ListingError, TransientFetchError
from ..models import Candidate, StreamDetails
from ..retry import RetryPolicy
from ..session import SessionManager

logger = logging.getLogger(__name__)

LISTING_PATH = "/videos/latest"
LABEL_RE = re.compile(r"^(?P<title>.*?)\s*\((?P<year>\d{4})\)\s*$")
DEFAULT_QUALITY = "HD"
GENRE_SELECTORS = (".video-genre a", ".tag_video_genre a", "a[href*='/category/']")


def parse_listing_label(label: str) -> Tuple[str, Optional[int]]:
    """Split ``"Title (YYYY)"`` into its parts; unmatched labels keep no year."""

    cleaned = " ".join(label.split())
    match = LABEL_RE.match(cleaned)
    if not match or not match.group("title"):
        return cleaned, None
    return match.group("title").strip(), int(match.group("year"))


def _fetch(
    client: httpx.Client,
    url: str,
    *,
    params: Optional[Dict[str, object]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> httpx.Response:
    """GET ``url`` and translate retryable failures into TransientFetchError."""

    try:
        response = client.get(url, params=params, headers=headers)
    except httpx.TransportError as exc:
        raise TransientFetchError(f"Request failed: {exc}", url=url) from exc
    if response.status_code >= 500 or response.status_code == 429:
        raise TransientFetchError(
            f"Server responded with HTTP {response.status_code}",
            url=url,
            status=response.status_code,
        )
    return response


class ContentLister:
    """Reads one page of the latest-videos grid."""

    def __init__(
        self,
        client: httpx.Client,
        session: SessionManager,
        *,
        base_url: str,
        retry: RetryPolicy,
    ) -> None:
        self._client = client
        self._session = session
        self.base_url = base_url.rstrip("/")
        self._retry = retry

    def page_url(self, page_number: int) -> str:
        return f"{self.base_url}{LISTING_PATH}?page_id={page_number}"

    def list(self, page_number: int) -> List[Candidate]:
        """Return the candidates on ``page_number``; an empty list ends the listing."""

        url = self.page_url(page_number)
        logger.info("Fetching listing page %d: %s", page_number, url)
        try:
            response = self._retry.call(_fetch, self._client, url, headers=self._headers())
        except TransientFetchError as exc:
            raise ListingError(
                f"Listing page {page_number} unavailable: {exc}", page=page_number, status=exc.status
            ) from exc
        if response.status_code == 404:
            logger.info("Listing page %d returned 404; treating as end of listing", page_number)
            return []
        if response.status_code >= 400:
            raise ListingError(
                f"Listing page {page_number} returned HTTP {response.status_code}",
                page=page_number,
                status=response.status_code,
            )

        candidates = self.parse(response.text)
        logger.info("Found %d candidates on page %d", len(candidates), page_number)
        return candidates

    def parse(self, html: str) -> List[Candidate]:
        soup = BeautifulSoup(html, "html.parser")
        candidates: List[Candidate] = []
        for cell in soup.select(".col-md-3"):
            link = cell.select_one("a.thumb")
            heading = cell.select_one("h4 a")
            if link is None or heading is None:
                continue
            href = link.get("href")
            label = heading.get("title") or heading.get_text(strip=True)
            if not href or not label:
                continue
            title, year = parse_listing_label(label)
            if not title:
                continue
            image = cell.select_one("img")
            poster = image.get("src") if image is not None else None
            candidates.append(
                Candidate(
                    title=title,
                    year=year,
                    detail_url=urljoin(self.base_url + "/", href),
                    poster=urljoin(self.base_url + "/", poster) if poster else None,
                )
            )
        return candidates

    def _headers(self) -> Dict[str, str]:
        headers = {
            "User-Agent": self._session.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.5",
        }
        cookie = self._session.credential()
        if cookie:
            headers["Cookie"] = cookie
        return headers


class DetailResolver:
    """Extracts the stream URL and page metadata from a title's detail page.

    A page without the ``<video><source>`` marker means the session expired:
    the resolver logs in again and re-fetches once before giving up.
    """

    def __init__(
        self,
        client: httpx.Client,
        session: SessionManager,
        *,
        base_url: str,
        retry: RetryPolicy,
    ) -> None:
        self._client = client
        self._session = session
        self.referer = base_url.rstrip("/") + "/"
        self._retry = retry

    def resolve(self, detail_url: str) -> Optional[StreamDetails]:
        if not self._session.configured:
            logger.debug("Skipping %s: no source credentials configured", detail_url)
            return None

        try:
            return self._retry.call(self._fetch_details, detail_url)
        except ContentAbsentError as exc:
            logger.info("Stream marker missing for %s (status=%s); re-authenticating", detail_url, exc.status)
        except TransientFetchError as exc:
            logger.warning("Giving up on %s after retries: %s (status=%s)", detail_url, exc, exc.status)
            return None

        if not self._session.login():
            logger.warning("Re-authentication failed; skipping %s", detail_url)
            return None

        try:
            return self._retry.call(self._fetch_details, detail_url)
        except ContentAbsentError as exc:
            logger.warning("Stream still missing after re-login for %s (status=%s)", detail_url, exc.status)
        except TransientFetchError as exc:
            logger.warning("Giving up on %s after retries: %s (status=%s)", detail_url, exc, exc.status)
        return None

    def _fetch_details(self, detail_url: str) -> Optional[StreamDetails]:
        headers = {"User-Agent": self._session.user_agent, "Referer": self.referer}
        cookie = self._session.credential()
        if cookie:
            headers["Cookie"] = cookie

        response = _fetch(self._client, detail_url, headers=headers)
        if response.status_code in (401, 403):
            raise ContentAbsentError("Access denied", url=detail_url, status=response.status_code)
        if response.status_code >= 400:
            logger.warning("Detail page %s returned HTTP %d", detail_url, response.status_code)
            return None

        details = self.parse(response.text, detail_url)
        if details is None:
            raise ContentAbsentError("No stream source on page", url=detail_url, status=response.status_code)
        return details

    def parse(self, html: str, page_url: str) -> Optional[StreamDetails]:
        soup = BeautifulSoup(html, "html.parser")
        source = soup.select_one("video source[src]")
        if source is None or not source.get("src", "").strip():
            return None

        description_node = soup.select_one(".tag_video_title")
        description = description_node.get_text(" ", strip=True) if description_node else None

        genres: List[str] = []
        for selector in GENRE_SELECTORS:
            for node in soup.select(selector):
                text = node.get_text(strip=True)
                if text and text not in genres:
                    genres.append(text)
            if genres:
                break

        video = soup.select_one("video[poster]")
        poster = video.get("poster") if video is not None else None

        return StreamDetails(
            stream_url=urljoin(page_url, source["src"].strip()),
            quality=(source.get("data-quality") or "").strip() or DEFAULT_QUALITY,
            description=description or None,
            genres=tuple(genres) or None,
            poster=urljoin(page_url, poster) if poster else None,
        )
