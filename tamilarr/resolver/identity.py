"""
Reconcile scraped titles with TMDB and return a record carrying an IMDb id.

Matching is two-phase: every search hit is scored locally, then the best
hits are validated one at a time by fetching the full record. A match is
only accepted once its IMDb id has been seen.
"""
from __future__ import annotations

import logging
import re
import unicodedata
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .metadata_fetcher import TmdbClient
from .models import CanonicalRecord

logger = logging.getLogger(__name__)

# Tier weights. Only the ordering matters: any exact-title tier beats every
# lower tier whatever the bonuses. Unscored hits (0) are still validated, last
# and in provider order.
EXACT_YEAR_LANGUAGE = 400
EXACT_YEAR = 300
EXACT_LANGUAGE = 200
EXACT_ONLY = 100
LOOSE_YEAR_LANGUAGE = 20
POPULARITY_BONUS = 5

SEPARATORS_RE = re.compile(r"[\-_|.:–—\[\](){}]+")
FILLER_TOKENS = {
    "hd",
    "hdrip",
    "webrip",
    "dvdrip",
    "tamil",
    "movie",
    "full",
    "watch",
    "online",
    "uncut",
    "1080p",
    "720p",
    "480p",
}


def normalize_title(title: str) -> str:
    """Clean a listing title into a search query."""

    text = SEPARATORS_RE.sub(" ", title or "")
    tokens = text.split()
    while len(tokens) > 1 and tokens[-1].lower() in FILLER_TOKENS:
        tokens.pop()
    return " ".join(tokens)


def comparison_key(title: Optional[str]) -> str:
    """Accent-, case- and punctuation-insensitive form used for exact matching."""

    if not title:
        return ""
    decomposed = unicodedata.normalize("NFKD", title)
    ascii_value = decomposed.encode("ascii", "ignore").decode("ascii").lower()
    return re.sub(r"[^a-z0-9]+", "", ascii_value)


def _release_year(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    try:
        return int(value.split("-")[0])
    except ValueError:
        return None


@dataclass(frozen=True)
class ScoredCandidate:
    tmdb_id: int
    title: str
    score: int


def score_result(
    result: Dict[str, Any],
    *,
    query_key: str,
    year: Optional[int],
    languages: Sequence[str],
) -> int:
    """Place one search hit into its precedence tier."""

    exact = query_key != "" and query_key in {
        comparison_key(result.get("title")),
        comparison_key(result.get("original_title")),
    }
    year_match = year is not None and _release_year(result.get("release_date")) == year
    language_match = (result.get("original_language") or "").lower() in languages

    if exact and year_match and language_match:
        score = EXACT_YEAR_LANGUAGE
    elif exact and year_match:
        score = EXACT_YEAR
    elif exact and language_match:
        score = EXACT_LANGUAGE
    elif exact:
        score = EXACT_ONLY
    elif year_match and language_match:
        score = LOOSE_YEAR_LANGUAGE
    else:
        return 0

    if result.get("popularity"):
        score += POPULARITY_BONUS
    return score


def rank_candidates(
    results: Iterable[Dict[str, Any]],
    *,
    title: str,
    year: Optional[int],
    languages: Sequence[str],
) -> List[ScoredCandidate]:
    """Score and order every hit, keeping provider order among equal scores."""

    query_key = comparison_key(title)
    scored: List[ScoredCandidate] = []
    for result in results:
        score = score_result(result, query_key=query_key, year=year, languages=languages)
        scored.append(
            ScoredCandidate(
                tmdb_id=int(result["id"]),
                title=result.get("title") or result.get("original_title") or "",
                score=score,
            )
        )
    # sorted() is stable, so ties stay in first-seen order.
    return sorted(scored, key=lambda item: item.score, reverse=True)


class IdentityResolver:
    def __init__(
        self,
        client: TmdbClient,
        *,
        region: str = "IN",
        languages: Sequence[str] = ("ta",),
        max_validations: int = 5,
    ) -> None:
        self._client = client
        self.region = region
        self.languages = tuple(language.lower() for language in languages)
        self.max_validations = max_validations

    @property
    def enabled(self) -> bool:
        return self._client.enabled

    def match(self, title: str, year: Optional[int]) -> Optional[CanonicalRecord]:
        if not self.enabled or not title:
            return None

        query = normalize_title(title)
        if not query:
            return None
        logger.debug("Matching '%s' (%s) as query '%s'", title, year, query)

        results = self._search_all(query, year)
        if not results:
            logger.info("No TMDB results for '%s' (%s)", title, year)
            return None

        ranked = rank_candidates(results, title=query, year=year, languages=self.languages)
        for candidate in ranked[: self.max_validations]:
            record = self._validate(candidate.tmdb_id)
            if record is not None:
                logger.info(
                    "Matched '%s' (%s) to tmdb=%s imdb=%s (score %d)",
                    title,
                    year,
                    record.tmdb_id,
                    record.imdb_id,
                    candidate.score,
                )
                return record
            logger.debug("Candidate tmdb=%s has no IMDb id; trying next", candidate.tmdb_id)

        logger.info("No validated TMDB match for '%s' (%s)", title, year)
        return None

    def match_by_canonical_id(self, imdb_id: str) -> Optional[CanonicalRecord]:
        if not self.enabled or not imdb_id:
            return None
        found = self._client.find_by_imdb(imdb_id.strip())
        if not found or not found.get("id"):
            logger.info("TMDB has no movie for %s", imdb_id)
            return None
        return self._validate(int(found["id"]))

    def _search_all(self, query: str, year: Optional[int]) -> List[Dict[str, Any]]:
        permutations: List[Tuple[Optional[int], Optional[str]]] = [
            (year, self.region),
            (None, self.region),
            (year, None),
            (None, None),
        ]
        seen_params = set()
        seen_ids = set()
        merged: List[Dict[str, Any]] = []
        for search_year, region in permutations:
            if (search_year, region) in seen_params:
                continue
            seen_params.add((search_year, region))
            for result in self._client.search_movie(query, year=search_year, region=region):
                if result["id"] in seen_ids:
                    continue
                seen_ids.add(result["id"])
                merged.append(result)
        return merged

    def _validate(self, tmdb_id: int) -> Optional[CanonicalRecord]:
        details = self._client.movie_details(tmdb_id)
        if not details:
            return None
        external_ids = details.get("external_ids") or {}
        imdb_id = (details.get("imdb_id") or external_ids.get("imdb_id") or "").strip()
        if not imdb_id:
            return None

        genres = tuple(
            genre["name"] for genre in details.get("genres") or [] if isinstance(genre, dict) and genre.get("name")
        )
        rating = details.get("vote_average")
        runtime = details.get("runtime")
        return CanonicalRecord(
            imdb_id=imdb_id,
            tmdb_id=str(details.get("id") or tmdb_id),
            title=details.get("title") or details.get("original_title"),
            year=_release_year(details.get("release_date")),
            genres=genres or None,
            rating=float(rating) if rating else None,
            poster=self._client.image_url(details.get("poster_path")),
            description=(details.get("overview") or "").strip() or None,
            runtime=int(runtime) if runtime else None,
            language=details.get("original_language") or None,
        )
