from __future__ import annotations

import logging
from typing import Any

import httpx

from kino.core.config import settings

logger = logging.getLogger(__name__)


class TmdbError(Exception):
    """Base exception for TMDB lookups."""


class TmdbNotConfiguredError(TmdbError):
    """Raised when no TMDB API key is set."""


class TmdbUpstreamError(TmdbError):
    """Raised when TMDB is unreachable or answers with an error."""


def _movie_summary(raw: dict[str, Any]) -> dict[str, Any]:
    # TMDB sends null for missing posters/dates; the client expects strings.
    return {
        "id": int(raw.get("id") or 0),
        "title": raw.get("title") or "",
        "overview": raw.get("overview") or "",
        "release_date": raw.get("release_date") or "",
        "poster_path": raw.get("poster_path") or "",
    }


def _get(path: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
    """
    GET a TMDB list endpoint and return its `results`, reduced to the summary shape.

    Raises:
        TmdbNotConfiguredError: if TMDB_API_KEY is missing.
        TmdbUpstreamError: on transport errors, non-2xx answers or bad JSON.
    """
    api_key = settings.TMDB_API_KEY
    if not api_key:
        raise TmdbNotConfiguredError("TMDB API key is not configured.")

    query: dict[str, Any] = {"api_key": api_key}
    if params:
        query.update(params)

    url = f"{settings.TMDB_BASE_URL}{path}"
    try:
        response = httpx.get(url, params=query, timeout=settings.TMDB_TIMEOUT_SECONDS)
    except httpx.HTTPError as exc:
        logger.warning("TMDB request failed: path=%s error=%s", path, exc)
        raise TmdbUpstreamError("Unable to reach TMDB.") from exc

    if response.status_code >= 400:
        logger.warning("TMDB returned an error: path=%s status=%s", path, response.status_code)
        raise TmdbUpstreamError(f"TMDB returned HTTP {response.status_code}.")

    try:
        payload = response.json()
    except ValueError as exc:
        raise TmdbUpstreamError("Invalid TMDB response.") from exc

    results = payload.get("results") if isinstance(payload, dict) else None
    if not isinstance(results, list):
        return []
    return [_movie_summary(r) for r in results if isinstance(r, dict) and r.get("id")]


def search_movies(query: str) -> list[dict[str, Any]]:
    return _get("/search/movie", {"query": query})


def now_playing() -> list[dict[str, Any]]:
    return _get("/movie/now_playing")


def top_rated() -> list[dict[str, Any]]:
    return _get("/movie/top_rated")


def upcoming() -> list[dict[str, Any]]:
    return _get("/movie/upcoming")
