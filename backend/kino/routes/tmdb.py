from typing import Callable

from fastapi import APIRouter, HTTPException, Query

from kino.schemas.movie import TmdbMovieResult
from kino.services import tmdb
from kino.services.tmdb import TmdbError, TmdbNotConfiguredError

router = APIRouter(prefix="/api/tmdb", tags=["tmdb"])


def _call(fn: Callable[..., list], *args) -> list:
    try:
        return fn(*args)
    except TmdbNotConfiguredError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except TmdbError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.get("/search", response_model=list[TmdbMovieResult])
def search(query: str = Query(default="", max_length=200)):
    term = query.strip()
    if not term:
        raise HTTPException(status_code=400, detail="Query is required")
    return _call(tmdb.search_movies, term)


@router.get("/now-playing", response_model=list[TmdbMovieResult])
def now_playing():
    return _call(tmdb.now_playing)


@router.get("/top-rated", response_model=list[TmdbMovieResult])
def top_rated():
    return _call(tmdb.top_rated)


@router.get("/upcoming", response_model=list[TmdbMovieResult])
def upcoming():
    return _call(tmdb.upcoming)
