from typing import Optional

from pydantic import BaseModel, Field

from kino.schemas.base import CamelModel


class MovieCreate(CamelModel):
    tmdb_id: int = Field(gt=0)
    title: str = Field(min_length=1, max_length=255)
    year: int = Field(default=0, ge=0, le=3000)
    poster_path: Optional[str] = Field(default=None, max_length=255)
    overview: Optional[str] = None


class MovieOut(CamelModel):
    id: int
    tmdb_id: int
    title: str
    year: int
    poster_path: Optional[str] = None
    overview: Optional[str] = None


# TMDB results are passed through in TMDB's own snake_case shape; the client reads them as-is.
class TmdbMovieResult(BaseModel):
    id: int
    title: str = ""
    overview: str = ""
    release_date: str = ""
    poster_path: str = ""
