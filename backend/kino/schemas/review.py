from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import Field

from kino.schemas.base import CamelModel


class ReviewCreate(CamelModel):
    movie_id: int = Field(gt=0)  # TMDB id
    movie_title: str = Field(min_length=1, max_length=255)
    poster_path: Optional[str] = Field(default=None, max_length=255)
    release_date: Optional[str] = None  # "2023-12-25" as TMDB sends it

    rating_technical: int = Field(ge=0, le=100)
    rating_enjoyment: int = Field(ge=0, le=100)

    # Comma-separated from the web client; a list is accepted too.
    vibe_tags: Optional[str | list[str]] = None

    content: str = Field(default="", max_length=500)

    date_watched: Optional[date | datetime] = None


class ReviewMovieOut(CamelModel):
    id: int
    tmdb_id: int
    title: str
    poster_path: Optional[str] = None
    year: int


class ReviewAuthorOut(CamelModel):
    user_id: str
    username: str
    display_name: str = ""
    avatar_url: str = ""


class ReviewOut(CamelModel):
    id: int
    content: str
    rating_technical: int
    rating_enjoyment: int
    vibe_tags: list[str] = []
    created_at: datetime
    likes: int = 0
    is_liked_by_me: bool = False
    movie: ReviewMovieOut
    author: ReviewAuthorOut


class LikeToggleOut(CamelModel):
    liked: bool
    likes: int
