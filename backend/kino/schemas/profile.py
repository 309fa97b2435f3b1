from __future__ import annotations

from datetime import datetime

from pydantic import Field

from kino.schemas.base import CamelModel


class ProfileOut(CamelModel):
    display_name: str = ""
    avatar_url: str = ""
    bio: str = ""
    favorite_movie: str = ""
    date_joined: datetime | None = None


class ProfileUpdateIn(CamelModel):
    display_name: str | None = Field(default=None, max_length=100)
    avatar_url: str | None = Field(default=None, max_length=500)
    bio: str | None = Field(default=None, max_length=500)
    favorite_movie: str | None = Field(default=None, max_length=200)


class AvatarOut(CamelModel):
    avatar_url: str


class PublicProfileOut(ProfileOut):
    user_id: str
    username: str
    review_count: int = 0


class UserSearchOut(CamelModel):
    user_id: str
    display_name: str
    avatar_url: str = ""
