from __future__ import annotations

import logging
from datetime import date, datetime, time, timezone

from fastapi import HTTPException
from sqlalchemy import desc
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session

from kino.models.movie import Movie
from kino.models.review import Review
from kino.models.review_like import ReviewLike
from kino.models.user import User
from kino.schemas.review import ReviewCreate

logger = logging.getLogger(__name__)

MAX_VIBE_TAGS = 3
MAX_VIBE_TAG_LENGTH = 32
DEFAULT_FEED_LIMIT = 50


def normalize_vibe_tags(raw) -> list[str]:
    if raw is None:
        return []
    if isinstance(raw, str):
        raw = raw.split(",")
    if not isinstance(raw, list):
        return []
    cleaned: list[str] = []
    for t in raw:
        if t is None:
            continue
        s = str(t).strip().lower()
        if not s:
            continue
        cleaned.append(s[:MAX_VIBE_TAG_LENGTH])
    # de-dupe while preserving order
    seen = set()
    out: list[str] = []
    for t in cleaned:
        if t in seen:
            continue
        seen.add(t)
        out.append(t)
    return out[:MAX_VIBE_TAGS]


def parse_release_year(release_date: str | None) -> int | None:
    head = (release_date or "").strip()[:4]
    if len(head) == 4 and head.isdigit():
        return int(head)
    return None


def watched_at(value: date | datetime | None) -> datetime:
    if value is None:
        return datetime.now(timezone.utc)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def get_or_create_movie(
    db: Session,
    *,
    tmdb_id: int,
    title: str,
    poster_path: str | None,
    release_date: str | None,
) -> Movie:
    movie = db.query(Movie).filter(Movie.tmdb_id == tmdb_id).first()
    if movie:
        return movie

    movie = Movie(
        tmdb_id=tmdb_id,
        title=title.strip(),
        poster_path=poster_path,
        year=parse_release_year(release_date) or datetime.now(timezone.utc).year,
    )
    db.add(movie)
    try:
        db.flush()
    except IntegrityError:
        # Someone logged the same movie first; nothing else is pending in this unit of work.
        db.rollback()
        movie = db.query(Movie).filter(Movie.tmdb_id == tmdb_id).one()
    return movie


def create_review(db: Session, user: User, payload: ReviewCreate) -> Review:
    movie = get_or_create_movie(
        db,
        tmdb_id=payload.movie_id,
        title=payload.movie_title,
        poster_path=payload.poster_path,
        release_date=payload.release_date,
    )

    tags = normalize_vibe_tags(payload.vibe_tags)
    review = Review(
        user_id=user.id,
        movie_id=movie.id,
        content=(payload.content or "").strip(),
        rating_technical=payload.rating_technical,
        rating_enjoyment=payload.rating_enjoyment,
        vibe_tags=",".join(tags) or None,
        created_at=watched_at(payload.date_watched),
    )
    db.add(review)
    db.commit()
    db.refresh(review)
    logger.info("Diary entry created: review_id=%s user_id=%s tmdb_id=%s", review.id, user.id, movie.tmdb_id)
    return review


def _ordered(qry: Query) -> Query:
    return qry.order_by(desc(Review.created_at), desc(Review.id))


def list_reviews_for_user(db: Session, user_id: str) -> list[Review]:
    return _ordered(db.query(Review).filter(Review.user_id == user_id)).all()


def list_feed(db: Session, limit: int = DEFAULT_FEED_LIMIT) -> list[Review]:
    return (
        _ordered(
            db.query(Review)
            .join(User, User.id == Review.user_id)
            .filter(User.is_email_verified.is_(True))
        )
        .limit(limit)
        .all()
    )


def get_review(db: Session, review_id: int) -> Review:
    review = db.get(Review, review_id)
    if not review:
        raise HTTPException(status_code=404, detail="Review not found")
    return review


def toggle_like(db: Session, review: Review, user: User) -> tuple[bool, int]:
    """
    Like if not yet liked, otherwise unlike. Returns (liked, like_count).
    The (review_id, user_id) unique constraint settles concurrent double-likes.
    """
    existing = (
        db.query(ReviewLike)
        .filter(ReviewLike.review_id == review.id, ReviewLike.user_id == user.id)
        .first()
    )

    if existing:
        db.delete(existing)
        liked = False
    else:
        db.add(ReviewLike(review_id=review.id, user_id=user.id))
        liked = True

    try:
        db.commit()
    except IntegrityError:
        # A concurrent request inserted the same like first; the end state is "liked".
        db.rollback()
        liked = True

    count = db.query(ReviewLike).filter(ReviewLike.review_id == review.id).count()
    db.expire(review, ["likes"])
    return liked, count


def delete_review(db: Session, review: Review, user: User) -> None:
    if review.user_id != user.id:
        # Same answer as a missing id so entry ids of other users can't be probed.
        raise HTTPException(status_code=404, detail="Review not found")
    db.delete(review)
    db.commit()


def serialize_review(review: Review, viewer: User | None = None) -> dict:
    author = review.user
    profile = getattr(author, "profile", None)
    likes = list(review.likes or [])
    movie = review.movie

    return {
        "id": review.id,
        "content": review.content,
        "rating_technical": review.rating_technical,
        "rating_enjoyment": review.rating_enjoyment,
        "vibe_tags": review.tags,
        "created_at": review.created_at,
        "likes": review.like_count,
        "is_liked_by_me": bool(viewer) and any(like.user_id == viewer.id for like in likes),
        "movie": {
            "id": movie.id,
            "tmdb_id": movie.tmdb_id,
            "title": movie.title,
            "poster_path": movie.poster_path,
            "year": movie.year,
        },
        "author": {
            "user_id": author.id,
            "username": author.username,
            "display_name": (profile.display_name if profile else "") or author.username,
            "avatar_url": profile.avatar_url if profile else "",
        },
    }


def serialize_reviews(reviews: list[Review], viewer: User | None = None) -> list[dict]:
    return [serialize_review(r, viewer) for r in reviews]
