from __future__ import annotations

from fastapi import HTTPException
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from kino.models.review import Review
from kino.models.user import User
from kino.models.user_profile import UserProfile

SEARCH_RESULT_LIMIT = 10


def get_or_create_profile(db: Session, user: User) -> UserProfile:
    """Accounts created before profiles existed get an empty row on first access."""
    profile = db.query(UserProfile).filter(UserProfile.user_id == user.id).first()
    if profile:
        return profile

    profile = UserProfile(user_id=user.id, display_name=user.username)
    db.add(profile)
    db.commit()
    db.refresh(profile)
    return profile


def update_profile(db: Session, profile: UserProfile, data: dict) -> UserProfile:
    """
    Partial update: only keys present in `data` are touched; strings are trimmed.
    """
    for k, v in data.items():
        if v is None:
            continue
        setattr(profile, k, v.strip() if isinstance(v, str) else v)

    db.add(profile)
    db.commit()
    db.refresh(profile)
    return profile


def get_public_profile(db: Session, user_id: str) -> dict:
    user = db.get(User, user_id) if user_id else None
    # Pending (unverified) accounts are not browsable.
    if not user or not user.is_email_verified:
        raise HTTPException(status_code=404, detail="User not found")

    profile = get_or_create_profile(db, user)
    review_count = db.query(func.count(Review.id)).filter(Review.user_id == user.id).scalar() or 0

    return {
        "user_id": user.id,
        "username": user.username,
        "display_name": profile.display_name,
        "avatar_url": profile.avatar_url,
        "bio": profile.bio,
        "favorite_movie": profile.favorite_movie,
        "date_joined": profile.date_joined,
        "review_count": int(review_count),
    }


def search_profiles(db: Session, query: str | None) -> list[dict]:
    term = (query or "").strip().lower()
    if not term:
        return []

    # Wildcards in the query are matched literally.
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    like = f"%{escaped}%"
    rows = (
        db.query(UserProfile, User)
        .join(User, User.id == UserProfile.user_id)
        .filter(User.is_email_verified.is_(True))
        .filter(
            or_(
                func.lower(UserProfile.display_name).like(like, escape="\\"),
                func.lower(User.username).like(like, escape="\\"),
            )
        )
        .order_by(UserProfile.display_name.asc())
        .limit(SEARCH_RESULT_LIMIT)
        .all()
    )

    return [
        {
            "user_id": user.id,
            "display_name": profile.display_name or user.username,
            "avatar_url": profile.avatar_url,
        }
        for profile, user in rows
    ]
