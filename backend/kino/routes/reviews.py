from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from kino.core.database import get_db
from kino.dependencies.auth import get_current_user, get_optional_user
from kino.models.user import User
from kino.schemas.review import LikeToggleOut, ReviewCreate, ReviewOut
from kino.services.reviews import (
    DEFAULT_FEED_LIMIT,
    create_review,
    delete_review,
    get_review,
    list_feed,
    list_reviews_for_user,
    serialize_review,
    serialize_reviews,
    toggle_like,
)

router = APIRouter(prefix="/api/reviews", tags=["reviews"])


@router.post("", response_model=ReviewOut)
def add_review(
    payload: ReviewCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    review = create_review(db, user, payload)
    return serialize_review(review, user)


@router.get("", response_model=list[ReviewOut])
def list_my_reviews(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return serialize_reviews(list_reviews_for_user(db, user.id), user)


@router.get("/feed", response_model=list[ReviewOut])
def feed(
    limit: int = Query(DEFAULT_FEED_LIMIT, ge=1, le=100),
    db: Session = Depends(get_db),
    viewer: Optional[User] = Depends(get_optional_user),
):
    return serialize_reviews(list_feed(db, limit=limit), viewer)


@router.get("/user/{user_id}", response_model=list[ReviewOut])
def reviews_for_user(
    user_id: str,
    db: Session = Depends(get_db),
    viewer: Optional[User] = Depends(get_optional_user),
):
    return serialize_reviews(list_reviews_for_user(db, user_id), viewer)


@router.post("/{review_id}/like", response_model=LikeToggleOut)
def like_review(
    review_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    review = get_review(db, review_id)
    liked, likes = toggle_like(db, review, user)
    return {"liked": liked, "likes": likes}


@router.delete("/{review_id}")
def remove_review(
    review_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    review = get_review(db, review_id)
    delete_review(db, review, user)
    return {"deleted": True}
