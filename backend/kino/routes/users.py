from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from kino.core.database import get_db
from kino.schemas.profile import PublicProfileOut, UserSearchOut
from kino.services.profiles import get_public_profile, search_profiles

router = APIRouter(prefix="/api/users", tags=["users"])


# Declared before /{user_id} so "search" is not captured as an id.
@router.get("/search", response_model=list[UserSearchOut])
def search_users(
    query: Optional[str] = Query(default=None, max_length=100),
    db: Session = Depends(get_db),
):
    return search_profiles(db, query)


@router.get("/{user_id}", response_model=PublicProfileOut)
def public_profile(user_id: str, db: Session = Depends(get_db)):
    return get_public_profile(db, user_id)
