from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from kino.core.base import Base


class Review(Base):
    """A diary entry: one user's take on one movie."""

    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    movie_id = Column(
        Integer,
        ForeignKey("movies.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    content = Column(String(500), nullable=False, default="")

    # "Head vs heart": both on a 0-100 scale.
    rating_technical = Column(Integer, nullable=False, default=0)
    rating_enjoyment = Column(Integer, nullable=False, default=0)

    # Comma-separated, normalized (e.g. "visual,tear")
    vibe_tags = Column(String(200), nullable=True)

    # Date watched; defaults to insert time.
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    user = relationship("User", back_populates="reviews")
    movie = relationship("Movie", back_populates="reviews", lazy="joined")

    likes = relationship(
        "ReviewLike",
        back_populates="review",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint("rating_technical BETWEEN 0 AND 100", name="ck_reviews_rating_technical_range"),
        CheckConstraint("rating_enjoyment BETWEEN 0 AND 100", name="ck_reviews_rating_enjoyment_range"),
    )

    @property
    def tags(self) -> list[str]:
        raw = self.vibe_tags or ""
        return [t for t in raw.split(",") if t]

    @property
    def like_count(self) -> int:
        return len(self.likes or [])
