from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship

from kino.core.base import Base


class UserProfile(Base):
    __tablename__ = "user_profiles"

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )

    display_name = Column(String(100), nullable=False, default="", server_default="")
    avatar_url = Column(String(500), nullable=False, default="", server_default="")
    bio = Column(String(500), nullable=False, default="", server_default="")
    favorite_movie = Column(String(200), nullable=False, default="", server_default="")

    date_joined = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    user = relationship("User", back_populates="profile")
