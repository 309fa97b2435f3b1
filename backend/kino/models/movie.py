from sqlalchemy import Column, Integer, String, Text
from sqlalchemy.orm import relationship

from kino.core.base import Base


class Movie(Base):
    __tablename__ = "movies"

    id = Column(Integer, primary_key=True, index=True)

    # TMDB id, used to fetch posters and to dedupe movies logged by different users.
    tmdb_id = Column(Integer, unique=True, index=True, nullable=False)

    title = Column(String(255), nullable=False)
    year = Column(Integer, nullable=False, default=0)
    poster_path = Column(String(255), nullable=True)
    overview = Column(Text, nullable=True)

    reviews = relationship("Review", back_populates="movie")
