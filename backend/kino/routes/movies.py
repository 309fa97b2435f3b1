from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from kino.core.database import get_db
from kino.dependencies.auth import get_current_user
from kino.models.movie import Movie
from kino.schemas.movie import MovieCreate, MovieOut

router = APIRouter(prefix="/api/movies", tags=["movies"])


@router.get("", response_model=list[MovieOut])
def list_movies(db: Session = Depends(get_db)):
    return db.query(Movie).order_by(Movie.title.asc(), Movie.id.asc()).all()


@router.get("/{movie_id}", response_model=MovieOut)
def get_movie(movie_id: int, db: Session = Depends(get_db)):
    movie = db.get(Movie, movie_id)
    if not movie:
        raise HTTPException(status_code=404, detail="Movie not found")
    return movie


@router.post("", response_model=MovieOut, dependencies=[Depends(get_current_user)])
def create_movie(payload: MovieCreate, db: Session = Depends(get_db)):
    if db.query(Movie).filter(Movie.tmdb_id == payload.tmdb_id).first():
        raise HTTPException(status_code=409, detail="Movie already exists")

    movie = Movie(
        tmdb_id=payload.tmdb_id,
        title=payload.title.strip(),
        year=payload.year,
        poster_path=payload.poster_path,
        overview=payload.overview,
    )
    db.add(movie)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Movie already exists")

    db.refresh(movie)
    return movie
