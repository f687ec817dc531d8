from typing import List, Optional, Literal, Union
from pydantic import BaseModel, ConfigDict


GenreSelection = Union[int, Literal['all']]


class Genre(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str


class Movie(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    release_date: Optional[str] = None
    poster_path: Optional[str] = None
    overview: Optional[str] = None
    popularity: Optional[float] = None
    genre_ids: List[int] = []


class MovieDetails(Movie):
    genres: List[Genre] = []
    runtime: Optional[int] = None
    tagline: Optional[str] = None
    cast: List[str] = []
    review_count: Optional[int] = None


class Suggestion(BaseModel):
    id: int
    title: str
    year: Optional[int]
    poster_url: Optional[str]


class SuggestionFrame(BaseModel):
    query: str
    results: List[Suggestion]


class SummaryResponse(BaseModel):
    movie_id: int
    title: str
    summary: str
    endpoint: str


class ErrorResponse(BaseModel):
    code: int
    message: str
