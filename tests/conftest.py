import pytest

from movierag.errors import MovieNotFoundError
from movierag.schemas.movies_schemas import Genre, Movie
from movierag.utils.utils_metadata_client import map_to_details


INCEPTION = {
    "id": 27205,
    "title": "Inception",
    "release_date": "2010-07-15",
    "poster_path": "/inception.jpg",
    "overview": "A thief who steals corporate secrets through dreams.",
    "popularity": 90.5,
    "genres": [{"id": 28, "name": "Action"}, {"id": 878, "name": "Science Fiction"}],
    "runtime": 148,
    "credits": {"cast": [{"name": "Leonardo DiCaprio"}, {"name": "Joseph Gordon-Levitt"}]},
    "reviews": {"total_results": 7},
}


class FakeMetadata:
    """Stands in for MetadataClient and records every call."""

    def __init__(self, suggestions=None, genres=None, movies=None, details=None):
        self.suggestions = suggestions if suggestions is not None else [
            Movie(id=27205, title="Inception", release_date="2010-07-15",
                  poster_path="/inception.jpg"),
            Movie(id=64956, title="Inception: The Cobol Job", release_date="2010-12-07"),
        ]
        self.genres = genres if genres is not None else [
            Genre(id=28, name="Action"), Genre(id=35, name="Comedy"),
        ]
        self.movies = movies if movies is not None else [
            Movie(id=27205, title="Inception", popularity=90.5, genre_ids=[28]),
            Movie(id=155, title="The Dark Knight", popularity=80.1, genre_ids=[28]),
        ]
        self.details = details if details is not None else {27205: INCEPTION}
        self.calls = []

    async def search_movies(self, query):
        self.calls.append(("search", query))
        return list(self.suggestions)

    async def list_genres(self):
        self.calls.append(("genres",))
        return list(self.genres)

    async def discover_by_genre(self, genre="all"):
        self.calls.append(("discover", genre))
        if genre == "all":
            return list(self.movies)
        return [m for m in self.movies if genre in m.genre_ids]

    async def get_movie_details(self, movie_id, append=None):
        self.calls.append(("details", movie_id))
        if movie_id not in self.details:
            raise MovieNotFoundError(movie_id, "status 404")
        return map_to_details(self.details[movie_id])


@pytest.fixture
def fake_metadata():
    return FakeMetadata()
