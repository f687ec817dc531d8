import logging
from typing import List, Optional
from urllib.parse import urlencode

from ..clients.metadata_client import MetadataClient
from ..schemas.movies_schemas import Genre, GenreSelection, Movie
from .states import ViewStatus

logger = logging.getLogger(__name__)


def parse_genre(value: Optional[str]) -> GenreSelection:
    """Read a ``genre`` query parameter; anything that is not an id means all."""
    if value is None or value == 'all':
        return 'all'
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Ignoring invalid genre filter {value!r}")
        return 'all'


class BrowseView:
    """Genre filter bar plus a grid of the most popular movies."""

    def __init__(self, metadata: MetadataClient):
        self.metadata = metadata
        self.genres: List[Genre] = []
        self.selected_genre: GenreSelection = 'all'
        self.movies: List[Movie] = []
        self.status = ViewStatus.IDLE

    async def load(self, genre: GenreSelection = 'all') -> None:
        self.genres = await self.metadata.list_genres()
        await self.select_genre(genre)

    async def select_genre(self, genre: GenreSelection) -> None:
        self.selected_genre = genre
        self.status = ViewStatus.LOADING
        self.movies = await self.metadata.discover_by_genre(genre)
        self.status = ViewStatus.SUCCESS

    def is_selected(self, genre: GenreSelection) -> bool:
        return self.selected_genre == genre

    @staticmethod
    def movie_url(movie: Movie) -> str:
        return "/?" + urlencode({'movie': movie.id, 'title': movie.title})
