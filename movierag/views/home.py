import logging
from typing import List, Optional
from urllib.parse import urlencode

from ..clients.metadata_client import MetadataClient
from ..errors import MovieNotFoundError
from ..schemas.movies_schemas import Movie, MovieDetails
from ..utils.debouncer import SuggestionDebouncer
from .states import ViewStatus

logger = logging.getLogger(__name__)

DEFAULT_SUMMARY_LENGTH = 1000


class HomeView:
    """
    Search page state: the query box, its suggestion list and the
    currently selected movie.
    """

    def __init__(
        self,
        metadata: MetadataClient,
        debouncer: Optional[SuggestionDebouncer] = None
    ):
        self.metadata = metadata
        self.debouncer = debouncer or SuggestionDebouncer(metadata.search_movies)
        self.movie: Optional[MovieDetails] = None
        self.title_hint: Optional[str] = None
        self.status = ViewStatus.IDLE
        self.error: Optional[str] = None

    @property
    def query(self) -> str:
        return self.debouncer.query

    @property
    def suggestions(self) -> List[Movie]:
        return self.debouncer.suggestions

    def update_query(self, query: str) -> None:
        self.debouncer.feed(query)

    async def search(self, query: str) -> List[Movie]:
        return await self.debouncer.search_now(query)

    async def select(self, movie_id: int) -> Optional[MovieDetails]:
        """
        Pick a movie: clear the search box and suggestions, then fetch it.

        :param movie_id: TMDB id of the chosen suggestion.
        :return: The movie, or None when it could not be fetched.
        """
        if not movie_id:
            return None
        self.debouncer.clear()
        self.status = ViewStatus.LOADING
        self.error = None
        try:
            self.movie = await self.metadata.get_movie_details(movie_id)
        except MovieNotFoundError as exc:
            logger.error(f"Error fetching movie: {exc}")
            self.movie = None
            self.status = ViewStatus.ERROR
            self.error = "Movie not found"
            return None
        self.status = ViewStatus.SUCCESS
        return self.movie

    async def select_first(self) -> Optional[MovieDetails]:
        """Search button: select the top suggestion, if there is one."""
        if not self.suggestions:
            return None
        return await self.select(self.suggestions[0].id)

    async def preselect(self, movie_id: int, title: Optional[str] = None):
        self.title_hint = title
        return await self.select(movie_id)

    def summary_url(self, length: int = DEFAULT_SUMMARY_LENGTH) -> Optional[str]:
        if self.movie is None:
            return None
        return f"/summary/{self.movie.id}?{urlencode({'length': length})}"
