import logging
from typing import List, Optional

import httpx

from ..errors import MovieNotFoundError
from ..schemas.movies_schemas import Genre, GenreSelection, Movie, MovieDetails
from ..utils import utils_metadata_client as umeta

logger = logging.getLogger(__name__)


class MetadataClient:
    """
    Read-only access to the TMDB movie metadata service.

    List calls (search, genres, discovery) never raise: a failed call is
    logged and degrades to an empty result. Only the detail fetch raises,
    since a page cannot render without its movie.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str,
        cache=None
    ):
        self.client = client
        self.api_key = api_key
        self.cache = cache

    async def search_movies(self, query: str) -> List[Movie]:
        """
        Search movies by title for the suggestion list.

        :param query: Text typed in the search box.
        :return: At most the first 5 matches; empty on any failure.
        """
        try:
            results = await umeta.get_search_results(
                self.client, self.api_key, query
            )
        except (httpx.HTTPError, ValueError) as exc:
            logger.error(f"Error fetching suggestions for {query!r}: {exc}")
            return []
        return umeta.map_to_movies(results, umeta.SUGGESTION_LIMIT)

    async def list_genres(self) -> List[Genre]:
        """
        Fetch the full genre list, unmodified.

        :return: Genres as TMDB lists them; empty on any failure.
        """
        try:
            genres = await umeta.fetch_genres(self.client, self.api_key)
        except (httpx.HTTPError, ValueError) as exc:
            logger.error(f"Error fetching genres: {exc}")
            return []
        return [
            Genre(id=g['id'], name=g['name'])
            for g in genres if g.get('id') is not None and g.get('name')
        ]

    async def discover_by_genre(self, genre: GenreSelection = 'all') -> List[Movie]:
        """
        Most popular movies, optionally within one genre.

        :param genre: Genre id, or ``'all'`` to skip the genre filter.
        :return: Up to 10 movies by descending popularity; empty on failure.
        """
        try:
            results = await umeta.discover_by_genre(
                self.client, self.api_key, genre
            )
        except (httpx.HTTPError, ValueError) as exc:
            logger.error(f"Error fetching movies for genre {genre}: {exc}")
            return []
        ranked = umeta.sort_by_popularity(results)
        return umeta.map_to_movies(ranked, umeta.DISCOVER_LIMIT)

    async def get_movie_details(
        self,
        movie_id: int,
        append: Optional[List[str]] = None
    ) -> MovieDetails:
        """
        Fetch one movie.

        :param movie_id: TMDB movie id.
        :param append: Sub-resources to embed (e.g. ``['credits', 'reviews']``).
        :return: MovieDetails for the id.
        :raises MovieNotFoundError: on a non-2xx response or network failure.
        """
        key = umeta.movie_cache_key(movie_id, append)
        data = await umeta.get_cached_movie(self.cache, key)
        if data is None:
            try:
                data = await umeta.fetch_movie(
                    self.client, self.api_key, movie_id, append
                )
            except (httpx.HTTPError, ValueError) as exc:
                logger.error(f"Error fetching movie {movie_id}: {exc}")
                raise MovieNotFoundError(movie_id, str(exc)) from exc
            if not data.get('id'):
                raise MovieNotFoundError(movie_id, "response has no id")
            await umeta.set_cached_movie(self.cache, key, data)
        return umeta.map_to_details(data)
