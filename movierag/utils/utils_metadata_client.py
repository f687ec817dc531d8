import json
from datetime import date
from typing import List, Optional

import httpx

from ..schemas.movies_schemas import (
    Genre,
    GenreSelection,
    Movie,
    MovieDetails,
    Suggestion,
)

BASE_URL = 'https://api.themoviedb.org/3'
IMAGE_BASE_URL = 'https://image.tmdb.org/t/p'

CACHE_TTL_DETAILS = 3600   # 1 hour
SUGGESTION_LIMIT = 5
DISCOVER_LIMIT = 10
CAST_LIMIT = 5


async def get_search_results(
    client: httpx.AsyncClient,
    api_key: str,
    query: str
) -> List[dict]:
    """
    Search TMDB for movies by title.

    :param client: HTTP client for making API requests.
    :param api_key: TMDB API key.
    :param query: Partial or full title typed by the user.
    :return: Raw result entries, in the order TMDB returned them.
    """
    resp = await client.get(
        f"{BASE_URL}/search/movie",
        params={'api_key': api_key, 'query': query}
    )
    resp.raise_for_status()
    results = resp.json().get('results')
    return results if isinstance(results, list) else []


async def fetch_genres(
    client: httpx.AsyncClient,
    api_key: str
) -> List[dict]:
    """
    Fetch the TMDB movie genre list.

    :param client: HTTP client for making API requests.
    :param api_key: TMDB API key.
    :return: Raw genre entries with ``id`` and ``name``.
    """
    resp = await client.get(
        f"{BASE_URL}/genre/movie/list",
        params={'api_key': api_key, 'language': 'en-US'}
    )
    resp.raise_for_status()
    return resp.json().get('genres') or []


def build_discover_params(api_key: str, genre: GenreSelection) -> dict:
    """
    Build the query string for ``/discover/movie``.

    The genre filter is omitted entirely when ``genre`` is ``'all'``.
    """
    query = {
        'api_key': api_key,
        'language': 'en-US',
        'sort_by': 'popularity.desc',
        'include_adult': 'false',
        'include_video': 'false',
        'page': 1,
    }
    if genre != 'all':
        query['with_genres'] = str(genre)
    return query


async def discover_by_genre(
    client: httpx.AsyncClient,
    api_key: str,
    genre: GenreSelection
) -> List[dict]:
    """
    Discover popular movies, optionally restricted to one genre.

    :param client: HTTP client for making API requests.
    :param api_key: TMDB API key.
    :param genre: Genre id, or ``'all'`` for no filter.
    :return: Raw result entries.
    """
    resp = await client.get(
        f"{BASE_URL}/discover/movie",
        params=build_discover_params(api_key, genre)
    )
    resp.raise_for_status()
    return resp.json().get('results') or []


async def fetch_movie(
    client: httpx.AsyncClient,
    api_key: str,
    movie_id: int,
    append: Optional[List[str]] = None
) -> dict:
    """
    Fetch a single movie by TMDB id.

    Unlike the list calls, a non-2xx response is propagated as
    ``httpx.HTTPStatusError``.

    :param client: HTTP client for making API requests.
    :param api_key: TMDB API key.
    :param movie_id: TMDB movie id.
    :param append: Extra sub-resources for ``append_to_response``.
    :return: The raw movie document.
    """
    params = {'api_key': api_key}
    if append:
        params['append_to_response'] = ','.join(append)
    resp = await client.get(f"{BASE_URL}/movie/{movie_id}", params=params)
    resp.raise_for_status()
    return resp.json()


async def get_cached_movie(cache, key: str) -> Optional[dict]:
    if cache is None:
        return None
    cached = await cache.get(key)
    if cached:
        return json.loads(cached)
    return None


async def set_cached_movie(cache, key: str, data: dict) -> None:
    if cache is None:
        return
    await cache.set(key, json.dumps(data), ex=CACHE_TTL_DETAILS)


def movie_cache_key(movie_id: int, append: Optional[List[str]] = None) -> str:
    suffix = f":{','.join(append)}" if append else ''
    return f"movie:{movie_id}{suffix}"


def sort_by_popularity(items: List[dict]) -> List[dict]:
    """Stable sort by descending ``popularity``; entries without one go last."""
    return sorted(items, key=lambda i: -(i.get('popularity') or 0.0))


def poster_url(poster_path: Optional[str], size: str = 'w500') -> Optional[str]:
    if not poster_path:
        return None
    return f"{IMAGE_BASE_URL}/{size}{poster_path}"


def release_year(release_date: Optional[str]) -> Optional[int]:
    if not release_date:
        return None
    try:
        return date.fromisoformat(release_date[:10]).year
    except ValueError:
        return None


def map_to_movie(item: dict) -> Movie:
    """
    Map a TMDB list entry to a Movie.

    :param item: Dictionary containing TMDB result data.
    :return: Movie object.
    """
    return Movie(
        id=item['id'],
        title=item.get('title') or item.get('original_title') or '',
        release_date=item.get('release_date') or None,
        poster_path=item.get('poster_path'),
        overview=item.get('overview'),
        popularity=item.get('popularity'),
        genre_ids=item.get('genre_ids') or [],
    )


def map_to_movies(items: List[dict], limit: int) -> List[Movie]:
    """
    Map TMDB list entries to Movies, keeping at most ``limit``.

    Entries without an ``id`` are skipped rather than failing the list.
    """
    usable = [item for item in items if item.get('id') is not None]
    return [map_to_movie(item) for item in usable[:limit]]


def map_to_details(item: dict) -> MovieDetails:
    """
    Map a TMDB movie document (optionally with credits and reviews
    appended) to MovieDetails.
    """
    credits = item.get('credits') or {}
    cast = [c['name'] for c in credits.get('cast', []) if c.get('name')]
    reviews = item.get('reviews')
    genres = item.get('genres') or []
    return MovieDetails(
        id=item['id'],
        title=item.get('title') or item.get('original_title') or '',
        release_date=item.get('release_date') or None,
        poster_path=item.get('poster_path'),
        overview=item.get('overview'),
        popularity=item.get('popularity'),
        genre_ids=[g['id'] for g in genres],
        genres=[Genre(id=g['id'], name=g['name']) for g in genres],
        runtime=item.get('runtime'),
        tagline=item.get('tagline') or None,
        cast=cast[:CAST_LIMIT],
        review_count=(reviews or {}).get('total_results') if reviews else None,
    )


def to_suggestion(movie: Movie) -> Suggestion:
    return Suggestion(
        id=movie.id,
        title=movie.title,
        year=release_year(movie.release_date),
        poster_url=poster_url(movie.poster_path, size='w92'),
    )
