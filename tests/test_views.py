import asyncio

import httpx
import pytest

from movierag.clients.summary_client import SummaryRequester
from movierag.utils.debouncer import SuggestionDebouncer
from movierag.views.browse import BrowseView, parse_genre
from movierag.views.home import HomeView
from movierag.views.states import ViewStatus
from movierag.views.summary import SummaryView, parse_length

from conftest import FakeMetadata

DELAY = 0.05


def requester_with(handler, primary="https://primary.example.com"):
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return SummaryRequester(http, fallbacks=["http://127.0.0.1:8000"], primary=primary)


# --- Home ---------------------------------------------------------------


@pytest.mark.asyncio
async def test_type_wait_then_select_first_suggestion(fake_metadata):
    view = HomeView(
        fake_metadata,
        SuggestionDebouncer(fake_metadata.search_movies, delay=DELAY),
    )

    view.update_query("Inc")
    await asyncio.sleep(DELAY * 3)
    assert fake_metadata.calls == [("search", "Inc")]
    assert view.suggestions[0].id == 27205

    movie = await view.select(view.suggestions[0].id)

    assert movie.title == "Inception"
    assert view.query == ""
    assert view.suggestions == []
    assert view.status == ViewStatus.SUCCESS
    assert fake_metadata.calls == [("search", "Inc"), ("details", 27205)]


@pytest.mark.asyncio
async def test_select_unknown_movie_is_error(fake_metadata):
    view = HomeView(fake_metadata)
    assert await view.select(999) is None
    assert view.status == ViewStatus.ERROR
    assert view.error == "Movie not found"
    assert view.movie is None


@pytest.mark.asyncio
async def test_select_first_without_suggestions_does_nothing(fake_metadata):
    view = HomeView(fake_metadata)
    assert await view.select_first() is None
    assert fake_metadata.calls == []
    assert view.status == ViewStatus.IDLE


@pytest.mark.asyncio
async def test_search_then_search_button(fake_metadata):
    view = HomeView(fake_metadata)
    await view.search("Inc")
    movie = await view.select_first()
    assert movie.id == 27205


@pytest.mark.asyncio
async def test_preselect_from_browse_keeps_title_hint(fake_metadata):
    view = HomeView(fake_metadata)
    await view.preselect(27205, "Inception")
    assert view.title_hint == "Inception"
    assert view.summary_url() == "/summary/27205?length=1000"


def test_summary_url_without_movie(fake_metadata):
    assert HomeView(fake_metadata).summary_url() is None


# --- Browse -------------------------------------------------------------


@pytest.mark.asyncio
async def test_browse_load_fetches_genres_once_then_movies(fake_metadata):
    view = BrowseView(fake_metadata)
    await view.load()
    await view.select_genre(35)

    assert fake_metadata.calls == [("genres",), ("discover", "all"), ("discover", 35)]
    assert view.selected_genre == 35
    assert view.movies == []
    assert view.status == ViewStatus.SUCCESS


@pytest.mark.asyncio
async def test_browse_survives_genre_failure():
    view = BrowseView(FakeMetadata(genres=[]))
    await view.load()
    assert view.genres == []
    assert len(view.movies) == 2


def test_movie_url_carries_id_and_title(fake_metadata):
    movie = fake_metadata.movies[1]
    assert BrowseView.movie_url(movie) == "/?movie=155&title=The+Dark+Knight"


@pytest.mark.parametrize("value,expected", [
    (None, "all"), ("all", "all"), ("28", 28), ("drama", "all"),
])
def test_parse_genre(value, expected):
    assert parse_genre(value) == expected


# --- Summary ------------------------------------------------------------


@pytest.mark.parametrize("value,expected", [
    ("1000", 1000), (None, 500), ("abc", 500), ("0", 500),
])
def test_parse_length(value, expected):
    assert parse_length(value) == expected


@pytest.mark.asyncio
async def test_summary_one_detail_fetch_then_fallback(fake_metadata):
    calls = []

    def handler(request):
        calls.append(request.url.host)
        if request.url.host == "primary.example.com":
            return httpx.Response(502)
        return httpx.Response(200, json="## Plot\n\nDreams within dreams.")

    view = SummaryView(fake_metadata, requester_with(handler), 27205, length=1000)
    await view.load()

    assert fake_metadata.calls == [("details", 27205)]
    assert calls == ["primary.example.com", "127.0.0.1"]
    assert view.status == ViewStatus.SUCCESS
    assert "<h2>Plot</h2>" in view.summary_html
    assert view.movie.cast[0] == "Leonardo DiCaprio"


@pytest.mark.asyncio
async def test_summary_not_found_skips_summarization(fake_metadata):
    def handler(request):
        raise AssertionError("summarization should not be called")

    view = SummaryView(fake_metadata, requester_with(handler), 1)
    await view.load()

    assert view.not_found
    assert view.status == ViewStatus.ERROR


@pytest.mark.asyncio
async def test_summary_backend_offline(fake_metadata):
    def handler(request):
        return httpx.Response(500)

    view = SummaryView(fake_metadata, requester_with(handler), 27205)
    await view.load()

    assert not view.not_found
    assert view.status == ViewStatus.ERROR
    assert view.error == "Backend not working: API is offline."
    assert view.summary is None
