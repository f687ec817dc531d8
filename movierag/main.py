import json
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import List, Optional

import httpx
import redis.asyncio as redis
from fastapi import Depends, FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.templating import Jinja2Templates

from .clients.metadata_client import MetadataClient
from .clients.summary_client import SummaryRequester
from .config import Settings, get_settings
from .dependencies import (
    get_app_settings,
    get_metadata_client,
    get_summary_requester,
)
from .errors import MovieNotFoundError, SummaryUnavailableError
from .schemas.movies_schemas import (
    ErrorResponse,
    Genre,
    Movie,
    MovieDetails,
    Suggestion,
    SuggestionFrame,
    SummaryResponse,
)
from .utils.debouncer import SuggestionDebouncer
from .utils.logging_config import setup_logging
from .utils.utils_metadata_client import poster_url, release_year, to_suggestion
from .views.browse import BrowseView, parse_genre
from .views.home import HomeView
from .views.states import ViewStatus
from .views.summary import SummaryView, parse_length

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.globals.update(poster_url=poster_url, release_year=release_year)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        resolved = settings or get_settings()
        setup_logging(resolved.LOG_LEVEL, resolved.LOG_FILE)
        app.state.settings = resolved
        app.state.http = httpx.AsyncClient(timeout=resolved.HTTP_TIMEOUT)
        app.state.cache = (
            redis.from_url(resolved.REDIS_URL, encoding="utf-8",
                           decode_responses=True)
            if resolved.REDIS_URL else None
        )
        logger.info("MovieRAG front end started")
        try:
            yield
        finally:
            await app.state.http.aclose()
            if app.state.cache is not None:
                await app.state.cache.aclose()

    app = FastAPI(title="MovieRAG", lifespan=lifespan)
    app.add_exception_handler(MovieNotFoundError, movie_not_found_handler)
    app.add_exception_handler(SummaryUnavailableError, summary_unavailable_handler)
    register_routes(app)
    return app


async def movie_not_found_handler(request: Request, exc: MovieNotFoundError):
    return JSONResponse(
        status_code=404,
        content=ErrorResponse(code=404, message=str(exc)).model_dump(),
    )


async def summary_unavailable_handler(request: Request, exc: SummaryUnavailableError):
    return JSONResponse(
        status_code=503,
        content=ErrorResponse(code=503, message=str(exc)).model_dump(),
    )


def is_clear_frame(text: str) -> bool:
    """A ``{"action": "clear"}`` frame means a suggestion was picked."""
    if not text.startswith('{'):
        return False
    try:
        frame = json.loads(text)
    except ValueError:
        return False
    return isinstance(frame, dict) and frame.get('action') == 'clear'


def register_routes(app: FastAPI) -> None:

    # --- Pages ------------------------------------------------------------

    @app.get('/', response_class=HTMLResponse)
    async def home_page(
        request: Request,
        movie: Optional[int] = None,
        title: Optional[str] = None,
        q: Optional[str] = None,
        metadata: MetadataClient = Depends(get_metadata_client),
    ):
        view = HomeView(metadata)
        if movie is not None:
            await view.preselect(movie, title)
        elif q:
            await view.search(q)
            await view.select_first()
        status_code = 404 if view.status == ViewStatus.ERROR else 200
        return templates.TemplateResponse(
            request, "home.html", {"view": view}, status_code=status_code
        )

    @app.get('/browse', response_class=HTMLResponse)
    async def browse_page(
        request: Request,
        genre: Optional[str] = None,
        metadata: MetadataClient = Depends(get_metadata_client),
    ):
        view = BrowseView(metadata)
        await view.load(parse_genre(genre))
        return templates.TemplateResponse(request, "browse.html", {"view": view})

    @app.get('/summary/{movie_id}', response_class=HTMLResponse)
    async def summary_page(
        request: Request,
        movie_id: int,
        length: Optional[str] = None,
        metadata: MetadataClient = Depends(get_metadata_client),
        requester: SummaryRequester = Depends(get_summary_requester),
    ):
        view = SummaryView(metadata, requester, movie_id, parse_length(length))
        await view.load()
        if view.not_found:
            return templates.TemplateResponse(
                request, "not_found.html", {"movie_id": movie_id}, status_code=404
            )
        status_code = 503 if view.status == ViewStatus.ERROR else 200
        return templates.TemplateResponse(
            request, "summary.html", {"view": view}, status_code=status_code
        )

    # --- JSON API -----------------------------------------------------------

    @app.get('/api/suggestions', response_model=List[Suggestion])
    async def suggestions(
        q: str = '',
        metadata: MetadataClient = Depends(get_metadata_client),
    ):
        if len(q) < 2:
            return []
        movies = await metadata.search_movies(q)
        return [to_suggestion(m) for m in movies]

    @app.get('/api/genres', response_model=List[Genre])
    async def genres(metadata: MetadataClient = Depends(get_metadata_client)):
        return await metadata.list_genres()

    @app.get('/api/discover', response_model=List[Movie])
    async def discover(
        genre: Optional[str] = None,
        metadata: MetadataClient = Depends(get_metadata_client),
    ):
        return await metadata.discover_by_genre(parse_genre(genre))

    @app.get('/api/movies/{movie_id}', response_model=MovieDetails,
             responses={404: {'model': ErrorResponse}})
    async def movie_details(
        movie_id: int,
        metadata: MetadataClient = Depends(get_metadata_client),
    ):
        return await metadata.get_movie_details(movie_id)

    @app.post('/api/summary/{movie_id}', response_model=SummaryResponse,
              responses={404: {'model': ErrorResponse},
                         503: {'model': ErrorResponse}})
    async def summarize(
        movie_id: int,
        metadata: MetadataClient = Depends(get_metadata_client),
        requester: SummaryRequester = Depends(get_summary_requester),
    ):
        movie = await metadata.get_movie_details(movie_id)
        result = await requester.request(movie.title)
        return SummaryResponse(
            movie_id=movie.id,
            title=movie.title,
            summary=result.text,
            endpoint=result.endpoint,
        )

    @app.get('/health')
    async def health():
        return {"status": "ok"}

    # --- Live suggestions -----------------------------------------------------

    @app.websocket('/ws/suggestions')
    async def suggestions_socket(
        websocket: WebSocket,
        metadata: MetadataClient = Depends(get_metadata_client),
        settings: Settings = Depends(get_app_settings),
    ):
        await websocket.accept()

        async def push(query: str, results: List[Movie]) -> None:
            frame = SuggestionFrame(
                query=query, results=[to_suggestion(m) for m in results]
            )
            await websocket.send_json(frame.model_dump())

        debouncer = SuggestionDebouncer(
            metadata.search_movies,
            push,
            delay=settings.SUGGESTION_DEBOUNCE_MS / 1000,
        )
        try:
            while True:
                text = await websocket.receive_text()
                if is_clear_frame(text):
                    debouncer.clear()
                else:
                    debouncer.feed(text)
        except WebSocketDisconnect:
            logger.debug("Suggestion socket closed")
        finally:
            await debouncer.aclose()


app = create_app()
