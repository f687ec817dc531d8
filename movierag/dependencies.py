"""
FastAPI dependencies: settings and the outbound service clients.

The shared ``httpx.AsyncClient`` and the optional Redis cache live on
``app.state`` and are created by the application lifespan.
"""

from fastapi import Depends
from starlette.requests import HTTPConnection

from .clients.metadata_client import MetadataClient
from .clients.summary_client import SummaryRequester
from .config import Settings


def get_app_settings(conn: HTTPConnection) -> Settings:
    return conn.app.state.settings


def get_metadata_client(
    conn: HTTPConnection,
    settings: Settings = Depends(get_app_settings)
) -> MetadataClient:
    return MetadataClient(
        conn.app.state.http,
        settings.TMDB_API_KEY,
        cache=conn.app.state.cache,
    )


def get_summary_requester(
    conn: HTTPConnection,
    settings: Settings = Depends(get_app_settings)
) -> SummaryRequester:
    """A fresh requester per request, since it tracks its own state."""
    return SummaryRequester(
        conn.app.state.http,
        fallbacks=[settings.SUMMARY_FALLBACK_URL],
        primary=settings.SUMMARY_API_URL,
    )
