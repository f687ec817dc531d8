import logging
from typing import Optional

from markupsafe import Markup

from ..clients.metadata_client import MetadataClient
from ..clients.summary_client import SummaryRequester
from ..errors import MovieNotFoundError, SummaryUnavailableError
from ..schemas.movies_schemas import MovieDetails
from ..utils.markdown_render import render_summary
from .states import ViewStatus

logger = logging.getLogger(__name__)

DEFAULT_LENGTH = 500
DETAIL_EXTRAS = ['credits', 'reviews']


def parse_length(value: Optional[str]) -> int:
    """Target summary length from the URL; 500 when missing or not a number."""
    try:
        length = int(value)
    except (TypeError, ValueError):
        return DEFAULT_LENGTH
    return length or DEFAULT_LENGTH


class SummaryView:
    """
    Summary page: resolve the movie title, then ask the summarization
    service for a markdown summary of it.

    ``length`` is accepted from the URL and displayed, but the
    summarization service is only sent the title.
    """

    def __init__(
        self,
        metadata: MetadataClient,
        requester: SummaryRequester,
        movie_id: int,
        length: int = DEFAULT_LENGTH
    ):
        self.metadata = metadata
        self.requester = requester
        self.movie_id = movie_id
        self.length = length
        self.movie: Optional[MovieDetails] = None
        self.summary: Optional[str] = None
        self.endpoint: Optional[str] = None
        self.status = ViewStatus.IDLE
        self.not_found = False
        self.error: Optional[str] = None

    @property
    def summary_html(self) -> Markup:
        return render_summary(self.summary or '')

    async def load(self) -> None:
        self.status = ViewStatus.LOADING
        try:
            self.movie = await self.metadata.get_movie_details(
                self.movie_id, append=DETAIL_EXTRAS
            )
        except MovieNotFoundError as exc:
            self.status = ViewStatus.ERROR
            self.not_found = True
            self.error = str(exc)
            return

        try:
            result = await self.requester.request(self.movie.title)
        except SummaryUnavailableError as exc:
            self.status = ViewStatus.ERROR
            self.error = str(exc)
            return
        self.summary = result.text
        self.endpoint = result.endpoint
        self.status = ViewStatus.SUCCESS
