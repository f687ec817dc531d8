import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Sequence

import httpx

from ..errors import SummaryUnavailableError

logger = logging.getLogger(__name__)

HEADERS = {
    'accept': 'application/json',
    'Content-Type': 'application/json',
}


class SummaryState(str, Enum):
    IDLE = 'idle'
    REQUESTING_PRIMARY = 'requesting-primary'
    REQUESTING_FALLBACK = 'requesting-fallback'
    DONE = 'done'
    FAILED = 'failed'


@dataclass
class SummaryResult:
    text: str
    endpoint: str
    attempts: List[str] = field(default_factory=list)


class CallFailed(Exception):
    """One summarization endpoint did not produce a usable response."""


def extract_summary_text(payload: Any) -> str:
    """
    Turn a decoded summarization response into markdown text.

    The service answers with a JSON string; an object carrying a
    ``summary`` string is accepted too. Anything else is shown as JSON.
    """
    if isinstance(payload, str):
        return payload
    if isinstance(payload, dict) and isinstance(payload.get('summary'), str):
        return payload['summary']
    return json.dumps(payload, indent=2)


class SummaryRequester:
    """
    Ask the summarization service for a movie summary.

    Endpoints are tried in order (primary first, then fallbacks) until one
    answers with a 2xx JSON body. There are no retries; once every endpoint
    has failed the requester ends in ``FAILED`` and raises.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        fallbacks: Sequence[str],
        primary: Optional[str] = None
    ):
        self.client = client
        self.primary = primary.rstrip('/') if primary else None
        self.endpoints = ([self.primary] if self.primary else []) + [
            e.rstrip('/') for e in fallbacks if e
        ]
        self.state = SummaryState.IDLE
        self.attempts: List[str] = []

    async def _call(self, base_url: str, moviename: str) -> Any:
        try:
            resp = await self.client.post(
                f"{base_url}/summarize",
                headers=HEADERS,
                json={'moviename': moviename},
            )
        except httpx.HTTPError as exc:
            raise CallFailed(f"{type(exc).__name__}: {exc}") from exc
        if not resp.is_success:
            raise CallFailed(f"status {resp.status_code}")
        try:
            return resp.json()
        except ValueError as exc:
            raise CallFailed("response is not JSON") from exc

    async def request(self, moviename: str) -> SummaryResult:
        """
        Run the primary/fallback sequence for one title.

        :param moviename: Movie title used as the summarization key.
        :return: SummaryResult with the markdown text and the endpoint used.
        :raises SummaryUnavailableError: when every endpoint failed.
        """
        self.attempts = []
        last_error: Optional[str] = None
        for index, base_url in enumerate(self.endpoints):
            self.state = (
                SummaryState.REQUESTING_PRIMARY if index == 0 and self.primary
                else SummaryState.REQUESTING_FALLBACK
            )
            self.attempts.append(base_url)
            try:
                payload = await self._call(base_url, moviename)
            except CallFailed as exc:
                last_error = str(exc)
                logger.warning(
                    f"Summary API URL ({base_url}) failed: {exc}. "
                    "Attempting fallback."
                )
                continue
            self.state = SummaryState.DONE
            return SummaryResult(
                text=extract_summary_text(payload),
                endpoint=base_url,
                attempts=list(self.attempts),
            )

        self.state = SummaryState.FAILED
        logger.error(
            "Error fetching summary (all endpoints failed): "
            f"{last_error or 'no endpoint configured'}"
        )
        raise SummaryUnavailableError(attempts=self.attempts)
