import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

from ..schemas.movies_schemas import Movie

logger = logging.getLogger(__name__)

SearchFn = Callable[[str], Awaitable[List[Movie]]]
ResultsCallback = Callable[[str, List[Movie]], Awaitable[None]]

DEFAULT_DELAY = 0.3
MIN_QUERY_LENGTH = 2


class SuggestionDebouncer:
    """
    Coalesce keystrokes into at most one search per quiet period.

    Each call to ``feed`` restarts the timer. When the timer expires the
    search runs with the latest query, and its results replace the current
    suggestion list. Every scheduled search carries a sequence number;
    results are applied only while that number is still the latest, so a
    slow response for an old query never overwrites a newer one.
    """

    def __init__(
        self,
        search: SearchFn,
        on_results: Optional[ResultsCallback] = None,
        delay: float = DEFAULT_DELAY,
        min_length: int = MIN_QUERY_LENGTH
    ):
        self.search = search
        self.on_results = on_results
        self.delay = delay
        self.min_length = min_length
        self.suggestions: List[Movie] = []
        self.query = ''
        self._seq = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def _cancel_pending(self) -> None:
        if self.pending:
            self._task.cancel()
        self._task = None

    async def _emit(self, query: str, results: List[Movie]) -> None:
        self.suggestions = results
        if self.on_results is not None:
            await self.on_results(query, results)

    def feed(self, query: str) -> None:
        """Register a new search box value. Must be called from the event loop."""
        self._seq += 1
        self.query = query
        self._cancel_pending()
        if len(query) < self.min_length:
            self.suggestions = []
            self._task = asyncio.create_task(self._emit(query, []))
            return
        self._task = asyncio.create_task(self._run(self._seq, query))

    async def _run(self, seq: int, query: str) -> None:
        await asyncio.sleep(self.delay)
        if seq != self._seq:
            return
        await self._search_and_apply(seq, query)

    async def _search_and_apply(self, seq: int, query: str) -> None:
        try:
            results = await self.search(query)
        except Exception:
            logger.exception(f"Error fetching suggestions for {query!r}")
            results = []
        if seq != self._seq:
            logger.debug(f"Discarding stale suggestions for {query!r}")
            return
        await self._emit(query, results)

    async def search_now(self, query: str) -> List[Movie]:
        """Search immediately, skipping the quiet period (form submit)."""
        self._seq += 1
        self.query = query
        self._cancel_pending()
        if len(query) < self.min_length:
            await self._emit(query, [])
        else:
            await self._search_and_apply(self._seq, query)
        return self.suggestions

    def clear(self) -> None:
        """Drop pending work and the current suggestions."""
        self._seq += 1
        self._cancel_pending()
        self.query = ''
        self.suggestions = []

    async def aclose(self) -> None:
        task = self._task
        self.clear()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass
