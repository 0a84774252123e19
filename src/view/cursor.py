"""Offset pagination with client-side accumulation ("load more").

``has_more`` is true while the last page came back full; a short page
means the collection is exhausted and ``load_next`` stops fetching.
Pages are appended to a view-state slice so screens render from it.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from src.core.errors import TrackerError
from src.view.state import CANDIDATES, ViewState

logger = logging.getLogger(__name__)

# (page, page_size) -> (rows, total)
Fetch = Callable[[int, int], Awaitable[tuple[list[Any], int]]]


class PaginatedCursor:
    """Accumulates pages of a filtered, sorted collection.

    A page fetched before the latest ``reset()`` is dropped when it
    arrives, so rows from an old filter never mix with the new ones.
    """

    def __init__(
        self,
        fetch: Fetch,
        state: ViewState,
        *,
        slice_key: str = CANDIDATES,
        page_size: int = 50,
        scroll_threshold_px: int = 100,
        error_message: str = "Failed to load candidates",
    ) -> None:
        self._fetch = fetch
        self._state = state
        self._slice_key = slice_key
        self.page_size = page_size
        self.scroll_threshold_px = scroll_threshold_px
        self.error_message = error_message

        self.current_page = 1
        self.has_more = True
        self.loading = False
        self.total = 0
        self._generation = 0

    @property
    def accumulated(self) -> list[Any]:
        return self._state.get(self._slice_key)

    async def reset(self) -> None:
        """Forget everything fetched so far and load page 1 again."""
        self._generation += 1
        self._state.replace(self._slice_key, [])
        self.current_page = 1
        self.has_more = True
        await self._load(1)

    async def load_next(self) -> bool:
        """Fetch the next page. Returns False without fetching when busy or exhausted."""
        if self.loading or not self.has_more:
            return False
        await self._load(self.current_page + 1)
        return True

    async def on_scroll(self, scroll_top: float, scroll_height: float, client_height: float) -> bool:
        """Load the next page when the viewport is within the threshold of the bottom."""
        if scroll_height - scroll_top <= client_height + self.scroll_threshold_px:
            return await self.load_next()
        return False

    async def _load(self, page: int) -> None:
        generation = self._generation
        self.loading = True
        try:
            rows, total = await self._fetch(page, self.page_size)
        except TrackerError as e:
            if generation == self._generation:
                logger.warning("Loading page %d failed: %s", page, e)
                self._state.notices.banner(self.error_message)
            return
        finally:
            # Runs on cancellation too. After a reset the newer load owns the flag.
            if generation == self._generation:
                self.loading = False

        if generation != self._generation:
            logger.debug("Dropping page %d from a superseded query", page)
            return
        if page == 1:
            self._state.replace(self._slice_key, rows)
        else:
            self.accumulated.extend(rows)
        self.current_page = page
        self.total = total
        self.has_more = len(rows) == self.page_size
        logger.debug(
            "Page %d: %d rows (%d accumulated of %d, more=%s)",
            page, len(rows), len(self.accumulated), total, self.has_more,
        )
