"""Candidate list: search + stage filter over an infinitely scrolling, virtualized list."""

import time
from collections.abc import Callable

from src.core.schemas import Candidate
from src.services.candidates import CandidatesApi, check_stage
from src.view.cursor import PaginatedCursor
from src.view.screen import Screen
from src.view.state import CANDIDATES
from src.view.viewport import VirtualRow, VirtualWindow


class CandidateList(Screen):
    """Any filter change restarts pagination at page 1 with an empty list."""

    def __init__(
        self,
        api: CandidatesApi,
        page_size: int = 50,
        window: VirtualWindow | None = None,
        scroll_threshold_px: int = 100,
        toast_ttl_s: float = 3.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(toast_ttl_s, clock)
        self._api = api
        self.search = ""
        self.stage: str | None = None
        self.scroll_top = 0.0
        self.window = window or VirtualWindow()
        self.cursor = PaginatedCursor(
            self._fetch,
            self.state,
            slice_key=CANDIDATES,
            page_size=page_size,
            scroll_threshold_px=scroll_threshold_px,
        )

    @property
    def candidates(self) -> list[Candidate]:
        return list(self.cursor.accumulated)

    @property
    def filtered(self) -> bool:
        return bool(self.search) or self.stage is not None

    async def load(self) -> None:
        await self.cursor.reset()

    async def set_search(self, term: str) -> None:
        self.search = term.strip()
        self.scroll_top = 0.0
        await self.cursor.reset()

    async def set_stage_filter(self, stage: str | None) -> None:
        self.stage = check_stage(stage) if stage else None
        self.scroll_top = 0.0
        await self.cursor.reset()

    def visible(self) -> list[VirtualRow]:
        """Rows to render at the current scroll offset."""
        return self.window.items(self.cursor.accumulated, self.scroll_top)

    async def scroll_to(self, scroll_top: float) -> list[VirtualRow]:
        """Scroll the list, loading the next page when near the bottom."""
        self.scroll_top = max(0.0, scroll_top)
        await self.cursor.on_scroll(
            self.scroll_top,
            self.window.total_size(len(self.cursor.accumulated)),
            self.window.height,
        )
        return self.visible()

    async def _fetch(self, page: int, page_size: int) -> tuple[list[Candidate], int]:
        return await self._api.get_candidates(
            search=self.search or None,
            stage=self.stage,
            page=page,
            page_size=page_size,
        )
