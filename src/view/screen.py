"""Base class for screens: the owner of one ViewState."""

import time
from collections.abc import Callable
from types import TracebackType

from src.view.notices import NoticeBoard
from src.view.optimistic import OptimisticCoordinator
from src.view.state import ViewState


class Screen:
    """Async context manager that loads its state on entry and drops it on exit.

    Usage::

        async with KanbanBoard(candidates_api) as board:
            await board.move(candidate_id, "offer")
    """

    def __init__(
        self,
        toast_ttl_s: float = 3.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.state = ViewState(NoticeBoard(toast_ttl_s, clock))
        self.coordinator = OptimisticCoordinator(self.state)

    async def load(self) -> None:
        raise NotImplementedError

    async def __aenter__(self) -> "Screen":
        await self.load()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.state.clear()
