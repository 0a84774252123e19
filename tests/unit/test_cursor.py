"""Tests for PaginatedCursor: accumulation, exhaustion, resets and stale pages."""

import asyncio

import pytest

from src.core.errors import TransientError
from src.view.cursor import PaginatedCursor
from src.view.state import CANDIDATES, ViewState


class FakeCollection:
    """In-memory paged collection with optional gates to hold responses."""

    def __init__(self, rows: list[str]) -> None:
        self.rows = rows
        self.calls: list[tuple[int, int]] = []
        self.gates: dict[int, asyncio.Event] = {}
        self.fail_pages: set[int] = set()

    async def fetch(self, page: int, page_size: int) -> tuple[list[str], int]:
        self.calls.append((page, page_size))
        rows = list(self.rows)
        if page in self.gates:
            await self.gates[page].wait()
        if page in self.fail_pages:
            msg = "network"
            raise TransientError(msg)
        start = (page - 1) * page_size
        return rows[start:start + page_size], len(rows)


def _cursor(collection: FakeCollection, state: ViewState, page_size: int = 50) -> PaginatedCursor:
    return PaginatedCursor(collection.fetch, state, slice_key=CANDIDATES, page_size=page_size)


class TestLoading:
    async def test_pages_accumulate_until_exhausted(self) -> None:
        collection = FakeCollection([f"c{i}" for i in range(120)])
        state = ViewState()
        cursor = _cursor(collection, state)

        await cursor.reset()
        assert len(cursor.accumulated) == 50
        assert cursor.has_more

        assert await cursor.load_next()
        assert len(cursor.accumulated) == 100
        assert cursor.has_more

        assert await cursor.load_next()
        assert len(cursor.accumulated) == 120
        assert not cursor.has_more
        assert cursor.total == 120

        assert not await cursor.load_next()
        assert collection.calls == [(1, 50), (2, 50), (3, 50)]
        assert cursor.accumulated == [f"c{i}" for i in range(120)]

    async def test_exact_multiple_needs_one_empty_page(self) -> None:
        collection = FakeCollection([f"c{i}" for i in range(100)])
        cursor = _cursor(collection, ViewState())
        await cursor.reset()
        await cursor.load_next()
        assert cursor.has_more
        await cursor.load_next()
        assert not cursor.has_more
        assert len(cursor.accumulated) == 100

    async def test_in_flight_load_is_not_repeated(self) -> None:
        collection = FakeCollection([f"c{i}" for i in range(200)])
        cursor = _cursor(collection, ViewState())
        await cursor.reset()

        collection.gates[2] = asyncio.Event()
        first = asyncio.create_task(cursor.load_next())
        await asyncio.sleep(0)
        assert cursor.loading
        assert not await cursor.load_next()

        collection.gates[2].set()
        assert await first
        assert collection.calls.count((2, 50)) == 1

    async def test_scroll_near_bottom_loads(self) -> None:
        collection = FakeCollection([f"c{i}" for i in range(120)])
        cursor = _cursor(collection, ViewState())
        await cursor.reset()
        # 50 rows * 80px = 4000px, viewport 600px.
        assert not await cursor.on_scroll(0, 4000, 600)
        assert await cursor.on_scroll(3300, 4000, 600)
        assert len(cursor.accumulated) == 100


class TestReset:
    async def test_reset_clears_before_first_page_arrives(self) -> None:
        collection = FakeCollection([f"c{i}" for i in range(120)])
        state = ViewState()
        cursor = _cursor(collection, state)
        await cursor.reset()
        await cursor.load_next()

        collection.gates[1] = asyncio.Event()
        task = asyncio.create_task(cursor.reset())
        await asyncio.sleep(0)

        assert cursor.accumulated == []
        assert cursor.current_page == 1
        assert cursor.has_more

        collection.gates[1].set()
        await task
        assert len(cursor.accumulated) == 50

    async def test_stale_page_is_dropped(self) -> None:
        collection = FakeCollection([f"old{i}" for i in range(120)])
        state = ViewState()
        cursor = _cursor(collection, state)
        await cursor.reset()

        collection.gates[2] = asyncio.Event()
        stale = asyncio.create_task(cursor.load_next())
        await asyncio.sleep(0)

        collection.rows = [f"new{i}" for i in range(10)]
        await cursor.reset()
        collection.gates[2].set()
        await stale

        assert cursor.accumulated == [f"new{i}" for i in range(10)]
        assert cursor.current_page == 1
        assert not cursor.has_more


class TestErrors:
    async def test_failed_page_keeps_rows_and_shows_banner(self) -> None:
        collection = FakeCollection([f"c{i}" for i in range(120)])
        state = ViewState()
        cursor = _cursor(collection, state)
        await cursor.reset()

        collection.fail_pages.add(2)
        assert await cursor.load_next()

        assert len(cursor.accumulated) == 50
        assert cursor.current_page == 1
        assert not cursor.loading
        assert cursor.has_more
        assert [(n.kind, n.message) for n in state.notices.active()] == [
            ("banner", "Failed to load candidates"),
        ]

        collection.fail_pages.clear()
        await cursor.load_next()
        assert len(cursor.accumulated) == 100

    async def test_unexpected_error_propagates(self) -> None:
        async def broken(page: int, page_size: int) -> tuple[list[str], int]:
            raise RuntimeError("bug")

        cursor = PaginatedCursor(broken, ViewState())
        with pytest.raises(RuntimeError):
            await cursor.reset()
        assert not cursor.loading

    async def test_cancelled_load_releases_loading(self) -> None:
        collection = FakeCollection([f"c{i}" for i in range(200)])
        cursor = _cursor(collection, ViewState())
        await cursor.reset()

        collection.gates[2] = asyncio.Event()
        task = asyncio.create_task(cursor.load_next())
        await asyncio.sleep(0)
        assert cursor.loading
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert not cursor.loading

        collection.gates[2].set()
        assert await cursor.load_next()
        assert len(cursor.accumulated) == 100
