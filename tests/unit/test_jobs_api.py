"""Tests for JobsApi: slugs, order assignment, filters, sorts and edits."""

import random

import pytest

from src.core.config import ChannelConfig
from src.core.db import init_db
from src.core.errors import StoreError
from src.services.jobs import JobsApi, slugify
from src.store.channel import PassThroughChannel, UnreliableChannel
from src.store.sqlite import SqliteStore


@pytest.fixture()
def api():  # type: ignore[no-untyped-def]
    conn = init_db(":memory:")
    yield JobsApi(SqliteStore(conn))
    conn.close()


class TestSlugify:
    def test_basic(self) -> None:
        assert slugify("Senior Python Engineer") == "senior-python-engineer"

    def test_strips_punctuation(self) -> None:
        assert slugify("  C++ / Rust Dev! ") == "c--rust-dev"

    def test_empty(self) -> None:
        assert slugify("!!!") == ""


class TestCreateJob:
    async def test_appends_to_order(self, api) -> None:  # type: ignore[no-untyped-def]
        first = await api.create_job("Backend")
        second = await api.create_job("Frontend")
        assert (first.order, second.order) == (0, 1)

    async def test_slug_made_unique(self, api) -> None:  # type: ignore[no-untyped-def]
        a = await api.create_job("Data Engineer")
        b = await api.create_job("Data Engineer")
        c = await api.create_job("data   engineer")
        assert [a.slug, b.slug, c.slug] == ["data-engineer", "data-engineer-2", "data-engineer-3"]

    async def test_fallback_slug(self, api) -> None:  # type: ignore[no-untyped-def]
        job = await api.create_job("???")
        assert job.slug == "job"

    async def test_tags_and_defaults(self, api) -> None:  # type: ignore[no-untyped-def]
        job = await api.create_job("Backend", tags=["python", "remote", "python"])
        assert job.tags == frozenset({"python", "remote"})
        assert job.status == "active"

    async def test_empty_title_rejected(self, api) -> None:  # type: ignore[no-untyped-def]
        with pytest.raises(ValueError, match="title"):
            await api.create_job("   ")

    async def test_bad_status_rejected(self, api) -> None:  # type: ignore[no-untyped-def]
        with pytest.raises(ValueError, match="status"):
            await api.create_job("Backend", status="draft")


class TestGetJobs:
    async def test_default_page_in_manual_order(self, api) -> None:  # type: ignore[no-untyped-def]
        for i in range(12):
            await api.create_job(f"Job {i:02d}")
        jobs, total = await api.get_jobs()
        assert total == 12
        assert [j.order for j in jobs] == list(range(10))
        page2, _ = await api.get_jobs(page=2)
        assert [j.title for j in page2] == ["Job 10", "Job 11"]

    async def test_title_search_and_status(self, api) -> None:  # type: ignore[no-untyped-def]
        await api.create_job("Python Engineer")
        await api.create_job("Python Intern", status="archived")
        await api.create_job("Designer")
        jobs, total = await api.get_jobs(search="python", status="active")
        assert [j.title for j in jobs] == ["Python Engineer"]
        assert total == 1

    async def test_sort_by_title(self, api) -> None:  # type: ignore[no-untyped-def]
        for title in ("Charlie", "Alpha", "Bravo"):
            await api.create_job(title)
        jobs, _ = await api.get_jobs(sort="title")
        assert [j.title for j in jobs] == ["Alpha", "Bravo", "Charlie"]

    async def test_sort_newest_first(self, api) -> None:  # type: ignore[no-untyped-def]
        for title in ("old", "mid", "new"):
            await api.create_job(title)
        jobs, _ = await api.get_jobs(sort="created_at")
        assert [j.title for j in jobs] == ["new", "mid", "old"]

    async def test_unknown_sort(self, api) -> None:  # type: ignore[no-untyped-def]
        with pytest.raises(ValueError, match="Unknown job sort"):
            await api.get_jobs(sort="salary")

    async def test_page_past_end_is_empty(self, api) -> None:  # type: ignore[no-untyped-def]
        await api.create_job("Only")
        jobs, total = await api.get_jobs(page=3)
        assert jobs == []
        assert total == 1


class TestGetJob:
    async def test_missing_is_none(self, api) -> None:  # type: ignore[no-untyped-def]
        assert await api.get_job("missing") is None

    async def test_found(self, api) -> None:  # type: ignore[no-untyped-def]
        job = await api.create_job("Backend")
        assert await api.get_job(job.id) == job


class TestUpdateJob:
    async def test_title_change_keeps_slug(self, api) -> None:  # type: ignore[no-untyped-def]
        job = await api.create_job("Backend")
        updated = await api.update_job(job.id, title="Backend Lead")
        assert updated.title == "Backend Lead"
        assert updated.slug == "backend"

    async def test_archive(self, api) -> None:  # type: ignore[no-untyped-def]
        job = await api.create_job("Backend")
        updated = await api.update_job(job.id, status="archived")
        assert updated.status == "archived"

    async def test_explicit_slug_must_be_unique(self, api) -> None:  # type: ignore[no-untyped-def]
        await api.create_job("Backend")
        other = await api.create_job("Frontend")
        with pytest.raises(ValueError, match="already used"):
            await api.update_job(other.id, slug="backend")

    async def test_explicit_slug_may_keep_own_value(self, api) -> None:  # type: ignore[no-untyped-def]
        job = await api.create_job("Backend")
        updated = await api.update_job(job.id, slug="Backend")
        assert updated.slug == "backend"

    async def test_order_not_editable(self, api) -> None:  # type: ignore[no-untyped-def]
        job = await api.create_job("Backend")
        with pytest.raises(ValueError, match="order"):
            await api.update_job(job.id, order=5)

    async def test_missing_job_raises_store_error(self, api) -> None:  # type: ignore[no-untyped-def]
        with pytest.raises(StoreError):
            await api.update_job("missing", title="X")


class TestReorderJob:
    async def test_reorder(self, api) -> None:  # type: ignore[no-untyped-def]
        for title in "ABCD":
            await api.create_job(title)
        await api.reorder_job(0, 2)
        jobs, _ = await api.get_jobs()
        assert [(j.title, j.order) for j in jobs] == [("B", 0), ("C", 1), ("A", 2), ("D", 3)]


class _RecordingChannel(PassThroughChannel):
    def __init__(self) -> None:
        self.calls: list[str] = []

    async def call(self, name, func, *, mutating):  # type: ignore[no-untyped-def]
        self.calls.append(name)
        return await func()


class TestInputCheckedBeforeChannel:
    @pytest.fixture()
    def failing(self):  # type: ignore[no-untyped-def]
        conn = init_db(":memory:")
        config = ChannelConfig(min_delay_s=0.0, max_delay_s=0.0, failure_rate=1.0)
        yield JobsApi(SqliteStore(conn), UnreliableChannel(config, random.Random(0)))
        conn.close()

    async def test_blank_title_is_value_error(self, failing) -> None:  # type: ignore[no-untyped-def]
        with pytest.raises(ValueError, match="title must not be empty"):
            await failing.create_job("   ")

    async def test_bad_status_is_value_error(self, failing) -> None:  # type: ignore[no-untyped-def]
        with pytest.raises(ValueError, match="status must be one of"):
            await failing.create_job("Backend", status="draft")

    async def test_unknown_edit_field_is_value_error(self, failing) -> None:  # type: ignore[no-untyped-def]
        with pytest.raises(ValueError, match="cannot edit job fields"):
            await failing.update_job("any", order=3)

    async def test_unknown_sort_never_reaches_channel(self) -> None:
        conn = init_db(":memory:")
        channel = _RecordingChannel()
        api = JobsApi(SqliteStore(conn), channel)
        with pytest.raises(ValueError, match="Unknown job sort"):
            await api.get_jobs(sort="salary")
        assert channel.calls == []
        await api.get_jobs()
        assert channel.calls == ["JobsApi._list_jobs"]
        conn.close()
