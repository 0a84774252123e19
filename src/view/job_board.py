"""Job board: a paged job list with search, status filter, sort and reordering."""

import logging
import time
from collections.abc import Callable, Iterable
from typing import Any

from src.core.errors import TrackerError
from src.core.schemas import Job
from src.services.jobs import SORTS, JobsApi
from src.services.ordering import move_item
from src.view.optimistic import PendingMutation
from src.view.screen import Screen
from src.view.state import JOBS, ViewState

logger = logging.getLogger(__name__)


class JobBoard(Screen):
    """Current page of jobs. Reordering works on the unfiltered manual order only."""

    def __init__(
        self,
        api: JobsApi,
        page_size: int = 10,
        toast_ttl_s: float = 3.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(toast_ttl_s, clock)
        self._api = api
        self.page_size = page_size
        self.page = 1
        self.search: str | None = None
        self.status: str | None = None
        self.sort = "order"
        self.total = 0

    @property
    def jobs(self) -> list[Job]:
        return list(self.state.get(JOBS))

    @property
    def can_reorder(self) -> bool:
        return not self.search and not self.status and self.sort == "order"

    async def load(self) -> None:
        """Fetch the current page. On failure the previous page stays."""
        try:
            jobs, total = await self._api.get_jobs(
                search=self.search,
                status=self.status,
                page=self.page,
                page_size=self.page_size,
                sort=self.sort,
            )
        except TrackerError as e:
            logger.error("Loading jobs page %d failed: %s", self.page, e)
            self.state.notices.banner("Failed to load jobs")
            return
        self.state.replace(JOBS, jobs)
        self.total = total

    async def set_filters(
        self,
        search: str | None = None,
        status: str | None = None,
        sort: str = "order",
    ) -> None:
        """Change search/status/sort and go back to page 1."""
        if sort not in SORTS:
            msg = f"Unknown job sort '{sort}'"
            raise ValueError(msg)
        self.search = search or None
        self.status = status or None
        self.sort = sort
        self.page = 1
        await self.load()

    async def go_to_page(self, page: int) -> None:
        self.page = max(1, page)
        await self.load()

    async def move(self, from_index: int, to_index: int) -> PendingMutation:
        """Drag a job within the current page to a new position."""
        if not self.can_reorder:
            msg = "jobs can only be reordered in the unfiltered manual order"
            raise ValueError(msg)
        visible = self.state.get(JOBS)
        if not 0 <= from_index < len(visible):
            msg = f"from_index {from_index} out of range for {len(visible)} jobs"
            raise ValueError(msg)
        to_index = max(0, min(to_index, len(visible) - 1))
        offset = (self.page - 1) * self.page_size

        def apply(state: ViewState) -> None:
            moved = move_item(state.get(JOBS), from_index, to_index)
            state.replace(JOBS, [
                job if job.order == offset + i else job.model_copy(update={"order": offset + i})
                for i, job in enumerate(moved)
            ])

        return await self.coordinator.mutate(
            description=f"reorder job {offset + from_index} -> {offset + to_index}",
            slices=[JOBS],
            apply=apply,
            commit=lambda: self._api.reorder_job(offset + from_index, offset + to_index),
            error_message="Failed to reorder jobs. Reverting changes.",
        )

    async def edit(self, job_id: str, **changes: Any) -> PendingMutation | None:
        """Edit a job shown on this page. Returns None if it is not shown."""
        if not any(job.id == job_id for job in self.state.get(JOBS)):
            return None
        local = dict(changes)
        if "tags" in local:
            local["tags"] = frozenset(local["tags"])

        def apply(state: ViewState) -> None:
            state.replace(JOBS, [
                job.model_copy(update=local) if job.id == job_id else job
                for job in state.get(JOBS)
            ])

        return await self.coordinator.mutate(
            description=f"update job {job_id}",
            slices=[JOBS],
            apply=apply,
            commit=lambda: self._api.update_job(job_id, **changes),
            error_message="Failed to update job. Reverting changes.",
        )

    async def archive(self, job_id: str) -> PendingMutation | None:
        return await self.edit(job_id, status="archived")

    async def unarchive(self, job_id: str) -> PendingMutation | None:
        return await self.edit(job_id, status="active")

    async def create(
        self,
        title: str,
        description: str = "",
        tags: Iterable[str] = (),
    ) -> Job | None:
        """Create a job and reload the page. Returns None if the write failed."""
        try:
            job = await self._api.create_job(title, description=description, tags=tags)
        except TrackerError as e:
            logger.warning("Creating job '%s' failed: %s", title, e)
            self.state.notices.toast("Failed to create job")
            return None
        await self.load()
        return job
