"""Jobs API: search, create, edit and reorder job postings."""

import logging
import re
from collections.abc import Iterable
from typing import Any

from src.core.schemas import JOB_STATUSES, Job
from src.services.base import StoreApi
from src.services.ordering import OrderUpdate, reorder
from src.store.base import PageRange, Query, Sort, TextSearch
from src.store.channel import over_channel

logger = logging.getLogger(__name__)

# Named sorts offered to the job board.
SORTS: dict[str, Sort] = {
    "order": Sort(column="order"),
    "title": Sort(column="title"),
    "created_at": Sort(column="created_at", descending=True),
}

_EDITABLE_FIELDS = frozenset({"title", "description", "status", "tags", "slug"})


def slugify(title: str) -> str:
    """Lower-case the title, turn whitespace runs into '-', drop anything else."""
    slug = re.sub(r"\s+", "-", title.strip().lower())
    return re.sub(r"[^a-z0-9-]", "", slug)


class JobsApi(StoreApi):
    """Job postings over the store."""

    async def get_jobs(
        self,
        search: str | None = None,
        status: str | None = None,
        page: int = 1,
        page_size: int = 10,
        sort: str = "order",
    ) -> tuple[list[Job], int]:
        """Return one page of jobs and the total number of matches."""
        if sort not in SORTS:
            valid = ", ".join(sorted(SORTS))
            msg = f"Unknown job sort '{sort}'. Available: {valid}"
            raise ValueError(msg)
        query = Query(
            search=TextSearch(columns=("title",), term=search) if search else None,
            matches={"status": status} if status else {},
            sort=SORTS[sort],
            page_range=PageRange.for_page(page, page_size),
        )
        return await self._list_jobs(query)

    @over_channel(mutating=False)
    async def get_job(self, job_id: str) -> Job | None:
        row = await self.store.get("jobs", job_id)
        return None if row is None else Job.model_validate(row)

    async def create_job(
        self,
        title: str,
        description: str = "",
        status: str = "active",
        tags: Iterable[str] = (),
    ) -> Job:
        """Insert a job at the end of the manual order with a unique slug."""
        if not title.strip():
            msg = "job title must not be empty"
            raise ValueError(msg)
        _check_status(status)
        return await self._insert_job({
            "title": title.strip(),
            "status": status,
            "tags": sorted(set(tags)),
            "description": description,
        })

    async def update_job(self, job_id: str, **changes: Any) -> Job:
        """Apply field changes to a job. The slug only changes when given explicitly."""
        unknown = set(changes) - _EDITABLE_FIELDS
        if unknown:
            msg = f"cannot edit job fields: {', '.join(sorted(unknown))}"
            raise ValueError(msg)
        patch = dict(changes)
        if "title" in patch:
            if not str(patch["title"]).strip():
                msg = "job title must not be empty"
                raise ValueError(msg)
            patch["title"] = str(patch["title"]).strip()
        if "status" in patch:
            _check_status(patch["status"])
        if "tags" in patch:
            patch["tags"] = sorted(set(patch["tags"]))
        if "slug" in patch:
            patch["slug"] = slugify(patch["slug"])
            if not patch["slug"]:
                msg = "slug must contain at least one letter or digit"
                raise ValueError(msg)
        return await self._patch_job(job_id, patch)

    @over_channel(mutating=True)
    async def reorder_job(self, from_index: int, to_index: int) -> list[OrderUpdate]:
        """Move the job at from_index (in manual order) to to_index."""
        return await reorder(self.store, from_index, to_index)

    @over_channel(mutating=False)
    async def _list_jobs(self, query: Query) -> tuple[list[Job], int]:
        result = await self.store.list("jobs", query)
        return [Job.model_validate(row) for row in result.rows], result.total

    @over_channel(mutating=True)
    async def _insert_job(self, values: dict[str, Any]) -> Job:
        values["slug"] = await self._unique_slug(slugify(values["title"]) or "job")
        values["order"] = await self._next_order()
        row = await self.store.insert("jobs", values)
        job = Job.model_validate(row)
        logger.info("Created job '%s' (%s) at order %d", job.title, job.slug, job.order)
        return job

    @over_channel(mutating=True)
    async def _patch_job(self, job_id: str, patch: dict[str, Any]) -> Job:
        if "slug" in patch and await self._slug_taken(patch["slug"], exclude_id=job_id):
            msg = f"slug '{patch['slug']}' is already used"
            raise ValueError(msg)
        row = await self.store.update("jobs", job_id, patch)
        return Job.model_validate(row)

    async def _next_order(self) -> int:
        last = await self.store.list("jobs", Query(
            sort=Sort(column="order", descending=True),
            page_range=PageRange(start=0, size=1),
        ))
        if not last.rows:
            return 0
        return int(last.rows[0]["order"]) + 1

    async def _slug_taken(self, slug: str, exclude_id: str | None = None) -> bool:
        result = await self.store.list("jobs", Query(matches={"slug": slug}))
        return any(row["id"] != exclude_id for row in result.rows)

    async def _unique_slug(self, base: str) -> str:
        slug = base
        suffix = 2
        while await self._slug_taken(slug):
            slug = f"{base}-{suffix}"
            suffix += 1
        return slug


def _check_status(status: str) -> None:
    if status not in JOB_STATUSES:
        msg = f"status must be one of {list(JOB_STATUSES)}, got '{status}'"
        raise ValueError(msg)
