"""Manual job ordering: move one job to a new position.

After a successful reorder the ``order`` values are exactly ``0..N-1`` in
display sequence. Each changed row is written on its own, in sequence; if
a write fails the earlier ones stay applied and nothing is compensated.
Reorders are not serialized against each other.
"""

import logging
from collections.abc import Sequence
from typing import TypeVar

from pydantic import BaseModel, ConfigDict

from src.core.errors import StoreError
from src.core.schemas import Job
from src.store.base import Query, RemoteStore, Sort

logger = logging.getLogger(__name__)

T = TypeVar("T")


class OrderUpdate(BaseModel):
    """One persisted ``order`` change."""

    model_config = ConfigDict(frozen=True)

    job_id: str
    order: int


def move_item(items: Sequence[T], from_index: int, to_index: int) -> list[T]:
    """Return a copy with the item at from_index moved to to_index.

    to_index is clamped to the valid range; an out-of-range from_index
    raises ValueError.
    """
    if not 0 <= from_index < len(items):
        msg = f"from_index {from_index} out of range for {len(items)} items"
        raise ValueError(msg)
    result = list(items)
    moved = result.pop(from_index)
    to_index = max(0, min(to_index, len(items) - 1))
    result.insert(to_index, moved)
    return result


def plan_reorder(
    jobs: Sequence[Job],
    from_index: int,
    to_index: int,
) -> tuple[list[Job], list[OrderUpdate]]:
    """Compute the new sequence and the minimal set of order writes.

    ``jobs`` must already be sorted by ``order``. Returns the reordered jobs
    (with ``order`` reassigned to their index) and one OrderUpdate per job
    whose ``order`` actually changes.
    """
    sequence = move_item(jobs, from_index, to_index)
    reordered: list[Job] = []
    updates: list[OrderUpdate] = []
    for index, job in enumerate(sequence):
        if job.order != index:
            updates.append(OrderUpdate(job_id=job.id, order=index))
            job = job.model_copy(update={"order": index})
        reordered.append(job)
    return reordered, updates


async def reorder(store: RemoteStore, from_index: int, to_index: int) -> list[OrderUpdate]:
    """Move the job at from_index to to_index and persist the new ranks.

    Returns the updates that were written.
    """
    page = await store.list("jobs", Query(sort=Sort(column="order")))
    jobs = [Job.model_validate(row) for row in page.rows]
    _, updates = plan_reorder(jobs, from_index, to_index)

    for done, update in enumerate(updates):
        try:
            await store.update("jobs", update.job_id, {"order": update.order})
        except StoreError:
            logger.error(
                "Reorder %d -> %d stopped after %d of %d writes; job order is partially applied",
                from_index, to_index, done, len(updates),
            )
            raise

    logger.info(
        "Reordered jobs %d -> %d (%d rows rewritten)", from_index, to_index, len(updates),
    )
    return updates
