"""Append-only audit timeline for candidates.

Events are only ever inserted; this module has no update or delete path.
Reading back oldest-first replays every stage the candidate has been in.
"""

import logging
from collections.abc import Sequence

from src.core.schemas import CandidateStage, EventType, TimelineEvent
from src.store.base import Query, RemoteStore, Sort

logger = logging.getLogger(__name__)

TIMELINE_TABLE = "candidate_timeline"
ASSESSMENT_COMPLETED_NOTE = "Completed assessment"


class AuditLog:
    """Writes and reads timeline events over a store."""

    def __init__(self, store: RemoteStore) -> None:
        self._store = store

    async def stage_changed(
        self,
        candidate_id: str,
        from_stage: CandidateStage | None,
        to_stage: CandidateStage,
        note: str | None = None,
    ) -> TimelineEvent:
        return await self._append(candidate_id, "stage_change", from_stage, to_stage, note)

    async def note_added(self, candidate_id: str, note: str) -> TimelineEvent:
        return await self._append(candidate_id, "note_added", None, None, note)

    async def assessment_completed(self, candidate_id: str) -> TimelineEvent:
        return await self._append(
            candidate_id, "assessment_completed", None, None, ASSESSMENT_COMPLETED_NOTE,
        )

    async def events(self, candidate_id: str) -> list[TimelineEvent]:
        """All events for a candidate, newest first."""
        result = await self._store.list(TIMELINE_TABLE, Query(
            matches={"candidate_id": candidate_id},
            sort=Sort(column="created_at", descending=True),
        ))
        return [TimelineEvent.model_validate(row) for row in result.rows]

    async def _append(
        self,
        candidate_id: str,
        event_type: EventType,
        from_stage: CandidateStage | None,
        to_stage: CandidateStage | None,
        note: str | None,
    ) -> TimelineEvent:
        row = await self._store.insert(TIMELINE_TABLE, {
            "candidate_id": candidate_id,
            "event_type": event_type,
            "from_stage": from_stage,
            "to_stage": to_stage,
            "note": note,
        })
        logger.debug("Timeline %s for candidate %s", event_type, candidate_id)
        return TimelineEvent.model_validate(row)


def stage_history(events: Sequence[TimelineEvent]) -> list[CandidateStage]:
    """Replay a newest-first timeline into the stages visited, oldest first.

    The last element is the candidate's current stage when the timeline
    and the candidate row agree.
    """
    return [
        e.to_stage
        for e in reversed(events)
        if e.event_type == "stage_change" and e.to_stage is not None
    ]
