"""Candidates API and the stage machine.

Any stage may move to any other stage, including itself; there is no
transition table. Every stage change, note and assessment completion
appends a timeline event. The event and the candidate row are two
separate writes: a failure between them leaves the event without the
row change, and nothing compensates for it.
"""

import logging
from typing import Any

from src.core.schemas import STAGES, Candidate, CandidateStage, TimelineEvent
from src.services.base import StoreApi
from src.services.timeline import AuditLog
from src.store.base import PageRange, Query, RemoteStore, Sort, TextSearch
from src.store.channel import Channel, over_channel

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = frozenset({"name", "email", "job_id", "notes", "stage"})


def check_stage(stage: str) -> CandidateStage:
    """Return the stage unchanged, or raise ValueError if it is not a known stage."""
    if stage not in STAGES:
        msg = f"stage must be one of {list(STAGES)}, got '{stage}'"
        raise ValueError(msg)
    return stage  # type: ignore[return-value]


class CandidatesApi(StoreApi):
    """Candidates over the store, with their audit timeline."""

    def __init__(self, store: RemoteStore, channel: Channel | None = None) -> None:
        super().__init__(store, channel)
        self.audit = AuditLog(store)

    async def get_candidates(
        self,
        search: str | None = None,
        stage: str | None = None,
        job_id: str | None = None,
        page: int = 1,
        page_size: int = 50,
    ) -> tuple[list[Candidate], int]:
        """Return one page of candidates (newest first) and the total count.

        ``search`` matches name OR email, case-insensitively.
        """
        matches: dict[str, Any] = {}
        if stage:
            matches["stage"] = check_stage(stage)
        if job_id:
            matches["job_id"] = job_id
        query = Query(
            search=TextSearch(columns=("name", "email"), term=search) if search else None,
            matches=matches,
            sort=Sort(column="created_at", descending=True),
            page_range=PageRange.for_page(page, page_size),
        )
        return await self._list_candidates(query)

    @over_channel(mutating=False)
    async def get_candidate(self, candidate_id: str) -> Candidate | None:
        return await self._get(candidate_id)

    async def create_candidate(
        self,
        name: str,
        email: str,
        job_id: str | None = None,
        stage: str = "applied",
        notes: str = "",
    ) -> Candidate:
        """Insert a candidate, then write its initial stage event."""
        initial = check_stage(stage)
        if not name.strip() or not email.strip():
            msg = "candidate name and email must not be empty"
            raise ValueError(msg)
        return await self._insert_candidate({
            "name": name.strip(),
            "email": email.strip(),
            "job_id": job_id,
            "stage": initial,
            "notes": notes,
        })

    async def update_candidate(self, candidate_id: str, **changes: Any) -> Candidate | None:
        """Apply field changes; a ``stage`` change goes through the stage machine.

        Returns None when the candidate does not exist.
        """
        unknown = set(changes) - _EDITABLE_FIELDS
        if unknown:
            msg = f"cannot edit candidate fields: {', '.join(sorted(unknown))}"
            raise ValueError(msg)
        patch = dict(changes)
        stage = patch.pop("stage", None)
        return await self._patch_candidate(
            candidate_id, None if stage is None else check_stage(stage), patch,
        )

    async def change_stage(
        self,
        candidate_id: str,
        new_stage: str,
        note: str | None = None,
    ) -> Candidate | None:
        """Move a candidate to ``new_stage``. Returns None if the candidate is missing."""
        return await self._move(candidate_id, check_stage(new_stage), note)

    async def add_note(self, candidate_id: str, note: str) -> TimelineEvent | None:
        """Append a note to the timeline. The stage is left alone."""
        if not note.strip():
            msg = "note must not be empty"
            raise ValueError(msg)
        return await self._append_note(candidate_id, note.strip())

    @over_channel(mutating=True)
    async def record_assessment_completion(self, candidate_id: str) -> TimelineEvent:
        return await self.audit.assessment_completed(candidate_id)

    @over_channel(mutating=False)
    async def get_timeline(self, candidate_id: str) -> list[TimelineEvent]:
        """The candidate's timeline, newest first."""
        return await self.audit.events(candidate_id)

    @over_channel(mutating=False)
    async def _list_candidates(self, query: Query) -> tuple[list[Candidate], int]:
        result = await self.store.list("candidates", query)
        return [Candidate.model_validate(row) for row in result.rows], result.total

    @over_channel(mutating=True)
    async def _insert_candidate(self, values: dict[str, Any]) -> Candidate:
        row = await self.store.insert("candidates", values)
        candidate = Candidate.model_validate(row)
        await self.audit.stage_changed(candidate.id, None, candidate.stage)
        logger.info("Created candidate %s in stage '%s'", candidate.id, candidate.stage)
        return candidate

    @over_channel(mutating=True)
    async def _patch_candidate(
        self,
        candidate_id: str,
        stage: CandidateStage | None,
        patch: dict[str, Any],
    ) -> Candidate | None:
        if stage is not None:
            candidate = await self._change_stage(candidate_id, stage)
        else:
            candidate = await self._get(candidate_id)
        if candidate is None or not patch:
            return candidate
        row = await self.store.update("candidates", candidate_id, patch)
        return Candidate.model_validate(row)

    @over_channel(mutating=True)
    async def _move(
        self,
        candidate_id: str,
        new_stage: CandidateStage,
        note: str | None,
    ) -> Candidate | None:
        return await self._change_stage(candidate_id, new_stage, note)

    @over_channel(mutating=True)
    async def _append_note(self, candidate_id: str, note: str) -> TimelineEvent | None:
        if await self._get(candidate_id) is None:
            return None
        return await self.audit.note_added(candidate_id, note)

    async def _get(self, candidate_id: str) -> Candidate | None:
        row = await self.store.get("candidates", candidate_id)
        return None if row is None else Candidate.model_validate(row)

    async def _change_stage(
        self,
        candidate_id: str,
        new_stage: CandidateStage,
        note: str | None = None,
    ) -> Candidate | None:
        current = await self._get(candidate_id)
        if current is None:
            logger.info("Stage change skipped: candidate %s not found", candidate_id)
            return None
        await self.audit.stage_changed(candidate_id, current.stage, new_stage, note)
        row = await self.store.update("candidates", candidate_id, {"stage": new_stage})
        logger.info("Candidate %s: %s -> %s", candidate_id, current.stage, new_stage)
        return Candidate.model_validate(row)
