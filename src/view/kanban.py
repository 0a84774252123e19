"""Kanban board: candidates bucketed by stage, moved by drag and drop."""

import asyncio
import logging
import time
from collections.abc import Callable

from src.core.errors import StoreError, TrackerError
from src.core.schemas import STAGES, Candidate, CandidateStage
from src.services.candidates import CandidatesApi, check_stage
from src.view.optimistic import PendingMutation
from src.view.screen import Screen
from src.view.state import ViewState, stage_slice

logger = logging.getLogger(__name__)


class KanbanBoard(Screen):
    """One column per stage, each loaded with the first page of that stage."""

    def __init__(
        self,
        api: CandidatesApi,
        page_size: int = 100,
        toast_ttl_s: float = 3.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(toast_ttl_s, clock)
        self._api = api
        self._page_size = page_size

    async def load(self) -> None:
        """Fetch every column concurrently. On failure the old columns stay."""
        try:
            results = await asyncio.gather(*(
                self._api.get_candidates(stage=stage, page=1, page_size=self._page_size)
                for stage in STAGES
            ))
        except TrackerError as e:
            logger.error("Loading the kanban board failed: %s", e)
            self.state.notices.banner("Failed to load candidates")
            return
        for stage, (candidates, _total) in zip(STAGES, results):
            self.state.replace(stage_slice(stage), candidates)
        logger.info(
            "Kanban loaded: %s",
            ", ".join(f"{s}={len(self.column(s))}" for s in STAGES),
        )

    def column(self, stage: str) -> list[Candidate]:
        return list(self.state.get(stage_slice(stage)))

    def find(self, candidate_id: str) -> tuple[CandidateStage, Candidate] | None:
        """The column a candidate is shown in, and the candidate."""
        for stage in STAGES:
            for candidate in self.state.get(stage_slice(stage)):
                if candidate.id == candidate_id:
                    return stage, candidate
        return None

    async def move(self, candidate_id: str, new_stage: str) -> PendingMutation | None:
        """Drop a candidate onto another column.

        Returns None (and does nothing) when the candidate is not on the
        board or already in that column.
        """
        target = check_stage(new_stage)
        found = self.find(candidate_id)
        if found is None or found[0] == target:
            return None
        source, candidate = found

        def apply(state: ViewState) -> None:
            column = state.get(stage_slice(source))
            column[:] = [c for c in column if c.id != candidate_id]
            state.get(stage_slice(target)).append(candidate.model_copy(update={"stage": target}))

        async def commit() -> Candidate:
            updated = await self._api.change_stage(candidate_id, target)
            if updated is None:
                msg = f"candidate {candidate_id} not found"
                raise StoreError(msg)
            return updated

        return await self.coordinator.mutate(
            description=f"move candidate {candidate_id} {source} -> {target}",
            slices=[stage_slice(source), stage_slice(target)],
            apply=apply,
            commit=commit,
            error_message="Failed to update candidate. Reverting changes.",
        )
