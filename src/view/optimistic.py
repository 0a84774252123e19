"""Optimistic update coordinator.

Each mutation moves through::

    applied_locally -> committing -> committed
                                  -> rolled_back

The snapshot is taken right before the local change is applied, and only
for the slices the mutation names. On a failed commit those slices are
restored from it and a toast is shown. Mutations to the same entity are
not merged or queued: a second mutation started before the first one
commits snapshots the first one's unconfirmed state.
"""

import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, Literal

from src.core.errors import TrackerError
from src.view.state import Snapshot, ViewState

logger = logging.getLogger(__name__)

MutationState = Literal["applied_locally", "committing", "committed", "rolled_back"]


class PendingMutation:
    """Record of one optimistic mutation and its rollback snapshot."""

    def __init__(self, description: str, snapshot: Snapshot) -> None:
        self.description = description
        self.snapshot = snapshot
        self.state: MutationState = "applied_locally"
        self.result: Any = None
        self.error: Exception | None = None

    @property
    def committed(self) -> bool:
        return self.state == "committed"

    @property
    def rolled_back(self) -> bool:
        return self.state == "rolled_back"

    def __repr__(self) -> str:
        return f"PendingMutation({self.description!r}, state={self.state!r})"


class OptimisticCoordinator:
    """Applies mutations to a ViewState first and confirms them remotely second.

    Usage::

        mutation = await coordinator.mutate(
            description="move candidate",
            slices=[stage_slice("tech"), stage_slice("offer")],
            apply=lambda state: ...,                     # synchronous, local
            commit=lambda: api.change_stage(cid, "offer"),  # remote
        )
        if mutation.rolled_back:
            ...
    """

    def __init__(self, state: ViewState) -> None:
        self._state = state
        self._pending: list[PendingMutation] = []

    @property
    def pending(self) -> list[PendingMutation]:
        """Mutations applied locally and not yet committed or rolled back."""
        return list(self._pending)

    async def mutate(
        self,
        *,
        description: str,
        slices: Sequence[str],
        apply: Callable[[ViewState], None],
        commit: Callable[[], Awaitable[Any]],
        error_message: str | None = None,
    ) -> PendingMutation:
        """Run one optimistic mutation to completion.

        Store and transport failures roll back and show a toast; they are
        recorded on the returned mutation rather than raised. Any other
        exception rolls back and propagates.
        """
        snapshot = self._state.snapshot(slices)
        mutation = PendingMutation(description, snapshot)
        try:
            apply(self._state)
        except Exception:
            self._state.restore(snapshot)
            raise

        self._pending.append(mutation)
        mutation.state = "committing"
        try:
            mutation.result = await commit()
        except TrackerError as e:
            self._rollback(mutation, e)
            self._state.notices.toast(
                error_message or f"Failed to {description}. Reverting changes.",
            )
        except Exception as e:
            self._rollback(mutation, e)
            raise
        else:
            mutation.state = "committed"
            logger.debug("Committed '%s'", description)
        finally:
            self._pending.remove(mutation)
        return mutation

    def _rollback(self, mutation: PendingMutation, error: Exception) -> None:
        self._state.restore(mutation.snapshot)
        mutation.state = "rolled_back"
        mutation.error = error
        logger.warning("Rolled back '%s': %s", mutation.description, error)
