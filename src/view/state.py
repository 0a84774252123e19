"""Local view state: the collections one screen is currently showing.

State is split into named slices (the job list, one bucket per stage,
the accumulated candidate list) so a rollback can restore exactly the
slices a mutation touched and leave the others alone. Rows are frozen
models, so a tuple copy of a slice is an exact snapshot.
"""

from collections.abc import Iterable, Mapping
from typing import Any

from src.view.notices import NoticeBoard

JOBS = "jobs"
CANDIDATES = "candidates"

Snapshot = Mapping[str, tuple[Any, ...]]


def stage_slice(stage: str) -> str:
    """Slice key of a kanban stage bucket."""
    return f"stage:{stage}"


class ViewState:
    """Explicit state container owned by one screen for its lifetime."""

    def __init__(self, notices: NoticeBoard | None = None) -> None:
        self._slices: dict[str, list[Any]] = {}
        self.notices = notices or NoticeBoard()

    def get(self, key: str) -> list[Any]:
        """The live list for a slice (created empty on first use)."""
        return self._slices.setdefault(key, [])

    def replace(self, key: str, rows: Iterable[Any]) -> None:
        self._slices[key] = list(rows)

    def keys(self) -> list[str]:
        return list(self._slices)

    def snapshot(self, keys: Iterable[str]) -> Snapshot:
        """Immutable copy of the given slices as they are right now."""
        return {key: tuple(self._slices.get(key, ())) for key in keys}

    def restore(self, snapshot: Snapshot) -> None:
        """Put the snapshotted slices back. Other slices are untouched."""
        for key, rows in snapshot.items():
            self._slices[key] = list(rows)

    def clear(self) -> None:
        """Tear down on screen exit."""
        self._slices.clear()
        self.notices.clear()
