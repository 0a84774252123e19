"""Fixed-row-height virtualization window.

Only rows inside the visible range, plus ``overscan`` rows on each side,
are handed out for rendering, however many rows have been accumulated.
"""

from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict


class VirtualRow(BaseModel):
    """A row positioned inside the scroll container."""

    model_config = ConfigDict(frozen=True)

    index: int
    start: int
    size: int
    row: Any


class VirtualWindow:
    """Maps a scroll offset to the slice of rows worth rendering."""

    def __init__(self, row_height: int = 80, height: int = 600, overscan: int = 10) -> None:
        self.row_height = row_height
        self.height = height
        self.overscan = overscan

    def total_size(self, count: int) -> int:
        """Height of the full (virtual) list in pixels."""
        return count * self.row_height

    def visible_range(self, count: int, scroll_top: float) -> tuple[int, int]:
        """Half-open index range to render, overscan included."""
        if count <= 0:
            return 0, 0
        max_scroll = max(0, self.total_size(count) - self.height)
        top = int(max(0, min(scroll_top, max_scroll)))
        first = top // self.row_height
        last = min(count - 1, (top + self.height - 1) // self.row_height)
        return max(0, first - self.overscan), min(count, last + 1 + self.overscan)

    def items(self, rows: Sequence[Any], scroll_top: float) -> list[VirtualRow]:
        start, end = self.visible_range(len(rows), scroll_top)
        return [
            VirtualRow(index=i, start=i * self.row_height, size=self.row_height, row=rows[i])
            for i in range(start, end)
        ]
