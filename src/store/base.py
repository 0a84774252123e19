"""Query model and abstract base class for the remote store.

The store is an external collaborator: anything that can filter, sort,
paginate and count rows, insert-returning and update-by-id-returning is a
valid implementation.
"""

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

Row = dict[str, Any]


class TextSearch(BaseModel):
    """Case-insensitive substring match, OR-ed across ``columns``."""

    model_config = ConfigDict(frozen=True)

    columns: tuple[str, ...]
    term: str


class Sort(BaseModel):
    """Order by one column; insertion order breaks ties in the same direction."""

    model_config = ConfigDict(frozen=True)

    column: str
    descending: bool = False


class PageRange(BaseModel):
    """Half-open row range ``[start, start + size)``."""

    model_config = ConfigDict(frozen=True)

    start: int = Field(default=0, ge=0)
    size: int = Field(ge=1)

    @classmethod
    def for_page(cls, page: int, page_size: int) -> "PageRange":
        """Range for a 1-based page number."""
        if page < 1:
            msg = f"page must be >= 1, got {page}"
            raise ValueError(msg)
        return cls(start=(page - 1) * page_size, size=page_size)


class Query(BaseModel):
    """Filters, sort and range for a ``list`` call. Every part is optional."""

    model_config = ConfigDict(frozen=True)

    search: TextSearch | None = None
    matches: dict[str, Any] = Field(default_factory=dict)
    sort: Sort | None = None
    page_range: PageRange | None = None


class ResultPage(BaseModel):
    """Rows of one ``list`` call plus the total count ignoring the range."""

    rows: list[Row]
    total: int


class RemoteStore(ABC):
    """Base class that every store backend must implement.

    Rejected queries and commands raise ``StoreError``. ``get`` returns
    ``None`` for a missing row.
    """

    @abstractmethod
    async def list(self, table: str, query: Query | None = None) -> ResultPage:
        """Return the matching rows in the requested order and range."""

    @abstractmethod
    async def get(self, table: str, row_id: str) -> Row | None:
        """Return one row by id, or None."""

    @abstractmethod
    async def insert(self, table: str, row: Row) -> Row:
        """Insert a row and return it as stored (with id and timestamps)."""

    @abstractmethod
    async def update(self, table: str, row_id: str, patch: Row) -> Row:
        """Apply ``patch`` to one row and return it as stored."""
