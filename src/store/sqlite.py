"""SQLite-backed implementation of the remote store."""

from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from datetime import datetime
from typing import Any

from src.core.db import JSON_COLUMNS, TABLE_COLUMNS
from src.core.errors import StoreError
from src.store.base import Query, RemoteStore, ResultPage, Row

logger = logging.getLogger(__name__)

# Columns the store assigns itself; callers may not write them.
_MANAGED_COLUMNS = frozenset({"id", "created_at", "updated_at"})


class SqliteStore(RemoteStore):
    """Remote store over a ``sqlite3`` connection created by ``init_db``.

    Column names are checked against the known schema before they reach
    SQL, so a bad filter or sort is a rejected query (``StoreError``).
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        # SQLite's lower() only folds ASCII; text search needs full Unicode folding.
        conn.create_function("casefold", 1, _casefold, deterministic=True)

    async def get(self, table: str, row_id: str) -> Row | None:
        self._columns(table)
        try:
            return self._fetch(table, row_id)
        except sqlite3.Error as e:
            msg = f"get on '{table}' failed: {e}"
            raise StoreError(msg) from e

    async def insert(self, table: str, row: Row) -> Row:
        columns = self._columns(table)
        self._check_writable(table, row)
        now = _now()
        values: Row = {"id": uuid.uuid4().hex, "created_at": now}
        if "updated_at" in columns:
            values["updated_at"] = now
        values.update(row)

        names = ", ".join(_quote(c) for c in values)
        marks = ", ".join("?" for _ in values)
        try:
            params = [_encode(table, c, v) for c, v in values.items()]
            self._conn.execute(f"INSERT INTO {table} ({names}) VALUES ({marks})", params)
            self._conn.commit()
            stored = self._fetch(table, values["id"])
        except (sqlite3.Error, TypeError, ValueError) as e:
            self._conn.rollback()
            msg = f"insert into '{table}' rejected: {e}"
            raise StoreError(msg) from e
        logger.debug("Inserted %s row %s", table, values["id"])
        return stored  # type: ignore[return-value]

    async def update(self, table: str, row_id: str, patch: Row) -> Row:
        columns = self._columns(table)
        self._check_writable(table, patch)
        values = dict(patch)
        if "updated_at" in columns:
            values["updated_at"] = _now()
        if not values:
            stored = await self.get(table, row_id)
            if stored is None:
                msg = f"no '{table}' row with id {row_id}"
                raise StoreError(msg)
            return stored

        assignments = ", ".join(f"{_quote(c)} = ?" for c in values)
        try:
            params = [_encode(table, c, v) for c, v in values.items()]
            cursor = self._conn.execute(
                f"UPDATE {table} SET {assignments} WHERE id = ?", [*params, row_id],
            )
            if cursor.rowcount == 0:
                self._conn.rollback()
                msg = f"no '{table}' row with id {row_id}"
                raise StoreError(msg)
            self._conn.commit()
            stored = self._fetch(table, row_id)
        except (sqlite3.Error, TypeError, ValueError) as e:
            self._conn.rollback()
            msg = f"update of '{table}' row {row_id} rejected: {e}"
            raise StoreError(msg) from e
        logger.debug("Updated %s row %s: %s", table, row_id, sorted(patch))
        return stored  # type: ignore[return-value]

    async def list(self, table: str, query: Query | None = None) -> ResultPage:
        query = query or Query()
        columns = self._columns(table)
        where, params = self._where(table, query)

        order = "seq ASC"
        if query.sort is not None:
            direction = "DESC" if query.sort.descending else "ASC"
            order = f"{self._column(table, query.sort.column)} {direction}, seq {direction}"

        select = ", ".join(_quote(c) for c in columns)
        sql = f"SELECT {select} FROM {table}{where} ORDER BY {order}"
        page_params = list(params)
        if query.page_range is not None:
            sql += " LIMIT ? OFFSET ?"
            page_params += [query.page_range.size, query.page_range.start]

        try:
            total = self._conn.execute(
                f"SELECT COUNT(*) FROM {table}{where}", params,
            ).fetchone()[0]
            rows = [self._decode(table, r) for r in self._conn.execute(sql, page_params)]
        except sqlite3.Error as e:
            msg = f"query on '{table}' rejected: {e}"
            raise StoreError(msg) from e
        return ResultPage(rows=rows, total=total)

    # -- helpers ---------------------------------------------------------

    def _columns(self, table: str) -> tuple[str, ...]:
        if table not in TABLE_COLUMNS:
            msg = f"unknown table '{table}'"
            raise StoreError(msg)
        return TABLE_COLUMNS[table]

    def _column(self, table: str, column: str) -> str:
        if column not in self._columns(table):
            msg = f"unknown column '{column}' on '{table}'"
            raise StoreError(msg)
        return _quote(column)

    def _check_writable(self, table: str, values: Row) -> None:
        for column in values:
            self._column(table, column)
            if column in _MANAGED_COLUMNS:
                msg = f"column '{column}' on '{table}' is assigned by the store"
                raise StoreError(msg)

    def _where(self, table: str, query: Query) -> tuple[str, list[Any]]:
        clauses: list[str] = []
        params: list[Any] = []
        if query.search is not None and query.search.term:
            parts = []
            for column in query.search.columns:
                parts.append(f"instr(casefold({self._column(table, column)}), casefold(?)) > 0")
                params.append(query.search.term)
            if parts:
                clauses.append("(" + " OR ".join(parts) + ")")
        for column, value in query.matches.items():
            name = self._column(table, column)
            if value is None:
                clauses.append(f"{name} IS NULL")
            else:
                clauses.append(f"{name} = ?")
                params.append(value)
        if not clauses:
            return "", params
        return " WHERE " + " AND ".join(clauses), params

    def _fetch(self, table: str, row_id: str) -> Row | None:
        select = ", ".join(_quote(c) for c in self._columns(table))
        row = self._conn.execute(
            f"SELECT {select} FROM {table} WHERE id = ?", (row_id,),
        ).fetchone()
        return None if row is None else self._decode(table, row)

    def _decode(self, table: str, row: sqlite3.Row) -> Row:
        json_columns = JSON_COLUMNS.get(table, frozenset())
        decoded: Row = {}
        for column in row.keys():
            value = row[column]
            if column in json_columns and value is not None:
                value = json.loads(value)
            decoded[column] = value
        return decoded


def _now() -> str:
    return datetime.now().isoformat(timespec="microseconds")


def _quote(column: str) -> str:
    return f'"{column}"'


def _encode(table: str, column: str, value: Any) -> Any:
    if column in JSON_COLUMNS.get(table, frozenset()):
        if isinstance(value, (set, frozenset)):
            value = sorted(value)
        return json.dumps(value)
    if isinstance(value, datetime):
        return value.isoformat(timespec="microseconds")
    return value


def _casefold(value: Any) -> Any:
    return value.casefold() if isinstance(value, str) else value
