"""SQLite schema for jobs, candidates, timeline, assessments and responses.

Every table carries a store-assigned ``id`` plus an internal ``seq`` column
recording insertion order, used as the sort tie-break.
"""

import sqlite3
from pathlib import Path

_JOBS_TABLE = """
CREATE TABLE IF NOT EXISTS jobs (
    seq          INTEGER PRIMARY KEY AUTOINCREMENT,
    id           TEXT    NOT NULL UNIQUE,
    title        TEXT    NOT NULL,
    slug         TEXT    NOT NULL UNIQUE,
    status       TEXT    NOT NULL DEFAULT 'active'
                         CHECK (status IN ('active', 'archived')),
    tags         TEXT    NOT NULL DEFAULT '[]',
    "order"      INTEGER NOT NULL DEFAULT 0,
    description  TEXT    NOT NULL DEFAULT '',
    created_at   TEXT    NOT NULL,
    updated_at   TEXT    NOT NULL
);
"""

_CANDIDATES_TABLE = """
CREATE TABLE IF NOT EXISTS candidates (
    seq          INTEGER PRIMARY KEY AUTOINCREMENT,
    id           TEXT    NOT NULL UNIQUE,
    name         TEXT    NOT NULL,
    email        TEXT    NOT NULL,
    stage        TEXT    NOT NULL DEFAULT 'applied'
                         CHECK (stage IN ('applied', 'screen', 'tech', 'offer', 'hired', 'rejected')),
    job_id       TEXT,
    notes        TEXT    NOT NULL DEFAULT '',
    created_at   TEXT    NOT NULL,
    updated_at   TEXT    NOT NULL
);
"""

_TIMELINE_TABLE = """
CREATE TABLE IF NOT EXISTS candidate_timeline (
    seq          INTEGER PRIMARY KEY AUTOINCREMENT,
    id           TEXT    NOT NULL UNIQUE,
    candidate_id TEXT    NOT NULL,
    event_type   TEXT    NOT NULL
                         CHECK (event_type IN ('stage_change', 'note_added', 'assessment_completed')),
    from_stage   TEXT,
    to_stage     TEXT,
    note         TEXT,
    created_at   TEXT    NOT NULL
);
"""

_ASSESSMENTS_TABLE = """
CREATE TABLE IF NOT EXISTS assessments (
    seq          INTEGER PRIMARY KEY AUTOINCREMENT,
    id           TEXT    NOT NULL UNIQUE,
    job_id       TEXT    NOT NULL UNIQUE,
    sections     TEXT    NOT NULL DEFAULT '[]',
    created_at   TEXT    NOT NULL,
    updated_at   TEXT    NOT NULL
);
"""

_RESPONSES_TABLE = """
CREATE TABLE IF NOT EXISTS assessment_responses (
    seq           INTEGER PRIMARY KEY AUTOINCREMENT,
    id            TEXT    NOT NULL UNIQUE,
    assessment_id TEXT    NOT NULL,
    candidate_id  TEXT    NOT NULL,
    responses     TEXT    NOT NULL DEFAULT '{}',
    created_at    TEXT    NOT NULL
);
"""

_INDEXES = (
    'CREATE INDEX IF NOT EXISTS idx_jobs_order ON jobs ("order")',
    "CREATE INDEX IF NOT EXISTS idx_candidates_stage ON candidates (stage)",
    "CREATE INDEX IF NOT EXISTS idx_timeline_candidate ON candidate_timeline (candidate_id)",
)

# Public columns per table (excludes the internal seq column).
TABLE_COLUMNS: dict[str, tuple[str, ...]] = {
    "jobs": (
        "id", "title", "slug", "status", "tags", "order", "description",
        "created_at", "updated_at",
    ),
    "candidates": (
        "id", "name", "email", "stage", "job_id", "notes", "created_at", "updated_at",
    ),
    "candidate_timeline": (
        "id", "candidate_id", "event_type", "from_stage", "to_stage", "note", "created_at",
    ),
    "assessments": ("id", "job_id", "sections", "created_at", "updated_at"),
    "assessment_responses": (
        "id", "assessment_id", "candidate_id", "responses", "created_at",
    ),
}

# Columns holding JSON documents (encoded on write, decoded on read).
JSON_COLUMNS: dict[str, frozenset[str]] = {
    "jobs": frozenset({"tags"}),
    "assessments": frozenset({"sections"}),
    "assessment_responses": frozenset({"responses"}),
}


def init_db(path: str | Path) -> sqlite3.Connection:
    """Create the database and tables, returning a connection.

    ``":memory:"`` gives a private in-memory database.
    """
    if str(path) != ":memory:":
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    for ddl in (
        _JOBS_TABLE, _CANDIDATES_TABLE, _TIMELINE_TABLE, _ASSESSMENTS_TABLE, _RESPONSES_TABLE,
    ):
        conn.execute(ddl)
    for ddl in _INDEXES:
        conn.execute(ddl)
    conn.commit()
    return conn
