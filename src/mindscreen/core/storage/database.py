"""SQLite storage for users, screening results and the audit trail.

The schema is applied as an ordered list of migrations. Each one runs at most
once per database file; the highest applied number is kept in
``schema_version``.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

logger = logging.getLogger(__name__)

IN_MEMORY = ":memory:"

_BASE_TABLES = """
-- Local mirror of the account service; only the id matters to assessments
CREATE TABLE IF NOT EXISTS users (
    id         INTEGER PRIMARY KEY AUTOINCREMENT,
    username   TEXT NOT NULL UNIQUE,
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);

-- One row per completed questionnaire. Never updated after insert.
CREATE TABLE IF NOT EXISTS health_tests (
    id                INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id           INTEGER NOT NULL REFERENCES users(id),
    health_test_date  TEXT NOT NULL,

    -- Raw answers on the 1-6 scale
    appetite          INTEGER NOT NULL CHECK (appetite BETWEEN 1 AND 6),
    interest          INTEGER NOT NULL CHECK (interest BETWEEN 1 AND 6),
    fatigue           INTEGER NOT NULL CHECK (fatigue BETWEEN 1 AND 6),
    worthlessness     INTEGER NOT NULL CHECK (worthlessness BETWEEN 1 AND 6),
    concentration     INTEGER NOT NULL CHECK (concentration BETWEEN 1 AND 6),
    agitation         INTEGER NOT NULL CHECK (agitation BETWEEN 1 AND 6),
    suicidal_ideation INTEGER NOT NULL CHECK (suicidal_ideation BETWEEN 1 AND 6),
    sleep_disturbance INTEGER NOT NULL CHECK (sleep_disturbance BETWEEN 1 AND 6),
    aggression        INTEGER NOT NULL CHECK (aggression BETWEEN 1 AND 6),
    panic_attacks     INTEGER NOT NULL CHECK (panic_attacks BETWEEN 1 AND 6),
    hopelessness      INTEGER NOT NULL CHECK (hopelessness BETWEEN 1 AND 6),
    restlessness      INTEGER NOT NULL CHECK (restlessness BETWEEN 1 AND 6),

    depression_state  INTEGER NOT NULL CHECK (depression_state BETWEEN 0 AND 3),
    classifier        TEXT NOT NULL,
    language          TEXT NOT NULL DEFAULT 'en',
    latitude          REAL,
    longitude         REAL,

    -- Fernet tokens of {"en": ..., "id": ...}
    suggestion_enc    TEXT,
    tips_enc          TEXT,

    created_at        TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_tests_user      ON health_tests(user_id);
CREATE INDEX IF NOT EXISTS idx_tests_user_date ON health_tests(user_id, health_test_date);
"""

_AUDIT_TABLE = """
CREATE TABLE IF NOT EXISTS audit_log (
    id TEXT PRIMARY KEY,
    timestamp TEXT NOT NULL DEFAULT (datetime('now')),
    action TEXT NOT NULL,
    tool_name TEXT,
    tool_input_hash TEXT,   -- sha256 of the canonical input, never the input
    llm_provider TEXT,
    llm_disclosed INTEGER DEFAULT 0,
    classifier TEXT,
    guidance_source TEXT,
    record_id INTEGER,
    duration_ms REAL,
    status TEXT NOT NULL DEFAULT 'success',
    error_type TEXT,
    metadata_json TEXT
);

CREATE INDEX IF NOT EXISTS idx_audit_ts   ON audit_log(timestamp);
CREATE INDEX IF NOT EXISTS idx_audit_tool ON audit_log(tool_name, action);
"""

# (version, description, ddl), in application order.
_MIGRATIONS: tuple[tuple[int, str, str], ...] = (
    (1, "users and health_tests", _BASE_TABLES),
    (2, "audit_log", _AUDIT_TABLE),
)

SCHEMA_VERSION = _MIGRATIONS[-1][0]


class DatabaseError(Exception):
    """The database is unusable (not opened yet, or already closed)."""


class AssessmentDatabase:
    """Owns the single SQLite connection shared by the repository and audit log.

    ``":memory:"`` gives a throwaway database, used by tests and by runs
    without an encryption key. Also usable as a context manager::

        with AssessmentDatabase("~/.mindscreen/assessments.db") as db:
            db.connection.execute(...)
    """

    def __init__(self, db_path: str = IN_MEMORY, *, timeout_s: float = 5.0) -> None:
        self._path = db_path
        self._timeout_s = timeout_s
        self._conn: sqlite3.Connection | None = None

    @property
    def connection(self) -> sqlite3.Connection:
        conn = self._conn
        if conn is None:
            raise DatabaseError("Database not initialized. Call initialize() first.")
        return conn

    def _open(self) -> sqlite3.Connection:
        target = self._path
        if target != IN_MEMORY:
            file_path = Path(target).expanduser()
            file_path.parent.mkdir(parents=True, exist_ok=True)
            target = str(file_path)
        conn = sqlite3.connect(target, timeout=self._timeout_s)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA foreign_keys=ON")
        return conn

    def initialize(self) -> None:
        """Open the connection and bring the schema up to date. No-op if already open."""
        if self._conn is not None:
            return
        self._conn = self._open()
        self._migrate()
        logger.info("Assessment database ready at %s", self._path)

    def _migrate(self) -> None:
        conn = self.connection
        conn.execute(
            "CREATE TABLE IF NOT EXISTS schema_version ("
            " version INTEGER NOT NULL,"
            " applied_at TEXT NOT NULL DEFAULT (datetime('now')))"
        )
        applied = self.get_schema_version()
        pending = [m for m in _MIGRATIONS if m[0] > applied]
        for version, description, ddl in pending:
            conn.executescript(ddl)
            logger.info("Applied migration %d (%s)", version, description)
        if pending:
            conn.execute("INSERT INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))
            conn.commit()

    def get_schema_version(self) -> int:
        row = self.connection.execute(
            "SELECT COALESCE(MAX(version), 0) FROM schema_version"
        ).fetchone()
        return row[0]

    def close(self) -> None:
        conn, self._conn = self._conn, None
        if conn is not None:
            conn.close()
            logger.debug("Assessment database at %s closed", self._path)

    def __enter__(self) -> AssessmentDatabase:
        self.initialize()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
