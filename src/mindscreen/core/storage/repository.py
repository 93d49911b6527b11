"""Assessment repository: create and read operations for the data bank.

The repository mediates between ``AssessmentRecord`` objects and the SQLite
database, using FieldEncryptor to encrypt/decrypt the guidance text.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone

from mindscreen.core.storage.database import AssessmentDatabase
from mindscreen.core.storage.encryption import FieldEncryptor
from mindscreen.core.storage.models import SCORE_COLUMNS, AssessmentRecord, User

logger = logging.getLogger(__name__)


class RepositoryError(Exception):
    """Raised when repository operations fail."""


class UnknownUserError(RepositoryError):
    """Raised when a record references a user id that does not exist."""


_INSERT_COLUMNS = (
    ["user_id", "health_test_date"]
    + list(SCORE_COLUMNS.values())
    + [
        "depression_state",
        "classifier",
        "language",
        "latitude",
        "longitude",
        "suggestion_enc",
        "tips_enc",
    ]
)


class AssessmentRepository:
    """Repository for assessment records and the users they belong to.

    Usage::

        db = AssessmentDatabase(":memory:")
        db.initialize()
        repo = AssessmentRepository(db, FieldEncryptor(key="..."))

        user_id = repo.create_user("dina")
        stored = repo.create(record)
        history = repo.find_history(user_id)
    """

    def __init__(self, database: AssessmentDatabase, encryptor: FieldEncryptor) -> None:
        self._db = database
        self._enc = encryptor

    @staticmethod
    def _now_iso() -> str:
        return datetime.now(timezone.utc).isoformat()

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def create_user(self, username: str) -> int:
        """Insert a user row and return its id.

        Raises:
            RepositoryError: If the username is already taken.
        """
        conn = self._db.connection
        try:
            cursor = conn.execute("INSERT INTO users (username) VALUES (?)", (username,))
        except sqlite3.IntegrityError as exc:
            conn.rollback()
            raise RepositoryError(f"Username already exists: {username!r}") from exc
        conn.commit()
        logger.info("Created user %d", cursor.lastrowid)
        return cursor.lastrowid

    def get_user(self, user_id: int) -> User | None:
        row = self._db.connection.execute(
            "SELECT id, username, created_at FROM users WHERE id = ?", (user_id,)
        ).fetchone()
        if row is None:
            return None
        return User(id=row["id"], username=row["username"], created_at=row["created_at"])

    def user_exists(self, user_id: int) -> bool:
        row = self._db.connection.execute(
            "SELECT 1 FROM users WHERE id = ?", (user_id,)
        ).fetchone()
        return row is not None

    # ------------------------------------------------------------------
    # Assessments
    # ------------------------------------------------------------------

    def create(self, record: AssessmentRecord) -> AssessmentRecord:
        """Persist a new assessment and return it with ``id`` and date filled in.

        Raises:
            UnknownUserError: If ``record.user_id`` has no users row.
            RepositoryError: For any other storage failure.
        """
        conn = self._db.connection
        test_date = record.health_test_date or self._now_iso()
        values = (
            [record.user_id, test_date]
            + [record.scores[name] for name in SCORE_COLUMNS]
            + [
                record.depression_state,
                record.classifier,
                record.language,
                record.latitude,
                record.longitude,
                self._enc.encrypt(record.suggestion),
                self._enc.encrypt(record.tips),
            ]
        )
        placeholders = ", ".join("?" for _ in _INSERT_COLUMNS)
        query = f"INSERT INTO health_tests ({', '.join(_INSERT_COLUMNS)}) VALUES ({placeholders})"

        try:
            cursor = conn.execute(query, values)
            conn.commit()
        except sqlite3.IntegrityError as exc:
            conn.rollback()
            if not self.user_exists(record.user_id):
                raise UnknownUserError(f"User {record.user_id} does not exist") from exc
            raise RepositoryError(f"Failed to store assessment: {exc}") from exc
        except sqlite3.Error as exc:
            conn.rollback()
            raise RepositoryError(f"Failed to store assessment: {exc}") from exc

        logger.info(
            "Saved assessment %d (user=%d, state=%d, classifier=%s)",
            cursor.lastrowid,
            record.user_id,
            record.depression_state,
            record.classifier,
        )
        return AssessmentRecord(
            id=cursor.lastrowid,
            user_id=record.user_id,
            health_test_date=test_date,
            scores=dict(record.scores),
            depression_state=record.depression_state,
            classifier=record.classifier,
            language=record.language,
            latitude=record.latitude,
            longitude=record.longitude,
            suggestion=dict(record.suggestion),
            tips=dict(record.tips),
        )

    def get(self, record_id: int) -> AssessmentRecord | None:
        """Retrieve one assessment by id, or None if not found."""
        row = self._db.connection.execute(
            "SELECT * FROM health_tests WHERE id = ?", (record_id,)
        ).fetchone()
        return self._row_to_record(row) if row is not None else None

    def find_history(self, user_id: int, *, limit: int | None = None) -> list[AssessmentRecord]:
        """All assessments for a user, newest first (optionally only the first ``limit``)."""
        rows = self._db.connection.execute(
            """SELECT * FROM health_tests WHERE user_id = ?
               ORDER BY health_test_date DESC, id DESC LIMIT ?""",
            (user_id, -1 if limit is None else limit),
        ).fetchall()
        return [self._row_to_record(row) for row in rows]

    def find_latest(self, user_id: int) -> AssessmentRecord | None:
        """The most recent assessment for a user."""
        results = self.find_history(user_id, limit=1)
        return results[0] if results else None

    def count_assessments(self, user_id: int | None = None) -> int:
        """Return the number of stored assessments, optionally for one user."""
        conn = self._db.connection
        if user_id is None:
            row = conn.execute("SELECT COUNT(*) FROM health_tests").fetchone()
        else:
            row = conn.execute(
                "SELECT COUNT(*) FROM health_tests WHERE user_id = ?", (user_id,)
            ).fetchone()
        return row[0]

    # ------------------------------------------------------------------
    # Row mapping
    # ------------------------------------------------------------------

    def _row_to_record(self, row: sqlite3.Row) -> AssessmentRecord:
        return AssessmentRecord(
            id=row["id"],
            user_id=row["user_id"],
            health_test_date=row["health_test_date"],
            scores={name: row[column] for name, column in SCORE_COLUMNS.items()},
            depression_state=row["depression_state"],
            classifier=row["classifier"],
            language=row["language"],
            latitude=row["latitude"],
            longitude=row["longitude"],
            suggestion=self._enc.decrypt(row["suggestion_enc"]) or {},
            tips=self._enc.decrypt(row["tips_enc"]) or {},
        )
