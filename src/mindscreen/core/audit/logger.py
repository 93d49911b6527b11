"""PHI-free audit trail for assessment tool calls.

An audit row says which tool ran, for whose (hashed) input, which classifier
and guidance path produced the result, and whether the answers were
summarised to an external text-generation service. Questionnaire answers and
guidance text never reach this table.
"""

from __future__ import annotations

import hashlib
import json
import logging
import sqlite3
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from mindscreen.core.storage.database import AssessmentDatabase

logger = logging.getLogger(__name__)

_AUDIT_COLUMNS = (
    "id",
    "timestamp",
    "action",
    "tool_name",
    "tool_input_hash",
    "llm_provider",
    "llm_disclosed",
    "classifier",
    "guidance_source",
    "record_id",
    "duration_ms",
    "status",
    "error_type",
    "metadata_json",
)


def _hash_input(data: Any) -> str:
    """Hex SHA-256 of ``data`` as canonical JSON; "" when it cannot be serialised."""
    try:
        encoded = json.dumps(data, sort_keys=True, separators=(",", ":")).encode("utf-8")
    except (TypeError, ValueError):
        return ""
    return hashlib.sha256(encoded).hexdigest()


@dataclass
class AuditEvent:
    """One row of the audit trail."""

    action: str  # 'tool_invocation'
    tool_name: str = ""
    tool_input_hash: str = ""
    llm_provider: str | None = None
    llm_disclosed: bool = False
    classifier: str | None = None  # 'rule' | 'model'
    guidance_source: str | None = None  # 'llm' | 'fallback'
    record_id: int | None = None
    duration_ms: float | None = None
    status: str = "success"
    error_type: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def as_row(self, event_id: str, timestamp: str) -> tuple[Any, ...]:
        return (
            event_id,
            timestamp,
            self.action,
            self.tool_name or None,
            self.tool_input_hash or None,
            self.llm_provider,
            int(self.llm_disclosed),
            self.classifier,
            self.guidance_source,
            self.record_id,
            self.duration_ms,
            self.status,
            self.error_type,
            json.dumps(self.metadata, separators=(",", ":")) if self.metadata else None,
        )


class AuditLogger:
    """Writes and queries the ``audit_log`` table.

    A failed write is logged and swallowed so auditing can never fail the
    tool call it describes.

    Usage::

        audit = AuditLogger(db)
        audit.log_tool_call(
            "predict_depression",
            tool_input={"userId": 7},
            llm_provider="gemini",
            guidance_source="llm",
        )
    """

    def __init__(self, database: AssessmentDatabase) -> None:
        self._db = database

    def log_event(self, event: AuditEvent) -> str:
        """Store ``event``; returns its id, or "" if the write failed."""
        event_id = str(uuid.uuid4())
        row = event.as_row(event_id, datetime.now(timezone.utc).isoformat())
        placeholders = ", ".join("?" * len(_AUDIT_COLUMNS))
        try:
            conn = self._db.connection
            conn.execute(
                f"INSERT INTO audit_log ({', '.join(_AUDIT_COLUMNS)}) VALUES ({placeholders})",
                row,
            )
            conn.commit()
        except sqlite3.Error:
            logger.exception("Audit write failed for %s", event.tool_name or event.action)
            return ""
        return event_id

    def log_tool_call(
        self,
        tool_name: str,
        tool_input: Any = None,
        *,
        llm_provider: str | None = None,
        llm_disclosed: bool = False,
        classifier: str | None = None,
        guidance_source: str | None = None,
        record_id: int | None = None,
        duration_ms: float | None = None,
        status: str = "success",
        error_type: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> str:
        """Record one MCP tool invocation.

        ``tool_input`` is hashed and never stored. ``llm_disclosed`` marks calls
        whose answers were summarised to an external service.
        """
        return self.log_event(AuditEvent(
            action="tool_invocation",
            tool_name=tool_name,
            tool_input_hash=_hash_input(tool_input) if tool_input else "",
            llm_provider=llm_provider,
            llm_disclosed=llm_disclosed,
            classifier=classifier,
            guidance_source=guidance_source,
            record_id=record_id,
            duration_ms=duration_ms,
            status=status,
            error_type=error_type,
            metadata=metadata or {},
        ))

    # ---------------------------------------------------------------
    # Queries
    # ---------------------------------------------------------------

    @staticmethod
    def _where(since: str | None, **equals: Any) -> tuple[str, list[Any]]:
        clauses = [f"{column} = ?" for column, value in equals.items() if value is not None]
        params = [value for value in equals.values() if value is not None]
        if since:
            clauses.append("timestamp >= ?")
            params.append(since)
        return (" WHERE " + " AND ".join(clauses)) if clauses else "", params

    def get_events(
        self,
        *,
        action: str | None = None,
        tool_name: str | None = None,
        since: str | None = None,
        limit: int = 50,
    ) -> list[dict[str, Any]]:
        """Newest-first audit rows as dicts."""
        where, params = self._where(since, action=action, tool_name=tool_name)
        rows = self._db.connection.execute(
            f"SELECT * FROM audit_log{where} ORDER BY timestamp DESC LIMIT ?",
            [*params, limit],
        ).fetchall()
        return [dict(row) for row in rows]

    def count_events(self, *, since: str | None = None) -> int:
        where, params = self._where(since)
        return self._db.connection.execute(
            f"SELECT COUNT(*) FROM audit_log{where}", params
        ).fetchone()[0]

    def count_disclosures(self, *, since: str | None = None) -> int:
        """Calls whose answers went to an external text-generation service."""
        where, params = self._where(since, llm_disclosed=1)
        return self._db.connection.execute(
            f"SELECT COUNT(*) FROM audit_log{where}", params
        ).fetchone()[0]

    def count_by_guidance_source(self, *, since: str | None = None) -> dict[str, int]:
        """How often each guidance path (llm / fallback) produced the result."""
        where, params = self._where(since)
        where += " AND guidance_source IS NOT NULL" if where else " WHERE guidance_source IS NOT NULL"
        rows = self._db.connection.execute(
            f"SELECT guidance_source, COUNT(*) FROM audit_log{where} GROUP BY guidance_source",
            params,
        ).fetchall()
        return {row[0]: row[1] for row in rows}
