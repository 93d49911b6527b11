"""MCP tools for reviewing the assessment audit trail.

The audit log never holds questionnaire answers or guidance text: only tool
names, hashed inputs, which classifier and guidance path ran, and whether the
answers were summarised to an external text-generation service.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

if TYPE_CHECKING:
    from mindscreen.core.audit.logger import AuditLogger

logger = logging.getLogger(__name__)


def register_audit_tools(mcp: FastMCP, audit_logger: AuditLogger) -> None:
    """Register audit trail tools on the MCP server."""

    @mcp.tool
    async def audit_summary(ctx: Context, days: int = 30) -> str:
        """Summarise recent tool calls, guidance sources and LLM disclosures.

        Args:
            days: Number of days to look back (default: 30).
        """
        since = (datetime.now(timezone.utc) - timedelta(days=days)).isoformat()

        recent = [
            {
                "timestamp": event.get("timestamp"),
                "tool_name": event.get("tool_name"),
                "classifier": event.get("classifier"),
                "guidance_source": event.get("guidance_source"),
                "llm_provider": event.get("llm_provider"),
                "llm_disclosed": bool(event.get("llm_disclosed")),
                "status": event.get("status"),
                "error_type": event.get("error_type"),
                "duration_ms": event.get("duration_ms"),
            }
            for event in audit_logger.get_events(since=since, limit=20)
        ]

        return json.dumps({
            "status": "ok",
            "period_days": days,
            "total_events": audit_logger.count_events(since=since),
            "llm_disclosures": audit_logger.count_disclosures(since=since),
            "guidance_sources": audit_logger.count_by_guidance_source(since=since),
            "recent_events": recent,
        }, indent=2)
