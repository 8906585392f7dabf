from __future__ import annotations

import asyncio
import json
import logging
import os
from collections.abc import Sequence
from datetime import datetime

from mcp.server.fastmcp import FastMCP

from .adapters import auto_detect, load_messages
from .models import DetectResult, DistillReport, Message
from .pipeline import distill

logger = logging.getLogger(__name__)


class DistillApp:
    """Pipeline settings shared by the CLI and the MCP tool handlers."""

    def __init__(
        self,
        threshold: float,
        min_session_count: int,
        min_confidence: float,
        session_limit: int,
    ):
        self.threshold = threshold
        self.min_session_count = min_session_count
        self.min_confidence = min_confidence
        self.session_limit = session_limit

    def resolve_source(
        self,
        adapter: str = "",
        project: str = "",
        cwd: str | None = None,
    ) -> DetectResult | None:
        """Explicit adapter+project wins; otherwise fill the gaps by auto-detection."""
        if adapter and project:
            return DetectResult(adapter=adapter, path=project)
        detected = auto_detect(cwd or os.getcwd())
        if detected is None:
            return None
        return DetectResult(adapter=adapter or detected.adapter, path=project or detected.path)

    def load(self, source: DetectResult, all_sessions: bool = False, structured: bool = False) -> list[Message]:
        logger.info("Reading %s sessions from %s", source.adapter, source.path)
        return load_messages(
            source.adapter,
            source.path,
            all_sessions=all_sessions,
            structured=structured,
            session_limit=self.session_limit,
        )

    def run(
        self,
        messages: Sequence[Message],
        top: int | None = None,
        now: datetime | None = None,
    ) -> DistillReport:
        return distill(
            messages,
            threshold=self.threshold,
            min_session_count=self.min_session_count,
            min_confidence=self.min_confidence,
            top=top,
            now=now,
        )

    def distill_source(
        self, adapter: str, project: str, all_sessions: bool = False, top: int | None = None
    ) -> DistillReport | None:
        """Resolve, load and distill a non-stdin source; None when nothing was found.

        Blocking: walks directories and reads files.
        """
        source = self.resolve_source(adapter, project)
        if source is None or source.adapter == "stdin":
            return None
        return self.run(self.load(source, all_sessions=all_sessions), top=top)

    async def distill_sessions(
        self, adapter: str = "", project: str = "", all_sessions: bool = False, top: int = 0
    ) -> str:
        if adapter == "stdin":
            return "The stdin adapter is not available over MCP."
        report = await asyncio.to_thread(
            self.distill_source, adapter, project, all_sessions, top or None
        )
        if report is None:
            return json.dumps(DistillReport().to_json_dict(), indent=2)
        return json.dumps(report.to_json_dict(), indent=2)

    async def top_patterns(
        self, limit: int = 10, adapter: str = "", project: str = "", all_sessions: bool = False
    ) -> str:
        if adapter == "stdin":
            return "The stdin adapter is not available over MCP."
        report = await asyncio.to_thread(
            self.distill_source, adapter, project, all_sessions, limit
        )
        if report is None:
            return "No agent sessions found."
        if not report.patterns:
            return "No recurring patterns found."
        output = []
        for r in report.patterns:
            output.append({
                "score": round(r.score, 3),
                "pattern": r.pattern.value,
                "text": r.text,
                "sessions": f"{r.session_count}/{r.total_sessions}",
                "confidence": r.confidence,
            })
        return json.dumps(output, indent=2)


def create_app(
    threshold: float | None = None,
    min_session_count: int | None = None,
    min_confidence: float | None = None,
    session_limit: int | None = None,
) -> DistillApp:
    if threshold is None:
        threshold = float(os.environ.get("DISTILL_SIMILARITY_THRESHOLD", "0.6"))
    if min_session_count is None:
        min_session_count = int(os.environ.get("DISTILL_MIN_SESSIONS", "2"))
    if min_confidence is None:
        min_confidence = float(os.environ.get("DISTILL_MIN_CONFIDENCE", "0.6"))
    if session_limit is None:
        session_limit = int(os.environ.get("DISTILL_SESSION_LIMIT", "20"))
    return DistillApp(
        threshold=threshold,
        min_session_count=min_session_count,
        min_confidence=min_confidence,
        session_limit=session_limit,
    )


def create_mcp_server() -> FastMCP:
    mcp = FastMCP("session-distill")
    app: DistillApp | None = None

    @mcp.tool()
    async def distill_sessions(
        adapter: str = "", project: str = "", all_sessions: bool = False, top: int = 0
    ) -> str:
        """Distill recurring instructions, conventions, stack mentions and corrections from past agent sessions. Returns a JSON report including a generated CLAUDE.md. Adapter is one of claude-code, aider, markdown; auto-detected when omitted."""
        nonlocal app
        if app is None:
            app = create_app()
        return await app.distill_sessions(
            adapter=adapter, project=project, all_sessions=all_sessions, top=top
        )

    @mcp.tool()
    async def top_patterns(
        limit: int = 10, adapter: str = "", project: str = "", all_sessions: bool = False
    ) -> str:
        """List the highest ranked recurring patterns across past agent sessions, with how many sessions each appeared in."""
        nonlocal app
        if app is None:
            app = create_app()
        return await app.top_patterns(
            limit=limit, adapter=adapter, project=project, all_sessions=all_sessions
        )

    return mcp


def main():
    mcp = create_mcp_server()
    mcp.run()


if __name__ == "__main__":
    main()
