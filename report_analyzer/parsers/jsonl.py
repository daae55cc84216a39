"""Decode JSONL conversation logs into Session models.

Each non-blank line is decoded on its own. Lines that fail to parse as
JSON are skipped with a warning; objects that are not message-like are
ignored. Every recognized message of one input lands in a single session.
"""
from __future__ import annotations

import io
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

from report_analyzer.models import Message, Session
from report_analyzer.observability import record_parser_failure

logger = logging.getLogger("claude_report.parser")

_PREVIEW_CHARS = 50
_MALFORMED = object()


def content_text(content: Any) -> str:
    """Resolve the known content shapes to one string.

    Shapes: plain string, list of fragments (strings or ``{"text": ...}``
    blocks), and a wrapper object carrying ``text`` or a nested ``content``.
    Anything else resolves to an empty string.
    """
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        chunks = [content_text(block) for block in content]
        return " ".join(chunk for chunk in chunks if chunk)
    if isinstance(content, dict):
        return content_text(content.get("text")) or content_text(content.get("content"))
    return ""


def _timestamp(data: dict[str, Any]) -> str | None:
    raw = data.get("timestamp") or data.get("created_at")
    if raw is None or raw == "":
        return None
    if isinstance(raw, str):
        return raw
    return str(raw)


def _load_record(line: str) -> Any:
    # Covers JSONDecodeError, oversized integer literals and deep nesting.
    try:
        return json.loads(line)
    except (ValueError, RecursionError):
        logger.warning(f"Failed to parse line: {line[:_PREVIEW_CHARS]}...")
        record_parser_failure("jsonl_line")
        return _MALFORMED


def message_from_record(data: Any) -> Message | None:
    """Build a Message from one decoded JSON value, or None if it is not message-like."""
    if not isinstance(data, dict):
        return None
    role = data.get("role")
    if data.get("type") != "message" and not role:
        return None
    return Message(
        role=str(role) if role else "user",
        content=content_text(data.get("content")) or content_text(data.get("text")),
        timestamp=_timestamp(data),
    )


def decode_line(line: str) -> Message | None:
    """Decode one JSONL line into at most one Message."""
    data = _load_record(line)
    if data is _MALFORMED:
        return None
    return message_from_record(data)


def _now_iso(now: datetime) -> str:
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class SessionBuilder:
    """Accumulates messages for one parse call, in arrival order."""

    def __init__(self, session_id: str | None = None, metadata: dict[str, Any] | None = None):
        created = datetime.now(timezone.utc)
        self.session = Session(
            id=session_id or f"session-{int(created.timestamp() * 1000)}",
            createdAt=_now_iso(created),
            metadata=dict(metadata or {}),
        )
        self.malformed_lines = 0

    def feed(self, line: str) -> Message | None:
        line = line.rstrip("\r\n")
        if not line.strip():
            return None
        data = _load_record(line)
        if data is _MALFORMED:
            self.malformed_lines += 1
            return None
        message = message_from_record(data)
        if message is not None:
            self.session.messages.append(message)
        return message

    def feed_lines(self, lines: Iterable[str]) -> None:
        for line in lines:
            self.feed(line)

    def finish(self) -> list[Session]:
        """Emit the accumulated session, or nothing when no message was recognized."""
        if self.malformed_lines:
            self.session.metadata.setdefault("malformedLines", self.malformed_lines)
        if not self.session.messages:
            return []
        return [self.session]


def parse_file(path: Path, session_id: str | None = None) -> list[Session]:
    """Stream a JSONL file line by line into sessions.

    Raises ``OSError`` / ``UnicodeDecodeError`` when the file cannot be read.
    """
    builder = SessionBuilder(session_id, metadata={"sourcePath": str(path)})
    with open(path, "r", encoding="utf-8") as handle:
        builder.feed_lines(handle)
    return builder.finish()


def parse_content(content: str, session_id: str | None = None) -> list[Session]:
    """Parse already-loaded JSONL text; splits lines exactly like ``parse_file``."""
    builder = SessionBuilder(session_id)
    builder.feed_lines(io.StringIO(content, newline=None))
    return builder.finish()
