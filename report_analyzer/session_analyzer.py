"""Session statistics: message counts, code blocks, timestamps and topics."""
from __future__ import annotations

import re
from collections import Counter
from typing import Iterable

from report_analyzer.models import AnalysisResult, Message, Session, TimestampRange

CODE_FENCE = "```"
TOPIC_LIMIT = 10
_MIN_KEYWORD_LENGTH = 3
_NON_KEYWORD_CHARS = re.compile(r"[^a-z0-9_\s가-힣]")

STOP_WORDS = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "from", "as", "is", "was", "are", "were", "be",
    "을", "를", "이", "가", "에", "에서", "로", "으로", "의", "도",
    "는", "은", "하다", "하고", "있다", "되다", "이다", "그", "저", "것",
})


class TopicFrequency(Counter):
    """Full keyword -> count table; iteration order is first-seen order.

    Kept until a corpus-wide roll-up so topics can be re-ranked across
    files instead of merging already-truncated top lists.
    """

    def top(self, limit: int = TOPIC_LIMIT) -> list[str]:
        # sorted() is stable, so equal counts keep first-seen order.
        ranked = sorted(self.items(), key=lambda item: item[1], reverse=True)
        return [word for word, _count in ranked[:limit]]


def count_code_blocks(content: str) -> int:
    """Pair off fence markers; an unmatched trailing fence adds nothing."""
    return content.count(CODE_FENCE) // 2


def extract_keywords(content: str) -> list[str]:
    normalized = _NON_KEYWORD_CHARS.sub(" ", content.lower())
    return [
        word for word in normalized.split()
        if len(word) >= _MIN_KEYWORD_LENGTH and word not in STOP_WORDS
    ]


def topic_frequencies(sessions: Iterable[Session]) -> TopicFrequency:
    """Count keywords across the user messages of all sessions."""
    frequencies = TopicFrequency()
    for session in sessions:
        for message in session.messages:
            if message.role == "user":
                frequencies.update(extract_keywords(message.content))
    return frequencies


def _timestamp_range(messages: Iterable[Message]) -> TimestampRange:
    first: str | None = None
    last: str | None = None
    for message in messages:
        stamp = message.timestamp
        if not stamp:
            continue
        if first is None or stamp < first:
            first = stamp
        if last is None or stamp > last:
            last = stamp
    return TimestampRange(first=first, last=last)


def analyze_sessions(sessions: list[Session], frequencies: TopicFrequency | None = None) -> AnalysisResult:
    """Aggregate one collection of sessions. Performs no I/O.

    Pass ``frequencies`` when the caller already built the keyword table
    for these sessions.
    """
    result = AnalysisResult(sessionCount=len(sessions))
    if not sessions:
        return result

    for session in sessions:
        result.totalMessages += len(session.messages)
        for message in session.messages:
            if message.role == "user":
                result.userMessages += 1
            elif message.role == "assistant":
                result.assistantMessages += 1
            result.codeBlocks += count_code_blocks(message.content)

    result.timestamps = _timestamp_range(
        message for session in sessions for message in session.messages
    )
    result.averageMessagesPerSession = result.totalMessages / result.sessionCount
    if frequencies is None:
        frequencies = topic_frequencies(sessions)
    result.topics = frequencies.top()
    return result
