"""Assemble per-file analyses into one hierarchical report."""
from __future__ import annotations

import platform
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from report_analyzer import config
from report_analyzer.models import (
    AnalysisReport,
    AnalysisResult,
    DateRange,
    FailedFile,
    ReportMetadata,
    ReportSummary,
    SessionReport,
)
from report_analyzer.session_analyzer import TopicFrequency


@dataclass
class FileAnalysis:
    """Pipeline output for one session file. Not persisted."""
    id: str
    source_path: str
    result: AnalysisResult
    frequencies: TopicFrequency = field(default_factory=TopicFrequency)


def _iso_utc(value: datetime) -> str:
    dt = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_session_report(analysis: FileAnalysis) -> SessionReport:
    result = analysis.result
    return SessionReport(
        id=analysis.id,
        sessionCount=result.sessionCount,
        totalMessages=result.totalMessages,
        userMessages=result.userMessages,
        assistantMessages=result.assistantMessages,
        codeBlocks=result.codeBlocks,
        topics=list(result.topics),
        dateRange=DateRange(start=result.timestamps.first, end=result.timestamps.last),
    )


def build_summary(analyses: list[FileAnalysis]) -> ReportSummary:
    """Sum counts and re-rank topics over the merged frequency tables."""
    summary = ReportSummary()
    merged = TopicFrequency()
    starts: list[str] = []
    ends: list[str] = []

    for analysis in analyses:
        result = analysis.result
        summary.totalSessions += result.sessionCount
        summary.totalMessages += result.totalMessages
        summary.userMessages += result.userMessages
        summary.assistantMessages += result.assistantMessages
        summary.totalCodeBlocks += result.codeBlocks
        if result.timestamps.first:
            starts.append(result.timestamps.first)
        if result.timestamps.last:
            ends.append(result.timestamps.last)
        merged.update(analysis.frequencies)

    if summary.totalSessions:
        summary.averageMessagesPerSession = summary.totalMessages / summary.totalSessions
    summary.dateRange = DateRange(
        start=min(starts) if starts else None,
        end=max(ends) if ends else None,
    )
    summary.topTopics = merged.top()
    return summary


def assemble_report(
    analyses: list[FileAnalysis],
    source_path: str,
    started_at: datetime,
    files_analyzed: Optional[int] = None,
    failed_files: Optional[list[FailedFile]] = None,
) -> AnalysisReport:
    """Combine per-file analyses and run metadata into an AnalysisReport.

    Per-file results are kept individually in ``sessions`` so consumers can
    drill into one file; ``summary`` is the corpus-wide roll-up.
    """
    failures = list(failed_files or [])
    return AnalysisReport(
        version=config.VERSION,
        analyzedAt=_iso_utc(started_at),
        sourcePath=source_path,
        filesAnalyzed=files_analyzed if files_analyzed is not None else len(analyses) + len(failures),
        sessions=[build_session_report(analysis) for analysis in analyses],
        summary=build_summary(analyses),
        failedFiles=failures,
        metadata=ReportMetadata(
            analyzerVersion=config.VERSION,
            platform=f"{sys.platform}-{platform.machine()}".rstrip("-"),
            pythonVersion=platform.python_version(),
        ),
    )
