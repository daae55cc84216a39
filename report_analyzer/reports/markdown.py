"""Render an AnalysisReport as flat Markdown text."""
from __future__ import annotations

from report_analyzer.models import AnalysisReport, DateRange, SessionReport


def _format_range(date_range: DateRange) -> str:
    start = date_range.start or "n/a"
    end = date_range.end or "n/a"
    return f"{start} ~ {end}"


def _format_average(value: float) -> str:
    return f"{value:.2f}".rstrip("0").rstrip(".") if value else "0"


def _session_section(index: int, session: SessionReport) -> list[str]:
    lines = [
        f"### Session {index}: {session.id}",
        "",
        f"- **Sessions**: {session.sessionCount}",
        f"- **Messages**: {session.totalMessages}",
        f"- **User messages**: {session.userMessages}",
        f"- **Assistant messages**: {session.assistantMessages}",
        f"- **Code blocks**: {session.codeBlocks}",
        f"- **Date range**: {_format_range(session.dateRange)}",
        "",
    ]
    if session.topics:
        lines.extend([f"**Topics**: {', '.join(session.topics)}", ""])
    return lines


def render_markdown(report: AnalysisReport) -> str:
    summary = report.summary
    lines = [
        "# Claude Code Session Analysis Report",
        "",
        f"Analyzed at: {report.analyzedAt}",
        f"Source path: {report.sourcePath}",
        f"Files analyzed: {report.filesAnalyzed}",
        "",
        "## Summary",
        "",
        f"- **Total sessions**: {summary.totalSessions}",
        f"- **Total messages**: {summary.totalMessages}",
        f"- **User messages**: {summary.userMessages}",
        f"- **Assistant messages**: {summary.assistantMessages}",
        f"- **Total code blocks**: {summary.totalCodeBlocks}",
        f"- **Average messages per session**: {_format_average(summary.averageMessagesPerSession)}",
        f"- **Date range**: {_format_range(summary.dateRange)}",
        "",
        "### Top topics",
        "",
    ]
    if summary.topTopics:
        lines.extend(f"- {topic}" for topic in summary.topTopics)
    else:
        lines.append("- (none)")
    lines.append("")

    lines.extend(["## Sessions", ""])
    for index, session in enumerate(report.sessions, start=1):
        lines.extend(_session_section(index, session))

    if report.failedFiles:
        lines.extend(["## Failed files", ""])
        lines.extend(f"- {failure.file}: {failure.error}" for failure in report.failedFiles)
        lines.append("")

    lines.extend([
        "---",
        "",
        f"Analyzer version: {report.metadata.analyzerVersion}",
        f"Platform: {report.metadata.platform}",
        f"Python: {report.metadata.pythonVersion}",
        "",
    ])
    return "\n".join(lines)
