"""Run the parse -> analyze -> assemble pipeline over a file or directory."""
from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from report_analyzer.models import AnalysisReport, FailedFile
from report_analyzer.observability import record_ingestion, record_parser_failure, start_span
from report_analyzer.parsers.jsonl import parse_file
from report_analyzer.reports.assembler import FileAnalysis, assemble_report
from report_analyzer.session_analyzer import analyze_sessions, topic_frequencies

logger = logging.getLogger("claude_report.pipeline")


@dataclass
class FileOutcome:
    path: Path
    id: str
    analysis: Optional[FileAnalysis] = None
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.analysis is not None


@dataclass
class AnalysisRun:
    report: AnalysisReport
    outcomes: list[FileOutcome] = field(default_factory=list)

    @property
    def failed(self) -> list[FileOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.ok]


def find_jsonl_files(target: Path) -> list[Path]:
    """Collect ``*.jsonl`` files under ``target`` (skipping dot-directories), or ``target`` itself."""
    target = Path(target)
    if target.is_file():
        return [target] if target.name.endswith(".jsonl") else []

    found: list[Path] = []
    for root, dirnames, filenames in os.walk(target):
        dirnames[:] = sorted(name for name in dirnames if not name.startswith("."))
        for name in sorted(filenames):
            if name.endswith(".jsonl"):
                found.append(Path(root) / name)
    return sorted(found)


def session_id_for(path: Path, target: Path) -> str:
    if target.is_file():
        return path.name
    try:
        return path.relative_to(target).as_posix()
    except ValueError:
        return path.name


def analyze_file(path: Path, session_id: str | None = None) -> FileAnalysis:
    """Parse and analyze one file. Read and decode errors propagate to the caller."""
    sessions = parse_file(path, session_id=session_id)
    frequencies = topic_frequencies(sessions)
    return FileAnalysis(
        id=session_id or path.name,
        source_path=str(path),
        result=analyze_sessions(sessions, frequencies),
        frequencies=frequencies,
    )


def run_analysis(
    target: Path,
    on_file_start: Callable[[Path], None] | None = None,
    on_file_done: Callable[[FileOutcome], None] | None = None,
    files: list[Path] | None = None,
) -> AnalysisRun:
    """Analyze every JSONL file under ``target`` into one report.

    Files are processed one at a time in sorted order. A file that cannot be
    read is logged and listed in ``failedFiles``; the remaining files are
    still analyzed.
    """
    target = Path(target).expanduser()
    if not target.exists():
        raise FileNotFoundError(f"Path not found: {target}")

    started_at = datetime.now(timezone.utc)
    jsonl_files = files if files is not None else find_jsonl_files(target)
    outcomes: list[FileOutcome] = []

    for path in jsonl_files:
        if on_file_start:
            on_file_start(path)
        outcome = FileOutcome(path=path, id=session_id_for(path, target))
        t0 = time.perf_counter()
        with start_span("claude_report.analyze_file", {"file": str(path)}):
            try:
                outcome.analysis = analyze_file(path, outcome.id)
            except Exception as exc:  # noqa: BLE001
                outcome.error = str(exc)
                logger.error(f"Failed to analyze {path}: {exc}")
                record_parser_failure("session_file")
        duration_ms = (time.perf_counter() - t0) * 1000
        record_ingestion("session_file", "success" if outcome.ok else "failure", duration_ms)
        outcomes.append(outcome)
        if on_file_done:
            on_file_done(outcome)

    report = assemble_report(
        [outcome.analysis for outcome in outcomes if outcome.analysis is not None],
        source_path=str(target),
        started_at=started_at,
        files_analyzed=len(jsonl_files),
        failed_files=[FailedFile(file=outcome.id, error=outcome.error) for outcome in outcomes if not outcome.ok],
    )
    logger.info(f"Analyzed {len(jsonl_files)} file(s) under {target} ({len(report.failedFiles)} failed)")
    return AnalysisRun(report=report, outcomes=outcomes)
