"""Write an AnalysisReport to disk as JSON, Markdown and PDF."""
from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path

from report_analyzer.models import AnalysisReport
from report_analyzer.reports.markdown import render_markdown
from report_analyzer.services.pdf_renderer import PdfRenderError, render_pdf

logger = logging.getLogger("claude_report.writer")

FORMATS = ("json", "markdown", "pdf")
_SUFFIXES = {"json": ".json", "markdown": ".md", "pdf": ".pdf"}


@dataclass
class WrittenReports:
    paths: dict[str, Path] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


def expand_formats(requested: str | list[str] | tuple[str, ...]) -> list[str]:
    """Normalize a format selector (``all`` or names) into an ordered list."""
    tokens = [requested] if isinstance(requested, str) else list(requested)
    wanted: set[str] = set()
    for token in tokens:
        name = (token or "").strip().lower()
        if name == "all":
            wanted.update(FORMATS)
        elif name in FORMATS:
            wanted.add(name)
        else:
            raise ValueError(f"Unsupported report format: {token}")
    return [fmt for fmt in FORMATS if fmt in wanted]


def report_to_json(report: AnalysisReport) -> str:
    return json.dumps(report.model_dump(), indent=2, ensure_ascii=False)


def write_reports(
    report: AnalysisReport,
    output_dir: Path,
    formats: str | list[str] = "json",
    basename: str | None = None,
) -> WrittenReports:
    """Write the requested formats; a failing PDF render leaves the others intact."""
    selected = expand_formats(formats)
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    stem = basename or f"report-{int(time.time() * 1000)}"
    written = WrittenReports()

    markdown_text: str | None = None
    for fmt in selected:
        path = output_dir / f"{stem}{_SUFFIXES[fmt]}"
        if fmt == "json":
            path.write_text(report_to_json(report), encoding="utf-8", errors="backslashreplace")
        elif fmt == "markdown":
            markdown_text = markdown_text or render_markdown(report)
            path.write_text(markdown_text, encoding="utf-8", errors="backslashreplace")
        else:
            markdown_text = markdown_text or render_markdown(report)
            try:
                render_pdf(markdown_text, path)
            except PdfRenderError as exc:
                logger.error(f"PDF generation failed: {exc}")
                written.errors[fmt] = str(exc)
                continue
        written.paths[fmt] = path

    return written
