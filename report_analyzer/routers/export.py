"""Report export API: returns a posted report as a downloadable file."""
from __future__ import annotations

import logging
import tempfile
from pathlib import Path

from fastapi import APIRouter, HTTPException
from fastapi.responses import Response

from report_analyzer.models import AnalysisReport
from report_analyzer.reports.markdown import render_markdown
from report_analyzer.reports.writer import report_to_json
from report_analyzer.services.pdf_renderer import PdfRenderError, render_pdf

logger = logging.getLogger("claude_report.export")

export_router = APIRouter(prefix="/api/export", tags=["export"])


def _attachment(content: str | bytes, media_type: str, filename: str) -> Response:
    if isinstance(content, str):
        content = content.encode("utf-8", errors="backslashreplace")
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@export_router.post("/json")
def export_json(report: AnalysisReport):
    return _attachment(report_to_json(report), "application/json", "claude-report.json")


@export_router.post("/markdown")
def export_markdown(report: AnalysisReport):
    return _attachment(render_markdown(report), "text/markdown; charset=utf-8", "claude-report.md")


@export_router.post("/pdf")
def export_pdf(report: AnalysisReport):
    with tempfile.TemporaryDirectory(prefix="claude-export-") as tmpdir:
        target = Path(tmpdir) / "claude-report.pdf"
        try:
            render_pdf(render_markdown(report), target)
        except PdfRenderError as e:
            logger.error(f"PDF export failed: {e}")
            raise HTTPException(status_code=500, detail=str(e))
        content = target.read_bytes()
    return _attachment(content, "application/pdf", "claude-report.pdf")
