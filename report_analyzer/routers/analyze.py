"""Ad-hoc analysis API for an arbitrary path."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from report_analyzer import config
from report_analyzer.reports.writer import expand_formats, write_reports
from report_analyzer.services.analysis_runner import run_analysis

logger = logging.getLogger("claude_report.analyze")

analyze_router = APIRouter(prefix="/api", tags=["analyze"])


class AnalyzeRequest(BaseModel):
    path: str = ""
    formats: Union[str, list[str]] = "all"


@analyze_router.post("/analyze")
def analyze_path(req: AnalyzeRequest, request: Request):
    """Analyze a file or directory and store the reports in the reports directory."""
    if not req.path.strip():
        raise HTTPException(status_code=400, detail="A path is required")
    try:
        formats = expand_formats(req.formats)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    target = Path(req.path.strip()).expanduser()
    reports_dir = Path(getattr(request.app.state, "reports_dir", None) or config.REPORTS_DIR)
    try:
        run = run_analysis(target)
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.exception(f"Analysis failed for {target}")
        raise HTTPException(status_code=500, detail=str(e))

    written = write_reports(run.report, reports_dir, formats)
    return {
        "success": True,
        "message": "Analysis completed",
        "report": run.report.model_dump(),
        "files": {fmt: str(path) for fmt, path in written.paths.items()},
        "errors": written.errors,
    }
