"""Stored report browsing API."""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from fastapi import APIRouter, HTTPException, Request

from report_analyzer import config

logger = logging.getLogger("claude_report.results")

results_router = APIRouter(prefix="/api/results", tags=["results"])


def _get_reports_dir(request: Request) -> Path:
    return Path(getattr(request.app.state, "reports_dir", None) or config.REPORTS_DIR)


def _json_reports(reports_dir: Path) -> list[Path]:
    if not reports_dir.is_dir():
        raise HTTPException(status_code=404, detail=f"Reports directory does not exist: {reports_dir}")
    files = [p for p in reports_dir.iterdir() if p.is_file() and p.suffix == ".json"]
    if not files:
        raise HTTPException(status_code=404, detail="No JSON reports found")
    return files


def _read_report(path: Path) -> dict:
    return json.loads(path.read_text(encoding="utf-8"))


@results_router.get("")
def list_results(request: Request):
    """Metadata of every stored JSON report, newest first."""
    reports = []
    for path in _json_reports(_get_reports_dir(request)):
        try:
            report = _read_report(path)
            mtime = path.stat().st_mtime
        except (OSError, ValueError) as e:
            logger.warning(f"Skipping unreadable report {path.name}: {e}")
            continue
        summary = report.get("summary") or {}
        reports.append({
            "filename": path.name,
            "createdAt": datetime.fromtimestamp(mtime, timezone.utc).isoformat().replace("+00:00", "Z"),
            "analyzedAt": report.get("analyzedAt"),
            "sourcePath": report.get("sourcePath"),
            "filesAnalyzed": report.get("filesAnalyzed", 0),
            "totalSessions": summary.get("totalSessions", 0),
            "totalMessages": summary.get("totalMessages", 0),
        })

    reports.sort(key=lambda r: r["createdAt"], reverse=True)
    return {"total": len(reports), "reports": reports}


@results_router.get("/latest")
def get_latest_result(request: Request):
    files = _json_reports(_get_reports_dir(request))
    latest = max(files, key=lambda p: p.stat().st_mtime)
    try:
        report = _read_report(latest)
    except (OSError, ValueError) as e:
        raise HTTPException(status_code=500, detail=f"Failed to read {latest.name}: {e}")
    return {"filename": latest.name, "report": report}


@results_router.get("/{filename}")
def get_result(filename: str, request: Request):
    if ".." in filename or "/" in filename or "\\" in filename:
        raise HTTPException(status_code=400, detail="Invalid filename")

    path = _get_reports_dir(request) / filename
    if not path.is_file():
        raise HTTPException(status_code=404, detail=f"Report not found: {filename}")
    try:
        report = _read_report(path)
    except (OSError, ValueError) as e:
        raise HTTPException(status_code=500, detail=f"Failed to read {filename}: {e}")
    return {"filename": filename, "report": report}
