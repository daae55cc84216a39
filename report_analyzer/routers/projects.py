"""API router for the Claude Code project browser."""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request

logger = logging.getLogger("claude_report.projects")

projects_router = APIRouter(prefix="/api/projects", tags=["projects"])


def _get_project_manager(request: Request):
    manager = getattr(request.app.state, "project_manager", None)
    if not manager:
        raise HTTPException(status_code=503, detail="Project manager not initialized")
    return manager


def _get_ai_analyzer(request: Request):
    analyzer = getattr(request.app.state, "ai_analyzer", None)
    if not analyzer:
        raise HTTPException(status_code=503, detail="AI analyzer not initialized")
    return analyzer


@projects_router.get("")
def list_projects(request: Request):
    """List project directories under the configured projects root."""
    manager = _get_project_manager(request)
    return {"projects": [p.model_dump() for p in manager.scan_projects()]}


@projects_router.get("/{project_id}/sessions")
def list_project_sessions(project_id: str, request: Request):
    """Sessions of one project with per-day statistics."""
    manager = _get_project_manager(request)
    try:
        sessions = manager.get_project_sessions(project_id)
        date_stats = manager.get_date_stats(project_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Project not found: {project_id}")

    return {
        "projectId": project_id,
        "sessions": [s.model_dump() for s in sessions],
        "dateStats": [d.model_dump() for d in date_stats],
        "totalSessions": len(sessions),
        "analyzedSessions": sum(1 for s in sessions if s.analyzed),
    }


@projects_router.get("/{project_id}/sessions/date/{date}")
def list_sessions_by_date(project_id: str, date: str, request: Request):
    manager = _get_project_manager(request)
    try:
        sessions = manager.get_sessions_by_date(project_id, date)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Project not found: {project_id}")

    return {
        "projectId": project_id,
        "date": date,
        "sessions": [s.model_dump() for s in sessions],
        "totalSessions": len(sessions),
        "analyzedSessions": sum(1 for s in sessions if s.analyzed),
    }


@projects_router.post("/{project_id}/sessions/{session_id:path}/analyze")
def analyze_session(project_id: str, session_id: str, request: Request):
    """Run the statistics pipeline over a single session file."""
    manager = _get_project_manager(request)
    try:
        report = manager.analyze_session(project_id, session_id)
    except (KeyError, FileNotFoundError) as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception(f"Session analysis failed for {project_id}/{session_id}")
        raise HTTPException(status_code=500, detail=str(e))

    return {"success": True, "projectId": project_id, "sessionId": session_id, "result": report.model_dump()}


@projects_router.post("/{project_id}/analyze")
def analyze_project(project_id: str, request: Request):
    manager = _get_project_manager(request)
    try:
        report = manager.analyze_project(project_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Project not found: {project_id}")
    except Exception as e:
        logger.exception(f"Project analysis failed for {project_id}")
        raise HTTPException(status_code=500, detail=str(e))

    return {"success": True, "projectId": project_id, "result": report.model_dump()}


@projects_router.get("/{project_id}/analysis")
def get_project_analysis(project_id: str, request: Request):
    """Latest stored statistics report plus any stored AI analysis."""
    manager = _get_project_manager(request)
    analyzer = _get_ai_analyzer(request)
    try:
        result = manager.get_analysis_result(project_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Project not found: {project_id}")
    ai_result = analyzer.get_stored_analysis(project_id)

    if result is None and ai_result is None:
        raise HTTPException(status_code=404, detail="No analysis results for this project")

    return {
        "projectId": project_id,
        "result": result.model_dump() if result else None,
        "aiAnalysis": ai_result.model_dump() if ai_result else None,
    }


@projects_router.get("/{project_id}/ai-analysis")
def get_ai_analysis(project_id: str, request: Request, sessionId: Optional[str] = Query(default=None)):
    analyzer = _get_ai_analyzer(request)
    try:
        ai_result = analyzer.get_stored_analysis(project_id, sessionId)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if ai_result is None:
        raise HTTPException(status_code=404, detail="No AI analysis results")
    return {"projectId": project_id, "sessionId": sessionId, "aiAnalysis": ai_result.model_dump()}


@projects_router.post("/{project_id}/sessions/{session_id:path}/ai-analyze")
def ai_analyze_session(project_id: str, session_id: str, request: Request, force: bool = Query(default=False)):
    """Narrative analysis of one session; a stored result is returned unless forced."""
    manager = _get_project_manager(request)
    analyzer = _get_ai_analyzer(request)

    if not force:
        try:
            stored = analyzer.get_stored_analysis(project_id, session_id)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        if stored is not None:
            return {
                "success": True,
                "projectId": project_id,
                "sessionId": session_id,
                "aiAnalysis": stored.model_dump(),
                "cached": True,
            }

    try:
        session = manager.read_session(project_id, session_id)
    except (KeyError, FileNotFoundError) as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    ai_result = analyzer.analyze_session(session, project_id, session_id, force=True)
    return {"success": True, "projectId": project_id, "sessionId": session_id, "aiAnalysis": ai_result.model_dump()}


@projects_router.post("/{project_id}/ai-analyze")
def ai_analyze_project(project_id: str, request: Request, force: bool = Query(default=False)):
    manager = _get_project_manager(request)
    analyzer = _get_ai_analyzer(request)

    if not force:
        try:
            stored = analyzer.get_stored_analysis(project_id)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        if stored is not None:
            return {"success": True, "projectId": project_id, "aiAnalysis": stored.model_dump(), "cached": True}

    try:
        report = manager.get_analysis_result(project_id) or manager.analyze_project(project_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Project not found: {project_id}")

    ai_result = analyzer.analyze_project(report, project_id, force=True)
    return {"success": True, "projectId": project_id, "aiAnalysis": ai_result.model_dump()}


@projects_router.post("/{project_id}/analyze-date/{date}")
def analyze_date(project_id: str, date: str, request: Request):
    """Analyze every session that started on ``date``."""
    manager = _get_project_manager(request)
    try:
        results = manager.analyze_date(project_id, date)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Project not found: {project_id}")

    return {
        "projectId": project_id,
        "date": date,
        "totalSessions": len(results),
        "analyzedCount": sum(1 for r in results if r["success"]),
        "results": results,
    }
