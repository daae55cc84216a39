"""Settings API: projects root configuration."""
from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from report_analyzer import config
from report_analyzer.models import AppSettings
from report_analyzer.settings_store import candidate_project_paths

logger = logging.getLogger("claude_report.settings")

settings_router = APIRouter(prefix="/api/settings", tags=["settings"])


class SettingsUpdateRequest(BaseModel):
    claudeCodeProjectsPath: str = ""


def _get_settings_store(request: Request):
    store = getattr(request.app.state, "settings_store", None)
    if not store:
        raise HTTPException(status_code=503, detail="Settings store not initialized")
    return store


def _current_settings(request: Request) -> AppSettings:
    store = _get_settings_store(request)
    actual = store.resolve_projects_path()
    reports_dir = getattr(request.app.state, "reports_dir", None) or config.REPORTS_DIR
    return AppSettings(
        claudeCodeProjectsPath=store.get_projects_path_setting(),
        port=config.PORT,
        reportsDir=str(reports_dir),
        actualProjectsPath=str(actual),
        pathExists=actual.exists(),
    )


@settings_router.get("", response_model=AppSettings)
def get_settings(request: Request):
    return _current_settings(request)


@settings_router.post("")
def update_settings(req: SettingsUpdateRequest, request: Request):
    """Persist a new projects root and point the project manager at it."""
    store = _get_settings_store(request)
    try:
        projects_root = store.set_projects_path(req.claudeCodeProjectsPath)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    manager = getattr(request.app.state, "project_manager", None)
    if manager is not None:
        manager.set_projects_root(projects_root)

    return {"success": True, "message": "Settings saved", "settings": _current_settings(request).model_dump()}


@settings_router.get("/suggested-paths")
def get_suggested_paths():
    return {"paths": [p.model_dump() for p in candidate_project_paths()]}
