"""Claude Report Analyzer FastAPI backend: main application entry point."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from report_analyzer import config
from report_analyzer.routers.analyze import analyze_router
from report_analyzer.routers.export import export_router
from report_analyzer.routers.projects import projects_router
from report_analyzer.routers.results import results_router
from report_analyzer.routers.settings import settings_router

from report_analyzer.project_manager import ProjectCache, ProjectManager
from report_analyzer.services.ai_analyzer import AIAnalyzer
from report_analyzer.settings_store import SettingsStore
from report_analyzer.observability import initialize as initialize_observability, shutdown as shutdown_observability

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("claude_report")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    logger.info("Claude Report Analyzer backend starting up")
    initialize_observability(app)

    settings_store = SettingsStore(config.SETTINGS_PATH)
    projects_root = settings_store.resolve_projects_path()
    app.state.reports_dir = config.REPORTS_DIR
    app.state.settings_store = settings_store
    app.state.project_manager = ProjectManager(projects_root, config.REPORTS_DIR, ProjectCache())
    app.state.ai_analyzer = AIAnalyzer(config.REPORTS_DIR)
    logger.info(f"Projects root: {projects_root} (exists={projects_root.exists()})")
    logger.info(f"Reports directory: {config.REPORTS_DIR}")

    yield

    shutdown_observability(app)
    logger.info("Claude Report Analyzer backend shut down")


app = FastAPI(
    title="Claude Report Analyzer API",
    version=config.VERSION,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[config.FRONTEND_ORIGIN, "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(analyze_router)
app.include_router(results_router)
app.include_router(export_router)
app.include_router(projects_router)
app.include_router(settings_router)


@app.get("/health")
async def health():
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")}


@app.get("/api")
async def api_index():
    return {
        "name": "Claude Report Analyzer API",
        "version": config.VERSION,
        "endpoints": {
            "health": "/health",
            "analyze": "/api/analyze",
            "results": "/api/results",
            "latestResult": "/api/results/latest",
            "export": "/api/export/{json|markdown|pdf}",
            "projects": "/api/projects",
            "settings": "/api/settings",
        },
    }
