"""Claude Report Analyzer configuration."""
import os
from pathlib import Path


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


VERSION = "1.0.0"

# Project root (one level up from report_analyzer/)
PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Report output and settings storage
REPORTS_DIR = Path(os.getenv("CLAUDE_REPORT_REPORTS_DIR", "./claude-reports")).expanduser()
SETTINGS_PATH = Path(os.getenv("CLAUDE_REPORT_SETTINGS_PATH", str(PROJECT_ROOT / "settings.json"))).expanduser()

# External collaborators
CLAUDE_COMMAND = os.getenv("CLAUDE_REPORT_CLAUDE_COMMAND", "claude")
AI_TIMEOUT_SECONDS = _env_int("CLAUDE_REPORT_AI_TIMEOUT_SECONDS", 120)
PDF_BROWSER = os.getenv("CLAUDE_REPORT_PDF_BROWSER", "chromium")
PDF_TIMEOUT_SECONDS = _env_int("CLAUDE_REPORT_PDF_TIMEOUT_SECONDS", 60)

# Observability
OTEL_ENABLED = _env_bool("CLAUDE_REPORT_OTEL_ENABLED", False)
OTEL_ENDPOINT = os.getenv("CLAUDE_REPORT_OTEL_ENDPOINT", "http://localhost:4318")
OTEL_SERVICE_NAME = os.getenv("CLAUDE_REPORT_OTEL_SERVICE_NAME", "claude-report-analyzer")
PROM_PORT = _env_int("CLAUDE_REPORT_PROM_PORT", 9464)

# Server settings
HOST = os.getenv("CLAUDE_REPORT_HOST", "0.0.0.0")
PORT = _env_int("CLAUDE_REPORT_PORT", 3001)

# CORS
FRONTEND_ORIGIN = os.getenv("CLAUDE_REPORT_FRONTEND_ORIGIN", "http://localhost:3000")
