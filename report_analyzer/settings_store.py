"""Persisted settings and Claude Code projects path resolution."""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

from report_analyzer.models import SuggestedPath

logger = logging.getLogger("claude_report.settings")

PROJECTS_PATH_ENV = "CLAUDE_CODE_PROJECTS_PATH"


def expand_home(raw: str) -> Path:
    return Path(raw.strip()).expanduser()


def _default_candidates(home: Path) -> list[tuple[Path, str]]:
    return [
        (home / ".claude" / "projects", "Claude Code default path"),
        (home / ".config" / "claude-code" / "projects", "Linux/Unix alternative path"),
        (home / "Library" / "Application Support" / "Claude" / "claude-code" / "projects", "macOS alternative path"),
    ]


def candidate_project_paths(home: Optional[Path] = None) -> list[SuggestedPath]:
    home = home or Path.home()
    candidates = _default_candidates(home) + [(home / "Documents" / "claude-projects", "Documents folder")]
    return [SuggestedPath(path=str(path), label=label, exists=path.exists()) for path, label in candidates]


class SettingsStore:
    """Reads and writes the settings JSON file; every read goes to disk."""

    def __init__(self, storage_path: Path):
        self.storage_path = Path(storage_path)

    def _load(self) -> dict:
        if not self.storage_path.exists():
            return {}
        try:
            content = self.storage_path.read_text(encoding="utf-8")
            if not content.strip():
                return {}
            data = json.loads(content)
            return data if isinstance(data, dict) else {}
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load settings file: {e}")
            return {}

    def _save(self, data: dict) -> None:
        self.storage_path.parent.mkdir(parents=True, exist_ok=True)
        self.storage_path.write_text(json.dumps(data, indent=2), encoding="utf-8")

    def get_projects_path_setting(self) -> str:
        return str(os.getenv(PROJECTS_PATH_ENV) or self._load().get("claudeCodeProjectsPath") or "")

    def set_projects_path(self, raw_path: str) -> Path:
        """Store a new projects root. Raises ValueError if it does not exist."""
        if not raw_path or not raw_path.strip():
            raise ValueError("A projects path is required")
        expanded = expand_home(raw_path)
        if not expanded.exists():
            raise ValueError(f"Path does not exist: {expanded}")
        data = self._load()
        data["claudeCodeProjectsPath"] = raw_path.strip()
        self._save(data)
        # The environment override would otherwise shadow the stored value.
        os.environ.pop(PROJECTS_PATH_ENV, None)
        logger.info(f"Projects path updated to: {expanded}")
        return expanded

    def resolve_projects_path(self) -> Path:
        """Env var, then stored setting, then the first existing candidate."""
        configured = self.get_projects_path_setting()
        if configured:
            return expand_home(configured)
        for path, _label in _default_candidates(Path.home()):
            if path.exists():
                return path
        return Path.cwd() / "test-projects"
