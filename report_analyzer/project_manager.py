"""Project browser over a Claude Code projects directory."""
from __future__ import annotations

import json
import logging
import re
import threading
from pathlib import Path
from typing import Optional

from report_analyzer.date_utils import date_key, file_modified_iso, normalize_iso_date
from report_analyzer.models import AnalysisReport, DateStat, Project, ProjectSession, Session
from report_analyzer.parsers.jsonl import parse_file
from report_analyzer.reports.writer import write_reports
from report_analyzer.services.analysis_runner import find_jsonl_files, run_analysis

logger = logging.getLogger("claude_report.projects")

PROJECT_REPORT_PREFIX = "report-"
SESSION_REPORTS_DIRNAME = "sessions"

Fingerprint = tuple[tuple[str, int, int], ...]


def session_report_name(session_id: str) -> str:
    """Flatten a relative session id into a single file stem."""
    stem = session_id[:-len(".jsonl")] if session_id.endswith(".jsonl") else session_id
    return re.sub(r"[\\/]+", "__", stem)


class ProjectCache:
    """Session lists keyed by project id, each stamped with a filesystem fingerprint."""

    def __init__(self):
        self._entries: dict[str, tuple[Fingerprint, list[ProjectSession]]] = {}
        self._lock = threading.Lock()

    def get(self, project_id: str, fingerprint: Fingerprint) -> Optional[list[ProjectSession]]:
        with self._lock:
            entry = self._entries.get(project_id)
        if entry is None or entry[0] != fingerprint:
            return None
        return list(entry[1])

    def put(self, project_id: str, fingerprint: Fingerprint, sessions: list[ProjectSession]) -> None:
        with self._lock:
            self._entries[project_id] = (fingerprint, list(sessions))

    def invalidate(self, project_id: Optional[str] = None) -> None:
        with self._lock:
            if project_id is None:
                self._entries.clear()
            else:
                self._entries.pop(project_id, None)


class ProjectManager:
    """Lists projects and sessions, runs analyses and reads stored reports."""

    def __init__(self, projects_root: Path, reports_dir: Path, cache: Optional[ProjectCache] = None):
        self.projects_root = Path(projects_root)
        self.reports_dir = Path(reports_dir)
        self.cache = cache if cache is not None else ProjectCache()

    def set_projects_root(self, projects_root: Path) -> None:
        self.projects_root = Path(projects_root)
        self.cache.invalidate()
        logger.info(f"Projects root switched to: {self.projects_root}")

    # ── Lookup ──────────────────────────────────────────────────────

    def _project_dir(self, project_id: str) -> Path:
        if not project_id or project_id.startswith(".") or "/" in project_id or "\\" in project_id:
            raise KeyError(project_id)
        path = self.projects_root / project_id
        if not path.is_dir():
            raise KeyError(project_id)
        return path

    def _project_reports_dir(self, project_id: str) -> Path:
        return self.reports_dir / project_id

    def _session_path(self, project_id: str, session_id: str) -> Path:
        project_dir = self._project_dir(project_id).resolve()
        candidate = (project_dir / session_id).resolve()
        if candidate == project_dir or project_dir not in candidate.parents:
            raise ValueError(f"Session path escapes project directory: {session_id}")
        if not candidate.is_file():
            raise FileNotFoundError(f"Session not found: {session_id}")
        return candidate

    def _latest_project_report_path(self, project_id: str) -> Optional[Path]:
        directory = self._project_reports_dir(project_id)
        if not directory.is_dir():
            return None
        candidates = sorted(directory.glob(f"{PROJECT_REPORT_PREFIX}*.json"))
        return candidates[-1] if candidates else None

    def _session_report_path(self, project_id: str, session_id: str) -> Path:
        return self._project_reports_dir(project_id) / SESSION_REPORTS_DIRNAME / f"{session_report_name(session_id)}.json"

    # ── Projects ────────────────────────────────────────────────────

    def _build_project(self, path: Path) -> Project:
        return Project(
            id=path.name,
            name=path.name,
            path=str(path),
            lastModified=file_modified_iso(path),
            sessionCount=len(find_jsonl_files(path)),
            analyzed=self._latest_project_report_path(path.name) is not None,
        )

    def scan_projects(self) -> list[Project]:
        """Return every project directory under the root, most recently modified first."""
        if not self.projects_root.is_dir():
            logger.warning(f"Projects root does not exist: {self.projects_root}")
            return []

        projects = [
            self._build_project(entry)
            for entry in self.projects_root.iterdir()
            if entry.is_dir() and not entry.name.startswith(".")
        ]
        projects.sort(key=lambda p: p.lastModified, reverse=True)
        return projects

    def get_project(self, project_id: str) -> Project:
        return self._build_project(self._project_dir(project_id))

    # ── Sessions ────────────────────────────────────────────────────

    @staticmethod
    def _fingerprint(project_dir: Path, files: list[Path]) -> Fingerprint:
        entries = []
        for path in files:
            try:
                stats = path.stat()
            except OSError:
                continue
            entries.append((path.relative_to(project_dir).as_posix(), stats.st_mtime_ns, stats.st_size))
        return tuple(entries)

    def _session_info(self, project_id: str, project_dir: Path, path: Path) -> ProjectSession:
        session_id = path.relative_to(project_dir).as_posix()
        message_count = 0
        start_time = end_time = ""
        try:
            sessions = parse_file(path, session_id=session_id)
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Failed to read session file {path}: {e}")
            sessions = []
        if sessions:
            messages = sessions[0].messages
            message_count = len(messages)
            stamped = [m.timestamp for m in messages if m.timestamp]
            if stamped:
                start_time = normalize_iso_date(stamped[0]) or stamped[0]
                end_time = normalize_iso_date(stamped[-1]) or stamped[-1]
        if not start_time:
            start_time = end_time = file_modified_iso(path)

        return ProjectSession(
            id=session_id,
            projectId=project_id,
            date=date_key(start_time),
            startTime=start_time,
            endTime=end_time,
            messageCount=message_count,
        )

    def get_project_sessions(self, project_id: str) -> list[ProjectSession]:
        """Sessions of one project, newest start time first."""
        project_dir = self._project_dir(project_id)
        files = find_jsonl_files(project_dir)
        fingerprint = self._fingerprint(project_dir, files)

        sessions = self.cache.get(project_id, fingerprint)
        if sessions is None:
            logger.debug(f"Rescanning sessions for project {project_id}")
            sessions = [self._session_info(project_id, project_dir, path) for path in files]
            sessions.sort(key=lambda s: s.startTime, reverse=True)
            self.cache.put(project_id, fingerprint, sessions)

        # Stored reports change independently of the session files.
        return [
            s.model_copy(update={"analyzed": self._session_report_path(project_id, s.id).exists()})
            for s in sessions
        ]

    def get_sessions_by_date(self, project_id: str, date: str) -> list[ProjectSession]:
        return [s for s in self.get_project_sessions(project_id) if s.date == date]

    def get_date_stats(self, project_id: str) -> list[DateStat]:
        """Per-day counts, newest day first."""
        stats: dict[str, DateStat] = {}
        for session in self.get_project_sessions(project_id):
            key = session.date or "unknown"
            stat = stats.setdefault(key, DateStat(date=key))
            stat.sessionCount += 1
            stat.totalMessages += session.messageCount
            if session.analyzed:
                stat.analyzedCount += 1
        return sorted(stats.values(), key=lambda s: s.date, reverse=True)

    def read_session(self, project_id: str, session_id: str) -> Session:
        """Decode one session file; a file with no messages yields an empty session."""
        path = self._session_path(project_id, session_id)
        sessions = parse_file(path, session_id=session_id)
        return sessions[0] if sessions else Session(id=session_id)

    # ── Analysis ────────────────────────────────────────────────────

    def analyze_session(self, project_id: str, session_id: str) -> AnalysisReport:
        path = self._session_path(project_id, session_id)
        logger.info(f"Analyzing session {session_id} of project {project_id}")
        report = run_analysis(self._project_dir(project_id).resolve(), files=[path]).report
        target = self._session_report_path(project_id, session_id)
        write_reports(report, target.parent, "json", basename=target.stem)
        return report

    def analyze_project(self, project_id: str, formats: str | list[str] = "json") -> AnalysisReport:
        project_dir = self._project_dir(project_id)
        logger.info(f"Analyzing project {project_id}")
        report = run_analysis(project_dir).report
        written = write_reports(report, self._project_reports_dir(project_id), formats)
        for fmt, error in written.errors.items():
            logger.warning(f"{fmt} report for project {project_id} was not written: {error}")
        return report

    def analyze_date(self, project_id: str, date: str) -> list[dict]:
        """Analyze every session of one day; failures are reported per session."""
        results = []
        for session in self.get_sessions_by_date(project_id, date):
            try:
                report = self.analyze_session(project_id, session.id)
                results.append({"sessionId": session.id, "success": True, "result": report.model_dump()})
            except (OSError, ValueError) as e:
                logger.error(f"Failed to analyze session {session.id}: {e}")
                results.append({"sessionId": session.id, "success": False, "error": str(e)})
        return results

    def get_analysis_result(self, project_id: str) -> Optional[AnalysisReport]:
        """Latest stored project report, read from disk on every call."""
        self._project_dir(project_id)
        path = self._latest_project_report_path(project_id)
        if path is None:
            return None
        try:
            return AnalysisReport.model_validate(json.loads(path.read_text(encoding="utf-8")))
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read stored report {path}: {e}")
            return None
