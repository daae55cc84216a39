import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from report_analyzer import main
from report_analyzer.project_manager import ProjectManager
from report_analyzer.services.ai_analyzer import AIAnalyzer
from report_analyzer.settings_store import SettingsStore


class MainAppTests(unittest.IsolatedAsyncioTestCase):
    async def test_health_and_index(self) -> None:
        health = await main.health()
        self.assertEqual(health["status"], "healthy")
        self.assertTrue(health["timestamp"].endswith("Z"))

        index = await main.api_index()
        self.assertEqual(index["endpoints"]["projects"], "/api/projects")
        self.assertEqual(index["version"], main.config.VERSION)

    async def test_lifespan_wires_app_state(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            base = Path(tmp)
            with patch.object(main.config, "SETTINGS_PATH", base / "settings.json"), \
                    patch.object(main.config, "REPORTS_DIR", base / "reports"), \
                    patch.dict("os.environ", {"CLAUDE_CODE_PROJECTS_PATH": str(base)}):
                async with main.lifespan(main.app):
                    state = main.app.state
                    self.assertIsInstance(state.settings_store, SettingsStore)
                    self.assertIsInstance(state.project_manager, ProjectManager)
                    self.assertIsInstance(state.ai_analyzer, AIAnalyzer)
                    self.assertEqual(state.project_manager.projects_root, base)
                    self.assertEqual(state.reports_dir, base / "reports")

    def test_routes_are_registered(self) -> None:
        paths = {route.path for route in main.app.routes}
        for expected in (
            "/health",
            "/api",
            "/api/analyze",
            "/api/results/latest",
            "/api/export/pdf",
            "/api/projects/{project_id}/sessions/{session_id:path}/ai-analyze",
            "/api/projects/{project_id}/analyze-date/{date}",
            "/api/settings/suggested-paths",
        ):
            self.assertIn(expected, paths)


if __name__ == "__main__":
    unittest.main()
