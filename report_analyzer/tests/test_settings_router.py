import os
import tempfile
import types
import unittest
from pathlib import Path
from unittest.mock import patch

from fastapi import HTTPException

from report_analyzer.project_manager import ProjectCache, ProjectManager
from report_analyzer.routers import settings as settings_router
from report_analyzer.settings_store import PROJECTS_PATH_ENV, SettingsStore


class SettingsRouterTests(unittest.TestCase):
    def setUp(self) -> None:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        self.base = Path(tmpdir.name)
        env = patch.dict(os.environ, {}, clear=False)
        env.start()
        self.addCleanup(env.stop)
        os.environ.pop(PROJECTS_PATH_ENV, None)

        self.store = SettingsStore(self.base / "settings.json")
        self.manager = ProjectManager(self.base / "old-root", self.base / "reports", ProjectCache())
        self.request = types.SimpleNamespace(
            app=types.SimpleNamespace(
                state=types.SimpleNamespace(
                    settings_store=self.store,
                    project_manager=self.manager,
                    reports_dir=self.base / "reports",
                )
            )
        )

    def test_update_validates_and_repoints_project_manager(self) -> None:
        new_root = self.base / "projects"
        (new_root / "demo").mkdir(parents=True)

        payload = settings_router.update_settings(
            settings_router.SettingsUpdateRequest(claudeCodeProjectsPath=str(new_root)),
            self.request,
        )

        self.assertTrue(payload["success"])
        self.assertEqual(payload["settings"]["actualProjectsPath"], str(new_root))
        self.assertTrue(payload["settings"]["pathExists"])
        self.assertEqual(self.manager.projects_root, new_root)
        self.assertEqual([p.id for p in self.manager.scan_projects()], ["demo"])

        current = settings_router.get_settings(self.request)
        self.assertEqual(current.claudeCodeProjectsPath, str(new_root))
        self.assertEqual(current.reportsDir, str(self.base / "reports"))

    def test_update_with_missing_path_is_400(self) -> None:
        for raw in ("", str(self.base / "missing")):
            with self.subTest(raw=raw):
                with self.assertRaises(HTTPException) as ctx:
                    settings_router.update_settings(
                        settings_router.SettingsUpdateRequest(claudeCodeProjectsPath=raw),
                        self.request,
                    )
                self.assertEqual(ctx.exception.status_code, 400)
        self.assertEqual(self.manager.projects_root, self.base / "old-root")

    def test_suggested_paths(self) -> None:
        with patch.object(Path, "home", return_value=self.base):
            payload = settings_router.get_suggested_paths()
        self.assertEqual(payload["paths"][0]["path"], str(self.base / ".claude" / "projects"))
        self.assertFalse(payload["paths"][0]["exists"])


if __name__ == "__main__":
    unittest.main()
