import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from report_analyzer.settings_store import PROJECTS_PATH_ENV, SettingsStore, candidate_project_paths


class SettingsStoreTests(unittest.TestCase):
    def setUp(self) -> None:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        self.root = Path(tmpdir.name)
        self.store = SettingsStore(self.root / "config" / "settings.json")
        env = patch.dict(os.environ, {}, clear=False)
        env.start()
        self.addCleanup(env.stop)
        os.environ.pop(PROJECTS_PATH_ENV, None)

    def test_set_projects_path_persists_and_resolves(self) -> None:
        target = self.root / "projects"
        target.mkdir()

        resolved = self.store.set_projects_path(f"  {target}  ")

        self.assertEqual(resolved, target)
        stored = json.loads(self.store.storage_path.read_text(encoding="utf-8"))
        self.assertEqual(stored["claudeCodeProjectsPath"], str(target))
        self.assertEqual(self.store.resolve_projects_path(), target)

    def test_missing_or_empty_path_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            self.store.set_projects_path("")
        with self.assertRaises(ValueError):
            self.store.set_projects_path(str(self.root / "nope"))
        self.assertFalse(self.store.storage_path.exists())

    def test_environment_overrides_stored_value(self) -> None:
        os.environ[PROJECTS_PATH_ENV] = "~/from-env"
        self.assertEqual(self.store.get_projects_path_setting(), "~/from-env")
        self.assertEqual(self.store.resolve_projects_path(), Path.home() / "from-env")

    def test_saving_clears_environment_override(self) -> None:
        target = self.root / "projects"
        target.mkdir()
        os.environ[PROJECTS_PATH_ENV] = "/somewhere/else"
        self.store.set_projects_path(str(target))
        self.assertNotIn(PROJECTS_PATH_ENV, os.environ)
        self.assertEqual(self.store.resolve_projects_path(), target)

    def test_corrupt_settings_file_is_ignored(self) -> None:
        self.store.storage_path.parent.mkdir(parents=True)
        self.store.storage_path.write_text("{broken", encoding="utf-8")
        with self.assertLogs("claude_report.settings", level="ERROR"):
            self.assertEqual(self.store.get_projects_path_setting(), "")

    def test_falls_back_to_first_existing_candidate(self) -> None:
        home = self.root / "home"
        (home / ".config" / "claude-code" / "projects").mkdir(parents=True)
        with patch.object(Path, "home", return_value=home):
            self.assertEqual(self.store.resolve_projects_path(), home / ".config" / "claude-code" / "projects")

    def test_falls_back_to_test_projects_in_cwd(self) -> None:
        with patch.object(Path, "home", return_value=self.root / "empty-home"):
            self.assertEqual(self.store.resolve_projects_path(), Path.cwd() / "test-projects")


class SuggestedPathTests(unittest.TestCase):
    def test_candidates_report_existence(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            home = Path(tmp)
            (home / ".claude" / "projects").mkdir(parents=True)
            paths = candidate_project_paths(home)

        self.assertEqual(len(paths), 4)
        self.assertEqual(paths[0].path, str(home / ".claude" / "projects"))
        self.assertTrue(paths[0].exists)
        self.assertFalse(any(p.exists for p in paths[1:]))
        self.assertEqual(paths[-1].label, "Documents folder")


if __name__ == "__main__":
    unittest.main()
