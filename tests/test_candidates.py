from __future__ import annotations

import os
import sys
import tempfile
import types
import unittest
from pathlib import Path
from typing import override
from unittest.mock import patch

import projectpath.candidates as candidates_module
from projectpath.candidates import (
    Candidate,
    CandidateKind,
    CandidateStatus,
    ResolutionError,
    build_candidates,
    first_search_path_entry,
    module_location,
    nearest_directory,
    normalize_candidate,
    packaged_app_path,
    reported_working_directory,
)
from projectpath.locations import location_to_path
from projectpath.osfamily import OSFamily
from projectpath.resolver import ProjectPathResolver

HOST = OSFamily.current()


def _fake_module(name: str, file_path: Path, *, package: bool = False) -> types.ModuleType:
    module = types.ModuleType(name)
    module.__file__ = str(file_path)
    if package:
        module.__path__ = [str(file_path.parent)]
    return module


class NormalizeCandidateTests(unittest.TestCase):
    temp_dir: tempfile.TemporaryDirectory[str] | None = None
    root: Path = Path()

    @override
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.addCleanup(self.temp_dir.cleanup)
        self.root = Path(self.temp_dir.name)

    def _normalize(self, raw: str | None, *, packaged: bool = False) -> str | None:
        return normalize_candidate(raw, os_family=HOST, packaged=packaged)

    def test_absent_raw_stays_absent(self) -> None:
        self.assertIsNone(self._normalize(None))

    def test_existing_directory_is_unchanged(self) -> None:
        self.assertEqual(self._normalize(str(self.root)), str(self.root))
        self.assertEqual(self._normalize(self._normalize(str(self.root))), str(self.root))

    def test_file_resolves_to_containing_directory(self) -> None:
        archive = self.root / "app.pyz"
        _ = archive.write_bytes(b"")
        self.assertEqual(self._normalize(str(archive)), str(self.root))

    def test_missing_path_walks_up_to_existing_ancestor(self) -> None:
        self.assertEqual(self._normalize(str(self.root / "gone" / "deeper" / "file.txt")), str(self.root))

    def test_file_url_and_archive_location(self) -> None:
        archive = self.root / "app.pyz"
        _ = archive.write_bytes(b"")
        self.assertEqual(self._normalize(self.root.as_uri()), str(self.root))
        self.assertEqual(self._normalize(f"zip:{archive.as_uri()}!/pkg/mod.py"), str(self.root))

    def test_packaged_appends_bundle_subdirectory(self) -> None:
        self.assertEqual(self._normalize(str(self.root), packaged=True), str(self.root / "app"))

    def test_packaged_keeps_existing_bundle_subdirectory(self) -> None:
        bundle = self.root / "app"
        bundle.mkdir()
        self.assertEqual(self._normalize(str(bundle), packaged=True), str(bundle))

    def test_bundle_subdirectory_can_be_disabled(self) -> None:
        result = normalize_candidate(str(self.root), os_family=HOST, packaged=True, bundle_subdir=None)
        self.assertEqual(result, str(self.root))

    def test_nearest_directory_fails_without_existing_ancestor(self) -> None:
        with patch.object(Path, "is_dir", return_value=False):
            with self.assertRaises(ResolutionError):
                _ = nearest_directory(self.root / "missing")


class ProviderTests(unittest.TestCase):
    def test_packaged_app_path_requires_frozen(self) -> None:
        with patch.object(sys, "frozen", False, create=True):
            self.assertIsNone(packaged_app_path())
        with patch.object(sys, "frozen", True, create=True), patch.object(sys, "executable", "/opt/App/launcher"):
            self.assertEqual(packaged_app_path(), "/opt/App/launcher")

    def test_reported_working_directory_reads_pwd(self) -> None:
        with patch.dict(os.environ, {"PWD": "/srv/app"}):
            self.assertEqual(reported_working_directory(), "/srv/app")
        with patch.dict(os.environ, {}, clear=True):
            self.assertIsNone(reported_working_directory())

    def test_first_search_path_entry(self) -> None:
        with patch.object(sys, "path", ["/opt/app/app.pyz", "/usr/lib/python3"]):
            self.assertEqual(first_search_path_entry(), "/opt/app/app.pyz")
        with patch.object(sys, "path", ["", "/usr/lib/python3"]):
            self.assertEqual(first_search_path_entry(), os.curdir)
        with patch.object(sys, "path", []):
            self.assertIsNone(first_search_path_entry())


class ModuleLocationTests(unittest.TestCase):
    temp_dir: tempfile.TemporaryDirectory[str] | None = None
    root: Path = Path()

    @override
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.addCleanup(self.temp_dir.cleanup)
        self.root = Path(self.temp_dir.name)

    def test_installed_module_points_to_import_root(self) -> None:
        location = module_location(candidates_module)
        self.assertIsNotNone(location)
        assert location is not None
        root = Path(location_to_path(location, HOST))
        self.assertTrue((root / "projectpath" / "candidates.py").is_file())

    def test_class_and_function_references_use_their_module(self) -> None:
        expected = module_location(candidates_module)
        self.assertEqual(module_location(Candidate), expected)
        self.assertEqual(module_location(build_candidates), expected)
        self.assertEqual(module_location("projectpath.candidates"), expected)

    def test_module_in_directory(self) -> None:
        module_file = self.root / "demo_pkg" / "mod.py"
        module_file.parent.mkdir()
        _ = module_file.write_text("", encoding="utf-8")
        module = _fake_module("demo_pkg.mod", module_file)
        self.assertEqual(module_location(module), self.root.as_uri() + "/")

    def test_package_module(self) -> None:
        init_file = self.root / "demo_pkg" / "__init__.py"
        init_file.parent.mkdir()
        _ = init_file.write_text("", encoding="utf-8")
        module = _fake_module("demo_pkg", init_file, package=True)
        self.assertEqual(module_location(module), self.root.as_uri() + "/")

    def test_module_inside_archive(self) -> None:
        archive = self.root / "app.pyz"
        _ = archive.write_bytes(b"")
        module = _fake_module("demo_pkg.mod", archive / "demo_pkg" / "mod.py")
        self.assertEqual(module_location(module), archive.as_uri())

    def test_loader_archive_is_preferred(self) -> None:
        module = _fake_module("demo_pkg.mod", self.root / "elsewhere.py")
        module.__loader__ = types.SimpleNamespace(archive="/opt/app/app.pyz")
        self.assertEqual(module_location(module), "/opt/app/app.pyz")

    def test_unexpected_file_name_is_rejected(self) -> None:
        module_file = self.root / "other" / "mod.py"
        module_file.parent.mkdir()
        _ = module_file.write_text("", encoding="utf-8")
        module = _fake_module("demo_pkg.mod", module_file)
        with self.assertRaises(ResolutionError):
            _ = module_location(module)

    def test_module_without_file(self) -> None:
        self.assertIsNone(module_location(types.ModuleType("no_file_here")))


class CandidateTests(unittest.TestCase):
    def test_evaluate_normalizes_provider_result(self) -> None:
        with tempfile.TemporaryDirectory() as tmp_dir:
            candidate = Candidate(CandidateKind.WORKING_DIRECTORY, "tmp", lambda: tmp_dir, HOST)
            self.assertEqual(candidate.evaluate(), str(Path(tmp_dir)))
            self.assertEqual(str(candidate), f"tmp : {Path(tmp_dir)}")

    def test_empty_provider(self) -> None:
        outcome = Candidate(CandidateKind.SEARCH_PATH, "nothing", lambda: None, HOST).outcome()
        self.assertIs(outcome.status, CandidateStatus.EMPTY)
        self.assertIsNone(outcome.path)

    def test_provider_errors_are_contained(self) -> None:
        def explode() -> str | None:
            raise OSError("boom")

        candidate = Candidate(CandidateKind.MODULE_LOCATION, "exploding", explode, HOST, debug=True)
        with self.assertLogs("projectpath.candidates", level="DEBUG") as captured:
            outcome = candidate.outcome()
        self.assertIs(outcome.status, CandidateStatus.FAILED)
        self.assertEqual(outcome.reason, "boom")
        self.assertIn("exploding", captured.output[0])

    def test_normalizer_errors_are_contained(self) -> None:
        outcome = Candidate(CandidateKind.SEARCH_PATH, "empty string", lambda: "", HOST).outcome()
        self.assertIs(outcome.status, CandidateStatus.FAILED)
        self.assertEqual(outcome.raw, "")


class BuildCandidatesTests(unittest.TestCase):
    def test_default_order(self) -> None:
        kinds = [candidate.kind for candidate in build_candidates(candidates_module, os_family=HOST)]
        self.assertEqual(
            kinds,
            [
                CandidateKind.PACKAGED_APP,
                CandidateKind.WORKING_DIRECTORY_ENV,
                CandidateKind.WORKING_DIRECTORY,
                CandidateKind.MODULE_LOCATION,
                CandidateKind.SEARCH_PATH,
            ],
        )

    def test_class_path_search_first_keeps_packaged_app_first(self) -> None:
        kinds = [
            candidate.kind
            for candidate in build_candidates(candidates_module, os_family=HOST, class_path_search_first=True)
        ]
        self.assertEqual(
            kinds,
            [
                CandidateKind.PACKAGED_APP,
                CandidateKind.SEARCH_PATH,
                CandidateKind.MODULE_LOCATION,
                CandidateKind.WORKING_DIRECTORY,
                CandidateKind.WORKING_DIRECTORY_ENV,
            ],
        )

    def test_descriptions_name_the_reference(self) -> None:
        descriptions = [candidate.description for candidate in ProjectPathResolver().get_candidates(Candidate)]
        self.assertIn("Candidate module import location", descriptions)
        self.assertEqual(len(set(descriptions)), len(descriptions))
