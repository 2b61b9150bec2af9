"""Tests for formatbench.bench.system — session characterization."""

from __future__ import annotations

import json
import platform
import unittest
from importlib import metadata
from unittest.mock import MagicMock, patch

from formatbench.bench.system import (
    SessionProfile,
    _cpu_model,
    capture_session_profile,
    format_session_profile,
    library_versions,
)

from bench_test_helpers import make_session


class TestSessionProfile(unittest.TestCase):
    def test_capture_returns_profile(self) -> None:
        profile = capture_session_profile()
        self.assertIsInstance(profile, SessionProfile)
        self.assertEqual(profile.python_version, platform.python_version())
        self.assertGreater(profile.cpu_count, 0)
        self.assertTrue(profile.timestamp)

    def test_tracks_io_libraries(self) -> None:
        libraries = capture_session_profile().libraries
        for name in ("pyarrow", "pandas", "numpy"):
            self.assertIn(name, libraries)

    def test_to_dict_fields(self) -> None:
        d = make_session().to_dict()
        self.assertEqual(d["cpu_model"], "Test CPU @ 3.00GHz")
        self.assertEqual(d["libraries"]["pyarrow"], "17.0.0")
        self.assertIn("timestamp", d)

    def test_json(self) -> None:
        data = json.loads(make_session().to_json())
        self.assertEqual(data["cpu_model"], "Test CPU @ 3.00GHz")
        self.assertEqual(data["libraries"]["pyarrow"], "17.0.0")


class TestLibraryVersions(unittest.TestCase):
    def test_missing_distribution_omitted(self) -> None:
        versions = library_versions(("pandas", "surely-not-installed-xyz"))
        self.assertIn("pandas", versions)
        self.assertNotIn("surely-not-installed-xyz", versions)

    @patch(
        "formatbench.bench.system.metadata.version",
        side_effect=metadata.PackageNotFoundError,
    )
    def test_nothing_installed(self, _mock_version: MagicMock) -> None:
        self.assertEqual(library_versions(), {})


class TestCpuModel(unittest.TestCase):
    @patch("formatbench.bench.system.sys.platform", "linux")
    @patch(
        "formatbench.bench.system.Path.read_text",
        return_value="processor\t: 0\nmodel name\t: Fancy CPU 9000\n",
    )
    def test_proc_cpuinfo(self, _mock_read: MagicMock) -> None:
        self.assertEqual(_cpu_model(), "Fancy CPU 9000")

    @patch("formatbench.bench.system.sys.platform", "linux")
    @patch("formatbench.bench.system.Path.read_text", side_effect=FileNotFoundError)
    @patch("formatbench.bench.system.platform.processor", return_value="")
    def test_no_proc(self, _mock_proc: MagicMock, _mock_read: MagicMock) -> None:
        self.assertIsNone(_cpu_model())

    @patch("formatbench.bench.system.sys.platform", "darwin")
    @patch("formatbench.bench.system.platform.processor", return_value="arm")
    def test_platform_fallback(self, _mock_proc: MagicMock) -> None:
        self.assertEqual(_cpu_model(), "arm")


class TestFormatSessionProfile(unittest.TestCase):
    def test_lines(self) -> None:
        text = format_session_profile(make_session())
        self.assertIn("CPU:       Test CPU @ 3.00GHz (8 logical cores)", text)
        self.assertIn("OS:        Linux 6.8.0 (x86_64)", text)
        self.assertIn("Python:    CPython 3.12.1", text)
        self.assertIn("pyarrow 17.0.0", text)

    def test_no_libraries(self) -> None:
        self.assertIn("Libraries: n/a", format_session_profile(SessionProfile()))


if __name__ == "__main__":
    unittest.main()
