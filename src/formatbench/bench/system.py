"""Session characterization for benchmark reports.

File-format timings depend as much on library versions and hardware as
on the formats themselves, so every report carries a short description
of the session that produced it.
"""

from __future__ import annotations

import json
import logging
import os
import platform
import sys
import time
from dataclasses import asdict, dataclass, field
from importlib import metadata
from pathlib import Path
from typing import Any

log = logging.getLogger("formatbench")

TRACKED_LIBRARIES = ("pyarrow", "pandas", "numpy")


@dataclass
class SessionProfile:
    """Hardware, OS, interpreter and library versions of a session."""

    python_version: str = ""
    python_implementation: str = ""
    os_name: str = ""
    os_release: str = ""
    machine: str = ""
    cpu_model: str = "unknown"
    cpu_count: int = 0
    hostname: str = ""
    libraries: dict[str, str] = field(default_factory=dict)
    timestamp: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        """Serialize to a JSON string."""
        return json.dumps(self.to_dict(), indent=indent)


def capture_session_profile() -> SessionProfile:
    """Capture the current session.

    Best-effort: anything that cannot be determined keeps its default.
    """
    profile = SessionProfile(
        python_version=platform.python_version(),
        python_implementation=platform.python_implementation(),
        os_name=platform.system(),
        os_release=platform.release(),
        machine=platform.machine(),
        cpu_count=os.cpu_count() or 0,
        hostname=platform.node(),
        timestamp=time.strftime("%Y-%m-%dT%H:%M:%S%z"),
    )
    profile.cpu_model = _cpu_model() or profile.cpu_model
    profile.libraries = library_versions()
    return profile


def library_versions(names: tuple[str, ...] = TRACKED_LIBRARIES) -> dict[str, str]:
    """Installed versions of *names*; missing distributions are omitted."""
    versions: dict[str, str] = {}
    for name in names:
        try:
            versions[name] = metadata.version(name)
        except metadata.PackageNotFoundError:
            log.debug("Distribution %s not installed", name)
    return versions


def _cpu_model() -> str | None:
    """CPU model name from /proc/cpuinfo (Linux) or platform fallback."""
    if sys.platform == "linux":
        try:
            for line in Path("/proc/cpuinfo").read_text().splitlines():
                if line.startswith("model name"):
                    return line.split(":", 1)[1].strip()
        except OSError as exc:
            log.debug("Cannot read /proc/cpuinfo: %s", exc)
    return platform.processor() or None


def format_session_profile(profile: SessionProfile) -> str:
    """Format a session profile as a short block of text."""
    libs = ", ".join(f"{k} {v}" for k, v in profile.libraries.items()) or "n/a"
    lines = [
        f"CPU:       {profile.cpu_model} ({profile.cpu_count} logical cores)",
        f"OS:        {profile.os_name} {profile.os_release} ({profile.machine})",
        f"Python:    {profile.python_implementation} {profile.python_version}",
        f"Libraries: {libs}",
    ]
    return "\n".join(lines)
