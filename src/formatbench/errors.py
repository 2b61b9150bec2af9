"""Exception hierarchy for formatbench.

Failure scope follows the exception type:

- :class:`DecodeError` / :class:`EncodeError` are fatal to a single
  candidate; the runner records them and moves on.
- :class:`ResultMismatchError` is fatal to the whole run.
- :class:`ConfigError` is raised before anything executes.
"""

from __future__ import annotations


class FormatBenchError(Exception):
    """Base class for all formatbench errors."""


class ConfigError(FormatBenchError, ValueError):
    """Invalid benchmark configuration, profile, or format spec."""


class FormatError(FormatBenchError):
    """A format adapter could not complete an I/O operation."""

    def __init__(self, message: str, *, path: str = "", fmt: str = "") -> None:
        super().__init__(message)
        self.path = path
        self.fmt = fmt


class DecodeError(FormatError):
    """Reading a file failed: missing, unreadable, corrupt, or unsupported."""


class EncodeError(FormatError):
    """Writing a file failed."""


class ResultMismatchError(FormatBenchError):
    """A candidate's result differs from the reference candidate's result."""

    def __init__(self, message: str, *, reference: str = "", candidate: str = "") -> None:
        super().__init__(message)
        self.reference = reference
        self.candidate = candidate
