"""Benchmark candidates: named, zero-argument file operations.

A :class:`Candidate` is what the runner executes.  Candidates are built
from declarative :class:`CandidateDef` entries (YAML profile or inline
CLI spec) against an explicit :class:`BenchContext`, which carries the
directories and source table every candidate needs.  Nothing is read
from process-wide state.

Operations:

- ``read``  : decode a file, optionally projecting columns.
- ``write`` : encode the context's source table to a file.
- ``count`` : decode a file, then count rows per ``group_by`` value.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterable, Sequence

import pandas as pd

from formatbench.dataset import DEFAULT_STEM
from formatbench.errors import ConfigError, DecodeError
from formatbench.formats import (
    FormatAdapter,
    FormatSpec,
    comparison_formats,
    get_adapter,
    parse_format,
)

log = logging.getLogger("formatbench")

OPERATIONS = ("read", "write", "count")

# Source table for write candidates when none is supplied in memory.
SOURCE_FORMAT = FormatSpec("parquet", "snappy")


# ---------------------------------------------------------------------------
# Candidate
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Candidate:
    """A named operation to benchmark.

    ``fn`` takes no arguments and returns the tabular result of the
    operation (``None`` for writes).
    """

    name: str
    fn: Callable[[], Any] = field(repr=False)
    description: str = ""


@dataclass
class CandidateDef:
    """Declarative definition of a candidate."""

    name: str
    operation: str = "read"
    format: str = "parquet"
    columns: list[str] | None = None
    group_by: str | None = None
    path: str | None = None
    description: str = ""

    @classmethod
    def from_dict(cls, name: str, data: dict[str, Any]) -> CandidateDef:
        """Build from a profile mapping entry.

        ``columns`` may be a list or a comma-separated string.
        """
        columns = data.get("columns")
        if isinstance(columns, str):
            columns = [c.strip() for c in columns.split(",") if c.strip()]
        return cls(
            name=name,
            operation=data.get("op", data.get("operation", "read")),
            format=str(data.get("format", "parquet")),
            columns=list(columns) if columns else None,
            group_by=data.get("group_by"),
            path=data.get("path"),
            description=data.get("description", ""),
        )


# ---------------------------------------------------------------------------
# Context
# ---------------------------------------------------------------------------


@dataclass
class BenchContext:
    """Inputs shared by the candidates of one run.

    Passed explicitly to every builder.  ``table`` is the in-memory
    source for write candidates; when it is ``None`` it is loaded from
    the parquet dataset in ``data_dir`` the first time a write
    candidate is built.
    """

    data_dir: Path
    output_dir: Path
    table: pd.DataFrame | None = None
    stem: str = DEFAULT_STEM

    def input_path(self, spec: FormatSpec) -> Path:
        """Default dataset path for *spec* inside ``data_dir``."""
        return self.data_dir / spec.filename(self.stem)

    def source_table(self) -> pd.DataFrame:
        """The table written by write candidates."""
        if self.table is None:
            path = self.input_path(SOURCE_FORMAT)
            if not path.exists():
                raise DecodeError(
                    f"Write candidates need a source table but {path} does not exist. "
                    f"Run 'formatbench generate --data-dir {self.data_dir}' first.",
                    path=str(path),
                    fmt=SOURCE_FORMAT.label,
                )
            log.info("Loading source table from %s", path)
            self.table = get_adapter(SOURCE_FORMAT).decode(path)
        return self.table


# ---------------------------------------------------------------------------
# Candidate builders
# ---------------------------------------------------------------------------


def read_candidate(
    name: str,
    adapter: FormatAdapter,
    path: Path,
    columns: Sequence[str] | None = None,
    *,
    description: str = "",
) -> Candidate:
    """Candidate that decodes *path*."""
    cols = list(columns) if columns else None

    def _read() -> pd.DataFrame:
        return adapter.decode(path, cols)

    return Candidate(name=name, fn=_read, description=description)


def write_candidate(
    name: str,
    adapter: FormatAdapter,
    table: pd.DataFrame,
    path: Path,
    *,
    description: str = "",
) -> Candidate:
    """Candidate that encodes *table* to *path*."""

    def _write() -> None:
        adapter.encode(table, path)

    return Candidate(name=name, fn=_write, description=description)


def unavailable_candidate(
    name: str,
    error: Exception,
    *,
    description: str = "",
) -> Candidate:
    """Candidate whose every execution raises *error*.

    Used when an input cannot be loaded at build time, so the failure is
    recorded against this candidate instead of aborting the run.
    """

    def _fail() -> None:
        raise error

    return Candidate(name=name, fn=_fail, description=description)


def count_candidate(
    name: str,
    adapter: FormatAdapter,
    path: Path,
    group_by: str,
    columns: Sequence[str] | None = None,
    *,
    description: str = "",
) -> Candidate:
    """Candidate that decodes *path* and counts rows per *group_by* value.

    The result has two columns, ``group_by`` and ``n``, sorted by key.
    """
    cols = list(columns) if columns else None

    def _count() -> pd.DataFrame:
        table = adapter.decode(path, cols)
        return table.groupby(group_by, sort=True).size().reset_index(name="n")

    return Candidate(name=name, fn=_count, description=description)


def _slug(name: str) -> str:
    return re.sub(r"[^A-Za-z0-9_.-]+", "_", name).strip("_") or "candidate"


def _resolve_path(raw: str | None, base: Path, default: Path) -> Path:
    if not raw:
        return default
    path = Path(raw).expanduser()
    return path if path.is_absolute() else base / path


def build_candidate(defn: CandidateDef, context: BenchContext) -> Candidate:
    """Turn a definition into an executable candidate.

    Relative ``path`` values resolve against ``data_dir`` for reads and
    against ``output_dir`` for writes.

    A write whose source table cannot be loaded becomes an
    :func:`unavailable_candidate` that fails when run.

    Raises:
        ConfigError: Unknown operation or format, or inconsistent options.
    """
    if defn.operation not in OPERATIONS:
        raise ConfigError(
            f"Candidate '{defn.name}': unknown operation '{defn.operation}'. "
            f"Valid operations: {', '.join(OPERATIONS)}"
        )
    spec = parse_format(defn.format)
    adapter = get_adapter(spec)
    description = defn.description or f"{defn.operation} {spec.label}"

    if defn.operation == "write":
        if defn.columns or defn.group_by:
            raise ConfigError(f"Candidate '{defn.name}': write takes no columns or group_by")
        context.output_dir.mkdir(parents=True, exist_ok=True)
        path = _resolve_path(
            defn.path,
            context.output_dir,
            context.output_dir / f"{_slug(defn.name)}{spec.extension}",
        )
        try:
            table = context.source_table()
        except DecodeError as exc:
            log.warning("Candidate '%s' has no source table: %s", defn.name, exc)
            return unavailable_candidate(defn.name, exc, description=description)
        return write_candidate(defn.name, adapter, table, path, description=description)

    path = _resolve_path(defn.path, context.data_dir, context.input_path(spec))

    if defn.operation == "count":
        if not defn.group_by:
            raise ConfigError(f"Candidate '{defn.name}': count requires group_by")
        if defn.columns and defn.group_by not in defn.columns:
            raise ConfigError(
                f"Candidate '{defn.name}': group_by column '{defn.group_by}' "
                f"is not among the projected columns"
            )
        return count_candidate(
            defn.name, adapter, path, defn.group_by, defn.columns, description=description
        )

    if defn.group_by:
        raise ConfigError(f"Candidate '{defn.name}': group_by only applies to count")
    return read_candidate(defn.name, adapter, path, defn.columns, description=description)


def build_candidates(
    defs: Iterable[CandidateDef],
    context: BenchContext,
) -> list[Candidate]:
    """Build candidates in declaration order, rejecting duplicate names."""
    candidates: list[Candidate] = []
    seen: set[str] = set()
    for defn in defs:
        if defn.name in seen:
            raise ConfigError(f"Duplicate candidate name '{defn.name}'")
        seen.add(defn.name)
        candidates.append(build_candidate(defn, context))
    return candidates


def comparison_candidates() -> list[CandidateDef]:
    """One full read per comparison format, named by format label."""
    return [
        CandidateDef(name=spec.label, operation="read", format=spec.to_text())
        for spec in comparison_formats()
    ]
