"""Benchmark result data structures.

Hierarchy::

    BenchMeta (one benchmark execution)
      -> session: SessionProfile
      -> config: iteration policy as a plain dict

    CandidateResult (per candidate, in declaration order)
      -> measurements: list[Measurement]
      -> wall_time_stats: DescriptiveStats   (measured phase only)
      -> mem_alloc_mb, relative, error

Results live only for the duration of a run; ``to_dict`` exists so the
renderers can emit JSON and CSV, not for persistence.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from formatbench.bench.stats import (
    DescriptiveStats,
    describe,
    detect_outliers,
    relative_to_fastest,
)
from formatbench.bench.system import SessionProfile


# ---------------------------------------------------------------------------
# Measurement
# ---------------------------------------------------------------------------


@dataclass
class Measurement:
    """One timed execution of a candidate."""

    candidate: str
    index: int  # 1-based within its phase
    phase: str  # "profile", "warmup" or "measure"
    wall_time_s: float
    mem_alloc_mb: float | None = None
    outlier: bool = False  # set by CandidateResult.compute_stats

    @property
    def measured(self) -> bool:
        """True if this execution counts towards timing statistics."""
        return self.phase == "measure"

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "candidate": self.candidate,
            "index": self.index,
            "phase": self.phase,
            "wall_time_s": round(self.wall_time_s, 9),
            "mem_alloc_mb": None if self.mem_alloc_mb is None else round(self.mem_alloc_mb, 3),
            "outlier": self.outlier,
        }


# ---------------------------------------------------------------------------
# Candidate summary
# ---------------------------------------------------------------------------


@dataclass
class CandidateResult:
    """Summary of all executions of one candidate.

    A failed candidate keeps whatever measurements completed before the
    failure but carries no statistics.
    """

    name: str
    description: str = ""
    measurements: list[Measurement] = field(default_factory=list)
    wall_time_stats: DescriptiveStats | None = None
    mem_alloc_mb: float | None = None
    relative: float | None = None
    error: str = ""

    @property
    def failed(self) -> bool:
        """True if the candidate raised instead of completing."""
        return bool(self.error)

    @property
    def measured(self) -> list[Measurement]:
        """Measurements that count towards timing statistics."""
        return [m for m in self.measurements if m.measured]

    @property
    def wall_times(self) -> list[float]:
        """Wall times of the measured executions."""
        return [m.wall_time_s for m in self.measured]

    @property
    def n_outliers(self) -> int:
        """Number of measured executions flagged as outliers."""
        return sum(1 for m in self.measured if m.outlier)

    def compute_stats(self) -> None:
        """Derive statistics from the measurements.

        Call once all executions are done.  Failed candidates and
        candidates without measured executions get no statistics.
        """
        allocations = [m.mem_alloc_mb for m in self.measurements if m.mem_alloc_mb is not None]
        self.mem_alloc_mb = max(allocations) if allocations else None

        measured = self.measured
        if self.failed or not measured:
            self.wall_time_stats = None
            return

        flags = detect_outliers([m.wall_time_s for m in measured])
        for m, is_outlier in zip(measured, flags):
            m.outlier = is_outlier
        self.wall_time_stats = describe(self.wall_times)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        d: dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "measurements": [m.to_dict() for m in self.measurements],
            "mem_alloc_mb": None if self.mem_alloc_mb is None else round(self.mem_alloc_mb, 3),
            "relative": None if self.relative is None else round(self.relative, 4),
        }
        if self.wall_time_stats:
            d["wall_time_stats"] = self.wall_time_stats.to_dict()
        if self.error:
            d["error"] = self.error
        return d


def assign_relative(results: list[CandidateResult]) -> None:
    """Set ``relative`` on every result: median over the fastest median."""
    medians = [r.wall_time_stats.median if r.wall_time_stats else None for r in results]
    for r, rel in zip(results, relative_to_fastest(medians)):
        r.relative = rel


# ---------------------------------------------------------------------------
# Run-level metadata
# ---------------------------------------------------------------------------


@dataclass
class BenchMeta:
    """Metadata for a complete benchmark run."""

    bench_id: str
    name: str = ""
    description: str = ""
    session: SessionProfile = field(default_factory=SessionProfile)
    config: dict[str, Any] = field(default_factory=dict)
    cli_args: list[str] = field(default_factory=list)
    start_time: str = ""
    end_time: str = ""
    candidates_total: int = 0
    candidates_completed: int = 0
    candidates_failed: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "bench_id": self.bench_id,
            "name": self.name,
            "description": self.description,
            "session": self.session.to_dict(),
            "config": self.config,
            "cli_args": self.cli_args,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "candidates_total": self.candidates_total,
            "candidates_completed": self.candidates_completed,
            "candidates_failed": self.candidates_failed,
        }
