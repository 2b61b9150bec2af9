"""Benchmark execution engine.

Orchestrates:
1. Configuration validation and candidate construction
2. Session profiling
3. Per-candidate execution: profile, warmup and measured phases
4. Result validation against the reference candidate (``check``)
5. Progress reporting

Candidates run strictly one after another, in declaration order, each
to completion before the next starts.  A candidate that raises is
recorded as failed and the run moves on; a result mismatch aborts the
whole run.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Sequence

from formatbench.bench.candidates import BenchContext, Candidate, build_candidates
from formatbench.bench.config import BenchConfig, validate_config
from formatbench.bench.results import BenchMeta, CandidateResult, Measurement, assign_relative
from formatbench.bench.system import capture_session_profile, format_session_profile
from formatbench.bench.timing import TimedResult, run_profiled, run_timed
from formatbench.compare import assert_tables_equal
from formatbench.errors import ConfigError, ResultMismatchError

log = logging.getLogger("formatbench")


# ---------------------------------------------------------------------------
# Progress callback
# ---------------------------------------------------------------------------


@dataclass
class BenchProgress:
    """Progress info passed to the callback."""

    phase: str  # "profile", "warmup", "measure", "done"
    candidate: str
    iteration: int  # 1-based within the phase
    total_iterations: int  # 0 when driven by a time budget
    candidates_done: int
    candidates_total: int
    wall_time_s: float = 0.0
    status: str = ""  # "ok" or "error"


# Type alias for the progress callback.
ProgressCallback = Any  # Callable[[BenchProgress], None] | None


@dataclass
class _Reference:
    """First result seen while ``check`` is enabled."""

    candidate: str
    value: Any


# ---------------------------------------------------------------------------
# BenchRunner
# ---------------------------------------------------------------------------


class BenchRunner:
    """Executes a benchmark run according to a BenchConfig.

    Usage::

        config = BenchConfig(candidates={...}, check=True)
        runner = BenchRunner(config)
        meta, results = runner.run()

    Candidates can also be passed directly to :meth:`run`, in which case
    ``config.candidates`` is ignored.
    """

    def __init__(
        self,
        config: BenchConfig,
        progress_callback: ProgressCallback = None,
        *,
        context: BenchContext | None = None,
    ) -> None:
        self.config = config
        self.progress: Any = progress_callback or self._default_progress
        self.context = context or BenchContext(
            data_dir=config.data_dir,
            output_dir=config.output_dir,
        )
        self._reference: _Reference | None = None

    def run(
        self,
        candidates: Sequence[Candidate] | None = None,
    ) -> tuple[BenchMeta, list[CandidateResult]]:
        """Execute the full benchmark.

        Returns:
            Tuple of (BenchMeta, list of CandidateResult) in declaration
            order.

        Raises:
            ConfigError: If the configuration or candidate set is invalid.
            ResultMismatchError: If ``check`` is enabled and a candidate's
                result differs from the reference.
        """
        # Phase 1: Validate configuration.
        errors = validate_config(self.config)
        fatal = [e for e in errors if e.severity == "error"]
        warnings = [e for e in errors if e.severity == "warning"]
        for w in warnings:
            log.warning("Config warning: %s: %s", w.field, w.message)
        if fatal:
            messages = [f"  {e.field}: {e.message}" for e in fatal]
            raise ConfigError("Invalid benchmark configuration:\n" + "\n".join(messages))

        # Phase 2: Candidates.
        if candidates is None:
            candidates = build_candidates(self.config.candidates.values(), self.context)
        candidates = list(candidates)
        if not candidates:
            raise ConfigError(
                "No benchmark candidates defined. "
                "Use --profile or --candidate to define at least one."
            )
        names = [c.name for c in candidates]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ConfigError(f"Duplicate candidate names: {', '.join(duplicates)}")

        # Phase 3: Session profiling.
        log.info("Capturing session profile...")
        session = capture_session_profile()
        log.info("\n%s", format_session_profile(session))

        meta = BenchMeta(
            bench_id=self.config.bench_id,
            name=self.config.name,
            description=self.config.description,
            session=session,
            config=self.config.policy_dict(),
            cli_args=self.config.cli_args,
            start_time=time.strftime("%Y-%m-%dT%H:%M:%S%z"),
            candidates_total=len(candidates),
        )
        log.info("Benchmarking %d candidates", len(candidates))

        # Phase 4: Execute.
        self._reference = None
        results: list[CandidateResult] = []
        try:
            for idx, candidate in enumerate(candidates):
                results.append(self._benchmark_candidate(candidate, idx, len(candidates)))
        finally:
            self._reference = None

        # Phase 5: Finalize.
        assign_relative(results)
        meta.end_time = time.strftime("%Y-%m-%dT%H:%M:%S%z")
        meta.candidates_failed = sum(1 for r in results if r.failed)
        meta.candidates_completed = len(results) - meta.candidates_failed
        log.info(
            "Benchmark complete: %d candidates, %d failed",
            meta.candidates_total,
            meta.candidates_failed,
        )
        return meta, results

    def _benchmark_candidate(
        self,
        candidate: Candidate,
        idx: int,
        total: int,
    ) -> CandidateResult:
        """Run every phase of one candidate and summarize it."""
        result = CandidateResult(name=candidate.name, description=candidate.description)
        config = self.config
        checked = not config.check

        def execute(phase: str, index: int, total_iterations: int) -> TimedResult:
            nonlocal checked
            if phase == "profile":
                timed = run_profiled(candidate.fn)
            else:
                timed = run_timed(candidate.fn)
            result.measurements.append(
                Measurement(
                    candidate=candidate.name,
                    index=index,
                    phase=phase,
                    wall_time_s=timed.wall_time_s,
                    mem_alloc_mb=timed.mem_alloc_mb,
                )
            )
            if not checked:
                self._check_result(candidate.name, timed.value)
                checked = True
            # Drop the decoded table before the next execution.
            timed.value = None
            self.progress(
                BenchProgress(
                    phase=phase,
                    candidate=candidate.name,
                    iteration=index,
                    total_iterations=total_iterations,
                    candidates_done=idx,
                    candidates_total=total,
                    wall_time_s=timed.wall_time_s,
                    status="ok",
                )
            )
            return timed

        try:
            if config.memory:
                execute("profile", 1, 1)
            for i in range(config.warmup):
                execute("warmup", i + 1, config.warmup)
            if config.time_budget:
                assert config.min_time is not None
                spent = 0.0
                n = 0
                while n < config.max_iterations and (
                    n < config.min_iterations or spent < config.min_time
                ):
                    n += 1
                    spent += execute("measure", n, 0).wall_time_s
            else:
                for i in range(config.iterations):
                    execute("measure", i + 1, config.iterations)
        except ResultMismatchError:
            raise
        except Exception as exc:  # noqa: BLE001
            result.error = f"{type(exc).__name__}: {exc}"
            log.error("Candidate '%s' failed: %s", candidate.name, result.error)
            log.debug("Failure details for '%s'", candidate.name, exc_info=True)

        result.compute_stats()
        self.progress(
            BenchProgress(
                phase="done",
                candidate=candidate.name,
                iteration=len(result.measured),
                total_iterations=len(result.measured),
                candidates_done=idx + 1,
                candidates_total=total,
                wall_time_s=result.wall_time_stats.median if result.wall_time_stats else 0.0,
                status="error" if result.failed else "ok",
            )
        )
        return result

    def _check_result(self, name: str, value: Any) -> None:
        """Compare *value* with the reference result, or make it the reference."""
        if self._reference is None:
            log.debug("Reference result for check: '%s'", name)
            self._reference = _Reference(candidate=name, value=value)
            return
        assert_tables_equal(
            self._reference.value,
            value,
            reference=self._reference.candidate,
            candidate=name,
        )
        log.debug("Result of '%s' matches '%s'", name, self._reference.candidate)

    @staticmethod
    def _default_progress(progress: BenchProgress) -> None:
        """Default progress callback: log one line per execution."""
        markers = {"profile": "P", "warmup": "W", "measure": "M"}
        cand_progress = f"[{progress.candidates_done + 1}/{progress.candidates_total}]"

        if progress.phase == "done":
            if progress.status == "error":
                return  # already logged by the runner
            log.info(
                "  [%d/%d] %-30s done (%d measured)",
                progress.candidates_done,
                progress.candidates_total,
                progress.candidate,
                progress.iteration,
            )
            return

        marker = markers.get(progress.phase, " ")
        if progress.total_iterations:
            count = f"{marker}{progress.iteration}/{progress.total_iterations}"
        else:
            count = f"{marker}{progress.iteration}"
        line = f"  {cand_progress} {progress.candidate:30s} {count:>8s} "
        if progress.wall_time_s:
            line += f"{progress.wall_time_s:10.6f}s "
        if progress.status and progress.status != "ok":
            line += f"[{progress.status}]"
        log.info(line.rstrip())
