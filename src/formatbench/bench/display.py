"""Terminal display formatting for benchmark results.

Produces aligned tables and summaries for benchmark data.  Pure
formatting: every number shown is read from a CandidateResult, nothing
is computed here.
"""

from __future__ import annotations

import math

from formatbench.bench.results import BenchMeta, CandidateResult
from formatbench.bench.system import format_session_profile

ERROR_MARKER = "ERROR"


# ---------------------------------------------------------------------------
# Table formatting utilities
# ---------------------------------------------------------------------------


def _format_time(seconds: float | None, precision: int = 2) -> str:
    """Format a time value with adaptive units."""
    if seconds is None or math.isnan(seconds):
        return "N/A"
    if seconds < 0.001:
        return f"{seconds * 1_000_000:.0f}µs"
    if seconds < 1:
        return f"{seconds * 1000:.{precision}f}ms"
    if seconds < 60:
        return f"{seconds:.{precision}f}s"
    minutes = int(seconds // 60)
    secs = seconds % 60
    return f"{minutes}m{secs:.0f}s"


def _format_mb(value: float | None) -> str:
    if value is None:
        return "-"
    if value < 10:
        return f"{value:.2f}MB"
    return f"{value:.1f}MB"


def _format_relative(value: float | None) -> str:
    if value is None or math.isnan(value):
        return "-"
    if math.isinf(value):
        return "inf"
    return f"{value:.2f}x"


# ---------------------------------------------------------------------------
# Summary table
# ---------------------------------------------------------------------------


def format_summary_table(
    results: list[CandidateResult],
    *,
    show_memory: bool = True,
    show_relative: bool = True,
) -> str:
    """Format one row per candidate, in the order given.

    Failed candidates show ``ERROR`` instead of timings; their messages
    follow the table.  An empty list yields the header and rule only.
    """
    name_width = max([len("Candidate")] + [len(r.name) for r in results])
    name_width = min(max(name_width, 20), 40)

    header = f"{'Candidate':<{name_width}s} {'Min':>10s} {'Median':>10s} {'Mean':>10s}"
    if show_relative:
        header += f" {'Relative':>9s}"
    if show_memory:
        header += f" {'Mem alloc':>10s}"
    header += f" {'Iter':>5s}"

    lines = [header, "─" * len(header)]

    for r in results:
        name = r.name if len(r.name) <= name_width else r.name[: name_width - 1] + "…"
        ws = r.wall_time_stats
        if r.failed or ws is None:
            marker = ERROR_MARKER if r.failed else "N/A"
            row = f"{name:<{name_width}s} {marker:>10s} {marker:>10s} {marker:>10s}"
        else:
            row = (
                f"{name:<{name_width}s} {_format_time(ws.min):>10s} "
                f"{_format_time(ws.median):>10s} {_format_time(ws.mean):>10s}"
            )
        if show_relative:
            row += f" {_format_relative(r.relative):>9s}"
        if show_memory:
            row += f" {_format_mb(r.mem_alloc_mb):>10s}"
        row += f" {len(r.measured):>5d}"
        lines.append(row)

    errors = format_errors(results)
    if errors:
        lines.append("")
        lines.append(errors)

    return "\n".join(lines)


def format_errors(results: list[CandidateResult]) -> str:
    """List failed candidates with their error messages ("" if none)."""
    failed = [r for r in results if r.failed]
    if not failed:
        return ""
    lines = [f"Errors ({len(failed)}):"]
    for r in failed:
        lines.append(f"  {r.name}: {r.error}")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Full run display
# ---------------------------------------------------------------------------


def _format_policy(config: dict[str, object]) -> str:
    if config.get("min_time") is not None:
        policy = (
            f"Iterations: time budget {config['min_time']}s per candidate "
            f"({config.get('min_iterations', '?')}-{config.get('max_iterations', '?')} runs)"
        )
    else:
        policy = f"Iterations: {config.get('iterations', '?')} measured"
    policy += f" + {config.get('warmup', 0)} warmup"
    if config.get("memory"):
        policy += " + 1 profiled"
    return policy


def format_bench_show(
    meta: BenchMeta,
    results: list[CandidateResult],
    *,
    show_memory: bool = True,
) -> str:
    """Format a complete benchmark run for display.

    Shows the session, the iteration policy and the summary table.

    Args:
        meta: BenchMeta instance.
        results: List of CandidateResult in declaration order.
        show_memory: Include the memory column.

    Returns:
        Formatted string for terminal output.
    """
    lines: list[str] = []

    title = meta.name or meta.bench_id
    lines.append(title)
    lines.append("─" * len(title))
    if meta.description:
        lines.append(meta.description)
    lines.append("")

    lines.append(format_session_profile(meta.session))
    lines.append("")

    cfg = meta.config
    lines.append(_format_policy(cfg))
    lines.append(f"Check results: {'yes' if cfg.get('check') else 'no'}")
    lines.append(
        f"Candidates: {meta.candidates_completed} completed, {meta.candidates_failed} failed"
    )
    if meta.start_time and meta.end_time:
        lines.append(f"Time: {meta.start_time} → {meta.end_time}")
    lines.append("")

    lines.append(format_summary_table(results, show_memory=show_memory))

    return "\n".join(lines)
