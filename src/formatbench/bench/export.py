"""Export benchmark results to CSV, Markdown and JSON.

CSV long format: one row per execution (profile, warm-up and measured),
for pandas/R.  CSV summary: one row per candidate.

Markdown format: a summary table suitable for slides, README files and
GitHub issues.

JSON: the complete run (metadata and every result) as one document.
"""

from __future__ import annotations

import csv
import io
import json

from formatbench.bench.results import BenchMeta, CandidateResult


# ---------------------------------------------------------------------------
# CSV export
# ---------------------------------------------------------------------------


def export_csv(
    meta: BenchMeta,
    results: list[CandidateResult],
) -> str:
    """Export results as CSV (long format).

    One row per candidate x execution, in declaration order.  The
    ``phase`` column tells profiled, warm-up and measured executions
    apart.

    Columns:
        candidate, phase, iteration, wall_time_s, mem_alloc_mb, outlier
    """
    output = io.StringIO()
    writer = csv.writer(output)

    writer.writerow(
        ["candidate", "phase", "iteration", "wall_time_s", "mem_alloc_mb", "outlier"]
    )

    for r in results:
        for m in r.measurements:
            writer.writerow(
                [
                    r.name,
                    m.phase,
                    m.index,
                    f"{m.wall_time_s:.9f}",
                    "" if m.mem_alloc_mb is None else f"{m.mem_alloc_mb:.3f}",
                    m.outlier,
                ]
            )

    return output.getvalue()


def export_csv_summary(
    meta: BenchMeta,
    results: list[CandidateResult],
) -> str:
    """Export summary statistics as CSV.

    One row per candidate, in declaration order.  Failed candidates
    keep their row with empty statistics and the error message.
    """
    output = io.StringIO()
    writer = csv.writer(output)

    writer.writerow(
        [
            "candidate",
            "n",
            "min_s",
            "median_s",
            "mean_s",
            "max_s",
            "stdev_s",
            "cv",
            "relative",
            "mem_alloc_mb",
            "outliers",
            "error",
        ]
    )

    for r in results:
        ws = r.wall_time_stats
        if ws is None:
            stats = [len(r.measured), "", "", "", "", "", ""]
        else:
            stats = [
                ws.n,
                f"{ws.min:.9f}",
                f"{ws.median:.9f}",
                f"{ws.mean:.9f}",
                f"{ws.max:.9f}",
                f"{ws.stdev:.9f}",
                f"{ws.cv:.6f}",
            ]
        writer.writerow(
            [r.name]
            + stats
            + [
                "" if r.relative is None else f"{r.relative:.4f}",
                "" if r.mem_alloc_mb is None else f"{r.mem_alloc_mb:.3f}",
                r.n_outliers,
                r.error,
            ]
        )

    return output.getvalue()


# ---------------------------------------------------------------------------
# Markdown export
# ---------------------------------------------------------------------------


def export_markdown(
    meta: BenchMeta,
    results: list[CandidateResult],
) -> str:
    """Export results as a Markdown report.

    Times are in seconds.  Failed candidates show ``ERROR`` and those
    without measurements show ``N/A``.  With no results the table keeps
    its header rows.
    """
    lines: list[str] = []

    title = meta.name or meta.bench_id
    lines.append(f"# {title}")
    lines.append("")
    if meta.description:
        lines.append(meta.description)
        lines.append("")

    lines.append("## Session")
    lines.append("")
    session = meta.session
    lines.append(f"- **CPU:** {session.cpu_model} ({session.cpu_count} logical cores)")
    lines.append(f"- **OS:** {session.os_name} {session.os_release}")
    lines.append(f"- **Python:** {session.python_implementation} {session.python_version}")
    if session.libraries:
        libs = ", ".join(f"{k} {v}" for k, v in session.libraries.items())
        lines.append(f"- **Libraries:** {libs}")
    lines.append("")

    cfg = meta.config
    if cfg.get("min_time") is not None:
        lines.append(f"Iterations: time budget {cfg['min_time']}s + {cfg.get('warmup', 0)} warmup")
    else:
        lines.append(
            f"Iterations: {cfg.get('iterations', '?')} measured + {cfg.get('warmup', 0)} warmup"
        )
    lines.append("")

    lines.append("## Results")
    lines.append("")
    lines.append(markdown_table(results))

    failed = [r for r in results if r.failed]
    if failed:
        lines.append("")
        lines.append("## Errors")
        lines.append("")
        for r in failed:
            lines.append(f"- **{r.name}**: `{r.error}`")

    lines.append("")
    lines.append(f"*Generated by formatbench on {meta.start_time or 'unknown'}*")

    return "\n".join(lines)


def markdown_table(results: list[CandidateResult]) -> str:
    """Markdown pipe table: candidate, min, median, memory."""
    lines = [
        "| Candidate | Min (s) | Median (s) | Mem alloc (MB) | Relative |",
        "|---|---:|---:|---:|---:|",
    ]
    for r in results:
        ws = r.wall_time_stats
        mem = "" if r.mem_alloc_mb is None else f"{r.mem_alloc_mb:.1f}"
        rel = "" if r.relative is None else f"{r.relative:.2f}x"
        if r.failed or ws is None:
            marker = "ERROR" if r.failed else "N/A"
            lines.append(f"| {r.name} | {marker} | {marker} | {mem} | |")
        else:
            lines.append(f"| {r.name} | {ws.min:.4f} | {ws.median:.4f} | {mem} | {rel} |")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# JSON export
# ---------------------------------------------------------------------------


def export_json(
    meta: BenchMeta,
    results: list[CandidateResult],
) -> str:
    """Export the whole run as a JSON document."""
    doc = {
        "meta": meta.to_dict(),
        "results": [r.to_dict() for r in results],
    }
    return json.dumps(doc, indent=2, default=str) + "\n"
