"""CLI commands for formatbench bench.

Subcommands:
    formatbench bench run       Execute a benchmark and print the report
    formatbench bench formats   List supported formats and codecs
    formatbench bench system    Print session characterization
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from formatbench.bench.results import BenchMeta, CandidateResult
from formatbench.errors import FormatBenchError
from formatbench.logging import setup_logging

REPORT_FORMATS = ("text", "markdown", "csv", "csv-long", "json")


@click.group()
def bench() -> None:
    """Benchmark reading and writing tabular file formats."""


# ---------------------------------------------------------------------------
# bench run
# ---------------------------------------------------------------------------


@bench.command()
@click.option(
    "--profile",
    "profile_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML profile defining benchmark candidates.",
)
@click.option(
    "--candidate",
    "inline_candidates",
    type=str,
    multiple=True,
    help="Inline candidate: 'name:key=value,...' (repeatable).",
)
@click.option("--name", type=str, default=None, help="Human-readable benchmark name.")
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory holding the dataset files (default: data).",
)
@click.option(
    "--output-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory for files written by write candidates (default: bench_output).",
)
@click.option(
    "--iterations",
    type=int,
    default=None,
    help="Measured iterations per candidate (default: 5).",
)
@click.option(
    "--min-time",
    type=float,
    default=None,
    help="Time budget in seconds per candidate, instead of a fixed count.",
)
@click.option(
    "--max-iterations",
    type=int,
    default=None,
    help="Upper bound on iterations with --min-time (default: 1000).",
)
@click.option(
    "--warmup",
    type=int,
    default=None,
    help="Warm-up iterations (default: 0).",
)
@click.option(
    "--check/--no-check",
    default=None,
    help="Compare every candidate's result with the first one (default: off).",
)
@click.option(
    "--memory/--no-memory",
    default=None,
    help="Profile allocated memory in one extra execution (default: on).",
)
@click.option(
    "--format",
    "report_format",
    type=click.Choice(REPORT_FORMATS),
    default="text",
    show_default=True,
    help="Report format.",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the report to a file instead of stdout.",
)
@click.option("-v", "--verbose", is_flag=True, help="Show detailed output.")
@click.option("-q", "--quiet", is_flag=True, help="Only show warnings and errors.")
@click.option("--log-file", type=click.Path(dir_okay=False, path_type=Path), default=None)
def run(  # noqa: PLR0913
    profile_path: Path | None,
    inline_candidates: tuple[str, ...],
    name: str | None,
    data_dir: Path | None,
    output_dir: Path | None,
    iterations: int | None,
    min_time: float | None,
    max_iterations: int | None,
    warmup: int | None,
    check: bool | None,
    memory: bool | None,
    report_format: str,
    output: Path | None,
    verbose: bool,
    quiet: bool,
    log_file: Path | None,
) -> None:
    """Run a benchmark over file-format candidates.

    Use --profile for a YAML profile or --candidate for inline
    candidates.  Without either, every comparison format generated by
    'formatbench generate' is read in full.

    \b
    Examples:
        # From a YAML profile
        formatbench bench run --profile formats.yaml

        # Quick inline comparison with result validation
        formatbench bench run --check \\
            --candidate "pq:format=parquet:zstd" \\
            --candidate "csv:format=csv:pyarrow"

        # Projection and grouping, reported as Markdown
        formatbench bench run --format markdown \\
            --candidate "sub:format=parquet,columns=event_type+revenue" \\
            --candidate "by_country:op=count,format=feather,group_by=country"
    """
    from formatbench.bench.candidates import comparison_candidates
    from formatbench.bench.config import config_from_profile, load_profile, parse_inline_candidate
    from formatbench.bench.runner import BenchRunner

    setup_logging(verbose=verbose, quiet=quiet, log_file=log_file)

    try:
        cli_overrides: dict[str, object] = {
            "name": name,
            "iterations": iterations,
            "min_time": min_time,
            "max_iterations": max_iterations,
            "warmup": warmup,
            "check": check,
            "memory": memory,
            "data_dir": data_dir,
            "output_dir": output_dir,
            "candidates": [parse_inline_candidate(spec) for spec in inline_candidates],
            "cli_args": sys.argv[1:],
        }
        profile_data = load_profile(profile_path) if profile_path else {}
        config = config_from_profile(profile_data, cli_overrides=cli_overrides)
        if not config.candidates:
            for defn in comparison_candidates():
                config.candidates[defn.name] = defn

        runner = BenchRunner(config)
        meta, results = runner.run()
    except (FormatBenchError, FileNotFoundError) as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc
    except KeyboardInterrupt:
        click.echo("\nBenchmark interrupted.", err=True)
        raise SystemExit(130)  # noqa: B904

    text = render_report(meta, results, report_format, show_memory=config.memory)

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(text if text.endswith("\n") else text + "\n")
        click.echo(f"Report written to {output}")
    else:
        click.echo(text.rstrip("\n"))


def render_report(
    meta: BenchMeta,
    results: list[CandidateResult],
    report_format: str,
    *,
    show_memory: bool = True,
) -> str:
    """Render a finished run in one of :data:`REPORT_FORMATS`."""
    from formatbench.bench.display import format_bench_show
    from formatbench.bench.export import (
        export_csv,
        export_csv_summary,
        export_json,
        export_markdown,
    )

    if report_format == "markdown":
        return export_markdown(meta, results)
    if report_format == "csv":
        return export_csv_summary(meta, results)
    if report_format == "csv-long":
        return export_csv(meta, results)
    if report_format == "json":
        return export_json(meta, results)
    return format_bench_show(meta, results, show_memory=show_memory)


# ---------------------------------------------------------------------------
# bench formats
# ---------------------------------------------------------------------------


@bench.command("formats")
def formats_cmd() -> None:
    """List supported formats, compression codecs and CSV engines."""
    from formatbench.formats import DEFAULT_COMPRESSION, supported_formats

    click.echo(f"{'Format':<10s} {'Compression (default first)':<40s} {'Engines':<12s}")
    click.echo("─" * 64)
    for kind, codecs, engines in supported_formats():
        default = DEFAULT_COMPRESSION[kind]
        ordered = [default] + [c for c in codecs if c != default] if default else list(codecs)
        click.echo(
            f"{kind:<10s} {', '.join(ordered) or '-':<40s} {', '.join(engines) or '-':<12s}"
        )
    click.echo()
    click.echo("Use 'kind:option', e.g. parquet:zstd, pickle:gzip, csv:pyarrow.")


# ---------------------------------------------------------------------------
# bench system
# ---------------------------------------------------------------------------


@bench.command("system")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def system_cmd(as_json: bool) -> None:
    """Print session characterization for benchmark documentation."""
    from formatbench.bench.system import capture_session_profile, format_session_profile

    profile = capture_session_profile()

    if as_json:
        click.echo(profile.to_json())
    else:
        click.echo(format_session_profile(profile))
