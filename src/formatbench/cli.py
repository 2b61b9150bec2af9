"""Command-line interface for formatbench.

Provides the main CLI entry point with the ``generate`` command and the
``bench`` command group.
"""

from __future__ import annotations

from pathlib import Path

import click

from formatbench import __version__
from formatbench.errors import FormatBenchError
from formatbench.logging import setup_logging


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """formatbench — Compare read/write performance of tabular file formats."""


# Register subgroups.
from formatbench.bench_cli import bench as bench_group  # noqa: E402

main.add_command(bench_group)


@main.command()
@click.option("--rows", type=int, default=100_000, show_default=True, help="Rows to generate.")
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("data"),
    show_default=True,
)
@click.option(
    "--format",
    "formats",
    type=str,
    multiple=True,
    help="Format to write, e.g. parquet:zstd (repeatable; default: the comparison set).",
)
@click.option("--seed", type=int, default=42, show_default=True)
@click.option("-v", "--verbose", is_flag=True, help="Show detailed output.")
@click.option("-q", "--quiet", is_flag=True, help="Only show errors.")
def generate(
    rows: int,
    data_dir: Path,
    formats: tuple[str, ...],
    seed: int,
    verbose: bool,
    quiet: bool,
) -> None:
    """Generate the synthetic dataset in every requested format.

    \b
    Examples:
        formatbench generate --rows 1000000
        formatbench generate --data-dir /tmp/data --format parquet:zstd --format csv
    """
    from formatbench.dataset import file_size_mb, generate_table, write_dataset
    from formatbench.formats import parse_format

    setup_logging(verbose=verbose, quiet=quiet)

    try:
        specs = [parse_format(f) for f in formats] or None
        table = generate_table(rows, seed=seed)
        written = write_dataset(table, data_dir, specs)
    except (FormatBenchError, ValueError) as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc

    click.echo(f"{rows:,} rows x {len(table.columns)} columns written to {data_dir}")
    click.echo()
    click.echo(f"{'Format':<18s} {'File':<32s} {'Size (MB)':>10s}")
    click.echo("─" * 62)
    for label, path in written.items():
        click.echo(f"{label:<18s} {path.name:<32s} {file_size_mb(path):>10.2f}")
