"""Synthetic dataset generation and input-file preparation.

The generated table models web interaction events.  Column types are
limited to the ones every supported format round-trips unchanged
(int64, float64 with missing values, strings, booleans), so a file
written in one format and read back compares equal to the original.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

import numpy as np
import pandas as pd

from formatbench.formats import FormatSpec, comparison_formats, get_adapter, parse_format
from formatbench.logging import get_logger

log = get_logger("dataset")

EVENT_TYPES = ["page_view", "click", "scroll", "purchase", "logout"]
DEVICES = ["mobile", "desktop", "tablet"]
COUNTRIES = ["US", "DE", "GB", "FR", "JP", "BR", "IN", "CA", "AU", "KR"]

DEFAULT_STEM = "dataset"


def generate_table(n_rows: int, *, seed: int = 42) -> pd.DataFrame:
    """Generate a deterministic synthetic event table with *n_rows* rows.

    Columns:
      - event_id     : int64, 1..n
      - user_id      : int64 in [1, 100_000]
      - event_type   : string, 5 categories
      - device       : string, 3 categories (skewed)
      - country      : string, 10 categories
      - duration_sec : float64 rounded to 3 decimals, ~10% missing
      - revenue      : float64 rounded to 2 decimals, only set for purchases
      - is_returning : bool
    """
    if n_rows < 0:
        raise ValueError(f"n_rows must be non-negative (got {n_rows})")

    rng = np.random.default_rng(seed)

    event_type = rng.choice(EVENT_TYPES, size=n_rows)
    device = rng.choice(DEVICES, size=n_rows, p=[0.55, 0.35, 0.10])
    country = rng.choice(COUNTRIES, size=n_rows)

    duration_sec = np.round(rng.uniform(0.5, 300.0, size=n_rows), 3)
    duration_sec[rng.random(n_rows) < 0.10] = np.nan

    revenue = np.full(n_rows, np.nan)
    purchases = event_type == "purchase"
    revenue[purchases] = np.round(rng.lognormal(mean=3.5, sigma=1.0, size=int(purchases.sum())), 2)

    return pd.DataFrame(
        {
            "event_id": np.arange(1, n_rows + 1, dtype=np.int64),
            "user_id": rng.integers(1, 100_001, size=n_rows, dtype=np.int64),
            "event_type": event_type.tolist(),
            "device": device.tolist(),
            "country": country.tolist(),
            "duration_sec": duration_sec,
            "revenue": revenue,
            "is_returning": rng.random(n_rows) < 0.4,
        }
    )


def write_dataset(
    table: pd.DataFrame,
    data_dir: Path,
    formats: Iterable[FormatSpec | str] | None = None,
    *,
    stem: str = DEFAULT_STEM,
) -> dict[str, Path]:
    """Write *table* once per format into *data_dir*.

    Formats that map to the same file (e.g. ``csv`` and ``csv:pyarrow``)
    are written once.

    Returns:
        Mapping of format label to the written path, in input order.
    """
    data_dir.mkdir(parents=True, exist_ok=True)
    specs = [
        parse_format(f) if isinstance(f, str) else f for f in (formats or comparison_formats())
    ]

    written: dict[str, Path] = {}
    seen: set[Path] = set()
    for spec in specs:
        path = data_dir / spec.filename(stem)
        if path not in seen:
            get_adapter(spec).encode(table, path)
            seen.add(path)
            log.info("Wrote %-18s %s (%.2f MB)", spec.label, path, file_size_mb(path))
        written[spec.label] = path
    return written


def file_size_mb(path: Path) -> float:
    """Return the size of *path* in megabytes."""
    return path.stat().st_size / (1024**2)
