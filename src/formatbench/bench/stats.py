"""Summary statistics for benchmark timings.

Quantiles use numpy's default linear interpolation, so the numbers
match what an analyst gets from ``DataFrame.describe()`` on the
long-format CSV export.
"""

from __future__ import annotations

import math
import statistics
from dataclasses import asdict, dataclass
from typing import Sequence

import numpy as np


# ---------------------------------------------------------------------------
# Descriptive statistics
# ---------------------------------------------------------------------------


@dataclass
class DescriptiveStats:
    """Summary statistics for one sample of timings (seconds)."""

    n: int
    min: float
    median: float
    mean: float
    max: float
    stdev: float
    q1: float  # 25th percentile
    q3: float  # 75th percentile
    iqr: float
    cv: float  # stdev / mean

    def to_dict(self) -> dict[str, float | int]:
        """Serialize to a dict, timings rounded to microseconds."""
        return {k: v if k == "n" else round(v, 6) for k, v in asdict(self).items()}


def _quartiles(values: Sequence[float]) -> tuple[float, float]:
    q1, q3 = np.percentile(np.asarray(values, dtype=float), [25, 75])
    return float(q1), float(q3)


def describe(values: Sequence[float]) -> DescriptiveStats:
    """Compute descriptive statistics for a sample.

    An empty sample yields NaN everywhere; a single value yields zero
    spread.  ``min <= median <= max`` holds for every non-empty sample.
    """
    n = len(values)
    if n == 0:
        nan = float("nan")
        return DescriptiveStats(0, nan, nan, nan, nan, nan, nan, nan, nan, nan)

    mean = statistics.fmean(values)
    stdev = statistics.stdev(values) if n > 1 else 0.0
    if n == 1:
        cv = 0.0
    elif mean == 0:
        cv = float("inf")
    else:
        cv = stdev / mean
    q1, q3 = _quartiles(values)

    return DescriptiveStats(
        n=n,
        min=min(values),
        median=statistics.median(values),
        mean=mean,
        max=max(values),
        stdev=stdev,
        q1=q1,
        q3=q3,
        iqr=q3 - q1,
        cv=cv,
    )


# ---------------------------------------------------------------------------
# Outliers
# ---------------------------------------------------------------------------


def detect_outliers(
    values: Sequence[float],
    *,
    factor: float = 1.5,
) -> list[bool]:
    """Flag values outside Tukey's fences ``[Q1 - factor*IQR, Q3 + factor*IQR]``.

    Samples shorter than four values never have outliers.
    """
    if len(values) < 4:
        return [False] * len(values)

    q1, q3 = _quartiles(values)
    fence = factor * (q3 - q1)
    return [not (q1 - fence <= v <= q3 + fence) for v in values]


# ---------------------------------------------------------------------------
# Relative speed
# ---------------------------------------------------------------------------


def relative_to_fastest(medians: Sequence[float | None]) -> list[float | None]:
    """Express each median as a multiple of the smallest one.

    ``None`` entries (failed candidates) stay ``None`` and are ignored
    when picking the fastest.  The fastest candidate gets ``1.0``.
    """
    valid = [m for m in medians if m is not None and not math.isnan(m)]
    if not valid:
        return [None] * len(medians)
    fastest = min(valid)
    out: list[float | None] = []
    for m in medians:
        if m is None or math.isnan(m):
            out.append(None)
        elif fastest > 0:
            out.append(m / fastest)
        else:
            out.append(1.0 if m == 0 else float("inf"))
    return out
