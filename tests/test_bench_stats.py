"""Tests for formatbench.bench.stats — summary statistics for timings."""

from __future__ import annotations

import math
import random
import unittest

from formatbench.bench.stats import (
    _quartiles,
    describe,
    detect_outliers,
    relative_to_fastest,
)


# ---------------------------------------------------------------------------
# Descriptive statistics
# ---------------------------------------------------------------------------


class TestDescribe(unittest.TestCase):
    """Tests for describe() and DescriptiveStats."""

    def test_describe_basic(self) -> None:
        """Known-value test with a small sample."""
        values = [2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0]
        stats = describe(values)
        self.assertEqual(stats.n, 8)
        self.assertAlmostEqual(stats.mean, 5.0, places=5)
        self.assertAlmostEqual(stats.median, 4.5, places=5)
        self.assertAlmostEqual(stats.min, 2.0, places=5)
        self.assertAlmostEqual(stats.max, 9.0, places=5)
        self.assertGreater(stats.stdev, 0)
        self.assertGreater(stats.iqr, 0)

    def test_describe_single_value(self) -> None:
        """Single value: stdev and CV should be 0."""
        stats = describe([0.042])
        self.assertEqual(stats.n, 1)
        self.assertAlmostEqual(stats.min, 0.042)
        self.assertAlmostEqual(stats.median, 0.042)
        self.assertAlmostEqual(stats.stdev, 0.0)
        self.assertAlmostEqual(stats.cv, 0.0)

    def test_describe_empty(self) -> None:
        """Empty input: all fields should be NaN."""
        stats = describe([])
        self.assertEqual(stats.n, 0)
        self.assertTrue(math.isnan(stats.min))
        self.assertTrue(math.isnan(stats.median))
        self.assertTrue(math.isnan(stats.cv))

    def test_describe_unsorted_input(self) -> None:
        stats = describe([0.3, 0.1, 0.2])
        self.assertAlmostEqual(stats.min, 0.1)
        self.assertAlmostEqual(stats.median, 0.2)
        self.assertAlmostEqual(stats.max, 0.3)

    def test_min_never_exceeds_median(self) -> None:
        """min <= median <= max for arbitrary non-empty samples."""
        rng = random.Random(1234)
        for _ in range(200):
            n = rng.randint(1, 25)
            values = [rng.expovariate(50.0) for _ in range(n)]
            stats = describe(values)
            self.assertLessEqual(stats.min, stats.median)
            self.assertLessEqual(stats.median, stats.max)

    def test_to_dict_rounds(self) -> None:
        d = describe([0.1234567891, 0.2]).to_dict()
        self.assertEqual(d["n"], 2)
        self.assertEqual(d["min"], 0.123457)


class TestQuartiles(unittest.TestCase):
    def test_linear_interpolation(self) -> None:
        self.assertEqual(_quartiles([4.0, 1.0, 3.0, 2.0]), (1.75, 3.25))

    def test_exact_rank(self) -> None:
        self.assertEqual(_quartiles([1.0, 2.0, 3.0, 4.0, 5.0]), (2.0, 4.0))

    def test_single(self) -> None:
        self.assertEqual(_quartiles([7.0]), (7.0, 7.0))


# ---------------------------------------------------------------------------
# Outliers
# ---------------------------------------------------------------------------


class TestDetectOutliers(unittest.TestCase):
    def test_flags_slow_run(self) -> None:
        flags = detect_outliers([1.0, 1.1, 1.0, 1.05, 0.98, 5.0])
        self.assertEqual(flags, [False, False, False, False, False, True])

    def test_short_sample_has_no_outliers(self) -> None:
        self.assertEqual(detect_outliers([1.0, 100.0, 1.0]), [False, False, False])

    def test_uniform_sample(self) -> None:
        self.assertEqual(detect_outliers([2.0] * 6), [False] * 6)


# ---------------------------------------------------------------------------
# Relative speed
# ---------------------------------------------------------------------------


class TestRelativeToFastest(unittest.TestCase):
    def test_fastest_is_one(self) -> None:
        rel = relative_to_fastest([0.2, 0.1, 0.4])
        self.assertAlmostEqual(rel[0], 2.0)
        self.assertAlmostEqual(rel[1], 1.0)
        self.assertAlmostEqual(rel[2], 4.0)

    def test_none_and_nan_stay_none(self) -> None:
        rel = relative_to_fastest([None, 0.5, float("nan")])
        self.assertIsNone(rel[0])
        self.assertAlmostEqual(rel[1], 1.0)
        self.assertIsNone(rel[2])

    def test_all_missing(self) -> None:
        self.assertEqual(relative_to_fastest([None, None]), [None, None])

    def test_empty(self) -> None:
        self.assertEqual(relative_to_fastest([]), [])

    def test_zero_fastest(self) -> None:
        self.assertEqual(relative_to_fastest([0.0, 0.0]), [1.0, 1.0])


if __name__ == "__main__":
    unittest.main()
