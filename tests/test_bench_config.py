"""Tests for formatbench.bench.config — configuration, profiles, inline candidates."""

from __future__ import annotations

import tempfile
import textwrap
import unittest
from pathlib import Path

from formatbench.bench.candidates import CandidateDef
from formatbench.bench.config import (
    BenchConfig,
    _split_candidate_pairs,
    config_from_profile,
    load_profile,
    parse_inline_candidate,
    validate_config,
)
from formatbench.errors import ConfigError


# ---------------------------------------------------------------------------
# BenchConfig
# ---------------------------------------------------------------------------


class TestBenchConfig(unittest.TestCase):
    def test_defaults(self) -> None:
        config = BenchConfig()
        self.assertEqual(config.iterations, 5)
        self.assertEqual(config.warmup, 0)
        self.assertIsNone(config.min_time)
        self.assertFalse(config.check)
        self.assertTrue(config.memory)
        self.assertEqual(config.data_dir, Path("data"))
        self.assertEqual(config.output_dir, Path("bench_output"))

    def test_bench_id_generated(self) -> None:
        self.assertTrue(BenchConfig().bench_id.startswith("bench_"))
        self.assertEqual(BenchConfig(bench_id="mine").bench_id, "mine")

    def test_time_budget(self) -> None:
        self.assertFalse(BenchConfig().time_budget)
        self.assertTrue(BenchConfig(min_time=0.5).time_budget)

    def test_policy_dict(self) -> None:
        policy = BenchConfig(iterations=7, check=True).policy_dict()
        self.assertEqual(policy["iterations"], 7)
        self.assertIsNone(policy["min_time"])
        self.assertTrue(policy["check"])

        budget = BenchConfig(min_time=2.0, max_iterations=50).policy_dict()
        self.assertIsNone(budget["iterations"])
        self.assertEqual(budget["min_time"], 2.0)
        self.assertEqual(budget["max_iterations"], 50)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class TestValidateConfig(unittest.TestCase):
    def _fields(self, config: BenchConfig, severity: str = "error") -> list[str]:
        return [e.field for e in validate_config(config) if e.severity == severity]

    def test_valid(self) -> None:
        config = BenchConfig(candidates={"pq": CandidateDef(name="pq")})
        self.assertEqual(validate_config(config), [])

    def test_zero_iterations(self) -> None:
        self.assertIn("iterations", self._fields(BenchConfig(iterations=0)))

    def test_few_iterations_warns(self) -> None:
        config = BenchConfig(iterations=2)
        self.assertEqual(self._fields(config), [])
        self.assertIn("iterations", self._fields(config, "warning"))

    def test_negative_warmup(self) -> None:
        self.assertIn("warmup", self._fields(BenchConfig(warmup=-1)))

    def test_time_budget_errors(self) -> None:
        self.assertIn("min_time", self._fields(BenchConfig(min_time=0)))
        fields = self._fields(BenchConfig(min_time=1.0, min_iterations=10, max_iterations=5))
        self.assertIn("max_iterations", fields)

    def test_time_budget_ignores_iteration_count(self) -> None:
        self.assertEqual(self._fields(BenchConfig(min_time=1.0, iterations=0)), [])

    def test_candidate_errors(self) -> None:
        config = BenchConfig(
            candidates={
                "": CandidateDef(name=""),
                "bad_op": CandidateDef(name="bad_op", operation="append"),
                "bad_fmt": CandidateDef(name="bad_fmt", format="rds"),
                "bad_count": CandidateDef(name="bad_count", operation="count"),
            }
        )
        fields = self._fields(config)
        self.assertIn("candidates", fields)
        self.assertIn("candidates.bad_op.op", fields)
        self.assertIn("candidates.bad_fmt.format", fields)
        self.assertIn("candidates.bad_count.group_by", fields)

    def test_data_dir_is_file(self) -> None:
        with tempfile.NamedTemporaryFile() as f:
            self.assertIn("data_dir", self._fields(BenchConfig(data_dir=Path(f.name))))


# ---------------------------------------------------------------------------
# YAML profiles
# ---------------------------------------------------------------------------

PROFILE = textwrap.dedent(
    """\
    name: parquet vs csv
    description: Read the full table
    iterations: 10
    warmup: 2
    check: true
    data_dir: /tmp/fb-data

    candidates:
      parquet_zstd:
        format: parquet:zstd
      csv_arrow:
        op: read
        format: csv:pyarrow
        columns: [event_type, revenue]
      by_country:
        op: count
        format: feather
        group_by: country
      default_read:
    """
)


class TestLoadProfile(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_load(self) -> None:
        path = self.tmp / "profile.yaml"
        path.write_text(PROFILE)
        data = load_profile(path)
        self.assertEqual(data["name"], "parquet vs csv")
        self.assertEqual(
            list(data["candidates"]), ["parquet_zstd", "csv_arrow", "by_country", "default_read"]
        )

    def test_missing(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_profile(self.tmp / "nope.yaml")

    def test_not_a_mapping(self) -> None:
        path = self.tmp / "list.yaml"
        path.write_text("- a\n- b\n")
        with self.assertRaises(ConfigError):
            load_profile(path)

    def test_invalid_yaml(self) -> None:
        path = self.tmp / "broken.yaml"
        path.write_text("name: [unclosed\n")
        with self.assertRaises(ConfigError):
            load_profile(path)


class TestConfigFromProfile(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        path = Path(self._tmp.name) / "profile.yaml"
        path.write_text(PROFILE)
        self.profile = load_profile(path)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_profile_values(self) -> None:
        config = config_from_profile(self.profile)
        self.assertEqual(config.name, "parquet vs csv")
        self.assertEqual(config.description, "Read the full table")
        self.assertEqual(config.iterations, 10)
        self.assertEqual(config.warmup, 2)
        self.assertTrue(config.check)
        self.assertTrue(config.memory)
        self.assertEqual(config.data_dir, Path("/tmp/fb-data"))

    def test_candidates_in_declaration_order(self) -> None:
        config = config_from_profile(self.profile)
        self.assertEqual(
            list(config.candidates), ["parquet_zstd", "csv_arrow", "by_country", "default_read"]
        )
        csv_arrow = config.candidates["csv_arrow"]
        self.assertEqual(csv_arrow.format, "csv:pyarrow")
        self.assertEqual(csv_arrow.columns, ["event_type", "revenue"])
        self.assertEqual(config.candidates["by_country"].group_by, "country")
        default = config.candidates["default_read"]
        self.assertEqual((default.operation, default.format), ("read", "parquet"))

    def test_cli_overrides(self) -> None:
        config = config_from_profile(
            self.profile,
            cli_overrides={
                "iterations": 3,
                "warmup": 0,
                "check": False,
                "memory": False,
                "data_dir": Path("other"),
                "name": None,
            },
        )
        self.assertEqual(config.iterations, 3)
        self.assertEqual(config.warmup, 0)
        self.assertFalse(config.check)
        self.assertFalse(config.memory)
        self.assertEqual(config.data_dir, Path("other"))
        self.assertEqual(config.name, "parquet vs csv")

    def test_cli_iterations_override_profile_budget(self) -> None:
        config = config_from_profile({"min_time": 2.0}, cli_overrides={"iterations": 4})
        self.assertIsNone(config.min_time)
        self.assertEqual(config.iterations, 4)

    def test_cli_min_time(self) -> None:
        config = config_from_profile({}, cli_overrides={"min_time": 0.5, "max_iterations": 20})
        self.assertEqual(config.min_time, 0.5)
        self.assertEqual(config.max_iterations, 20)

    def test_inline_candidates_appended(self) -> None:
        config = config_from_profile(
            self.profile,
            cli_overrides={"candidates": [CandidateDef(name="extra", format="pickle")]},
        )
        self.assertEqual(list(config.candidates)[-1], "extra")

    def test_inline_duplicate_rejected(self) -> None:
        with self.assertRaises(ConfigError):
            config_from_profile(
                self.profile,
                cli_overrides={"candidates": [CandidateDef(name="parquet_zstd")]},
            )

    def test_empty_profile(self) -> None:
        config = config_from_profile({})
        self.assertEqual(config.candidates, {})
        self.assertEqual(config.iterations, 5)

    def test_candidates_must_be_mapping(self) -> None:
        with self.assertRaises(ConfigError):
            config_from_profile({"candidates": ["a", "b"]})
        with self.assertRaises(ConfigError):
            config_from_profile({"candidates": {"a": "parquet"}})


# ---------------------------------------------------------------------------
# Inline candidates
# ---------------------------------------------------------------------------


class TestParseInlineCandidate(unittest.TestCase):
    def test_name_only(self) -> None:
        defn = parse_inline_candidate("pq:")
        self.assertEqual(defn.name, "pq")
        self.assertEqual(defn.operation, "read")
        self.assertEqual(defn.format, "parquet")

    def test_format_with_option(self) -> None:
        defn = parse_inline_candidate("pq:format=parquet:zstd")
        self.assertEqual(defn.format, "parquet:zstd")

    def test_all_keys(self) -> None:
        defn = parse_inline_candidate(
            "n:op=count,format=feather,columns=country+revenue,group_by=country,"
            "path=sub/file.feather,description=Rows per country"
        )
        self.assertEqual(defn.operation, "count")
        self.assertEqual(defn.format, "feather")
        self.assertEqual(defn.columns, ["country", "revenue"])
        self.assertEqual(defn.group_by, "country")
        self.assertEqual(defn.path, "sub/file.feather")
        self.assertEqual(defn.description, "Rows per country")

    def test_description_with_comma(self) -> None:
        defn = parse_inline_candidate("w:op=write,description=zstd, level default")
        self.assertEqual(defn.description, "zstd, level default")

    def test_missing_colon(self) -> None:
        with self.assertRaises(ConfigError):
            parse_inline_candidate("pq")

    def test_empty_name(self) -> None:
        with self.assertRaises(ConfigError):
            parse_inline_candidate(":format=csv")

    def test_unknown_key(self) -> None:
        with self.assertRaises(ConfigError):
            parse_inline_candidate("pq:engine=c")

    def test_pair_without_equals(self) -> None:
        with self.assertRaises(ConfigError):
            parse_inline_candidate("pq:parquet")


class TestSplitCandidatePairs(unittest.TestCase):
    def test_simple(self) -> None:
        self.assertEqual(_split_candidate_pairs("a=1,b=2"), ["a=1", "b=2"])

    def test_rejoins_commas_in_values(self) -> None:
        self.assertEqual(_split_candidate_pairs("a=x, y,b=2"), ["a=x, y", "b=2"])

    def test_skips_empty(self) -> None:
        self.assertEqual(_split_candidate_pairs("a=1,,b=2,"), ["a=1", "b=2"])


if __name__ == "__main__":
    unittest.main()
