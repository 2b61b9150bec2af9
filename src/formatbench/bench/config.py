"""Benchmark configuration and profile loading.

Handles:
- Loading benchmark profiles from YAML files.
- Parsing inline candidate definitions from CLI arguments.
- Merging CLI options with profile defaults.
- Validating the final configuration before execution.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from formatbench.bench.candidates import OPERATIONS, CandidateDef
from formatbench.errors import ConfigError
from formatbench.formats import parse_format

log = logging.getLogger("formatbench")


# ---------------------------------------------------------------------------
# BenchConfig
# ---------------------------------------------------------------------------


@dataclass
class BenchConfig:
    """Resolved configuration for a benchmark run."""

    # Identity
    bench_id: str = ""  # Auto-generated if empty
    name: str = ""
    description: str = ""

    # Candidates to compare, in declaration order
    candidates: dict[str, CandidateDef] = field(default_factory=dict)

    # Iteration control
    iterations: int = 5  # Measured iterations when no time budget is set
    warmup: int = 0
    min_time: float | None = None  # Time budget in seconds per candidate
    min_iterations: int = 1  # Bounds for the time-budget mode
    max_iterations: int = 1000

    # Result validation
    check: bool = False

    # Memory profiling (one extra, untimed execution per candidate)
    memory: bool = True

    # Paths
    data_dir: Path = field(default_factory=lambda: Path("data"))
    output_dir: Path = field(default_factory=lambda: Path("bench_output"))

    # CLI provenance
    cli_args: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.bench_id:
            self.bench_id = f"bench_{time.strftime('%Y%m%d_%H%M%S')}"

    @property
    def time_budget(self) -> bool:
        """Whether iterations are driven by ``min_time`` instead of a count."""
        return self.min_time is not None

    def policy_dict(self) -> dict[str, Any]:
        """Iteration policy and flags as a plain dict, for reports."""
        return {
            "iterations": None if self.time_budget else self.iterations,
            "min_time": self.min_time,
            "min_iterations": self.min_iterations if self.time_budget else None,
            "max_iterations": self.max_iterations if self.time_budget else None,
            "warmup": self.warmup,
            "check": self.check,
            "memory": self.memory,
            "data_dir": str(self.data_dir),
            "output_dir": str(self.output_dir),
        }


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@dataclass
class ValidationError:
    """A single configuration validation error."""

    field: str
    message: str
    severity: str = "error"  # "error" or "warning"


def validate_config(config: BenchConfig) -> list[ValidationError]:
    """Validate a benchmark configuration.

    Returns a list of validation errors.  Empty list means valid.
    """
    errors: list[ValidationError] = []

    if config.time_budget:
        assert config.min_time is not None
        if config.min_time <= 0:
            errors.append(
                ValidationError(
                    field="min_time",
                    message=f"Time budget must be positive (got {config.min_time}).",
                )
            )
        if config.min_iterations < 1:
            errors.append(
                ValidationError(
                    field="min_iterations",
                    message=f"Need at least 1 iteration (got {config.min_iterations}).",
                )
            )
        if config.max_iterations < config.min_iterations:
            errors.append(
                ValidationError(
                    field="max_iterations",
                    message=(
                        f"max_iterations ({config.max_iterations}) is smaller than "
                        f"min_iterations ({config.min_iterations})."
                    ),
                )
            )
    elif config.iterations < 1:
        errors.append(
            ValidationError(
                field="iterations",
                message=f"Need at least 1 measured iteration (got {config.iterations}).",
            )
        )
    elif config.iterations < 3:
        errors.append(
            ValidationError(
                field="iterations",
                message=(
                    f"Fewer than 3 measured iterations give unstable "
                    f"medians (got {config.iterations})."
                ),
                severity="warning",
            )
        )

    if config.warmup < 0:
        errors.append(
            ValidationError(
                field="warmup",
                message=f"Warmup iterations cannot be negative (got {config.warmup}).",
            )
        )

    if config.data_dir.exists() and not config.data_dir.is_dir():
        errors.append(
            ValidationError(
                field="data_dir",
                message=f"Data directory is not a directory: {config.data_dir}",
            )
        )

    for name, defn in config.candidates.items():
        if not name or not name.strip():
            errors.append(
                ValidationError(
                    field="candidates",
                    message="Candidate names must be non-empty.",
                )
            )
            continue
        if defn.operation not in OPERATIONS:
            errors.append(
                ValidationError(
                    field=f"candidates.{name}.op",
                    message=(
                        f"Candidate '{name}' has unknown operation '{defn.operation}'. "
                        f"Valid operations: {', '.join(OPERATIONS)}"
                    ),
                )
            )
        try:
            parse_format(defn.format)
        except ConfigError as exc:
            errors.append(ValidationError(field=f"candidates.{name}.format", message=str(exc)))
        if defn.operation == "count" and not defn.group_by:
            errors.append(
                ValidationError(
                    field=f"candidates.{name}.group_by",
                    message=f"Candidate '{name}' counts rows but has no group_by column.",
                )
            )

    return errors


# ---------------------------------------------------------------------------
# YAML profile loading
# ---------------------------------------------------------------------------


def load_profile(profile_path: Path) -> dict[str, Any]:
    """Load a benchmark profile from a YAML file.

    Profile format::

        name: "parquet vs csv"
        description: "optional description"
        iterations: 10
        warmup: 1
        check: true
        data_dir: data

        candidates:
          parquet_zstd:
            op: read
            format: parquet:zstd
          csv_arrow:
            op: read
            format: csv:pyarrow
            columns: [event_type, revenue]
          write_zstd:
            op: write
            format: parquet:zstd

    Returns:
        The parsed YAML as a dict.

    Raises:
        FileNotFoundError: If the profile does not exist.
        ConfigError: If the file is not valid YAML or not a mapping.
    """
    if not profile_path.exists():
        raise FileNotFoundError(f"Profile not found: {profile_path}")

    text = profile_path.read_text()
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in profile {profile_path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"Profile must be a YAML mapping, got {type(data).__name__}")

    return data


def config_from_profile(
    profile_data: dict[str, Any],
    *,
    cli_overrides: dict[str, Any] | None = None,
) -> BenchConfig:
    """Build a BenchConfig from a parsed YAML profile.

    CLI overrides take precedence over profile values.  Override keys
    match BenchConfig field names; ``None`` means "not given on the
    command line".  Inline candidates (``cli_overrides["candidates"]``,
    a list of CandidateDef) are appended after the profile's.

    Args:
        profile_data: Parsed YAML profile dict (may be empty).
        cli_overrides: Dict of CLI option values.

    Returns:
        BenchConfig with candidates and settings populated.
    """
    cli = cli_overrides or {}

    def pick(key: str, default: Any) -> Any:
        if cli.get(key) is not None:
            return cli[key]
        value = profile_data.get(key)
        return default if value is None else value

    min_time = pick("min_time", None)
    iterations = pick("iterations", 5)
    # An explicit --iterations on the command line wins over a profile budget.
    if cli.get("iterations") is not None and cli.get("min_time") is None:
        min_time = None

    config = BenchConfig(
        name=pick("name", ""),
        description=profile_data.get("description", "") or "",
        iterations=int(iterations),
        warmup=int(pick("warmup", 0)),
        min_time=None if min_time is None else float(min_time),
        min_iterations=int(pick("min_iterations", 1)),
        max_iterations=int(pick("max_iterations", 1000)),
        check=bool(pick("check", False)),
        memory=bool(pick("memory", True)),
        data_dir=Path(pick("data_dir", "data")),
        output_dir=Path(pick("output_dir", "bench_output")),
        cli_args=list(cli.get("cli_args") or []),
    )

    candidates_data = profile_data.get("candidates", {}) or {}
    if not isinstance(candidates_data, dict):
        raise ConfigError("Profile 'candidates' must be a mapping of candidate_name -> definition")

    for name, cand_data in candidates_data.items():
        if cand_data is None:
            cand_data = {}
        if not isinstance(cand_data, dict):
            raise ConfigError(
                f"Candidate '{name}' must be a mapping, got {type(cand_data).__name__}"
            )
        config.candidates[str(name)] = CandidateDef.from_dict(str(name), cand_data)

    for defn in cli.get("candidates") or []:
        if defn.name in config.candidates:
            raise ConfigError(f"Duplicate candidate name '{defn.name}'")
        config.candidates[defn.name] = defn

    return config


# ---------------------------------------------------------------------------
# Inline candidate parsing
# ---------------------------------------------------------------------------

INLINE_KEYS = ("op", "format", "columns", "group_by", "path", "description")


def parse_inline_candidate(spec: str) -> CandidateDef:
    """Parse an inline candidate specification from CLI.

    Format: ``"name:key=value,key=value,..."`` or just ``"name:"`` for
    a default parquet read.

    Supported keys: op, format, columns (``+``-separated), group_by,
    path, description.

    Examples::

        "pq:format=parquet:zstd"
        "csv_sub:format=csv:pyarrow,columns=event_type+revenue"
        "by_country:op=count,format=feather,group_by=country"

    Returns:
        CandidateDef with parsed values.

    Raises:
        ConfigError: On malformed input or unknown keys.
    """
    if ":" not in spec:
        raise ConfigError(
            f"Invalid candidate spec: '{spec}'. Expected format: 'name:key=value,...'"
        )

    name, rest = spec.split(":", 1)
    name = name.strip()
    if not name:
        raise ConfigError("Candidate name cannot be empty.")

    defn = CandidateDef(name=name)

    if not rest.strip():
        return defn

    for pair in _split_candidate_pairs(rest.strip()):
        if "=" not in pair:
            raise ConfigError(f"Invalid key=value pair in candidate '{name}': '{pair}'")
        key, value = pair.split("=", 1)
        key = key.strip()
        value = value.strip()

        if key in ("op", "operation"):
            defn.operation = value
        elif key == "format":
            defn.format = value
        elif key == "columns":
            defn.columns = [c.strip() for c in value.split("+") if c.strip()] or None
        elif key == "group_by":
            defn.group_by = value or None
        elif key == "path":
            defn.path = value or None
        elif key == "description":
            defn.description = value
        else:
            raise ConfigError(
                f"Unknown candidate key '{key}' in candidate '{name}'. "
                f"Valid keys: {', '.join(INLINE_KEYS)}"
            )

    return defn


def _split_candidate_pairs(text: str) -> list[str]:
    """Split candidate key=value pairs on commas.

    Segments without ``=`` are rejoined with the preceding segment
    (they are part of a value that contained a comma, e.g. a
    description).
    """
    pairs: list[str] = []
    for raw in text.split(","):
        part = raw.strip()
        if not part:
            continue
        if "=" in part and (not pairs or "=" in pairs[-1]):
            pairs.append(part)
        elif pairs:
            pairs[-1] += "," + raw.rstrip()
        else:
            pairs.append(part)
    return pairs
