"""Structural equality of candidate results.

Used by the runner when ``check`` is enabled.  Two tables are equal when
they have the same number of rows, the same set of ``(column, dtype)``
pairs, and the same values column by column.  Column *order* is not part
of the comparison: projecting ``["b", "a"]`` from parquet and reading
``a, b`` from CSV yields equal results.
"""

from __future__ import annotations

from typing import Any

import pandas as pd

from formatbench.errors import ResultMismatchError


def _schema(table: pd.DataFrame) -> set[tuple[str, str]]:
    return {(str(name), str(dtype)) for name, dtype in table.dtypes.items()}


def _as_frame(value: Any) -> Any:
    if isinstance(value, pd.Series):
        return value.to_frame()
    return value


def assert_tables_equal(
    expected: Any,
    actual: Any,
    *,
    reference: str = "reference",
    candidate: str = "candidate",
) -> None:
    """Raise :class:`ResultMismatchError` unless *actual* equals *expected*.

    ``None`` is a valid result (write operations) and only equals ``None``.
    Non-tabular results fall back to ``==``.
    """
    expected = _as_frame(expected)
    actual = _as_frame(actual)

    def _mismatch(detail: str) -> ResultMismatchError:
        return ResultMismatchError(
            f"Result of '{candidate}' differs from '{reference}': {detail}",
            reference=reference,
            candidate=candidate,
        )

    if expected is None or actual is None:
        if expected is None and actual is None:
            return
        got = "no result" if actual is None else type(actual).__name__
        want = "no result" if expected is None else type(expected).__name__
        raise _mismatch(f"expected {want}, got {got}")

    if not isinstance(expected, pd.DataFrame) or not isinstance(actual, pd.DataFrame):
        if type(expected) is not type(actual) or expected != actual:
            raise _mismatch(f"expected {expected!r}, got {actual!r}")
        return

    if len(expected) != len(actual):
        raise _mismatch(f"row count {len(actual)} != {len(expected)}")

    expected_schema = _schema(expected)
    actual_schema = _schema(actual)
    if expected_schema != actual_schema:
        missing = sorted(expected_schema - actual_schema)
        extra = sorted(actual_schema - expected_schema)
        parts = []
        if missing:
            parts.append("missing " + ", ".join(f"{n}:{t}" for n, t in missing))
        if extra:
            parts.append("unexpected " + ", ".join(f"{n}:{t}" for n, t in extra))
        raise _mismatch("schema differs (" + "; ".join(parts) + ")")

    aligned = actual.reset_index(drop=True)[list(expected.columns)]
    try:
        pd.testing.assert_frame_equal(expected.reset_index(drop=True), aligned)
    except AssertionError as exc:
        first_line = str(exc).strip().splitlines()[0] if str(exc).strip() else "values differ"
        raise _mismatch(first_line) from exc


def tables_equal(expected: Any, actual: Any) -> bool:
    """Boolean form of :func:`assert_tables_equal`."""
    try:
        assert_tables_equal(expected, actual)
    except ResultMismatchError:
        return False
    return True
