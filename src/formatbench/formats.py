"""Format adapters: one thin reader/writer per supported file format.

Every adapter exposes the same two operations::

    decode(path, columns=None) -> pandas.DataFrame
    encode(table, path) -> None

and nothing else.  Adapters add no buffering, retries or data
transformation on top of the underlying library call; their only job is
to present the different libraries behind one signature and to fold
every failure into :class:`DecodeError` / :class:`EncodeError`.

Supported formats (``kind``):

========== ===================================== ==============================
kind       library                               compression
========== ===================================== ==============================
parquet    pyarrow.parquet                       snappy, zstd, gzip, brotli,
                                                 lz4, none
csv        pandas (``c`` or ``pyarrow`` engine)  n/a
csv_zip    pandas, zip archive                   n/a (always zip)
pickle     pandas pickle (serialized object)     none, gzip, bz2, xz
feather    pyarrow.feather (Arrow IPC)           lz4, zstd, none
========== ===================================== ==============================
"""

from __future__ import annotations

import lzma
import pickle
import zipfile
import zlib
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

import pandas as pd
import pyarrow as pa
import pyarrow.feather as feather
import pyarrow.parquet as pq

from formatbench.errors import ConfigError, DecodeError, EncodeError
from formatbench.logging import get_logger

log = get_logger("formats")

FORMAT_KINDS = ("parquet", "csv", "csv_zip", "pickle", "feather")

COMPRESSIONS: dict[str, tuple[str, ...]] = {
    "parquet": ("snappy", "zstd", "gzip", "brotli", "lz4", "none"),
    "csv": (),
    "csv_zip": (),
    "pickle": ("none", "gzip", "bz2", "xz"),
    "feather": ("lz4", "zstd", "none"),
}

DEFAULT_COMPRESSION: dict[str, str | None] = {
    "parquet": "snappy",
    "csv": None,
    "csv_zip": None,
    "pickle": "none",
    "feather": "lz4",
}

CSV_ENGINES = ("c", "pyarrow")

_KIND_ALIASES = {
    "csv.zip": "csv_zip",
    "csv-zip": "csv_zip",
    "csvzip": "csv_zip",
    "pkl": "pickle",
    "arrow": "feather",
    "ipc": "feather",
}

_PICKLE_SUFFIX = {"none": "", "gzip": ".gz", "bz2": ".bz2", "xz": ".xz"}

# Everything a reader can raise for a missing, truncated or unreadable file.
_DECODE_FAILURES: tuple[type[BaseException], ...] = (
    OSError,
    ValueError,
    KeyError,
    EOFError,
    pickle.UnpicklingError,
    zipfile.BadZipFile,
    zlib.error,
    lzma.LZMAError,
    pa.ArrowException,
)

_ENCODE_FAILURES: tuple[type[BaseException], ...] = (
    OSError,
    ValueError,
    TypeError,
    pa.ArrowException,
)


# ---------------------------------------------------------------------------
# FormatSpec
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FormatSpec:
    """A file format plus the options that change how it is encoded.

    ``compression`` is resolved to the format's default when omitted.
    ``engine`` only applies to plain CSV.
    """

    kind: str
    compression: str | None = None
    engine: str | None = None

    def __post_init__(self) -> None:
        kind = _KIND_ALIASES.get(self.kind, self.kind)
        if kind not in FORMAT_KINDS:
            raise ConfigError(
                f"Unknown format '{self.kind}'. Valid formats: {', '.join(FORMAT_KINDS)}"
            )
        object.__setattr__(self, "kind", kind)

        compression = self.compression
        if compression is None:
            compression = DEFAULT_COMPRESSION[kind]
        elif compression not in COMPRESSIONS[kind]:
            allowed = ", ".join(COMPRESSIONS[kind]) or "none"
            raise ConfigError(
                f"Compression '{compression}' is not supported for {kind} (allowed: {allowed})"
            )
        object.__setattr__(self, "compression", compression)

        if self.engine is not None:
            if kind != "csv":
                raise ConfigError(f"Format '{kind}' does not take an engine option")
            if self.engine not in CSV_ENGINES:
                raise ConfigError(
                    f"Unknown CSV engine '{self.engine}'. Valid engines: {', '.join(CSV_ENGINES)}"
                )

    @property
    def label(self) -> str:
        """Human-readable label, e.g. ``parquet (zstd)``."""
        base = "csv.zip" if self.kind == "csv_zip" else self.kind
        option = self.engine if self.kind == "csv" else self.compression
        if option and option != "none":
            return f"{base} ({option})"
        return base

    @property
    def extension(self) -> str:
        """Canonical file suffix for this format."""
        if self.kind == "parquet":
            return ".parquet"
        if self.kind == "csv":
            return ".csv"
        if self.kind == "csv_zip":
            return ".csv.zip"
        if self.kind == "pickle":
            return ".pkl" + _PICKLE_SUFFIX[self.compression or "none"]
        return ".feather"

    def filename(self, stem: str = "dataset") -> str:
        """File name for a dataset stored in this format.

        Columnar formats keep one file per codec; the CSV engine does not
        change the bytes on disk so every engine shares one file.
        """
        if self.kind in ("parquet", "feather"):
            return f"{stem}_{self.compression}{self.extension}"
        return f"{stem}{self.extension}"

    def to_text(self) -> str:
        """Inverse of :func:`parse_format`."""
        option = self.engine if self.kind == "csv" else self.compression
        if option and option != DEFAULT_COMPRESSION[self.kind]:
            return f"{self.kind}:{option}"
        return self.kind


def parse_format(text: str) -> FormatSpec:
    """Parse a format string such as ``parquet:zstd`` or ``csv:pyarrow``.

    The part after the colon is the compression codec for binary formats
    and the parser engine for plain CSV.
    """
    text = text.strip()
    if not text:
        raise ConfigError("Format cannot be empty.")
    kind, _, option = text.partition(":")
    kind = _KIND_ALIASES.get(kind.strip().lower(), kind.strip().lower())
    option = option.strip().lower() or None
    if kind == "csv":
        return FormatSpec(kind, engine=option)
    return FormatSpec(kind, compression=option)


# ---------------------------------------------------------------------------
# Adapters
# ---------------------------------------------------------------------------


class FormatAdapter:
    """Uniform decode/encode interface over one file format."""

    def __init__(self, spec: FormatSpec) -> None:
        self.spec = spec

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.spec.to_text()!r})"

    def decode(self, path: str | Path, columns: Sequence[str] | None = None) -> pd.DataFrame:
        """Read *path* into a DataFrame, optionally projecting *columns*.

        Raises:
            DecodeError: For any failure (missing file, corrupt data,
                unsupported codec, unknown column).
        """
        path = Path(path)
        cols = list(columns) if columns else None
        try:
            return self._decode(path, cols)
        except _DECODE_FAILURES as exc:
            raise DecodeError(
                f"Failed to read {self.spec.label} file {path}: {exc}",
                path=str(path),
                fmt=self.spec.label,
            ) from exc

    def encode(
        self,
        table: pd.DataFrame,
        path: str | Path,
        compression: str | None = None,
    ) -> None:
        """Write *table* to *path*.

        *compression* overrides the adapter's codec for this call only.

        Raises:
            ConfigError: If *compression* is not valid for this format.
            EncodeError: If the underlying writer fails.
        """
        if compression is not None and compression != self.spec.compression:
            spec = FormatSpec(self.spec.kind, compression=compression, engine=self.spec.engine)
            get_adapter(spec).encode(table, path)
            return
        path = Path(path)
        try:
            self._encode(table, path)
        except _ENCODE_FAILURES as exc:
            raise EncodeError(
                f"Failed to write {self.spec.label} file {path}: {exc}",
                path=str(path),
                fmt=self.spec.label,
            ) from exc
        log.debug("Wrote %s (%d rows, %s)", path, len(table), self.spec.label)

    def _decode(self, path: Path, columns: list[str] | None) -> pd.DataFrame:
        raise NotImplementedError

    def _encode(self, table: pd.DataFrame, path: Path) -> None:
        raise NotImplementedError


class ParquetAdapter(FormatAdapter):
    """Parquet through pyarrow."""

    def _decode(self, path: Path, columns: list[str] | None) -> pd.DataFrame:
        return pq.read_table(path, columns=columns).to_pandas()

    def _encode(self, table: pd.DataFrame, path: Path) -> None:
        arrow_table = pa.Table.from_pandas(table, preserve_index=False)
        pq.write_table(arrow_table, path, compression=self.spec.compression)


class CsvAdapter(FormatAdapter):
    """Delimited text through pandas."""

    _compression: str | None = None

    def _decode(self, path: Path, columns: list[str] | None) -> pd.DataFrame:
        return pd.read_csv(
            path,
            usecols=columns,
            engine=self.spec.engine or "c",
            compression=self._compression,
        )

    def _encode(self, table: pd.DataFrame, path: Path) -> None:
        table.to_csv(path, index=False, compression=self._compression)


class CsvZipAdapter(CsvAdapter):
    """Delimited text inside a zip archive."""

    _compression = "zip"


class PickleAdapter(FormatAdapter):
    """pandas' serialized-object format.

    Pickle has no column projection, so *columns* are selected after
    the whole object is loaded.
    """

    def _decode(self, path: Path, columns: list[str] | None) -> pd.DataFrame:
        table = pd.read_pickle(path, compression=self._pandas_compression)
        if columns:
            return table[columns]
        return table

    def _encode(self, table: pd.DataFrame, path: Path) -> None:
        table.to_pickle(path, compression=self._pandas_compression)

    @property
    def _pandas_compression(self) -> str | None:
        return None if self.spec.compression == "none" else self.spec.compression


class FeatherAdapter(FormatAdapter):
    """Arrow IPC (feather v2) through pyarrow."""

    def _decode(self, path: Path, columns: list[str] | None) -> pd.DataFrame:
        return feather.read_table(path, columns=columns).to_pandas()

    def _encode(self, table: pd.DataFrame, path: Path) -> None:
        compression = "uncompressed" if self.spec.compression == "none" else self.spec.compression
        arrow_table = pa.Table.from_pandas(table, preserve_index=False)
        feather.write_feather(arrow_table, path, compression=compression)


_ADAPTERS: dict[str, type[FormatAdapter]] = {
    "parquet": ParquetAdapter,
    "csv": CsvAdapter,
    "csv_zip": CsvZipAdapter,
    "pickle": PickleAdapter,
    "feather": FeatherAdapter,
}


def get_adapter(spec: FormatSpec | str) -> FormatAdapter:
    """Return the adapter for *spec* (a FormatSpec or a format string)."""
    if isinstance(spec, str):
        spec = parse_format(spec)
    return _ADAPTERS[spec.kind](spec)


def comparison_formats() -> list[FormatSpec]:
    """The default set of formats compared by ``formatbench generate``."""
    return [
        FormatSpec("parquet", "snappy"),
        FormatSpec("parquet", "zstd"),
        FormatSpec("csv"),
        FormatSpec("csv_zip"),
        FormatSpec("pickle"),
        FormatSpec("feather", "lz4"),
    ]


def supported_formats() -> list[tuple[str, tuple[str, ...], tuple[str, ...]]]:
    """List ``(kind, compressions, engines)`` for every supported format."""
    rows = []
    for kind in FORMAT_KINDS:
        engines = CSV_ENGINES if kind == "csv" else ()
        rows.append((kind, COMPRESSIONS[kind], engines))
    return rows
