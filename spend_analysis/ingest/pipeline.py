"""Multi-file ingestion: CSV text → normalized transactions + diagnostics.

Each file is decoded with the stdlib :mod:`csv` module (first row is the
header, blank lines skipped), mapped once via :func:`detect_fields`, and its
rows parsed independently. Problems are recovered per row and per file and
reported as :class:`~spend_analysis.models.FileDiagnostic` entries; only a
batch that yields no transactions at all is fatal (see
:func:`ingest_or_raise`).

Files may be processed concurrently. Results are always concatenated in the
input file order, then row order.
"""

from __future__ import annotations

import csv
from collections.abc import Iterable, Sequence
from io import StringIO
from os import PathLike
from pathlib import Path
from typing import NamedTuple

from ..errors import BatchFailed
from ..logging_setup import get_logger
from ..models import FileDiagnostic, IngestResult, SourceFile, Transaction
from ..pmap import p_map
from .field_mapper import DEFAULT_SYNONYMS, FieldSynonyms, detect_csv_type, detect_fields
from .row_parser import parse_row_with_reason

_logger = get_logger("spend_analysis.ingest.pipeline")

# Row numbers listed individually in a rejected-rows message.
_MAX_LISTED_ROWS = 5


class _FileOutcome(NamedTuple):
    transactions: list[Transaction]
    diagnostics: list[FileDiagnostic]


class DecodeFailure(NamedTuple):
    name: str
    message: str


# ---------------------------------------------------------------------------
# Loading and decoding
# ---------------------------------------------------------------------------


def load_source_files(paths: Iterable[str | PathLike[str]]) -> list[SourceFile | DecodeFailure]:
    """Read ``paths`` as UTF-8 text (a leading BOM is tolerated).

    Undecodable files are returned as failures rather than raised so the rest
    of the batch can proceed. Missing or unreadable paths still raise
    :class:`OSError`; the caller decides how to report those.
    """

    out: list[SourceFile | DecodeFailure] = []
    for raw in paths:
        p = Path(raw)
        data = p.read_bytes()
        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            out.append(DecodeFailure(p.name, f"not valid UTF-8 text ({e.reason})"))
            continue
        out.append(SourceFile(p.name, text))
    return out


def read_csv_rows(text: str) -> tuple[list[str], list[dict[str, str]]]:
    """Decode ``text`` into ``(headers, rows)``.

    Blank lines and rows whose cells are all blank are skipped. Extra cells
    beyond the header (collected by ``DictReader`` under a ``None`` key) are
    dropped and short rows are padded with ``""``.

    Raises ``csv.Error`` on structural problems (e.g. a stray quote).
    """

    with StringIO(text, newline="") as f:
        reader = csv.DictReader(f, strict=True)
        headers = [h for h in (reader.fieldnames or []) if h is not None]
        rows: list[dict[str, str]] = []
        for row in reader:
            normalized = {
                k: (v if isinstance(v, str) else "") for k, v in row.items() if k is not None
            }
            if all(v.strip() == "" for v in normalized.values()):
                continue
            rows.append(normalized)
        return headers, rows


# ---------------------------------------------------------------------------
# Per-file processing
# ---------------------------------------------------------------------------


def _summarize_rejected(file_name: str, row_numbers: Sequence[int]) -> str:
    listed = ", ".join(f"Row {n}" for n in row_numbers[:_MAX_LISTED_ROWS])
    if len(row_numbers) <= _MAX_LISTED_ROWS:
        return f'Could not process {len(row_numbers)} rows in file "{file_name}" (rows: {listed})'
    return (
        f'Could not process {len(row_numbers)} rows in file "{file_name}" '
        f"(first {_MAX_LISTED_ROWS} rows: {listed}...)"
    )


def ingest_file(source: SourceFile, *, synonyms: FieldSynonyms = DEFAULT_SYNONYMS) -> _FileOutcome:
    """Parse one file; never raises for content problems."""

    name = source.name
    try:
        headers, rows = read_csv_rows(source.text)
    except csv.Error as e:
        msg = f'Error processing file "{name}": CSV parsing error: {e}'
        _logger.warning("ingest:decode_failed file=%s error=%s", name, e)
        return _FileOutcome([], [FileDiagnostic(name, "decode_failed", msg)])

    if not rows:
        msg = f'File "{name}" appears to be empty or has no valid data rows.'
        _logger.warning("ingest:file_rejected file=%s reason=empty", name)
        return _FileOutcome([], [FileDiagnostic(name, "file_rejected", msg)])

    mapping = detect_fields(headers, synonyms)
    if mapping is None:
        msg = (
            f'Could not identify required fields in file "{name}". '
            "The file must contain at minimum a date field, description field, and either "
            "an amount field or both debit and credit fields. "
            f"Found headers: {', '.join(headers)}"
        )
        _logger.warning("ingest:file_rejected file=%s reason=no_mapping", name)
        return _FileOutcome([], [FileDiagnostic(name, "file_rejected", msg)])

    _logger.info(
        "ingest:file_mapped file=%s flavor=%s rows=%d pair=%s",
        name,
        detect_csv_type(headers),
        len(rows),
        mapping.has_debit_credit_pair,
    )

    transactions: list[Transaction] = []
    rejected: list[int] = []
    for row_no, row in enumerate(rows, start=1):
        tx, reason = parse_row_with_reason(row, mapping)
        if tx is None:
            rejected.append(row_no)
            _logger.debug("ingest:row_rejected file=%s row=%d reason=%s", name, row_no, reason)
            continue
        transactions.append(tx)

    diagnostics: list[FileDiagnostic] = []
    if rejected:
        diagnostics.append(
            FileDiagnostic(name, "rows_rejected", _summarize_rejected(name, rejected))
        )
    if not transactions:
        diagnostics.append(
            FileDiagnostic(
                name,
                "no_transactions",
                f'Could not extract any valid transactions from file "{name}".',
            )
        )

    _logger.info(
        "ingest:file_done file=%s transactions=%d rejected_rows=%d",
        name,
        len(transactions),
        len(rejected),
    )
    return _FileOutcome(transactions, diagnostics)


# ---------------------------------------------------------------------------
# Batch entry points
# ---------------------------------------------------------------------------


def ingest(
    files: Iterable[SourceFile | DecodeFailure],
    *,
    synonyms: FieldSynonyms = DEFAULT_SYNONYMS,
    concurrency: int = 1,
) -> IngestResult:
    """Ingest every file and merge the results in input order.

    Partial failure is not an error: the result carries whatever transactions
    were recovered alongside the per-file diagnostics.
    """

    def _one(item: SourceFile | DecodeFailure) -> _FileOutcome:
        if isinstance(item, DecodeFailure):
            msg = f'Error processing file "{item.name}": {item.message}'
            _logger.warning("ingest:decode_failed file=%s error=%s", item.name, item.message)
            return _FileOutcome([], [FileDiagnostic(item.name, "decode_failed", msg)])
        return ingest_file(item, synonyms=synonyms)

    outcomes = p_map(list(files), _one, concurrency=concurrency)

    transactions: list[Transaction] = []
    diagnostics: list[FileDiagnostic] = []
    for outcome in outcomes:
        transactions.extend(outcome.transactions)
        diagnostics.extend(outcome.diagnostics)

    if diagnostics and transactions:
        _logger.warning("ingest:partial_success diagnostics=%d", len(diagnostics))
    return IngestResult(transactions=tuple(transactions), diagnostics=tuple(diagnostics))


def ingest_or_raise(
    files: Iterable[SourceFile | DecodeFailure],
    *,
    synonyms: FieldSynonyms = DEFAULT_SYNONYMS,
    concurrency: int = 1,
) -> IngestResult:
    """Like :func:`ingest`, but raise :class:`BatchFailed` on zero transactions."""

    result = ingest(files, synonyms=synonyms, concurrency=concurrency)
    if not result.transactions:
        diagnostics = result.diagnostics or (
            FileDiagnostic("", "file_rejected", "No files were provided."),
        )
        _logger.error("ingest:batch_failed diagnostics=%d", len(diagnostics))
        raise BatchFailed(diagnostics)
    return result


__all__ = [
    "DecodeFailure",
    "ingest",
    "ingest_file",
    "ingest_or_raise",
    "load_source_files",
    "read_csv_rows",
]
