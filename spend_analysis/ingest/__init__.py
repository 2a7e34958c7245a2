"""Schema-free CSV ingestion: column mapping, date parsing, row parsing."""

from .dates import parse_date
from .field_mapper import DEFAULT_SYNONYMS, FieldSynonyms, detect_csv_type, detect_fields
from .pipeline import (
    DecodeFailure,
    ingest,
    ingest_file,
    ingest_or_raise,
    load_source_files,
    read_csv_rows,
)
from .row_parser import parse_amount, parse_row, parse_row_with_reason

__all__ = [
    "DEFAULT_SYNONYMS",
    "DecodeFailure",
    "FieldSynonyms",
    "detect_csv_type",
    "detect_fields",
    "ingest",
    "ingest_file",
    "ingest_or_raise",
    "load_source_files",
    "parse_amount",
    "parse_date",
    "parse_row",
    "parse_row_with_reason",
    "read_csv_rows",
]
