"""Public interface for the ``spend_analysis`` package.

Schema-free ingestion of bank CSV exports into normalized transactions, plus
the statistics derived from them. This module only re-exports symbols.
"""

from .aggregate import DEFAULT_PROFILE, EXPANDED_PROFILE, AggregationProfile, aggregate
from .api import analyze_paths, ingest_paths
from .errors import BatchFailed, InsightsError
from .ingest import (
    DEFAULT_SYNONYMS,
    FieldSynonyms,
    detect_fields,
    ingest,
    ingest_or_raise,
    parse_date,
    parse_row,
)
from .models import (
    FieldMapping,
    FileDiagnostic,
    FinancialInsight,
    IngestResult,
    SourceFile,
    Statistics,
    Transaction,
)

__all__ = [
    # API
    "aggregate",
    "analyze_paths",
    "detect_fields",
    "ingest",
    "ingest_or_raise",
    "ingest_paths",
    "parse_date",
    "parse_row",
    # Configuration
    "AggregationProfile",
    "DEFAULT_PROFILE",
    "EXPANDED_PROFILE",
    "DEFAULT_SYNONYMS",
    "FieldSynonyms",
    # Errors
    "BatchFailed",
    "InsightsError",
    # Models
    "FieldMapping",
    "FileDiagnostic",
    "FinancialInsight",
    "IngestResult",
    "SourceFile",
    "Statistics",
    "Transaction",
]
