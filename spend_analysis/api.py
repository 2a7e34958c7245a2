"""Public API orchestration for the ``spend_analysis`` package.

Thin composition of the ingestion pipeline and the aggregation engine. Each
call is a single-shot batch transform: nothing is cached or persisted between
calls.
"""

from __future__ import annotations

from collections.abc import Iterable
from os import PathLike

from .aggregate import DEFAULT_PROFILE, AggregationProfile, aggregate
from .ingest.field_mapper import DEFAULT_SYNONYMS, FieldSynonyms
from .ingest.pipeline import ingest_or_raise, load_source_files
from .models import IngestResult, Statistics


def ingest_paths(
    paths: Iterable[str | PathLike[str]],
    *,
    synonyms: FieldSynonyms = DEFAULT_SYNONYMS,
    concurrency: int = 1,
) -> IngestResult:
    """Load and ingest CSV files from disk.

    Raises
    ------
    BatchFailed
        No file yielded a single usable transaction.
    OSError
        A path could not be read.
    """

    return ingest_or_raise(
        load_source_files(paths), synonyms=synonyms, concurrency=concurrency
    )


def analyze_paths(
    paths: Iterable[str | PathLike[str]],
    *,
    profile: AggregationProfile = DEFAULT_PROFILE,
    synonyms: FieldSynonyms = DEFAULT_SYNONYMS,
    concurrency: int = 1,
) -> tuple[IngestResult, Statistics]:
    """Ingest CSV files and compute statistics over the merged transactions."""

    result = ingest_paths(paths, synonyms=synonyms, concurrency=concurrency)
    return result, aggregate(result.transactions, profile=profile)


__all__ = ["analyze_paths", "ingest_paths"]
