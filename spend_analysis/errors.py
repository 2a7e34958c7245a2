"""Exceptions raised across the ``spend_analysis`` package boundary.

Row- and file-level ingestion problems are never raised; they are collected
as :class:`~spend_analysis.models.FileDiagnostic` entries. Only the failures
below escape to callers.
"""

from __future__ import annotations

from collections.abc import Sequence

from .models import FileDiagnostic


class BatchFailed(RuntimeError):
    """Every input file together yielded zero usable transactions."""

    def __init__(self, diagnostics: Sequence[FileDiagnostic] = ()) -> None:
        self.diagnostics: tuple[FileDiagnostic, ...] = tuple(diagnostics)
        msg = "Could not extract any valid transactions from the provided files."
        if self.diagnostics:
            msg += " Errors: " + " ".join(d.message for d in self.diagnostics)
        super().__init__(msg)


class InsightsError(RuntimeError):
    """The AI insights call could not produce a well-formed response."""


__all__ = ["BatchFailed", "InsightsError"]
