from __future__ import annotations

import polars as pl


class PipelineExecutionError(RuntimeError):
    """Raised when the step dependency graph cannot be resolved."""


class DataQualityError(ValueError):
    """Raised when source data cannot be cleaned without losing or guessing rows.

    The offending records, when known, are attached as `rows` so the caller can
    report them.
    """

    def __init__(self, message: str, rows: pl.DataFrame | None = None):
        super().__init__(message)
        self.rows = rows


class NameSplitError(DataQualityError):
    """Parallel instructor columns split into different token counts."""


class AmbiguousCreditError(DataQualityError):
    """A course resolves to more than one credit value."""


class MissingCreditError(DataQualityError):
    """A taught course has no credit value in the roster or the overrides."""


class IntegrityError(DataQualityError):
    """Teaching percentages do not add up to the source row count."""
