"""Undergraduate sheet: one row per instructor with separate name columns."""

from __future__ import annotations

import polars as pl

from ..common import console, show_frame
from ..plugin import BaseStep, StepContext, StepResult
from ..schema import UNDERGRAD_SCHEMA
from ..sheets import UNDERGRAD_SHEET, coerce_course_rows, read_sheet
from ..transforms.names import normalize_undergrad_names


def missing_instructor_rows(df: pl.DataFrame) -> pl.DataFrame:
    """Rows that cannot be credited to anyone because no last name is listed."""
    return df.filter(pl.col("instructor_last_name").is_null()).with_columns(
        reason=pl.when(pl.col("instructor_first_name").is_null())
        .then(pl.lit("no instructor listed"))
        .otherwise(pl.lit("instructor has no last name"))
    )


class UndergradStep(BaseStep):
    """Load the undergraduate sheet and split its instructor columns."""

    name = "undergrad"
    outputs = ["undergrad"]

    def run(
        self,
        context: StepContext,
        dependencies: dict[str, pl.DataFrame],
    ) -> StepResult:
        del dependencies
        raw = read_sheet(context.paths.source_file, UNDERGRAD_SHEET)
        df = coerce_course_rows(raw, program="undergraduate")
        df = normalize_undergrad_names(df, context.fixes)
        missing = missing_instructor_rows(df)
        if not missing.is_empty():
            console.log(
                f"[red]{missing.height} undergraduate rows have no instructor[/red]"
            )
            show_frame(
                "Undergraduate rows without instructor",
                missing.select(
                    [
                        "source_sheet",
                        "source_row",
                        "department_code",
                        "course_number",
                        "section_number",
                        "instructor_first_name",
                        "reason",
                    ]
                ),
            )
        return StepResult(
            tables={"undergrad": df.select(UNDERGRAD_SCHEMA.column_names)},
            metrics={"undergrad_source_rows": raw.height},
        )

    def validate(self, result: StepResult) -> list[str]:
        missing = missing_instructor_rows(result.tables["undergrad"])
        return [
            f"row {sheet}:{row}: {reason}"
            for sheet, row, reason in missing.select(
                ["source_sheet", "source_row", "reason"]
            ).iter_rows()
        ]
