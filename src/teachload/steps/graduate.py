"""Graduate sheet: instructors arrive as a single `"First Last"` string."""

from __future__ import annotations

import polars as pl

from ..common import console, show_frame
from ..plugin import BaseStep, StepContext, StepResult
from ..schema import GRADUATE_SCHEMA
from ..sheets import GRADUATE_SHEET, coerce_course_rows, read_sheet
from ..transforms.names import normalize_graduate_names
from ..transforms.reconcile import reconcile_graduate


class GraduateRawStep(BaseStep):
    """Load the graduate sheet and split multi-instructor rows."""

    name = "graduate_raw"
    outputs = ["graduate_raw"]

    def run(
        self,
        context: StepContext,
        dependencies: dict[str, pl.DataFrame],
    ) -> StepResult:
        del dependencies
        raw = read_sheet(context.paths.source_file, GRADUATE_SHEET)
        df = coerce_course_rows(raw, program="graduate")
        df = normalize_graduate_names(df, context.fixes)
        return StepResult(
            tables={"graduate_raw": df},
            metrics={"graduate_source_rows": raw.height},
        )


class GraduateStep(BaseStep):
    """Give graduate rows first/last names from the name lookup."""

    name = "graduate"
    depends_on = ["graduate_raw", "name_lookup"]
    outputs = ["graduate", "unmatched_instructors"]

    def run(
        self,
        context: StepContext,
        dependencies: dict[str, pl.DataFrame],
    ) -> StepResult:
        graduate, unmatched = reconcile_graduate(
            dependencies["graduate_raw"], dependencies["name_lookup"]
        )
        if not unmatched.is_empty():
            console.log(
                f"[red]{unmatched.height} graduate rows have no usable instructor "
                "name and are left out[/red]"
            )
            show_frame("Unmatched instructor rows", unmatched)
        return StepResult(
            tables={
                "graduate": graduate.select(GRADUATE_SCHEMA.column_names),
                "unmatched_instructors": unmatched,
            },
            metrics={"unmatched_instructors": unmatched.height},
        )

    def validate(self, result: StepResult) -> list[str]:
        unmatched = result.tables["unmatched_instructors"]
        return [
            f"row {sheet}:{row} ({name!r}): {reason}"
            for sheet, row, name, reason in unmatched.select(
                ["source_sheet", "source_row", "instructor_name", "reason"]
            ).iter_rows()
        ]
