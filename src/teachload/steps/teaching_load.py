"""Teaching percentages per instructor row and their roll-ups."""

from __future__ import annotations

import polars as pl

from ..plugin import BaseStep, StepContext, StepResult
from ..schema import COMBINED_SCHEMA
from ..transforms.aggregate import (
    attach_teaching_share,
    combine_rows,
    section_share_errors,
    summarize_instructors,
)


class TeachingLoadStep(BaseStep):
    """Combine both sheets, share each section among its instructors, roll up."""

    name = "teaching_load"
    depends_on = ["undergrad", "graduate", "credits"]
    outputs = ["combined", "totals", "totals_by_year"]

    def run(
        self,
        context: StepContext,
        dependencies: dict[str, pl.DataFrame],
    ) -> StepResult:
        combined = attach_teaching_share(
            combine_rows(dependencies["undergrad"], dependencies["graduate"]),
            dependencies["credits"],
        ).select(COMBINED_SCHEMA.column_names)
        order = context.fixes.session_order
        totals = summarize_instructors(combined, order)
        by_year = summarize_instructors(combined, order, by_year=True)
        return StepResult(
            tables={"combined": combined, "totals": totals, "totals_by_year": by_year},
            metrics={
                "combined_rows": combined.height,
                "instructors": totals.height,
                "total_percentage": float(combined["percentage"].sum()),
            },
        )

    def validate(self, result: StepResult) -> list[str]:
        return section_share_errors(result.tables["combined"])
