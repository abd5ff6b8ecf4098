"""Credit values for every course taught, from the course-outcome rosters."""

from __future__ import annotations

import polars as pl

from ..plugin import BaseStep, StepContext, StepResult
from ..sheets import read_rosters
from ..transforms.credits import build_credit_table, prepare_roster, taught_courses


class CreditsStep(BaseStep):
    """Join taught courses against the rosters and the manual overrides."""

    name = "credits"
    depends_on = ["undergrad", "graduate"]
    outputs = ["credits"]

    def run(
        self,
        context: StepContext,
        dependencies: dict[str, pl.DataFrame],
    ) -> StepResult:
        taught = taught_courses(dependencies["undergrad"], dependencies["graduate"])
        roster = prepare_roster(
            read_rosters(context.paths.outcomes_dir), context.fixes.credit_min_year
        )
        credits = build_credit_table(taught, roster, context.fixes.credit_overrides)
        overridden = credits.filter(pl.col("origin") == "override").height
        return StepResult(
            tables={"credits": credits},
            metrics={
                "taught_courses": taught.height,
                "credit_overrides_used": overridden,
            },
        )

    def validate(self, result: StepResult) -> list[str]:
        credits = result.tables["credits"]
        dupes = credits.filter(
            credits.select(["department_code", "course_number"]).is_duplicated()
        )
        return [
            f"{dept} {number} has more than one credit value"
            for dept, number in dupes.select(["department_code", "course_number"])
            .unique()
            .iter_rows()
        ]
