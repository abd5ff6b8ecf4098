from __future__ import annotations

import polars as pl

from ..plugin import BaseStep, StepContext, StepResult
from ..transforms.reconcile import build_name_lookup


class NameLookupStep(BaseStep):
    """Full name to (first, last) lookup shared by both sheets."""

    name = "name_lookup"
    depends_on = ["undergrad", "graduate_raw"]
    outputs = ["name_lookup"]

    def run(
        self,
        context: StepContext,
        dependencies: dict[str, pl.DataFrame],
    ) -> StepResult:
        lookup = build_name_lookup(
            dependencies["undergrad"], dependencies["graduate_raw"], context.fixes
        )
        graduate_only = lookup.filter(pl.col("origin") == "graduate").height
        return StepResult(
            tables={"name_lookup": lookup},
            metrics={
                "lookup_names": lookup.height,
                "lookup_graduate_only_names": graduate_only,
            },
        )
