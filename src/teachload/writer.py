from pathlib import Path

import polars as pl
from xlsxwriter import Workbook

from .common import console
from .pipeline import PipelineOutput

# output sheet name -> pipeline table
OUTPUT_SHEETS = {
    "combined": "combined",
    "totals": "totals",
    "totals_by_year": "totals_by_year",
    "undergrad": "undergrad",
    "graduate": "graduate",
}


def write_workbook(output: PipelineOutput, target: Path) -> Path:
    """Write the five result tables as sheets of a single workbook.

    Args:
        output (PipelineOutput): A completed pipeline run.
        target (Path): Workbook to create (replaced if present).

    Returns:
        Path: The written workbook.
    """
    missing = [table for table in OUTPUT_SHEETS.values() if table not in output.tables]
    if missing:
        raise KeyError(f"Pipeline output lacks tables {missing}")

    target.parent.mkdir(parents=True, exist_ok=True)
    with Workbook(str(target)) as wb:
        for sheet, table in OUTPUT_SHEETS.items():
            df: pl.DataFrame = output.tables[table]
            df.write_excel(workbook=wb, worksheet=sheet, autofit=True)
            console.log(f"Wrote [green]{df.height}[/green] rows to sheet {sheet}")
    return target
