"""Workbook readers for the enrollment export and the course-outcome rosters."""

from __future__ import annotations

from pathlib import Path
from typing import TypedDict

import polars as pl
from openpyxl import load_workbook

from .common import cell_text, console


class SheetConfig(TypedDict):
    """TypedDict for workbook sheet metadata."""

    sheet_name: str | None
    header: int
    columns: dict[str, str]


UNDERGRAD_SHEET: SheetConfig = {
    "sheet_name": "Undergraduate",
    "header": 0,
    "columns": {
        "Session Year": "session_year",
        "Session Cd": "session_code",
        "Subject Code": "department_code",
        "Course Number": "course_number",
        "Section Number": "section_number",
        "Term": "term",
        "Instructor Last Name": "instructor_last_name",
        "Instructor First Name": "instructor_first_name",
        "Rank": "rank",
        "Enrolment": "enrolment",
    },
}

GRADUATE_SHEET: SheetConfig = {
    "sheet_name": "Graduate",
    "header": 0,
    "columns": {
        "Year": "session_year",
        "Session": "session_code",
        "Dept": "department_code",
        "Course": "course_number",
        "Section": "section_number",
        "Term": "term",
        "Instructor": "instructor_name",
        "Position": "rank",
        "Enrolled": "enrolment",
    },
}

# first sheet of every roster workbook
ROSTER_SHEET: SheetConfig = {
    "sheet_name": None,
    "header": 0,
    "columns": {
        "Subject": "department_code",
        "Course": "course_number",
        "Year": "year",
        "Credits": "credits",
    },
}


def _header_positions(
    header_row: tuple[object | None, ...], cfg: SheetConfig, label: str
) -> dict[str, int]:
    """Locate every configured source column; header matching ignores case."""
    found = {
        str(value).strip().lower(): idx
        for idx, value in enumerate(header_row)
        if value not in (None, "")
    }
    positions: dict[str, int] = {}
    missing: list[str] = []
    for source, target in cfg["columns"].items():
        idx = found.get(source.strip().lower())
        if idx is None:
            missing.append(source)
        else:
            positions[target] = idx
    if missing:
        raise ValueError(f"Sheet {label} lacks columns {missing}")
    return positions


def read_sheet(workbook: Path, cfg: SheetConfig) -> pl.DataFrame:
    """Read one worksheet into text columns renamed per `cfg`.

    Every value is kept as text (see `cell_text`); typing happens downstream.
    Each row is tagged with `source_sheet` and its spreadsheet row number as
    `source_row`. Rows that are blank in every configured column are skipped.
    """
    if not workbook.exists():
        raise FileNotFoundError(f"Workbook {workbook} does not exist")

    wb = load_workbook(workbook, data_only=True, read_only=True)
    try:
        if cfg["sheet_name"] is None:
            ws = wb.worksheets[0]
        else:
            try:
                ws = wb[cfg["sheet_name"]]
            except KeyError as exc:
                raise ValueError(
                    f"Sheet {cfg['sheet_name']} is missing from {workbook.name}"
                ) from exc
        rows = list(ws.iter_rows(values_only=True))
    finally:
        wb.close()

    label = f"{workbook.name}:{ws.title}"
    start_row = cfg["header"]
    if start_row >= len(rows):
        raise ValueError(
            f"Header index {start_row} is beyond sheet height {len(rows)} for {label}"
        )
    positions = _header_positions(rows[start_row], cfg, label)

    records: list[dict[str, object | None]] = []
    for offset, row in enumerate(rows[start_row + 1 :]):
        values = {
            target: cell_text(row[idx]) if idx < len(row) else None
            for target, idx in positions.items()
        }
        if all(v is None for v in values.values()):
            continue
        # 1-based spreadsheet row number: header row + offset
        values["source_sheet"] = ws.title
        values["source_row"] = start_row + offset + 2
        records.append(values)

    schema: dict[str, pl.DataType] = {target: pl.Utf8 for target in positions}
    schema["source_sheet"] = pl.Utf8
    schema["source_row"] = pl.Int64
    return pl.DataFrame(records, schema=schema)


def read_rosters(outcomes_dir: Path, cfg: SheetConfig = ROSTER_SHEET) -> pl.DataFrame:
    """Concatenate every course-outcome workbook in `outcomes_dir`."""
    if not outcomes_dir.exists():
        raise FileNotFoundError(f"Outcomes directory {outcomes_dir} does not exist")

    files = sorted(outcomes_dir.glob("*.xlsx"))
    if not files:
        raise FileNotFoundError(f"No course-outcome workbooks found in {outcomes_dir}")

    frames = []
    for file in files:
        df = read_sheet(file, cfg)
        console.log(f"Read {df.height} roster rows from [cyan]{file.name}[/cyan]")
        frames.append(df)
    return pl.concat(frames, how="vertical")


def coerce_course_rows(df: pl.DataFrame, program: str) -> pl.DataFrame:
    """Type the course keys of a freshly read sheet and tag its program."""
    return df.with_columns(
        program=pl.lit(program),
        session_year=pl.col("session_year").str.extract(r"(\d{4})").cast(pl.Int64),
        session_code=pl.col("session_code").str.strip_chars().str.to_uppercase(),
        department_code=pl.col("department_code").str.strip_chars().str.to_uppercase(),
        course_number=pl.col("course_number").str.replace_all(r"\s+", ""),
        section_number=pl.col("section_number").str.strip_chars(),
        enrolment=pl.col("enrolment").cast(pl.Int64, strict=False),
    )
