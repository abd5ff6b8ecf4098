from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Type, Union

import polars as pl


@dataclass(frozen=True)
class ColumnDef:
    name: str
    dtype: Union[Type[pl.DataType], pl.DataType]
    nullable: bool = True
    description: str = ""


@dataclass(frozen=True)
class TableSchema:
    """Defines the shape of a logical table produced by the pipeline."""

    name: str
    columns: Sequence[ColumnDef]
    primary_key: list[str] | None = None

    @property
    def column_names(self) -> list[str]:
        return [col.name for col in self.columns]

    def validate(self, df: pl.DataFrame) -> list[str]:
        errors: list[str] = []
        existing = set(df.columns)
        defined = set(self.column_names)

        missing = defined - existing
        if missing:
            errors.append(
                f"[{self.name}] missing columns: {', '.join(sorted(missing))}"
            )

        for col in self.columns:
            if col.name not in existing:
                continue
            if df[col.name].dtype != col.dtype:
                errors.append(
                    f"[{self.name}] column '{col.name}' is {df[col.name].dtype}, "
                    f"expected {col.dtype}"
                )
            if not col.nullable and df[col.name].null_count() > 0:
                errors.append(f"[{self.name}] column '{col.name}' contains nulls")

        if self.primary_key and df.select(self.primary_key).is_duplicated().any():
            errors.append(
                f"[{self.name}] duplicate keys on {', '.join(self.primary_key)}"
            )

        return errors


COURSE_ROW_COLUMNS = [
    ColumnDef("program", pl.Utf8, nullable=False),
    ColumnDef("session_year", pl.Int64, nullable=False),
    ColumnDef("session_code", pl.Utf8),
    ColumnDef("department_code", pl.Utf8, nullable=False),
    ColumnDef("course_number", pl.Utf8, nullable=False),
    ColumnDef("section_number", pl.Utf8),
    ColumnDef("term", pl.Utf8),
    ColumnDef("instructor_last_name", pl.Utf8),
    ColumnDef("instructor_first_name", pl.Utf8),
    ColumnDef("rank", pl.Utf8),
    ColumnDef("enrolment", pl.Int64),
    ColumnDef("source_sheet", pl.Utf8, nullable=False),
    ColumnDef("source_row", pl.Int64, nullable=False),
]

SHARE_COLUMNS = [
    ColumnDef("credits", pl.Float64, nullable=False),
    ColumnDef("percentage", pl.Float64, nullable=False),
    ColumnDef("credits_taught", pl.Float64, nullable=False),
]

TOTAL_COLUMNS = [
    ColumnDef("total_percentage", pl.Float64, nullable=False),
    ColumnDef("total_credits_taught", pl.Float64, nullable=False),
    ColumnDef("sections_taught", pl.Int64, nullable=False),
    ColumnDef("distinct_courses_taught", pl.Int64, nullable=False),
    ColumnDef("most_recent_rank", pl.Utf8),
]

UNDERGRAD_SCHEMA = TableSchema(name="undergrad", columns=COURSE_ROW_COLUMNS)

GRADUATE_SCHEMA = TableSchema(name="graduate", columns=COURSE_ROW_COLUMNS)

NAME_LOOKUP_SCHEMA = TableSchema(
    name="name_lookup",
    primary_key=["full_name"],
    columns=[
        ColumnDef("full_name", pl.Utf8, nullable=False),
        ColumnDef("instructor_first_name", pl.Utf8, nullable=False),
        ColumnDef("instructor_last_name", pl.Utf8, nullable=False),
        ColumnDef("origin", pl.Utf8, nullable=False),
    ],
)

UNMATCHED_INSTRUCTORS_SCHEMA = TableSchema(
    name="unmatched_instructors",
    columns=[
        ColumnDef("source_sheet", pl.Utf8, nullable=False),
        ColumnDef("source_row", pl.Int64, nullable=False),
        ColumnDef("instructor_name", pl.Utf8),
        ColumnDef("reason", pl.Utf8, nullable=False),
    ],
)

CREDITS_SCHEMA = TableSchema(
    name="credits",
    primary_key=["department_code", "course_number"],
    columns=[
        ColumnDef("department_code", pl.Utf8, nullable=False),
        ColumnDef("course_number", pl.Utf8, nullable=False),
        ColumnDef("credits", pl.Float64, nullable=False),
        ColumnDef("origin", pl.Utf8, nullable=False),
    ],
)

COMBINED_SCHEMA = TableSchema(
    name="combined", columns=[*COURSE_ROW_COLUMNS, *SHARE_COLUMNS]
)

TOTALS_SCHEMA = TableSchema(
    name="totals",
    primary_key=["instructor_last_name", "instructor_first_name"],
    columns=[
        ColumnDef("instructor_last_name", pl.Utf8),
        ColumnDef("instructor_first_name", pl.Utf8),
        *TOTAL_COLUMNS,
    ],
)

TOTALS_BY_YEAR_SCHEMA = TableSchema(
    name="totals_by_year",
    primary_key=["instructor_last_name", "instructor_first_name", "session_year"],
    columns=[
        ColumnDef("instructor_last_name", pl.Utf8),
        ColumnDef("instructor_first_name", pl.Utf8),
        ColumnDef("session_year", pl.Int64, nullable=False),
        *TOTAL_COLUMNS,
    ],
)

SCHEMAS = {
    "undergrad": UNDERGRAD_SCHEMA,
    "graduate": GRADUATE_SCHEMA,
    "name_lookup": NAME_LOOKUP_SCHEMA,
    "unmatched_instructors": UNMATCHED_INSTRUCTORS_SCHEMA,
    "credits": CREDITS_SCHEMA,
    "combined": COMBINED_SCHEMA,
    "totals": TOTALS_SCHEMA,
    "totals_by_year": TOTALS_BY_YEAR_SCHEMA,
}
