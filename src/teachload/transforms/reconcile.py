import polars as pl

from ..fixes import Fixes
from .names import fix_first_name

LOOKUP_COLS = [
    "full_name",
    "instructor_first_name",
    "instructor_last_name",
    "origin",
]

UNMATCHED_COLS = [
    "source_sheet",
    "source_row",
    "session_year",
    "session_code",
    "department_code",
    "course_number",
    "section_number",
    "instructor_name",
    "reason",
]


def split_full_name(name: str | None) -> tuple[str, str] | None:
    """Split `"First Last Name"` at the first whitespace run.

    Returns None when there is nothing to split (empty or single-word names).
    """
    if not isinstance(name, str):
        return None
    parts = name.split(None, 1)
    if len(parts) < 2:
        return None
    return parts[0], parts[1]


def build_name_lookup(
    undergrad: pl.DataFrame, graduate_raw: pl.DataFrame, fixes: Fixes
) -> pl.DataFrame:
    """Map each full name to its (first, last) split.

    Undergraduate rows already carry separate name columns, so they are the
    authority. Graduate names absent from the undergraduate data are split
    naively with `split_full_name`; names that cannot be split are left out
    and surface later as unmatched rows.

    Args:
        undergrad (pl.DataFrame): Normalized undergraduate rows.
        graduate_raw (pl.DataFrame): Graduate rows with a normalized
            `instructor_name`.
        fixes (Fixes): Correction tables; first-name fixes are applied to the
            graduate-only entries.

    Returns:
        pl.DataFrame: One row per `full_name` with `LOOKUP_COLS`.
    """
    known = (
        undergrad.filter(
            pl.col("instructor_first_name").is_not_null()
            & pl.col("instructor_last_name").is_not_null()
        )
        .select(
            full_name=pl.concat_str(
                ["instructor_first_name", "instructor_last_name"], separator=" "
            ),
            instructor_first_name="instructor_first_name",
            instructor_last_name="instructor_last_name",
            origin=pl.lit("undergrad"),
        )
        .sort(["full_name", "instructor_last_name", "instructor_first_name"])
        .unique(subset=["full_name"], keep="first", maintain_order=True)
    )

    seen = set(known["full_name"].to_list())
    extra: list[dict[str, str]] = []
    for name in sorted(graduate_raw["instructor_name"].drop_nulls().unique()):
        if name in seen:
            continue
        parts = split_full_name(name)
        if parts is None:
            continue
        first, last = parts
        extra.append(
            {
                "full_name": name,
                "instructor_first_name": fix_first_name(
                    last, first, fixes.first_name_fixes
                ),
                "instructor_last_name": last,
                "origin": "graduate",
            }
        )

    parsed = pl.DataFrame(extra, schema={col: pl.Utf8 for col in LOOKUP_COLS})
    return pl.concat([known.select(LOOKUP_COLS), parsed], how="vertical")


def reconcile_graduate(
    graduate_raw: pl.DataFrame, lookup: pl.DataFrame
) -> tuple[pl.DataFrame, pl.DataFrame]:
    """Attach first/last names to graduate rows via the name lookup.

    Returns:
        tuple[pl.DataFrame, pl.DataFrame]: The matched graduate rows (without
            `instructor_name`) and the rows that found no lookup entry, with
            a `reason` column.
    """
    ordered = graduate_raw.with_row_index("_order")
    joined = ordered.join(
        lookup.select(
            ["full_name", "instructor_first_name", "instructor_last_name"]
        ),
        left_on="instructor_name",
        right_on="full_name",
        how="left",
    ).sort("_order")

    matched = joined.filter(pl.col("instructor_last_name").is_not_null())
    unmatched = joined.filter(pl.col("instructor_last_name").is_null()).with_columns(
        reason=pl.when(pl.col("instructor_name").is_null())
        .then(pl.lit("no instructor listed"))
        .otherwise(pl.lit("name cannot be split into first and last"))
    )

    graduate = matched.drop(["_order", "instructor_name"])
    return graduate, unmatched.select(UNMATCHED_COLS)
