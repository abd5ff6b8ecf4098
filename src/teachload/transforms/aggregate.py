import polars as pl

SECTION_KEY = [
    "session_year",
    "session_code",
    "department_code",
    "course_number",
    "section_number",
]
INSTRUCTOR_KEY = ["instructor_last_name", "instructor_first_name"]
COURSE_KEY = ["department_code", "course_number"]

TOTAL_COLS = [
    "total_percentage",
    "total_credits_taught",
    "sections_taught",
    "distinct_courses_taught",
    "most_recent_rank",
]


def combine_rows(undergrad: pl.DataFrame, graduate: pl.DataFrame) -> pl.DataFrame:
    """Stack both programs' rows; columns missing on one side are null."""
    return pl.concat([undergrad, graduate], how="diagonal")


def attach_teaching_share(df: pl.DataFrame, credits: pl.DataFrame) -> pl.DataFrame:
    """Add `credits`, `percentage` and `credits_taught` to every instructor row.

    A section's instruction is shared equally among the rows listed for it:
    `percentage = 1 / rows in the section` and
    `credits_taught = percentage * credits`.
    """
    ordered = df.with_row_index("_order")
    joined = ordered.join(
        credits.select([*COURSE_KEY, "credits"]), on=COURSE_KEY, how="left"
    ).sort("_order")
    return (
        joined.with_columns(
            percentage=1.0 / pl.col("_order").count().over(SECTION_KEY)
        )
        .with_columns(credits_taught=pl.col("percentage") * pl.col("credits"))
        .drop("_order")
    )


def section_share_errors(df: pl.DataFrame, tolerance: float = 1e-9) -> list[str]:
    """Describe every section whose percentages do not add up to 1."""
    totals = df.group_by(SECTION_KEY).agg(share=pl.col("percentage").sum())
    bad = totals.filter((pl.col("share") - 1.0).abs() > tolerance)
    return [
        f"section {' '.join(str(v) for v in row[:-1])} sums to {row[-1]:.6f}"
        for row in bad.sort(SECTION_KEY).iter_rows()
    ]


def _chronological(df: pl.DataFrame, session_order: dict[str, int]) -> pl.DataFrame:
    """Sort rows by instructor, then year and session, keeping input order on ties."""
    return (
        df.with_row_index("_order")
        .with_columns(
            _session_rank=pl.col("session_code").replace_strict(
                session_order, default=len(session_order), return_dtype=pl.Int64
            )
        )
        .sort(
            [*INSTRUCTOR_KEY, "session_year", "_session_rank", "_order"],
            nulls_last=True,
        )
        .drop(["_order", "_session_rank"])
    )


def summarize_instructors(
    df: pl.DataFrame, session_order: dict[str, int], by_year: bool = False
) -> pl.DataFrame:
    """Roll up teaching share per instructor, optionally per session year.

    Args:
        df (pl.DataFrame): Output of `attach_teaching_share`.
        session_order (dict[str, int]): Order of session codes within a year.
        by_year (bool, optional): Add `session_year` to the key. Defaults to False.

    Returns:
        pl.DataFrame: The key columns followed by `TOTAL_COLS`.
    """
    keys = [*INSTRUCTOR_KEY, "session_year"] if by_year else list(INSTRUCTOR_KEY)
    return (
        _chronological(df, session_order)
        .group_by(keys, maintain_order=True)
        .agg(
            total_percentage=pl.col("percentage").sum(),
            total_credits_taught=pl.col("credits_taught").sum(),
            sections_taught=pl.len().cast(pl.Int64),
            distinct_courses_taught=pl.struct(COURSE_KEY).n_unique().cast(pl.Int64),
            most_recent_rank=pl.col("rank").drop_nulls().last(),
        )
        .sort(keys, nulls_last=True)
        .select([*keys, *TOTAL_COLS])
    )
