import polars as pl

from ..common import console
from ..errors import AmbiguousCreditError, MissingCreditError
from ..fixes import CreditOverride

COURSE_KEY = ["department_code", "course_number"]
CREDIT_COLS = ["department_code", "course_number", "credits", "origin"]


def taught_courses(*frames: pl.DataFrame) -> pl.DataFrame:
    """Distinct (department_code, course_number) pairs across `frames`."""
    pairs = [df.select(COURSE_KEY) for df in frames if not df.is_empty()]
    if not pairs:
        return pl.DataFrame(schema={col: pl.Utf8 for col in COURSE_KEY})
    return (
        pl.concat(pairs, how="vertical")
        .drop_nulls()
        .unique(maintain_order=True)
        .sort(COURSE_KEY)
    )


def explode_course_numbers(df: pl.DataFrame) -> pl.DataFrame:
    """Add `roster_number`: one row per number in a code like `"101/102"`."""
    return (
        df.with_columns(
            roster_number=pl.col("course_number")
            .str.replace_all(r"[;,]", "/")
            .str.split("/")
        )
        .explode("roster_number")
        .with_columns(roster_number=pl.col("roster_number").str.strip_chars())
        .filter(pl.col("roster_number").str.len_chars() > 0)
    )


def prepare_roster(roster: pl.DataFrame, min_year: int) -> pl.DataFrame:
    """Keep roster entries from `min_year` on, one per distinct credit value.

    Course credit values changed over the years; only the recent window
    describes the courses as they are taught now.
    """
    return (
        roster.with_columns(
            department_code=pl.col("department_code")
            .str.strip_chars()
            .str.to_uppercase(),
            course_number=pl.col("course_number").str.strip_chars(),
            year=pl.col("year").cast(pl.Utf8).str.extract(r"(\d{4})").cast(pl.Int64),
            credits=pl.col("credits").cast(pl.Float64, strict=False),
        )
        .filter(pl.col("year") >= min_year)
        .drop_nulls(subset=["department_code", "course_number", "credits"])
        .select(["department_code", "course_number", "credits"])
        .unique()
    )


def _candidates_as_text(df: pl.DataFrame) -> pl.DataFrame:
    return df.with_columns(
        candidates=pl.col("candidates").cast(pl.List(pl.Utf8)).list.join(", ")
    )


def _overrides_frame(overrides: list[CreditOverride]) -> pl.DataFrame:
    df = pl.DataFrame(
        [dict(o) for o in overrides],
        schema={
            "department_code": pl.Utf8,
            "course_number": pl.Utf8,
            "credits": pl.Float64,
        },
    ).unique()

    conflicting = (
        df.group_by(COURSE_KEY)
        .agg(candidates=pl.col("credits").sort())
        .filter(pl.col("candidates").list.len() > 1)
    )
    if not conflicting.is_empty():
        raise AmbiguousCreditError(
            f"{conflicting.height} courses have conflicting credit overrides",
            rows=_candidates_as_text(conflicting),
        )
    return df


def build_credit_table(
    taught: pl.DataFrame,
    roster: pl.DataFrame,
    overrides: list[CreditOverride],
) -> pl.DataFrame:
    """Resolve exactly one credit value for every taught course.

    Multi-number codes are exploded and looked up number by number; all the
    numbers of one code must agree. Courses the roster does not know are taken
    from `overrides`.

    Args:
        taught (pl.DataFrame): Distinct taught courses, see `taught_courses`.
        roster (pl.DataFrame): Output of `prepare_roster`.
        overrides (list[CreditOverride]): Manual credit values.

    Returns:
        pl.DataFrame: `CREDIT_COLS`, one row per taught course.

    Raises:
        AmbiguousCreditError: A course resolves to several credit values.
        MissingCreditError: A course has neither a roster nor an override value.
    """
    exploded = explode_course_numbers(taught)
    joined = exploded.join(
        roster.rename({"course_number": "roster_number"}),
        on=["department_code", "roster_number"],
        how="left",
    )
    resolved = joined.group_by(COURSE_KEY, maintain_order=True).agg(
        candidates=pl.col("credits").drop_nulls().unique().sort()
    )

    ambiguous = resolved.filter(pl.col("candidates").list.len() > 1)
    if not ambiguous.is_empty():
        raise AmbiguousCreditError(
            f"{ambiguous.height} courses have more than one credit value",
            rows=_candidates_as_text(ambiguous),
        )

    found = resolved.filter(pl.col("candidates").list.len() == 1).select(
        *COURSE_KEY,
        credits=pl.col("candidates").list.first(),
        origin=pl.lit("roster"),
    )

    override_df = _overrides_frame(overrides)
    redundant = override_df.join(found, on=COURSE_KEY, how="semi")
    for dept, number in redundant.select(COURSE_KEY).iter_rows():
        console.log(
            f"[yellow]Ignoring credit override[/yellow] {dept} {number}: "
            "the roster already lists it"
        )

    missing = resolved.filter(pl.col("candidates").list.len() == 0).select(COURSE_KEY)
    patched = missing.join(override_df, on=COURSE_KEY, how="left").with_columns(
        origin=pl.lit("override")
    )

    still_missing = patched.filter(pl.col("credits").is_null())
    if not still_missing.is_empty():
        raise MissingCreditError(
            f"{still_missing.height} taught courses have no credit value",
            rows=still_missing.select(COURSE_KEY),
        )

    return pl.concat(
        [found.select(CREDIT_COLS), patched.select(CREDIT_COLS)], how="vertical"
    ).sort(COURSE_KEY)
