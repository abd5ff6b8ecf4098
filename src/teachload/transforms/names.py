import re

import polars as pl

from ..common import INSTRUCTOR_DELIMITERS, title_case_name
from ..errors import NameSplitError
from ..fixes import Fixes

UNDERGRAD_PARALLEL_COLS = ["instructor_last_name", "instructor_first_name", "rank"]
GRADUATE_PARALLEL_COLS = ["instructor_name", "rank"]

_NAME_STRUCT = pl.Struct(
    {"instructor_last_name": pl.Utf8, "instructor_first_name": pl.Utf8}
)


def _tokens(value: str | None) -> list[str | None] | None:
    """Split a cell on instructor delimiters; empty tokens become None."""
    if value is None:
        return None
    return [token.strip() or None for token in INSTRUCTOR_DELIMITERS.split(value)]


def split_instructor_columns(df: pl.DataFrame, columns: list[str]) -> pl.DataFrame:
    """Explode multi-instructor rows so that each instructor gets its own row.

    Every column in `columns` is split on the same delimiters (`;` or `/`) and
    the i-th token of each column lands on the i-th output row. A null column
    is broadcast as null onto every output row. Rows whose non-null columns
    disagree on the number of tokens cannot be paired up and are collected
    into a single `NameSplitError`.

    Args:
        df (pl.DataFrame): Course rows with text `columns`.
        columns (list[str]): Parallel columns, names first.

    Returns:
        pl.DataFrame: One row per instructor, same schema as `df`.

    Raises:
        NameSplitError: If any row has mismatched token counts.
    """
    records: list[dict] = []
    mismatched: list[dict] = []

    for record in df.iter_rows(named=True):
        tokens = {col: _tokens(record[col]) for col in columns}
        counts = {len(t) for t in tokens.values() if t is not None}
        if len(counts) > 1:
            mismatched.append(
                {
                    "source_sheet": record.get("source_sheet"),
                    "source_row": record.get("source_row"),
                    **{col: record[col] for col in columns},
                }
            )
            continue

        n = counts.pop() if counts else 1
        for i in range(n):
            row = dict(record)
            for col in columns:
                row[col] = None if tokens[col] is None else tokens[col][i]
            records.append(row)

    if mismatched:
        raise NameSplitError(
            f"{len(mismatched)} rows list a different number of entries "
            f"across {columns}",
            rows=pl.DataFrame(mismatched, infer_schema_length=None),
        )

    return pl.DataFrame(records, schema=df.schema)


def _squash(value: str) -> str:
    return re.sub(r"\s+", " ", value.strip())


def correction_index(corrections: dict[str, str]) -> dict[str, str]:
    """Key name corrections by their lowercased, space-squashed form."""
    return {_squash(k).lower(): v for k, v in corrections.items()}


def correct_name(value: str | None, index: dict[str, str]) -> str | None:
    """Replace a known misspelled name using a `correction_index` mapping."""
    if value is None:
        return None
    text = _squash(value)
    return index.get(text.lower(), text)


def case_name(value: str | None, case_corrections: dict[str, str]) -> str | None:
    """Title-case a name, then restore the known irregular casings."""
    if value is None:
        return None
    text = title_case_name(value)
    # longest first so "van de panne" wins over any shorter entry inside it
    for key in sorted(case_corrections, key=len, reverse=True):
        pattern = rf"(?<![\w'-]){re.escape(key)}(?![\w'-])"
        text = re.sub(
            pattern,
            lambda _m, v=case_corrections[key]: v,
            text,
            flags=re.IGNORECASE,
        )
    return text


def split_combined_name(
    last: str | None, first: str | None
) -> tuple[str | None, str | None]:
    """Split a `"Last, First"` value held in either name column."""
    if last is not None and "," in last:
        surname, _, given = last.partition(",")
        return surname.strip() or None, given.strip() or first
    if last is None and first is not None and "," in first:
        surname, _, given = first.partition(",")
        return surname.strip() or None, given.strip() or None
    return last, first


def fix_first_name(
    last: str | None, first: str | None, first_name_fixes: dict[str, dict[str, str]]
) -> str | None:
    if last is None or first is None:
        return first
    return first_name_fixes.get(last, {}).get(first, first)


def normalize_name_pair(
    last: str | None,
    first: str | None,
    fixes: Fixes,
    index: dict[str, str] | None = None,
) -> dict[str, str | None]:
    """Correct, split, case and disambiguate a single instructor's names."""
    if index is None:
        index = correction_index(fixes.name_corrections)
    last = correct_name(last, index)
    first = correct_name(first, index)
    last, first = split_combined_name(last, first)
    last = case_name(last, fixes.case_corrections)
    first = case_name(first, fixes.case_corrections)
    first = fix_first_name(last, first, fixes.first_name_fixes)
    return {"instructor_last_name": last, "instructor_first_name": first}


def normalize_full_name(
    value: str | None, fixes: Fixes, index: dict[str, str] | None = None
) -> str | None:
    """Correct and case a name as `"First Last"` without splitting it.

    A `"Last, First"` value is turned around first, and corrected again in
    its new order.
    """
    if index is None:
        index = correction_index(fixes.name_corrections)
    corrected = correct_name(value, index)
    if corrected is not None and "," in corrected:
        last, first = split_combined_name(corrected, None)
        flipped = " ".join(part for part in (first, last) if part)
        corrected = correct_name(flipped or None, index)
    return case_name(corrected, fixes.case_corrections)


def normalize_undergrad_names(df: pl.DataFrame, fixes: Fixes) -> pl.DataFrame:
    """Split multi-instructor undergraduate rows and clean both name columns."""
    columns = df.columns
    df = split_instructor_columns(df, UNDERGRAD_PARALLEL_COLS)
    if df.is_empty():
        return df

    index = correction_index(fixes.name_corrections)
    names = pl.struct(["instructor_last_name", "instructor_first_name"]).map_elements(
        lambda r: normalize_name_pair(
            r["instructor_last_name"], r["instructor_first_name"], fixes, index
        ),
        return_dtype=_NAME_STRUCT,
    )
    df = (
        df.with_columns(_names=names)
        .drop(["instructor_last_name", "instructor_first_name"])
        .unnest("_names")
    )
    return df.select(columns)


def normalize_graduate_names(df: pl.DataFrame, fixes: Fixes) -> pl.DataFrame:
    """Split multi-instructor graduate rows and clean the full-name column."""
    df = split_instructor_columns(df, GRADUATE_PARALLEL_COLS)
    if df.is_empty():
        return df

    index = correction_index(fixes.name_corrections)
    return df.with_columns(
        instructor_name=pl.col("instructor_name").map_elements(
            lambda v: normalize_full_name(v, fixes, index), return_dtype=pl.Utf8
        )
    )
