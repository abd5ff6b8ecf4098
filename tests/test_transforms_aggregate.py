import polars as pl
import pytest

from teachload.fixes import SESSION_ORDER
from teachload.transforms.aggregate import (
    SECTION_KEY,
    attach_teaching_share,
    combine_rows,
    section_share_errors,
    summarize_instructors,
)

_SCHEMA = {
    "session_year": pl.Int64,
    "session_code": pl.Utf8,
    "department_code": pl.Utf8,
    "course_number": pl.Utf8,
    "section_number": pl.Utf8,
    "instructor_last_name": pl.Utf8,
    "instructor_first_name": pl.Utf8,
    "rank": pl.Utf8,
}


def _rows(*rows):
    return pl.DataFrame([dict(zip(_SCHEMA, row)) for row in rows], schema=_SCHEMA)


CREDITS = pl.DataFrame(
    {
        "department_code": ["CPSC", "CPSC", "CPSC"],
        "course_number": ["110", "221", "500"],
        "credits": [4.0, 4.0, 3.0],
        "origin": ["roster", "roster", "roster"],
    }
)


@pytest.fixture
def shared_rows():
    return _rows(
        (2019, "W", "CPSC", "110", "101", "Smith", "Alice", "Lecturer"),
        (2019, "W", "CPSC", "110", "101", "Jones", "Bob", "Professor"),
        (2019, "W", "CPSC", "110", "101", "Lee", "Carol", "Lecturer"),
        (2020, "W", "CPSC", "221", "201", "Smith", "Alice", "Senior Lecturer"),
        (2020, "S", "CPSC", "500", "001", "Smith", "Alice", "Associate Professor"),
        (2020, "S", "CPSC", "500", "001", "Jones", "Bob", None),
    )


class TestTeachingShare:
    def test_three_instructors_share_a_section(self, shared_rows):
        """A section listed as "Smith;Jones;Lee" gives each a third."""
        df = attach_teaching_share(shared_rows.head(3), CREDITS)

        section = df.filter(pl.col("course_number") == "110")
        assert section.height == 3
        assert section["percentage"].to_list() == pytest.approx([1 / 3] * 3)
        assert section["credits_taught"].to_list() == pytest.approx([4 / 3] * 3)

    def test_every_section_sums_to_one(self, shared_rows):
        df = attach_teaching_share(shared_rows, CREDITS)

        sums = df.group_by(SECTION_KEY).agg(pl.col("percentage").sum())
        assert sums["percentage"].to_list() == pytest.approx([1.0] * sums.height)
        assert section_share_errors(df) == []
        assert df["percentage"].sum() == pytest.approx(3.0)

    def test_share_is_stable_under_reordering(self, shared_rows):
        forward = attach_teaching_share(shared_rows, CREDITS)
        backward = attach_teaching_share(shared_rows.reverse(), CREDITS).reverse()

        assert forward["percentage"].to_list() == backward["percentage"].to_list()

    def test_row_order_is_preserved(self, shared_rows):
        df = attach_teaching_share(shared_rows, CREDITS)

        assert df.select(["instructor_last_name", "course_number"]).rows() == shared_rows.select(
            ["instructor_last_name", "course_number"]
        ).rows()

    def test_bad_share_is_reported(self, shared_rows):
        df = attach_teaching_share(shared_rows, CREDITS).with_columns(
            percentage=pl.lit(0.25)
        )

        assert len(section_share_errors(df)) == 3


class TestSummaries:
    def test_totals_per_instructor(self, shared_rows):
        df = attach_teaching_share(shared_rows, CREDITS)

        totals = summarize_instructors(df, SESSION_ORDER)

        smith = totals.filter(pl.col("instructor_last_name") == "Smith").row(0, named=True)
        assert smith["total_percentage"] == pytest.approx(1 / 3 + 1 + 0.5)
        assert smith["total_credits_taught"] == pytest.approx(4 / 3 + 4 + 1.5)
        assert smith["sections_taught"] == 3
        assert smith["distinct_courses_taught"] == 3
        # 2020 W follows 2020 S even though it comes first in the input
        assert smith["most_recent_rank"] == "Senior Lecturer"

        jones = totals.filter(pl.col("instructor_last_name") == "Jones").row(0, named=True)
        assert jones["most_recent_rank"] == "Professor"
        assert totals["instructor_last_name"].to_list() == ["Jones", "Lee", "Smith"]

    def test_session_order_decides_most_recent(self, shared_rows):
        df = attach_teaching_share(shared_rows, CREDITS)

        totals = summarize_instructors(df, {"W": 0, "S": 1})

        smith = totals.filter(pl.col("instructor_last_name") == "Smith").row(0, named=True)
        assert smith["most_recent_rank"] == "Associate Professor"

    def test_totals_by_year(self, shared_rows):
        df = attach_teaching_share(shared_rows, CREDITS)

        by_year = summarize_instructors(df, SESSION_ORDER, by_year=True)

        smith = by_year.filter(pl.col("instructor_last_name") == "Smith")
        assert smith["session_year"].to_list() == [2019, 2020]
        assert smith["total_percentage"].to_list() == pytest.approx([1 / 3, 1.5])
        assert smith["sections_taught"].to_list() == [1, 2]
        assert by_year["total_percentage"].sum() == pytest.approx(3.0)

    def test_combine_rows_fills_missing_columns(self):
        ug = _rows((2019, "W", "CPSC", "110", "101", "Smith", "Alice", None)).with_columns(
            program=pl.lit("undergraduate")
        )
        grad = _rows((2020, "S", "CPSC", "500", "001", "Jones", "Bob", None))

        combined = combine_rows(ug, grad)

        assert combined.height == 2
        assert combined["program"].to_list() == ["undergraduate", None]
