import polars as pl

from teachload.fixes import Fixes
from teachload.transforms.names import normalize_graduate_names
from teachload.transforms.reconcile import (
    build_name_lookup,
    reconcile_graduate,
    split_full_name,
)

_COURSE = {
    "session_year": pl.Int64,
    "session_code": pl.Utf8,
    "department_code": pl.Utf8,
    "course_number": pl.Utf8,
    "section_number": pl.Utf8,
    "rank": pl.Utf8,
    "source_sheet": pl.Utf8,
    "source_row": pl.Int64,
}


def _undergrad(pairs):
    rows = [
        {
            "session_year": 2019,
            "session_code": "W",
            "department_code": "CPSC",
            "course_number": "110",
            "section_number": f"10{i}",
            "rank": None,
            "source_sheet": "Undergraduate",
            "source_row": i + 2,
            "instructor_first_name": first,
            "instructor_last_name": last,
        }
        for i, (first, last) in enumerate(pairs)
    ]
    return pl.DataFrame(
        rows,
        schema={**_COURSE, "instructor_first_name": pl.Utf8, "instructor_last_name": pl.Utf8},
    )


def _graduate(names):
    rows = [
        {
            "session_year": 2020,
            "session_code": "W",
            "department_code": "CPSC",
            "course_number": "500",
            "section_number": f"00{i}",
            "rank": None,
            "source_sheet": "Graduate",
            "source_row": i + 2,
            "instructor_name": name,
        }
        for i, name in enumerate(names)
    ]
    return pl.DataFrame(rows, schema={**_COURSE, "instructor_name": pl.Utf8})


class TestSplitFullName:
    def test_split_at_first_space(self):
        assert split_full_name("Dana Scully") == ("Dana", "Scully")
        assert split_full_name("Michiel van de Panne") == ("Michiel", "van de Panne")

    def test_unsplittable(self):
        assert split_full_name("Plato") is None
        assert split_full_name("") is None
        assert split_full_name(None) is None


class TestNameLookup:
    def test_undergrad_names_take_precedence(self):
        undergrad = _undergrad([("Mary Anne", "Smith"), ("Jeffrey", "Clune")])
        graduate = _graduate(["Mary Anne Smith", "Dana Scully", "Plato", None])

        lookup = build_name_lookup(undergrad, graduate, Fixes())

        by_name = {row["full_name"]: row for row in lookup.to_dicts()}
        assert by_name["Mary Anne Smith"]["instructor_first_name"] == "Mary Anne"
        assert by_name["Mary Anne Smith"]["origin"] == "undergrad"
        assert by_name["Dana Scully"]["instructor_last_name"] == "Scully"
        assert by_name["Dana Scully"]["origin"] == "graduate"
        assert "Plato" not in by_name
        assert lookup["full_name"].is_duplicated().sum() == 0

    def test_duplicate_undergrad_rows_collapse(self):
        undergrad = _undergrad([("Alice", "Smith"), ("Alice", "Smith")])

        lookup = build_name_lookup(undergrad, _graduate([]), Fixes())

        assert lookup.height == 1

    def test_first_name_fixes_apply_to_graduate_only_names(self):
        lookup = build_name_lookup(_undergrad([]), _graduate(["Bill Aiello"]), Fixes())

        assert lookup.row(0, named=True)["instructor_first_name"] == "William"


class TestReconcileGraduate:
    def test_jeff_clune_example(self):
        """A raw graduate "Jeff Clune" ends up as first=Jeffrey, last=Clune."""
        fixes = Fixes()
        undergrad = _undergrad([("Jeffrey", "Clune")])
        graduate_raw = normalize_graduate_names(_graduate(["Jeff Clune"]), fixes)

        lookup = build_name_lookup(undergrad, graduate_raw, fixes)
        graduate, unmatched = reconcile_graduate(graduate_raw, lookup)

        assert unmatched.is_empty()
        assert graduate.select(
            ["instructor_first_name", "instructor_last_name"]
        ).rows() == [("Jeffrey", "Clune")]
        assert "instructor_name" not in graduate.columns

    def test_unmatched_rows_are_reported_not_dropped_silently(self):
        fixes = Fixes()
        graduate_raw = _graduate(["Dana Scully", "Plato", None])

        lookup = build_name_lookup(_undergrad([]), graduate_raw, fixes)
        graduate, unmatched = reconcile_graduate(graduate_raw, lookup)

        assert graduate.height == 1
        assert unmatched["source_row"].to_list() == [3, 4]
        assert unmatched["reason"].to_list() == [
            "name cannot be split into first and last",
            "no instructor listed",
        ]
        assert graduate.height + unmatched.height == graduate_raw.height

    def test_row_order_is_preserved(self):
        graduate_raw = _graduate(["Zed Zulu", "Amy Adams", "Mo Moe"])
        lookup = build_name_lookup(_undergrad([]), graduate_raw, Fixes())

        graduate, _ = reconcile_graduate(graduate_raw, lookup)

        assert graduate["source_row"].to_list() == [2, 3, 4]

    def test_combined_graduate_name_matches_undergrad_entry(self):
        fixes = Fixes()
        undergrad = _undergrad([("Dana", "Scully")])
        graduate_raw = normalize_graduate_names(_graduate(["Scully, Dana"]), fixes)

        lookup = build_name_lookup(undergrad, graduate_raw, fixes)
        graduate, unmatched = reconcile_graduate(graduate_raw, lookup)

        assert unmatched.is_empty()
        assert graduate.select(
            ["instructor_first_name", "instructor_last_name"]
        ).rows() == [("Dana", "Scully")]
