"""Transform utilities for the teaching-load pipeline."""

from .aggregate import attach_teaching_share, combine_rows, summarize_instructors
from .credits import build_credit_table, explode_course_numbers, taught_courses
from .names import (
    normalize_graduate_names,
    normalize_undergrad_names,
    split_instructor_columns,
)
from .reconcile import build_name_lookup, reconcile_graduate

__all__ = [
    "attach_teaching_share",
    "build_credit_table",
    "build_name_lookup",
    "combine_rows",
    "explode_course_numbers",
    "normalize_graduate_names",
    "normalize_undergrad_names",
    "reconcile_graduate",
    "split_instructor_columns",
    "summarize_instructors",
    "taught_courses",
]
