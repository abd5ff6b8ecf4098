"""Static correction tables for instructor names and course credits.

The built-in tables below cover the known problems in the enrollment exports.
A YAML file (``FIXES_FILE``) can extend them without code changes::

    name_corrections:
      "Jeff Clune": "Jeffrey Clune"
    case_corrections:
      "mcgrenere": "McGrenere"
    first_name_fixes:
      Clune:
        Jeff: Jeffrey
    credit_overrides:
      - {department_code: CPSC, course_number: "448", credits: 6}
    session_order: {S: 0, W: 1}
    credit_min_year: 2016
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TypedDict

import yaml


class CreditOverride(TypedDict):
    department_code: str
    course_number: str
    credits: float


# Raw observed single-instructor token -> corrected token.
NAME_CORRECTIONS: dict[str, str] = {
    "Jeff Clune": "Jeffrey Clune",
    "Clune, Jeff": "Clune, Jeffrey",
    "Mclean, Karon": "MacLean, Karon",
    "Karon Maclean": "Karon MacLean",
    "Bill Aiello": "William Aiello",
    "Ng, Raymond T": "Ng, Raymond",
    "Raymond T Ng": "Raymond Ng",
    "Murphy, Gail C.": "Murphy, Gail",
}

# Lowercase name (or name word) -> casing that plain title-casing gets wrong.
CASE_CORRECTIONS: dict[str, str] = {
    "van de panne": "van de Panne",
    "maclean": "MacLean",
    "mcgrenere": "McGrenere",
    "mcnaughton": "McNaughton",
    "macdonald": "MacDonald",
    "de freitas": "de Freitas",
    "von zur gathen": "von zur Gathen",
}

# Last name -> {observed first name -> canonical first name}.
FIRST_NAME_FIXES: dict[str, dict[str, str]] = {
    "Clune": {"Jeff": "Jeffrey"},
    "Aiello": {"Bill": "William"},
    "Little": {"Jim": "James"},
    "Wolfman": {"Steve": "Steven"},
}

# Courses missing from the outcome rosters.
CREDIT_OVERRIDES: list[CreditOverride] = [
    {"department_code": "CPSC", "course_number": "448", "credits": 6.0},
    {"department_code": "CPSC", "course_number": "449", "credits": 6.0},
    {"department_code": "CPSC", "course_number": "490", "credits": 3.0},
    {"department_code": "CPSC", "course_number": "590", "credits": 3.0},
]

# Within an academic year the summer session runs before the winter session.
SESSION_ORDER: dict[str, int] = {"S": 0, "W": 1}

# Credit values before this year reflect older course definitions.
CREDIT_MIN_YEAR = 2016


@dataclass
class Fixes:
    """Every static correction the pipeline applies."""

    name_corrections: dict[str, str] = field(
        default_factory=lambda: dict(NAME_CORRECTIONS)
    )
    case_corrections: dict[str, str] = field(
        default_factory=lambda: dict(CASE_CORRECTIONS)
    )
    first_name_fixes: dict[str, dict[str, str]] = field(
        default_factory=lambda: {k: dict(v) for k, v in FIRST_NAME_FIXES.items()}
    )
    credit_overrides: list[CreditOverride] = field(
        default_factory=lambda: [CreditOverride(**o) for o in CREDIT_OVERRIDES]
    )
    session_order: dict[str, int] = field(default_factory=lambda: dict(SESSION_ORDER))
    credit_min_year: int = CREDIT_MIN_YEAR

    def merge(self, payload: dict) -> Fixes:
        """Overlay a parsed fixes payload: mappings update, overrides extend."""
        unknown = set(payload) - {
            "name_corrections",
            "case_corrections",
            "first_name_fixes",
            "credit_overrides",
            "session_order",
            "credit_min_year",
        }
        if unknown:
            raise ValueError(f"Unknown keys in fixes file: {sorted(unknown)}")

        self.name_corrections.update(payload.get("name_corrections") or {})
        self.case_corrections.update(
            {k.lower(): v for k, v in (payload.get("case_corrections") or {}).items()}
        )
        for last, firsts in (payload.get("first_name_fixes") or {}).items():
            self.first_name_fixes.setdefault(last, {}).update(firsts)
        for override in payload.get("credit_overrides") or []:
            missing = {"department_code", "course_number", "credits"} - set(override)
            if missing:
                raise ValueError(f"Credit override {override} lacks {sorted(missing)}")
            self.credit_overrides.append(
                CreditOverride(
                    department_code=str(override["department_code"]),
                    course_number=str(override["course_number"]),
                    credits=float(override["credits"]),
                )
            )
        self.session_order.update(payload.get("session_order") or {})
        if payload.get("credit_min_year") is not None:
            self.credit_min_year = int(payload["credit_min_year"])
        return self


def load_fixes(path: Path | None = None) -> Fixes:
    """Return the built-in fixes, extended by the YAML file at `path` if given."""
    fixes = Fixes()
    if path is None:
        return fixes
    if not path.exists():
        raise FileNotFoundError(f"Fixes file {path=} does not exist.")
    payload = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    return fixes.merge(payload)
