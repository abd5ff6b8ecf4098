import tempfile
from pathlib import Path

import pytest
from openpyxl import Workbook

UNDERGRAD_HEADER = [
    "Session Year",
    "Session Cd",
    "Subject Code",
    "Course Number",
    "Section Number",
    "Term",
    "Instructor Last Name",
    "Instructor First Name",
    "Rank",
    "Enrolment",
]

UNDERGRAD_ROWS = [
    [2019, "W", "CPSC", 110, "101", "1", "Smith;Jones;Lee", "Alice;Bob;Carol",
     "Lecturer;Professor;Lecturer", 150],
    [2019, "W", "CPSC", 221, "101", "2", "CLUNE, JEFF", None, "Assistant Professor", 120],
    [2020, "W", "CPSC", 221, "201", "1", "Smith", "Alice", "Senior Lecturer", 80],
    [2020, "W", "cpsc", "320/420", "101", "1", "van de panne", "michiel", "Professor", 60],
]

GRADUATE_HEADER = [
    "Year",
    "Session",
    "Dept",
    "Course",
    "Section",
    "Term",
    "Instructor",
    "Position",
    "Enrolled",
]

GRADUATE_ROWS = [
    [2019, "W", "CPSC", 500, "001", "1", "Jeff Clune", "Assistant Professor", 15],
    [2020, "S", "CPSC", 540, "001", "1", "Alice Smith / Dana Scully",
     "Associate Professor / Professor", 20],
    [2020, "S", "CPSC", 448, "001", "1", "Michiel van de Panne", "Professor", 5],
]

ROSTER_HEADER = ["Subject", "Course", "Year", "Credits"]

ROSTER_A = [
    ["CPSC", 110, 2015, 3],
    ["CPSC", 110, 2018, 4],
    ["CPSC", 221, 2017, 4],
    ["CPSC", 320, 2019, 3],
]

ROSTER_B = [
    ["CPSC", 420, 2019, 3],
    ["CPSC", 500, 2018, 3],
    ["CPSC", 540, 2020, 3],
    ["CPSC", 110, 2019, 4],
]


def write_workbook(path: Path, sheets: dict[str, tuple[list, list[list]]]) -> Path:
    """Save a workbook with one sheet per `name: (header, rows)` entry."""
    workbook = Workbook()
    workbook.remove(workbook.active)
    for name, (header, rows) in sheets.items():
        ws = workbook.create_sheet(name)
        ws.append(header)
        for row in rows:
            ws.append(row)
    workbook.save(path)
    return path


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_source_xlsx(temp_dir):
    """Create the enrollment workbook with both program sheets."""
    return write_workbook(
        temp_dir / "enrollment.xlsx",
        {
            "Undergraduate": (UNDERGRAD_HEADER, UNDERGRAD_ROWS),
            "Graduate": (GRADUATE_HEADER, GRADUATE_ROWS),
        },
    )


@pytest.fixture
def sample_outcomes_dir(temp_dir):
    """Create two course-outcome rosters."""
    outcomes = temp_dir / "outcomes"
    outcomes.mkdir()
    write_workbook(outcomes / "outcomes_2016-2019.xlsx", {"Sheet1": (ROSTER_HEADER, ROSTER_A)})
    write_workbook(outcomes / "outcomes_2019-2021.xlsx", {"Sheet1": (ROSTER_HEADER, ROSTER_B)})
    return outcomes


@pytest.fixture
def test_env(temp_dir, sample_source_xlsx, sample_outcomes_dir, monkeypatch):
    """Set up test environment variables."""
    monkeypatch.setenv("SOURCE_FILE", str(sample_source_xlsx))
    monkeypatch.setenv("OUTCOMES_DIR", str(sample_outcomes_dir))
    monkeypatch.setenv("OUTPUT_FILE", str(temp_dir / "out" / "teaching_load.xlsx"))
    monkeypatch.delenv("FIXES_FILE", raising=False)
    monkeypatch.delenv("CREDIT_MIN_YEAR", raising=False)
    yield temp_dir
