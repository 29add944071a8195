from datetime import date, datetime

import pytest

from tmbackend.api import importer
from tmbackend.api.importer import (
    RowValidationError,
    UnsupportedFileType,
    normalize_row,
    row_from_cells,
    row_from_mapping,
)

SPEC_CSV = 'title,description,effort_days,due_date\n"A","",2,"2024-12-31"\n"","",1,"2024-12-30"\n'


def test_mapping_headers_match_aliases_case_insensitively():
    row = row_from_mapping(2, {
        " TITLE ": "Plan sprint",
        "Description": "notes",
        "Effort (Days)": "4",
        "Due Date": "2025-01-15",
    })

    candidate = normalize_row(row)

    assert candidate.title == "Plan sprint"
    assert candidate.description == "notes"
    assert candidate.effort_days == 4
    assert candidate.due_date == date(2025, 1, 15)
    assert candidate.status == "pending"


def test_mapping_accepts_short_effort_alias():
    row = row_from_mapping(2, {"title": "x", "effort": "7", "due_date": "2025-01-15"})

    assert normalize_row(row).effort_days == 7


def test_cells_are_read_positionally():
    row = row_from_cells(3, ["Deploy", None, 2.0, datetime(2025, 2, 1, 0, 0), "In Progress"])

    candidate = normalize_row(row)

    assert candidate.title == "Deploy"
    assert candidate.description == ""
    assert candidate.effort_days == 2
    assert candidate.due_date == date(2025, 2, 1)
    assert candidate.status == "in_progress"


@pytest.mark.parametrize("raw,expected", [
    (None, 1),
    ("", 1),
    ("abc", 1),
    ("0", 1),
    (-3, 1),
    ("3 days", 3),
    ("12", 12),
    (5, 5),
])
def test_effort_falls_back_to_one(raw, expected):
    row = row_from_mapping(2, {"title": "t", "effort_days": raw, "due_date": "2025-01-01"})

    assert normalize_row(row).effort_days == expected


@pytest.mark.parametrize("values", [
    {"title": "", "due_date": "2025-01-01"},
    {"title": "   ", "due_date": "2025-01-01"},
    {"title": "t"},
    {"title": "t", "due_date": "someday"},
])
def test_invalid_rows_are_rejected(values):
    with pytest.raises(RowValidationError):
        normalize_row(row_from_mapping(2, values))


def test_lenient_due_date_formats():
    row = row_from_mapping(2, {"title": "t", "due_date": "March 5, 2025"})

    assert normalize_row(row).due_date == date(2025, 3, 5)


def test_numeric_title_cell_becomes_text():
    assert normalize_row(row_from_cells(2, [2024.0, None, None, date(2025, 1, 1)])).title == "2024"


def test_row_descriptions():
    assert row_from_mapping(2, {"title": ""}).describe() == 'Invalid row data: {"title": ""}'
    assert row_from_cells(7, [None]).describe() == "Invalid data in row 7"


@pytest.mark.parametrize("content_type", ["application/pdf", "text/plain", "", None])
def test_unsupported_content_types(content_type):
    with pytest.raises(UnsupportedFileType):
        importer.check_content_type(content_type)


def test_parse_csv_collects_rows_and_errors(tmp_path):
    path = tmp_path / "tasks.csv"
    path.write_text(SPEC_CSV, encoding="utf-8")

    batch = importer.parse_file(str(path), "text/csv")

    assert len(batch.candidates) == 1
    assert batch.candidates[0].title == "A"
    assert batch.candidates[0].effort_days == 2
    assert batch.candidates[0].due_date == date(2024, 12, 31)
    assert len(batch.errors) == 1
    assert "Title is required" in batch.errors[0]


def test_parse_csv_tolerates_byte_order_mark(tmp_path):
    path = tmp_path / "tasks.csv"
    path.write_bytes(b"\xef\xbb\xbftitle,due_date\nA,2025-01-01\n")

    batch = importer.parse_file(str(path), "text/csv")

    assert [c.title for c in batch.candidates] == ["A"]


@pytest.mark.parametrize("raw", ["archived", "done", "", None])
def test_unknown_status_falls_back_to_pending(raw):
    row = row_from_mapping(2, {"title": "t", "due_date": "2025-01-01", "status": raw})

    assert normalize_row(row).status == "pending"


def test_parse_csv_falls_back_for_windows_encoding(tmp_path):
    path = tmp_path / "tasks.csv"
    path.write_bytes("title,due_date\nCafé review,2025-01-01\n".encode("cp1252"))

    batch = importer.parse_file(str(path), "text/csv")

    assert [c.title for c in batch.candidates] == ["Café review"]
    assert batch.errors == []
