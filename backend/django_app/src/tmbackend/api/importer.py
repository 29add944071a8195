"""Bulk task import from CSV and Excel uploads.

Both file formats are reduced to the same intermediate ``RawRow`` by a thin
adapter, and every ``RawRow`` goes through ``normalize_row``. Bad rows are
collected as error strings; good rows are inserted one at a time so that a
single failed insert does not undo the others.
"""

import codecs
import csv
import json
import logging
import os
import re
import tempfile
from dataclasses import dataclass, field
from datetime import date, datetime

from dateutil import parser as date_parser
from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from openpyxl import load_workbook

from tmbackend.api.models import Task

logger = logging.getLogger(__name__)

CSV_TYPE = 'text/csv'
EXCEL_TYPES = (
    'application/vnd.ms-excel',
    'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
)
ALLOWED_TYPES = (CSV_TYPE,) + EXCEL_TYPES

# Field slots in spreadsheet column order, with the header names accepted for
# each slot in a CSV file (compared lowercased).
FIELD_SLOTS = (
    ('title', ('title',)),
    ('description', ('description',)),
    ('effort_days', ('effort_days', 'effort (days)', 'effort')),
    ('due_date', ('due_date', 'due date')),
    ('status', ('status',)),
)

_LEADING_INT = re.compile(r'^\s*([+-]?\d+)')
_STATUS_LOOKUP = {
    key.lower(): value
    for value, label in Task.Status.choices
    for key in (value, label)
}


class UnsupportedFileType(Exception):
    def __init__(self, content_type):
        super().__init__("Invalid file type. Only Excel and CSV files are allowed.")
        self.content_type = content_type


class RowValidationError(Exception):
    pass


@dataclass
class RawRow:
    number: int
    values: dict
    source: dict = None

    def describe(self):
        if self.source is not None:
            return f"Invalid row data: {json.dumps(self.source, default=str)}"
        return f"Invalid data in row {self.number}"


@dataclass
class Candidate:
    title: str
    description: str
    effort_days: int
    due_date: date
    status: str = Task.Status.PENDING


@dataclass
class ParsedBatch:
    candidates: list = field(default_factory=list)
    errors: list = field(default_factory=list)


@dataclass
class ImportResult:
    imported: list = field(default_factory=list)
    errors: list = field(default_factory=list)
    parsed: int = 0


def row_from_mapping(number, mapping):
    """Adapt a CSV ``DictReader`` row, matching headers against slot aliases."""
    lowered = {}
    for key, value in mapping.items():
        if isinstance(key, str):
            lowered.setdefault(key.strip().lower(), value)
    values = {}
    for slot, aliases in FIELD_SLOTS:
        for alias in aliases:
            if lowered.get(alias) not in (None, ''):
                values[slot] = lowered[alias]
                break
    return RawRow(number=number, values=values, source=dict(mapping))


def row_from_cells(number, cells):
    """Adapt a spreadsheet row given as cell values in column order."""
    values = {}
    for (slot, _), value in zip(FIELD_SLOTS, cells):
        if value is not None:
            values[slot] = value
    return RawRow(number=number, values=values)


def _parse_title(value):
    if value is None:
        return ''
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def _parse_effort(value):
    if value is None or isinstance(value, bool):
        return 1
    if isinstance(value, (int, float)):
        effort = int(value)
    else:
        match = _LEADING_INT.match(str(value))
        if not match:
            return 1
        effort = int(match.group(1))
    return effort if effort >= 1 else 1


def _parse_due_date(value):
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if value is None or not str(value).strip():
        raise RowValidationError("Due date is required")
    text = str(value).strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return date_parser.parse(text).date()
    except (ValueError, OverflowError):
        raise RowValidationError(f"Invalid due date {text!r}")


def _parse_status(value):
    if value is None or not str(value).strip():
        return Task.Status.PENDING
    return _STATUS_LOOKUP.get(str(value).strip().lower(), Task.Status.PENDING)


def normalize_row(row):
    """Turn a ``RawRow`` into a ``Candidate`` or raise ``RowValidationError``.

    Title and due date are strict; a missing or unreadable effort silently
    becomes 1 and an unknown status becomes pending.
    """
    title = _parse_title(row.values.get('title'))
    if not title:
        raise RowValidationError("Title is required")
    description = row.values.get('description')
    return Candidate(
        title=title,
        description='' if description is None else str(description),
        effort_days=_parse_effort(row.values.get('effort_days')),
        due_date=_parse_due_date(row.values.get('due_date')),
        status=_parse_status(row.values.get('status')),
    )


def detect_csv_encoding(path):
    """Return 'utf-8-sig' when the whole file decodes as UTF-8, else 'cp1252'."""
    decoder = codecs.getincrementaldecoder('utf-8')()
    try:
        with open(path, 'rb') as handle:
            for chunk in iter(lambda: handle.read(64 * 1024), b''):
                decoder.decode(chunk)
        decoder.decode(b'', final=True)
    except UnicodeDecodeError:
        return 'cp1252'
    return 'utf-8-sig'


def iter_csv_rows(path):
    # Spreadsheet programs on Windows save CSV as cp1252; bytes cp1252 leaves
    # undefined are replaced rather than failing the whole file.
    encoding = detect_csv_encoding(path)
    with open(path, newline='', encoding=encoding, errors='replace') as handle:
        for number, mapping in enumerate(csv.DictReader(handle), start=2):
            yield row_from_mapping(number, mapping)


def iter_excel_rows(path):
    workbook = load_workbook(path, read_only=True, data_only=True)
    try:
        sheet = workbook.worksheets[0]
        for number, cells in enumerate(sheet.iter_rows(min_row=2, max_col=len(FIELD_SLOTS), values_only=True), start=2):
            if all(cell is None for cell in cells):
                continue
            yield row_from_cells(number, cells)
    finally:
        workbook.close()


def parse_file(path, content_type):
    rows = iter_csv_rows(path) if content_type == CSV_TYPE else iter_excel_rows(path)
    batch = ParsedBatch()
    for row in rows:
        try:
            batch.candidates.append(normalize_row(row))
        except RowValidationError as exc:
            batch.errors.append(f"{row.describe()} - {exc}")
    return batch


def commit(candidates, store):
    """Insert candidates one by one; return ``(imported, errors)``."""
    imported, errors = [], []
    for candidate in candidates:
        try:
            with transaction.atomic():
                task = store.create(
                    title=candidate.title,
                    description=candidate.description,
                    effort_days=candidate.effort_days,
                    due_date=candidate.due_date,
                    status=candidate.status,
                )
        except (ValidationError, DatabaseError) as exc:
            reason = '; '.join(exc.messages) if isinstance(exc, ValidationError) else str(exc)
            errors.append(f'Failed to insert task "{candidate.title}": {reason}')
        else:
            imported.append(task)
    return imported, errors


def check_content_type(content_type):
    if content_type not in ALLOWED_TYPES:
        raise UnsupportedFileType(content_type)


def spool_upload(upload, upload_dir):
    """Write an uploaded file to a temporary file and return its path."""
    suffix = os.path.splitext(upload.name or '')[1]
    fd, path = tempfile.mkstemp(prefix='upload-', suffix=suffix, dir=upload_dir)
    try:
        with os.fdopen(fd, 'wb') as out:
            for chunk in upload.chunks():
                out.write(chunk)
    except BaseException:
        os.remove(path)
        raise
    return path


def import_upload(upload, store, upload_dir):
    """Run the whole import for one uploaded file on behalf of ``store.user``.

    Raises ``UnsupportedFileType`` before touching the disk when the declared
    content type is not CSV or Excel. The spooled copy of the upload is removed
    on every exit path.
    """
    check_content_type(upload.content_type)
    path = spool_upload(upload, upload_dir)
    try:
        batch = parse_file(path, upload.content_type)
        result = ImportResult(errors=list(batch.errors), parsed=len(batch.candidates))
        if not batch.candidates:
            logger.info("Bulk import for user=%s found no valid rows (%d errors)",
                        store.user.id, len(batch.errors))
            return result
        imported, insert_errors = commit(batch.candidates, store)
        result.imported = imported
        result.errors.extend(insert_errors)
        logger.info("Bulk import for user=%s imported=%d errors=%d",
                    store.user.id, len(imported), len(result.errors))
        return result
    finally:
        if os.path.exists(path):
            os.remove(path)
