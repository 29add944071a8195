import io

from django.utils import timezone
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter

XLSX_CONTENT_TYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'

# (header, width)
COLUMNS = (
    ('Title', 30),
    ('Description', 50),
    ('Effort (Days)', 15),
    ('Due Date', 15),
    ('Status', 15),
    ('Created At', 20),
)

HEADER_FONT = Font(bold=True)
HEADER_FILL = PatternFill(fill_type='solid', fgColor='FFCCCCCC')


def _naive(value):
    # Excel has no notion of time zones.
    if timezone.is_aware(value):
        return timezone.make_naive(value)
    return value


def build_workbook(tasks):
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = 'Tasks'
    sheet.append([header for header, _ in COLUMNS])
    for index, (_, width) in enumerate(COLUMNS, start=1):
        sheet.column_dimensions[get_column_letter(index)].width = width
    for cell in sheet[1]:
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
    for task in tasks:
        sheet.append([
            task.title,
            task.description,
            task.effort_days,
            task.due_date,
            task.status,
            _naive(task.created_at),
        ])
    return workbook


def render_tasks_xlsx(tasks):
    """Return the tasks as the bytes of an .xlsx file, built in memory."""
    buffer = io.BytesIO()
    build_workbook(tasks).save(buffer)
    return buffer.getvalue()


def export_filename(now=None):
    now = now or timezone.now()
    return f"tasks-{int(now.timestamp() * 1000)}.xlsx"
