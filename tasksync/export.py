"""CSV export of task collections."""

from datetime import date
from pathlib import Path

from .models import Record

CSV_HEADERS = [
    "ID",
    "Title",
    "Category",
    "Priority",
    "Status",
    "Assigned To",
    "Deadline",
    "Completed At",
    "Notes",
]

UNKNOWN_ASSIGNEE = "Unknown"


def _quote(value: str | None) -> str:
    """Quote a text field, doubling embedded quotes."""
    return '"' + (value or "").replace('"', '""') + '"'


def tasks_to_csv(tasks: list[Record], users: list[Record]) -> str:
    """Render tasks as CSV text.

    Args:
        tasks: Tasks to export, in output order.
        users: Users used to resolve ``assignedTo`` to a full name.

    Returns:
        Header line plus one line per task, joined with newlines.
    """
    names = {u.get("id"): u.get("fullName", "") for u in users}

    lines = [",".join(CSV_HEADERS)]
    for task in tasks:
        assignee = names.get(task.get("assignedTo"), UNKNOWN_ASSIGNEE)
        row = [
            str(task.get("id", "")),
            _quote(task.get("title")),
            _quote(task.get("category")),
            str(task.get("priority", "")),
            str(task.get("status", "")),
            _quote(assignee),
            str(task.get("deadline", "")),
            str(task.get("completedAt") or ""),
            _quote(task.get("notes")),
        ]
        lines.append(",".join(row))

    return "\n".join(lines)


def export_filename(day: date | None = None) -> str:
    """Default report file name for ``day`` (today if omitted)."""
    day = day or date.today()
    return f"task_report_{day.isoformat()}.csv"


def write_csv(path: str | Path, content: str) -> Path:
    """Write CSV text with a UTF-8 BOM so spreadsheet tools detect the encoding."""
    path = Path(path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8-sig")
    return path
