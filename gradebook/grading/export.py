import csv
import io

import typing as t

from gradebook.model import GradeColumn, StudentGradeRow


def export_csv(columns: t.Sequence[GradeColumn], rows: t.Iterable[StudentGradeRow]) -> str:
    """Render a course's grade center as CSV.

    Columns appear in the order given (the display order); an ungraded cell
    is an empty string, never 0. Student names are always quoted.
    """
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(["Student Name", "Student Email", *(c.name for c in columns), "Overall %", "Overall Grade"])

    for row in rows:
        cells = [row.student_email]
        for column in columns:
            entry = row.grades.get(column.column_id)
            cells.append(_format_number(entry.grade) if entry is not None else "")
        if row.calculated_at is not None:
            cells.append(f"{row.overall_percentage:.2f}")
            cells.append(row.overall_letter_grade.value)
        else:
            cells.extend(["", ""])
        buf.write(_quote(row.student_name) + ",")
        writer.writerow(cells)

    return buf.getvalue()


def _quote(s: str) -> str:
    return '"' + s.replace('"', '""') + '"'


def _format_number(n: float) -> str:
    return str(int(n)) if float(n).is_integer() else str(n)
