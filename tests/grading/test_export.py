"""Tests for gradebook.grading.export."""

from __future__ import annotations

from gradebook.grading import export_csv
from gradebook.model import StudentGradeRow, UserID

from .builders import COURSE, make_column, make_entry, NOW


def _row(name: str, email: str, entries: list) -> StudentGradeRow:
    return StudentGradeRow(
        course_id=COURSE,
        student_id=UserID(),
        student_name=name,
        student_email=email,
        grades={e.column_id: e for e in entries},
        calculated_at=NOW,
        create_time=NOW,
        update_time=NOW,
    )


class TestExportCSV(object):
    def test_header_only_without_students(self) -> None:
        columns = [make_column("HW 1"), make_column("Midterm", order=2)]

        assert export_csv(columns, []) == "Student Name,Student Email,HW 1,Midterm,Overall %,Overall Grade\n"

    def test_ungraded_cell_is_empty(self) -> None:
        hw = make_column("HW 1", points=100)
        exam = make_column("Exam", points=50, order=2)
        entry = make_entry(hw, 85)
        row = StudentGradeRow(
            course_id=COURSE,
            student_id=UserID(),
            student_name="Sam Student",
            student_email="sam@example.com",
            grades={hw.column_id: entry},
            overall_points_earned=85,
            overall_points_possible=100,
            overall_percentage=85,
            overall_letter_grade=entry.letter_grade,
            calculated_at=NOW,
            create_time=NOW,
            update_time=NOW,
        )

        lines = export_csv([hw, exam], [row]).splitlines()

        assert lines[1] == '"Sam Student",sam@example.com,85,,85.00,B'

    def test_names_always_quoted(self) -> None:
        out = export_csv([], [_row('Dana "DJ" Jones', "dj@example.com", [])])
        assert out.splitlines()[1].startswith('"Dana ""DJ"" Jones",dj@example.com,')

    def test_fractional_grades_kept(self) -> None:
        hw = make_column("HW 1", points=10)
        row = _row("Sam", "sam@example.com", [make_entry(hw, 7.5)])

        assert export_csv([hw], [row]).splitlines()[1].split(",")[2] == "7.5"

    def test_header_quotes_names_with_commas(self) -> None:
        columns = [make_column("Quiz 1, part A")]

        assert export_csv(columns, []) == (
            'Student Name,Student Email,"Quiz 1, part A",Overall %,Overall Grade\n'
        )
