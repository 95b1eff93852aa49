"""Tests for gradebook.grading.letter."""

from __future__ import annotations

import pytest

from gradebook.grading import letter_grade
from gradebook.model import LetterGrade


class TestLetterGrade(object):
    @pytest.mark.parametrize(
        "percentage,expected",
        [
            (100.0, LetterGrade.APlus),
            (97.0, LetterGrade.APlus),
            (96.999, LetterGrade.A),
            (93.0, LetterGrade.A),
            (90.0, LetterGrade.AMinus),
            (89.99, LetterGrade.BPlus),
            (85.0, LetterGrade.B),
            (80.0, LetterGrade.BMinus),
            (77.0, LetterGrade.CPlus),
            (73.0, LetterGrade.C),
            (70.0, LetterGrade.CMinus),
            (67.0, LetterGrade.DPlus),
            (63.0, LetterGrade.D),
            (60.0, LetterGrade.DMinus),
            (59.999, LetterGrade.F),
            (0.0, LetterGrade.F),
        ],
    )
    def test_thresholds(self, percentage: float, expected: LetterGrade) -> None:
        assert letter_grade(percentage) is expected

    def test_above_one_hundred(self) -> None:
        """Extra credit beyond the column's points still maps to A+."""
        assert letter_grade(112.5) is LetterGrade.APlus

    def test_nan_is_failing(self) -> None:
        assert letter_grade(float("nan")) is LetterGrade.F
