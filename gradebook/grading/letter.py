from gradebook.model import LetterGrade

# descending; the first threshold the percentage reaches wins
THRESHOLDS: tuple[tuple[float, LetterGrade], ...] = (
    (97.0, LetterGrade.APlus),
    (93.0, LetterGrade.A),
    (90.0, LetterGrade.AMinus),
    (87.0, LetterGrade.BPlus),
    (83.0, LetterGrade.B),
    (80.0, LetterGrade.BMinus),
    (77.0, LetterGrade.CPlus),
    (73.0, LetterGrade.C),
    (70.0, LetterGrade.CMinus),
    (67.0, LetterGrade.DPlus),
    (63.0, LetterGrade.D),
    (60.0, LetterGrade.DMinus),
)


def letter_grade(percentage: float) -> LetterGrade:
    """Map a percentage onto the fixed letter-grade scale.

    Used for both individual grade entries and a student's overall grade.
    Anything below the lowest threshold, including NaN, is an F.
    """
    for threshold, letter in THRESHOLDS:
        if percentage >= threshold:
            return letter
    return LetterGrade.F
