import collections
import statistics
import typing as t

from gradebook.model import GradeColumn, GradeStatistics, QuestionStatistics, Quiz, QuizAttempt, QuizStatistics, \
    StudentGradeRecord, UserID


class Summary(t.NamedTuple):
    mean: float
    median: float
    min: float
    max: float
    std_deviation: float


def describe(values: t.Sequence[float]) -> Summary:
    """Summarize a non-empty sample.

    An even-length sample takes the upper of its two middle values as its
    median; the deviation is the population one (divides by n).
    """
    if not values:
        raise ValueError("cannot describe an empty sample")
    return Summary(
        mean=statistics.fmean(values),
        median=statistics.median_high(values),
        min=min(values),
        max=max(values),
        std_deviation=statistics.pstdev(values),
    )


def column_statistics(column: GradeColumn, records: t.Sequence[StudentGradeRecord]) -> GradeStatistics | None:
    """Statistics for one column across a course's grade records.

    Students with no entry for the column are left out rather than counted
    as zero; returns None when nobody has been graded yet.
    """
    entries = [r.grades[column.column_id] for r in records if column.column_id in r.grades]
    if not entries:
        return None

    summary = describe([e.grade for e in entries])
    distribution = collections.Counter(e.letter_grade for e in entries)
    return GradeStatistics(
        column_id=column.column_id,
        column_name=column.name,
        mean=summary.mean,
        median=summary.median,
        min=summary.min,
        max=summary.max,
        std_deviation=summary.std_deviation,
        total_graded=len(entries),
        total_students=len(records),
        grade_distribution=dict(distribution),
    )


def best_attempts(attempts: t.Iterable[QuizAttempt]) -> dict[UserID, QuizAttempt]:
    """Each student's highest-scoring submitted attempt; the earliest seen wins ties"""
    best: dict[UserID, QuizAttempt] = {}
    for attempt in attempts:
        if not attempt.is_submitted:
            continue
        current = best.get(attempt.student_id)
        if current is None or attempt.score > current.score:
            best[attempt.student_id] = attempt
    return best


def quiz_statistics(quiz: Quiz, attempts: t.Sequence[QuizAttempt]) -> QuizStatistics | None:
    """Aggregate statistics over a quiz's submitted attempts.

    Score statistics and the pass rate look only at each student's best
    attempt; per-question accuracy counts every submitted attempt.
    """
    submitted = [a for a in attempts if a.is_submitted]
    if not submitted:
        return None

    best = list(best_attempts(submitted).values())
    summary = describe([a.score for a in best])

    students_passed = 0
    pass_rate = 0.0
    if quiz.passing_score:
        students_passed = sum(1 for a in best if a.passed is True)
        pass_rate = 100.0 * students_passed / len(best)

    question_statistics = {}
    for question in quiz.questions:
        answered = [a.answers[question.question_id] for a in submitted if question.question_id in a.answers]
        correct = sum(1 for answer in answered if answer.is_correct)
        question_statistics[question.question_id] = QuestionStatistics(
            question_id=question.question_id,
            question_text=question.question_text,
            total_attempts=len(answered),
            correct_answers=correct,
            accuracy_rate=100.0 * correct / len(answered) if answered else 0.0,
        )

    return QuizStatistics(
        quiz_id=quiz.quiz_id,
        quiz_title=quiz.title,
        total_attempts=len(submitted),
        unique_students=len(best),
        average_score=summary.mean,
        median_score=summary.median,
        min_score=summary.min,
        max_score=summary.max,
        std_deviation=summary.std_deviation,
        students_passed=students_passed,
        pass_rate=pass_rate,
        question_statistics=question_statistics,
    )
