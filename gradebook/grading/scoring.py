import typing as t

from gradebook.model import GradedAnswer, QuestionID, QuestionType, Quiz, QuizQuestion

from .aggregate import percentage


class ScoredAttempt(t.NamedTuple):
    answers: dict[QuestionID, GradedAnswer]
    score: int
    percentage: float
    passed: bool | None


def _normalize(s: str, case_sensitive: bool) -> str:
    s = s.strip()
    return s if case_sensitive else s.lower()


def is_correct(question: QuizQuestion, answer: t.Any) -> bool:
    """Whether ``answer`` matches the question's key exactly.

    Values of the wrong JSON type are never correct: ``true`` is not option
    ``1`` and ``"true"`` is not ``true``.
    """
    match question.type:
        case QuestionType.MultipleChoice:
            if isinstance(answer, bool) or not isinstance(answer, (int, float)):
                return False
            return question.correct_option_index is not None and answer == question.correct_option_index
        case QuestionType.TrueFalse:
            return isinstance(answer, bool) and answer == question.correct_answer
        case QuestionType.ShortAnswer:
            if not isinstance(answer, str) or not question.correct_answers:
                return False
            submitted = _normalize(answer, question.case_sensitive)
            return any(submitted == _normalize(a, question.case_sensitive) for a in question.correct_answers)
    return False


def grade_answer(question: QuizQuestion, answer: t.Any) -> GradedAnswer:
    correct = is_correct(question, answer)
    return GradedAnswer(
        question_id=question.question_id,
        question_type=question.type,
        student_answer=answer,
        is_correct=correct,
        points_earned=question.points if correct else 0,
        max_points=question.points,
    )


def score_attempt(quiz: Quiz, answers: t.Mapping[str, t.Any]) -> ScoredAttempt:
    """Grade every question of the quiz against the submitted answers.

    Unanswered questions are graded too (as incorrect), so the result does
    not depend on which questions were answered or in what order.
    ``passed`` stays None when the quiz has no passing score or a passing
    score of zero.
    """
    graded = {q.question_id: grade_answer(q, answers.get(q.question_id)) for q in quiz.questions}
    score = sum(g.points_earned for g in graded.values())
    pct = percentage(score, quiz.total_points)
    passed = pct >= quiz.passing_score if quiz.passing_score else None
    return ScoredAttempt(answers=graded, score=score, percentage=pct, passed=passed)
