import re
from typing import Any, Dict

from notes_quiz.schemas import GradedQuestion, GradeResult, QuizPayload, QuizQuestion


def normalize_answer(value: Any) -> str:
    return re.sub(r"\s+", " ", str(value if value is not None else "").lower()).strip()


def is_correct(question: QuizQuestion, user_answer: Any) -> bool:
    if user_answer is None:
        return False
    if question.type == "mcq":
        if isinstance(user_answer, bool):
            return False
        try:
            return int(str(user_answer).strip()) == question.answer
        except ValueError:
            return False
    if question.type == "true_false":
        return normalize_answer(user_answer) == str(question.answer).lower()

    given = normalize_answer(user_answer)
    if not given:
        return False
    accepted = [normalize_answer(a) for a in question.answer]
    return any(a and a in given for a in accepted)


def grade_quiz(quiz: QuizPayload, answers: Dict[str, Any]) -> GradeResult:
    """Score user answers keyed by question id"""
    detail = []
    correct = 0
    for q in quiz.questions:
        user_answer = answers.get(q.id)
        ok = is_correct(q, user_answer)
        if ok:
            correct += 1
        detail.append(GradedQuestion(
            question_id=q.id,
            prompt=q.prompt,
            user_answer=user_answer,
            correct_answer=q.answer,
            is_correct=ok,
            explanation=q.explanation,
        ))

    total = len(quiz.questions)
    return GradeResult(correct=correct, total=total, score=f"{correct}/{total}", detail=detail)
