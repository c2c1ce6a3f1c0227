import pytest

from notes_quiz.schemas import QuizPayload
from notes_quiz.services.grading import grade_quiz, is_correct, normalize_answer

from conftest import VALID_QUIZ


@pytest.fixture
def quiz():
    return QuizPayload.model_validate(VALID_QUIZ)


def test_all_correct(quiz):
    result = grade_quiz(quiz, {"1": 1, "2": "true", "3": "It is called Precipitation."})
    assert result.correct == 3
    assert result.score == "3/3"
    assert all(d.is_correct for d in result.detail)


def test_missing_and_wrong_answers(quiz):
    result = grade_quiz(quiz, {"1": "0", "3": "   "})
    assert result.correct == 0
    assert result.total == 3
    assert [d.user_answer for d in result.detail] == ["0", None, "   "]
    assert result.detail[0].explanation == "The sun heats surface water."


@pytest.mark.parametrize("answer,expected", [(1, True), ("1", True), (" 1 ", True), (True, False), ("one", False)])
def test_mcq_answers(quiz, answer, expected):
    assert is_correct(quiz.questions[0], answer) is expected


@pytest.mark.parametrize("answer,expected", [(True, True), ("TRUE", True), ("false", False), (False, False)])
def test_true_false_answers(quiz, answer, expected):
    assert is_correct(quiz.questions[1], answer) is expected


def test_short_answer_matches_keyword(quiz):
    assert is_correct(quiz.questions[2], "heavy   RAIN")
    assert not is_correct(quiz.questions[2], "snow")


def test_normalize_answer():
    assert normalize_answer("  A\tB \n C ") == "a b c"
    assert normalize_answer(None) == ""
