from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, StrictStr, field_validator, model_validator

QuestionType = Literal["mcq", "true_false", "short_answer"]
Difficulty = Literal["easy", "medium", "hard"]

QUESTION_TYPES: List[str] = ["mcq", "true_false", "short_answer"]
DIFFICULTIES: List[str] = ["easy", "medium", "hard"]

# JSON Schema handed to the model as the output contract
QUIZ_JSON_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "meta": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "question_count": {"type": "integer", "minimum": 1, "maximum": 100},
                "types": {
                    "type": "array",
                    "minItems": 1,
                    "items": {"enum": QUESTION_TYPES},
                },
                "source_summary": {"type": "string"},
            },
            "required": ["question_count", "types", "source_summary"],
        },
        "questions": {
            "type": "array",
            "minItems": 1,
            "items": {
                "type": "object",
                "additionalProperties": False,
                "properties": {
                    "id": {"type": "string"},
                    "type": {"enum": QUESTION_TYPES},
                    "prompt": {"type": "string"},
                    "choices": {"type": "array", "items": {"type": "string"}},
                    # mcq: correct index, true_false: boolean, short_answer: acceptable strings
                    "answer": {
                        "anyOf": [
                            {"type": "integer", "minimum": 0},
                            {"type": "boolean"},
                            {"type": "array", "items": {"type": "string"}, "minItems": 1},
                        ]
                    },
                    "explanation": {"type": "string"},
                    "difficulty": {"enum": DIFFICULTIES},
                },
                "required": ["id", "type", "prompt", "answer"],
            },
        },
    },
    "required": ["meta", "questions"],
}


class QuizQuestion(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    id: StrictStr
    type: QuestionType
    prompt: StrictStr
    choices: Optional[List[StrictStr]] = None
    answer: Union[StrictBool, StrictInt, List[StrictStr]]
    explanation: Optional[StrictStr] = None
    difficulty: Optional[Difficulty] = None

    @model_validator(mode="after")
    def check_answer_shape(self):
        if self.type == "mcq":
            if isinstance(self.answer, bool) or not isinstance(self.answer, int):
                raise ValueError("mcq answer must be an integer choice index")
            if self.answer < 0:
                raise ValueError("mcq answer must be a non-negative index")
        elif self.type == "true_false":
            if not isinstance(self.answer, bool):
                raise ValueError("true_false answer must be a boolean")
        elif not isinstance(self.answer, list) or not self.answer:
            raise ValueError("short_answer answer must be a non-empty list of strings")
        return self


class QuizMeta(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    question_count: StrictInt = Field(ge=1, le=100)
    types: List[QuestionType] = Field(min_length=1)
    source_summary: StrictStr


class QuizPayload(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    meta: QuizMeta
    questions: List[QuizQuestion] = Field(min_length=1)

    @field_validator("questions")
    @classmethod
    def ids_are_unique(cls, questions: List[QuizQuestion]) -> List[QuizQuestion]:
        ids = [q.id for q in questions]
        if len(set(ids)) != len(ids):
            raise ValueError("question ids must be unique")
        return questions


class QuizOptions(BaseModel):
    count: int = Field(default=10, ge=1, le=100)
    types: List[QuestionType] = Field(default_factory=lambda: list(QUESTION_TYPES), min_length=1)
    difficulty: Difficulty = "medium"


class GradeRequest(BaseModel):
    quiz: QuizPayload
    answers: Dict[str, Any] = Field(default_factory=dict)


class GradedQuestion(BaseModel):
    question_id: str
    prompt: str
    user_answer: Any = None
    correct_answer: Union[bool, int, List[str]]
    is_correct: bool
    explanation: Optional[str] = None


class GradeResult(BaseModel):
    correct: int
    total: int
    score: str
    detail: List[GradedQuestion]


class ErrorResponse(BaseModel):
    error: str
    raw: Optional[str] = None
    failures: Optional[List[Dict[str, str]]] = None
