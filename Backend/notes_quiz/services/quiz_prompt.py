import json
from dataclasses import dataclass
from typing import Any, Dict, List

from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage
from langchain_core.prompts import PromptTemplate

from notes_quiz.schemas import QUIZ_JSON_SCHEMA, QuizOptions

SYSTEM_PROMPT = " ".join([
    "You are a rigorous quiz generator.",
    "Use ONLY the provided notes; do not add external facts.",
    "Return STRICT JSON that matches the schema provided.",
    "For short_answer, include a small array of acceptable answers/keywords.",
    "Include a one-sentence explanation when possible.",
])

USER_TEMPLATE = "\n\n".join([
    "Create a {count}-question quiz.",
    "Allowed types: {types}.",
    "Target difficulty: {difficulty}.",
    "Return ONLY valid JSON (no prose, no code fences).",
    "The JSON must validate against this JSON Schema:",
    "{schema}",
    'Notes:\n"""{notes}"""',
])

user_prompt = PromptTemplate(
    input_variables=["count", "types", "difficulty", "schema", "notes"],
    template=USER_TEMPLATE,
)


@dataclass(frozen=True)
class QuizRequest:
    system: str
    user: str
    schema: Dict[str, Any]

    def to_messages(self) -> List[BaseMessage]:
        return [SystemMessage(content=self.system), HumanMessage(content=self.user)]


def build_quiz_request(notes: str, options: QuizOptions) -> QuizRequest:
    """Format the system/user instruction pair for one quiz generation call"""
    user = user_prompt.format(
        count=options.count,
        types=", ".join(options.types),
        difficulty=options.difficulty,
        schema=json.dumps(QUIZ_JSON_SCHEMA),
        notes=notes,
    )
    return QuizRequest(system=SYSTEM_PROMPT, user=user, schema=QUIZ_JSON_SCHEMA)
