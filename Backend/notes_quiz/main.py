import logging
from typing import List, Optional

from fastapi import FastAPI, File, Form, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from notes_quiz.errors import InputError, QuizPipelineError, RecoveryError
from notes_quiz.schemas import ErrorResponse, GradeRequest, GradeResult, QuizOptions, QuizPayload
from notes_quiz.services.grading import grade_quiz
from notes_quiz.services.quiz_service import QuizService
from notes_quiz.utils.file_processing import UploadedDocument

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title="Notes Quiz Generator")
quiz_service = QuizService()


ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Missing or unreadable input"},
    500: {"model": ErrorResponse, "description": "No valid quiz in the model output"},
    502: {"model": ErrorResponse, "description": "LLM provider error"},
}


def error_body(exc: QuizPipelineError) -> dict:
    body = ErrorResponse(
        error=exc.message,
        raw=exc.raw if isinstance(exc, RecoveryError) else None,
        failures=(exc.failures or None) if isinstance(exc, InputError) else None,
    )
    return body.model_dump(exclude_none=True)


@app.exception_handler(QuizPipelineError)
async def pipeline_error_handler(request: Request, exc: QuizPipelineError):
    return JSONResponse(status_code=exc.status_code, content=error_body(exc))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = f"Invalid request: {location} {first.get('msg', '')}".strip()
    return JSONResponse(status_code=400, content=ErrorResponse(error=message).model_dump(exclude_none=True))


def parse_options(count: Optional[str], types: Optional[List[str]], difficulty: Optional[str]) -> QuizOptions:
    raw = {}
    if count not in (None, ""):
        raw["count"] = count
    if types:
        raw["types"] = types
    if difficulty not in (None, ""):
        raw["difficulty"] = difficulty
    try:
        return QuizOptions.model_validate(raw)
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(p) for p in err["loc"])
        raise InputError(f"Invalid {field}: {err['msg']}")


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.post(
    "/generate-quiz/",
    response_model=QuizPayload,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
)
async def generate_quiz(
    files: Optional[List[UploadFile]] = File(None),
    count: Optional[str] = Form(None),
    types: Optional[List[str]] = Form(None),
    difficulty: Optional[str] = Form(None),
):
    options = parse_options(count, types, difficulty)
    if not files:
        raise InputError("Please upload at least one file.")

    documents = [
        UploadedDocument(
            content=await f.read(),
            media_type=f.content_type or "",
            filename=f.filename or "",
        )
        for f in files
    ]

    try:
        return await quiz_service.generate_quiz_from_documents(documents, options)
    except QuizPipelineError:
        raise
    except Exception:
        logger.exception("Quiz generation failed")
        body = ErrorResponse(error="Failed to generate quiz.")
        return JSONResponse(status_code=500, content=body.model_dump(exclude_none=True))


@app.post("/evaluate-quiz/", response_model=GradeResult, responses={400: ERROR_RESPONSES[400]})
async def evaluate_quiz(request: GradeRequest):
    return grade_quiz(request.quiz, request.answers)
