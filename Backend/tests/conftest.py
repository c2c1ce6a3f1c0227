import io
import os

os.environ.setdefault("OPENROUTER_API_KEY", "test-key")

import fitz  # PyMuPDF
import pytest
from PIL import Image

from notes_quiz.utils.config import Settings
from notes_quiz.utils.file_processing import UploadedDocument


VALID_QUIZ = {
    "meta": {
        "question_count": 3,
        "types": ["mcq", "true_false", "short_answer"],
        "source_summary": "Notes on the water cycle.",
    },
    "questions": [
        {
            "id": "1",
            "type": "mcq",
            "prompt": "What drives evaporation?",
            "choices": ["Wind", "Solar energy", "Gravity"],
            "answer": 1,
            "explanation": "The sun heats surface water.",
            "difficulty": "easy",
        },
        {
            "id": "2",
            "type": "true_false",
            "prompt": "Condensation forms clouds.",
            "answer": True,
        },
        {
            "id": "3",
            "type": "short_answer",
            "prompt": "Name the process of water falling from clouds.",
            "answer": ["precipitation", "rain"],
        },
    ],
}


def make_pdf(pages, **save_options):
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        if text:
            page.insert_text((72, 72), text)
    data = doc.tobytes(**save_options)
    doc.close()
    return data


def make_png():
    buf = io.BytesIO()
    Image.new("RGB", (20, 20), "white").save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def cfg():
    return Settings(openrouter_api_key="test-key", ocr_timeout_seconds=5)


@pytest.fixture
def text_doc():
    def build(content, filename="notes.txt"):
        return UploadedDocument(content=content.encode("utf-8"), media_type="text/plain", filename=filename)
    return build


@pytest.fixture
def image_doc():
    return UploadedDocument(content=make_png(), media_type="image/png", filename="scan.png")
