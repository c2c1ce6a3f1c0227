import io
import os
import logging
import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List

import fitz  # PyMuPDF
import pytesseract
from PIL import Image, UnidentifiedImageError

from notes_quiz.errors import ExtractionError, OcrEmptyResult, OcrTimeout, PdfDisabled
from notes_quiz.utils.config import Settings, settings
from notes_quiz.utils.deadline import run_with_deadline
from notes_quiz.utils.text_processing import clean_text

logger = logging.getLogger(__name__)

GENERIC_MEDIA_TYPES = {"", "application/octet-stream", "binary/octet-stream"}
IMAGE_SUFFIXES = (".png", ".jpg", ".jpeg", ".gif", ".bmp", ".tif", ".tiff", ".webp")


@dataclass(frozen=True)
class UploadedDocument:
    content: bytes
    media_type: str
    filename: str

    @property
    def normalized_media_type(self) -> str:
        return (self.media_type or "").split(";")[0].strip().lower()

    @property
    def suffix(self) -> str:
        return os.path.splitext((self.filename or "").lower())[1]


class DocumentFormat(str, Enum):
    PLAIN_TEXT = "plain_text"
    IMAGE = "image"
    PDF = "pdf"


@dataclass(frozen=True)
class ExtractionFailure:
    filename: str
    reason: str


@dataclass
class ExtractionOutcome:
    texts: List[str] = field(default_factory=list)
    failures: List[ExtractionFailure] = field(default_factory=list)


class Extractor:
    """Turns one uploaded document into cleaned text."""

    def extract(self, document: UploadedDocument) -> str:
        raise NotImplementedError

    async def aextract(self, document: UploadedDocument) -> str:
        return await asyncio.to_thread(self.extract, document)


class PlainTextExtractor(Extractor):
    def extract(self, document: UploadedDocument) -> str:
        return clean_text(document.content.decode("utf-8", errors="replace"))


class ImageExtractor(Extractor):
    """OCR with tesseract, bounded by a deadline."""

    def __init__(self, language: str = "eng", timeout: float = 45):
        self.language = language
        self.timeout = timeout

    def recognize(self, content: bytes) -> str:
        try:
            image = Image.open(io.BytesIO(content))
            image.load()
        except Image.DecompressionBombError as e:
            logger.warning(f"Image too large to read: {str(e)}")
            raise ExtractionError(
                "The image is too large to read. Try a smaller/clearer image or a plain-text file."
            )
        except (UnidentifiedImageError, OSError) as e:
            logger.warning(f"Could not open image: {str(e)}")
            raise ExtractionError(
                "The image could not be opened. Try a smaller/clearer image or a plain-text file."
            )

        try:
            # tesseract gets the same budget so its subprocess is killed if the deadline passes
            return pytesseract.image_to_string(image, lang=self.language, timeout=self.timeout)
        except pytesseract.TesseractNotFoundError:
            logger.error("Tesseract binary not found; OCR is unavailable")
            raise ExtractionError(
                "Reading text from images is not available right now. Upload a plain-text file instead."
            )
        except pytesseract.TesseractError as e:
            logger.warning(f"Tesseract failed: {str(e)}")
            raise ExtractionError(
                "Text recognition failed for this image. Try a smaller/clearer image or a plain-text file."
            )
        except RuntimeError as e:
            # pytesseract signals its own timeout as a plain RuntimeError
            if "timeout" in str(e).lower():
                raise OcrTimeout()
            logger.warning(f"Tesseract failed: {str(e)}")
            raise ExtractionError(
                "Text recognition failed for this image. Try a smaller/clearer image or a plain-text file."
            )

    def _finish(self, raw: str) -> str:
        text = clean_text(raw)
        if not text:
            raise OcrEmptyResult()
        return text

    def extract(self, document: UploadedDocument) -> str:
        return self._finish(self.recognize(document.content))

    async def aextract(self, document: UploadedDocument) -> str:
        raw = await run_with_deadline(
            self.recognize,
            document.content,
            timeout=self.timeout,
            on_timeout=OcrTimeout,
        )
        return self._finish(raw)


class PdfExtractor(Extractor):
    """Reads the text layer of at most ``max_pages`` pages."""

    def __init__(self, max_pages: int = 50):
        self.max_pages = max_pages

    def extract(self, document: UploadedDocument) -> str:
        try:
            doc = fitz.open(stream=document.content, filetype="pdf")
        except (RuntimeError, ValueError) as e:
            logger.warning(f"PyMuPDF could not open {document.filename!r}: {str(e)}")
            raise ExtractionError(
                "This PDF could not be opened. It may be damaged or password protected."
            )

        text = ""
        with doc:
            if doc.needs_pass:
                logger.warning(f"{document.filename!r} is password protected")
                raise ExtractionError(
                    "This PDF is password protected. Remove the password or upload a text file instead."
                )
            page_count = min(doc.page_count, self.max_pages)
            if doc.page_count > page_count:
                logger.info(f"Reading first {page_count} of {doc.page_count} pages of {document.filename!r}")
            try:
                for page_number in range(page_count):
                    page = doc.load_page(page_number)
                    text += " ".join(word[4] for word in page.get_text("words")) + "\n"
            except (RuntimeError, ValueError) as e:
                logger.warning(f"PyMuPDF failed reading {document.filename!r}: {str(e)}")
                raise ExtractionError(
                    "This PDF could not be read. It may be damaged or password protected."
                )

        # Scanned pages have no text layer; empty output is not an error here
        return clean_text(text)


class DisabledPdfExtractor(Extractor):
    def extract(self, document: UploadedDocument) -> str:
        raise PdfDisabled()

    async def aextract(self, document: UploadedDocument) -> str:
        raise PdfDisabled()


def detect_format(document: UploadedDocument) -> DocumentFormat:
    media_type = document.normalized_media_type
    if media_type == "application/pdf":
        return DocumentFormat.PDF
    if media_type.startswith("image/"):
        return DocumentFormat.IMAGE
    if media_type in GENERIC_MEDIA_TYPES:
        if document.suffix == ".pdf":
            return DocumentFormat.PDF
        if document.suffix in IMAGE_SUFFIXES:
            return DocumentFormat.IMAGE
    return DocumentFormat.PLAIN_TEXT


def select_extractor(document: UploadedDocument, cfg: Settings = settings) -> Extractor:
    document_format = detect_format(document)
    if document_format is DocumentFormat.PDF:
        if not cfg.pdf_enabled:
            return DisabledPdfExtractor()
        return PdfExtractor(max_pages=cfg.pdf_max_pages)
    if document_format is DocumentFormat.IMAGE:
        return ImageExtractor(language=cfg.ocr_language, timeout=cfg.ocr_timeout_seconds)
    return PlainTextExtractor()


async def extract_text_from_file(document: UploadedDocument, cfg: Settings = settings) -> str:
    """Extract cleaned text from one document, raising ExtractionError on failure"""
    extractor = select_extractor(document, cfg)
    logger.info(f"Extracting {document.filename!r} with {type(extractor).__name__}")
    return await extractor.aextract(document)


async def extract_texts(
    documents: Iterable[UploadedDocument],
    skip_failures: bool = True,
    cfg: Settings = settings,
) -> ExtractionOutcome:
    """Extract every document independently.

    With ``skip_failures`` a failing document is recorded in
    ``outcome.failures`` and the rest of the batch still runs; otherwise the
    first failure is raised. Documents that yield empty text are dropped.
    """
    outcome = ExtractionOutcome()
    for document in documents:
        try:
            text = await extract_text_from_file(document, cfg)
        except ExtractionError as e:
            if not skip_failures:
                raise
            logger.warning(f"Skipping {document.filename!r}: {e.message}")
            outcome.failures.append(ExtractionFailure(filename=document.filename, reason=e.message))
            continue
        except Exception:
            if not skip_failures:
                raise
            logger.exception(f"Unexpected failure extracting {document.filename!r}")
            outcome.failures.append(ExtractionFailure(
                filename=document.filename,
                reason="This file could not be read. Try a plain-text copy of your notes.",
            ))
            continue
        if text:
            outcome.texts.append(text)
    return outcome
