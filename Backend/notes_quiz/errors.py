"""Error taxonomy for the notes-to-quiz pipeline.

Every error carries a user-facing ``message`` and the HTTP status the route
should answer with. Messages never contain tracebacks.
"""

from typing import Dict, List, Optional


class QuizPipelineError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InputError(QuizPipelineError):
    """No files, or nothing readable in them."""
    status_code = 400

    def __init__(self, message: str, failures: Optional[List[Dict[str, str]]] = None):
        super().__init__(message)
        self.failures = failures


class ExtractionError(QuizPipelineError):
    """A single document could not be turned into text."""
    status_code = 400


class PdfDisabled(ExtractionError):
    def __init__(self, message: str = (
        "PDF uploads are turned off. Upload a text file or an image of your notes instead."
    )):
        super().__init__(message)


class OcrTimeout(ExtractionError):
    def __init__(self, message: str = (
        "Reading text from the image took too long. "
        "Try a smaller/clearer image or a plain-text file."
    )):
        super().__init__(message)


class OcrEmptyResult(ExtractionError):
    def __init__(self, message: str = (
        "No text could be read from the image. "
        "Try a smaller/clearer image or a plain-text file."
    )):
        super().__init__(message)


class UpstreamError(QuizPipelineError):
    """The LLM provider answered with a non-2xx status or could not be reached."""
    status_code = 502

    def __init__(self, message: str, body: Optional[str] = None):
        super().__init__(message)
        self.body = body


class RecoveryError(QuizPipelineError):
    """The model output held no usable quiz."""
    status_code = 500

    def __init__(self, message: str, raw: Optional[str] = None):
        super().__init__(message)
        self.raw = raw
