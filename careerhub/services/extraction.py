"""
Text extraction as an ordered chain of strategies per MIME type
"""
import os
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from pydantic import BaseModel

from careerhub.helpers.parsing import read_docx, read_pdf
from careerhub.services.ocr import OcrEngine
from careerhub.utils.exceptions import ExtractionError, ValidationError
from careerhub.utils.logging_config import get_logger

logger = get_logger(__name__)

PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
JPEG_MIME = "image/jpeg"
PNG_MIME = "image/png"

Strategy = Tuple[str, Callable[[str], str]]


class ExtractionOutcome(BaseModel):
    """Tagged result of one strategy: text, empty, or error"""
    strategy: str
    text: str = ""
    error: Optional[str] = None

    @property
    def empty(self) -> bool:
        return self.error is None and not self.text


class TextExtractor:
    """Runs the strategy chain for a file until one yields text.

    The source file is removed when the chain finishes, on every path.
    """

    def __init__(self, ocr: OcrEngine):
        self.ocr = ocr

    def strategies_for(self, mime_type: str) -> List[Strategy]:
        if mime_type == PDF_MIME:
            return [("pdf_text", self._pdf_text), ("pdf_ocr", self.ocr.pdf_to_text)]
        if mime_type == DOCX_MIME:
            return [("docx_text", self._docx_text), ("docx_ocr", self.ocr.docx_to_text)]
        if mime_type in (JPEG_MIME, PNG_MIME):
            return [("image_ocr", self.ocr.image_to_text)]
        raise ValidationError("Only PDF, DOCX, JPG, and PNG files are allowed", field="file", value=mime_type)

    @staticmethod
    def _pdf_text(path: str) -> str:
        return read_pdf(Path(path))

    @staticmethod
    def _docx_text(path: str) -> str:
        return read_docx(Path(path))

    @staticmethod
    def _run(name: str, strategy: Callable[[str], str], path: str) -> ExtractionOutcome:
        try:
            text = strategy(path)
        except ExtractionError as e:
            logger.warning(f"Extraction strategy {name} failed: {e.message}")
            return ExtractionOutcome(strategy=name, error=e.message)
        return ExtractionOutcome(strategy=name, text=text or "")

    def extract(self, path: str, mime_type: str) -> ExtractionOutcome:
        outcome = ExtractionOutcome(strategy="none")
        try:
            for name, strategy in self.strategies_for(mime_type):
                outcome = self._run(name, strategy, path)
                if outcome.text:
                    logger.info(f"Extracted {len(outcome.text)} characters with {name}")
                    return outcome
                logger.info(f"Strategy {name} yielded no text, advancing")
            return outcome
        finally:
            if os.path.exists(path):
                os.remove(path)
