"""
OCR fallback for documents that structured extraction could not read
"""
import os
import shutil
import tempfile
from pathlib import Path
from typing import Dict

import pytesseract
from PIL import Image
from pdf2image import convert_from_path
from pdf2image.exceptions import PDFInfoNotInstalledError, PDFPageCountError, PDFSyntaxError

from careerhub.helpers.parsing import iter_docx_images, read_docx
from careerhub.utils.exceptions import ExtractionError
from careerhub.utils.logging_config import get_logger

logger = get_logger(__name__)


class OcrEngine:
    """Tesseract OCR over single images, rasterized PDFs and DOCX pictures.

    Every call works inside its own scratch directory under ``scratch_root``
    and removes it before returning, whether or not recognition succeeded.
    """

    def __init__(self, language: str = "eng", dpi: int = 300, scratch_root: str = "temp_images"):
        self.language = language
        self.dpi = dpi
        self.scratch_root = scratch_root

    def _make_scratch_dir(self) -> str:
        os.makedirs(self.scratch_root, exist_ok=True)
        return tempfile.mkdtemp(prefix="ocr-", dir=self.scratch_root)

    @staticmethod
    def _remove_dir(path: str) -> None:
        if os.path.exists(path):
            shutil.rmtree(path)

    @staticmethod
    def _remove_file(path: str) -> None:
        if os.path.exists(path):
            os.remove(path)

    def image_to_text(self, image_path: str) -> str:
        """Run the engine on one image; no output or a failed run gives ''."""
        try:
            with Image.open(image_path) as img:
                text = pytesseract.image_to_string(img, lang=self.language)
        except (pytesseract.TesseractError, OSError, Image.DecompressionBombError) as e:
            logger.warning(f"OCR failed for {Path(image_path).name}: {e}")
            return ""
        return (text or "").strip()

    def pdf_to_text(self, pdf_path: str) -> str:
        scratch = self._make_scratch_dir()
        try:
            try:
                page_paths = convert_from_path(
                    pdf_path,
                    dpi=self.dpi,
                    output_folder=scratch,
                    fmt="jpeg",
                    output_file="page",
                    paths_only=True,
                )
            except (PDFPageCountError, PDFSyntaxError, PDFInfoNotInstalledError) as e:
                logger.warning(f"PDF rasterization produced no pages: {e}")
                page_paths = []

            logger.debug(f"Rasterized {len(page_paths)} pages into {scratch}")

            # keyed by page index so text is joined in page order
            page_texts: Dict[int, str] = {}
            for index, page_path in enumerate(page_paths):
                try:
                    page_texts[index] = self.image_to_text(page_path)
                finally:
                    self._remove_file(page_path)

            return "\n".join(page_texts[i] for i in sorted(page_texts) if page_texts[i]).strip()
        finally:
            self._remove_dir(scratch)

    def docx_to_text(self, docx_path: str) -> str:
        try:
            text = read_docx(Path(docx_path))
        except ExtractionError as e:
            logger.info(f"DOCX raw text unavailable, trying embedded images: {e.message}")
            text = ""
        if text:
            return text

        scratch = self._make_scratch_dir()
        try:
            texts = []
            try:
                images = list(iter_docx_images(Path(docx_path)))
            except ExtractionError as e:
                logger.warning(f"Could not read DOCX images: {e.message}")
                images = []

            for index, (suffix, blob) in enumerate(images):
                image_path = os.path.join(scratch, f"image-{index}{suffix}")
                try:
                    with open(image_path, "wb") as fh:
                        fh.write(blob)
                    texts.append(self.image_to_text(image_path))
                finally:
                    self._remove_file(image_path)

            return "\n".join(t for t in texts if t).strip()
        finally:
            self._remove_dir(scratch)
