import re
from pathlib import Path
from typing import Iterator, List, Tuple

from pdfminer.high_level import extract_pages
from pdfminer.layout import LTTextContainer, LTTextLine
from docx import Document
from docx.opc.constants import RELATIONSHIP_TYPE as RT

from careerhub.utils.exceptions import ExtractionError

_BLANK_LINES = re.compile(r"\n\s*\n")


def normalize_text(x: str) -> str:
    """Trim and collapse runs of blank lines to a single newline."""
    return _BLANK_LINES.sub("\n", x.strip())


def _page_tokens(page_layout) -> List[str]:
    tokens = []
    for element in page_layout:
        if not isinstance(element, LTTextContainer):
            continue
        lines = [element] if isinstance(element, LTTextLine) else list(element)
        for line in lines:
            if not isinstance(line, LTTextContainer):
                continue
            token = line.get_text().strip()
            if token:
                tokens.append(token)
    return tokens


def read_pdf(p: Path) -> str:
    """Text of every page, tokens joined by spaces and pages by newlines."""
    try:
        pages = [" ".join(_page_tokens(page)) for page in extract_pages(str(p))]
    except Exception as e:
        raise ExtractionError(f"PDF parsing failed: {e}", strategy="pdf", cause=e) from e
    return normalize_text("\n".join(pages))


def read_docx(p: Path) -> str:
    """Raw text of paragraphs and table cells, in document order."""
    try:
        doc = Document(str(p))
    except Exception as e:
        raise ExtractionError(f"DOCX parsing failed: {e}", strategy="docx", cause=e) from e

    parts = [para.text for para in doc.paragraphs]
    for table in doc.tables:
        for row in table.rows:
            parts.extend(cell.text for cell in row.cells)
    return normalize_text("\n".join(parts))


def _rel_order(rel_id: str) -> Tuple[int, str]:
    digits = re.sub(r"\D", "", rel_id)
    return (int(digits) if digits else 0, rel_id)


def iter_docx_images(p: Path) -> Iterator[Tuple[str, bytes]]:
    """Yield (extension, image bytes) for each embedded picture."""
    try:
        doc = Document(str(p))
    except Exception as e:
        raise ExtractionError(f"DOCX parsing failed: {e}", strategy="docx_images", cause=e) from e

    rels = doc.part.rels
    for rel_id in sorted(rels.keys(), key=_rel_order):
        rel = rels[rel_id]
        if rel.is_external or rel.reltype != RT.IMAGE:
            continue
        part = rel.target_part
        yield Path(str(part.partname)).suffix.lower() or ".png", part.blob
