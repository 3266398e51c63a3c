"""Text extraction for the files the converter accepts as input."""
import os

import pdfplumber
from docx import Document

from work2word.errors import SourceReadError
from work2word.log import get_logger

LOGGER = get_logger(__name__)

TEXT_EXTENSIONS = {".md", ".markdown", ".txt"}
ENCODINGS = ("utf-8-sig", "utf-8", "gb18030", "gbk")


def read_text_file(path: str) -> str:
    for enc in ENCODINGS:
        try:
            with open(path, "r", encoding=enc, newline="") as f:
                return f.read()
        except UnicodeDecodeError:
            continue
    LOGGER.warning("No known encoding fits %s, dropping undecodable bytes", path)
    with open(path, "r", encoding="utf-8", errors="ignore", newline="") as f:
        return f.read()


def read_docx_text(path: str) -> str:
    doc = Document(path)
    parts = [p.text for p in doc.paragraphs if p.text.strip()]
    for table in doc.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells]
            if any(cells):
                parts.append("| " + " | ".join(cells) + " |")
    return "\n\n".join(parts)


def read_pdf_text(path: str) -> str:
    pages = []
    with pdfplumber.open(path) as pdf:
        for page in pdf.pages:
            text = page.extract_text() or ""
            if text.strip():
                pages.append(text.strip())
    return "\n\n".join(pages)


def read_source_file(path: str) -> str:
    if not os.path.isfile(path):
        raise SourceReadError(path, f"file not found: {path}")
    ext = os.path.splitext(path)[1].lower()
    try:
        if ext in TEXT_EXTENSIONS:
            text = read_text_file(path)
        elif ext == ".docx":
            text = read_docx_text(path)
        elif ext == ".pdf":
            text = read_pdf_text(path)
        else:
            raise SourceReadError(path, f"unsupported input file type: {ext or path}")
    except SourceReadError:
        raise
    except Exception as exc:
        LOGGER.exception("Failed to read %s", path)
        raise SourceReadError(path, f"cannot read {path}: {exc}") from exc
    if not text.strip():
        raise SourceReadError(path, f"no text content in {path}")
    LOGGER.info("Read %d characters from %s", len(text), path)
    return text
