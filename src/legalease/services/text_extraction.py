"""
Text extraction for uploaded documents (PDF, DOCX, TXT).
"""
import asyncio
import re
import time
import zipfile
from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from typing import Any, Dict

import structlog

from ..errors import ValidationFailed, UpstreamTimeout

logger = structlog.get_logger()

ALLOWED_EXTENSIONS = {"pdf", "docx", "doc", "txt"}

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class TextExtractionError(ValidationFailed):
    """The file could not be parsed."""


@dataclass
class ExtractedText:
    text: str
    file_type: str
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def word_count(self) -> int:
        return count_words(self.text)

    @property
    def character_count(self) -> int:
        return len(self.text)


def get_file_extension(filename: str) -> str:
    return Path(filename or "").suffix.lower().lstrip(".")


def sanitize_filename(filename: str) -> str:
    """Keep only safe characters; never returns an empty name"""
    name = Path(filename or "").name
    cleaned = _UNSAFE_FILENAME_CHARS.sub("_", name).strip("._")
    return cleaned or "file"


def storage_key(prefix: str, filename: str) -> str:
    return f"{prefix.strip('/')}/{int(time.time() * 1000)}-{sanitize_filename(filename)}"


def count_words(text: str) -> int:
    return len(text.split())


def is_pdf(content: bytes) -> bool:
    """Check the PDF signature"""
    return content[:5] == b"%PDF-"


def clean_pdf_text(text: str) -> str:
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = re.sub(r"\n{3,}", "\n\n", text)
    text = re.sub(r"[ \t]+$", "", text, flags=re.MULTILINE)
    text = re.sub(r"^[ \t]+", "", text, flags=re.MULTILINE)
    return text.strip()


def _extract_pdf(content: bytes) -> ExtractedText:
    import fitz  # PyMuPDF

    try:
        doc = fitz.open(stream=content, filetype="pdf")
    except RuntimeError as e:
        raise TextExtractionError("Invalid PDF file") from e

    with doc:
        if doc.needs_pass:
            raise TextExtractionError("Encrypted PDF files are not supported")
        pages = [page.get_text() for page in doc]
        info = doc.metadata or {}
        metadata = {
            "pageCount": doc.page_count,
            "title": info.get("title") or None,
            "author": info.get("author") or None,
        }

    return ExtractedText(text=clean_pdf_text("\n".join(pages)), file_type="pdf", metadata=metadata)


def _extract_docx(content: bytes, file_type: str) -> ExtractedText:
    from docx import Document
    from docx.opc.exceptions import PackageNotFoundError

    try:
        document = Document(BytesIO(content))
    except (PackageNotFoundError, zipfile.BadZipFile, KeyError, ValueError) as e:
        raise TextExtractionError("Could not extract text from document") from e

    paragraphs = [p.text for p in document.paragraphs]
    for table in document.tables:
        for row in table.rows:
            paragraphs.append("\t".join(cell.text for cell in row.cells))

    text = "\n".join(paragraphs).strip()
    return ExtractedText(text=text, file_type=file_type, metadata={"paragraphCount": len(document.paragraphs)})


def extract_text_sync(content: bytes, file_type: str) -> ExtractedText:
    """Extract text from raw file bytes of an allowed type"""
    if file_type == "pdf":
        if not is_pdf(content):
            raise TextExtractionError("Invalid PDF file")
        return _extract_pdf(content)
    if file_type in ("docx", "doc"):
        return _extract_docx(content, file_type)
    if file_type == "txt":
        return ExtractedText(text=content.decode("utf-8", errors="replace"), file_type="txt")
    raise ValidationFailed("Invalid file type")


async def extract_text(content: bytes, file_type: str, timeout: float = 30.0) -> ExtractedText:
    """Run extraction in a worker thread with a timeout"""
    try:
        result = await asyncio.wait_for(asyncio.to_thread(extract_text_sync, content, file_type), timeout=timeout)
    except asyncio.TimeoutError:
        raise UpstreamTimeout("Text extraction timed out", service="extraction",
                              detail=f"{file_type} extraction exceeded {timeout}s")
    logger.info("Text extracted", file_type=file_type, characters=result.character_count)
    return result
