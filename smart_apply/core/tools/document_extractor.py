"""Plain-text extraction from uploaded résumé files."""

import io
from pathlib import PurePath
from typing import Optional

import docx
import pdfplumber
import pypdf
from loguru import logger

from smart_apply.core.errors import ExtractionFailure, UnsupportedType

PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
DOC_MIME = "application/msword"

ALLOWED_MIME_TYPES = frozenset({PDF_MIME, DOCX_MIME, DOC_MIME})
ALLOWED_EXTENSIONS = {".pdf": PDF_MIME, ".docx": DOCX_MIME, ".doc": DOC_MIME}


def resolve_mime_type(mime_type: Optional[str], file_name: Optional[str]) -> Optional[str]:
    """Map a declared MIME type or file extension onto a supported type.

    The declared MIME type wins when it is supported; otherwise the file
    extension decides. Returns None for anything unsupported.
    """
    declared = (mime_type or "").split(";")[0].strip().lower()
    if declared in ALLOWED_MIME_TYPES:
        return declared
    suffix = PurePath(file_name or "").suffix.lower()
    return ALLOWED_EXTENSIONS.get(suffix)


def is_word_type(mime_type: str) -> bool:
    return mime_type in (DOCX_MIME, DOC_MIME)


class DocumentExtractor:
    """Converts a raw file buffer plus its MIME type into plain text."""

    def parse(self, buffer: bytes, mime_type: str) -> str:
        """
        Extract text content from a résumé file.

        Args:
            buffer: Raw file bytes
            mime_type: Declared MIME type

        Returns:
            Extracted text, stripped

        Raises:
            UnsupportedType: No backend for this MIME type
            ExtractionFailure: The file could not be read or held no text
        """
        if mime_type == PDF_MIME:
            text = self._extract_pdf(buffer)
        elif is_word_type(mime_type):
            text = self._extract_word(buffer)
        else:
            raise UnsupportedType(f"Unsupported file type: {mime_type or 'unknown'}")

        text = text.strip()
        if not text:
            raise ExtractionFailure("No text could be extracted from the document")

        logger.info("Document text extracted", mime_type=mime_type, chars=len(text))
        return text

    def _extract_pdf(self, buffer: bytes) -> str:
        try:
            # pdfplumber first (better layout handling)
            with pdfplumber.open(io.BytesIO(buffer)) as pdf:
                pages = [page.extract_text() or "" for page in pdf.pages]
            text = "\n\n".join(p for p in pages if p.strip())
            if text.strip():
                return text
        except Exception as e:
            logger.warning(f"pdfplumber failed: {e}, trying pypdf")

        try:
            reader = pypdf.PdfReader(io.BytesIO(buffer))
            pages = [page.extract_text() or "" for page in reader.pages]
            return "\n\n".join(p for p in pages if p.strip())
        except Exception as e:
            raise ExtractionFailure(f"Failed to extract text from PDF: {e}") from e

    def _extract_word(self, buffer: bytes) -> str:
        # python-docx reads Word-processing XML only; a genuine legacy .doc
        # binary fails here and surfaces as ExtractionFailure.
        try:
            document = docx.Document(io.BytesIO(buffer))
        except Exception as e:
            raise ExtractionFailure(f"Failed to read Word document: {e}") from e

        parts = [p.text for p in document.paragraphs if p.text and p.text.strip()]
        for table in document.tables:
            for row in table.rows:
                cells = [c.text.strip() for c in row.cells if c.text and c.text.strip()]
                if cells:
                    parts.append(" | ".join(cells))
        return "\n".join(parts)
