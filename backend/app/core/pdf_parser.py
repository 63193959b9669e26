
#backend/app/core/pdf_parser.py
from io import BytesIO
from typing import List, Union
from pathlib import Path
from PyPDF2 import PdfReader
from PyPDF2.errors import PdfReadError


class PDFParser:
    """Handles PDF text extraction for uploaded and reference documents."""

    def extract_text(self, file: Union[Path, str, bytes]) -> str:
        return "\n".join(self.extract_pages(file)).strip()

    def extract_pages(self, file: Union[Path, str, bytes]) -> List[str]:
        """Text of every page, in order; pages without text come back empty."""
        if isinstance(file, (Path, str)):
            with open(file, "rb") as f:
                return self._read(f)
        elif isinstance(file, bytes):
            return self._read(BytesIO(file))
        else:
            raise ValueError("Unsupported file type for PDFParser.")

    def _read(self, stream) -> List[str]:
        try:
            reader = PdfReader(stream)
            return [(page.extract_text() or "").strip() for page in reader.pages]
        except PdfReadError as e:
            raise ValueError(f"Unreadable PDF: {e}") from e
