"""
Resume text extraction.

Extracts text content from uploaded PDF resumes using pypdf.
"""

from io import BytesIO

from pypdf import PdfReader
from pypdf.errors import PdfReadError

MAX_RESUME_CHARS = 8000


def extract_resume_text(pdf_content: bytes, max_chars: int = MAX_RESUME_CHARS) -> str:
    """
    Extract text from a PDF resume.

    Args:
        pdf_content: Raw bytes of the PDF file
        max_chars: Truncate the result to this many characters

    Returns:
        Extracted text from all pages, blank lines collapsed

    Raises:
        ValueError: If the bytes are not a readable PDF
    """
    try:
        reader = PdfReader(BytesIO(pdf_content))
        text_parts = [page.extract_text() or "" for page in reader.pages]
    except PdfReadError as e:
        raise ValueError(f"Error parsing PDF: {e}") from e

    lines = [line.strip() for part in text_parts for line in part.splitlines()]
    text = "\n".join(line for line in lines if line)
    return text[:max_chars]


def extract_resume_text_from_path(file_path: str) -> str:
    """Extract resume text from a PDF on disk."""
    with open(file_path, "rb") as f:
        return extract_resume_text(f.read())
