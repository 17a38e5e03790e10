"""Document text acquisition: OCR for images, text layer for PDFs.

Both collaborators raise TextExtractionError prefixed with the failing stage;
callers treat that as terminal for the request (no retry here).
"""

from __future__ import annotations

import io
import os
import shlex
from typing import Optional, Union

import fitz  # PyMuPDF
import pytesseract
from PIL import Image

from ..logging import get_logger


LOG = get_logger("billparser-extraction")

KIND_IMAGE = "image"
KIND_PDF = "pdf"

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".tif", ".tiff", ".bmp", ".webp"}
PDF_MIME_TYPE = "application/pdf"

OCR_CHAR_WHITELIST = (
    "0123456789"
    "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
    "abcdefghijklmnopqrstuvwxyz"
    "-_.,:()[]{}|/$#@!%^&*+=<>?"
    " \n\t"
)
# psm 3: fully automatic page segmentation
OCR_CONFIG = (
    "--psm 3 -c preserve_interword_spaces=1 "
    f"-c tessedit_char_whitelist={shlex.quote(OCR_CHAR_WHITELIST)}"
)

Source = Union[str, bytes]


class BillParsingError(Exception):
    pass


class UnsupportedFileError(BillParsingError):
    pass


class TextExtractionError(BillParsingError):
    pass


def detect_document_kind(filename: Optional[str], mime_type: Optional[str] = None) -> str:
    """Classify a document as image or PDF from its MIME type, else its extension."""
    mt = (mime_type or "").strip().lower()
    if mt.startswith("image/"):
        return KIND_IMAGE
    if mt == PDF_MIME_TYPE:
        return KIND_PDF
    if mt and mt != "application/octet-stream":
        raise UnsupportedFileError(f"Unsupported file type: {mime_type}")
    ext = os.path.splitext(filename or "")[1].lower()
    if ext in IMAGE_EXTENSIONS:
        return KIND_IMAGE
    if ext == ".pdf":
        return KIND_PDF
    raise UnsupportedFileError(f"Unsupported file type: {mime_type or ext or filename!r}")


def configure_tesseract(tesseract_cmd: Optional[str]) -> None:
    if tesseract_cmd:
        pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        LOG.debug(f"Using tesseract binary at {tesseract_cmd}")


def extract_text_from_image(source: Source, *, lang: str = "eng") -> str:
    """OCR an image given as a path or raw bytes."""
    LOG.info("Processing image file with OCR")
    try:
        fp = io.BytesIO(source) if isinstance(source, bytes) else source
        with Image.open(fp) as img:
            img.load()
            text = pytesseract.image_to_string(img, lang=lang, config=OCR_CONFIG)
    except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError, OSError, ValueError) as exc:
        LOG.error(f"OCR processing failed: {exc}")
        raise TextExtractionError(f"OCR processing failed: {exc}") from exc
    LOG.info("OCR completed successfully")
    return text


def _page_text(page: "fitz.Page") -> str:
    runs = []
    for block in page.get_text("dict").get("blocks", []):
        for line in block.get("lines", []):
            for span in line.get("spans", []):
                runs.append(span.get("text", ""))
    return " ".join(runs)


def extract_text_from_pdf(source: Source) -> str:
    """Concatenate text runs with spaces per page; pages end with a newline."""
    LOG.info("Processing PDF file")
    try:
        if isinstance(source, bytes):
            doc = fitz.open(stream=source, filetype="pdf")
        else:
            doc = fitz.open(source)
        with doc:
            LOG.debug(f"PDF has {doc.page_count} pages")
            full_text = ""
            for page_num, page in enumerate(doc, start=1):
                full_text += _page_text(page) + "\n"
                LOG.debug(f"Extracted text from page {page_num}")
    except (RuntimeError, ValueError, OSError) as exc:
        LOG.error(f"PDF processing failed: {exc}")
        raise TextExtractionError(f"PDF processing failed: {exc}") from exc
    LOG.info("PDF text extraction completed")
    return full_text


def extract_text(
    source: Source,
    *,
    filename: Optional[str] = None,
    mime_type: Optional[str] = None,
    lang: str = "eng",
) -> str:
    """Dispatch to OCR or PDF extraction; unsupported kinds fail before any work."""
    if filename is None and isinstance(source, str):
        filename = source
    kind = detect_document_kind(filename, mime_type)
    if kind == KIND_IMAGE:
        return extract_text_from_image(source, lang=lang)
    return extract_text_from_pdf(source)
