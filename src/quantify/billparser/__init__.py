"""Bill text → structured stock items.

Modules:
- lines: normalizer and single-line item extraction
- strategies: table / line-by-line / key-value / descriptive layouts
- fallback: whole-text heuristics used when no layout matched
- parser: strategy selection, cleaning and deduplication
- validation: SKU shape and quantity range checks
- extraction: OCR (pytesseract) and PDF text (PyMuPDF) acquisition
- service: file-to-items orchestration with progress reporting
"""

from .extraction import BillParsingError, TextExtractionError, UnsupportedFileError
from .models import ParsedItem, ParseOutcome
from .parser import clean_items, parse, parse_with_details
from .service import BillParseResult, BillParsingService, ParsingProgress
from .validation import validate, validate_parsed_items

__all__ = [
    "BillParseResult",
    "BillParsingError",
    "BillParsingService",
    "ParseOutcome",
    "ParsedItem",
    "ParsingProgress",
    "TextExtractionError",
    "UnsupportedFileError",
    "clean_items",
    "parse",
    "parse_with_details",
    "validate",
    "validate_parsed_items",
]
