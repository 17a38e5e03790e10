from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from ..config import Settings
from ..logging import get_logger
from .extraction import Source, configure_tesseract, extract_text
from .models import ParsedItem
from .parser import parse_with_details
from .validation import find_rejections, validate_parsed_items


LOG = get_logger("billparser-service")

ProgressCallback = Callable[[str, int], None]


class ParsingProgress:
    """Listener registry for step/percentage updates during a parse."""

    def __init__(self) -> None:
        self.current_step = ""
        self.progress = 0
        self._callbacks: List[ProgressCallback] = []

    def update(self, step: str, progress: int) -> None:
        self.current_step = step
        self.progress = progress
        for callback in list(self._callbacks):
            callback(step, progress)

    def on_progress(self, callback: ProgressCallback) -> None:
        self._callbacks.append(callback)

    def remove_listener(self, callback: ProgressCallback) -> None:
        self._callbacks = [cb for cb in self._callbacks if cb is not callback]


@dataclass
class BillParseResult:
    items: List[ParsedItem]
    strategy: Optional[str] = None
    rejected: List[Tuple[ParsedItem, str]] = field(default_factory=list)
    text: str = ""


class BillParsingService:
    """Document → text → items → validated items."""

    def __init__(self, settings: Optional[Settings] = None, progress: Optional[ParsingProgress] = None) -> None:
        self.settings = settings or Settings()
        self.progress = progress or ParsingProgress()
        configure_tesseract(self.settings.tesseract_cmd)

    def parse_text(self, text: str, *, validate: bool = True) -> BillParseResult:
        self.progress.update("Parsing items", 60)
        outcome = parse_with_details(text)
        items = outcome.items
        rejected: List[Tuple[ParsedItem, str]] = []
        if validate:
            self.progress.update("Validating items", 90)
            rejected = find_rejections(items)
            items = validate_parsed_items(items)
        self.progress.update("Done", 100)
        return BillParseResult(items=items, strategy=outcome.strategy, rejected=rejected, text=text)

    def parse_document(
        self,
        source: Source,
        *,
        filename: Optional[str] = None,
        mime_type: Optional[str] = None,
        validate: bool = True,
    ) -> BillParseResult:
        """Extract text from an image/PDF (path or bytes) and parse it.

        UnsupportedFileError and TextExtractionError propagate unchanged.
        """
        self.progress.update("Extracting text", 10)
        text = extract_text(source, filename=filename, mime_type=mime_type, lang=self.settings.ocr_lang)
        LOG.debug("Extracted %d character(s) of text", len(text))
        result = self.parse_text(text, validate=validate)
        if not result.items:
            LOG.warning("No items found in %s", filename or "document")
        return result
