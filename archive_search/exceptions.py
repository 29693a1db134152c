"""
Custom exceptions for the archive search indexer.

Error philosophy:
  - WalkError          → FAIL HARD: the archive root cannot be enumerated, the build aborts.
  - IndexWriteError    → FAIL HARD: the artifact cannot be persisted, the build aborts.
  - DocumentParseError → PER-FILE: the builder logs a warning and skips the document.
  - ExtractionError    → PER-FILE: same handling as DocumentParseError.
  - IndexLoadError     → raised to whoever is reading an artifact back (search side).

Date and type detection never raise: a missing date is None and an
unclassifiable document is a "post".
"""

from typing import Optional


class ArchiveSearchError(Exception):
    """Base exception for all archive search errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


# --- FAIL HARD: stops the build ---

class WalkError(ArchiveSearchError):
    """Raised when a directory under the archive root cannot be read."""

    def __init__(self, message: str, path: str, details: Optional[dict] = None):
        super().__init__(message, details)
        self.path = path


class IndexWriteError(ArchiveSearchError):
    """Raised when the output directory or the index file cannot be written."""

    def __init__(self, message: str, path: str, details: Optional[dict] = None):
        super().__init__(message, details)
        self.path = path


# --- PER-FILE: logged and skipped by the builder ---

class DocumentParseError(ArchiveSearchError):
    """
    Raised when a file cannot be turned into a document tree.

    In practice html5lib accepts almost anything, so this mostly fires for
    binary content that happens to carry an .html extension.
    """

    def __init__(self, message: str, source: Optional[str] = None,
                 details: Optional[dict] = None):
        super().__init__(message, details)
        self.source = source


class ExtractionError(ArchiveSearchError):
    """Raised when fields cannot be pulled out of a parsed document."""

    def __init__(self, message: str, source: Optional[str] = None,
                 details: Optional[dict] = None):
        super().__init__(message, details)
        self.source = source


# --- Consumer side ---

class IndexLoadError(ArchiveSearchError):
    """Raised when a search index artifact is missing or malformed."""

    def __init__(self, message: str, path: str, details: Optional[dict] = None):
        super().__init__(message, details)
        self.path = path
