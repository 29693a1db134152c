"""
Archive Search

Builds a static search index over an archived website (e.g. an exported
social-media backup) for an offline-capable client-side search page.
- Walker:     enumerate HTML pages under the site root
- Parser:     lenient HTML parsing into a queryable document
- Extractor:  title, text, date, type and image per page
- Builder:    filter, sort and write data/search-index.json
- Searcher:   load the index back and run fuzzy queries with filters

Public API surface:
  Pipeline       — IndexBuilder, build_index, walk, DocumentParser, Extractor
  Helpers        — normalize_date, classify
  Data models    — BuildConfig, Record, IndexArtifact, ContentType
  Search         — IndexSearcher, SearchHit, load_index
  Error types    — WalkError, IndexWriteError (fatal), DocumentParseError,
                   ExtractionError (per file), IndexLoadError
"""

# --- Pipeline stages ---
from .walker import walk
from .parser import DocumentParser, Document
from .extractor import Extractor
from .builder import IndexBuilder, build_index

# --- Stateless helpers ---
from .dates import normalize_date
from .classifier import classify

# --- Data models and configuration ---
from .config import BuildConfig
from .schemas import Record, IndexArtifact, ContentType

# --- Search side ---
from .search import IndexSearcher, SearchHit, load_index

# --- Exceptions ---
from .exceptions import (
    ArchiveSearchError,
    WalkError,
    IndexWriteError,
    DocumentParseError,
    ExtractionError,
    IndexLoadError,
)

__version__ = "0.1.0"
__all__ = [
    "walk",
    "DocumentParser",
    "Document",
    "Extractor",
    "IndexBuilder",
    "build_index",
    "normalize_date",
    "classify",
    "BuildConfig",
    "Record",
    "IndexArtifact",
    "ContentType",
    "IndexSearcher",
    "SearchHit",
    "load_index",
    "ArchiveSearchError",
    "WalkError",
    "IndexWriteError",
    "DocumentParseError",
    "ExtractionError",
    "IndexLoadError",
]
