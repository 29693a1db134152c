"""
Search over a built index artifact.

Mirrors what the browser UI does with the same file: load it once, fuzzy
match a free-text query against title and text, then narrow by type and
year. Ranking is a simple match score; beyond that the stored date order
is kept.
"""

import json
import re
from difflib import SequenceMatcher
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, ValidationError

from .exceptions import IndexLoadError
from .logger import get_module_logger
from .schemas import ContentType, IndexArtifact, Record

logger = get_module_logger("search")

# Minimum SequenceMatcher ratio for a query token to count as a fuzzy match
# of a word (roughly Fuse.js threshold 0.3)
FUZZY_THRESHOLD = 0.7
DEFAULT_LIMIT = 200

_TOKEN = re.compile(r'\w+', re.UNICODE)


def tokenize(text: str) -> list[str]:
    return [t.lower() for t in _TOKEN.findall(text)]


class SearchHit(BaseModel):
    """A matched record and its score (1.0 = exact substring hits only)."""
    item: Record
    score: float


def load_index(path: Union[str, Path]) -> IndexArtifact:
    """
    Read an artifact back from disk.

    Raises:
        IndexLoadError: the file is missing, not JSON, or not an index
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise IndexLoadError(f"Failed to load index: {e}", path=str(path)) from e
    except json.JSONDecodeError as e:
        raise IndexLoadError(f"Index is not valid JSON: {e}", path=str(path)) from e

    try:
        return IndexArtifact.model_validate(data)
    except ValidationError as e:
        raise IndexLoadError(
            "Index does not match the expected schema",
            path=str(path),
            details={"errors": e.errors(include_url=False)}
        ) from e


class IndexSearcher:
    """Query and filter a loaded index."""

    def __init__(self, artifact: IndexArtifact, threshold: float = FUZZY_THRESHOLD):
        self.artifact = artifact
        self.threshold = threshold
        # Vocabulary per record, computed once; the index is immutable after load
        self._words = [set(tokenize(f"{r.title} {r.text}")) for r in artifact.items]
        self._haystacks = [f"{r.title} {r.text}".lower() for r in artifact.items]

    def years(self) -> list[int]:
        """Distinct years present, newest first."""
        return sorted({r.year for r in self.artifact.items if r.year is not None}, reverse=True)

    def types(self) -> list[ContentType]:
        present = {r.type for r in self.artifact.items}
        return [t for t in ContentType if t in present]

    def _token_score(self, token: str, index: int) -> float:
        if token in self._haystacks[index]:
            return 1.0
        best = 0.0
        for word in self._words[index]:
            # Cheap length bound before running the matcher
            if abs(len(word) - len(token)) > len(token):
                continue
            ratio = SequenceMatcher(None, token, word).ratio()
            if ratio > best:
                best = ratio
        return best if best >= self.threshold else 0.0

    def _score(self, tokens: list[str], index: int) -> float:
        """Mean per-token score; 0 if any token fails to match."""
        total = 0.0
        for token in tokens:
            score = self._token_score(token, index)
            if not score:
                return 0.0
            total += score
        return total / len(tokens)

    def search(self, query: str = "", type: Optional[Union[ContentType, str]] = None,
               year: Optional[int] = None, limit: Optional[int] = DEFAULT_LIMIT) -> list[SearchHit]:
        """
        Fuzzy query plus filters.

        An empty query returns every item in stored order. Type and year
        filters apply on top of the query, so combining them returns the
        intersection.
        """
        wanted_type = ContentType(type) if type else None
        tokens = tokenize(query)

        hits = []
        for index, record in enumerate(self.artifact.items):
            if wanted_type is not None and record.type != wanted_type:
                continue
            if year is not None and record.year != year:
                continue
            if not tokens:
                hits.append(SearchHit(item=record, score=1.0))
                continue
            score = self._score(tokens, index)
            if score:
                hits.append(SearchHit(item=record, score=score))

        if tokens:
            # Stable: equal scores keep date order
            hits.sort(key=lambda h: h.score, reverse=True)

        logger.debug(f"Query {query!r} type={wanted_type} year={year}: {len(hits)} hits")
        return hits[:limit] if limit else hits


def search_index(path: Union[str, Path], query: str = "", **filters) -> list[SearchHit]:
    """Convenience function: load the artifact at `path` and run one search."""
    return IndexSearcher(load_index(path)).search(query, **filters)
