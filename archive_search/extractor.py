"""
Field extraction: Document → Record.

Pulls title, main content text, date, image and canonical URL out of one
parsed page, then asks the classifier for a content type.

Pipeline position: after DocumentParser, before IndexBuilder.
Input:  Document + source path + BuildConfig
Output: Record (not yet length-filtered; the builder drops short records)
"""

from pathlib import Path
from typing import Optional

from .classifier import classify
from .config import BuildConfig
from .dates import normalize_date, year_of
from .exceptions import ExtractionError
from .logger import get_module_logger
from .parser import Document, collapse_whitespace
from .schemas import Record
from .walker import url_for

logger = get_module_logger("extractor")


class Extractor:
    """Extracts one Record from a parsed document."""

    def __init__(self, config: BuildConfig):
        self.config = config

    def extract_title(self, doc: Document) -> str:
        title = doc.query('title')
        return title.text().strip() if title else ''

    def extract_text(self, doc: Document) -> str:
        """
        Text of the main content container.

        Selectors are tried in order and the first one present in the page
        wins; if none is, the whole body is used.
        """
        container = None
        for selector in self.config.content_selectors:
            container = doc.query(selector)
            if container is not None:
                break
        if container is None:
            container = doc.body()
        return collapse_whitespace(container.text())

    def extract_image(self, doc: Document) -> Optional[str]:
        """
        src of the first <img> in the page; og:image when that <img> has no
        usable src or the page has no <img> at all.
        """
        img = doc.query('img')
        if img is not None:
            src = (img.attribute('src') or '').strip()
            if src:
                return src

        og_image = doc.query('meta[property="og:image"]')
        if og_image is not None:
            content = (og_image.attribute('content') or '').strip()
            if content:
                return content
        return None

    def raw_date_candidates(self, doc: Document) -> list[Optional[str]]:
        """
        Date strings in priority order; normalize_date() uses the first
        non-empty one.
        """
        candidates = []

        time_elem = doc.query('time[datetime]')
        candidates.append(time_elem.attribute('datetime') if time_elem else None)

        meta = doc.query('meta[property="article:published_time"]')
        candidates.append(meta.attribute('content') if meta else None)

        stamp = doc.query(self.config.timestamp_selector)
        candidates.append(stamp.text().strip() if stamp else None)

        # Facebook's older exports put Unix seconds on <abbr data-utime="...">
        utime = doc.query('[data-utime]')
        candidates.append(utime.attribute('data-utime') if utime else None)

        return candidates

    def extract(self, doc: Document, path: Path) -> Record:
        """
        Build a Record for the document at `path`.

        Raises:
            ExtractionError: the document tree could not be queried
        """
        url = url_for(path, self.config.root)
        try:
            # Undecodable bytes in a file name survive as lone surrogates,
            # which cannot be written to the UTF-8 index
            url.encode("utf-8")
        except UnicodeEncodeError as e:
            raise ExtractionError(
                f"File name is not valid UTF-8: {url!r}",
                source=str(path),
                details={"url": url.encode("utf-8", errors="backslashreplace").decode("utf-8")}
            ) from e

        try:
            title = self.extract_title(doc)
            text = self.extract_text(doc)
            date = normalize_date(*self.raw_date_candidates(doc))
            img = self.extract_image(doc)
        except Exception as e:
            # Selector engine failures on pathological trees end up here
            raise ExtractionError(
                f"Field extraction failed: {e}",
                source=str(path),
                details={"error_type": type(e).__name__}
            ) from e

        content_type = classify(url, title, text, window=self.config.classify_window)

        return Record(
            id=url,
            url=url,
            title=title,
            text=text,
            date=date,
            year=year_of(date),
            type=content_type,
            img=img,
        )


def extract(doc: Document, path: Path, config: BuildConfig) -> Record:
    """Convenience function to extract a Record from a parsed document."""
    return Extractor(config).extract(doc, path)
