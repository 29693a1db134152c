"""
Document parser: raw bytes → queryable document tree.

Exported backups are a mix of hand-edited pages, tool-generated pages with
odd charsets, and the occasional binary blob saved with an .html name. The
parser never fails on malformed markup (html5lib rebuilds a tree from
anything); it only refuses content that is not text at all.

Pipeline position: after walk(), before the Extractor.
Input:  bytes of one file
Output: Document exposing query(selector) / text() / attribute(name)
"""

import re
from pathlib import Path
from typing import Optional, Union

from bs4 import BeautifulSoup, Comment, Tag
from bs4.dammit import EncodingDetector

from .exceptions import DocumentParseError
from .logger import get_module_logger

logger = get_module_logger("parser")

# Elements whose text content must never reach the index
NON_CONTENT_ELEMENTS = ['script', 'style', 'noscript', 'template']

# WHATWG encoding spec: browsers silently remap these charsets.
# https://encoding.spec.whatwg.org/#names-and-labels
WHATWG_CHARSET_MAP = {
    'iso-8859-1': 'windows-1252',
    'iso8859-1': 'windows-1252',
    'iso88591': 'windows-1252',
    'latin-1': 'windows-1252',
    'latin1': 'windows-1252',
    'us-ascii': 'windows-1252',
    'ascii': 'windows-1252',
    'iso-8859-9': 'windows-1254',
    'iso-8859-11': 'windows-874',
}

# Bytes that never appear in text documents (everything below 0x20 except
# tab, LF, FF, CR and ESC, which shows up in some ISO-2022 pages).
_BINARY_BYTES = bytes(c for c in range(32) if c not in (9, 10, 12, 13, 27))
BINARY_SAMPLE_SIZE = 8192
BINARY_RATIO = 0.10

_CONTROL_CHARS = ''.join(chr(c) for c in range(32) if c not in (9, 10, 13))
_CONTROL_TABLE = str.maketrans('', '', _CONTROL_CHARS)

_WS = re.compile(r'\s+')


class Node:
    """
    Thin wrapper over a BeautifulSoup element.

    The rest of the package only talks to this interface, so swapping the
    parsing library means reimplementing these three methods.
    """

    def __init__(self, element: Tag):
        self._element = element

    def query(self, selector: str) -> Optional["Node"]:
        """First descendant matching a CSS selector, or None."""
        found = self._element.select_one(selector)
        return Node(found) if found is not None else None

    def text(self) -> str:
        """Concatenated text of the element and all its descendants."""
        return self._element.get_text()

    def attribute(self, name: str) -> Optional[str]:
        value = self._element.get(name)
        if value is None:
            return None
        # bs4 returns multi-valued attributes (class, rel) as lists
        if isinstance(value, list):
            return ' '.join(value)
        return value

    @property
    def name(self) -> str:
        return self._element.name


class Document(Node):
    """A parsed HTML document."""

    def __init__(self, soup: BeautifulSoup, source: Optional[str] = None,
                 encoding: str = 'utf-8', parser_name: str = 'html5lib'):
        super().__init__(soup)
        self.source = source
        self.encoding = encoding
        self.parser_name = parser_name

    def body(self) -> Node:
        """The <body> element, or the whole document if there is none."""
        body = self._element.find('body')
        return Node(body) if body is not None else self


class DocumentParser:
    """
    Lenient HTML parser with charset detection.

    Parser fallback chain: html5lib → lxml → html.parser.
    """

    PARSERS = ('html5lib', 'lxml', 'html.parser')

    @staticmethod
    def detect_charset_from_bytes(raw_bytes: bytes) -> str:
        """
        Detect charset from raw HTML bytes by scanning the first 2048 bytes
        for <meta charset=...> or <meta http-equiv="Content-Type" content="...; charset=...">.

        Applies WHATWG browser charset mapping (e.g. iso-8859-1 → windows-1252)
        so that decoded text matches what a browser actually displays.

        Returns the browser-equivalent charset or 'utf-8' as default.
        """
        head_str = raw_bytes[:2048].decode('ascii', errors='ignore')

        charset = None

        # Modern form first: <meta charset="...">
        m = re.search(r'<meta[^>]+charset=["\']?\s*([^\s"\';>]+)', head_str, re.IGNORECASE)
        if m:
            charset = m.group(1).strip().lower()

        # Legacy: <meta http-equiv="Content-Type" content="...; charset=...">
        if not charset:
            m = re.search(
                r'<meta[^>]+content=["\'][^"\']*charset=([^\s"\';>]+)',
                head_str, re.IGNORECASE
            )
            if m:
                charset = m.group(1).strip().lower()

        if not charset:
            return 'utf-8'

        charset = WHATWG_CHARSET_MAP.get(charset, charset)
        try:
            ''.encode(charset)
        except LookupError:
            logger.debug(f"Unknown declared charset {charset!r}, using utf-8")
            return 'utf-8'
        return charset

    @staticmethod
    def looks_binary(raw_bytes: bytes) -> bool:
        """
        Heuristic binary sniff over the leading bytes.

        A NUL byte, or more than 10% of bytes being non-text control codes,
        marks the content as binary.
        """
        sample = raw_bytes[:BINARY_SAMPLE_SIZE]
        if not sample:
            return False
        if b'\x00' in sample:
            return True
        control = len(sample) - len(sample.translate(None, _BINARY_BYTES))
        return control / len(sample) > BINARY_RATIO

    def _sanitize(self, html: str) -> str:
        """String-level fixes applied before the tree builder sees the markup."""
        sanitized = html.replace('\x00', '')
        sanitized = sanitized.replace('\r\n', '\n').replace('\r', '\n')
        return sanitized.translate(_CONTROL_TABLE)

    def _build_soup(self, html: str, source: Optional[str]) -> tuple[BeautifulSoup, str]:
        last_error = None
        for parser_name in self.PARSERS:
            try:
                return BeautifulSoup(html, parser_name), parser_name
            except Exception as e:
                # Covers both a tree builder crash and FeatureNotFound for a
                # parser that is not installed
                logger.warning(f"{parser_name} failed on {source or '<string>'}: {e}")
                last_error = e
        raise DocumentParseError(
            f"No HTML parser could build a tree: {last_error}",
            source=source,
            details={"parsers": list(self.PARSERS)}
        )

    def _strip_non_content(self, soup: BeautifulSoup) -> None:
        for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
            comment.extract()
        for element in soup.find_all(NON_CONTENT_ELEMENTS):
            element.decompose()

    def parse_bytes(self, raw_bytes: bytes, source: Optional[str] = None) -> Document:
        """
        Parse raw document bytes.

        Raises:
            DocumentParseError: content is binary or no parser could handle it
        """
        # A byte order mark settles the encoding before anything else; UTF-16
        # and UTF-32 pages are full of NUL bytes and would otherwise look binary
        stripped, bom_charset = EncodingDetector.strip_byte_order_mark(raw_bytes)
        if bom_charset:
            html = stripped.decode(bom_charset, errors='replace')
            sniffed = html[:BINARY_SAMPLE_SIZE].encode('utf-8', errors='replace')
            charset = bom_charset
        else:
            sniffed = raw_bytes
            charset = None

        if self.looks_binary(sniffed):
            raise DocumentParseError(
                "Content looks binary, not HTML",
                source=source,
                details={"size": len(raw_bytes)}
            )

        if charset is None:
            charset = self.detect_charset_from_bytes(raw_bytes)
            html = raw_bytes.decode(charset, errors='replace')
        return self.parse(html, source=source, encoding=charset)

    def parse(self, html: str, source: Optional[str] = None,
              encoding: str = 'utf-8') -> Document:
        """Parse an already-decoded HTML string."""
        soup, parser_name = self._build_soup(self._sanitize(html), source)
        self._strip_non_content(soup)
        return Document(soup, source=source, encoding=encoding, parser_name=parser_name)

    def parse_file(self, path: Union[str, Path]) -> Document:
        """
        Read and parse one file.

        Raises:
            DocumentParseError: the file cannot be read or is not HTML
        """
        path = Path(path)
        try:
            raw_bytes = path.read_bytes()
        except OSError as e:
            raise DocumentParseError(f"Cannot read file: {e}", source=str(path)) from e
        return self.parse_bytes(raw_bytes, source=str(path))


def collapse_whitespace(text: str) -> str:
    """Collapse every run of whitespace to one space and trim."""
    return _WS.sub(' ', text).strip()


def parse_html(html: str) -> Document:
    """Convenience function to parse an HTML string."""
    return DocumentParser().parse(html)
