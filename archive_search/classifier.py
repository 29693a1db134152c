"""
Heuristic content-type classification.

Rules are an ordered table of (category, patterns); the first rule with a
matching pattern wins, so table order is priority. A wrong guess is
acceptable, a missing one is not: classify() always returns a ContentType.
"""

import re
from typing import Union
from pathlib import Path

from .schemas import ContentType

TYPE_RULES: tuple[tuple[ContentType, tuple[re.Pattern, ...]], ...] = (
    (ContentType.PHOTO, (re.compile(r'photo|image|album', re.IGNORECASE),)),
    (ContentType.VIDEO, (re.compile(r'video', re.IGNORECASE),)),
    (ContentType.STATUS, (re.compile(r'status|post|timeline', re.IGNORECASE),)),
    (ContentType.LINK, (re.compile(r'shared.*link|external', re.IGNORECASE),)),
)

DEFAULT_TYPE = ContentType.POST
DEFAULT_WINDOW = 2000


def classify(path: Union[str, Path], title: str, text: str,
             window: int = DEFAULT_WINDOW, rules=TYPE_RULES) -> ContentType:
    """
    Guess the content type from the file path, title and body text.

    Only the first `window` characters of "path\\ntitle\\ntext" are inspected.
    """
    haystack = f"{path}\n{title}\n{text}"[:window]
    for category, patterns in rules:
        if any(pattern.search(haystack) for pattern in patterns):
            return category
    return DEFAULT_TYPE
