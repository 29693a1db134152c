"""
Build configuration.

Every value the pipeline needs is carried on a BuildConfig instance that is
passed into walk(), the Extractor and the IndexBuilder; nothing is read from
module globals at build time. BuildConfig.from_env() layers ARCHIVE_SEARCH_*
environment variables over the defaults (CLI entry points call load_dotenv()
first, so a .env file at the working directory works too).
"""

import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

# Content containers, most specific first. The first selector that matches
# anything in the document wins; <body> is the fallback.
DEFAULT_CONTENT_SELECTORS = [
    "#content",
    "main",
    "article",
    ".userContent",
    ".content",
    ".post",
    ".story_body_container",
]

# Elements whose text is a human-readable timestamp in exported pages
DEFAULT_TIMESTAMP_SELECTOR = ".timestamp, .date, .meta"


class BuildConfig(BaseModel):
    """Explicit settings for one index build."""
    root: Path
    output_dir: str = "data"
    output_name: str = "search-index.json"
    extensions: list[str] = Field(default_factory=lambda: [".html", ".htm"])
    excluded_dirs: list[str] = Field(default_factory=lambda: ["assets"])
    excluded_files: list[str] = Field(default_factory=lambda: ["service-worker.js"])
    min_text_length: int = 40          # Records with text this short or shorter are dropped
    classify_window: int = 2000        # Characters of path+title+text the classifier inspects
    content_selectors: list[str] = Field(default_factory=lambda: list(DEFAULT_CONTENT_SELECTORS))
    timestamp_selector: str = DEFAULT_TIMESTAMP_SELECTOR
    log_level: int = logging.INFO
    log_file: Optional[str] = None

    @field_validator("root")
    @classmethod
    def _absolute_root(cls, value: Path) -> Path:
        return Path(value).expanduser().resolve()

    @field_validator("extensions")
    @classmethod
    def _lowercase_extensions(cls, value: list[str]) -> list[str]:
        return [ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in value]

    @property
    def output_path(self) -> Path:
        return self.root / self.output_dir / self.output_name

    @classmethod
    def from_env(cls, root: Optional[Path] = None) -> "BuildConfig":
        """
        Build a config for `root` (default: current directory), applying
        environment overrides:

          ARCHIVE_SEARCH_MIN_TEXT_LENGTH   integer
          ARCHIVE_SEARCH_LOG_LEVEL         DEBUG / INFO / WARNING / ...
          ARCHIVE_SEARCH_LOG_FILE          path of an extra log file
        """
        values: dict = {"root": root if root is not None else Path.cwd()}

        min_length = os.getenv("ARCHIVE_SEARCH_MIN_TEXT_LENGTH")
        if min_length:
            values["min_text_length"] = int(min_length)

        level_name = os.getenv("ARCHIVE_SEARCH_LOG_LEVEL")
        if level_name:
            level = logging.getLevelName(level_name.upper())
            if isinstance(level, int):
                values["log_level"] = level

        log_file = os.getenv("ARCHIVE_SEARCH_LOG_FILE")
        if log_file:
            values["log_file"] = log_file

        return cls(**values)
