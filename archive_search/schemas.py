"""
Pydantic schemas defining the index artifact.

Record:        one extracted document, produced by the Extractor
IndexArtifact: the persisted envelope written by the IndexBuilder and read
               back by the search side

Data flow through the pipeline:
  walk() → file paths → DocumentParser → Document
  Document → Extractor → Record
  Records → IndexBuilder → IndexArtifact → data/search-index.json
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ContentType(str, Enum):
    """Content categories assigned by the classifier."""
    PHOTO = "photo"
    VIDEO = "video"
    STATUS = "status"
    LINK = "link"
    POST = "post"      # Fallback when no rule matches


class Record(BaseModel):
    """
    One searchable document.

    `id` and `url` carry the same value: the root-relative path of the
    source file. The browser UI links to `url`; `id` is what the fuzzy
    search library keys results on.
    """
    id: str
    url: str
    title: str = ""
    text: str
    date: Optional[str] = None     # Canonical ISO-8601 (UTC, "Z" suffix) or None
    year: Optional[int] = None     # Calendar year of `date`; None iff date is None
    type: ContentType = ContentType.POST
    img: Optional[str] = None

    @field_validator("url", "id")
    @classmethod
    def _root_relative(cls, value: str) -> str:
        if not value.startswith("/") or "\\" in value:
            raise ValueError(f"expected a root-relative forward-slash path, got {value!r}")
        return value

    @model_validator(mode="after")
    def _year_follows_date(self) -> "Record":
        if (self.date is None) != (self.year is None):
            raise ValueError("year must be present exactly when date is present")
        return self

    def sort_key(self) -> str:
        """Dateless records sort last when ordering by date descending."""
        return self.date or ""


class IndexArtifact(BaseModel):
    """Envelope persisted as data/search-index.json."""
    model_config = ConfigDict(populate_by_name=True)

    generated_at: str = Field(alias="generatedAt")
    count: int
    items: list[Record] = Field(default_factory=list)

    @model_validator(mode="after")
    def _count_matches_items(self) -> "IndexArtifact":
        if self.count != len(self.items):
            raise ValueError(f"count is {self.count} but {len(self.items)} items are present")
        return self

    @classmethod
    def from_records(cls, records: list[Record], generated_at: str) -> "IndexArtifact":
        return cls(generated_at=generated_at, count=len(records), items=records)

    def to_json_dict(self) -> dict:
        """Serializable form with the camel-case keys the browser UI reads."""
        return self.model_dump(mode="json", by_alias=True)


class BuildStats(BaseModel):
    """Counters reported at the end of a build run."""
    files_seen: int = 0
    indexed: int = 0
    skipped_errors: list[str] = Field(default_factory=list)   # Files that failed to parse/extract
    dropped_short: int = 0                                     # Records under the text length floor
