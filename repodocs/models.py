"""Core data models shared across repodocs components."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

DEFAULT_SOURCES_DIR = "source"
DEFAULT_INDEX_PATTERNS: Tuple[str, ...] = ("*.rst", "**/*.rst")


@dataclass(frozen=True)
class RepositoryDescriptor:
    """Resolved settings for one documentation repository."""

    name: str
    url: str
    version: str
    path: Path
    sources_dir: str = DEFAULT_SOURCES_DIR
    index_patterns: Tuple[str, ...] = DEFAULT_INDEX_PATTERNS
    description: Optional[str] = None

    @property
    def sources_path(self) -> Path:
        return self.path / self.sources_dir


# Original source path -> staged copy, for one repository.
StagedFileMap = Dict[Path, Path]


@dataclass
class Page:
    """A compiler fragment enriched with tree placement and source metadata."""

    permalink: str
    fragment: Dict[str, Any]
    edit_url: Optional[str] = None
    indexed: bool = False
    sourcename: Optional[str] = None
    url: str = ""
    parent: Optional[str] = None

    @property
    def title(self) -> str:
        value = self.fragment.get("title")
        return value if isinstance(value, str) else ""

    @title.setter
    def title(self, value: str) -> None:
        self.fragment["title"] = value

    @property
    def body(self) -> str:
        value = self.fragment.get("body")
        return value if isinstance(value, str) else ""

    @property
    def depth(self) -> int:
        return self.permalink.count("/")

    def to_data(self) -> Dict[str, Any]:
        """Return the fragment with the fields added during assembly."""
        data = dict(self.fragment)
        if self.edit_url is not None:
            data["edit_url"] = self.edit_url
        if self.sourcename is not None:
            data["indexed_page"] = self.indexed
            data["sourcename"] = self.sourcename
        data["permalink"] = self.permalink
        data["url"] = self.url
        return data


@dataclass(frozen=True)
class IndexEntry:
    """One searchable document in the global index."""

    id: int
    url: str
    title: str
    content: str

    def as_document(self) -> Dict[str, Any]:
        return {"id": self.id, "url": self.url, "title": self.title, "content": self.content}


@dataclass
class RepositoryResult:
    """Outcome of processing a single repository."""

    name: str
    pages: List[Page] = field(default_factory=list)
    skipped: bool = False
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None
