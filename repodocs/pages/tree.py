"""Permalink normalisation, page ordering and the per-repository page tree."""

from __future__ import annotations

import posixpath
from fnmatch import fnmatchcase
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..errors import AssemblyConflictError
from ..models import Page

UNMATCHED_POSITION = -1


def normalize_permalink(page_name: str) -> str:
    """Drop a trailing `index` segment; the repository root becomes ``""``."""
    permalink = page_name.strip("/")
    if posixpath.basename(permalink) == "index":
        permalink = posixpath.dirname(permalink)
        if permalink in {"", "."}:
            permalink = ""
    return permalink


def parent_permalink(permalink: str) -> str:
    """Return the permalink before the last `/` (``""`` for top-level pages)."""
    parent, _, _ = permalink.rpartition("/")
    return parent


def matches_any(path: str, patterns: Sequence[str]) -> bool:
    return any(fnmatchcase(path, pattern) for pattern in patterns)


def pattern_position(sourcename: Optional[str], patterns: Sequence[str]) -> int:
    """Index of the first pattern matching `sourcename`, or -1."""
    if not sourcename:
        return UNMATCHED_POSITION
    for position, pattern in enumerate(patterns):
        if fnmatchcase(sourcename, pattern):
            return position
    return UNMATCHED_POSITION


def page_sort_key(page: Page, patterns: Sequence[str]) -> Tuple[int, int, str]:
    """Depth first, then index pattern position (unmatched first), then title."""
    return (page.depth, pattern_position(page.sourcename, patterns), page.title)


def order_pages(pages: Iterable[Page], patterns: Sequence[str]) -> List[Page]:
    return sorted(pages, key=lambda page: page_sort_key(page, patterns))


class PageTree:
    """Pages of one repository keyed by their unique permalink."""

    def __init__(self, repo_name: str | None = None) -> None:
        self.repo_name = repo_name
        self._pages: Dict[str, Page] = {}
        self._origins: Dict[str, str] = {}

    def insert(self, page: Page, *, origin: str) -> None:
        """Add a page; a second page on the same permalink is a conflict."""
        existing = self._origins.get(page.permalink)
        if existing is not None:
            raise AssemblyConflictError(self.repo_name, page.permalink, existing, origin)
        self._pages[page.permalink] = page
        self._origins[page.permalink] = origin

    def ordered(self, patterns: Sequence[str]) -> List[Page]:
        return order_pages(self._pages.values(), patterns)

    def __contains__(self, permalink: object) -> bool:
        return permalink in self._pages

    def __len__(self) -> int:
        return len(self._pages)


__all__ = [
    "PageTree",
    "UNMATCHED_POSITION",
    "matches_any",
    "normalize_permalink",
    "order_pages",
    "page_sort_key",
    "parent_permalink",
    "pattern_position",
]
