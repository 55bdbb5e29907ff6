"""Global search index assembly over indexable pages."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Sequence

from ..logging import get_logger
from ..models import IndexEntry, Page
from .store import write_shard
from .text import html_to_text

SEARCH_INDEX_DIR = Path("search") / "docs"


class IndexAccumulator:
    """Collects indexable pages across repositories in a caller-defined order."""

    def __init__(self) -> None:
        self._pages: List[Page] = []

    def extend(self, pages: Iterable[Page]) -> None:
        self._pages.extend(page for page in pages if page.indexed)

    @property
    def pages(self) -> List[Page]:
        return list(self._pages)

    def __len__(self) -> int:
        return len(self._pages)


def build_entries(pages: Iterable[Page]) -> List[IndexEntry]:
    """Number pages from 0 in the order received and extract their text."""
    return [
        IndexEntry(
            id=position,
            url=page.url,
            title=html_to_text(page.title),
            content=html_to_text(page.body),
        )
        for position, page in enumerate(pages)
    ]


def shard_entries(entries: Sequence[IndexEntry], shards: int) -> List[List[IndexEntry]]:
    """Split entries into at most `shards` contiguous, near-equal, non-empty parts."""
    if shards < 1:
        raise ValueError("shard count must be positive")
    total = len(entries)
    count = min(shards, total)
    if count == 0:
        return []
    size, remainder = divmod(total, count)
    result: List[List[IndexEntry]] = []
    start = 0
    for position in range(count):
        end = start + size + (1 if position < remainder else 0)
        result.append(list(entries[start:end]))
        start = end
    return result


def remove_shards(output_dir: Path) -> None:
    """Delete shard files left by an earlier build."""
    for stale in (output_dir / SEARCH_INDEX_DIR).glob("index.*.json"):
        stale.unlink()


class SearchIndexBuilder:
    """Writes the sharded lunr index for all indexable pages."""

    def __init__(
        self,
        shards: int = 1,
        *,
        reference_field: str = "id",
        indexed_fields: Sequence[str] = ("title", "content"),
    ) -> None:
        if shards < 1:
            raise ValueError("shard count must be positive")
        self.shards = shards
        self.reference_field = reference_field
        self.indexed_fields = tuple(indexed_fields)
        self.logger = get_logger("search")

    def build(self, pages: Iterable[Page], output_dir: Path) -> List[Path]:
        """Write `search/docs/index.{n}.json` under `output_dir`; return the paths."""
        index_dir = output_dir / SEARCH_INDEX_DIR
        remove_shards(output_dir)

        entries = build_entries(pages)
        parts = shard_entries(entries, self.shards)
        if not parts:
            self.logger.warning("No indexable pages; search index not written")
            return []

        self.logger.info(
            "Generating search index for %d pages in %d shard(s)", len(entries), len(parts)
        )
        return [
            write_shard(
                part,
                index_dir / f"index.{position}.json",
                reference_field=self.reference_field,
                indexed_fields=self.indexed_fields,
            )
            for position, part in enumerate(parts)
        ]


__all__ = [
    "IndexAccumulator",
    "SEARCH_INDEX_DIR",
    "SearchIndexBuilder",
    "build_entries",
    "remove_shards",
    "shard_entries",
]
