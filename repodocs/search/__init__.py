"""Search index generation for published documentation pages."""

from .indexer import IndexAccumulator, SearchIndexBuilder, build_entries, shard_entries
from .text import html_to_text

__all__ = [
    "IndexAccumulator",
    "SearchIndexBuilder",
    "build_entries",
    "html_to_text",
    "shard_entries",
]
