"""Page tree assembly for compiled documentation fragments."""

from .assembler import PageTreeAssembler, link_parents, page_url
from .tree import (
    PageTree,
    normalize_permalink,
    order_pages,
    page_sort_key,
    pattern_position,
)

__all__ = [
    "PageTree",
    "PageTreeAssembler",
    "link_parents",
    "normalize_permalink",
    "order_pages",
    "page_sort_key",
    "page_url",
    "pattern_position",
]
