"""Serialised lunr search index shards."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Sequence

from lunr import lunr
from lunr.index import Index

from ..models import IndexEntry


def build_shard(
    entries: Sequence[IndexEntry],
    *,
    reference_field: str,
    indexed_fields: Sequence[str],
) -> Dict[str, Any]:
    """Return the JSON payload for one shard: lunr index plus result metadata."""
    documents = [
        dict(entry.as_document(), **{reference_field: str(getattr(entry, reference_field))})
        for entry in entries
    ]
    index = lunr(ref=reference_field, fields=list(indexed_fields), documents=documents)
    return {
        "ref": reference_field,
        "fields": list(indexed_fields),
        "index": index.serialize(),
        "documents": {
            str(entry.id): {"url": entry.url, "title": entry.title} for entry in entries
        },
    }


def write_shard(
    entries: Sequence[IndexEntry],
    path: Path,
    *,
    reference_field: str = "id",
    indexed_fields: Sequence[str] = ("title", "content"),
) -> Path:
    payload = build_shard(
        entries, reference_field=reference_field, indexed_fields=indexed_fields
    )
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
    return path


class SearchShard:
    """A loaded shard that can answer lunr queries."""

    def __init__(self, path: Path) -> None:
        self.path = path
        payload = json.loads(path.read_text(encoding="utf-8"))
        self.index = Index.load(payload["index"])
        self.documents: Dict[str, Dict[str, str]] = payload.get("documents", {})

    def search(self, query: str) -> List[Dict[str, Any]]:
        hits: List[Dict[str, Any]] = []
        for result in self.index.search(query):
            ref = str(result["ref"])
            document = self.documents.get(ref, {})
            hits.append(
                {
                    "id": ref,
                    "score": result["score"],
                    "url": document.get("url"),
                    "title": document.get("title"),
                }
            )
        return hits


def load_shards(directory: Path) -> List[SearchShard]:
    paths = sorted(directory.glob("index.*.json"), key=lambda path: int(path.suffixes[0][1:]))
    return [SearchShard(path) for path in paths]


__all__ = ["SearchShard", "build_shard", "load_shards", "write_shard"]
