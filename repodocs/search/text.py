"""Plain-text extraction from compiled HTML."""

from __future__ import annotations

from bs4 import BeautifulSoup


def html_to_text(html: str | None) -> str:
    """Strip tags, resolve entities and collapse whitespace."""
    if not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")
    return " ".join(soup.get_text(separator=" ").split())


__all__ = ["html_to_text"]
