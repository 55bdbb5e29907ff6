"""Exceptions raised while building a single repository's documentation."""

from __future__ import annotations


class RepositoryError(RuntimeError):
    """Base class for failures scoped to one documentation repository."""

    def __init__(self, repo_name: str | None, message: str) -> None:
        self.repo_name = repo_name
        prefix = f"[{repo_name}] " if repo_name else ""
        super().__init__(f"{prefix}{message}")


class UnsupportedProviderError(RepositoryError):
    """Raised when an edit URL cannot be derived for a repository host."""

    def __init__(self, url: str, repo_name: str | None = None) -> None:
        self.url = url
        super().__init__(
            repo_name,
            f"Cannot generate edit URL. Unknown hosting provider for repository: {url}",
        )


class CompilationFailure(RepositoryError):
    """Raised when the fragment compiler fails or produces no usable output."""


class AssemblyConflictError(RepositoryError):
    """Raised when two fragments of one repository resolve to the same permalink."""

    def __init__(self, repo_name: str | None, permalink: str, first: str, second: str) -> None:
        self.permalink = permalink
        super().__init__(
            repo_name,
            f"Permalink {permalink!r} produced by both {first} and {second}",
        )


__all__ = [
    "AssemblyConflictError",
    "CompilationFailure",
    "RepositoryError",
    "UnsupportedProviderError",
]
