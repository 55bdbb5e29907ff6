"""Derives "edit this page" URLs from git remotes."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePath
from urllib.parse import urlparse

from ..errors import UnsupportedProviderError

GITHUB_HOST = "github.com"
BITBUCKET_HOST = "bitbucket.org"


@dataclass(frozen=True)
class RemoteLocation:
    """Host and repository coordinates parsed from a git remote URL."""

    host: str
    organization: str
    repository: str

    @property
    def provider(self) -> str | None:
        if GITHUB_HOST in self.host:
            return "github"
        if BITBUCKET_HOST in self.host:
            return "bitbucket"
        return None


def parse_remote(url: str) -> RemoteLocation:
    """Parse `https://host/org/repo(.git)` or `user@host:org/repo(.git)` remotes."""
    url = url.strip()
    if "://" in url:
        parsed = urlparse(url)
        host = parsed.hostname or ""
        segments = [segment for segment in parsed.path.split("/") if segment]
    else:
        _, _, location = url.rpartition("@")
        host, _, path = location.partition(":")
        segments = [segment for segment in path.split("/") if segment]

    if not host or len(segments) < 2:
        raise UnsupportedProviderError(url)

    organization, repository = segments[0], segments[1]
    if repository.endswith(".git"):
        repository = repository[: -len(".git")]
    return RemoteLocation(host=host, organization=organization, repository=repository)


def resolve_edit_url(remote_url: str, version: str, relative_path: str | PurePath) -> str:
    """Return the browsable edit URL for a file on GitHub or Bitbucket."""
    location = parse_remote(remote_url)
    path = PurePath(relative_path).as_posix().lstrip("/")
    base = f"https://{location.host}/{location.organization}/{location.repository}"

    if location.provider == "github":
        return f"{base}/edit/{version}/{path}"
    if location.provider == "bitbucket":
        return (
            f"{base}/src/{version}/{path}"
            f"?mode=edit&spa=0&at={version}&fileviewer=file-view-default"
        )
    raise UnsupportedProviderError(remote_url)


class EditLinkResolver:
    """Binds a repository remote and ref so callers only pass file paths."""

    def __init__(self, remote_url: str, version: str, *, repo_name: str | None = None) -> None:
        self.remote_url = remote_url
        self.version = version
        self.repo_name = repo_name

    def resolve(self, relative_path: str | PurePath) -> str:
        try:
            return resolve_edit_url(self.remote_url, self.version, relative_path)
        except UnsupportedProviderError as exc:
            if exc.repo_name is None and self.repo_name is not None:
                raise UnsupportedProviderError(self.remote_url, self.repo_name) from None
            raise


__all__ = [
    "EditLinkResolver",
    "RemoteLocation",
    "parse_remote",
    "resolve_edit_url",
]
