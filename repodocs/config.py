"""Configuration loading for repodocs (repodocs.yml and per-repository rosindex.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import yaml

from .models import DEFAULT_INDEX_PATTERNS, DEFAULT_SOURCES_DIR, RepositoryDescriptor

CONFIG_FILENAME = "repodocs.yml"
REPOSITORY_METADATA_FILENAME = "rosindex.yml"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed or is invalid."""


@dataclass
class DocsRepoOptions:
    """Options attached to a repository listed under `docs_repos`."""

    name: str
    description: Optional[str] = None


@dataclass
class SiteConfig:
    """Represents the build settings defined in repodocs.yml."""

    root: Path
    remotes_dir: Path
    staging_dir: Path
    output_dir: Path
    docs_repos: List[DocsRepoOptions] = field(default_factory=list)
    repositories: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    skip_search_index: bool = False
    search_index_shards: int = 1
    compiler_timeout: Optional[float] = 600.0
    max_workers: int = 1
    fail_fast: bool = False
    templates_dir: Optional[Path] = None


def load_config(config_path: Path) -> SiteConfig:
    """Load the site configuration from disk."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    data: Dict[str, Any] = {}
    if config_file.exists():
        data = _read_yaml(config_file)

    remotes_dir = root / (_as_str(data.get("remotes_dir")) or "_remotes")
    staging_dir = root / (_as_str(data.get("staging_dir")) or "_sphinx")
    output_dir = root / (_as_str(data.get("output_dir")) or "_site")
    templates_dir_str = _as_str(data.get("templates_dir"))

    docs_repos: List[DocsRepoOptions] = []
    for name, options in _as_dict(data.get("docs_repos")).items():
        options = _as_dict(options)
        docs_repos.append(
            DocsRepoOptions(name=str(name), description=_as_str(options.get("description")))
        )

    repositories = {
        str(name): _as_dict(entry) for name, entry in _as_dict(data.get("repositories")).items()
    }
    remotes_file = _as_str(data.get("remotes_file"))
    if remotes_file:
        remotes_data = _read_yaml(root / remotes_file)
        for name, entry in _as_dict(remotes_data.get("repositories")).items():
            repositories.setdefault(str(name), _as_dict(entry))

    shards = _as_int(data.get("search_index_shards"))
    workers = _as_int(data.get("max_workers"))
    timeout = data.get("compiler_timeout", 600.0)

    return SiteConfig(
        root=root,
        remotes_dir=remotes_dir,
        staging_dir=staging_dir,
        output_dir=output_dir,
        docs_repos=docs_repos,
        repositories=repositories,
        skip_search_index=_as_bool(data.get("skip_search_index")) or False,
        search_index_shards=1 if shards is None else shards,
        compiler_timeout=None if timeout is None else _as_float(timeout),
        max_workers=1 if workers is None else workers,
        fail_fast=_as_bool(data.get("fail_fast")) or False,
        templates_dir=root / templates_dir_str if templates_dir_str else None,
    )


def load_repository_metadata(repo_path: Path) -> Dict[str, Any]:
    """Return the repository's own metadata file, or an empty mapping when absent."""
    metadata_file = repo_path / REPOSITORY_METADATA_FILENAME
    if not metadata_file.is_file():
        return {}
    return _read_yaml(metadata_file)


def resolve_descriptor(
    config: SiteConfig, options: DocsRepoOptions
) -> Optional[RepositoryDescriptor]:
    """Merge repository metadata with the registry entry; None when unregistered."""
    registry_entry = config.repositories.get(options.name)
    if registry_entry is None:
        return None

    repo_path = config.remotes_dir / options.name
    data = load_repository_metadata(repo_path)
    data.update(registry_entry)

    url = _as_str(data.get("url"))
    version = _as_str(data.get("version"))
    if not url:
        raise ConfigError(f"Repository {options.name!r} has no 'url' configured")
    if not version:
        raise ConfigError(f"Repository {options.name!r} has no 'version' configured")

    patterns = data.get("index_pattern")
    index_patterns = (
        tuple(_as_str_list(patterns)) if patterns is not None else DEFAULT_INDEX_PATTERNS
    )
    validate_patterns(index_patterns, repo_name=options.name)

    return RepositoryDescriptor(
        name=options.name,
        url=url,
        version=version,
        path=repo_path,
        sources_dir=_as_str(data.get("sources_dir")) or DEFAULT_SOURCES_DIR,
        index_patterns=index_patterns,
        description=options.description,
    )


def validate_config(config: SiteConfig) -> None:
    """Reject settings that would only fail later, mid-build."""
    if config.search_index_shards < 1:
        raise ConfigError("search_index_shards must be a positive integer")
    if config.max_workers < 1:
        raise ConfigError("max_workers must be a positive integer")
    if config.compiler_timeout is not None and config.compiler_timeout <= 0:
        raise ConfigError("compiler_timeout must be positive when set")


def validate_patterns(patterns: Sequence[str], *, repo_name: str) -> None:
    """Raise ConfigError for empty or malformed glob patterns."""
    for pattern in patterns:
        if not pattern:
            raise ConfigError(f"Repository {repo_name!r} has an empty index_pattern entry")
        if not _brackets_balanced(pattern):
            raise ConfigError(
                f"Repository {repo_name!r} has a malformed index_pattern: {pattern!r}"
            )


def _brackets_balanced(pattern: str) -> bool:
    index = 0
    while index < len(pattern):
        if pattern[index] == "[":
            # A leading ']' (after an optional negation) is a literal member of the class.
            end = index + 1
            if end < len(pattern) and pattern[end] in "!^":
                end += 1
            if end < len(pattern) and pattern[end] == "]":
                end += 1
            end = pattern.find("]", end)
            if end == -1:
                return False
            index = end
        index += 1
    return True


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read {path}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"{path.name} must contain a mapping at the root")
    return loaded


def _as_dict(value: Any) -> Dict[str, Any]:
    return dict(value) if isinstance(value, Mapping) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "ConfigError",
    "DocsRepoOptions",
    "SiteConfig",
    "load_config",
    "load_repository_metadata",
    "resolve_descriptor",
    "validate_config",
    "validate_patterns",
]
