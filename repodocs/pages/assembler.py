"""Reassembles compiler fragments into an ordered, linked page sequence."""

from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from ..git.edit_links import EditLinkResolver
from ..logging import get_logger
from ..models import Page, RepositoryDescriptor, StagedFileMap
from .tree import PageTree, matches_any, normalize_permalink, parent_permalink

Fragment = Tuple[Path, Dict[str, Any]]


def page_url(repo_name: str, permalink: str) -> str:
    """Site URL of a page: `/{repo}/{permalink}/`, or `/{repo}/` for the root."""
    parts = [repo_name, permalink] if permalink else [repo_name]
    return "/" + "/".join(parts) + "/"


def link_parents(
    pages: Sequence[Page], repo_name: str, description: Optional[str] = None
) -> List[Page]:
    """Assign parents while walking pages in their final order.

    A page's parent is the already emitted page at the permalink before its
    last `/` segment. Pages without one take the repository description as
    their title, when the repository has one.
    """
    emitted: Dict[str, Page] = {}
    for page in pages:
        parent_link = parent_permalink(page.permalink)
        parent = emitted.get(parent_link)
        if parent is None:
            page.parent = None
            if description:
                page.title = description
        else:
            page.parent = parent.permalink
        page.url = page_url(repo_name, page.permalink)
        emitted[page.permalink] = page
    return list(pages)


class PageTreeAssembler:
    """Builds the ordered page list of one repository from its fragments."""

    def __init__(self, descriptor: RepositoryDescriptor) -> None:
        self.descriptor = descriptor
        self.resolver = EditLinkResolver(
            descriptor.url, descriptor.version, repo_name=descriptor.name
        )
        self.logger = get_logger("assembler")

    def assemble(
        self,
        fragments: Sequence[Fragment],
        staged_map: StagedFileMap,
        staging_root: Path,
    ) -> List[Page]:
        """Return pages ordered by depth, index pattern position and title.

        Fragments whose source is not in `staged_map` (leftovers from sources
        deleted since a previous build, or compiler-generated pages) are kept
        but get no edit link, source name or indexable flag.
        """
        sources = _staged_sources(staged_map, staging_root)
        patterns = self.descriptor.index_patterns
        tree = PageTree(self.descriptor.name)

        for fragment_path, data in fragments:
            fragment_key = PurePosixPath(fragment_path.as_posix()).with_suffix("").as_posix()
            page = Page(permalink=normalize_permalink(_page_name(data, fragment_key)), fragment=data)

            sourcename = sources.get(fragment_key.lower())
            if sourcename is not None:
                page.sourcename = sourcename
                page.edit_url = self.resolver.resolve(self._repository_path(sourcename))
                page.indexed = matches_any(sourcename, patterns)
            else:
                self.logger.debug(
                    "Fragment %s has no staged source; publishing without edit link", fragment_path
                )

            tree.insert(page, origin=fragment_path.as_posix())

        ordered = tree.ordered(patterns)
        return link_parents(ordered, self.descriptor.name, self.descriptor.description)

    def _repository_path(self, sourcename: str) -> str:
        return (PurePosixPath(self.descriptor.sources_dir) / sourcename).as_posix()


def _staged_sources(staged_map: StagedFileMap, staging_root: Path) -> Mapping[str, str]:
    """Map suffix-less, lower-cased staged paths to their source-relative names."""
    sources: Dict[str, str] = {}
    for staged in staged_map.values():
        relative = PurePosixPath(staged.relative_to(staging_root).as_posix())
        sources[relative.with_suffix("").as_posix().lower()] = relative.as_posix()
    return sources


def _page_name(data: Mapping[str, Any], fallback: str) -> str:
    name = data.get("current_page_name")
    return name if isinstance(name, str) and name else fallback


__all__ = ["Fragment", "PageTreeAssembler", "link_parents", "page_url"]
