"""Writes assembled pages to the site output through jinja templates."""

from __future__ import annotations

import json
import shutil
from pathlib import Path
from typing import Dict, List, Sequence

from jinja2 import Environment, FileSystemLoader

from ..logging import get_logger
from ..models import Page


class PagePublisher:
    """Renders each page to `{output}/{repo}/{permalink}/index.html`."""

    PAGE_TEMPLATE = "page.html.j2"
    MANIFEST_NAME = "pages.json"

    def __init__(self, templates_dir: Path | None = None) -> None:
        self._env = self._create_env(templates_dir)
        self.logger = get_logger("publisher")

    def publish(self, repo_name: str, pages: Sequence[Page], output_dir: Path) -> List[Path]:
        """Replace the repository's output tree with freshly rendered pages."""
        repo_dir = self.clear(repo_name, output_dir)
        repo_dir.mkdir(parents=True)

        by_permalink = {page.permalink: page for page in pages}
        template = self._env.get_template(self.PAGE_TEMPLATE)
        written: List[Path] = []
        for page in pages:
            target = repo_dir / page.permalink / "index.html" if page.permalink else repo_dir / "index.html"
            target.parent.mkdir(parents=True, exist_ok=True)
            html = template.render(
                repo_name=repo_name,
                page=page,
                breadcrumbs=_breadcrumbs(page, by_permalink),
            )
            target.write_text(html, encoding="utf-8")
            written.append(target)

        manifest = [page.to_data() | {"parent": page.parent} for page in pages]
        manifest_path = repo_dir / self.MANIFEST_NAME
        manifest_path.write_text(
            json.dumps(_strip_bodies(manifest), indent=2, sort_keys=True), encoding="utf-8"
        )
        self.logger.debug("Published %d pages for %s", len(written), repo_name)
        return written

    def clear(self, repo_name: str, output_dir: Path) -> Path:
        """Remove previously published pages of `repo_name`; return its directory."""
        repo_dir = output_dir / repo_name
        if repo_dir.exists():
            self.logger.debug("Removing previous output %s", repo_dir)
            shutil.rmtree(repo_dir)
        return repo_dir

    @staticmethod
    def _create_env(templates_dir: Path | None) -> Environment:
        directories = []
        if templates_dir:
            directories.append(str(templates_dir))
        directories.append(str(Path(__file__).with_name("templates")))
        loader = FileSystemLoader(directories)
        return Environment(loader=loader, autoescape=False, trim_blocks=True, lstrip_blocks=True)


def _breadcrumbs(page: Page, by_permalink: Dict[str, Page]) -> List[Page]:
    trail: List[Page] = []
    current = page
    while current.parent is not None:
        parent = by_permalink.get(current.parent)
        if parent is None or parent is current:
            break
        trail.append(parent)
        current = parent
    trail.reverse()
    return trail


def _strip_bodies(entries: List[Dict[str, object]]) -> List[Dict[str, object]]:
    keep = {"title", "permalink", "url", "parent", "edit_url", "indexed_page", "sourcename"}
    return [{key: value for key, value in entry.items() if key in keep} for entry in entries]


__all__ = ["PagePublisher"]
