"""Tests for repodocs.orchestrator."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from repodocs.compiler import SphinxCompiler
from repodocs.config import ConfigError, DocsRepoOptions, load_config
from repodocs.errors import CompilationFailure
from repodocs.orchestrator import Orchestrator
from repodocs.render.publisher import PagePublisher
from tests._fixtures.site_builder import FakeSphinx, SiteBuilder

WIDGETS_DOCS = {
    "conf.py": "project = 'widgets'\n",
    "source/index.rst": """
        Contents
        ========
        Widgets hold sprockets together.
    """,
    "source/guide/index.rst": """
        Guide
        =====
        Start here.
    """,
    "source/guide/install.rst": """
        Install
        =======
        Run the installer.
    """,
}

GADGETS_DOCS = {
    "source/index.rst": """
        Gadgets
        =======
        Gadgets attach flanges.
    """,
}


def _config(site_builder: SiteBuilder, **extra):
    data = {
        "docs_repos": {
            "widgets": {"description": "Widgets Manual"},
            "gadgets": {},
        },
        "repositories": {
            "widgets": {"url": "https://github.com/acme/widgets.git", "version": "v2.0"},
            "gadgets": {"url": "git@bitbucket.org:acme/gadgets.git", "version": "main"},
        },
    }
    data.update(extra)
    site_builder.write_config(data)
    return load_config(site_builder.root)


def test_build_publishes_pages_and_index(site_builder: SiteBuilder, fake_sphinx: FakeSphinx) -> None:
    site_builder.write_repo("widgets", WIDGETS_DOCS)
    site_builder.write_repo("gadgets", GADGETS_DOCS)
    config = _config(site_builder)

    report = Orchestrator(config, compiler=SphinxCompiler(runner=fake_sphinx)).build()

    assert report.succeeded
    widgets, gadgets = report.results
    assert [page.permalink for page in widgets.pages] == ["", "guide", "guide/install"]
    assert widgets.pages[0].title == "Widgets Manual"
    assert widgets.pages[2].edit_url == (
        "https://github.com/acme/widgets/edit/v2.0/source/guide/install.rst"
    )
    assert gadgets.pages[0].edit_url.startswith("https://bitbucket.org/acme/gadgets/src/main/source/index.rst")
    assert (config.output_dir / "widgets" / "guide" / "install" / "index.html").exists()

    assert report.indexed_pages == 4
    assert report.index_paths == [config.output_dir / "search" / "docs" / "index.0.json"]
    payload = json.loads(report.index_paths[0].read_text(encoding="utf-8"))
    assert payload["documents"]["0"]["url"] == "/widgets/"
    assert payload["documents"]["3"]["url"] == "/gadgets/"


def test_compiler_uses_repository_as_config_dir(site_builder: SiteBuilder, fake_sphinx: FakeSphinx) -> None:
    site_builder.write_repo("widgets", WIDGETS_DOCS)
    config = _config(site_builder, docs_repos={"widgets": {}})

    Orchestrator(config, compiler=SphinxCompiler(runner=fake_sphinx)).build()

    args = fake_sphinx.calls[0]
    assert args[args.index("-c") + 1] == str(config.remotes_dir / "widgets")
    assert args[-2] == str(config.staging_dir / "repos" / "widgets")
    assert args[-1] == str(config.staging_dir / "_build" / "widgets")


def test_repository_without_sources_is_skipped(site_builder: SiteBuilder, fake_sphinx: FakeSphinx) -> None:
    site_builder.write_repo("widgets", WIDGETS_DOCS)
    site_builder.write_repo("gadgets", {"README.md": "# no docs\n"})
    config = _config(site_builder)

    report = Orchestrator(config, compiler=SphinxCompiler(runner=fake_sphinx)).build()

    gadgets = report.results[1]
    assert gadgets.skipped is True
    assert gadgets.pages == []
    assert len(fake_sphinx.calls) == 1
    assert not (config.staging_dir / "repos" / "gadgets").exists()


def test_unregistered_repository_is_reported(site_builder: SiteBuilder, fake_sphinx: FakeSphinx) -> None:
    site_builder.write_repo("widgets", WIDGETS_DOCS)
    config = _config(site_builder)
    config.docs_repos.append(DocsRepoOptions(name="ghost"))

    report = Orchestrator(config, compiler=SphinxCompiler(runner=fake_sphinx)).build()

    assert report.unregistered == ["ghost"]
    assert [result.name for result in report.results] == ["widgets", "gadgets"]


def test_failed_repository_does_not_stop_others(site_builder: SiteBuilder, fake_sphinx: FakeSphinx) -> None:
    site_builder.write_repo("widgets", WIDGETS_DOCS)
    site_builder.write_repo("gadgets", GADGETS_DOCS)
    config = _config(site_builder)
    config.repositories["widgets"]["url"] = "https://gitlab.com/acme/widgets.git"

    report = Orchestrator(config, compiler=SphinxCompiler(runner=fake_sphinx)).build()

    assert [result.name for result in report.failed] == ["widgets"]
    assert "gitlab.com" in report.failed[0].error
    assert report.indexed_pages == 1
    payload = json.loads(report.index_paths[0].read_text(encoding="utf-8"))
    assert payload["documents"] == {"0": {"url": "/gadgets/", "title": "Gadgets"}}


def test_compiler_failure_is_scoped_to_repository(site_builder: SiteBuilder) -> None:
    site_builder.write_repo("widgets", WIDGETS_DOCS)
    site_builder.write_repo("gadgets", GADGETS_DOCS)
    config = _config(site_builder)
    working = FakeSphinx()
    broken = FakeSphinx(returncode=1)

    def runner(args, cwd=None, timeout=None):  # type: ignore[no-untyped-def]
        target = broken if "widgets" in list(args)[-1] else working
        return target(args, cwd=cwd, timeout=timeout)

    report = Orchestrator(config, compiler=SphinxCompiler(runner=runner)).build()

    assert [result.name for result in report.failed] == ["widgets"]
    assert report.results[1].pages


def test_fail_fast_propagates_errors(site_builder: SiteBuilder) -> None:
    site_builder.write_repo("widgets", WIDGETS_DOCS)
    config = _config(site_builder, fail_fast=True)

    with pytest.raises(CompilationFailure):
        Orchestrator(config, compiler=SphinxCompiler(runner=FakeSphinx(returncode=1))).build()


def test_skip_search_index(site_builder: SiteBuilder, fake_sphinx: FakeSphinx) -> None:
    site_builder.write_repo("widgets", WIDGETS_DOCS)
    config = _config(site_builder, skip_search_index=True)

    report = Orchestrator(config, compiler=SphinxCompiler(runner=fake_sphinx)).build()

    assert report.index_paths == []
    assert not (config.output_dir / "search").exists()


def test_parallel_build_matches_sequential_ids(site_builder: SiteBuilder) -> None:
    site_builder.write_repo("widgets", WIDGETS_DOCS)
    site_builder.write_repo("gadgets", GADGETS_DOCS)

    sequential = Orchestrator(
        _config(site_builder), compiler=SphinxCompiler(runner=FakeSphinx())
    ).build()
    sequential_docs = json.loads(sequential.index_paths[0].read_text(encoding="utf-8"))["documents"]

    parallel = Orchestrator(
        _config(site_builder, max_workers=2), compiler=SphinxCompiler(runner=FakeSphinx())
    ).build()
    parallel_docs = json.loads(parallel.index_paths[0].read_text(encoding="utf-8"))["documents"]

    assert parallel_docs == sequential_docs


def test_malformed_pattern_aborts_before_processing(site_builder: SiteBuilder, fake_sphinx: FakeSphinx) -> None:
    site_builder.write_repo("widgets", WIDGETS_DOCS)
    site_builder.write_repo("gadgets", {**GADGETS_DOCS, "rosindex.yml": "index_pattern: ['[oops']\n"})
    config = _config(site_builder)

    with pytest.raises(ConfigError):
        Orchestrator(config, compiler=SphinxCompiler(runner=fake_sphinx)).build()

    assert fake_sphinx.calls == []


class _UnwritablePublisher(PagePublisher):
    def __init__(self, blocked: str) -> None:
        super().__init__()
        self.blocked = blocked

    def publish(self, repo_name, pages, output_dir):  # type: ignore[no-untyped-def]
        if repo_name == self.blocked:
            raise PermissionError(13, "Permission denied", str(output_dir / repo_name / "index.html"))
        return super().publish(repo_name, pages, output_dir)


def test_filesystem_error_is_scoped_to_repository(site_builder: SiteBuilder, fake_sphinx: FakeSphinx) -> None:
    site_builder.write_repo("widgets", WIDGETS_DOCS)
    site_builder.write_repo("gadgets", GADGETS_DOCS)
    config = _config(site_builder)

    report = Orchestrator(
        config,
        compiler=SphinxCompiler(runner=fake_sphinx),
        publisher=_UnwritablePublisher("widgets"),
    ).build()

    assert [result.name for result in report.failed] == ["widgets"]
    assert report.failed[0].error.startswith("[widgets] ")
    assert "Permission denied" in report.failed[0].error
    assert (config.output_dir / "gadgets" / "index.html").exists()
    assert report.indexed_pages == 1
    payload = json.loads(report.index_paths[0].read_text(encoding="utf-8"))
    assert payload["documents"] == {"0": {"url": "/gadgets/", "title": "Gadgets"}}


def test_fail_fast_propagates_filesystem_errors(site_builder: SiteBuilder, fake_sphinx: FakeSphinx) -> None:
    site_builder.write_repo("widgets", WIDGETS_DOCS)
    config = _config(site_builder, fail_fast=True)

    with pytest.raises(PermissionError):
        Orchestrator(
            config,
            compiler=SphinxCompiler(runner=fake_sphinx),
            publisher=_UnwritablePublisher("widgets"),
        ).build()


def test_failed_repository_drops_previous_output(site_builder: SiteBuilder, fake_sphinx: FakeSphinx) -> None:
    site_builder.write_repo("widgets", WIDGETS_DOCS)
    site_builder.write_repo("gadgets", GADGETS_DOCS)
    config = _config(site_builder)
    Orchestrator(config, compiler=SphinxCompiler(runner=fake_sphinx)).build()
    assert (config.output_dir / "widgets" / "index.html").exists()

    config.repositories["widgets"]["url"] = "https://gitlab.com/acme/widgets.git"
    report = Orchestrator(config, compiler=SphinxCompiler(runner=fake_sphinx)).build()

    assert [result.name for result in report.failed] == ["widgets"]
    assert not (config.output_dir / "widgets").exists()
    assert (config.output_dir / "gadgets" / "index.html").exists()


def test_skipped_repository_drops_previous_output(site_builder: SiteBuilder, fake_sphinx: FakeSphinx) -> None:
    site_builder.write_repo("widgets", WIDGETS_DOCS)
    config = _config(site_builder, docs_repos={"widgets": {}})
    Orchestrator(config, compiler=SphinxCompiler(runner=fake_sphinx)).build()
    assert (config.output_dir / "widgets" / "index.html").exists()

    for source in sorted((config.remotes_dir / "widgets" / "source").rglob("*.rst")):
        source.unlink()
    report = Orchestrator(config, compiler=SphinxCompiler(runner=fake_sphinx)).build()

    assert report.results[0].skipped is True
    assert not (config.output_dir / "widgets").exists()


def test_skip_search_index_removes_previous_shards(site_builder: SiteBuilder, fake_sphinx: FakeSphinx) -> None:
    site_builder.write_repo("widgets", WIDGETS_DOCS)
    first = Orchestrator(_config(site_builder), compiler=SphinxCompiler(runner=fake_sphinx)).build()
    assert first.index_paths[0].exists()

    config = _config(site_builder, skip_search_index=True)
    report = Orchestrator(config, compiler=SphinxCompiler(runner=fake_sphinx)).build()

    assert report.index_paths == []
    assert list((config.output_dir / "search" / "docs").glob("index.*.json")) == []
