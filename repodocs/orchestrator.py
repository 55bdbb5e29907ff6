"""Build orchestration: per-repository pipelines and the global search index."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from .collector import SourceCollector
from .compiler import SphinxCompiler, load_fragments
from .config import SiteConfig, resolve_descriptor, validate_config
from .errors import RepositoryError
from .logging import RepositoryLogAdapter, get_logger, repository_logger
from .models import RepositoryDescriptor, RepositoryResult
from .pages.assembler import PageTreeAssembler
from .render.publisher import PagePublisher
from .search.indexer import IndexAccumulator, SearchIndexBuilder, remove_shards


@dataclass
class BuildReport:
    """Summary of a site build across all configured repositories."""

    results: List[RepositoryResult] = field(default_factory=list)
    unregistered: List[str] = field(default_factory=list)
    index_paths: List[Path] = field(default_factory=list)
    indexed_pages: int = 0

    @property
    def failed(self) -> List[RepositoryResult]:
        return [result for result in self.results if result.failed]

    @property
    def succeeded(self) -> bool:
        return not self.failed


class Orchestrator:
    """Runs collect -> compile -> assemble -> publish for each repository."""

    def __init__(
        self,
        config: SiteConfig,
        *,
        collector: SourceCollector | None = None,
        compiler: SphinxCompiler | None = None,
        publisher: PagePublisher | None = None,
        index_builder: SearchIndexBuilder | None = None,
    ) -> None:
        self.config = config
        self.collector = collector or SourceCollector()
        self.compiler = compiler or SphinxCompiler(timeout=config.compiler_timeout)
        self.publisher = publisher or PagePublisher(config.templates_dir)
        self.index_builder = index_builder or SearchIndexBuilder(config.search_index_shards)
        self.logger = get_logger("orchestrator")

    def build(self) -> BuildReport:
        """Build every configured repository, then the search index."""
        validate_config(self.config)
        descriptors, unregistered = self._resolve_descriptors()
        report = BuildReport(unregistered=unregistered)

        self.logger.info("Scraping documentation pages from %d repositories", len(descriptors))
        if self.config.max_workers > 1 and len(descriptors) > 1:
            with ThreadPoolExecutor(
                max_workers=self.config.max_workers, thread_name_prefix="repodocs"
            ) as executor:
                report.results = list(executor.map(self.process_repository, descriptors))
        else:
            report.results = [self.process_repository(descriptor) for descriptor in descriptors]

        # Merge strictly in configured order so ids and URLs are stable between builds.
        accumulator = IndexAccumulator()
        for result in report.results:
            if not result.failed:
                accumulator.extend(result.pages)
        report.indexed_pages = len(accumulator)

        if self.config.skip_search_index:
            self.logger.info("Search index generation disabled")
            remove_shards(self.config.output_dir)
        else:
            report.index_paths = self.index_builder.build(
                accumulator.pages, self.config.output_dir
            )

        for result in report.failed:
            self.logger.error("Repository %s failed: %s", result.name, result.error)
        return report

    def process_repository(self, descriptor: RepositoryDescriptor) -> RepositoryResult:
        """Run the pipeline for one repository, capturing repository-scoped failures.

        Filesystem errors while staging, compiling or publishing are treated
        like any other repository failure. A failed repository keeps no
        published pages from earlier builds.
        """
        log = repository_logger("orchestrator", descriptor.name)
        try:
            return self._process(descriptor, log)
        except (RepositoryError, OSError) as exc:
            if self.config.fail_fast:
                raise
            log.error("Skipping repository: %s", exc)
            self._discard_output(descriptor, log)
            return RepositoryResult(name=descriptor.name, error=_describe(descriptor, exc))

    # ------------------------------------------------------------------
    # Pipeline helpers

    def _process(self, descriptor: RepositoryDescriptor, log: RepositoryLogAdapter) -> RepositoryResult:
        staging_root = self.config.staging_dir / "repos" / descriptor.name
        build_root = self.config.staging_dir / "_build" / descriptor.name

        staged = self.collector.collect(descriptor.sources_path, staging_root)
        if not staged:
            log.warning("No documentation sources found under %s", descriptor.sources_path)
            self.publisher.clear(descriptor.name, self.config.output_dir)
            return RepositoryResult(name=descriptor.name, skipped=True)

        log.info("Compiling %d sources", len(staged))
        fragment_paths = self.compiler.compile(
            descriptor.path, staging_root, build_root, repo_name=descriptor.name
        )
        fragments = load_fragments(build_root, fragment_paths, repo_name=descriptor.name)

        pages = PageTreeAssembler(descriptor).assemble(fragments, staged, staging_root)
        self.publisher.publish(descriptor.name, pages, self.config.output_dir)
        log.info("Published %d pages", len(pages))
        return RepositoryResult(name=descriptor.name, pages=pages)

    def _discard_output(self, descriptor: RepositoryDescriptor, log: RepositoryLogAdapter) -> None:
        try:
            self.publisher.clear(descriptor.name, self.config.output_dir)
        except OSError as exc:
            log.warning("Could not remove previous output: %s", exc)

    def _resolve_descriptors(self) -> Tuple[List[RepositoryDescriptor], List[str]]:
        descriptors: List[RepositoryDescriptor] = []
        unregistered: List[str] = []
        for options in self.config.docs_repos:
            descriptor: Optional[RepositoryDescriptor] = resolve_descriptor(self.config, options)
            if descriptor is None:
                self.logger.warning("Repository %s is not in the remote registry; skipping", options.name)
                unregistered.append(options.name)
                continue
            descriptors.append(descriptor)
        return descriptors, unregistered


def _describe(descriptor: RepositoryDescriptor, exc: Exception) -> str:
    if isinstance(exc, RepositoryError):
        return str(exc)
    return f"[{descriptor.name}] {exc}"


__all__ = ["BuildReport", "Orchestrator"]
