"""CLI entrypoints for repodocs commands."""

from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from pathlib import Path

from .config import ConfigError, load_config
from .errors import RepositoryError
from .logging import configure_logging
from .orchestrator import Orchestrator
from .search.indexer import SEARCH_INDEX_DIR
from .search.store import load_shards


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_config_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-c",
        "--config",
        default=".",
        help="Path to repodocs.yml or the directory holding it (defaults to current directory).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="repodocs",
        description="Aggregate documentation from several repositories into one searchable site.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    build_parser = subparsers.add_parser(
        "build",
        help="Collect, compile and publish documentation for every configured repository.",
    )
    _add_verbose_option(build_parser, suppress_default=True)
    _add_config_option(build_parser)
    build_parser.add_argument(
        "--skip-search-index",
        action="store_true",
        help="Do not generate the search index.",
    )
    build_parser.add_argument(
        "--shards",
        type=int,
        default=None,
        help="Number of search index shards (overrides search_index_shards).",
    )
    build_parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Repositories to process in parallel (overrides max_workers).",
    )
    build_parser.add_argument(
        "--fail-fast",
        action="store_true",
        help="Abort the build on the first repository failure.",
    )
    build_parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write logs to this file.",
    )

    search_parser = subparsers.add_parser(
        "search",
        help="Query a previously built search index.",
    )
    _add_verbose_option(search_parser, suppress_default=True)
    _add_config_option(search_parser)
    search_parser.add_argument("query", help="lunr query string.")
    search_parser.add_argument(
        "--limit",
        type=int,
        default=10,
        help="Maximum number of results to print.",
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for repodocs commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(args.verbose), log_file=getattr(args, "log_file", None)
    )

    try:
        config = load_config(Path(args.config))
    except ConfigError as exc:
        parser.exit(1, f"Invalid configuration: {exc}\n")

    if args.command == "build":
        overrides: dict[str, object] = {}
        if args.skip_search_index:
            overrides["skip_search_index"] = True
        if args.shards is not None:
            overrides["search_index_shards"] = args.shards
        if args.workers is not None:
            overrides["max_workers"] = args.workers
        if args.fail_fast:
            overrides["fail_fast"] = True
        config = replace(config, **overrides)

        try:
            report = Orchestrator(config).build()
        except ConfigError as exc:
            parser.exit(1, f"Invalid configuration: {exc}\n")
        except RepositoryError as exc:
            parser.exit(1, f"repodocs build failed: {exc}\n")
        except Exception as exc:  # pragma: no cover - defensive guard
            parser.exit(1, f"repodocs build failed: {exc}\nRun with --verbose for more details.\n")

        published = sum(len(result.pages) for result in report.results)
        print(
            f"Published {published} pages from {len(report.results) - len(report.failed)} "
            f"repositories; {report.indexed_pages} indexed in {len(report.index_paths)} shard(s)"
        )
        if report.failed:
            names = ", ".join(result.name for result in report.failed)
            parser.exit(1, f"Failed repositories: {names}\n")
    elif args.command == "search":
        shards = load_shards(config.output_dir / SEARCH_INDEX_DIR)
        if not shards:
            parser.exit(1, "No search index found. Run `repodocs build` first.\n")
        hits = [hit for shard in shards for hit in shard.search(args.query)]
        hits.sort(key=lambda hit: hit["score"], reverse=True)
        for hit in hits[: args.limit]:
            print(f"{hit['score']:.3f}  {hit['title']}  {hit['url']}")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


if __name__ == "__main__":
    main(sys.argv[1:])
