# src/main.py - v2
"""CLI entry point: generate and show commands.

Usage:
    docthumb generate [--graph graph.json] [options]
    docthumb show <node-id> [--graph graph.json]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from docthumb.version import __version__

if TYPE_CHECKING:
    from docthumb.config.settings import Settings

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    from docthumb.config.settings import ConfigurationError

    try:
        settings = _load_settings(args)
    except (ConfigurationError, ValueError) as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2

    _setup_logging(settings, args.verbose)

    try:
        return asyncio.run(args.func(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def cli() -> None:
    sys.exit(main())


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="docthumb",
        description=f"docthumb v{__version__}: document thumbnails for a content graph",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--graph", type=Path, default=None,
        help="Graph file (default: GRAPH_PATH or ./graph.json)",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- generate ---
    p_generate = subparsers.add_parser(
        "generate", help="Generate missing thumbnails for all source documents",
    )
    p_generate.add_argument(
        "--cache-backend", choices=["json", "sqlite", "redis"], default=None,
        help="Override CACHE_BACKEND",
    )
    p_generate.add_argument(
        "--concurrency", type=int, default=None,
        help="Override MAX_CONCURRENCY",
    )
    p_generate.add_argument(
        "--no-gc", action="store_true",
        help="Keep artifacts that were not referenced during this pass",
    )
    p_generate.set_defaults(func=_cmd_generate)

    # --- show ---
    p_show = subparsers.add_parser(
        "show", help="Resolve the thumbnail of one node",
    )
    p_show.add_argument("node_id", help="Source node id")
    p_show.set_defaults(func=_cmd_show)

    return parser


def _load_settings(args: argparse.Namespace) -> Settings:
    from docthumb.config.settings import load_settings

    overrides: dict[str, object] = {}
    if args.graph is not None:
        overrides["graph_path"] = args.graph
    if getattr(args, "cache_backend", None):
        overrides["cache_backend"] = args.cache_backend
    if getattr(args, "concurrency", None) is not None:
        overrides["max_concurrency"] = args.concurrency
    if getattr(args, "no_gc", False):
        overrides["artifact_gc_enabled"] = False
    return load_settings(**overrides)


async def _cmd_generate(args: argparse.Namespace, settings: Settings) -> int:
    """Run one build pass."""
    from docthumb.api.facade import generate_thumbnails

    report = await generate_thumbnails(settings)

    print("\nThumbnail pass complete:")
    print(f"  Documents:           {report.total_documents}")
    print(f"  Wrong type skipped:  {report.skipped_wrong_type}")
    print(f"  Cache hits:          {report.cache_hit}")
    print(f"  Recovered:           {report.recovered}")
    print(f"  Generated:           {report.generated}")
    print(f"  Source unavailable:  {report.source_unavailable}")
    print(f"  Generation failed:   {report.generation_failed}")
    if report.cache_write_failed:
        print(f"  Cache write failed:  {report.cache_write_failed}")
    if report.garbage_collected:
        print(f"  Garbage collected:   {report.garbage_collected}")
    print(f"  Duration:            {report.duration_seconds:.1f}s")
    return 0


async def _cmd_show(args: argparse.Namespace, settings: Settings) -> int:
    """Print the resolved thumbnail of one node."""
    from docthumb.api.facade import resolve_thumbnail

    artifact = await resolve_thumbnail(args.node_id, settings)
    if artifact is None:
        print(f"No thumbnail for {args.node_id}")
        return 1

    print(f"\nThumbnail for {args.node_id}:")
    print(f"  Artifact ID:  {artifact.id}")
    print(f"  Name:         {artifact.name}")
    print(f"  Path:         {artifact.absolute_path}")
    print(f"  Size:         {artifact.size_bytes} bytes")
    return 0


def _setup_logging(settings: Settings, verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from docthumb.logging.logger import setup_logging

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )


if __name__ == "__main__":
    sys.exit(main())
