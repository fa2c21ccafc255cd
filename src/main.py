# src/main.py - v2
"""CLI entry point: inspect and maintain the global tag cache.

Usage:
    notetags top [-n N]
    notetags filter <query> [-n N]
    notetags suggest <query> [-n N]
    notetags refresh
    notetags stats
    notetags clear
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from notetags.config.settings import ConfigurationError, Settings, load_settings
from notetags.logging.context import set_consumer_context
from notetags.logging.logger import setup_logging
from notetags.tags.models import TagCount
from notetags.tags.service import GlobalTagService
from notetags.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        settings = _load_settings(args)
    except (ConfigurationError, ValueError) as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    setup_logging(
        level="DEBUG" if args.verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )
    set_consumer_context("cli")

    try:
        return asyncio.run(_run(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="notetags",
        description=f"notetags v{__version__}: global @tag cache for your notes",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--root", type=Path, default=None,
        help="Notes folder to scan (default: NOTES_ROOT)",
    )
    parser.add_argument(
        "--backend", choices=["json", "sqlite", "redis", "memory"], default=None,
        help="Storage backend for the persisted cache (default: STORAGE_BACKEND)",
    )
    parser.add_argument(
        "--json", dest="as_json", action="store_true",
        help="Print machine-readable JSON",
    )

    subparsers = parser.add_subparsers(dest="command")

    p_top = subparsers.add_parser("top", help="Most used tags")
    p_top.add_argument("-n", "--limit", type=int, default=20)
    p_top.set_defaults(func=_cmd_top)

    for name, help_text, func in (
        ("filter", "Tags containing a query", _cmd_filter),
        ("suggest", "Autocomplete candidates for a prefix", _cmd_suggest),
    ):
        p = subparsers.add_parser(name, help=help_text)
        p.add_argument("query", help="Text to match, with or without leading @")
        p.add_argument("-n", "--limit", type=int, default=10)
        p.set_defaults(func=func)

    p_refresh = subparsers.add_parser("refresh", help="Rescan notes now")
    p_refresh.set_defaults(func=_cmd_refresh)

    p_stats = subparsers.add_parser("stats", help="Show cache tier statistics")
    p_stats.set_defaults(func=_cmd_stats)

    p_clear = subparsers.add_parser("clear", help="Drop all tiers and the persisted cache")
    p_clear.set_defaults(func=_cmd_clear)

    return parser


def _load_settings(args: argparse.Namespace) -> Settings:
    overrides: dict[str, object] = {}
    if args.root is not None:
        overrides["notes_root"] = args.root
    if args.backend is not None:
        overrides["storage_backend"] = args.backend
    return load_settings(**overrides)


async def _run(args: argparse.Namespace, settings: Settings) -> int:
    async with GlobalTagService.from_settings(settings) as service:
        return await args.func(service, args)


async def _cmd_top(service: GlobalTagService, args: argparse.Namespace) -> int:
    data = await service.get_global_tags()
    _print_tags(data.top_tags[: max(args.limit, 0)], args.as_json)
    return 0


async def _cmd_filter(service: GlobalTagService, args: argparse.Namespace) -> int:
    await service.get_global_tags()
    _print_tags(service.filter_tags(args.query, args.limit), args.as_json)
    return 0


async def _cmd_suggest(service: GlobalTagService, args: argparse.Namespace) -> int:
    await service.get_global_tags()
    _print_tags(service.suggest_tags(args.query, args.limit), args.as_json)
    return 0


async def _cmd_refresh(service: GlobalTagService, args: argparse.Namespace) -> int:
    data = await service.refresh_global_tags()
    print(
        f"Refreshed: {len(data.top_tags)} tags, "
        f"{len(data.tag_relations)} relations, "
        f"{len(data.document_tags)} notes"
    )
    return 0


async def _cmd_stats(service: GlobalTagService, args: argparse.Namespace) -> int:
    stats = service.get_cache_stats()
    if args.as_json:
        print(stats.model_dump_json(indent=2))
        return 0
    age = "-" if stats.primary_age_seconds is None else f"{stats.primary_age_seconds:.0f}s"
    print("\nTag cache:")
    print(f"  Primary:      {stats.primary_entries} ({stats.primary_bytes} bytes, age {age})")
    print(f"  Valid:        {stats.primary_valid}")
    print(f"  Filter:       {stats.filter_entries}")
    print(f"  Suggestion:   {stats.suggestion_entries}")
    return 0


async def _cmd_clear(service: GlobalTagService, args: argparse.Namespace) -> int:
    await service.clear_cache()
    print("Tag cache cleared")
    return 0


def _print_tags(tags: list[TagCount], as_json: bool) -> None:
    if as_json:
        print(json.dumps([t.model_dump(by_alias=True) for t in tags], ensure_ascii=False))
        return
    if not tags:
        print("No tags")
        return
    width = max(len(str(t.count)) for t in tags)
    for t in tags:
        print(f"{t.count:>{width}}  @{t.tag}")


if __name__ == "__main__":
    sys.exit(main())
