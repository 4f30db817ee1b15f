#!/usr/bin/env python3
"""
Maintenance script for the rect.one directory data.

This script can:
1. Seed the database from the fallback JSON files
2. Sync the database back into the fallback JSON files
3. Run a listing query against whichever backend is configured
"""

import argparse
import asyncio
import sys

from rectone.config import DataSourceConfig
from rectone.database import init_db
from rectone.errors import DirectoryError
from rectone.logging_config import setup_logging
from rectone.models import ToolFilters
from rectone.selector import EnginePool, select_engine
from rectone.service import ToolDirectory
from rectone.store.loader import load_dataset, write_dataset
from rectone.store.remote import RemoteQueryAdapter


def banner(title: str):
    print(f"\n{'='*50}")
    print(title)
    print("=" * 50)


def require_database(config: DataSourceConfig) -> RemoteQueryAdapter:
    if not config.is_configured:
        raise SystemExit("RECTONE_DATABASE_URL is not set or invalid.")
    engine = EnginePool().get(config.database_url)
    return RemoteQueryAdapter(engine, timeout=config.remote_timeout)


async def seed(config: DataSourceConfig, data_dir: str):
    """Replace the database contents with the JSON dataset."""
    banner(f"Seeding database from {data_dir}")

    adapter = require_database(config)
    try:
        await init_db(adapter.engine)
        dataset = await load_dataset(data_dir)
        await adapter.mirror(dataset)
    finally:
        await adapter.engine.dispose()

    print(f"Seeded {len(dataset.tools)} tools, {len(dataset.categories)} categories, "
          f"{len(dataset.tags)} tags, {len(dataset.deals)} deals")


async def sync(config: DataSourceConfig, data_dir: str):
    """Write the database contents to the JSON dataset."""
    banner(f"Syncing database into {data_dir}")

    adapter = require_database(config)
    try:
        dataset = await adapter.snapshot()
    finally:
        await adapter.engine.dispose()

    written = await write_dataset(dataset, data_dir)
    for name, count in written.items():
        print(f"  {name}: {count} records")


async def search(config: DataSourceConfig, args: argparse.Namespace):
    """Run one listing query and print the page."""
    dataset = await load_dataset(config.fallback_data_dir)
    engine = select_engine(config, dataset)
    directory = ToolDirectory(engine, strict_filters=config.strict_filters)

    filters = ToolFilters(
        query=args.query,
        category=args.category,
        tags=args.tag or [],
        platforms=args.platform or [],
        sort=args.sort,
        page=args.page,
        limit=args.limit,
    )
    banner(f"Searching {directory.source} for: {args.query or '(all tools)'}")

    try:
        result = await directory.query(filters)
    finally:
        if isinstance(engine, RemoteQueryAdapter):
            await engine.engine.dispose()

    print(f"Found {result.total} tools (page {result.page}, {len(result.data)} shown)")
    for tool in result.data:
        rating = f"{tool.rating:.1f}" if tool.score else "N/A"
        print(f"\n- {tool.name} ({tool.slug})")
        print(f"  {tool.slogan}")
        print(f"  Rating: {rating}  Categories: {', '.join(tool.categories)}")
    if result.has_more:
        print(f"\nMore results on page {result.page + 1}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="rect.one directory data tools")
    sub = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (("seed", "JSON files -> database"), ("sync", "database -> JSON files")):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("--data-dir", default=None, help="Fallback data directory")

    cmd = sub.add_parser("search", help="Query tools")
    cmd.add_argument("query", nargs="?", default=None)
    cmd.add_argument("--category")
    cmd.add_argument("--tag", action="append")
    cmd.add_argument("--platform", action="append")
    cmd.add_argument("--sort", default="trending")
    cmd.add_argument("--page", type=int, default=1)
    cmd.add_argument("--limit", type=int, default=24)

    return parser


async def main(argv=None):
    """Main entry point."""
    args = build_parser().parse_args(argv)
    config = DataSourceConfig.from_env()
    setup_logging(debug=config.debug)

    try:
        if args.command == "seed":
            await seed(config, args.data_dir or config.fallback_data_dir)
        elif args.command == "sync":
            await sync(config, args.data_dir or config.fallback_data_dir)
        else:
            await search(config, args)
    except DirectoryError as e:
        print(f"{args.command} failed: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
