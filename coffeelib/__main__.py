"""
Command line entry point.

    python -m coffeelib import ROOT [ROOT ...] [--strategy copy|reference] [--library DIR]
    python -m coffeelib serve [--host HOST] [--port PORT] [--library DIR]
"""
from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from aiohttp import web

from .config import HTTP_HOST, HTTP_PORT
from .deps import build_services, dispose_services
from .library import LibraryLocation
from .routes import create_app
from .shared import CoffeelibError, Strategy, get_logger

logger = get_logger(__name__)


def _library_from_args(args: argparse.Namespace) -> LibraryLocation:
    if args.library:
        return LibraryLocation(Path(args.library).expanduser().resolve())
    return LibraryLocation.default()


async def _run_import(args: argparse.Namespace) -> int:
    built = await build_services(_library_from_args(args))
    if not built.ok:
        print(f"error: {built.error}", file=sys.stderr)
        return 3
    services = built.data
    try:
        result = await services["importer"].import_roots(args.roots, args.strategy)
    except CoffeelibError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 4
    finally:
        await dispose_services(services)
    print(json.dumps(result.to_dict()))
    return 0


async def _build_app(args: argparse.Namespace) -> web.Application:
    built = await build_services(_library_from_args(args))
    return create_app(built.unwrap())


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="coffeelib", description="Import media folders into a coffeelib catalog.")
    sub = p.add_subparsers(dest="command", required=True)

    imp = sub.add_parser("import", help="Import directories and files into the catalog")
    imp.add_argument("roots", nargs="+", help="Directories or files to import")
    imp.add_argument(
        "--strategy",
        type=Strategy.parse,
        default=Strategy.COPY,
        help="copy (into the library) or reference (leave in place)",
    )

    serve = sub.add_parser("serve", help="Serve the catalog HTTP API")
    serve.add_argument("--host", type=str, default=HTTP_HOST)
    serve.add_argument("--port", type=int, default=HTTP_PORT)

    for parser in (imp, serve):
        parser.add_argument("--library", type=str, default="", help="Library directory (default: COFFEELIB_LIBRARY_ROOT)")

    args = p.parse_args(argv)

    if args.command == "import":
        return asyncio.run(_run_import(args))

    logger.info("Serving on http://%s:%s", args.host, args.port)
    web.run_app(_build_app(args), host=args.host, port=args.port, print=None)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
