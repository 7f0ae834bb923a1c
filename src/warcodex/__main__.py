"""Entry point: python -m warcodex [serve | purge-collection NAME]

- "serve":            run the HTTP API with uvicorn
- "purge-collection": delete every document of one collection in batches
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from collections.abc import Sequence

import uvicorn

from warcodex.config import get_settings
from warcodex.factory import create_entity_service

logger = logging.getLogger(__name__)


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _serve(args: argparse.Namespace) -> int:
    uvicorn.run(
        "warcodex.api.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        factory=False,
    )
    return 0


async def _purge(name: str, batch_size: int) -> int:
    entities = create_entity_service(get_settings())
    return await entities.delete_collection(name, batch_size=batch_size)


def _purge_collection(args: argparse.Namespace) -> int:
    if not args.yes:
        answer = input(f"Delete every document in '{args.name}'? [y/N] ")
        if answer.strip().lower() not in {"y", "yes"}:
            print("aborted")
            return 1
    deleted = asyncio.run(_purge(args.name, args.batch_size))
    print(f"deleted {deleted} document(s) from {args.name}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(prog="warcodex", description="warcodex content service")
    commands = parser.add_subparsers(dest="command", required=True)

    serve = commands.add_parser("serve", help="Run the HTTP API server")
    serve.add_argument("--host", default="127.0.0.1", help="Host interface to bind")
    serve.add_argument("--port", type=int, default=8000, help="TCP port to listen on")
    serve.add_argument("--reload", action="store_true", help="Enable autoreload (dev mode)")
    serve.set_defaults(handler=_serve)

    purge = commands.add_parser(
        "purge-collection", help="Delete every document of a collection"
    )
    purge.add_argument("name", help="Collection name, e.g. cos-profiles")
    purge.add_argument(
        "--batch-size",
        type=int,
        default=settings.delete_batch_size,
        help="Documents deleted per atomic batch",
    )
    purge.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")
    purge.set_defaults(handler=_purge_collection)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    _setup_logging(get_settings().log_level)
    if getattr(args, "batch_size", 1) < 1:
        logger.error("--batch-size must be at least 1")
        return 2
    return args.handler(args)


if __name__ == "__main__":
    raise SystemExit(main())
