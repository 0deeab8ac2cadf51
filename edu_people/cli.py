"""Command line entry for the edu-people directory."""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import List, Optional

import uvicorn

from edu_people.core.config import settings
from edu_people.core.database import database_manager

logger = logging.getLogger(__name__)


def run_server(host: str, port: int) -> None:
    uvicorn.run("edu_people.api.main:app", host=host, port=port, log_level=settings.LOG_LEVEL.lower())


async def create_table() -> bool:
    try:
        return await database_manager.ensure_table()
    finally:
        await database_manager.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="edu-people", description="edu-people directory service")
    subcommands = parser.add_subparsers(dest="command")

    serve = subcommands.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=settings.HOST)
    serve.add_argument("--port", type=int, default=settings.PORT)

    subcommands.add_parser("create-table", help=f"Create the {settings.PEOPLE_TABLE} table if it is missing")
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    args = build_parser().parse_args(argv)

    if args.command == "create-table":
        created = asyncio.run(create_table())
        logger.info("Table %s %s", settings.PEOPLE_TABLE, "created" if created else "already present")
        return

    host = getattr(args, "host", settings.HOST)
    port = getattr(args, "port", settings.PORT)
    run_server(host, port)


if __name__ == "__main__":
    main()
