"""Main entry point for the Fetscr server and account CLI."""

import argparse
import asyncio
import json
import os
import sys
from typing import Any

from pydantic import BaseModel

from .config import get_settings
from .engine import SearchEngine
from .providers.google_cse import GoogleCSEFetcher
from .quota import resolve_plan
from .server import SearchServer
from .storage.sql import SQLAccountStore
from .utils.errors import FetscrError
from .utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(description="Fetscr quota-enforced web search")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the MCP and HTTP server")
    serve.add_argument(
        "--transport",
        choices=["streamable-http", "sse", "stdio"],
        help="Transport protocol",
    )
    serve.add_argument("--host", help="Host address to bind server (for HTTP transport)")
    serve.add_argument(
        "--port", type=int, help="Port to bind server (for HTTP transport)"
    )

    search = subparsers.add_parser("search", help="Run a search for an account")
    search.add_argument("account_id")
    search.add_argument("query", nargs="?", default="")
    search.add_argument(
        "--keywords", default="", help="Extra terms; commas search each separately"
    )

    plan = subparsers.add_parser("plan", help="Show an account's plan and usage")
    plan.add_argument("account_id")

    set_plan = subparsers.add_parser(
        "set-plan", help="Move an account to a plan and reset its usage"
    )
    set_plan.add_argument("account_id")
    set_plan.add_argument("plan")
    set_plan.add_argument(
        "--queries", type=int, default=0, help="Enterprise query allowance"
    )
    set_plan.add_argument(
        "--results-per-query", type=int, default=0, help="Enterprise results per query"
    )

    history = subparsers.add_parser("history", help="List an account's past searches")
    history.add_argument("account_id")

    create = subparsers.add_parser("create-account", help="Create an account")
    create.add_argument("--account-id", help="Account id (generated if omitted)")
    create.add_argument("--plan", default="free", help="Initial plan")
    create.add_argument("--queries", type=int, default=0)
    create.add_argument("--results-per-query", type=int, default=0)

    subparsers.add_parser("init-db", help="Create the account store tables")

    return parser.parse_args(argv)


def _dump(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", exclude_none=True)
    if isinstance(value, list):
        return [_dump(v) for v in value]
    return value


async def run_command(args: argparse.Namespace) -> Any:
    """Run one account or search command against the configured store."""
    settings = get_settings()
    fetcher = GoogleCSEFetcher(settings.google) if args.command == "search" else None
    store = SQLAccountStore(settings.database)
    engine = SearchEngine(store, fetcher, settings)

    try:
        await store.initialize()

        if args.command == "init-db":
            return {"success": True, "database": store.engine.url.render_as_string()}
        if args.command == "search":
            return await engine.search(args.account_id, args.query, args.keywords)
        if args.command == "plan":
            return await engine.get_plan(args.account_id)
        if args.command == "set-plan":
            return await engine.change_plan(
                args.account_id, args.plan, args.queries, args.results_per_query
            )
        if args.command == "history":
            return await engine.search_history(args.account_id)
        if args.command == "create-account":
            limits = resolve_plan(args.plan, args.queries, args.results_per_query)
            account = await store.create_account(args.account_id, args.plan, limits)
            logger.info(f"Created account {account.id} on plan {account.plan_type}")
            return account
        raise ValueError(f"Unknown command: {args.command}")
    finally:
        await engine.close()


def main(argv: list[str] | None = None) -> int:
    """Run the server or a single CLI command."""
    args = parse_args(argv)

    # Command-line overrides flow through the environment into settings
    if args.log_level:
        os.environ["LOG_LEVEL"] = args.log_level
    if args.command == "serve":
        if args.transport:
            os.environ["TRANSPORT"] = args.transport
        if args.host:
            os.environ["HOST"] = args.host
        if args.port:
            os.environ["PORT"] = str(args.port)
    get_settings.cache_clear()

    settings = get_settings()

    if args.command == "serve":
        # The stdio transport owns stdout
        stream = sys.stderr if settings.transport == "stdio" else sys.stdout
        configure_logging(settings.log_level, stream=stream)
        server = SearchServer(settings=settings)
        server.run(transport=settings.transport, host=settings.host, port=settings.port)
        return 0

    # stdout carries the command result
    configure_logging(settings.log_level, stream=sys.stderr)
    try:
        result = asyncio.run(run_command(args))
    except FetscrError as e:
        print(json.dumps(e.to_dict(), indent=2), file=sys.stderr)
        return 1

    print(json.dumps(_dump(result), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
