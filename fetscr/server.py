"""FastMCP server exposing the search engine as MCP tools and HTTP routes.

Example:
    >>> server = SearchServer()
    >>> server.run(transport="streamable-http", host="0.0.0.0", port=8000)

Account ids arrive already authenticated; token verification happens in
front of this server.
"""

import asyncio
import json
from typing import Any

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from starlette.requests import Request
from starlette.responses import JSONResponse

from .config import AppSettings, get_settings
from .engine import SearchEngine
from .models.account import UsageRecord
from .models.search import HealthResponse, PlanSummary, SearchResponse
from .providers.google_cse import GoogleCSEFetcher
from .storage.sql import SQLAccountStore
from .utils.errors import FetscrError, InvalidRequestError, http_error_response
from .utils.logging import get_logger

logger = get_logger(__name__)


class SearchServer:
    """FastMCP server wiring the search engine to tools and HTTP routes.

    Attributes:
        settings: Server configuration settings
        engine: The search engine every surface delegates to
        mcp: FastMCP server instance
    """

    def __init__(
        self,
        engine: SearchEngine | None = None,
        settings: AppSettings | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.engine = engine or self._build_engine()

        self.mcp = FastMCP(
            name=self.settings.app_name,
            instructions="""
            Quota-enforced web search. Each call to the search tool consumes one
            query from the account's plan; comma-separated keywords are searched
            separately and returned per keyword.
            """,
        )

        self._register_tools()
        self._register_custom_routes()

    def _build_engine(self) -> SearchEngine:
        store = SQLAccountStore(self.settings.database)
        fetcher = GoogleCSEFetcher(self.settings.google)
        return SearchEngine(store, fetcher, self.settings)

    def _register_tools(self):
        """Register engine operations as FastMCP tools."""

        @self.mcp.tool(
            name="search",
            description=(
                "Search the web for an account. Comma-separated keywords are "
                "searched separately and returned per keyword."
            ),
        )
        async def search(
            account_id: str, query: str = "", keywords: str = ""
        ) -> SearchResponse:
            return await self._call_tool(self.engine.search, account_id, query, keywords)

        @self.mcp.tool(
            name="get_plan",
            description="Show an account's plan, usage and remaining queries",
        )
        async def get_plan(account_id: str) -> PlanSummary:
            return await self._call_tool(self.engine.get_plan, account_id)

        @self.mcp.tool(
            name="change_plan",
            description=(
                "Move an account to a plan (free, sub1-sub4, enterprise) and reset "
                "its usage. Enterprise takes custom query and result counts."
            ),
        )
        async def change_plan(
            account_id: str,
            plan: str,
            queries: int = 0,
            results_per_query: int = 0,
        ) -> PlanSummary:
            return await self._call_tool(
                self.engine.change_plan, account_id, plan, queries, results_per_query
            )

        @self.mcp.tool(
            name="search_history",
            description="List an account's past searches, most recent first",
        )
        async def search_history(account_id: str) -> list[UsageRecord]:
            return await self._call_tool(self.engine.search_history, account_id)

    async def _call_tool(self, operation, *args: Any) -> Any:
        try:
            return await operation(*args)
        except FetscrError as e:
            logger.info(f"Tool call rejected: {e.__class__.__name__}: {e.message}")
            raise ToolError(f"{e.__class__.__name__}: {e.message}") from e

    def _register_custom_routes(self):
        """Register HTTP routes on the FastMCP app."""
        self.mcp.custom_route("/search", methods=["POST"])(self.handle_search)
        self.mcp.custom_route("/accounts/{account_id}/plan", methods=["GET"])(
            self.handle_get_plan
        )
        self.mcp.custom_route("/accounts/{account_id}/plan", methods=["PUT"])(
            self.handle_change_plan
        )
        self.mcp.custom_route("/accounts/{account_id}/history", methods=["GET"])(
            self.handle_history
        )
        self.mcp.custom_route("/health", methods=["GET"])(self.handle_health)

    async def handle_search(self, request: Request) -> JSONResponse:
        """Run a search. Body: ``{"account_id", "query", "keywords"}``."""
        try:
            data = await self._read_json(request)
            account_id = str(data.get("account_id") or "").strip()
            if not account_id:
                raise InvalidRequestError("Missing account_id", field="account_id")
            for field in ("query", "keywords"):
                if not isinstance(data.get(field) or "", str):
                    raise InvalidRequestError(f"{field} must be a string", field=field)
            response = await self.engine.search(
                account_id, data.get("query") or "", data.get("keywords") or ""
            )
            return JSONResponse(
                content=response.model_dump(mode="json", exclude_none=True)
            )
        except Exception as e:
            return self._error_response(e, "search")

    async def handle_get_plan(self, request: Request) -> JSONResponse:
        try:
            plan = await self.engine.get_plan(request.path_params["account_id"])
            return JSONResponse(
                content={"success": True, "plan": plan.model_dump(mode="json")}
            )
        except Exception as e:
            return self._error_response(e, "get_plan")

    async def handle_change_plan(self, request: Request) -> JSONResponse:
        """Body: ``{"plan", "queries", "results_per_query"}``."""
        try:
            data = await self._read_json(request)
            try:
                queries = int(data.get("queries") or 0)
                results_per_query = int(data.get("results_per_query") or 0)
            except (TypeError, ValueError) as e:
                raise InvalidRequestError(
                    "queries and results_per_query must be integers",
                    original_error=e,
                ) from e
            plan = await self.engine.change_plan(
                request.path_params["account_id"],
                str(data.get("plan") or ""),
                queries,
                results_per_query,
            )
            return JSONResponse(
                content={"success": True, "plan": plan.model_dump(mode="json")}
            )
        except Exception as e:
            return self._error_response(e, "change_plan")

    async def handle_history(self, request: Request) -> JSONResponse:
        try:
            records = await self.engine.search_history(
                request.path_params["account_id"]
            )
            return JSONResponse(
                content={
                    "success": True,
                    "history": [r.model_dump(mode="json") for r in records],
                }
            )
        except Exception as e:
            return self._error_response(e, "history")

    async def handle_health(self, request: Request) -> JSONResponse:
        metrics = self.engine.metrics.get_metrics()
        fetcher = self.engine.fetcher
        configured = fetcher is not None and fetcher.is_configured()
        status = "healthy" if configured else "unhealthy"
        if configured and metrics.pages_degraded:
            status = "degraded"
        response = HealthResponse(
            status=status, upstream_configured=configured, metrics=metrics
        )
        return JSONResponse(
            content=response.model_dump(mode="json"),
            status_code=200 if configured else 503,
        )

    @staticmethod
    async def _read_json(request: Request) -> dict[str, Any]:
        try:
            data = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise InvalidRequestError("Request body must be JSON", original_error=e) from e
        if not isinstance(data, dict):
            raise InvalidRequestError("Request body must be a JSON object")
        return data

    @staticmethod
    def _error_response(error: Exception, route: str) -> JSONResponse:
        if isinstance(error, FetscrError):
            return JSONResponse(
                content=http_error_response(error), status_code=error.status_code
            )
        logger.exception(f"Unhandled error in {route}: {error}")
        return JSONResponse(content=http_error_response(error), status_code=500)

    async def start(
        self,
        transport: str = "streamable-http",
        host: str = "0.0.0.0",
        port: int = 8000,
    ):
        """Prepare the account store and serve on the chosen transport."""
        await self.engine.store.initialize()

        logger.info(f"Starting {self.settings.app_name} with transport {transport}")
        if transport == "stdio":
            await self.mcp.run_stdio_async()
        else:
            logger.info(f"Listening on {host}:{port}")
            await self.mcp.run_http_async(transport=transport, host=host, port=port)

    def run(
        self,
        transport: str = "streamable-http",
        host: str = "0.0.0.0",
        port: int = 8000,
    ):
        """Run the server synchronously."""
        asyncio.run(self._run(transport, host, port))

    async def _run(self, transport: str, host: str, port: int):
        try:
            await self.start(transport=transport, host=host, port=port)
        finally:
            await self.close()

    async def close(self):
        """Close the upstream client and the account store."""
        logger.info("Closing search engine resources...")
        await self.engine.close()
