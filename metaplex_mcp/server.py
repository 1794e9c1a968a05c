"""FastAPI applications wiring the hybrid and GitHub MCP tools to HTTP routes."""

from __future__ import annotations

import json
import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Any, Awaitable, Callable, Dict, Optional

from fastapi import APIRouter, FastAPI, Query, Request
from fastapi.responses import JSONResponse, Response

from metaplex_mcp import mcp
from metaplex_mcp.config import MetaplexConfig, default_config
from metaplex_mcp.github_api import default_client as default_github_client
from metaplex_mcp.metrics import default_metrics
from metaplex_mcp.rate_limiter import PerKeyRateLimiter
from metaplex_mcp.solana_api import default_client as default_solana_client
from metaplex_mcp.tools import (
    analyze_recipe,
    calculate_fees,
    check_conversion_status,
    get_repo,
    search_code,
    validate_address,
    validate_escrow,
)

logger = logging.getLogger(__name__)

LOG_EXTRA_KEYS = ("tool", "request_id", "error")


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "level": record.levelname,
            "message": record.getMessage(),
            "name": record.name,
        }
        for key in LOG_EXTRA_KEYS:
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def configure_logging(config: MetaplexConfig = default_config) -> None:
    level = getattr(logging, config.log_level.upper(), logging.INFO)
    if config.log_format.lower() == "json":
        handler = logging.StreamHandler()
        handler.setFormatter(JsonFormatter())
        logging.basicConfig(level=level, handlers=[handler])
    else:
        logging.basicConfig(level=level)


configure_logging()
rate_limiter = PerKeyRateLimiter(
    rate_per_sec=default_config.rate_limit_qps,
    per_tool=default_config.per_tool_rate_limits,
)
HEALTH_STATUS = {"status": "ok"}
APP_VERSION = "0.1.0"
HYBRID_SERVER_NAME = "mpl-hybrid-mcp"
GITHUB_SERVER_NAME = "metaplex-github-mcp"
MCP_SERVER_VERSION = APP_VERSION


def _tool_outcome(result: Any) -> str:
    if not isinstance(result, dict):
        return "success"
    if result.get("error"):
        return "error"
    # Result records always carry issues; a bare isValid answer is a successful check.
    if "issues" in result and (result.get("isValid") is False or result["issues"]):
        return "invalid"
    return "success"


def _log_tool_result(tool_name: str, result: Dict[str, Any], request_id: Optional[str] = None) -> None:
    outcome = _tool_outcome(result)
    if outcome == "error":
        logger.warning(
            "tool=%s outcome=error error=%s request_id=%s",
            tool_name,
            result.get("error"),
            request_id,
            extra={"tool": tool_name, "request_id": request_id, "error": result.get("error")},
        )
    else:
        logger.info(
            "tool=%s outcome=%s request_id=%s",
            tool_name,
            outcome,
            request_id,
            extra={"tool": tool_name, "request_id": request_id},
        )
    default_metrics.record_tool(tool_name, outcome=outcome)


async def _enforce_rate_limit(tool_name: str) -> Optional[JSONResponse]:
    allowed = await rate_limiter.allow(tool_name)
    if not allowed:
        logger.warning("tool=%s outcome=rate_limited", tool_name)
        default_metrics.incr_rate_limited()
        # JSON-RPC style error envelope for MCP clients.
        return JSONResponse(
            status_code=429,
            content={"jsonrpc": "2.0", "error": {"code": 429, "message": "Rate limit exceeded"}},
        )
    return None


async def _proxy(request: Request, tool_name: str, invoke: Callable[[], Awaitable[Any]]) -> JSONResponse:
    limited = await _enforce_rate_limit(tool_name)
    if limited:
        return limited
    result = await invoke()
    request_id = getattr(request.state, "request_id", None)
    _log_tool_result(tool_name, result if isinstance(result, dict) else {}, request_id)
    return JSONResponse(content=result)


hybrid_router = APIRouter()


@hybrid_router.get("/tools/recipe/{collection}")
async def recipe_route(collection: str, request: Request) -> JSONResponse:
    """Proxy for analyze_recipe tool."""
    return await _proxy(request, "analyze_recipe", lambda: analyze_recipe(collection))


@hybrid_router.get("/tools/escrow/{collection}/{escrow}")
async def escrow_route(collection: str, escrow: str, request: Request) -> JSONResponse:
    """Proxy for validate_escrow tool."""
    return await _proxy(request, "validate_escrow", lambda: validate_escrow(collection, escrow))


@hybrid_router.get("/tools/conversion_status/{asset}")
async def conversion_status_route(asset: str, request: Request) -> JSONResponse:
    """Proxy for check_conversion_status tool."""
    return await _proxy(request, "check_conversion_status", lambda: check_conversion_status(asset))


@hybrid_router.get("/tools/fees")
async def fees_route(
    request: Request,
    operation: str = Query(...),
    amount: float = Query(...),
) -> JSONResponse:
    """Proxy for calculate_fees tool."""
    return await _proxy(request, "calculate_fees", lambda: calculate_fees(operation, amount))


@hybrid_router.get("/tools/validate_address/{address}")
async def validate_address_route(address: str, request: Request) -> JSONResponse:
    """Proxy for validate_address utility."""

    async def invoke() -> Dict[str, Any]:
        return validate_address(address)

    return await _proxy(request, "validate_address", invoke)


github_router = APIRouter()


@github_router.get("/tools/repo")
async def repo_route(request: Request, repo: str | None = Query(None)) -> JSONResponse:
    """Proxy for get_repo tool."""
    return await _proxy(request, "get_repo", lambda: get_repo(repo))


@github_router.get("/tools/search_code")
async def search_code_route(
    request: Request,
    query: str = Query(...),
    repo: str | None = Query(None),
    limit: int | None = Query(None, ge=1),
) -> JSONResponse:
    """Proxy for search_code tool."""
    return await _proxy(request, "search_code", lambda: search_code(query, repo, limit=limit))


def _jsonrpc_success_payload(rpc_id: Any, result: Any) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": rpc_id, "result": result}


def _jsonrpc_error_payload(rpc_id: Any, code: int, message: str) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": rpc_id, "error": {"code": code, "message": message}}


def _wrap_tool_result(result: Any) -> Dict[str, Any]:
    """
    Shape tool outputs into MCP-friendly content array.
    """
    # Tool-level errors are returned in-band with isError flag.
    if isinstance(result, dict) and "error" in result:
        message = result.get("error") or "Error"
        return {
            "content": [{"type": "text", "text": str(message)}],
            "isError": True,
            "structuredContent": result,
        }

    if isinstance(result, str):
        return {"content": [{"type": "text", "text": result}]}

    try:
        text_repr = json.dumps(result, ensure_ascii=True, indent=2)
    except (TypeError, ValueError):
        text_repr = str(result)
    return {
        "content": [{"type": "text", "text": text_repr}],
        "structuredContent": result,
    }


def _build_gateway(server_name: str, registry: Dict[str, mcp.ToolDefinition]):
    async def mcp_gateway(request: Request) -> Response:
        """
        Minimal JSON-RPC gateway for MCP clients.

        Supported methods:
          - initialize
          - list_tools / tools/list
          - call_tool / tools/call
          - notifications/initialized
        """
        request_id = getattr(request.state, "request_id", None)
        start_time = time.time()

        def _respond(
            payload: Dict[str, Any],
            status_code: int = 200,
            *,
            outcome: str,
            method_label: Optional[str] = None,
            tool_label: Optional[str] = None,
            error_code: Optional[int] = None,
        ) -> JSONResponse:
            duration_ms = (time.time() - start_time) * 1000
            logger.debug(
                "mcp server=%s outcome=%s method=%s tool=%s id=%s status=%s duration_ms=%.2f error_code=%s",
                server_name,
                outcome,
                method_label,
                tool_label,
                payload.get("id"),
                status_code,
                duration_ms,
                error_code,
                extra={"request_id": request_id, "tool": tool_label, "error": error_code},
            )
            return JSONResponse(status_code=status_code, content=payload)

        try:
            body = await request.json()
        except ValueError:
            payload = _jsonrpc_error_payload(None, -32700, "Parse error")
            return _respond(payload, status_code=400, outcome="error", error_code=-32700)

        if not isinstance(body, dict):
            payload = _jsonrpc_error_payload(None, -32600, "Invalid request")
            return _respond(payload, status_code=400, outcome="error", error_code=-32600)

        method = body.get("method")
        rpc_id = body.get("id")
        raw_params = body.get("params")
        if raw_params is None:
            params: Dict[str, Any] = {}
        elif isinstance(raw_params, dict):
            params = raw_params
        else:
            payload = _jsonrpc_error_payload(rpc_id, -32602, "Invalid params")
            return _respond(payload, outcome="error", method_label=method, error_code=-32602)

        if not method:
            payload = _jsonrpc_error_payload(rpc_id, -32600, "Invalid request")
            return _respond(payload, outcome="error", error_code=-32600)

        if method == "initialize":
            protocol_version = params.get("protocolVersion")
            if not isinstance(protocol_version, str) or not protocol_version:
                payload = _jsonrpc_error_payload(rpc_id, -32602, "Invalid params")
                return _respond(payload, outcome="error", method_label=method, error_code=-32602)
            result = {
                "protocolVersion": protocol_version,
                "serverInfo": {"name": server_name, "version": MCP_SERVER_VERSION},
                "capabilities": {"tools": {"listChanged": False}},
            }
            return _respond(_jsonrpc_success_payload(rpc_id, result), outcome="success", method_label=method)

        if method in ("list_tools", "tools/list"):
            limited = await _enforce_rate_limit("list_tools")
            if limited:
                return limited
            result = {"tools": mcp.list_tools(registry)}
            return _respond(_jsonrpc_success_payload(rpc_id, result), outcome="success", method_label=method)

        if method in ("call_tool", "tools/call"):
            tool_name = params.get("tool") or params.get("name")
            tool_params = params.get("params")
            if tool_params is None:
                tool_params = params.get("arguments") or {}
            if not isinstance(tool_name, str) or not tool_name.strip():
                payload = _jsonrpc_error_payload(rpc_id, -32602, "Invalid params")
                return _respond(payload, outcome="error", method_label=method, error_code=-32602)
            if not isinstance(tool_params, dict):
                payload = _jsonrpc_error_payload(rpc_id, -32602, "Invalid params")
                return _respond(payload, outcome="error", method_label=method, tool_label=tool_name, error_code=-32602)
            limited = await _enforce_rate_limit(tool_name)
            if limited:
                return limited
            result = await mcp.call_tool(registry, tool_name, tool_params)
            _log_tool_result(tool_name, result if isinstance(result, dict) else {}, request_id)
            return _respond(
                _jsonrpc_success_payload(rpc_id, _wrap_tool_result(result)),
                outcome="success",
                method_label=method,
                tool_label=tool_name,
            )

        if method in ("notifications/initialized", "initialized"):
            # Notifications get no JSON-RPC response body.
            return Response(status_code=204)

        payload = _jsonrpc_error_payload(rpc_id, -32601, "Method not found")
        return _respond(payload, outcome="error", method_label=method, error_code=-32601)

    return mcp_gateway


def create_app(
    *,
    title: str,
    server_name: str,
    registry: Dict[str, mcp.ToolDefinition],
    router: APIRouter,
    client: Any,
) -> FastAPI:
    """Build one MCP server; ``client`` is closed on shutdown."""

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        await client.aclose()

    application = FastAPI(
        title=title,
        description="Read-only Metaplex tool surface for LLM agents.",
        version=APP_VERSION,
        lifespan=lifespan,
    )

    @application.middleware("http")
    async def add_request_context(request: Request, call_next):
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        start = time.time()
        default_metrics.incr_request()
        response = await call_next(request)
        duration_ms = (time.time() - start) * 1000
        default_metrics.record_duration(request_id, duration_ms)
        response.headers["X-Request-ID"] = request_id
        return response

    @application.get("/health")
    async def health() -> JSONResponse:
        """Lightweight health endpoint for monitoring."""
        return JSONResponse(content={**HEALTH_STATUS, "server": server_name})

    @application.get("/metrics")
    async def metrics() -> JSONResponse:
        """Return in-process metrics snapshot."""
        return JSONResponse(content=default_metrics.snapshot())

    application.add_api_route("/mcp", _build_gateway(server_name, registry), methods=["POST"])
    application.include_router(router)
    return application


app = create_app(
    title="MPL-Hybrid MCP Server",
    server_name=HYBRID_SERVER_NAME,
    registry=mcp.HYBRID_TOOLS,
    router=hybrid_router,
    client=default_solana_client,
)

github_app = create_app(
    title="Metaplex GitHub MCP Server",
    server_name=GITHUB_SERVER_NAME,
    registry=mcp.GITHUB_TOOLS,
    router=github_router,
    client=default_github_client,
)

# Run with: uvicorn metaplex_mcp.server:app (or metaplex_mcp.server:github_app)
