"""
Lightweight JSON-RPC tool registry for the two MCP servers.

Each server gets its own registry mapping tool names to implementations and
their input schemas. Registries are stateless; callers must handle
authentication to the HTTP server hosting them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from metaplex_mcp.config import default_config
from metaplex_mcp.tools import (
    analyze_recipe,
    calculate_fees,
    check_conversion_status,
    get_repo,
    search_code,
    validate_address,
    validate_escrow,
)
from metaplex_mcp.tools.validators import ADDRESS_REGEX, MAX_QUERY_LENGTH, REPO_NAME_REGEX

logger = logging.getLogger(__name__)

ADDRESS_PATTERN = ADDRESS_REGEX.pattern
REPO_PATTERN = REPO_NAME_REGEX.pattern


def _address_schema(description: str) -> Dict[str, Any]:
    return {
        "type": "string",
        "description": description,
        "pattern": ADDRESS_PATTERN,
        "minLength": 32,
        "maxLength": 44,
    }


ToolCallable = Callable[..., Awaitable[Any]] | Callable[..., Any]


@dataclass(slots=True)
class ToolDefinition:
    name: str
    description: str
    input_schema: Dict[str, Any]
    callable: ToolCallable


def _registry(*tools: ToolDefinition) -> Dict[str, ToolDefinition]:
    return {tool.name: tool for tool in tools}


HYBRID_TOOLS: Dict[str, ToolDefinition] = _registry(
    ToolDefinition(
        name="analyze_recipe",
        description="Fetch the MPL-Hybrid recipe for a collection and check its configuration.",
        input_schema={
            "type": "object",
            "properties": {"collection": _address_schema("Collection address (base58)")},
            "required": ["collection"],
            "additionalProperties": False,
        },
        callable=analyze_recipe,
    ),
    ToolDefinition(
        name="validate_escrow",
        description="Fetch an MPL-Hybrid escrow account and check its configuration.",
        input_schema={
            "type": "object",
            "properties": {
                "collection": _address_schema("Collection address (base58)"),
                "escrow": _address_schema("Escrow account address (base58)"),
            },
            "required": ["collection", "escrow"],
            "additionalProperties": False,
        },
        callable=validate_escrow,
    ),
    ToolDefinition(
        name="check_conversion_status",
        description="Report whether an asset is locked in an escrow, with its current owner.",
        input_schema={
            "type": "object",
            "properties": {"asset": _address_schema("Asset address (base58)")},
            "required": ["asset"],
            "additionalProperties": False,
        },
        callable=check_conversion_status,
    ),
    ToolDefinition(
        name="calculate_fees",
        description="Compute protocol and project token/SOL fees for a capture or release.",
        input_schema={
            "type": "object",
            "properties": {
                "operation": {"type": "string", "enum": ["capture", "release"]},
                "amount": {"type": "number", "description": "Token amount being moved"},
            },
            "required": ["operation", "amount"],
            "additionalProperties": False,
        },
        callable=calculate_fees,
    ),
    ToolDefinition(
        name="validate_address",
        description="Validate Solana address format without calling the RPC node.",
        input_schema={
            "type": "object",
            "properties": {"address": {"type": "string", "description": "Solana address (base58)"}},
            "required": ["address"],
            "additionalProperties": False,
        },
        callable=validate_address,
    ),
)

GITHUB_TOOLS: Dict[str, ToolDefinition] = _registry(
    ToolDefinition(
        name="get_repo",
        description=f"Get details for a {default_config.github_org} repository.",
        input_schema={
            "type": "object",
            "properties": {
                "repo": {
                    "type": "string",
                    "description": f"Repository name (default {default_config.default_repo})",
                    "pattern": REPO_PATTERN,
                }
            },
            "required": [],
            "additionalProperties": False,
        },
        callable=get_repo,
    ),
    ToolDefinition(
        name="search_code",
        description=f"Search code in {default_config.github_org} repositories.",
        input_schema={
            "type": "object",
            "properties": {
                "query": {"type": "string", "minLength": 1, "maxLength": MAX_QUERY_LENGTH},
                "repo": {"type": "string", "pattern": REPO_PATTERN},
                "limit": {
                    "type": "integer",
                    "minimum": 1,
                    "maximum": default_config.max_code_results,
                },
            },
            "required": ["query"],
            "additionalProperties": False,
        },
        callable=search_code,
    ),
)


def list_tools(registry: Dict[str, ToolDefinition]) -> List[Dict[str, Any]]:
    """Return the MCP tool listing for ``registry``."""
    return [
        {
            "name": tool.name,
            "description": tool.description,
            "inputSchema": tool.input_schema,
        }
        for tool in registry.values()
    ]


async def call_tool(
    registry: Dict[str, ToolDefinition],
    tool_name: str,
    params: Optional[Dict[str, Any]] = None,
) -> Any:
    """Dispatch to a tool by name."""
    params = params or {}
    tool = registry.get(tool_name)
    if tool is None:
        return {"error": f"Unknown tool: {tool_name}"}

    # Only schema-declared arguments; keeps clients from overriding injected collaborators.
    allowed = tool.input_schema.get("properties", {})
    if any(key not in allowed for key in params):
        return {"error": "Invalid parameters."}

    # Match parameters by name; tools already handle validation and error shaping.
    try:
        result = tool.callable(**params)
        if isinstance(result, Awaitable):
            return await result  # type: ignore[return-value]
        return result
    except TypeError:
        return {"error": "Invalid parameters."}
    except Exception:
        logger.exception("Unexpected error calling tool %s", tool_name)
        return {"error": "Unexpected error while calling tool."}
