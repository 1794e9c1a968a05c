"""Minimal sanity checks for the Metaplex MCP tools against live endpoints."""

from __future__ import annotations

import asyncio
import os
import sys

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from metaplex_mcp.github_api import default_client as github_client  # noqa: E402
from metaplex_mcp.solana_api import default_client as solana_client  # noqa: E402
from metaplex_mcp.tools import (  # noqa: E402
    analyze_recipe,
    calculate_fees,
    check_conversion_status,
    get_repo,
    search_code,
    validate_address,
)

# Collection with a hybrid recipe on the configured cluster; override via env.
SAMPLE_COLLECTION = os.getenv("MPL_SAMPLE_COLLECTION")
SAMPLE_ASSET = os.getenv("MPL_SAMPLE_ASSET")
# Opt-in to GitHub calls (unauthenticated search is heavily rate limited).
RUN_GITHUB = os.getenv("RUN_GITHUB_SANITY", "false").lower() in {"1", "true", "yes"}


async def main() -> None:
    print("Validate address:", validate_address("MPL4o4wMzndgh8T1NVDxELQCj5UQfYTYEkabX3wNKtb"))

    if SAMPLE_COLLECTION:
        print("Recipe:", await analyze_recipe(SAMPLE_COLLECTION))
    if SAMPLE_ASSET:
        print("Conversion status:", await check_conversion_status(SAMPLE_ASSET))

    print("Capture fees (1000):", await calculate_fees("capture", 1000))
    print("Release fees (1000):", await calculate_fees("release", 1000))

    if RUN_GITHUB:
        print("Repo:", await get_repo())
        print("Code search (limit 3):", await search_code("RecipeV1", "mpl-hybrid", limit=3))

    await solana_client.aclose()
    await github_client.aclose()


if __name__ == "__main__":
    asyncio.run(main())
