"""MPL-Hybrid account tools: recipes, escrows, conversion status and fees."""

from __future__ import annotations

import logging
from typing import Any, Dict

from metaplex_mcp.config import MetaplexConfig, default_config
from metaplex_mcp.services import OPERATIONS, EscrowValidator, FeeCalculator, RecipeAnalyzer
from metaplex_mcp.solana_api import AddressError, default_client
from metaplex_mcp.tools.validators import is_valid_solana_address, parse_amount

logger = logging.getLogger(__name__)

INVALID_ADDRESS = {"error": "Invalid Solana address."}


async def analyze_recipe(
    collection: str,
    *,
    client=default_client,
    config: MetaplexConfig = default_config,
) -> Dict[str, Any]:
    """
    Analyze the recipe configured for a collection.

    Args:
        collection: Collection address; the recipe PDA is derived from it.
        client: Account source (override for testing).
        config: Configuration providing the hybrid program id.

    Returns:
        RecipeAnalysis payload, or an error dict for malformed input.
    """
    if not is_valid_solana_address(collection):
        return dict(INVALID_ADDRESS)
    try:
        analyzer = RecipeAnalyzer(client, config.program_id)
    except AddressError:
        logger.error("Configured hybrid program id is not a valid address: %r", config.program_id)
        return {"error": "Invalid hybrid program id configured."}
    try:
        analysis = await analyzer.analyze(collection.strip())
    except AddressError:
        return dict(INVALID_ADDRESS)
    return analysis.to_dict()


async def validate_escrow(
    collection: str,
    escrow: str,
    *,
    client=default_client,
) -> Dict[str, Any]:
    """Validate the escrow account at ``escrow`` for ``collection``."""
    if not is_valid_solana_address(collection) or not is_valid_solana_address(escrow):
        return dict(INVALID_ADDRESS)
    try:
        validation = await EscrowValidator(client).validate_escrow(collection.strip(), escrow.strip())
    except AddressError:
        return dict(INVALID_ADDRESS)
    return validation.to_dict()


async def check_conversion_status(
    asset: str,
    *,
    client=default_client,
) -> Dict[str, Any]:
    """Report whether an asset is locked in an escrow and who owns it."""
    if not is_valid_solana_address(asset):
        return dict(INVALID_ADDRESS)
    try:
        status = await EscrowValidator(client).check_conversion_status(asset.strip())
    except AddressError:
        return dict(INVALID_ADDRESS)
    return status.to_dict()


async def calculate_fees(
    operation: str,
    amount: Any,
    *,
    client=default_client,
) -> Dict[str, Any]:
    """Compute protocol and project fees for a capture or release of ``amount`` tokens."""
    if operation not in OPERATIONS:
        return {"error": "Invalid operation; expected capture or release."}
    parsed_amount = parse_amount(amount)
    if parsed_amount is None:
        return {"error": "Invalid amount."}
    calculation = await FeeCalculator(client).calculate_fees(operation, parsed_amount)
    return calculation.to_dict()


def validate_address(address: str) -> Dict[str, Any]:
    """Utility to validate address format without calling the RPC node."""
    return {"isValid": is_valid_solana_address(address)}
