"""Recipe configuration analysis."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

from metaplex_mcp.services.common import AccountSource, Number, as_number, check_bounds
from metaplex_mcp.solana_api import AccountSourceError, derive_address, parse_address
from metaplex_mcp.solana_api.layouts import RECIPE

logger = logging.getLogger(__name__)

RECIPE_SEED = b"recipe"


@dataclass(slots=True)
class RecipeAnalysis:
    collection: str
    name: str = ""
    uri: str = ""
    max: Number = 0
    min: Number = 0
    amount: Number = 0
    fee_amount_capture: Number = 0
    fee_amount_release: Number = 0
    sol_fee_amount_capture: Number = 0
    sol_fee_amount_release: Number = 0
    path: int = 0
    count: Number = 0
    issues: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.issues

    def to_dict(self) -> Dict[str, Any]:
        return {
            "collection": self.collection,
            "name": self.name,
            "uri": self.uri,
            "max": self.max,
            "min": self.min,
            "amount": self.amount,
            "feeAmountCapture": self.fee_amount_capture,
            "feeAmountRelease": self.fee_amount_release,
            "solFeeAmountCapture": self.sol_fee_amount_capture,
            "solFeeAmountRelease": self.sol_fee_amount_release,
            "path": self.path,
            "count": self.count,
            "isValid": self.is_valid,
            "issues": list(self.issues),
        }


class RecipeAnalyzer:
    """Locate a collection's recipe PDA and check its configuration."""

    def __init__(self, source: AccountSource, program_id: Any) -> None:
        self._source = source
        self._program_id = parse_address(program_id)

    def recipe_address(self, collection_address: Any) -> Any:
        collection = parse_address(collection_address)
        return derive_address([RECIPE_SEED, bytes(collection)], self._program_id)

    async def analyze(self, collection_address: str) -> RecipeAnalysis:
        """
        Fetch and validate the recipe for ``collection_address``.

        Raises:
            AddressError: if the collection address is malformed.
        """
        recipe_pda = self.recipe_address(collection_address)

        try:
            account = await self._source.fetch_account(RECIPE, recipe_pda)
            analysis = RecipeAnalysis(
                collection=collection_address,
                name=account["name"],
                uri=account["uri"],
                max=as_number(account["max"]),
                min=as_number(account["min"]),
                amount=as_number(account["amount"]),
                fee_amount_capture=as_number(account["fee_amount_capture"]),
                fee_amount_release=as_number(account["fee_amount_release"]),
                sol_fee_amount_capture=as_number(account["sol_fee_amount_capture"]),
                sol_fee_amount_release=as_number(account["sol_fee_amount_release"]),
                path=account["path"],
                count=as_number(account["count"]),
            )
        except AccountSourceError as exc:
            logger.warning("Recipe lookup failed for %s: %s", collection_address, exc)
            return RecipeAnalysis(collection=collection_address, issues=[f"Failed to analyze recipe: {exc}"])
        except Exception as exc:
            logger.exception("Unexpected error analyzing recipe for %s", collection_address)
            return RecipeAnalysis(collection=collection_address, issues=[f"Failed to analyze recipe: {exc}"])

        issues = check_bounds(analysis.max, analysis.min, analysis.amount)
        if analysis.fee_amount_capture < 0 or analysis.fee_amount_release < 0:
            issues.append("Fee amounts cannot be negative")
        if analysis.sol_fee_amount_capture < 0 or analysis.sol_fee_amount_release < 0:
            issues.append("SOL fee amounts cannot be negative")
        analysis.issues = issues
        return analysis
