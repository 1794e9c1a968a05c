"""Protocol and project fee calculation for capture/release operations."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List

from metaplex_mcp.services.common import AccountSource, Number, as_number
from metaplex_mcp.solana_api import AccountSourceError
from metaplex_mcp.solana_api.layouts import ESCROW, RECIPE

logger = logging.getLogger(__name__)

CAPTURE = "capture"
RELEASE = "release"
OPERATIONS = (CAPTURE, RELEASE)

PROTOCOL_TOKEN_FEE_RATE = 0.001  # 0.1% of the transferred amount
PROTOCOL_SOL_FEE = 0.00001  # flat, per operation

# operation -> (config account kind, token rate field, SOL fee field)
# Recipes and escrows name their fee fields differently.
_FEE_SOURCES = {
    CAPTURE: (RECIPE, "fee_amount_capture", "sol_fee_amount_capture"),
    RELEASE: (ESCROW, "fee_amount", "sol_fee_amount"),
}


@dataclass(slots=True)
class FeeBreakdown:
    protocol: Number = 0
    project: Number = 0
    total: Number = 0

    @classmethod
    def of(cls, protocol: Number, project: Number) -> "FeeBreakdown":
        return cls(protocol=protocol, project=project, total=protocol + project)

    def is_finite(self) -> bool:
        return all(math.isfinite(value) for value in (self.protocol, self.project, self.total))

    def to_dict(self) -> Dict[str, Number]:
        return {"protocol": self.protocol, "project": self.project, "total": self.total}


@dataclass(slots=True)
class FeeCalculation:
    operation: str
    amount: Number
    token_fees: FeeBreakdown = field(default_factory=FeeBreakdown)
    sol_fees: FeeBreakdown = field(default_factory=FeeBreakdown)
    issues: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.issues

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation": self.operation,
            "amount": self.amount,
            "tokenFees": self.token_fees.to_dict(),
            "solFees": self.sol_fees.to_dict(),
            "isValid": self.is_valid,
            "issues": list(self.issues),
        }


class FeeCalculator:
    """Combine fixed protocol fees with the project's configured fees."""

    def __init__(self, source: AccountSource) -> None:
        self._source = source

    async def calculate_fees(self, operation: str, amount: Number) -> FeeCalculation:
        """
        Compute token and SOL fees for moving ``amount`` tokens.

        The project configuration is the first recipe (capture) or escrow
        (release) account returned by the source.

        Raises:
            ValueError: if ``operation`` is not ``capture`` or ``release``.
        """
        if operation not in _FEE_SOURCES:
            raise ValueError(f"Unknown operation: {operation!r}")
        if amount <= 0:
            return FeeCalculation(operation=operation, amount=amount, issues=["Amount must be greater than 0"])

        kind, token_rate_field, sol_fee_field = _FEE_SOURCES[operation]
        try:
            accounts = await self._source.list_accounts(kind)
            if not accounts:
                return FeeCalculation(operation=operation, amount=amount, issues=["No fee configuration found"])
            fee_config = accounts[0].account
            project_token_rate = as_number(fee_config[token_rate_field])
            project_sol_fee = as_number(fee_config[sol_fee_field])
        except AccountSourceError as exc:
            logger.warning("Fee configuration lookup failed for %s: %s", operation, exc)
            return self._failed(operation, amount, exc)
        except Exception as exc:
            logger.exception("Unexpected error reading fee configuration for %s", operation)
            return self._failed(operation, amount, exc)

        # Large amounts times on-chain rates can overflow floats.
        try:
            token_fees = FeeBreakdown.of(amount * PROTOCOL_TOKEN_FEE_RATE, project_token_rate * amount)
            sol_fees = FeeBreakdown.of(PROTOCOL_SOL_FEE, project_sol_fee)
            finite = token_fees.is_finite() and sol_fees.is_finite()
        except OverflowError:
            finite = False
        if not finite:
            logger.warning("Non-finite %s fee for amount %s", operation, amount)
            return FeeCalculation(operation=operation, amount=amount, issues=["Computed fee is not a finite number"])

        return FeeCalculation(operation=operation, amount=amount, token_fees=token_fees, sol_fees=sol_fees)

    @staticmethod
    def _failed(operation: str, amount: Number, exc: Exception) -> FeeCalculation:
        return FeeCalculation(
            operation=operation,
            amount=amount,
            issues=[f"Failed to fetch project fee configuration: {exc}"],
        )
