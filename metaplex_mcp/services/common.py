"""Shared helpers for the hybrid account services."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional, Protocol, Sequence, Union

from metaplex_mcp.solana_api import MemcmpFilter, ProgramAccount

Number = Union[int, float]


class AccountSource(Protocol):
    async def fetch_account(self, kind: str, address: Any) -> Dict[str, Any]: ...

    async def list_accounts(
        self, kind: str, filters: Optional[Sequence[MemcmpFilter]] = None
    ) -> List[ProgramAccount]: ...


def as_number(value: Any) -> Number:
    """Unwrap a decoded numeric field into a plain int or float."""
    if isinstance(value, bool):
        raise TypeError("Boolean is not a numeric account field")
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, Decimal):
        return float(value)
    to_number = getattr(value, "to_number", None)
    if callable(to_number):
        return to_number()
    raise TypeError(f"Unsupported numeric field value: {value!r}")


def check_bounds(max_value: Number, min_value: Number, amount: Number) -> List[str]:
    """Checks shared by recipes and escrows, in reporting order."""
    issues: List[str] = []
    if max_value <= min_value:
        issues.append("Max value must be greater than min value")
    if amount <= 0:
        issues.append("Amount must be greater than 0")
    return issues
