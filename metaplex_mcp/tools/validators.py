"""Shared validation helpers for Metaplex MCP tools."""

from __future__ import annotations

import math
import re
from typing import Any, Optional

from solders.pubkey import Pubkey

# Solana addresses are Base58 encodings of 32 bytes: 32 to 44 characters.
ADDRESS_REGEX = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")
REPO_NAME_REGEX = re.compile(r"^[A-Za-z0-9_.-]{1,100}$")
MAX_QUERY_LENGTH = 256


def is_valid_solana_address(address: Optional[str]) -> bool:
    """Format check plus a full decode to 32 bytes."""
    if not address or not isinstance(address, str):
        return False
    candidate = address.strip()
    if not ADDRESS_REGEX.fullmatch(candidate):
        return False
    try:
        Pubkey.from_string(candidate)
    except ValueError:
        return False
    return True


def is_valid_repo_name(repo: Optional[str]) -> bool:
    if not repo or not isinstance(repo, str):
        return False
    return bool(REPO_NAME_REGEX.fullmatch(repo)) and repo not in {".", ".."}


def is_valid_query(query: Any) -> bool:
    return isinstance(query, str) and bool(query.strip()) and len(query) <= MAX_QUERY_LENGTH


def parse_amount(value: Any) -> Optional[float]:
    """Accept finite ints/floats (or numeric strings); bools are rejected."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = float(value)
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(parsed):
        return None
    return parsed


def clamp_limit(value: Optional[int], *, default: int, max_value: int) -> int:
    """Clamp limit-style integers to configured bounds."""
    if value is None:
        return default
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    if parsed <= 0:
        return default
    return min(parsed, max_value)
