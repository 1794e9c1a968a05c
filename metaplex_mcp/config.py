"""
Configuration helpers for the Metaplex MCP servers.

This module centralizes RPC endpoint selection, the hybrid program id, GitHub
access settings, default timeouts and rate limits. No secrets are stored in the
repository; the GitHub token is read from environment or a local file if present.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

# Solana connection settings
DEFAULT_RPC_URL = os.getenv("SOLANA_RPC_URL", "https://api.devnet.solana.com")
DEFAULT_COMMITMENT = os.getenv("SOLANA_COMMITMENT", "confirmed")
DEFAULT_PROGRAM_ID = os.getenv("MPL_HYBRID_PROGRAM_ID", "MPL4o4wMzndgh8T1NVDxELQCj5UQfYTYEkabX3wNKtb")


def _load_timeout() -> float:
    raw_timeout = os.getenv("MPL_MCP_HTTP_TIMEOUT")
    if raw_timeout:
        try:
            return float(raw_timeout)
        except ValueError:
            return 30.0
    return 30.0


DEFAULT_TIMEOUT = _load_timeout()

# GitHub settings
DEFAULT_GITHUB_API_URL = os.getenv("GITHUB_API_URL", "https://api.github.com")
DEFAULT_GITHUB_ORG = os.getenv("GITHUB_ORG", "metaplex-foundation")
DEFAULT_REPO = "metaplex-program-library"
GITHUB_TOKEN_ENV_VAR = "GITHUB_TOKEN"
GITHUB_TOKEN_FILE_ENV_VAR = "GITHUB_TOKEN_FILE"
DEFAULT_GITHUB_TOKEN_FILE = "github_token.txt"

# Safety limits
MAX_CODE_RESULTS = 50
DEFAULT_CODE_RESULTS = 20


def _load_rate_limit() -> float:
    raw = os.getenv("MPL_MCP_RATE_LIMIT_QPS")
    if raw:
        try:
            value = float(raw)
        except ValueError:
            return 5.0
        return value if value > 0 else 5.0
    return 5.0


def _parse_tool_rate_limits(raw: Optional[str]) -> Dict[str, float]:
    """Parse ``tool=qps`` pairs separated by commas; malformed pairs are skipped."""
    limits: Dict[str, float] = {}
    if not raw:
        return limits
    for chunk in raw.split(","):
        name, sep, value = chunk.partition("=")
        name = name.strip()
        if not sep or not name:
            continue
        try:
            rate = float(value)
        except ValueError:
            continue
        if rate > 0:
            limits[name] = rate
    return limits


DEFAULT_RATE_LIMIT_QPS = _load_rate_limit()
PER_TOOL_RATE_LIMITS = _parse_tool_rate_limits(os.getenv("MPL_MCP_TOOL_RATE_LIMITS"))
LOG_LEVEL = os.getenv("MPL_MCP_LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("MPL_MCP_LOG_FORMAT", "json")  # json or plain


def load_github_token() -> Optional[str]:
    """
    Load a GitHub token from environment or a local file.

    Returns:
        The token string if available, otherwise None. The token is never
        logged or returned to callers. Unauthenticated access works but is
        subject to much lower GitHub rate limits.
    """
    env_token = os.getenv(GITHUB_TOKEN_ENV_VAR)
    if env_token:
        return env_token.strip()

    token_path = os.getenv(GITHUB_TOKEN_FILE_ENV_VAR, DEFAULT_GITHUB_TOKEN_FILE)
    if token_path:
        path = Path(token_path)
        if path.is_file():
            return path.read_text(encoding="utf-8").strip() or None

    return None


@dataclass(slots=True)
class MetaplexConfig:
    """Runtime configuration for Solana RPC and GitHub access."""

    rpc_url: str = DEFAULT_RPC_URL
    commitment: str = DEFAULT_COMMITMENT
    program_id: str = DEFAULT_PROGRAM_ID
    timeout: float = DEFAULT_TIMEOUT
    github_api_url: str = DEFAULT_GITHUB_API_URL
    github_org: str = DEFAULT_GITHUB_ORG
    default_repo: str = DEFAULT_REPO
    github_token: Optional[str] = load_github_token()
    max_code_results: int = MAX_CODE_RESULTS
    default_code_results: int = DEFAULT_CODE_RESULTS
    rate_limit_qps: float = DEFAULT_RATE_LIMIT_QPS
    log_level: str = LOG_LEVEL
    log_format: str = LOG_FORMAT
    per_tool_rate_limits: Dict[str, float] = field(default_factory=lambda: dict(PER_TOOL_RATE_LIMITS))


default_config = MetaplexConfig()
