"""LLM-facing tool implementations."""

from .hybrid import (
    analyze_recipe,
    calculate_fees,
    check_conversion_status,
    validate_address,
    validate_escrow,
)
from .github import get_repo, search_code
from . import validators

__all__ = [
    "analyze_recipe",
    "validate_escrow",
    "check_conversion_status",
    "calculate_fees",
    "validate_address",
    "get_repo",
    "search_code",
    "validators",
]
