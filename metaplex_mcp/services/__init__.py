"""Validation and fee logic over hybrid program accounts."""

from .common import AccountSource
from .escrow import ConversionStatus, EscrowValidation, EscrowValidator
from .fees import (
    CAPTURE,
    OPERATIONS,
    PROTOCOL_SOL_FEE,
    PROTOCOL_TOKEN_FEE_RATE,
    RELEASE,
    FeeBreakdown,
    FeeCalculation,
    FeeCalculator,
)
from .recipe import RecipeAnalysis, RecipeAnalyzer

__all__ = [
    "AccountSource",
    "RecipeAnalyzer",
    "RecipeAnalysis",
    "EscrowValidator",
    "EscrowValidation",
    "ConversionStatus",
    "FeeCalculator",
    "FeeCalculation",
    "FeeBreakdown",
    "CAPTURE",
    "RELEASE",
    "OPERATIONS",
    "PROTOCOL_TOKEN_FEE_RATE",
    "PROTOCOL_SOL_FEE",
]
