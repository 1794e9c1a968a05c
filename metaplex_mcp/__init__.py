"""
Read-only Metaplex MCP server package.

This package exposes LLM-friendly tools for MPL-Hybrid program accounts on
Solana and for code in the Metaplex GitHub organisation. See DESIGN.md for
full details.
"""

__all__ = ["config"]
