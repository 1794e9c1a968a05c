"""Solana RPC account source for the hybrid program."""

from .client import (
    AccountDecodeError,
    AccountNotFoundError,
    AccountSourceError,
    AddressError,
    MemcmpFilter,
    ProgramAccount,
    RpcTransportError,
    SolanaAccountClient,
    default_client,
    derive_address,
    parse_address,
)
from . import layouts

__all__ = [
    "SolanaAccountClient",
    "AccountSourceError",
    "AddressError",
    "AccountNotFoundError",
    "AccountDecodeError",
    "RpcTransportError",
    "MemcmpFilter",
    "ProgramAccount",
    "default_client",
    "derive_address",
    "parse_address",
    "layouts",
]
