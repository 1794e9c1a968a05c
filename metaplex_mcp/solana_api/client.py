"""
Read-only account source backed by a Solana JSON-RPC node.

Accounts are fetched and decoded into plain dicts; RPC and decoding failures
are mapped to internal exceptions that the service layer turns into issues.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import base58
import httpx
from solana.exceptions import SolanaRpcException
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment
from solana.rpc.core import RPCException
from solana.rpc.types import MemcmpOpts
from solders.pubkey import Pubkey

from metaplex_mcp.config import MetaplexConfig, default_config
from metaplex_mcp.solana_api.layouts import LayoutError, decode_account, get_layout

logger = logging.getLogger(__name__)


class AccountSourceError(Exception):
    """Base exception for account source errors."""


class AddressError(AccountSourceError, ValueError):
    """Raised when an address is not a valid base58 public key."""


class AccountNotFoundError(AccountSourceError):
    """Raised when no account exists at an address."""


class RpcTransportError(AccountSourceError):
    """Raised when the RPC node cannot be reached or rejects the call."""


class AccountDecodeError(AccountSourceError):
    """Raised when account bytes do not match the expected layout."""


def parse_address(value: Any) -> Pubkey:
    """Parse a base58 address; ``Pubkey`` instances pass through unchanged."""
    if isinstance(value, Pubkey):
        return value
    if not isinstance(value, str):
        raise AddressError("Invalid public key input")
    try:
        return Pubkey.from_string(value.strip())
    except ValueError as exc:
        raise AddressError("Invalid public key input") from exc


def derive_address(seeds: Sequence[bytes], program_id: Pubkey) -> Pubkey:
    """Derive a program address; deterministic for the same seeds and program."""
    address, _bump = Pubkey.find_program_address(list(seeds), program_id)
    return address


@dataclass(frozen=True, slots=True)
class MemcmpFilter:
    """Byte-equality match against an account's serialized data."""

    offset: int
    bytes: str  # base58

    def to_opts(self) -> MemcmpOpts:
        return MemcmpOpts(offset=self.offset, bytes=self.bytes)


@dataclass(frozen=True, slots=True)
class ProgramAccount:
    address: str
    account: Dict[str, Any]


class SolanaAccountClient:
    """Async account source for the hybrid program's accounts."""

    def __init__(
        self,
        config: MetaplexConfig | None = None,
        *,
        rpc_client: Optional[AsyncClient] = None,
    ) -> None:
        self.config = config or default_config
        self._client: Optional[AsyncClient] = rpc_client
        self._owns_client = rpc_client is None

    @property
    def program_id(self) -> Pubkey:
        return parse_address(self.config.program_id)

    async def _get_client(self) -> AsyncClient:
        if self._client is None:
            self._client = AsyncClient(
                self.config.rpc_url,
                commitment=Commitment(self.config.commitment),
                timeout=self.config.timeout,
            )
            self._owns_client = True
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.close()
            self._client = None

    async def fetch_account(self, kind: str, address: Any) -> Dict[str, Any]:
        """Fetch and decode a single account of ``kind``."""
        pubkey = parse_address(address)
        client = await self._get_client()
        try:
            response = await client.get_account_info(pubkey, encoding="base64")
        except (SolanaRpcException, RPCException, httpx.HTTPError) as exc:
            logger.warning("Solana RPC unreachable fetching %s %s", kind, pubkey)
            raise RpcTransportError(f"RPC request failed: {exc}") from exc

        value = getattr(response, "value", None)
        if value is None:
            raise AccountNotFoundError(f"Account does not exist or has no data {pubkey}")
        try:
            return decode_account(kind, bytes(value.data))
        except LayoutError as exc:
            raise AccountDecodeError(str(exc)) from exc

    async def list_accounts(
        self,
        kind: str,
        filters: Optional[Sequence[MemcmpFilter]] = None,
    ) -> List[ProgramAccount]:
        """List every program account of ``kind`` matching all ``filters``, in RPC order."""
        layout = get_layout(kind)
        opts: List[Any] = [MemcmpOpts(offset=0, bytes=base58.b58encode(layout.discriminator).decode("ascii"))]
        opts.extend(item.to_opts() for item in filters or ())

        client = await self._get_client()
        try:
            response = await client.get_program_accounts(
                self.program_id, encoding="base64", filters=opts
            )
        except (SolanaRpcException, RPCException, httpx.HTTPError) as exc:
            logger.warning("Solana RPC unreachable listing %s accounts", kind)
            raise RpcTransportError(f"RPC request failed: {exc}") from exc

        accounts: List[ProgramAccount] = []
        for keyed in getattr(response, "value", None) or []:
            try:
                decoded = decode_account(kind, bytes(keyed.account.data))
            except LayoutError:
                # Accounts from an older program version share the discriminator.
                logger.warning("Skipping undecodable %s account %s", kind, keyed.pubkey)
                continue
            accounts.append(ProgramAccount(address=str(keyed.pubkey), account=decoded))
        return accounts


default_client = SolanaAccountClient()
