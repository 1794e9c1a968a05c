import struct
from types import SimpleNamespace

import base58
import httpx
import pytest
from solders.pubkey import Pubkey

from metaplex_mcp.config import MetaplexConfig
from metaplex_mcp.solana_api import (
    AccountDecodeError,
    AccountNotFoundError,
    AddressError,
    MemcmpFilter,
    RpcTransportError,
    SolanaAccountClient,
    parse_address,
)
from metaplex_mcp.solana_api import layouts

ASSET = "So11111111111111111111111111111111111111112"
OWNER = "11111111111111111111111111111111"
ESCROW_ADDRESS = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
PROGRAM_ID = "MPL4o4wMzndgh8T1NVDxELQCj5UQfYTYEkabX3wNKtb"


def _escrow_bytes(amount=500):
    key = bytes(Pubkey.from_string(OWNER))
    return (
        layouts.anchor_discriminator("EscrowV1")
        + bytes(Pubkey.from_string(ASSET))
        + key * 4
        + struct.pack("<I", 1) + b"E"
        + struct.pack("<I", 0)
        + struct.pack("<QQQqqHQBqB", 50, 10, amount, 1, 1, 0, 0, 1, 99, 255)
    )


class StubRpcClient:
    def __init__(self, account_value=None, program_accounts=None, exc=None):
        self.account_value = account_value
        self.program_accounts = program_accounts or []
        self.exc = exc
        self.calls = []
        self.closed = False

    async def get_account_info(self, pubkey, encoding=None):
        self.calls.append(("get_account_info", pubkey, encoding))
        if self.exc is not None:
            raise self.exc
        return SimpleNamespace(value=self.account_value)

    async def get_program_accounts(self, program_id, encoding=None, filters=None):
        self.calls.append(("get_program_accounts", program_id, encoding, filters))
        if self.exc is not None:
            raise self.exc
        return SimpleNamespace(value=self.program_accounts)

    async def close(self):
        self.closed = True


def _client(rpc):
    return SolanaAccountClient(MetaplexConfig(program_id=PROGRAM_ID), rpc_client=rpc)


def test_parse_address():
    assert parse_address(f"  {ASSET} ") == Pubkey.from_string(ASSET)
    key = Pubkey.from_string(OWNER)
    assert parse_address(key) is key
    with pytest.raises(AddressError):
        parse_address("0OIl")
    with pytest.raises(AddressError):
        parse_address(None)


def test_address_error_is_value_error():
    assert issubclass(AddressError, ValueError)


@pytest.mark.asyncio
async def test_fetch_account_decodes_data():
    rpc = StubRpcClient(account_value=SimpleNamespace(data=bytes([1]) + bytes(Pubkey.from_string(OWNER))))
    decoded = await _client(rpc).fetch_account(layouts.BASE_ASSET, ASSET)
    assert decoded == {"owner": OWNER}
    assert rpc.calls == [("get_account_info", Pubkey.from_string(ASSET), "base64")]


@pytest.mark.asyncio
async def test_fetch_missing_account():
    with pytest.raises(AccountNotFoundError) as excinfo:
        await _client(StubRpcClient(account_value=None)).fetch_account(layouts.ESCROW, ESCROW_ADDRESS)
    assert str(excinfo.value) == f"Account does not exist or has no data {ESCROW_ADDRESS}"


@pytest.mark.asyncio
async def test_fetch_wrong_layout():
    rpc = StubRpcClient(account_value=SimpleNamespace(data=b"\x00" * 64))
    with pytest.raises(AccountDecodeError):
        await _client(rpc).fetch_account(layouts.RECIPE, ESCROW_ADDRESS)


@pytest.mark.asyncio
async def test_fetch_transport_error():
    rpc = StubRpcClient(exc=httpx.ConnectError("refused"))
    with pytest.raises(RpcTransportError):
        await _client(rpc).fetch_account(layouts.ESCROW, ESCROW_ADDRESS)


@pytest.mark.asyncio
async def test_list_accounts_adds_discriminator_filter():
    rpc = StubRpcClient(
        program_accounts=[
            SimpleNamespace(pubkey=Pubkey.from_string(ESCROW_ADDRESS), account=SimpleNamespace(data=_escrow_bytes())),
        ]
    )
    accounts = await _client(rpc).list_accounts(
        layouts.ESCROW, [MemcmpFilter(offset=layouts.ESCROW_ASSET_OFFSET, bytes=ASSET)]
    )
    assert len(accounts) == 1
    assert accounts[0].address == ESCROW_ADDRESS
    assert accounts[0].account["amount"] == 500
    assert accounts[0].account["last_operation"] == "capture"

    _name, program_id, encoding, filters = rpc.calls[0]
    assert program_id == Pubkey.from_string(PROGRAM_ID)
    assert encoding == "base64"
    assert filters[0].offset == 0
    assert base58.b58decode(filters[0].bytes) == layouts.anchor_discriminator("EscrowV1")
    assert filters[1].offset == layouts.ESCROW_ASSET_OFFSET
    assert filters[1].bytes == ASSET


@pytest.mark.asyncio
async def test_list_accounts_skips_undecodable_entries():
    rpc = StubRpcClient(
        program_accounts=[
            SimpleNamespace(pubkey=Pubkey.from_string(OWNER), account=SimpleNamespace(data=b"short")),
            SimpleNamespace(pubkey=Pubkey.from_string(ESCROW_ADDRESS), account=SimpleNamespace(data=_escrow_bytes(7))),
        ]
    )
    accounts = await _client(rpc).list_accounts(layouts.ESCROW)
    assert [acct.address for acct in accounts] == [ESCROW_ADDRESS]
    assert accounts[0].account["amount"] == 7


@pytest.mark.asyncio
async def test_list_accounts_transport_error():
    with pytest.raises(RpcTransportError):
        await _client(StubRpcClient(exc=httpx.ReadTimeout("slow"))).list_accounts(layouts.RECIPE)


@pytest.mark.asyncio
async def test_injected_client_is_not_closed():
    rpc = StubRpcClient()
    client = _client(rpc)
    await client.aclose()
    assert rpc.closed is False
