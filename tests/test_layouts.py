import hashlib
import struct

import pytest
from solders.pubkey import Pubkey

from metaplex_mcp.solana_api import layouts
from metaplex_mcp.solana_api.layouts import LayoutError, anchor_discriminator, decode_account

COLLECTION = "CoREENxT6tW1HoK8ypY1SxRMZTcVPm7R94rH4PZNhX7d"
ASSET = "So11111111111111111111111111111111111111112"
OWNER = "11111111111111111111111111111111"


def _key(address):
    return bytes(Pubkey.from_string(address))


def _string(value):
    raw = value.encode("utf-8")
    return struct.pack("<I", len(raw)) + raw


def _recipe_bytes():
    return (
        anchor_discriminator("RecipeV1")
        + _key(COLLECTION)
        + _key(OWNER)
        + _key(ASSET)
        + _key(OWNER)
        + _string("Recipe")
        + _string("https://example.com/r.json")
        + struct.pack("<QQQ", 100, 1, 1000)
        + struct.pack("<qqqq", 10, 1000, -15, 1500)
        + struct.pack("<H", 2)
        + struct.pack("<Q", 9)
        + struct.pack("<B", 254)
    )


def _escrow_bytes(operation_code=2):
    return (
        anchor_discriminator("EscrowV1")
        + _key(ASSET)
        + _key(COLLECTION)
        + _key(OWNER)
        + _key(OWNER)
        + _key(OWNER)
        + _string("Escrow")
        + _string("")
        + struct.pack("<QQQ", 50, 10, 500)
        + struct.pack("<qq", 15, 1500)
        + struct.pack("<H", 1)
        + struct.pack("<Q", 4)
        + struct.pack("<B", operation_code)
        + struct.pack("<q", 1700000000)
        + struct.pack("<B", 255)
    )


def test_anchor_discriminator_matches_sha256_prefix():
    assert anchor_discriminator("RecipeV1") == hashlib.sha256(b"account:RecipeV1").digest()[:8]


def test_decode_recipe():
    decoded = decode_account(layouts.RECIPE, _recipe_bytes())
    assert decoded["collection"] == COLLECTION
    assert decoded["token"] == ASSET
    assert decoded["name"] == "Recipe"
    assert (decoded["max"], decoded["min"], decoded["amount"]) == (100, 1, 1000)
    assert decoded["fee_amount_release"] == -15
    assert decoded["path"] == 2
    assert decoded["count"] == 9
    assert decoded["bump"] == 254


def test_decode_escrow_asset_sits_at_filter_offset():
    data = _escrow_bytes()
    assert data[layouts.ESCROW_ASSET_OFFSET:layouts.ESCROW_ASSET_OFFSET + 32] == _key(ASSET)
    decoded = decode_account(layouts.ESCROW, data)
    assert decoded["asset"] == ASSET
    assert decoded["uri"] == ""
    assert decoded["last_operation"] == "release"
    assert decoded["timestamp"] == 1700000000


def test_decode_escrow_unknown_operation_code():
    with pytest.raises(LayoutError):
        decode_account(layouts.ESCROW, _escrow_bytes(operation_code=7))


def test_decode_base_asset_owner():
    decoded = decode_account(layouts.BASE_ASSET, bytes([1]) + _key(OWNER) + b"\x00" * 40)
    assert decoded == {"owner": OWNER}


def test_discriminator_mismatch():
    with pytest.raises(LayoutError):
        decode_account(layouts.RECIPE, _escrow_bytes())


def test_truncated_data():
    with pytest.raises(LayoutError):
        decode_account(layouts.RECIPE, _recipe_bytes()[:60])


def test_unknown_kind():
    with pytest.raises(LayoutError):
        layouts.get_layout("metadataV1")
