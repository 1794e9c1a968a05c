"""
Binary layouts for the accounts read by the hybrid tools.

Anchor accounts start with an 8-byte discriminator (``sha256("account:<Name>")[:8]``)
followed by Borsh-encoded fields. mpl-core assets start with a single key byte.
All integers are little-endian.
"""

from __future__ import annotations

import hashlib
import struct
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from solders.pubkey import Pubkey

RECIPE = "recipeV1"
ESCROW = "escrowV1"
BASE_ASSET = "baseAssetV1"

PUBKEY_LEN = 32

# Escrow.last_operation enum
LAST_OPERATIONS = {0: None, 1: "capture", 2: "release"}


class LayoutError(ValueError):
    """Raised when account bytes do not match the expected layout."""


def anchor_discriminator(account_name: str) -> bytes:
    return hashlib.sha256(f"account:{account_name}".encode("utf-8")).digest()[:8]


class _Reader:
    def __init__(self, data: bytes, offset: int = 0) -> None:
        self._data = data
        self.offset = offset

    def _unpack(self, fmt: str) -> Any:
        size = struct.calcsize(fmt)
        if self.offset + size > len(self._data):
            raise LayoutError(
                f"Account data too short: need {self.offset + size} bytes, got {len(self._data)}"
            )
        (value,) = struct.unpack_from(fmt, self._data, self.offset)
        self.offset += size
        return value

    def u8(self) -> int:
        return self._unpack("<B")

    def u16(self) -> int:
        return self._unpack("<H")

    def u32(self) -> int:
        return self._unpack("<I")

    def u64(self) -> int:
        return self._unpack("<Q")

    def i64(self) -> int:
        return self._unpack("<q")

    def pubkey(self) -> str:
        end = self.offset + PUBKEY_LEN
        if end > len(self._data):
            raise LayoutError(f"Account data too short: need {end} bytes, got {len(self._data)}")
        raw = self._data[self.offset:end]
        self.offset = end
        return str(Pubkey(raw))

    def string(self) -> str:
        length = self.u32()
        end = self.offset + length
        if end > len(self._data):
            raise LayoutError(f"Account data too short: need {end} bytes, got {len(self._data)}")
        raw = self._data[self.offset:end]
        self.offset = end
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise LayoutError("Invalid UTF-8 string in account data") from exc


def _decode_recipe(reader: _Reader) -> Dict[str, Any]:
    return {
        "collection": reader.pubkey(),
        "authority": reader.pubkey(),
        "token": reader.pubkey(),
        "fee_location": reader.pubkey(),
        "name": reader.string(),
        "uri": reader.string(),
        "max": reader.u64(),
        "min": reader.u64(),
        "amount": reader.u64(),
        "fee_amount_capture": reader.i64(),
        "sol_fee_amount_capture": reader.i64(),
        "fee_amount_release": reader.i64(),
        "sol_fee_amount_release": reader.i64(),
        "path": reader.u16(),
        "count": reader.u64(),
        "bump": reader.u8(),
    }


def _decode_escrow(reader: _Reader) -> Dict[str, Any]:
    decoded: Dict[str, Any] = {
        "asset": reader.pubkey(),
        "collection": reader.pubkey(),
        "authority": reader.pubkey(),
        "token": reader.pubkey(),
        "fee_location": reader.pubkey(),
        "name": reader.string(),
        "uri": reader.string(),
        "max": reader.u64(),
        "min": reader.u64(),
        "amount": reader.u64(),
        "fee_amount": reader.i64(),
        "sol_fee_amount": reader.i64(),
        "path": reader.u16(),
        "count": reader.u64(),
    }
    operation_code = reader.u8()
    if operation_code not in LAST_OPERATIONS:
        raise LayoutError(f"Unknown escrow operation code {operation_code}")
    decoded["last_operation"] = LAST_OPERATIONS[operation_code]
    decoded["timestamp"] = reader.i64()
    decoded["bump"] = reader.u8()
    return decoded


def _decode_base_asset(reader: _Reader) -> Dict[str, Any]:
    return {"owner": reader.pubkey()}


@dataclass(frozen=True, slots=True)
class AccountLayout:
    kind: str
    discriminator: bytes
    decoder: Callable[[_Reader], Dict[str, Any]]

    def decode(self, data: bytes) -> Dict[str, Any]:
        prefix = bytes(data[: len(self.discriminator)])
        if prefix != self.discriminator:
            raise LayoutError(f"Account discriminator does not match {self.kind}")
        return self.decoder(_Reader(bytes(data), offset=len(self.discriminator)))


LAYOUTS: Dict[str, AccountLayout] = {
    RECIPE: AccountLayout(RECIPE, anchor_discriminator("RecipeV1"), _decode_recipe),
    ESCROW: AccountLayout(ESCROW, anchor_discriminator("EscrowV1"), _decode_escrow),
    # mpl-core Key::AssetV1
    BASE_ASSET: AccountLayout(BASE_ASSET, bytes([1]), _decode_base_asset),
}

# The locked asset is the first escrow field, right after the discriminator.
ESCROW_ASSET_OFFSET = len(LAYOUTS[ESCROW].discriminator)


def get_layout(kind: str) -> AccountLayout:
    layout: Optional[AccountLayout] = LAYOUTS.get(kind)
    if layout is None:
        raise LayoutError(f"Unknown account kind: {kind}")
    return layout


def decode_account(kind: str, data: bytes) -> Dict[str, Any]:
    """Decode raw account bytes for ``kind`` into a plain dict."""
    return get_layout(kind).decode(data)
