"""Escrow validation and asset lock status."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from metaplex_mcp.services.common import AccountSource, Number, as_number, check_bounds
from metaplex_mcp.solana_api import AccountSourceError, MemcmpFilter, parse_address
from metaplex_mcp.solana_api.layouts import BASE_ASSET, ESCROW, ESCROW_ASSET_OFFSET

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class EscrowValidation:
    collection: str
    escrow: str
    name: str = ""
    uri: str = ""
    max: Number = 0
    min: Number = 0
    amount: Number = 0
    fee_amount: Number = 0
    sol_fee_amount: Number = 0
    path: int = 0
    count: Number = 0
    issues: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.issues

    def to_dict(self) -> Dict[str, Any]:
        return {
            "collection": self.collection,
            "escrow": self.escrow,
            "name": self.name,
            "uri": self.uri,
            "max": self.max,
            "min": self.min,
            "amount": self.amount,
            "feeAmount": self.fee_amount,
            "solFeeAmount": self.sol_fee_amount,
            "path": self.path,
            "count": self.count,
            "isValid": self.is_valid,
            "issues": list(self.issues),
        }


@dataclass(slots=True)
class ConversionStatus:
    asset: str
    is_locked: bool = False
    current_owner: str = ""
    escrow_account: Optional[str] = None
    token_amount: Optional[Number] = None
    last_operation: Optional[str] = None
    timestamp: Optional[int] = None
    issues: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "asset": self.asset,
            "isLocked": self.is_locked,
            "currentOwner": self.current_owner,
        }
        optional = {
            "escrowAccount": self.escrow_account,
            "tokenAmount": self.token_amount,
            "lastOperation": self.last_operation,
            "timestamp": self.timestamp,
            "issues": list(self.issues) if self.issues is not None else None,
        }
        data.update({key: value for key, value in optional.items() if value is not None})
        return data


class EscrowValidator:
    """Validate escrow configuration and find escrows holding an asset."""

    def __init__(self, source: AccountSource) -> None:
        self._source = source

    async def validate_escrow(self, collection_address: str, escrow_address: str) -> EscrowValidation:
        """
        Fetch the escrow at ``escrow_address`` and check its configuration.

        Raises:
            AddressError: if either address is malformed.
        """
        parse_address(collection_address)
        escrow = parse_address(escrow_address)

        try:
            account = await self._source.fetch_account(ESCROW, escrow)
            validation = EscrowValidation(
                collection=collection_address,
                escrow=escrow_address,
                name=account["name"],
                uri=account["uri"],
                max=as_number(account["max"]),
                min=as_number(account["min"]),
                amount=as_number(account["amount"]),
                fee_amount=as_number(account["fee_amount"]),
                sol_fee_amount=as_number(account["sol_fee_amount"]),
                path=account["path"],
                count=as_number(account["count"]),
            )
        except AccountSourceError as exc:
            logger.warning("Escrow lookup failed for %s: %s", escrow_address, exc)
            return self._failed_validation(collection_address, escrow_address, exc)
        except Exception as exc:
            logger.exception("Unexpected error validating escrow %s", escrow_address)
            return self._failed_validation(collection_address, escrow_address, exc)

        issues = check_bounds(validation.max, validation.min, validation.amount)
        if validation.fee_amount < 0:
            issues.append("Fee amount cannot be negative")
        if validation.sol_fee_amount < 0:
            issues.append("SOL fee amount cannot be negative")
        validation.issues = issues
        return validation

    @staticmethod
    def _failed_validation(collection: str, escrow: str, exc: Exception) -> EscrowValidation:
        return EscrowValidation(
            collection=collection,
            escrow=escrow,
            issues=[f"Failed to validate escrow: {exc}"],
        )

    async def check_conversion_status(self, asset_address: str) -> ConversionStatus:
        """
        Report whether ``asset_address`` is currently locked in an escrow.

        The asset fetch and the escrow listing are separate RPC round-trips.

        Raises:
            AddressError: if the asset address is malformed.
        """
        asset = parse_address(asset_address)

        try:
            asset_account = await self._source.fetch_account(BASE_ASSET, asset)
            escrows = await self._source.list_accounts(
                ESCROW, [MemcmpFilter(offset=ESCROW_ASSET_OFFSET, bytes=str(asset))]
            )
            owner = str(asset_account["owner"])
            if not escrows:
                return ConversionStatus(asset=asset_address, is_locked=False, current_owner=owner)

            locked_in = escrows[0]
            return ConversionStatus(
                asset=asset_address,
                is_locked=True,
                current_owner=owner,
                escrow_account=str(locked_in.address),
                token_amount=as_number(locked_in.account["amount"]),
                last_operation=locked_in.account.get("last_operation"),
                timestamp=as_number(locked_in.account["timestamp"]),
            )
        except AccountSourceError as exc:
            logger.warning("Conversion status lookup failed for %s: %s", asset_address, exc)
            return self._failed_status(asset_address, exc)
        except Exception as exc:
            logger.exception("Unexpected error checking conversion status for %s", asset_address)
            return self._failed_status(asset_address, exc)

    @staticmethod
    def _failed_status(asset: str, exc: Exception) -> ConversionStatus:
        return ConversionStatus(
            asset=asset,
            is_locked=False,
            current_owner="",
            issues=[f"Failed to check conversion status: {exc}"],
        )
