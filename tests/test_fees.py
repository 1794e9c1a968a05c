import pytest

from metaplex_mcp.services import PROTOCOL_SOL_FEE, FeeCalculator
from metaplex_mcp.solana_api import ProgramAccount, RpcTransportError
from metaplex_mcp.solana_api.layouts import ESCROW, RECIPE

FIRST = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
SECOND = "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL"


class StubSource:
    def __init__(self, listings=None, exc=None):
        self.listings = listings or {}
        self.exc = exc
        self.listed = []

    async def fetch_account(self, kind, address):
        pytest.fail("fetch_account should not be called by the fee calculator")

    async def list_accounts(self, kind, filters=None):
        self.listed.append(kind)
        if self.exc is not None:
            raise self.exc
        return self.listings.get(kind, [])


def _source():
    return StubSource(
        listings={
            RECIPE: [
                ProgramAccount(FIRST, {"fee_amount_capture": 0.01, "sol_fee_amount_capture": 0.001}),
                ProgramAccount(SECOND, {"fee_amount_capture": 0.5, "sol_fee_amount_capture": 0.5}),
            ],
            ESCROW: [ProgramAccount(FIRST, {"fee_amount": 0.015, "sol_fee_amount": 0.0015})],
        }
    )


@pytest.mark.asyncio
async def test_capture_fees_use_recipe_configuration():
    source = _source()
    result = await FeeCalculator(source).calculate_fees("capture", 1000)
    assert source.listed == [RECIPE]
    assert result.is_valid is True
    assert result.token_fees.protocol == pytest.approx(1)
    assert result.token_fees.project == pytest.approx(10)
    assert result.token_fees.total == pytest.approx(11)
    assert result.sol_fees.protocol == pytest.approx(0.00001)
    assert result.sol_fees.project == pytest.approx(0.001)
    assert result.sol_fees.total == pytest.approx(0.00101)


@pytest.mark.asyncio
async def test_release_fees_use_escrow_configuration():
    source = _source()
    result = await FeeCalculator(source).calculate_fees("release", 1000)
    assert source.listed == [ESCROW]
    assert result.token_fees.total == pytest.approx(16)
    assert result.sol_fees.total == pytest.approx(0.00151)


@pytest.mark.asyncio
@pytest.mark.parametrize("operation", ["capture", "release"])
async def test_total_is_exact_sum(operation):
    result = await FeeCalculator(_source()).calculate_fees(operation, 1234.5)
    assert result.token_fees.total == result.token_fees.protocol + result.token_fees.project
    assert result.sol_fees.total == result.sol_fees.protocol + result.sol_fees.project
    assert result.sol_fees.protocol == PROTOCOL_SOL_FEE


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", [0, -1, -0.5])
async def test_non_positive_amount_returns_zero_fees(amount):
    source = _source()
    result = await FeeCalculator(source).calculate_fees("capture", amount)
    data = result.to_dict()
    assert data["isValid"] is False
    assert data["issues"] == ["Amount must be greater than 0"]
    assert data["tokenFees"] == {"protocol": 0, "project": 0, "total": 0}
    assert data["solFees"] == {"protocol": 0, "project": 0, "total": 0}
    assert source.listed == []


@pytest.mark.asyncio
async def test_missing_configuration_is_reported():
    result = await FeeCalculator(StubSource()).calculate_fees("release", 10)
    assert result.issues == ["No fee configuration found"]
    assert result.to_dict()["tokenFees"] == {"protocol": 0, "project": 0, "total": 0}


@pytest.mark.asyncio
async def test_listing_failure_is_captured():
    source = StubSource(exc=RpcTransportError("RPC request failed: down"))
    result = await FeeCalculator(source).calculate_fees("capture", 10)
    assert result.issues == ["Failed to fetch project fee configuration: RPC request failed: down"]
    assert result.is_valid is False


@pytest.mark.asyncio
async def test_unknown_operation_raises():
    with pytest.raises(ValueError):
        await FeeCalculator(_source()).calculate_fees("burn", 10)


@pytest.mark.asyncio
async def test_to_dict_shape():
    data = (await FeeCalculator(_source()).calculate_fees("capture", 1000)).to_dict()
    assert set(data) == {"operation", "amount", "tokenFees", "solFees", "isValid", "issues"}
    assert data["operation"] == "capture"
    assert data["amount"] == 1000


@pytest.mark.asyncio
async def test_overflowing_project_fee_is_reported_not_returned():
    source = StubSource(
        listings={RECIPE: [ProgramAccount(FIRST, {"fee_amount_capture": 10_000_000_000, "sol_fee_amount_capture": 0})]}
    )
    result = await FeeCalculator(source).calculate_fees("capture", 1e300)
    data = result.to_dict()
    assert data["isValid"] is False
    assert data["issues"] == ["Computed fee is not a finite number"]
    assert data["tokenFees"] == {"protocol": 0, "project": 0, "total": 0}
    assert data["solFees"] == {"protocol": 0, "project": 0, "total": 0}


@pytest.mark.asyncio
async def test_huge_integer_amount_is_reported_not_raised():
    source = StubSource(
        listings={RECIPE: [ProgramAccount(FIRST, {"fee_amount_capture": 1, "sol_fee_amount_capture": 0})]}
    )
    result = await FeeCalculator(source).calculate_fees("capture", 10**400)
    assert result.issues == ["Computed fee is not a finite number"]
