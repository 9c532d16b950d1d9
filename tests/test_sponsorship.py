"""
Tests for gas sponsorship checks.
"""

import asyncio

import pytest
from web3 import Web3

from evvm_relayer.sponsorship import DEFAULT_GAS_ESTIMATE, DEFAULT_GAS_RESERVE_WEI, GasSponsor

from fakes import RECIPIENT, RELAYER_ADDRESS, TOKEN_ADDRESS, FakeEvmClient

GWEI = Web3.to_wei(1, "gwei")


class TestCanSponsor:
    """Tests for the balance > cost + reserve rule."""

    def test_reserve_is_point_one_ether(self):
        assert DEFAULT_GAS_RESERVE_WEI == 10**17

    def test_well_funded(self):
        sponsor = GasSponsor(FakeEvmClient(balance=Web3.to_wei(1, "ether"), gas_price=GWEI))
        assert asyncio.run(sponsor.can_sponsor(100_000)) is True

    def test_exact_parity_refused(self):
        """balance == gas cost + reserve is not enough."""
        gas_units = 100_000
        balance = gas_units * GWEI + DEFAULT_GAS_RESERVE_WEI
        sponsor = GasSponsor(FakeEvmClient(balance=balance, gas_price=GWEI))
        assert asyncio.run(sponsor.can_sponsor(gas_units)) is False

    def test_one_wei_above_parity(self):
        gas_units = 100_000
        balance = gas_units * GWEI + DEFAULT_GAS_RESERVE_WEI + 1
        sponsor = GasSponsor(FakeEvmClient(balance=balance, gas_price=GWEI))
        assert asyncio.run(sponsor.can_sponsor(gas_units)) is True

    def test_below_reserve_refused(self):
        sponsor = GasSponsor(FakeEvmClient(balance=Web3.to_wei(0.05, "ether"), gas_price=0))
        assert asyncio.run(sponsor.can_sponsor(100_000)) is False

    def test_custom_reserve(self):
        sponsor = GasSponsor(FakeEvmClient(balance=1_000, gas_price=1), reserve_wei=0)
        assert asyncio.run(sponsor.can_sponsor(999)) is True
        assert asyncio.run(sponsor.can_sponsor(1_000)) is False

    def test_chain_errors_propagate(self):
        evm = FakeEvmClient()

        async def broken() -> int:
            raise ConnectionError("rpc down")

        evm.read_fee_rate = broken
        with pytest.raises(ConnectionError):
            asyncio.run(GasSponsor(evm).can_sponsor(100_000))


class TestEstimateGas:
    """Tests for transfer gas estimation."""

    def test_uses_node_estimate(self):
        sponsor = GasSponsor(FakeEvmClient(gas_estimate=51_234))
        assert asyncio.run(sponsor.estimate_gas_for_transfer(TOKEN_ADDRESS, RECIPIENT, 1)) == 51_234

    def test_falls_back_to_default(self):
        evm = FakeEvmClient()
        evm.estimate_error = ValueError("execution reverted")
        sponsor = GasSponsor(evm)
        result = asyncio.run(sponsor.estimate_gas_for_transfer(TOKEN_ADDRESS, RECIPIENT, 1))
        assert result == DEFAULT_GAS_ESTIMATE


class TestSponsorshipSnapshot:
    """Tests for sponsorship capacity reporting."""

    def test_capacity(self):
        evm = FakeEvmClient(balance=Web3.to_wei(1, "ether"), gas_price=2 * GWEI)
        snapshot = asyncio.run(GasSponsor(evm).get_sponsorship())

        assert snapshot.relayer_address == RELAYER_ADDRESS
        assert snapshot.balance_wei == 10**18
        assert snapshot.gas_price_wei == 2 * GWEI
        assert snapshot.estimated_gas_per_tx == 65_000
        assert snapshot.cost_per_tx_wei == 130_000 * GWEI
        assert snapshot.max_transactions == 10**18 // (130_000 * GWEI)

    def test_zero_gas_price(self):
        snapshot = asyncio.run(GasSponsor(FakeEvmClient(gas_price=0)).get_sponsorship())
        assert snapshot.cost_per_tx_wei == 0
        assert snapshot.max_transactions == 0
