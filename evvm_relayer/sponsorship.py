"""
Gas sponsorship checks for the relaying account.
"""

import structlog
from web3 import Web3

from .evm import EvmClient
from .payment import SponsorshipSnapshot

logger = structlog.get_logger()

# Typical gas for an ERC-20 transfer
DEFAULT_GAS_ESTIMATE = 65_000
# Minimum native balance the relaying account always keeps
DEFAULT_GAS_RESERVE_WEI = Web3.to_wei(0.1, "ether")


class GasSponsor:
    """
    Decides whether the relaying account can pay for a submission.

    Balance and gas price are read live on every call.
    """

    def __init__(
        self,
        evm: EvmClient,
        reserve_wei: int = DEFAULT_GAS_RESERVE_WEI,
        default_gas_estimate: int = DEFAULT_GAS_ESTIMATE,
    ):
        self.evm = evm
        self.reserve_wei = reserve_wei
        self.default_gas_estimate = default_gas_estimate

    async def get_balance(self) -> int:
        """Native balance of the relaying account in wei."""
        return await self.evm.read_balance(self.evm.address)

    async def estimate_gas_for_transfer(self, token_address: str, to: str, amount: int) -> int:
        """
        Estimate gas units for an ERC-20 transfer.

        Falls back to the default estimate when the call reverts or the
        node is unreachable.
        """
        try:
            return await self.evm.estimate_transfer_cost(token_address, to, amount)
        except Exception as e:
            logger.warning(
                "gas_estimate_failed",
                token=token_address,
                to=to,
                error=str(e),
                fallback=self.default_gas_estimate,
            )
            return self.default_gas_estimate

    async def can_sponsor(self, gas_units: int) -> bool:
        """
        True if balance > gas_units * gas_price + reserve.

        At exact parity sponsorship is refused.
        """
        balance = await self.get_balance()
        gas_price = await self.evm.read_fee_rate()
        gas_cost = gas_units * gas_price
        required = gas_cost + self.reserve_wei

        sponsorable = balance > required
        if not sponsorable:
            logger.warning(
                "sponsorship_refused",
                balance_wei=balance,
                required_wei=required,
                gas_units=gas_units,
                gas_price_wei=gas_price,
            )
        return sponsorable

    async def get_sponsorship(self) -> SponsorshipSnapshot:
        """Current sponsorship capacity, based on the default gas estimate."""
        balance = await self.get_balance()
        gas_price = await self.evm.read_fee_rate()
        cost_per_tx = self.default_gas_estimate * gas_price
        max_txs = balance // cost_per_tx if cost_per_tx > 0 else 0

        return SponsorshipSnapshot(
            relayer_address=self.evm.address,
            balance_wei=balance,
            gas_price_wei=gas_price,
            estimated_gas_per_tx=self.default_gas_estimate,
            cost_per_tx_wei=cost_per_tx,
            max_transactions=max_txs,
        )
