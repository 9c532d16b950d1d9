"""
Test doubles and fixed addresses shared by the test suite.
"""

import asyncio
from typing import Optional

from web3 import Web3

from evvm_relayer.errors import SubmissionError
from evvm_relayer.payment import PaymentRequest

# EIP-55 test vectors
SENDER = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"
RECIPIENT = "0xfB6916095ca1df60bB79Ce92cE3Ea74c37c5d359"
RELAYER_ADDRESS = "0xdbF03B407c01E7cD3CBea99509d93f8DDDC8C6FB"
TOKEN_ADDRESS = "0xD1220A0cf47c7B9Be7A2E6BA89F429762e7b9aDb"


class FakeEvmClient:
    """In-memory stand-in for EvmClient."""

    def __init__(
        self,
        balance: int = Web3.to_wei(1, "ether"),
        gas_price: int = Web3.to_wei(1, "gwei"),
        gas_estimate: int = 52_000,
        confirm_delay: float = 0.0,
        revert: bool = False,
    ):
        self.address = RELAYER_ADDRESS
        self.balance = balance
        self.gas_price = gas_price
        self.gas_estimate = gas_estimate
        self.confirm_delay = confirm_delay
        self.revert = revert
        self.estimate_error: Optional[Exception] = None
        self.submitted: list[tuple[str, str, int]] = []

    async def read_balance(self, address: Optional[str] = None) -> int:
        return self.balance

    async def read_fee_rate(self) -> int:
        return self.gas_price

    async def estimate_transfer_cost(self, token_address: str, to: str, amount: int) -> int:
        if self.estimate_error is not None:
            raise self.estimate_error
        return self.gas_estimate

    async def submit_transfer(self, token_address: str, to: str, amount: int) -> bytes:
        self.submitted.append((token_address, to, amount))
        return len(self.submitted).to_bytes(32, "big")

    async def await_confirmation(self, tx_hash: bytes, timeout: float = 120) -> str:
        if self.confirm_delay:
            await asyncio.sleep(self.confirm_delay)
        tx_hex = Web3.to_hex(tx_hash)
        if self.revert:
            raise SubmissionError(f"Transaction reverted: {tx_hex}")
        return tx_hex


def make_request(
    sender: str = SENDER,
    recipient: str = RECIPIENT,
    amount: str = "1000000",
    token: str = "MATE",
    metadata: Optional[dict] = None,
) -> PaymentRequest:
    return PaymentRequest(
        sender=sender,
        recipient=recipient,
        amount=amount,
        token=token,
        metadata=metadata,
    )


