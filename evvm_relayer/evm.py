"""
EVM client for the relaying account.

Reads balances and fee rates, estimates and submits ERC-20 transfers,
and waits for their receipts.
"""

from typing import Any, Optional

import structlog
from eth_account import Account
from web3 import AsyncHTTPProvider, AsyncWeb3, Web3
from web3.types import TxReceipt

from .errors import SubmissionError

logger = structlog.get_logger()


# Minimal ERC-20 ABI
ERC20_ABI = [
    {
        "inputs": [
            {"name": "to", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "name": "transfer",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [{"name": "account", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
]


class EvmClient:
    """
    Async EVM client bound to the relaying account.
    """

    def __init__(self, rpc_url: str, private_key: str, chain_id: int):
        self.w3 = AsyncWeb3(AsyncHTTPProvider(rpc_url))
        self.account = Account.from_key(private_key)
        self.chain_id = chain_id

        logger.info(
            "evm_client_initialized",
            rpc_url=rpc_url,
            chain_id=chain_id,
            relayer=self.account.address,
        )

    @property
    def address(self) -> str:
        """Relaying account address."""
        return self.account.address

    async def check_connectivity(self) -> bool:
        """Check if the RPC endpoint is reachable."""
        try:
            await self.w3.eth.block_number
            return True
        except Exception:
            return False

    async def get_chain_id(self) -> int:
        return await self.w3.eth.chain_id

    async def get_block_number(self) -> int:
        return await self.w3.eth.block_number

    def _token(self, token_address: str) -> Any:
        return self.w3.eth.contract(
            address=Web3.to_checksum_address(token_address),
            abi=ERC20_ABI,
        )

    async def read_balance(self, address: Optional[str] = None) -> int:
        """Native balance in wei (relaying account by default)."""
        target = Web3.to_checksum_address(address or self.address)
        return await self.w3.eth.get_balance(target)

    async def read_token_balance(self, token_address: str, address: Optional[str] = None) -> int:
        """ERC-20 balance in the token's smallest unit."""
        target = Web3.to_checksum_address(address or self.address)
        return await self._token(token_address).functions.balanceOf(target).call()

    async def read_fee_rate(self) -> int:
        """Current gas price in wei."""
        return await self.w3.eth.gas_price

    async def estimate_transfer_cost(self, token_address: str, to: str, amount: int) -> int:
        """Estimate gas units for transfer(to, amount) sent by the relaying account."""
        return await self._token(token_address).functions.transfer(
            Web3.to_checksum_address(to), amount
        ).estimate_gas({"from": self.address})

    async def submit_transfer(self, token_address: str, to: str, amount: int) -> bytes:
        """
        Sign and broadcast an ERC-20 transfer.

        Returns:
            Transaction hash of the broadcast transaction
        """
        nonce = await self.w3.eth.get_transaction_count(self.address, "pending")
        gas_price = await self.read_fee_rate()
        gas_limit = await self.estimate_transfer_cost(token_address, to, amount)

        tx = await self._token(token_address).functions.transfer(
            Web3.to_checksum_address(to), amount
        ).build_transaction(
            {
                "chainId": self.chain_id,
                "from": self.address,
                "nonce": nonce,
                "gasPrice": gas_price,
                "gas": gas_limit,
            }
        )

        signed = self.account.sign_transaction(tx)
        tx_hash = await self.w3.eth.send_raw_transaction(signed.raw_transaction)

        logger.info(
            "transfer_tx_sent",
            tx_hash=Web3.to_hex(tx_hash),
            token=token_address,
            to=to,
            amount=amount,
            nonce=nonce,
        )
        return tx_hash

    async def await_confirmation(self, tx_hash: bytes, timeout: float = 120) -> str:
        """
        Wait for a transfer receipt.

        Returns:
            Transaction hash (0x-prefixed hex)

        Raises:
            SubmissionError: if the transaction reverted
        """
        receipt: TxReceipt = await self.w3.eth.wait_for_transaction_receipt(
            tx_hash, timeout=timeout
        )
        tx_hex = Web3.to_hex(tx_hash)

        if receipt["status"] != 1:
            logger.error("transfer_tx_reverted", tx_hash=tx_hex)
            raise SubmissionError(f"Transaction reverted: {tx_hex}")

        logger.info(
            "transfer_tx_confirmed",
            tx_hash=tx_hex,
            block_number=receipt["blockNumber"],
            gas_used=receipt["gasUsed"],
        )
        return tx_hex
