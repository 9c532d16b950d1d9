"""
Relay loop - pulls pending payments from the Fisher and submits the
sponsored transfers on-chain.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import structlog
from web3 import Web3

from .config import Settings
from .errors import ConfigurationError, SponsorshipError, SubmissionError
from .evm import EvmClient
from .fisher import Fisher
from .payment import Payment, SponsorshipSnapshot
from .sponsorship import GasSponsor

logger = structlog.get_logger()

INSUFFICIENT_GAS_MESSAGE = "Insufficient gas to sponsor transaction"


@dataclass
class RelayResult:
    """Outcome of relaying one payment."""

    payment_id: str
    success: bool
    tx_hash: Optional[str] = None
    error: Optional[str] = None


@dataclass
class RelayerState:
    """Current relayer state."""

    is_running: bool = False
    is_processing: bool = False
    last_tick_time: Optional[datetime] = None
    payments_completed: int = 0
    payments_failed: int = 0
    ticks_skipped: int = 0


@dataclass
class RelayerStatus:
    """Snapshot of the relay loop for status endpoints."""

    is_running: bool
    is_processing: bool
    queue_length: int
    relayer_address: str
    last_tick_time: Optional[datetime]
    payments_completed: int
    payments_failed: int
    ticks_skipped: int


class Relayer:
    """
    Periodic relay loop.

    Each tick processes the pending payments one at a time, so the
    relaying account has a single ordered stream of outgoing transactions.
    A tick that comes due while the previous one is still running is
    skipped, not queued.
    """

    def __init__(
        self,
        fisher: Fisher,
        evm: EvmClient,
        settings: Settings,
        sponsor: Optional[GasSponsor] = None,
    ):
        self.fisher = fisher
        self.evm = evm
        self.settings = settings
        self.sponsor = sponsor or GasSponsor(
            evm,
            reserve_wei=settings.gas_reserve_wei,
            default_gas_estimate=settings.default_gas_estimate,
        )
        self.state = RelayerState()
        self._loop_task: Optional[asyncio.Task] = None
        self._tick_task: Optional[asyncio.Task] = None

        logger.info(
            "relayer_initialized",
            relayer=evm.address,
            poll_interval=settings.poll_interval_seconds,
            confirmation_timeout=settings.confirmation_timeout_seconds,
            sponsor_gas_units=settings.sponsor_gas_units,
            tokens=sorted(settings.token_addresses),
        )

    # ------------------------------------------------------------------
    # Loop control
    # ------------------------------------------------------------------

    def start(self) -> asyncio.Task:
        """Start the relay loop on the running event loop."""
        if self._loop_task is None or self._loop_task.done():
            self._loop_task = asyncio.create_task(self.run())
        return self._loop_task

    async def run(self) -> None:
        """Fire a tick every poll interval until stopped."""
        self.state.is_running = True
        interval = self.settings.poll_interval_seconds

        logger.info("relayer_starting", poll_interval=interval)

        while self.state.is_running:
            if self.state.is_processing:
                self.state.ticks_skipped += 1
                logger.debug("tick_skipped", ticks_skipped=self.state.ticks_skipped)
            else:
                self._tick_task = asyncio.create_task(self.tick())
            await asyncio.sleep(interval)

    async def stop(self) -> None:
        """Stop the loop and let an in-flight tick finish."""
        self.state.is_running = False
        logger.info("relayer_stopping")

        if self._loop_task is not None:
            self._loop_task.cancel()
            try:
                await self._loop_task
            except asyncio.CancelledError:
                pass
            self._loop_task = None

        if self._tick_task is not None and not self._tick_task.done():
            await self._tick_task
        self._tick_task = None

    # ------------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------------

    async def tick(self) -> list[RelayResult]:
        """
        Run one processing pass over the pending payments.

        Returns list of relay results (empty if the tick was skipped).
        """
        if self.state.is_processing:
            self.state.ticks_skipped += 1
            logger.debug("tick_skipped", ticks_skipped=self.state.ticks_skipped)
            return []

        self.state.is_processing = True
        results: list[RelayResult] = []

        try:
            pending = self.fisher.get_pending_payments()
            if pending:
                logger.info("tick_started", pending=len(pending))

            for payment in pending:
                result = await self._process_payment(payment)
                if result is None:
                    continue
                results.append(result)

                if result.success:
                    self.state.payments_completed += 1
                else:
                    self.state.payments_failed += 1

        except Exception as e:
            logger.error("tick_error", error=str(e))
        finally:
            self.state.is_processing = False
            self.state.last_tick_time = datetime.now(timezone.utc)

        if results:
            logger.info(
                "tick_complete",
                processed=len(results),
                completed=self.state.payments_completed,
                failed=self.state.payments_failed,
            )
        return results

    async def _process_payment(self, payment: Payment) -> Optional[RelayResult]:
        """Sponsor and submit one payment, recording the outcome in the Fisher."""
        # Skip payments whose state changed since the pending snapshot
        if not self.fisher.mark_processing(payment.id):
            return None

        try:
            if not await self.sponsor.can_sponsor(self.settings.sponsor_gas_units):
                raise SponsorshipError(INSUFFICIENT_GAS_MESSAGE)

            tx_hash = await self._execute_transfer(payment)

        except Exception as e:
            error = str(e)
            logger.error(
                "payment_relay_error",
                payment_id=payment.id,
                error_type=type(e).__name__,
                error=error,
            )
            self.fisher.mark_failed(payment.id, error)
            return RelayResult(payment_id=payment.id, success=False, error=error)

        self.fisher.mark_completed(payment.id, tx_hash)
        return RelayResult(payment_id=payment.id, success=True, tx_hash=tx_hash)

    async def _execute_transfer(self, payment: Payment) -> str:
        """Submit the ERC-20 transfer and wait for its receipt."""
        token_address = self.settings.token_address(payment.token)
        if not token_address:
            raise ConfigurationError(f"Token {payment.token} not configured")

        logger.info(
            "executing_transfer",
            payment_id=payment.id,
            amount=payment.amount,
            token=payment.token,
            to=payment.recipient,
        )

        tx_hash = await self.evm.submit_transfer(
            token_address, payment.recipient, int(payment.amount)
        )

        timeout = self.settings.confirmation_timeout_seconds
        try:
            return await asyncio.wait_for(
                self.evm.await_confirmation(tx_hash, timeout=timeout),
                timeout=timeout,
            )
        except asyncio.TimeoutError as e:
            raise SubmissionError(
                f"Transaction {Web3.to_hex(tx_hash)} not confirmed within {timeout:g}s"
            ) from e

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def get_status(self) -> RelayerStatus:
        return RelayerStatus(
            is_running=self.state.is_running,
            is_processing=self.state.is_processing,
            queue_length=len(self.fisher.get_pending_payments()),
            relayer_address=self.evm.address,
            last_tick_time=self.state.last_tick_time,
            payments_completed=self.state.payments_completed,
            payments_failed=self.state.payments_failed,
            ticks_skipped=self.state.ticks_skipped,
        )

    async def get_gas_sponsorship(self) -> SponsorshipSnapshot:
        return await self.sponsor.get_sponsorship()
