"""
Pydantic models for API requests and responses.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .payment import Payment, RegistryStats, SponsorshipSnapshot
from .relayer import RelayerStatus


def _amount_to_str(value: Any) -> Any:
    # JSON numbers are passed on as text so validate_amount reports them
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


# ============================================================================
# Payments
# ============================================================================

class CreatePaymentRequest(BaseModel):
    """Request to register a sponsored payment."""

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "from": "0x742d35cc6634c0532925a3b844bc9e7595f42bee",
                    "to": "0x8ba1f109551bd432803012645ac136ddd64dba72",
                    "amount": "1000000",
                    "token": "MATE",
                    "metadata": {"description": "Coffee", "orderId": "A-1001"},
                }
            ]
        },
    )

    sender: Optional[str] = Field(None, alias="from", description="Sender address (0x...)")
    to: Optional[str] = Field(None, description="Recipient address (0x...)")
    amount: Optional[str] = Field(None, description="Amount in the token's smallest unit")
    token: Optional[str] = Field(None, description="Token symbol")
    metadata: Optional[dict[str, Any]] = Field(None, description="Free-form metadata")

    @field_validator("amount", mode="before")
    @classmethod
    def amount_as_string(cls, value: Any) -> Any:
        return _amount_to_str(value)


class CreatePaymentResponse(BaseModel):
    """Response from registering a payment."""

    success: bool = Field(..., description="Whether the payment was registered")
    payment_id: str = Field(..., description="Payment ID")
    status: str = Field(..., description="Payment status")


class PaymentResponse(BaseModel):
    """A registered payment."""

    id: str
    sender: str = Field(..., description="Sender address")
    to: str = Field(..., description="Recipient address")
    amount: str
    token: str
    status: str
    created_at: datetime
    tx_hash: Optional[str] = Field(None, description="Transaction hash (completed only)")
    error: Optional[str] = Field(None, description="Failure reason (failed only)")
    metadata: Optional[dict[str, Any]] = None

    @classmethod
    def from_payment(cls, payment: Payment) -> "PaymentResponse":
        return cls(
            id=payment.id,
            sender=payment.sender,
            to=payment.recipient,
            amount=payment.amount,
            token=payment.token,
            status=payment.status.value,
            created_at=payment.created_at,
            tx_hash=payment.tx_hash,
            error=payment.error,
            metadata=payment.metadata,
        )


class ErrorResponse(BaseModel):
    """Error body for rejected requests."""

    error: str
    details: Optional[str] = None
    code: Optional[str] = None


# ============================================================================
# Stats
# ============================================================================

class RegistryStatsResponse(BaseModel):
    total_payments: int
    pending: int
    processing: int
    completed: int
    failed: int

    @classmethod
    def from_stats(cls, stats: RegistryStats) -> "RegistryStatsResponse":
        return cls(
            total_payments=stats.total,
            pending=stats.pending,
            processing=stats.processing,
            completed=stats.completed,
            failed=stats.failed,
        )


class RelayerStatusResponse(BaseModel):
    is_running: bool
    is_processing: bool
    queue_length: int
    relayer_address: str
    last_tick_time: Optional[datetime] = None
    payments_completed: int
    payments_failed: int
    ticks_skipped: int

    @classmethod
    def from_status(cls, status: RelayerStatus) -> "RelayerStatusResponse":
        return cls(**vars(status))


class GasSponsorshipResponse(BaseModel):
    relayer_address: str
    balance_wei: str = Field(..., description="Native balance (wei, decimal string)")
    gas_price_wei: str
    estimated_gas_per_tx: int
    cost_per_tx_wei: str
    max_transactions_supported: int

    @classmethod
    def from_snapshot(cls, snapshot: SponsorshipSnapshot) -> "GasSponsorshipResponse":
        # wei values can exceed JSON-safe integers, so they are sent as strings
        return cls(
            relayer_address=snapshot.relayer_address,
            balance_wei=str(snapshot.balance_wei),
            gas_price_wei=str(snapshot.gas_price_wei),
            estimated_gas_per_tx=snapshot.estimated_gas_per_tx,
            cost_per_tx_wei=str(snapshot.cost_per_tx_wei),
            max_transactions_supported=snapshot.max_transactions,
        )


class StatsResponse(BaseModel):
    """Registry counts, relay loop status and sponsorship capacity."""

    fisher: RegistryStatsResponse
    relayer: RelayerStatusResponse
    gas_sponsorship: Optional[GasSponsorshipResponse] = Field(
        None, description="Null when the chain could not be queried"
    )


# ============================================================================
# QR
# ============================================================================

class GenerateQRRequest(BaseModel):
    """Request to build a payment request QR payload."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "to": "0x8ba1f109551bd432803012645ac136ddd64dba72",
                    "amount": "1000000",
                    "token": "MATE",
                    "description": "Coffee",
                }
            ]
        }
    )

    to: Optional[str] = Field(None, description="Recipient address (0x...)")
    amount: Optional[str] = Field(None, description="Amount in the token's smallest unit")
    token: Optional[str] = Field(None, description="Token symbol")
    description: Optional[str] = Field(None, description="Shown to the payer")

    @field_validator("amount", mode="before")
    @classmethod
    def amount_as_string(cls, value: Any) -> Any:
        return _amount_to_str(value)


class GenerateQRResponse(BaseModel):
    qr_data: str = Field(..., description="QR payload")
    deep_link: str = Field(..., description="Wallet deep link (same as qr_data)")
    description: str = Field(..., description="Human readable summary")


class ParseQRRequest(BaseModel):
    qr_data: str = Field(..., description="QR payload to parse")


class ParsedQRResponse(BaseModel):
    to: str
    amount: str
    token: str
    sender: Optional[str] = None
    id: Optional[str] = None
    description: Optional[str] = None


# ============================================================================
# Health Check
# ============================================================================

class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Service status")
    version: str = Field(..., description="Relayer version")
    relayer_address: Optional[str] = Field(None, description="Relaying account address")
    timestamp: datetime
