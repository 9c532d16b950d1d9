"""
EVVM Relayer API - gasless stablecoin payments.

Provides REST endpoints for:
- Registering payments (POST /api/payments)
- Payment status and pending queue (GET /api/payments/{id}, GET /api/payments)
- Relayer statistics (GET /api/stats)
- QR payment payloads (POST /api/qr/generate, POST /api/qr/parse)
- Health checks (GET /api/health)
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator, Optional

import structlog
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .auth import require_intake_token
from .config import Settings, get_settings
from .errors import MalformedPayloadError, PaymentNotFoundError, ValidationError
from .evm import EvmClient
from .fisher import Fisher
from .log import configure_logging
from .models import (
    CreatePaymentRequest,
    CreatePaymentResponse,
    ErrorResponse,
    GasSponsorshipResponse,
    GenerateQRRequest,
    GenerateQRResponse,
    HealthResponse,
    ParsedQRResponse,
    ParseQRRequest,
    PaymentResponse,
    RegistryStatsResponse,
    RelayerStatusResponse,
    StatsResponse,
)
from .payment import PaymentEvent, PaymentRequest
from .qr import PLACEHOLDER_SENDER, QRPaymentCodec
from .relayer import Relayer
from .validation import validate_address, validate_amount, validate_payment_request, validate_token

logger = structlog.get_logger()


# Global components (initialized at startup)
_fisher: Fisher | None = None
_relayer: Relayer | None = None


def _log_event(event: PaymentEvent) -> None:
    logger.info("payment_event", type=event.type.value, payment_id=event.payment.id)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    global _fisher, _relayer

    settings = get_settings()
    configure_logging(settings.log_level, settings.log_json)

    # Refuse to start without a relaying credential
    private_key = settings.require_relayer_key()

    evm_client = EvmClient(
        rpc_url=settings.rpc_url,
        private_key=private_key,
        chain_id=settings.chain_id,
    )
    _fisher = Fisher(supported_tokens=settings.supported_tokens)
    _fisher.subscribe(_log_event)
    _relayer = Relayer(_fisher, evm_client, settings)
    _relayer.start()

    logger.info(
        "API started",
        version=__version__,
        host=settings.host,
        port=settings.port,
        rpc_url=settings.rpc_url,
        relayer=evm_client.address,
    )

    yield

    await _relayer.stop()
    logger.info("API stopped")


app = FastAPI(
    title="EVVM Relayer API",
    description="Gasless stablecoin payments with sponsored gas",
    version=__version__,
    lifespan=lifespan,
)


_settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Dependencies
# ============================================================================


def get_fisher() -> Fisher:
    if _fisher is None:
        raise HTTPException(status_code=503, detail="Fisher not initialized")
    return _fisher


def get_relayer() -> Relayer:
    if _relayer is None:
        raise HTTPException(status_code=503, detail="Relayer not initialized")
    return _relayer


def get_optional_relayer() -> Optional[Relayer]:
    return _relayer


def get_codec(settings: Settings = Depends(get_settings)) -> QRPaymentCodec:
    return QRPaymentCodec(settings.qr_base_url)


# ============================================================================
# Error handlers
# ============================================================================


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    logger.info("request_rejected", path=request.url.path, code=exc.code.value, details=exc.message)
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(
            error="Validation failed", details=exc.message, code=exc.code.value
        ).model_dump(),
    )


@app.exception_handler(RequestValidationError)
async def request_body_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    details = f"{location}: {first.get('msg', 'invalid value')}" if location else first.get("msg")
    logger.info("request_rejected", path=request.url.path, details=details)
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(error="Invalid request body", details=details).model_dump(exclude_none=True),
    )


@app.exception_handler(PaymentNotFoundError)
async def not_found_handler(request: Request, exc: PaymentNotFoundError) -> JSONResponse:
    return JSONResponse(
        status_code=404,
        content=ErrorResponse(error="Payment not found", details=str(exc)).model_dump(exclude_none=True),
    )


@app.exception_handler(MalformedPayloadError)
async def malformed_payload_handler(request: Request, exc: MalformedPayloadError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(error="Invalid QR data", details=str(exc)).model_dump(exclude_none=True),
    )


# ============================================================================
# Health Check
# ============================================================================


@app.get("/api/health", response_model=HealthResponse)
async def health_check(relayer: Optional[Relayer] = Depends(get_optional_relayer)) -> HealthResponse:
    """Service status and relaying account address."""
    running = relayer is not None and relayer.state.is_running

    return HealthResponse(
        status="ok" if running else "degraded",
        version=__version__,
        relayer_address=relayer.evm.address if relayer else None,
        timestamp=datetime.now(timezone.utc),
    )


# ============================================================================
# Payments
# ============================================================================


@app.post(
    "/api/payments",
    response_model=CreatePaymentResponse,
    responses={400: {"model": ErrorResponse}, 401: {"description": "Missing or invalid API token"}},
    dependencies=[Depends(require_intake_token)],
)
async def create_payment(
    request: CreatePaymentRequest,
    fisher: Fisher = Depends(get_fisher),
) -> CreatePaymentResponse:
    """
    Register a payment for sponsored execution.

    The payment starts pending and is picked up by the next relay tick.
    """
    payment_id = fisher.intake(
        PaymentRequest(
            sender=request.sender,
            recipient=request.to,
            amount=request.amount,
            token=request.token,
            metadata=request.metadata,
        )
    )
    payment = fisher.get_payment(payment_id)

    return CreatePaymentResponse(
        success=True,
        payment_id=payment.id,
        status=payment.status.value,
    )


@app.get("/api/payments", response_model=list[PaymentResponse])
async def list_pending_payments(fisher: Fisher = Depends(get_fisher)) -> list[PaymentResponse]:
    """All payments still waiting for the relayer, oldest first."""
    pending = sorted(fisher.get_pending_payments(), key=lambda p: p.created_at)
    return [PaymentResponse.from_payment(p) for p in pending]


@app.get("/api/payments/{payment_id}", response_model=PaymentResponse)
async def get_payment(payment_id: str, fisher: Fisher = Depends(get_fisher)) -> PaymentResponse:
    """Full record of one payment."""
    return PaymentResponse.from_payment(fisher.get_payment(payment_id))


@app.get("/api/payments/{payment_id}/qr", response_model=GenerateQRResponse)
async def get_payment_qr(
    payment_id: str,
    fisher: Fisher = Depends(get_fisher),
    codec: QRPaymentCodec = Depends(get_codec),
) -> GenerateQRResponse:
    """QR payload referencing a registered payment."""
    payment = fisher.get_payment(payment_id)
    qr_data = codec.encode_payment(payment)

    return GenerateQRResponse(
        qr_data=qr_data,
        deep_link=qr_data,
        description=f"Pay {payment.amount} {payment.token} to {payment.recipient}",
    )


# ============================================================================
# Stats
# ============================================================================


@app.get("/api/stats", response_model=StatsResponse)
async def get_stats(
    fisher: Fisher = Depends(get_fisher),
    relayer: Relayer = Depends(get_relayer),
) -> StatsResponse:
    """Registry counts, relay loop status and gas sponsorship capacity."""
    sponsorship = None
    try:
        snapshot = await relayer.get_gas_sponsorship()
        sponsorship = GasSponsorshipResponse.from_snapshot(snapshot)
    except Exception as e:
        logger.error("Failed to read gas sponsorship", error=str(e))

    return StatsResponse(
        fisher=RegistryStatsResponse.from_stats(fisher.get_stats()),
        relayer=RelayerStatusResponse.from_status(relayer.get_status()),
        gas_sponsorship=sponsorship,
    )


# ============================================================================
# QR Payloads
# ============================================================================


@app.post("/api/qr/generate", response_model=GenerateQRResponse)
async def generate_qr(
    request: GenerateQRRequest,
    settings: Settings = Depends(get_settings),
    codec: QRPaymentCodec = Depends(get_codec),
) -> GenerateQRResponse:
    """Build a payment request payload for a wallet to scan."""
    validate_payment_request(
        PLACEHOLDER_SENDER,
        request.to,
        request.amount,
        request.token,
        settings.supported_tokens,
    )

    qr_data = codec.encode(request.to, request.amount, request.token, request.description)

    return GenerateQRResponse(
        qr_data=qr_data,
        deep_link=qr_data,
        description=f"Pay {request.amount} {request.token} to {request.to}",
    )


@app.post("/api/qr/parse", response_model=ParsedQRResponse)
async def parse_qr(
    request: ParseQRRequest,
    settings: Settings = Depends(get_settings),
    codec: QRPaymentCodec = Depends(get_codec),
) -> ParsedQRResponse:
    """Decode a payment payload and validate its fields."""
    decoded = codec.decode(request.qr_data)

    if decoded.missing_fields:
        raise MalformedPayloadError(
            f"Missing required fields: {', '.join(decoded.missing_fields)}"
        )

    validate_address(decoded.to, "to (recipient address)")
    validate_amount(decoded.amount, "amount")
    validate_token(decoded.token, "token", settings.supported_tokens)
    if decoded.sender:
        validate_address(decoded.sender, "from (sender address)")

    return ParsedQRResponse(
        to=decoded.to,
        amount=decoded.amount,
        token=decoded.token,
        sender=decoded.sender,
        id=decoded.id,
        description=decoded.description,
    )
