"""
CLI entry point for the EVVM relayer.
"""

import asyncio
from typing import Optional

import typer
from web3 import Web3

from .config import Settings, get_settings
from .errors import MalformedPayloadError, ValidationError
from .log import configure_logging
from .qr import PLACEHOLDER_SENDER, QRPaymentCodec
from .validation import validate_payment_request

app = typer.Typer(
    name="evvm-relayer",
    help="EVVM gasless stablecoin relayer",
    add_completion=False,
)

qr_app = typer.Typer(help="Encode and decode QR payment payloads")
app.add_typer(qr_app, name="qr")


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind host (default: HOST)"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Bind port (default: PORT)"),
) -> None:
    """
    Run the HTTP API and the relay loop.
    """
    import uvicorn

    settings = get_settings()
    configure_logging(settings.log_level, settings.log_json)

    if not settings.relayer_private_key:
        typer.echo("Error: RELAYER_PRIVATE_KEY is not configured", err=True)
        raise typer.Exit(code=1)

    uvicorn.run(
        "evvm_relayer.main:app",
        host=host or settings.host,
        port=port or settings.port,
        log_level=settings.log_level.lower(),
    )


async def _check(settings: Settings) -> None:
    from .evm import EvmClient
    from .sponsorship import GasSponsor

    evm = EvmClient(settings.rpc_url, settings.require_relayer_key(), settings.chain_id)

    typer.echo("1. Connecting to RPC...")
    if not await evm.check_connectivity():
        raise ConnectionError(f"RPC endpoint {settings.rpc_url} is unreachable")
    chain_id = await evm.get_chain_id()
    typer.echo(f"   Connected (chain id {chain_id})")
    if chain_id != settings.chain_id:
        typer.echo(f"   Warning: configured MATE_CHAIN_ID is {settings.chain_id}")

    block = await evm.get_block_number()
    typer.echo(f"2. Current block: {block}")

    balance = await evm.read_balance()
    typer.echo(f"3. Relayer {evm.address}")
    typer.echo(f"   Balance: {Web3.from_wei(balance, 'ether')} ({balance} wei)")

    typer.echo("4. Token balances:")
    for symbol in settings.supported_tokens:
        address = settings.token_address(symbol)
        if not address:
            typer.echo(f"   {symbol}: not configured")
            continue
        token_balance = await evm.read_token_balance(address)
        typer.echo(f"   {symbol} ({address}): {token_balance}")

    sponsor = GasSponsor(
        evm,
        reserve_wei=settings.gas_reserve_wei,
        default_gas_estimate=settings.default_gas_estimate,
    )
    snapshot = await sponsor.get_sponsorship()
    can_sponsor = await sponsor.can_sponsor(settings.sponsor_gas_units)
    typer.echo("5. Gas sponsorship:")
    typer.echo(f"   Gas price: {snapshot.gas_price_wei} wei")
    typer.echo(f"   Cost per transfer: {snapshot.cost_per_tx_wei} wei")
    typer.echo(f"   Transfers covered: {snapshot.max_transactions}")
    typer.echo(f"   Can sponsor next transfer: {'yes' if can_sponsor else 'no'}")


@app.command()
def check() -> None:
    """
    Check RPC connectivity, relayer balances and sponsorship capacity.
    """
    settings = get_settings()
    configure_logging(settings.log_level, json_logs=False)

    if not settings.relayer_private_key:
        typer.echo("Error: RELAYER_PRIVATE_KEY is not configured", err=True)
        raise typer.Exit(code=1)

    try:
        asyncio.run(_check(settings))
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)


@qr_app.command("encode")
def qr_encode(
    to: str = typer.Argument(..., help="Recipient address"),
    amount: str = typer.Argument(..., help="Amount in the token's smallest unit"),
    token: str = typer.Argument(..., help="Token symbol"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="Payment description"),
) -> None:
    """
    Build a payment request QR payload.
    """
    settings = get_settings()

    try:
        validate_payment_request(PLACEHOLDER_SENDER, to, amount, token, settings.supported_tokens)
    except ValidationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    typer.echo(QRPaymentCodec(settings.qr_base_url).encode(to, amount, token, description))


@qr_app.command("decode")
def qr_decode(payload: str = typer.Argument(..., help="QR payload")) -> None:
    """
    Decode a QR payload (fields are shown as-is, without validation).
    """
    settings = get_settings()

    try:
        decoded = QRPaymentCodec(settings.qr_base_url).decode(payload)
    except MalformedPayloadError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    for name in ("to", "amount", "token", "sender", "id", "description"):
        value = getattr(decoded, name)
        if value is not None:
            typer.echo(f"{name}: {value}")

    if decoded.missing_fields:
        typer.echo(f"Missing required fields: {', '.join(decoded.missing_fields)}", err=True)
        raise typer.Exit(code=2)


@app.command()
def version() -> None:
    """Show the relayer version."""
    from evvm_relayer import __version__
    typer.echo(f"evvm-relayer v{__version__}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
