"""
Configuration for the EVVM relayer.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError


class Settings(BaseSettings):
    """
    Relayer configuration settings.

    All settings can be overridden via environment variables.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # API Server
    host: str = Field(default="127.0.0.1", description="API host", alias="HOST")
    port: int = Field(default=3000, description="API port", alias="PORT")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="info", description="Log level", alias="LOG_LEVEL")
    log_json: bool = Field(
        default=True,
        description="Render logs as JSON (console renderer otherwise)",
        alias="LOG_JSON",
    )

    # Authentication
    # When API_TOKEN is set, payment intake requires the X-API-Key header.
    api_token: Optional[str] = Field(
        default=None,
        description="API token for payment intake (unset = no auth, local dev only)",
    )
    allowed_origins: list[str] = Field(
        default=["http://localhost:3000", "http://127.0.0.1:3000"],
        description="CORS allowed origins",
    )

    # EVM network
    rpc_url: str = Field(
        default="https://rpc.mate.evvm.dev",
        description="EVM RPC URL",
        alias="MATE_RPC_URL",
    )
    chain_id: int = Field(default=1337, description="EVM chain ID", alias="MATE_CHAIN_ID")
    relayer_private_key: str = Field(
        default="",
        description="Private key of the relaying account (pays gas)",
        alias="RELAYER_PRIVATE_KEY",
    )

    # Tokens
    supported_tokens: list[str] = Field(
        default=["MATE"],
        description="Whitelisted token symbols",
        alias="SUPPORTED_TOKENS",
    )
    token_addresses: dict[str, str] = Field(
        default_factory=dict,
        description='Token symbol -> contract address, e.g. {"MATE": "0x..."}',
        alias="TOKEN_ADDRESSES",
    )

    # Relay loop
    poll_interval_seconds: float = Field(
        default=5.0, gt=0, description="Relay loop cadence", alias="POLL_INTERVAL_SECONDS"
    )
    confirmation_timeout_seconds: float = Field(
        default=120.0,
        gt=0,
        description="Max wait for a transfer receipt before failing the payment",
        alias="CONFIRMATION_TIMEOUT_SECONDS",
    )

    # Gas sponsorship
    sponsor_gas_units: int = Field(
        default=100_000,
        description="Conservative gas units checked before each submission",
        alias="SPONSOR_GAS_UNITS",
    )
    default_gas_estimate: int = Field(
        default=65_000,
        description="Gas units assumed for an ERC-20 transfer when estimation fails",
        alias="DEFAULT_GAS_ESTIMATE",
    )
    gas_reserve_wei: int = Field(
        default=10**17,
        description="Minimum native balance the relaying account always keeps (0.1 ether)",
        alias="GAS_RESERVE_WEI",
    )

    # QR payloads
    qr_base_url: str = Field(default="evvm://pay", description="QR payload base URL", alias="QR_BASE_URL")

    def token_address(self, symbol: str) -> Optional[str]:
        """Contract address for a token symbol (case-insensitive), or None."""
        wanted = symbol.upper()
        for key, address in self.token_addresses.items():
            if key.upper() == wanted and address:
                return address
        return None

    def require_relayer_key(self) -> str:
        """Return the relaying private key or raise if it is missing."""
        if not self.relayer_private_key:
            raise ConfigurationError("RELAYER_PRIVATE_KEY not configured")
        return self.relayer_private_key


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
