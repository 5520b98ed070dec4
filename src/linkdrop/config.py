"""
Configuration management for the link generator.

Supports configuration via environment variables and .env files.
"""

from enum import Enum
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class NetworkType(str, Enum):
    """Sui network types."""
    MAINNET = "mainnet"
    TESTNET = "testnet"
    DEVNET = "devnet"
    LOCALNET = "localnet"


class ConfigurationError(Exception):
    """Raised when a required setting is missing or invalid."""
    pass


class LinkdropConfig(BaseSettings):
    """
    Configuration settings for the link generator.

    Settings are read from unprefixed environment variables (SECRET_KEY,
    OBJECT_TYPE, LIMIT, GAS_BUDGET, GAS_TIPS, ...) or a .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Network settings
    network: NetworkType = Field(
        default=NetworkType.MAINNET,
        description="Sui network to connect to"
    )
    rpc_url: Optional[str] = Field(
        default=None,
        description="Custom fullnode JSON-RPC URL (optional)"
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="HTTP timeout for a single RPC call"
    )

    # Signer settings
    secret_key: str = Field(
        default="",
        description="Hex-encoded Ed25519 secret key of the signer"
    )

    # Discovery settings
    object_type: str = Field(
        default="",
        description="Struct type tag of the objects to hand out"
    )
    limit: int = Field(
        default=0,
        ge=0,
        description="Maximum number of objects to process"
    )

    # Funding settings (MIST)
    gas_budget: int = Field(
        default=0,
        ge=0,
        description="Gas budget of each claim transaction"
    )
    gas_tips: int = Field(
        default=0,
        ge=0,
        description="SUI amount bundled into each link as a tip"
    )
    funding_gas_budget: int = Field(
        default=50_000_000,
        ge=1,
        description="Gas budget of the coin-splitting transaction"
    )

    # Submission settings
    concurrency_limit: int = Field(
        default=16,
        ge=0,
        description="Maximum claim transactions in flight (0 = unbounded)"
    )

    # Link settings
    link_host: str = Field(
        default="https://zksend.com",
        description="Host of the claim page"
    )
    link_path: str = Field(
        default="/claim",
        description="Path of the claim page"
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format"
    )

    @field_validator("secret_key")
    @classmethod
    def _check_secret_key(cls, value: str) -> str:
        value = value.strip()
        if value.startswith("0x"):
            value = value[2:]
        if value:
            try:
                raw = bytes.fromhex(value)
            except ValueError:
                raise ValueError("secret_key must be hex encoded")
            if len(raw) != 32:
                raise ValueError(f"secret_key must be 32 bytes, got {len(raw)}")
        return value

    @property
    def fullnode_url(self) -> str:
        """Get the appropriate fullnode URL based on network."""
        if self.rpc_url:
            return self.rpc_url

        network_urls = {
            NetworkType.MAINNET: "https://fullnode.mainnet.sui.io:443",
            NetworkType.TESTNET: "https://fullnode.testnet.sui.io:443",
            NetworkType.DEVNET: "https://fullnode.devnet.sui.io:443",
            NetworkType.LOCALNET: "http://127.0.0.1:9000",
        }
        return network_urls[self.network]

    @property
    def coin_value(self) -> int:
        """Value of each funding coin: gas budget plus tip."""
        return self.gas_budget + self.gas_tips

    def validate_for_run(self) -> None:
        """
        Check the settings a generation run cannot do without.

        Raises:
            ConfigurationError: If the secret key or object type is missing
        """
        if not self.secret_key:
            raise ConfigurationError("SECRET_KEY is not configured")
        if not self.object_type.strip():
            raise ConfigurationError("OBJECT_TYPE is not configured")


# Global config instance
_config: Optional[LinkdropConfig] = None


def get_config() -> LinkdropConfig:
    """Get or create the global configuration instance."""
    global _config
    if _config is None:
        _config = LinkdropConfig()
    return _config


def set_config(config: LinkdropConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
