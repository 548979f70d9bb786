"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

import json
from pathlib import Path

from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from coursechain.config.constants import (
    API_DEFAULT_PORT,
    EVENT_POLL_INTERVAL,
    MAX_PAGE_SIZE,
    RECEIPT_POLL_INTERVAL,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Blockchain RPC
    rpc_url: str = "http://localhost:8545"

    # Wallet (single signing credential used for all writes)
    private_key: str | None = None

    # Course contract
    contract_address: str | None = None
    deployment_file: Path = Field(
        default=Path("deployment.json"),
        description="Deployment record written by the deploy tooling",
    )

    # Lifecycle / listener tuning
    event_poll_interval: float = Field(
        default=EVENT_POLL_INTERVAL, gt=0,
        description="Event listener polling interval in seconds"
    )
    receipt_poll_interval: float = Field(
        default=RECEIPT_POLL_INTERVAL, gt=0,
        description="Receipt polling interval in seconds"
    )
    receipt_timeout: float | None = Field(
        default=None, gt=0,
        description="Optional deadline for receipt waits (None waits forever)"
    )

    # Pagination
    max_page_size: int = Field(default=MAX_PAGE_SIZE, ge=1, le=1000)

    # HTTP facade
    api_host: str = "0.0.0.0"
    api_port: int = Field(
        default=API_DEFAULT_PORT, ge=1, le=65535, description="HTTP API port"
    )

    # Application
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"
    log_file: str | None = "logs/coursechain.log"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator('contract_address')
    @classmethod
    def validate_contract_address(cls, v: str | None) -> str | None:
        """Validate contract address format."""
        if v is None or v == "":
            return None
        if not v.startswith('0x') or len(v) != 42:
            raise ValueError(
                f'Invalid contract address: {v}. '
                'Must start with 0x and be 42 characters long.'
            )
        try:
            int(v[2:], 16)
        except ValueError as exc:
            raise ValueError(f'Invalid contract address format: {v}') from exc
        return v

    @field_validator('private_key')
    @classmethod
    def validate_private_key(cls, v: str | None) -> str | None:
        """Validate private key format (32 bytes hex, optional 0x prefix)."""
        if v is None or v == "":
            return None
        raw = v[2:] if v.startswith('0x') else v
        if len(raw) != 64:
            raise ValueError('PRIVATE_KEY must be 32 bytes of hex')
        try:
            int(raw, 16)
        except ValueError as exc:
            raise ValueError('PRIVATE_KEY must be hexadecimal') from exc
        return v

    @model_validator(mode='after')
    def load_deployment_address(self) -> 'Settings':
        """Fall back to the deployment record when CONTRACT_ADDRESS is unset."""
        if self.contract_address or not self.deployment_file.exists():
            return self

        try:
            deployment = json.loads(
                self.deployment_file.read_text(encoding="utf-8")
            )
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(
                f"Could not read deployment file {self.deployment_file}: {e}"
            )
            return self

        address = deployment.get("contractAddress")
        if address:
            self.contract_address = self.validate_contract_address(address)
            logger.info(
                f"Contract address loaded from {self.deployment_file}"
            )
        return self

    @model_validator(mode='after')
    def validate_production(self) -> 'Settings':
        """Validate production-specific requirements."""
        if self.environment == 'production' and self.debug:
            raise ValueError(
                'DEBUG must be False in production environment. '
                'Set DEBUG=false in your .env file.'
            )
        return self

    def require_contract_address(self) -> str:
        """Return the configured contract address or fail loudly."""
        if not self.contract_address:
            raise ValueError(
                'CONTRACT_ADDRESS is not set and no contractAddress was found '
                f'in {self.deployment_file}. Deploy the contract first.'
            )
        return self.contract_address


# Global settings instance
settings = Settings()
