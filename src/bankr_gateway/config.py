"""
Gateway configuration.

Settings come from the process environment and an optional ``.env`` file
(environment values win). Required keys are checked together so a
misconfigured deployment reports everything missing at once.
"""

from typing import List, Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .adapters.evm.constants import (
    DEFAULT_APPROVAL_THRESHOLD,
    DEFAULT_PAYMENT_TOKEN_ADDRESS,
    DEFAULT_RPC_URL,
    MAX_UINT256,
    is_evm_address,
)
from .clients.http_client import DEFAULT_API_URL
from .engine.exceptions import ConfigurationError

DEFAULT_ENV_FILE = ".env"


class GatewaySettings(BaseSettings):
    """
    Runtime settings.

    Attributes:
        bankr_api_key: Agent API key
        private_key: Gateway wallet key used to sign approvals
        wallet_address: Expected wallet address (checked against the key)
        bankr_api_url: Agent API root
        rpc_url: JSON-RPC endpoint of the payment chain
        payment_token_address: ERC20 the agent service charges in
        proxy_token: Shared secret for ``x-proxy-token``; gate disabled when empty
        host: Bind address
        port: Bind port
        log_level: Root log level name
        cors_origin: Allowed CORS origin(s), comma separated
        request_timeout: Timeout for agent API and RPC calls (seconds)
        auto_approve: Approve the facilitator automatically on 402
        approval_threshold: Allowance (base units) below which auto-approval fires
        api_prefix: Path prefix of all routes
        debug: Expose unexpected error messages in 500 responses
    """
    model_config = SettingsConfigDict(
        env_file=DEFAULT_ENV_FILE,
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
    )

    bankr_api_key: str = Field(..., min_length=1, alias="BANKR_API_KEY")
    private_key: str = Field(..., min_length=1, alias="PRIVATE_KEY", repr=False)
    wallet_address: Optional[str] = Field(None, alias="WALLET_ADDRESS")
    bankr_api_url: str = Field(DEFAULT_API_URL, alias="BANKR_API_URL")
    rpc_url: str = Field(DEFAULT_RPC_URL, alias="RPC_URL")
    payment_token_address: str = Field(DEFAULT_PAYMENT_TOKEN_ADDRESS, alias="PAYMENT_TOKEN_ADDRESS")
    proxy_token: Optional[str] = Field(None, alias="PROXY_TOKEN", repr=False)
    host: str = Field("0.0.0.0", alias="HOST")
    port: int = Field(3000, ge=1, le=65535, alias="PORT")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    cors_origin: str = Field("*", alias="CORS_ORIGIN")
    request_timeout: float = Field(30.0, gt=0, alias="REQUEST_TIMEOUT")
    auto_approve: bool = Field(False, alias="AUTO_APPROVE")
    approval_threshold: int = Field(
        DEFAULT_APPROVAL_THRESHOLD, ge=0, le=MAX_UINT256, alias="APPROVAL_THRESHOLD"
    )
    api_prefix: str = Field("/api", alias="API_PREFIX")
    debug: bool = Field(False, alias="DEBUG")

    @field_validator("wallet_address", "payment_token_address")
    @classmethod
    def _check_address(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not is_evm_address(value):
            raise ValueError(f"not a valid address: {value}")
        return value

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origin.split(",") if origin.strip()]

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "GatewaySettings":
        """
        Build settings from the environment.

        Args:
            env_file: ``.env`` path; ``./.env`` when None. A missing file is ignored.

        Returns:
            GatewaySettings: Validated settings.

        Raises:
            ConfigurationError: If required variables are missing or a value is invalid.
        """
        try:
            return cls(_env_file=env_file or DEFAULT_ENV_FILE)
        except ValidationError as e:
            missing = [str(err["loc"][0]) for err in e.errors() if err["type"] == "missing"]
            if missing:
                raise ConfigurationError(
                    f"Missing required environment variables: {', '.join(missing)}",
                    details={"missingEnvVars": missing},
                ) from e
            raise ConfigurationError(f"Invalid configuration: {e}") from e
