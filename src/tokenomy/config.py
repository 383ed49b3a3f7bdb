"""Client environment using pydantic-settings with environment variable loading."""

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ADDRESS = "https://api.tokenomy.com"


class Environment(BaseSettings):
    """Connection and credential settings for the REST API v2 client.

    Token and secret default to the TOKENOMY_TOKEN and TOKENOMY_SECRET
    environment variables; explicit arguments override them. Without both,
    the client can only access the public API.
    """

    model_config = SettingsConfigDict(
        env_prefix="TOKENOMY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    address: str = DEFAULT_ADDRESS
    token: SecretStr = SecretStr("")
    secret: SecretStr = SecretStr("")
    is_insecure: bool = False
    timeout_seconds: float = 30.0
    log_level: str = "INFO"

    @field_validator("address")
    @classmethod
    def _default_address(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        return value or DEFAULT_ADDRESS

    @property
    def has_token(self) -> bool:
        return bool(self.token.get_secret_value())

    @property
    def has_credentials(self) -> bool:
        """True when both token and secret are set, required for private calls."""
        return self.has_token and bool(self.secret.get_secret_value())
