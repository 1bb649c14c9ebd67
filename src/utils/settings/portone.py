"""PortOne settings configuration."""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import SecretStr


class PortOneSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    PORTONE_API_SECRET: SecretStr = SecretStr("portone_test_api_secret")
    PORTONE_API_BASE_URL: str = "https://api.portone.io"
    PORTONE_TIMEOUT_SECONDS: float = 5.0
    PORTONE_CURRENCY: str = "KRW"

    def validate_prod(self) -> None:
        if self.PORTONE_API_SECRET.get_secret_value() == "portone_test_api_secret":
            raise ValueError("PORTONE_API_SECRET must be set in production")


portone_settings = PortOneSettings()
