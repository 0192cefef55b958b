"""Configuration system using pydantic-settings with environment variable loading."""

from decimal import Decimal
from typing import Literal

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class StoreSettings(BaseSettings):
    """Primary record store and secondary snapshot location."""

    model_config = SettingsConfigDict(env_prefix="STORE_")

    db_path: str = "data/metals.db"
    snapshot_dir: str = "data/live-data"
    snapshots_enabled: bool = True


class PricingSettings(BaseSettings):
    """History reconciliation parameters.

    The UTC offset defines which calendar day "today" is for a price write.
    """

    model_config = SettingsConfigDict(env_prefix="PRICING_")

    history_limit: int = 30
    utc_offset_minutes: int = 330  # IST, UTC+05:30


class SourceSettings(BaseSettings):
    """Observation source selection and HTTP client parameters."""

    model_config = SettingsConfigDict(env_prefix="SOURCE_")

    name: Literal["fivepaisa", "mcx", "api_ninjas"] = "fivepaisa"
    timeout_seconds: float = 15.0
    user_agent: str = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )
    api_ninjas_key: SecretStr = SecretStr("")
    usd_to_inr_rate: Decimal = Decimal("83.5")


class ApiSettings(BaseSettings):
    """HTTP API server configuration."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "0.0.0.0"
    port: int = 8080
    api_key: SecretStr = SecretStr("")
    allowed_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:3002",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:3002",
    ]


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    store: StoreSettings = StoreSettings()
    pricing: PricingSettings = PricingSettings()
    source: SourceSettings = SourceSettings()
    api: ApiSettings = ApiSettings()
