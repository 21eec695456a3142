"""FluxaPay Payment Monitor - Core Configuration."""

from functools import lru_cache

from pydantic import Field, MySQLDsn
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "FluxaPay Payment Monitor"
    debug: bool = False

    # Database
    database_url: MySQLDsn = Field(..., description="MySQL connection string with aiomysql driver")

    # Redis (Celery broker and per-payment locks)
    redis_url: str = Field(
        default="redis://localhost:6379",
        description="Redis connection URL for task queue and locks",
    )

    # Stellar / Horizon
    stellar_horizon_url: str = Field(
        default="https://horizon-testnet.stellar.org",
        description="Horizon server base URL",
    )
    usdc_issuer_public_key: str = Field(
        default="GBBD47IF6LWK7P7MDEVSCWT73IQIGCEZHR7OMXMBZQ3ZONN2T4U6W23Y",
        description="Issuer account of the accepted USDC asset",
    )
    extra_assets: str = Field(
        default="",
        description="Comma-separated CODE:ISSUER pairs for additional accepted assets",
    )
    ledger_page_size: int = Field(default=10, ge=1, le=200, description="Records per Horizon page")
    ledger_timeout_seconds: float = Field(
        default=10.0, gt=0, description="Timeout for a single Horizon request"
    )

    # Payment monitor
    monitor_enabled: bool = Field(default=True, description="Schedule the monitor tasks")
    payment_monitor_interval_seconds: float = Field(
        default=120.0, gt=0, description="Seconds between monitor ticks"
    )
    payment_expiry_sweep_seconds: float = Field(
        default=60.0, gt=0, description="Seconds between expiry sweeps"
    )
    monitor_concurrency: int = Field(
        default=10, ge=1, description="Payments reconciled in parallel per tick"
    )
    monitor_lock_ttl_seconds: int = Field(
        default=60, ge=1, description="TTL of the per-payment Redis lock"
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()  # type: ignore[call-arg]
