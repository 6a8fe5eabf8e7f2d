"""Application settings loaded from environment variables."""

from __future__ import annotations

from decimal import Decimal

from pydantic_settings import BaseSettings

PAYPAL_SANDBOX_URL = "https://api-m.sandbox.paypal.com"
PAYPAL_LIVE_URL = "https://api-m.paypal.com"


class Settings(BaseSettings):
    """Application configuration.

    Values are read from environment variables (or a `.env` file).
    """

    # Supabase
    supabase_url: str
    supabase_anon_key: str
    supabase_service_key: str
    supabase_http_max_connections: int = 100
    supabase_http_max_keepalive_connections: int = 50
    supabase_postgrest_timeout_seconds: int = 30

    # PayPal payouts
    paypal_client_id: str = ""
    paypal_client_secret: str = ""
    paypal_mode: str = "sandbox"
    paypal_timeout_seconds: int = 20
    payout_currency: str = "PHP"
    payout_email_subject: str = "You have a payout from ZenNest"

    # Business rules
    admin_fee_rate: Decimal = Decimal("0.05")
    min_cashout_amount: Decimal = Decimal("100")
    default_credit_value: Decimal = Decimal("200")

    # App
    app_name: str = "Host Earnings API"
    app_version: str = "1.0.0"
    environment: str = "development"
    log_level: str = "INFO"
    allowed_origins: str = "http://localhost:5173"
    enable_scheduler: bool = True

    # Scheduling
    timezone: str = "UTC"
    payout_sync_interval_minutes: int = 15

    # Performance tuning
    auth_token_cache_ttl_seconds: int = 15
    auth_token_cache_max_entries: int = 1024
    slow_request_log_threshold_ms: int = 0
    slow_query_log_threshold_ms: int = 0
    profile_cache_ttl_seconds: int = 60
    data_cache_max_entries: int = 5000

    @property
    def is_production(self) -> bool:
        """Return True when running in production."""
        return self.environment == "production"

    @property
    def origins_list(self) -> list[str]:
        """Parse comma-separated ALLOWED_ORIGINS into a list."""
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    @property
    def paypal_base_url(self) -> str:
        """Return the PayPal REST host for the configured mode."""
        return PAYPAL_LIVE_URL if self.paypal_mode == "live" else PAYPAL_SANDBOX_URL

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


settings = Settings()  # type: ignore[call-arg]
