from functools import lru_cache
from typing import Any, List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_CORS = ["http://localhost:3000", "http://localhost:5173"]


def _parse_csv(v: Any, default: List[str] | None = None) -> List[str]:
    default = default or []
    if v is None:
        return default.copy()
    if isinstance(v, list):
        return [x.strip() for x in v if isinstance(x, str) and x.strip()]
    s = str(v).strip()
    if not s:
        return default.copy()
    if s.startswith("["):
        import json
        try:
            out = json.loads(s)
        except ValueError:
            return default.copy()
        return [x.strip() for x in out if isinstance(x, str) and x.strip()] or default.copy()
    return [x.strip() for x in s.split(",") if x.strip()] or default.copy()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # App
    env: str = Field(default="development", description="ENV")
    debug: bool = Field(default=False, description="DEBUG")
    secret_key: str = Field(default="change-me-in-production-min-32-chars")
    service_name: str = "cardhavi-api"

    # MongoDB
    mongodb_uri: str = Field(default="mongodb://localhost:27017", alias="MONGODB_URI")
    mongodb_db_name: str = Field(default="cardhavi", alias="MONGODB_DB_NAME")
    mongodb_max_backoff_seconds: float = Field(default=30.0, alias="MONGODB_MAX_BACKOFF_SECONDS")

    # NOWPayments
    nowpayments_api_key: str = Field(default="", alias="NOWPAYMENTS_API_KEY")
    nowpayments_ipn_secret: str = Field(default="", alias="NOWPAYMENTS_IPN_SECRET")
    nowpayments_api_url: str = Field(default="https://api.nowpayments.io", alias="NOWPAYMENTS_API_URL")
    nowpayments_timeout_seconds: float = Field(default=15.0, alias="NOWPAYMENTS_TIMEOUT_SECONDS")
    nowpayments_pay_currencies: str = Field(default="btc,usdttrc20", alias="NOWPAYMENTS_PAY_CURRENCIES")

    # Public URLs used for gateway redirects and callbacks
    public_base_url: str = Field(default="http://localhost:5173", alias="PUBLIC_BASE_URL")
    public_api_url: str = Field(default="http://localhost:4001", alias="PUBLIC_API_URL")

    # Emails that receive the admin role at signup
    admin_emails_raw: str = Field(default="", alias="ADMIN_EMAILS")

    # Catalog
    seed_catalog: bool = Field(default=True, alias="SEED_CATALOG")

    # Sentry
    sentry_dsn: str | None = Field(default=None, alias="SENTRY_DSN")

    # CORS: env as string, exposed as list
    cors_origins_raw: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        alias="CORS_ORIGINS",
        description="Comma-separated or JSON list",
    )

    @property
    def cors_origins(self) -> List[str]:
        return _parse_csv(self.cors_origins_raw, _DEFAULT_CORS)

    @property
    def admin_emails(self) -> List[str]:
        return [e.lower() for e in _parse_csv(self.admin_emails_raw)]


@lru_cache
def get_settings() -> Settings:
    return Settings()
