"""Application settings for the ordering service.

Values come from the environment (or a `.env` file at the project root).
Protean's own configuration (providers, event processing) lives in
`pyproject.toml` under `[tool.protean]`.
"""

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings

_ROOT = Path(__file__).resolve().parents[3]
_ENV_FILE = _ROOT / ".env"


class Settings(BaseSettings):
    # DodoPayments
    dodo_payments_api_key: str = ""
    dodo_payments_base_url: str = "https://api.dodopayments.com"
    dodo_payments_webhook_secret: str = ""

    # Coinbase Commerce
    coinbase_api_key: str = ""
    coinbase_base_url: str = "https://api.commerce.coinbase.com"
    coinbase_webhook_secret: str = ""

    # Seconds before an outbound provider or catalog call is abandoned
    payment_provider_timeout: float = 10.0

    # Public URLs used for provider callbacks and customer redirects
    base_url: str = "http://localhost:8000"
    frontend_url: str = "http://localhost:3000"

    # Catalog service; empty means the in-memory catalog is used
    catalog_base_url: str = ""

    # Bearer token verification
    auth_secret_key: str = "change-me-in-production"
    auth_algorithm: str = "HS256"
    operator_role: str = "admin"

    cors_origins: str = "*"

    model_config = {
        "env_file": _ENV_FILE if _ENV_FILE.is_file() else ".env",
        "extra": "ignore",
    }

    @field_validator(
        "dodo_payments_webhook_secret",
        "coinbase_webhook_secret",
        "dodo_payments_api_key",
        "coinbase_api_key",
        mode="before",
    )
    @classmethod
    def strip_secret(cls, v: str | None) -> str:
        return (v or "").strip()

    @field_validator("dodo_payments_base_url", "coinbase_base_url", "base_url", "frontend_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: str | None) -> str:
        return (v or "").strip().rstrip("/")


settings = Settings()
