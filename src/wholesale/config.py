"""Runtime settings for the wholesale engine, loaded from the environment.

Both pricing flows are spelled out here as named values: the cart preview and
the full checkout disagree on the free-shipping threshold and the flat fee,
and only checkout charges tax. Neither flow is treated as the default.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from ``WHOLESALE_*`` environment variables."""

    # ── Cart preview flow ─────────────────────────────────
    cart_preview_free_shipping_threshold: float = 20000.0
    cart_preview_shipping_fee: float = 300.0

    # ── Checkout flow ─────────────────────────────────────
    checkout_free_shipping_threshold: float = 50000.0
    checkout_shipping_fee: float = 500.0
    checkout_tax_rate: float = 0.17

    # ── Promotions and payment ────────────────────────────
    promo_codes: dict[str, float] = Field(default_factory=lambda: {"SAVE10": 10.0, "WELCOME15": 15.0})
    payment_methods: list[str] = Field(default_factory=lambda: ["jazzcash", "easypaisa", "bank", "card", "cod"])
    currency: str = "PKR"

    # ── Cart service client ───────────────────────────────
    cart_service_url: str = "http://localhost:8000"
    client_timeout_seconds: float = 10.0
    client_connect_retries: int = 2

    # ── Order-creation service ────────────────────────────
    order_service_url: str | None = None
    order_service_timeout_seconds: float = 15.0

    # ── Logging ───────────────────────────────────────────
    log_dir: str | None = None

    model_config = {
        "env_prefix": "WHOLESALE_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()
