"""Application settings.

Values are read from the environment (prefix ``SHOP_``) and an optional
``.env`` file. ``SHOP_ENV`` plays the role of the deployment environment:
``test`` and ``development`` register the fake gateway, ``production`` does not.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SHOP_", env_file=".env", extra="ignore")

    env: str = "development"
    database_url: str = "sqlite:///./storefront.db"
    app_origin: str = "http://localhost:3000"
    log_level: str | None = None
    log_dir: str | None = None

    default_payment_method: str = "paystack"
    currency: str = "NGN"
    gateway_timeout: float = Field(default=15.0, gt=0)

    paystack_secret_key: str = ""
    paystack_base_url: str = "https://api.paystack.co"

    flutterwave_secret_key: str = ""
    flutterwave_secret_hash: str = ""
    flutterwave_base_url: str = "https://api.flutterwave.com/v3"

    sendgrid_api_key: str = ""
    mail_from: str = "no-reply@storefront.local"

    @property
    def is_production(self) -> bool:
        return self.env.lower() == "production"

    @property
    def payment_callback_url(self) -> str:
        return f"{self.app_origin.rstrip('/')}/payment/callback"


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings, loaded once."""
    return Settings()
