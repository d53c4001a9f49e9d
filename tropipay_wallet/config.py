"""Configuration management using Pydantic Settings"""

import logging
from typing import Dict

from pydantic_settings import BaseSettings, SettingsConfigDict

ENVIRONMENTS = ("development", "production")


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Local cache
    database_url: str = "sqlite:///./tropipay_wallet.db"

    # TropiPay API
    tropipay_dev_api_url: str = "https://sandbox.tropipay.com/api/v3"
    tropipay_prod_api_url: str = "https://www.tropipay.com/api/v3"
    tropipay_default_env: str = "development"
    device_id: str = "tropipay-wallet-app"

    # Service
    service_name: str = "tropipay-wallet"
    version: str = "2.0.0"
    log_level: str = "INFO"
    enable_api_logging: bool = False
    frontend_url: str = "http://localhost:3000"

    # HTTP Client
    http_timeout_seconds: float = 10.0
    rate_limit_retry_enabled: bool = True
    default_retry_after_seconds: float = 5.0

    # Session
    auto_refresh_token: bool = True
    token_expiry_buffer_seconds: int = 300  # 5 minutes
    demo_sms_code: str = "123456"

    @property
    def api_urls(self) -> Dict[str, str]:
        return {
            "development": self.tropipay_dev_api_url,
            "production": self.tropipay_prod_api_url,
        }

    def is_valid_environment(self, environment: str | None) -> bool:
        return environment in ENVIRONMENTS

    def get_api_url(self, environment: str | None = None) -> str:
        """Resolve the TropiPay base URL, falling back to development for unknown names"""
        env = environment or self.tropipay_default_env
        if not self.is_valid_environment(env):
            logging.warning(f"Invalid TropiPay environment: {env}. Using development.")
            env = "development"
        return self.api_urls[env]


settings = Settings()
