"""Storefront Configuration"""

from typing import Optional
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment"""

    # Application
    app_name: str = "Storefront Cart"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8001
    allowed_origins: str = "*"  # Comma-separated list or '*'

    # Session tokens issued by the auth provider
    session_secret: str = "dev-session-secret"
    session_algorithm: str = "HS256"
    session_issuer: Optional[str] = None

    # Cart limits
    cart_item_expiry_days: int = 30
    max_cart_items: int = 100
    max_quantity_per_item: int = 99
    min_quantity: int = 1

    # Validation
    low_stock_threshold: int = 0  # 0 disables the low stock notice

    # Pricing
    tax_rate: float = 0.08
    free_shipping_threshold: float = 50.0
    standard_shipping_cost: float = 9.99
    currency: str = "USD"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    @property
    def cors_origins(self) -> list[str]:
        """Parse allowed origins"""
        if self.allowed_origins.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
