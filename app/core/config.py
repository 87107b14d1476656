"""Application configuration."""
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str = "sqlite+aiosqlite:///./coffee_orders.db"

    # Shop
    shop_name: str = "NYC Coffee"
    tax_rate: float = 0.08875  # NYC sales tax
    menu_file: Optional[str] = None

    # Fence labels used by the cashier model for side-channel blocks
    cart_block_label: str = "cart"
    analytics_block_label: str = "analytics"
    order_block_label: str = "json"

    # Logging
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


settings = Settings()
