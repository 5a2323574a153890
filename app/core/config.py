"""
Leakwatch - Revenue Leak Scanner
Configuration settings
"""

from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # App Info
    app_name: str = "Leakwatch - Revenue Leak Scanner"
    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Shopify App Credentials
    shopify_api_key: str = ""
    shopify_api_secret: str = ""
    shopify_api_version: str = "2025-01"
    shopify_scopes: str = "read_products,read_orders,read_themes,read_content,write_discounts"

    # Development only: used with ?shop= when debug is on and no session token is sent
    shopify_dev_access_token: Optional[str] = None

    # App URL (embedded app host)
    app_url: str = "http://localhost:8000"

    # CORS
    cors_origins: str = "*"

    # Scan behaviour
    graphql_timeout: float = 30.0
    concurrent_optional_sections: bool = True
    orders_lookback_days: int = 365

    # Recovery actions
    reminder_relay_url: str = ""
    reminder_relay_api_key: str = ""
    reminder_from_address: str = "no-reply@leakwatch.app"
    discount_valid_days: int = 7

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def shopify_scopes_list(self) -> List[str]:
        """Parse Shopify scopes from comma-separated string"""
        return [scope.strip() for scope in self.shopify_scopes.split(",")]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


# Global settings instance
settings = Settings()
