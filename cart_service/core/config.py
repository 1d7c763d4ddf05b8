"""Cart Service Configuration"""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment"""

    model_config = SettingsConfigDict(
        env_file="config/.env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Storefront Cart Service"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8001

    # Commerce platform
    shopify_store_domain: str = "example.myshopify.com"
    shopify_admin_access_token: Optional[str] = None
    shopify_admin_api_version: str = "2024-10"
    shopify_storefront_access_token: Optional[str] = None
    shopify_storefront_api_version: str = "2024-10"
    platform_timeout_seconds: float = 10.0

    # External diamond feed
    catalog_search_base_url: str = "http://localhost:8108"
    catalog_search_api_key: Optional[str] = None

    # Storage
    cart_ttl_seconds: int = 7 * 24 * 60 * 60
    deposit_session_ttl_seconds: int = 24 * 60 * 60
    provisioning_cache_ttl_seconds: int = 60 * 60

    # Provisioning
    default_source_type: str = "labgrown"

    # Partial payments
    deposit_ratio: float = 0.30
    deposit_minimum: float = 50.00

    # Checkout pre-flight
    availability_max_attempts: int = 4
    availability_delay_seconds: float = 1.5

    @property
    def admin_api_url(self) -> str:
        """Admin GraphQL endpoint"""
        return (
            f"https://{self.shopify_store_domain}/admin/api/"
            f"{self.shopify_admin_api_version}/graphql.json"
        )

    @property
    def storefront_api_url(self) -> str:
        """Storefront GraphQL endpoint"""
        return (
            f"https://{self.shopify_store_domain}/api/"
            f"{self.shopify_storefront_api_version}/graphql.json"
        )

    @property
    def platform_configured(self) -> bool:
        """Check if platform credentials are configured"""
        return all([
            self.shopify_admin_access_token,
            self.shopify_storefront_access_token,
        ])


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
