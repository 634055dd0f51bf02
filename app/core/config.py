"""
Core configuration and settings for the Review Syndication Service
Following FastAPI best practices for configuration management
"""

from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Config(BaseSettings):
    """Application configuration with environment variable support"""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Service information
    service_name: str = Field(default="review-syndication-service")
    service_version: str = Field(default="1.0.0")
    api_version: str = Field(default="1.0.0")
    environment: str = Field(default="development")

    # Server configuration
    port: int = Field(default=8010)
    host: str = Field(default="0.0.0.0")  # nosec B104

    # Database configuration
    mongodb_host: str = Field(default="localhost")
    mongodb_port: int = Field(default=27019)
    mongodb_username: Optional[str] = Field(default=None)
    mongodb_password: Optional[str] = Field(default=None)
    mongodb_database: str = Field(default="reviewdb")

    @property
    def mongodb_url(self) -> str:
        """Construct MongoDB connection URL"""
        if self.mongodb_username and self.mongodb_password:
            return (
                f"mongodb://{self.mongodb_username}:{self.mongodb_password}"
                f"@{self.mongodb_host}:{self.mongodb_port}/{self.mongodb_database}?authSource=admin"
            )
        return f"mongodb://{self.mongodb_host}:{self.mongodb_port}/{self.mongodb_database}"

    # Logging configuration
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console")
    log_to_file: bool = Field(default=False)
    log_to_console: bool = Field(default=True)
    log_file_path: str = Field(default="logs/review-syndication-service.log")

    # Tenant resolution
    shop_header: str = Field(default="X-Shop-Domain")

    # Catalog publishing (Dapr service invocation)
    dapr_http_port: int = Field(default=3500)
    catalog_app_id: str = Field(default="product-service")
    catalog_metafield_namespace: str = Field(default="reviews")
    catalog_rating_key: str = Field(default="rating")
    catalog_count_key: str = Field(default="count")
    catalog_timeout_seconds: float = Field(default=5.0, gt=0)

    # Upper bound for every store call issued by the engines
    store_timeout_seconds: float = Field(default=10.0, gt=0)

    # Review submission rules
    review_max_word_count: int = Field(default=500, ge=1)
    review_max_images: int = Field(default=5, ge=0)


# Global config instance
config = Config()
