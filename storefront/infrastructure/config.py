"""Application configuration.

Loads settings from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API
    api_version: str = "0.1.0"
    debug: bool = False
    service_name: str = "storefront-catalog"
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    # Catalog queries
    category_page_size: int = Field(default=20, ge=1, description="Default categories per page")
    product_page_size: int = Field(default=10, ge=1, description="Default products per page")
    search_result_limit: int = Field(default=10, ge=1, description="Default quick search size")
    max_page_size: int = Field(default=100, ge=1, description="Upper bound for any page size")

    # Catalog data
    seed_demo_data: bool = True
    strict_tree_integrity: bool = False

    # Logging
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
