"""
Configuration module for the Storefront Returns refund engine.
Loads settings from environment variables.
"""

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Data Store Configuration
    cosmos_endpoint: str = Field(
        default="https://storefront-nosql-db.documents.azure.com:443/",
        alias="COSMOS_ENDPOINT",
        description="Azure Cosmos DB account endpoint"
    )
    cosmos_database: str = Field(
        default="storefront",
        alias="COSMOS_DATABASE",
        description="Cosmos DB database holding orders and returns"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        alias="LOG_LEVEL",
        description="Logging level"
    )

    # Returns Configuration
    return_window_days: int = Field(
        default=30,
        alias="RETURN_WINDOW_DAYS",
        description="Days after delivery during which a return may be requested"
    )
    bonus_points_per_euro: float = Field(
        default=3.5,
        alias="BONUS_POINTS_PER_EURO",
        description="Bonus points earned per euro of order subtotal"
    )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"
        populate_by_name = True


# Global settings instance
settings = Settings()
