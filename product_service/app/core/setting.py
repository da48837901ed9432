"""
Product Service configuration loaded from the environment and the service .env file
"""

from pathlib import Path
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

# Get the product service directory path
PRODUCT_SERVICE_DIR = Path(__file__).parent.parent.parent
ENV_FILE = PRODUCT_SERVICE_DIR / ".env"


class ProductSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    APP_NAME: str
    APP_VERSION: str
    DEBUG: bool
    ENVIRONMENT: str
    LOG_LEVEL: str

    # Service specific
    SERVICE_NAME: str

    # Database
    PRODUCT_DATABASE_URL: str

    # Security
    SECRET_KEY: str
    ALGORITHM: str

    # Kafka for events
    KAFKA_BOOTSTRAP_SERVERS: str
    KAFKA_TOPIC_PRODUCT_EVENTS: Optional[str] = None

    # Product images
    UPLOADS_DIR: str = str(PRODUCT_SERVICE_DIR / "public" / "uploads")

    # Pagination
    DEFAULT_PAGE_LIMIT: int = 10

    # CORS
    CORS_ORIGINS: List[str]
    CORS_CREDENTIALS: bool
    CORS_METHODS: List[str]
    CORS_HEADERS: List[str]


# Create a singleton instance
_settings_instance = None


def get_settings() -> ProductSettings:
    """Get settings singleton instance"""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = ProductSettings()
    return _settings_instance
