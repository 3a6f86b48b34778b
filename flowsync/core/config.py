"""Configuration settings for flowsync.

Values are read from the environment (and an optional ``.env`` file).
Collection ids and credentials have no useful defaults; everything else is
tuned to the limits observed on the Airtable and Webflow APIs.
"""

from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    Attributes:
        AIRTABLE_API_KEY: Personal access token for the source base.
        AIRTABLE_BASE_ID: Id of the Airtable base holding the product table.
        WEBFLOW_API_TOKEN: Bearer token for the Webflow Data API v2.
        WF_COLLECTION_ID_PRODUITS: Webflow collection receiving products.
        WF_COLLECTION_ID_CATEGORIES: Linked collection for product categories.
        WF_COLLECTION_ID_PARTENAIRES: Linked collection for partners.
        SYNC_SECRET: Shared secret required to trigger a batch run.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", case_sensitive=True)

    # Source store (Airtable)
    AIRTABLE_API_KEY: str = ""
    AIRTABLE_BASE_ID: str = ""
    AIRTABLE_API_URL: str = "https://api.airtable.com/v0"
    AIRTABLE_PRODUCTS_TABLE: str = "Gisement"
    AIRTABLE_PARTNERS_TABLE: str = "Partenaires"
    AIRTABLE_REQUESTS_PER_SECOND: int = Field(5, gt=0)

    # Target store (Webflow)
    WEBFLOW_API_TOKEN: str = ""
    WEBFLOW_API_URL: str = "https://api.webflow.com/v2"
    WF_COLLECTION_ID_PRODUITS: str = ""
    WF_COLLECTION_ID_CATEGORIES: str = ""
    WF_COLLECTION_ID_PARTENAIRES: str = ""
    WEBFLOW_REQUESTS_PER_MINUTE: int = Field(60, gt=0)

    # Entry point
    SYNC_SECRET: Optional[str] = None

    # Sync behaviour
    SYNC_BATCH_SIZE: int = Field(5, gt=0)
    REFERENCE_LOOKUP_LIMIT: int = Field(100, gt=0, le=100)
    OPTION_SETTLE_DELAY_SECONDS: float = Field(2.0, ge=0)
    OPTION_MAX_ATTEMPTS: int = Field(3, gt=0)
    OPTION_BACKOFF_MAX_SECONDS: float = Field(10.0, ge=0)

    # HTTP
    HTTP_TIMEOUT_SECONDS: float = Field(30.0, gt=0)
    HTTP_MAX_RETRIES: int = Field(5, gt=0)

    # Image proxy
    IMAGE_PROXY_MODE: Literal["buffered", "streaming"] = "buffered"
    IMAGE_MAX_WIDTH: int = Field(1600, gt=0)
    IMAGE_QUALITY: int = Field(80, ge=1, le=100)
    IMAGE_MIN_QUALITY: int = Field(40, ge=1, le=100)
    IMAGE_MAX_BYTES: int = Field(4 * 1024 * 1024, gt=0)
    IMAGE_BUFFERED_FORMAT: Literal["jpeg", "webp"] = "jpeg"
    IMAGE_STREAMING_FORMAT: Literal["jpeg", "webp"] = "webp"
    SYNC_THREAD_POOL_SIZE: int = Field(4, gt=0)

    # Logging
    LOG_LEVEL: str = "INFO"
    LOCAL_DEVELOPMENT: bool = False

    @field_validator("LOG_LEVEL")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept lower-case level names from the environment."""
        return v.upper()

    @field_validator("AIRTABLE_API_URL", "WEBFLOW_API_URL")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Base URLs are joined with paths that start with a slash."""
        return v.rstrip("/")


settings = Settings()
