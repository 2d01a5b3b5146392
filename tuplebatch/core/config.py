"""Configuration settings for tuplebatch.

Values are read from environment variables prefixed with ``TUPLEBATCH_`` or
from a local ``.env`` file.
"""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Process-wide configuration.

    Attributes:
        API_URL: Base URL of the authorization service
        API_TOKEN: Static bearer token sent with each request
        STORE_ID: Default store to write tuples to
        MODEL_ID: Default authorization model id
        HTTP_TIMEOUT_SECONDS: Per-request timeout for the HTTP transport
        MAX_PARALLEL_REQUESTS: Default concurrency bound for chunked writes
        MAX_TUPLES_PER_CHUNK: Default chunk size (service maximum is 100)
        MAX_RETRIES: Default retry cap per chunk
        RETRY_DELAY_SECONDS: Base unit of exponential backoff
        RATE_LIMIT_DELAY_SECONDS: Fixed delay after a 429/maintenance answer
        LOG_LEVEL: Root log level
        LOG_JSON: Emit structured JSON logs instead of plain text
    """

    model_config = SettingsConfigDict(
        env_prefix="TUPLEBATCH_",
        env_file=".env",
        extra="ignore",
    )

    API_URL: str = "http://localhost:8080"
    API_TOKEN: Optional[str] = None
    STORE_ID: Optional[str] = None
    MODEL_ID: Optional[str] = None
    HTTP_TIMEOUT_SECONDS: float = 30.0

    MAX_PARALLEL_REQUESTS: int = 1
    MAX_TUPLES_PER_CHUNK: int = 100
    MAX_RETRIES: int = 0
    RETRY_DELAY_SECONDS: float = 1.0
    RATE_LIMIT_DELAY_SECONDS: float = 5.0

    LOG_LEVEL: str = Field("INFO", description="Root log level")
    LOG_JSON: bool = False

    @field_validator("API_URL")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize the base URL so paths can be appended with a single slash."""
        return v.rstrip("/")

    @field_validator("LOG_LEVEL")
    @classmethod
    def upper_log_level(cls, v: str) -> str:
        """Accept lower-case level names from the environment."""
        return v.upper()


settings = Settings()
