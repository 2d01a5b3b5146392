"""Batch options controlling how tuple mutations are submitted."""

from typing import Any, Mapping, Optional, Union

import pydantic
from pydantic import BaseModel, ConfigDict, Field, model_validator

from tuplebatch.core.config import settings
from tuplebatch.core.exceptions import ConfigurationError

# Hard limit enforced by the authorization service per write request.
MAX_TUPLES_PER_REQUEST = 100


class BatchOptions(BaseModel):
    """Declarative options for one batch call.

    ``transactional`` sends everything as a single all-or-nothing request and
    ignores the chunking, concurrency and retry options below it.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    transactional: bool = Field(True, description="Send all operations in one atomic request")
    max_parallel_requests: int = Field(1, description="Maximum chunks in flight at once")
    max_tuples_per_chunk: int = Field(
        MAX_TUPLES_PER_REQUEST, description="Maximum operations per chunk request"
    )
    max_retries: int = Field(0, description="Retries per chunk after the first attempt")
    retry_delay_seconds: float = Field(1.0, description="Base unit of exponential backoff")
    rate_limit_delay_seconds: float = Field(
        5.0, description="Fixed delay before retrying a rate-limited or maintenance answer"
    )
    stop_on_first_error: bool = Field(
        False, description="Cancel chunks not yet sent once any chunk fails"
    )

    @model_validator(mode="after")
    def validate_limits(self):
        """Reject option combinations the dispatcher cannot honor.

        Raises ConfigurationError directly; pydantic lets non-ValueError
        exceptions from validators propagate unchanged.
        """
        self.ensure_valid()
        return self

    def ensure_valid(self) -> None:
        """Raise ConfigurationError if any bound is violated."""
        if self.max_parallel_requests < 1:
            raise ConfigurationError(
                f"max_parallel_requests must be >= 1, got {self.max_parallel_requests}"
            )
        if self.max_tuples_per_chunk < 1:
            raise ConfigurationError(
                f"max_tuples_per_chunk must be >= 1, got {self.max_tuples_per_chunk}"
            )
        if self.max_tuples_per_chunk > MAX_TUPLES_PER_REQUEST:
            raise ConfigurationError(
                f"max_tuples_per_chunk cannot exceed {MAX_TUPLES_PER_REQUEST}, "
                f"got {self.max_tuples_per_chunk}"
            )
        if self.max_retries < 0:
            raise ConfigurationError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.retry_delay_seconds < 0:
            raise ConfigurationError(
                f"retry_delay_seconds must be >= 0, got {self.retry_delay_seconds}"
            )
        if self.rate_limit_delay_seconds < 0:
            raise ConfigurationError(
                f"rate_limit_delay_seconds must be >= 0, got {self.rate_limit_delay_seconds}"
            )

    @classmethod
    def from_settings(cls, **overrides: Any) -> "BatchOptions":
        """Defaults from process settings, with explicit overrides on top."""
        values = {
            "max_parallel_requests": settings.MAX_PARALLEL_REQUESTS,
            "max_tuples_per_chunk": settings.MAX_TUPLES_PER_CHUNK,
            "max_retries": settings.MAX_RETRIES,
            "retry_delay_seconds": settings.RETRY_DELAY_SECONDS,
            "rate_limit_delay_seconds": settings.RATE_LIMIT_DELAY_SECONDS,
        }
        values.update(overrides)
        return cls.parse(values)

    @classmethod
    def non_transactional(cls, **overrides: Any) -> "BatchOptions":
        """Chunked, non-atomic submission.

        Raises:
            ConfigurationError: If ``transactional=True`` is passed in ``overrides``
        """
        if overrides.pop("transactional", False):
            raise ConfigurationError("non_transactional options cannot set transactional=True")
        return cls.from_settings(transactional=False, **overrides)

    @classmethod
    def parse(
        cls, options: Optional[Union["BatchOptions", Mapping[str, Any]]] = None
    ) -> "BatchOptions":
        """Coerce ``options`` into validated BatchOptions.

        Raises:
            ConfigurationError: If the options are malformed or out of bounds
        """
        if options is None:
            return cls.from_settings()
        if isinstance(options, BatchOptions):
            options.ensure_valid()
            return options
        try:
            return cls.model_validate(dict(options))
        except pydantic.ValidationError as e:
            raise ConfigurationError(f"Invalid batch options: {e}") from e
