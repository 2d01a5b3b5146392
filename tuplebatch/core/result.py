"""Success/Failure values for expected outcomes.

Transports return one of these instead of raising, so a rejected chunk is
ordinary data that flows into the batch result. Use ``unwrap()`` at the
edges where an exception is actually wanted.

    result = await transport.send(chunk)
    result.map(lambda ack: ack.status_code).unwrap_or(None)
"""

from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar, Union

from tuplebatch.core.exceptions import ResultUnwrapError

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class Success(Generic[T]):
    """A successful outcome carrying ``value``."""

    value: T

    @property
    def succeeded(self) -> bool:
        return True

    @property
    def failed(self) -> bool:
        return False

    def unwrap(self) -> T:
        """Return the value."""
        return self.value

    def unwrap_or(self, default: Any) -> T:
        return self.value

    def err(self) -> BaseException:
        """Raise, since a success carries no error."""
        raise ResultUnwrapError("Success has no error")

    def map(self, fn: Callable[[T], U]) -> "Success[U]":
        """Apply ``fn`` to the value."""
        return Success(fn(self.value))

    def then(self, fn: Callable[[T], Any]) -> "Result":
        """Chain another step; plain return values are wrapped in Success."""
        outcome = fn(self.value)
        if isinstance(outcome, (Success, Failure)):
            return outcome
        return Success(outcome)

    def recover(self, fn: Callable[[BaseException], Any]) -> "Success[T]":
        return self


@dataclass(frozen=True)
class Failure:
    """A failed outcome carrying ``error``."""

    error: BaseException

    @property
    def succeeded(self) -> bool:
        return False

    @property
    def failed(self) -> bool:
        return True

    def unwrap(self) -> Any:
        """Raise the carried error."""
        raise self.error

    def unwrap_or(self, default: Any) -> Any:
        return default

    def err(self) -> BaseException:
        return self.error

    def map(self, fn: Callable[[Any], Any]) -> "Failure":
        return self

    def then(self, fn: Callable[[Any], Any]) -> "Failure":
        return self

    def recover(self, fn: Callable[[BaseException], Any]) -> "Result":
        """Turn the failure into a success (or another failure) via ``fn``."""
        outcome = fn(self.error)
        if isinstance(outcome, (Success, Failure)):
            return outcome
        return Success(outcome)


Result = Union[Success, Failure]
