"""
Error types for warmpath.

"No warm path found" and "no duplicates" are ordinary empty results and are
never raised. The exceptions here mark real failures, so callers can tell
the two apart in logs and API responses.
"""
import logging
from typing import Any, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


class PathfinderError(Exception):
    """Base class for failures surfaced to the orchestration layer."""


class InvalidDataProviderError(PathfinderError):
    """Raised when a data provider does not implement the required methods."""

    def __init__(self, provider: Any, missing: list[str]):
        self.provider = provider
        self.missing = missing
        super().__init__(
            f"{type(provider).__name__} is not a valid data provider "
            f"(missing: {', '.join(missing)})"
        )


class DataProviderError(PathfinderError):
    """Raised when a data provider call fails. The original error is chained."""

    def __init__(self, operation: str, message: str):
        self.operation = operation
        self.message = message
        super().__init__(f"{operation}: {message}")


def call_provider(operation: str, func: Callable[..., T], *args, **kwargs) -> T:
    """
    Invoke a data provider method, wrapping any failure in DataProviderError.

    Args:
        operation: Name used in the error message and log (e.g. "list_persons")
        func: Bound provider method
        *args, **kwargs: Passed through to func

    Returns:
        Whatever func returns
    """
    try:
        return func(*args, **kwargs)
    except PathfinderError:
        raise
    except Exception as e:
        logger.error(f"Data provider call {operation} failed: {e}")
        raise DataProviderError(operation, str(e)) from e
