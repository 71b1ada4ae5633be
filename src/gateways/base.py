"""
Base Gateway definitions for external clearinghouse calls.

Provides:
- Gateway error taxonomy (transport, timeout, unavailable, unexpected response)
- Gateway configuration (timeout and retry policy)
- Async retry decorator with exponential backoff
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional
import asyncio
import logging
from functools import wraps

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """Base exception for gateway errors."""

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.provider = provider
        self.original_error = original_error


class TransportError(GatewayError):
    """Raised when the request could not be delivered or the partner answered with an error."""

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        original_error: Optional[Exception] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message, provider, original_error)
        self.status_code = status_code


class ProviderUnavailableError(TransportError):
    """Raised when a connection to the provider cannot be established."""

    pass


class ProviderTimeoutError(TransportError):
    """Raised when a provider request times out."""

    pass


class ProviderAuthenticationError(TransportError):
    """Raised when provider authentication fails."""

    pass


class UnexpectedResponseError(GatewayError):
    """Raised when a provider answers with a payload that cannot be interpreted."""

    pass


@dataclass
class GatewayConfig:
    """Configuration for a gateway instance."""

    timeout_seconds: float = 30.0
    retry_attempts: int = 3
    retry_delay_seconds: float = 1.0
    backoff_factor: float = 2.0


def with_retry(
    max_attempts: int = 3,
    delay: float = 1.0,
    backoff_factor: float = 2.0,
    exceptions: tuple = (Exception,),
):
    """Decorator for retry logic with exponential backoff."""

    def decorator(func: Callable):
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any):
            last_exception: Optional[BaseException] = None
            current_delay = delay

            for attempt in range(max_attempts):
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    last_exception = e
                    if attempt < max_attempts - 1:
                        logger.warning(
                            f"Attempt {attempt + 1}/{max_attempts} failed: {e}. "
                            f"Retrying in {current_delay:.1f}s..."
                        )
                        await asyncio.sleep(current_delay)
                        current_delay *= backoff_factor
                    else:
                        logger.error(
                            f"All {max_attempts} attempts failed. Last error: {e}"
                        )

            assert last_exception is not None
            raise last_exception

        return wrapper

    return decorator
