#!/usr/bin/env python3
"""
Retry logic for handling transient AWS errors.

Classifies botocore failures as retryable or not, and provides an
exponential backoff decorator for AWS API calls.
"""

import time
from functools import wraps
from typing import Any, Callable, TypeVar

from botocore.exceptions import (
    ClientError,
    ConnectionClosedError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)

from aws_infra.utils.exceptions import AWSInfraError
from aws_infra.utils.logger import setup_logger

logger = setup_logger(__name__, "retry.log")

T = TypeVar("T")

# AWS error codes that should trigger a retry
TRANSIENT_ERROR_CODES = {
    "Throttling",
    "ThrottlingException",
    "ThrottledException",
    "TooManyRequestsException",
    "RequestLimitExceeded",
    "RequestThrottled",
    "SlowDown",
    "ServiceUnavailable",
    "InternalError",
    "InternalFailure",
    "RequestTimeout",
    "RequestTimeoutException",
}

TRANSPORT_ERRORS = (
    ConnectTimeoutError,
    ReadTimeoutError,
    EndpointConnectionError,
    ConnectionClosedError,
)


def error_code(error: Exception) -> str:
    """Return the AWS error code of a ClientError, or an empty string."""
    if isinstance(error, ClientError):
        return error.response.get("Error", {}).get("Code", "")
    return ""


def is_error_retryable(error: Exception) -> bool:
    """Check if an error is transient and the call may be retried.

    Timeouts and dropped connections are retryable, as are service errors
    with a throttling/unavailable code or a 5xx status.
    """
    if isinstance(error, AWSInfraError):
        return error.retryable
    if isinstance(error, TRANSPORT_ERRORS):
        return True
    if isinstance(error, ClientError):
        if error_code(error) in TRANSIENT_ERROR_CODES:
            return True
        status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0)
        return status >= 500
    return False


def with_retry(
    max_attempts: int = 3,
    initial_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator to retry a function with exponential backoff.

    Example:
        @with_retry(max_attempts=5)
        def describe(...):
            ...
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            attempt = 1
            delay = initial_delay

            while True:
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    if not is_error_retryable(e) or attempt >= max_attempts:
                        raise

                    logger.warning(
                        f"Transient error in {func.__name__} (attempt {attempt}/{max_attempts}): {e}. "
                        f"Retrying in {delay:.1f}s..."
                    )

                    time.sleep(delay)
                    attempt += 1
                    delay = min(delay * exponential_base, max_delay)

        return wrapper

    return decorator
