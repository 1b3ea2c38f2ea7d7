"""AWS client wrappers with retry logic.

This module provides centralized AWS client management with:
- Automatic retry for transient errors
- Consistent configuration across all Lambdas
"""

import random
import time
from functools import lru_cache
from typing import Any, Callable

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from .config import get_settings
from .exceptions import RetryableError

# AWS service configuration with retry
AWS_CONFIG = Config(
    retries={
        "max_attempts": 3,
        "mode": "adaptive",
    },
    connect_timeout=5,
    read_timeout=30,
)

# Error codes that indicate transient failures
RETRYABLE_ERROR_CODES = {
    "ThrottlingException",
    "ProvisionedThroughputExceededException",
    "ServiceUnavailable",
    "RequestLimitExceeded",
    "InternalError",
    "InternalServerError",
    "Throttling",
}


@lru_cache(maxsize=1)
def get_s3_client() -> Any:
    """Get cached S3 client.

    Returns:
        boto3 S3 client used to download catalog text files
    """
    settings = get_settings()
    return boto3.client(
        "s3",
        region_name=settings.aws_region,
        config=AWS_CONFIG,
    )


@lru_cache(maxsize=1)
def get_dynamodb_resource() -> Any:
    """Get cached DynamoDB resource (higher-level API).

    Returns:
        boto3 DynamoDB resource for the catalog table
    """
    settings = get_settings()
    return boto3.resource(
        "dynamodb",
        region_name=settings.aws_region,
        config=AWS_CONFIG,
    )


def is_retryable_error(error: ClientError) -> bool:
    """Check if an AWS error is retryable.

    Args:
        error: boto3 ClientError exception

    Returns:
        True if the error indicates a transient failure
    """
    error_code = error.response.get("Error", {}).get("Code", "")
    return error_code in RETRYABLE_ERROR_CODES


def retry_with_backoff(
    func: Callable[..., Any],
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
) -> Any:
    """Execute a function with exponential backoff retry.

    Args:
        func: Callable to execute
        max_retries: Maximum number of retry attempts
        base_delay: Initial delay between retries (seconds)
        max_delay: Maximum delay between retries (seconds)

    Returns:
        Result of successful function execution

    Raises:
        RetryableError: If all retries are exhausted
        ClientError: For non-retryable AWS errors
    """
    last_error = None

    for attempt in range(max_retries + 1):
        try:
            return func()
        except ClientError as e:
            if not is_retryable_error(e):
                raise

            last_error = e

            if attempt < max_retries:
                # Exponential backoff with ±25% jitter
                delay = min(base_delay * (2**attempt), max_delay)
                delay *= 0.75 + random.random() * 0.5
                time.sleep(delay)

    raise RetryableError(
        f"Operation failed after {max_retries + 1} attempts",
        original_error=last_error,
    )


def clear_client_cache() -> None:
    """Clear all cached AWS clients.

    Useful for testing when mocking needs to be reset.
    """
    get_s3_client.cache_clear()
    get_dynamodb_resource.cache_clear()
