"""Error taxonomy and value types for retrycase.

- ErrorCategory/ClassifiedError: classification of a failed attempt
- RetryToken/RetryInfo: attempt accounting
- RetryError family: engine signals (capacity exceeded, rejected)
- HTTPError/ResponseMetadata: the HTTP-shaped failure operations raise
"""

from .errors import HTTPError, RetryCapacityExceededError, RetryError, RetryRejectedError
from .types import (
    TIMEOUT_CATEGORIES,
    ClassifiedError,
    ErrorCategory,
    ResponseMetadata,
    RetryInfo,
    RetryToken,
)

__all__ = [
    "ErrorCategory",
    "ClassifiedError",
    "TIMEOUT_CATEGORIES",
    "RetryToken",
    "RetryInfo",
    "ResponseMetadata",
    "RetryError",
    "RetryCapacityExceededError",
    "RetryRejectedError",
    "HTTPError",
]
