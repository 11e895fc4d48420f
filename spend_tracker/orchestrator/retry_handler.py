"""Retry logic with exponential backoff"""

import time
from typing import Any, Callable, Tuple, Type

from spend_tracker.constants import DEFAULT_MAX_RETRIES, DEFAULT_RETRY_BASE_DELAY, DEFAULT_RETRY_MAX_DELAY
from spend_tracker.utils.errors import ProviderError
from spend_tracker.utils.logging import get_logger

logger = get_logger(__name__)


def retry_with_exponential_backoff(
    func: Callable,
    *args,
    max_retries: int = DEFAULT_MAX_RETRIES,
    base_delay: float = DEFAULT_RETRY_BASE_DELAY,
    max_delay: float = DEFAULT_RETRY_MAX_DELAY,
    retry_on: Tuple[Type[BaseException], ...] = (ProviderError,),
    **kwargs
) -> Any:
    """
    Retry function with exponential backoff

    Args:
        func: Function to retry
        max_retries: Maximum attempts (including the first)
        base_delay: Base delay in seconds
        max_delay: Max delay cap in seconds
        retry_on: Exception types that trigger a retry; anything else propagates at once
        *args, **kwargs: Arguments to pass to func

    Returns:
        Function result

    Raises:
        The last exception raised by func once retries are exhausted
    """
    attempts = max(1, max_retries)
    for attempt in range(attempts):
        try:
            return func(*args, **kwargs)

        except retry_on as e:
            if attempt == attempts - 1:
                logger.error(f"All {attempts} retry attempts exhausted", error=str(e))
                raise

            delay = min(base_delay * (2 ** attempt), max_delay)
            logger.warning(f"Attempt {attempt + 1} failed, retrying in {delay}s: {e}")
            time.sleep(delay)
