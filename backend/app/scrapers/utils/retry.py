"""Retry policy for outbound fetches."""

import logging

from tenacity import (
    AsyncRetrying,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)
import httpx


# tenacity's before_sleep_log wants a stdlib logger
logger = logging.getLogger(__name__)

# Only failures where no usable response arrived are worth repeating.
# Non-2xx answers are a decision by the site and are not retried.
RETRYABLE_ERRORS = (
    httpx.ConnectError,
    httpx.ConnectTimeout,
    httpx.ReadTimeout,
    httpx.RemoteProtocolError,
)


def fetch_retrying(attempts: int) -> AsyncRetrying:
    """Build the retry controller used around a single fetch.

    With attempts=1 the request is made exactly once and any error is
    re-raised unchanged.

    Usage:
        async for attempt in fetch_retrying(3):
            with attempt:
                response = await client.get(url)
    """
    return AsyncRetrying(
        stop=stop_after_attempt(max(1, attempts)),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(RETRYABLE_ERRORS),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
