"""Retry policy for outbound HTTP calls (catalogue service, payment providers)."""

import requests
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential


def http_retry():
    """Retry transport failures up to three times with exponential backoff.

    Only `requests.ConnectionError` and `requests.Timeout` are retried. HTTP
    error responses are answers, not outages, and surface immediately.
    """
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.3, min=0.3, max=3),
        retry=retry_if_exception_type((requests.ConnectionError, requests.Timeout)),
    )
