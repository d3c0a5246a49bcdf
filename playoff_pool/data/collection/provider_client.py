"""Shared HTTP client for the stats providers.

ESPN and Sleeper are both free, unauthenticated JSON APIs that occasionally
time out or answer 5xx/429 under load (especially on playoff Sundays). Every
provider request goes through ProviderClient.get_json, which retries those
failures with exponential backoff and raises ProviderError once it gives up.

For beginners:

Exponential backoff: wait retry_delay, then 2x, then 4x ... between attempts,
so a struggling API is not hammered.

httpx.Client can be given a custom transport. Tests pass
httpx.MockTransport(handler) to serve canned JSON without the network.
"""

import logging
import time
from collections.abc import Callable

import httpx
from httpx import ConnectError, HTTPError, TimeoutException

from ...config.settings import settings
from ...exceptions import ProviderError

logger = logging.getLogger(__name__)

RETRYABLE_STATUS = {429, 500, 502, 503, 504}


class ProviderClient:
    """JSON-over-HTTP client with retries for one provider base URL."""

    def __init__(
        self,
        base_url: str,
        provider: str,
        client: httpx.Client | None = None,
        max_retries: int | None = None,
        retry_delay: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.base_url = base_url.rstrip("/")
        self.provider = provider
        self.max_retries = max(1, max_retries if max_retries is not None else settings.http_max_retries)
        self.retry_delay = retry_delay if retry_delay is not None else settings.http_retry_delay
        self._sleep = sleep

        # Initialize HTTP client with timeout and headers
        self.client = client or httpx.Client(
            timeout=settings.http_timeout, headers={"User-Agent": settings.http_user_agent}
        )

    def get_json(self, path: str, params: dict | None = None):
        """GET base_url/path and decode the JSON body.

        Raises:
            ProviderError: 4xx answers (no retry), or the last failure once
                retries are exhausted
        """
        url = f"{self.base_url}/{path.lstrip('/')}"
        last_error = None

        for attempt in range(self.max_retries):
            if attempt > 0:
                self._sleep(self.retry_delay * (2 ** (attempt - 1)))  # Exponential backoff

            try:
                logger.debug(f"GET {url} params={params} (attempt {attempt + 1})")
                response = self.client.get(url, params=params)
            except TimeoutException as e:
                logger.warning(f"{self.provider} request timeout (attempt {attempt + 1}): {url}")
                last_error = ProviderError(f"{self.provider} request timed out: {url}")
                last_error.__cause__ = e
                continue
            except (ConnectError, HTTPError) as e:
                logger.warning(f"{self.provider} network error (attempt {attempt + 1}): {e}")
                last_error = ProviderError(f"{self.provider} network error: {e}")
                last_error.__cause__ = e
                continue

            if response.status_code == 200:
                try:
                    return response.json()
                except ValueError as e:
                    raise ProviderError(f"{self.provider} returned invalid JSON from {url}", 200) from e

            if response.status_code in RETRYABLE_STATUS:
                logger.warning(f"{self.provider} returned {response.status_code} (attempt {attempt + 1}): {url}")
                last_error = ProviderError(
                    f"{self.provider} request failed ({response.status_code}): {url}", response.status_code
                )
                continue

            raise ProviderError(
                f"{self.provider} request failed ({response.status_code}): {url}", response.status_code
            )

        logger.error(f"{self.provider}: giving up on {url} after {self.max_retries} attempts")
        raise last_error

    def close(self):
        self.client.close()
