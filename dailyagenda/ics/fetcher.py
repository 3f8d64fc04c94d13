"""Downloads ICS feeds over HTTP with retries."""

import asyncio
import logging
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import httpx

from .. import __version__
from .exceptions import ICSAuthError, ICSFetchError, ICSNetworkError
from .models import ICSResponse, ICSSource

logger = logging.getLogger(__name__)

# Failures worth another attempt; everything else is final
RETRYABLE_ERRORS = (httpx.TimeoutException, httpx.NetworkError)

CALENDAR_CONTENT_TYPES = ("text/calendar", "text/plain")

AUTH_FAILURES = {
    401: "Authentication failed (HTTP 401)",
    403: "Access denied (HTTP 403)",
}


class ICSFetcher:
    """Fetches ICS feeds through one shared ``httpx.AsyncClient``.

    Timeouts and connection errors are retried with exponential backoff
    (``retry_backoff_factor ** attempt`` seconds). How a failure surfaces
    depends on its kind:

    * timeouts and non-auth HTTP errors come back as a failed ICSResponse;
    * 401/403 raise ICSAuthError;
    * connection problems raise ICSNetworkError once the retries are used up.
    """

    def __init__(self, settings: Any):
        """Initialize ICS fetcher.

        Args:
            settings: Application settings (request_timeout, max_retries,
                retry_backoff_factor, app_name)
        """
        self.settings = settings
        self.client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "ICSFetcher":
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def _client_headers(self) -> Dict[str, str]:
        return {
            "User-Agent": f"{self.settings.app_name}/{__version__}",
            "Accept": "text/calendar, text/plain;q=0.9, */*;q=0.1",
        }

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Return the shared client, creating it on first use or after close()."""
        if self.client is None or self.client.is_closed:
            self.client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.settings.request_timeout, connect=10.0),
                follow_redirects=True,
                headers=self._client_headers(),
            )
            logger.debug("HTTP client created")
        return self.client

    async def close(self) -> None:
        """Release the HTTP client."""
        if self.client is not None and not self.client.is_closed:
            await self.client.aclose()
            logger.debug("HTTP client closed")

    @staticmethod
    def is_supported_url(url: str) -> bool:
        """Only absolute http(s) URLs with a host are fetched."""
        try:
            parsed = urlparse(url)
        except ValueError:
            return False
        return parsed.scheme in ("http", "https") and bool(parsed.hostname)

    async def fetch_ics(self, source: ICSSource) -> ICSResponse:
        """Download one feed.

        Args:
            source: Feed URL, timeout and extra headers

        Returns:
            ICSResponse holding the body, or a failure description

        Raises:
            ICSAuthError: HTTP 401/403
            ICSNetworkError: Connection failure after the last retry
            ICSFetchError: Anything unexpected
        """
        if not self.is_supported_url(source.url):
            message = f"Unsupported calendar URL: {source.url}"
            logger.error(message)
            return ICSResponse(success=False, error_message=message, status_code=400)

        client = await self._ensure_client()
        logger.debug(f"GET {source.url} for {source.name}")

        try:
            response = await self._get_with_retry(client, source)
        except httpx.TimeoutException:
            logger.error(f"{source.name}: no response from {source.url} within {source.timeout}s")
            return ICSResponse(
                success=False, error_message=f"Request timeout after {source.timeout}s"
            )
        except httpx.HTTPStatusError as e:
            return self._http_error_response(source, e.response)
        except httpx.NetworkError as e:
            logger.error(f"{source.name}: cannot reach {source.url}: {e}")
            raise ICSNetworkError(f"Network error: {e}") from e
        except Exception as e:
            logger.exception(f"{source.name}: fetching {source.url} failed")
            raise ICSFetchError(f"Unexpected error: {e}") from e

        return self._to_ics_response(response)

    async def _get_with_retry(self, client: httpx.AsyncClient, source: ICSSource) -> httpx.Response:
        """GET the feed, retrying transient failures.

        Raises:
            httpx.HTTPStatusError: Non-2xx status (not retried)
            httpx.TimeoutException, httpx.NetworkError: Last attempt failed
        """
        attempts = self.settings.max_retries + 1

        for attempt in range(attempts):
            try:
                response = await client.get(source.url, timeout=source.timeout)
                response.raise_for_status()
                return response
            except RETRYABLE_ERRORS as e:
                if attempt + 1 >= attempts:
                    raise
                delay = self.settings.retry_backoff_factor**attempt
                logger.warning(
                    f"{source.name}: attempt {attempt + 1}/{attempts} failed ({e}); "
                    f"next try in {delay:.1f}s"
                )
                await asyncio.sleep(delay)

        raise ICSFetchError("No fetch attempts configured")

    @staticmethod
    def _http_error_response(source: ICSSource, response: httpx.Response) -> ICSResponse:
        status = response.status_code
        logger.error(f"{source.name}: {source.url} answered HTTP {status}")

        if status in AUTH_FAILURES:
            raise ICSAuthError(AUTH_FAILURES[status], status)

        return ICSResponse(
            success=False,
            status_code=status,
            error_message=f"HTTP {status}: {response.reason_phrase}",
            headers=dict(response.headers),
        )

    @staticmethod
    def _to_ics_response(response: httpx.Response) -> ICSResponse:
        """Wrap a 2xx response; a blank body counts as a failure."""
        headers = dict(response.headers)
        body = response.text

        if not body or not body.strip():
            logger.error("Calendar feed returned an empty body")
            return ICSResponse(
                success=False,
                status_code=response.status_code,
                error_message="Empty content received",
                headers=headers,
            )

        content_type = headers.get("content-type", "")
        if content_type and not content_type.lower().startswith(CALENDAR_CONTENT_TYPES):
            logger.warning(f"Calendar feed served as {content_type!r}")

        logger.debug(f"Downloaded {len(body)} characters")
        return ICSResponse(
            success=True, content=body, status_code=response.status_code, headers=headers
        )
