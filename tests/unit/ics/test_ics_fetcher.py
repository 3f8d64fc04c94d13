"""Unit tests for ICS Fetcher HTTP client functionality."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from dailyagenda.ics.exceptions import ICSAuthError, ICSFetchError, ICSNetworkError
from dailyagenda.ics.fetcher import ICSFetcher
from dailyagenda.ics.models import ICSSource

SAMPLE_ICS = "BEGIN:VCALENDAR\r\nVERSION:2.0\r\nEND:VCALENDAR\r\n"


@pytest.fixture
def fetcher(test_settings):
    """ICSFetcher with a mocked HTTP client."""
    fetcher = ICSFetcher(test_settings)
    mock_client = AsyncMock()
    mock_client.is_closed = False  # Prevent _ensure_client from creating a real client
    fetcher.client = mock_client
    return fetcher


@pytest.fixture
def source():
    """Sample ICS source."""
    return ICSSource(name="work", url="https://example.com/work.ics", timeout=10)


def make_response(status_code=200, text=SAMPLE_ICS, content_type="text/calendar"):
    """Mock httpx response."""
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    response.reason_phrase = "Error"
    response.headers = {"content-type": content_type}
    return response


class TestICSFetcherLifecycle:
    """Test ICSFetcher client setup and teardown."""

    @pytest.mark.asyncio
    async def test_ensure_client_creates_http_client(self, test_settings):
        """_ensure_client creates an httpx.AsyncClient with the app's User-Agent."""
        with patch("httpx.AsyncClient") as mock_client:
            fetcher = ICSFetcher(test_settings)
            await fetcher._ensure_client()

            mock_client.assert_called_once()
            call_kwargs = mock_client.call_args.kwargs
            assert call_kwargs["follow_redirects"] is True
            assert call_kwargs["headers"]["User-Agent"].startswith(test_settings.app_name)
            assert "text/calendar" in call_kwargs["headers"]["Accept"]

    @pytest.mark.asyncio
    async def test_context_manager_closes_client(self, test_settings):
        with patch("httpx.AsyncClient") as mock_client:
            mock_client_instance = AsyncMock()
            mock_client_instance.is_closed = False
            mock_client.return_value = mock_client_instance

            async with ICSFetcher(test_settings) as fetcher:
                assert fetcher.client is mock_client_instance

            mock_client_instance.aclose.assert_called_once()

    @pytest.mark.asyncio
    async def test_close_without_client_is_noop(self, test_settings):
        fetcher = ICSFetcher(test_settings)

        await fetcher.close()

        assert fetcher.client is None


class TestICSFetcherURLValidation:
    """Test URL checks performed before fetching."""

    @pytest.mark.parametrize(
        "url",
        ["https://example.com/a.ics", "http://calendar.local:8080/feed"],
    )
    def test_valid_urls(self, url):
        assert ICSFetcher.is_supported_url(url) is True

    @pytest.mark.parametrize(
        "url",
        ["", "file:///etc/passwd", "ftp://example.com/a.ics", "https://", "not a url"],
    )
    def test_invalid_urls(self, url):
        assert ICSFetcher.is_supported_url(url) is False

    @pytest.mark.asyncio
    async def test_fetch_rejects_invalid_url(self, fetcher):
        result = await fetcher.fetch_ics(ICSSource(name="bad", url="file:///tmp/a.ics"))

        assert result.success is False
        assert result.status_code == 400
        fetcher.client.get.assert_not_called()


class TestICSFetcherHTTPOperations:
    """Test ICS Fetcher HTTP request operations."""

    @pytest.mark.asyncio
    async def test_fetch_ics_success(self, fetcher, source):
        """Successful fetch returns the body as content."""
        fetcher.client.get.return_value = make_response()

        result = await fetcher.fetch_ics(source)

        assert result.success is True
        assert result.content == SAMPLE_ICS
        assert result.status_code == 200
        fetcher.client.get.assert_called_once_with(source.url, timeout=10)

    @pytest.mark.asyncio
    async def test_fetch_ics_empty_content(self, fetcher, source):
        fetcher.client.get.return_value = make_response(text="  ")

        result = await fetcher.fetch_ics(source)

        assert result.success is False
        assert result.error_message == "Empty content received"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [401, 403])
    async def test_fetch_ics_auth_error(self, fetcher, source, status_code):
        """401 and 403 raise ICSAuthError."""
        error_response = make_response(status_code=status_code)
        fetcher._get_with_retry = AsyncMock(
            side_effect=httpx.HTTPStatusError(
                "auth", request=MagicMock(), response=error_response
            )
        )

        with pytest.raises(ICSAuthError) as exc_info:
            await fetcher.fetch_ics(source)

        assert exc_info.value.status_code == status_code

    @pytest.mark.asyncio
    async def test_fetch_ics_server_error(self, fetcher, source):
        """Other HTTP errors are reported as a failed response."""
        error_response = make_response(status_code=500)
        fetcher._get_with_retry = AsyncMock(
            side_effect=httpx.HTTPStatusError(
                "500", request=MagicMock(), response=error_response
            )
        )

        result = await fetcher.fetch_ics(source)

        assert result.success is False
        assert result.status_code == 500
        assert result.error_message == "HTTP 500: Error"

    @pytest.mark.asyncio
    async def test_fetch_ics_timeout_error(self, fetcher, source):
        fetcher._get_with_retry = AsyncMock(
            side_effect=httpx.TimeoutException("Request timeout")
        )

        result = await fetcher.fetch_ics(source)

        assert result.success is False
        assert result.status_code is None
        assert result.error_message == "Request timeout after 10s"

    @pytest.mark.asyncio
    async def test_fetch_ics_network_error(self, fetcher, source):
        fetcher._get_with_retry = AsyncMock(
            side_effect=httpx.ConnectError("Connection refused")
        )

        with pytest.raises(ICSNetworkError):
            await fetcher.fetch_ics(source)

    @pytest.mark.asyncio
    async def test_fetch_ics_unexpected_error(self, fetcher, source):
        fetcher._get_with_retry = AsyncMock(side_effect=RuntimeError("boom"))

        with pytest.raises(ICSFetchError, match="Unexpected error: boom"):
            await fetcher.fetch_ics(source)


class TestICSFetcherRetry:
    """Test retry and backoff behaviour."""

    @pytest.mark.asyncio
    async def test_retries_then_succeeds(self, fetcher, source):
        fetcher.client.get.side_effect = [httpx.ConnectError("refused"), make_response()]

        with patch("dailyagenda.ics.fetcher.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            result = await fetcher.fetch_ics(source)

        assert result.success is True
        assert fetcher.client.get.call_count == 2
        mock_sleep.assert_awaited_once_with(1.0)

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self, fetcher, source, test_settings):
        fetcher.client.get.side_effect = httpx.ConnectError("refused")

        with patch("dailyagenda.ics.fetcher.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            with pytest.raises(ICSNetworkError):
                await fetcher.fetch_ics(source)

        assert fetcher.client.get.call_count == test_settings.max_retries + 1
        assert mock_sleep.await_count == test_settings.max_retries

    @pytest.mark.asyncio
    async def test_http_errors_are_not_retried(self, fetcher, source):
        response = make_response(status_code=404)
        response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "404", request=MagicMock(), response=response
        )
        fetcher.client.get.return_value = response

        result = await fetcher.fetch_ics(source)

        assert result.status_code == 404
        fetcher.client.get.assert_called_once()
