"""
Client for fetching target pages through the CORS proxy.
"""
import logging
from typing import Optional
from urllib.parse import urlparse

import httpx

from seo_advisor import config
from seo_advisor.errors import (
    InputError, NetworkError, NetworkTimeoutError, ParseError, UpstreamHTTPError
)
from seo_advisor.models import FetchResult

logger = logging.getLogger(__name__)

ALLOWED_SCHEMES = ('http', 'https')
TEXT_CONTENT_TYPES = ('text/', 'application/xhtml+xml', 'application/xml')


def validate_target_url(url: Optional[str]) -> str:
    """
    Check a user-supplied URL before anything goes over the network.

    Raises:
        InputError: If the URL is empty, malformed, or not http(s)
    """
    if not url or not url.strip():
        raise InputError("Please enter a URL")

    url = url.strip()
    try:
        parsed = urlparse(url)
    except ValueError:
        raise InputError(
            "Invalid URL format. Please enter a valid URL including the protocol (http:// or https://)"
        )

    if not parsed.scheme or not parsed.netloc:
        raise InputError(
            "Invalid URL format. Please enter a valid URL including the protocol (http:// or https://)"
        )
    if parsed.scheme.lower() not in ALLOWED_SCHEMES:
        raise InputError("Only HTTP and HTTPS protocols are supported")
    return url


def is_text_content(content_type: str) -> bool:
    if not content_type:
        # Proxies default to HTML when the target sent nothing
        return True
    content_type = content_type.lower()
    return any(marker in content_type for marker in TEXT_CONTENT_TYPES)


class ProxyClient:
    """
    Fetches pages via ``GET {proxy_url}?url=<target>``.

    Attributes:
        proxy_url: Endpoint of the CORS proxy
        timeout: Seconds to wait for the proxy before giving up
        client: Optional shared httpx.AsyncClient; a short-lived one is used otherwise
    """

    def __init__(self, proxy_url: str = None, timeout: float = None, client: httpx.AsyncClient = None):
        self.proxy_url = proxy_url or config.PROXY_URL
        self.timeout = timeout if timeout is not None else config.FETCH_TIMEOUT
        self.client = client
        self.headers = {
            'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8',
            'Accept-Language': 'en-US,en;q=0.5',
        }

    async def _get(self, target_url: str) -> httpx.Response:
        params = {'url': target_url}
        if self.client is not None:
            return await self.client.get(self.proxy_url, params=params, headers=self.headers, timeout=self.timeout)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.get(self.proxy_url, params=params, headers=self.headers)

    async def fetch(self, target_url: str) -> FetchResult:
        """
        Fetch a target URL through the proxy.

        Any HTTP status is returned as-is; callers decide what counts as failure.

        Raises:
            InputError: If the target URL is invalid
            NetworkTimeoutError: If the proxy did not answer in time
            NetworkError: If no response was received
        """
        target_url = validate_target_url(target_url)
        logger.info(f"Fetching {target_url} via proxy {self.proxy_url}")

        try:
            response = await self._get(target_url)
        except httpx.TimeoutException as e:
            logger.error(f"Request timed out while fetching {target_url}: {e}")
            raise NetworkTimeoutError()
        except httpx.RequestError as e:
            logger.error(f"Network error while fetching {target_url}: {e}")
            raise NetworkError()

        result = FetchResult(
            status=response.status_code,
            content_type=response.headers.get('content-type', ''),
            body=response.text,
        )
        logger.info(f"Proxy responded with status {result.status} ({len(result.body)} chars)")
        return result

    async def fetch_html(self, target_url: str) -> str:
        """
        Fetch a target URL and return its HTML.

        Raises:
            UpstreamHTTPError: If the proxy or target answered with status >= 400
            ParseError: If the body is empty or not text
            InputError, NetworkError: As for fetch()
        """
        result = await self.fetch(target_url)

        if result.status >= 400:
            reason = httpx.codes.get_reason_phrase(result.status)
            logger.error(f"Proxy server responded with status {result.status} for {target_url}")
            raise UpstreamHTTPError(result.status, reason)

        if not is_text_content(result.content_type):
            logger.warning(f"Unexpected content type for {target_url}: {result.content_type}")
            raise ParseError()

        if not result.body.strip():
            logger.warning(f"Empty response from {target_url}")
            raise ParseError()

        return result.body
