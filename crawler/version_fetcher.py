"""
Fetches the public map version page and extracts the published version.
"""

import re
from typing import Callable, Optional

import httpx
import structlog
from bs4 import BeautifulSoup

from utilities.exceptions import FetchError, ParseError

logger = structlog.get_logger(__name__)

MAP_VERSION_PATTERN = re.compile(r"latest map version is (\d{4})", re.IGNORECASE)
WHITESPACE_PATTERN = re.compile(r"\s{2,}")

VersionExtractor = Callable[[str], str]


def page_text(html: str) -> str:
    """Strip markup and collapse runs of whitespace into single spaces."""
    text = BeautifulSoup(html, "html.parser").get_text(separator=" ")
    return WHITESPACE_PATTERN.sub(" ", text)


def extract_map_version(html: str) -> str:
    """
    Find the four-digit map version announced in ``html``.

    Raises:
        ParseError: if the page has no "latest map version is NNNN" phrase
    """
    match = MAP_VERSION_PATTERN.search(page_text(html))
    if not match:
        raise ParseError("Failed to find latest map version in page")
    return match.group(1)


class MapVersionFetcher:
    """
    Retrieves the map version page and hands the body to an extractor.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 5.0,
        headers: Optional[dict] = None,
        extractor: VersionExtractor = extract_map_version,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the fetcher.

        Args:
            url: Map version page URL
            timeout: Hard request timeout in seconds
            headers: Extra request headers
            extractor: Callable turning the page body into a version string
            transport: Optional httpx transport, used by tests
        """
        self.url = url
        self.timeout = timeout
        self.headers = headers or {}
        self.extractor = extractor
        self.transport = transport
        self.logger = logger.bind(component="version_fetcher")

    async def fetch_map_version(self) -> str:
        """Fetch the page and return the latest map version."""
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                headers=self.headers,
                follow_redirects=True,
                transport=self.transport,
            ) as client:
                response = await client.get(self.url)
        except httpx.HTTPError as e:
            self.logger.error("Map version page request failed", url=self.url, error=str(e))
            raise FetchError(f"Failed to fetch map version page: {e}") from e

        if not response.is_success:
            raise FetchError(f"Failed to fetch map version page, status {response.status_code}")

        version = self.extractor(response.text)
        self.logger.debug("Extracted map version", url=self.url, version=version)
        return version
