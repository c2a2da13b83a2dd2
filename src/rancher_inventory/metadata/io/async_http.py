"""Async HTTP transport for the Rancher metadata service.

The metadata service is queried with plain GET requests against a base URL
(``http://rancher-metadata.rancher.internal/latest``) plus one subpath per
entity kind. It serves plaintext by default, so every request asks for JSON
explicitly.

Example Usage:
    ```python
    from rancher_inventory.metadata.io.async_http import MetadataHTTPTransport

    transport = MetadataHTTPTransport("http://rancher-metadata/latest", timeout=5)
    body = await transport.get("/containers")
    await transport.close()
    ```

Error Handling:
    - Connection errors, timeouts and non-2xx answers raise
      ``MetadataUnavailableError``
    - Nothing is retried here; a failed request is reported once
"""

from logging import getLogger
from typing import Optional

import httpx

from ...log.logger import TRACE
from ..core.errors import MetadataUnavailableError

logger = getLogger(__name__)


class MetadataHTTPTransport:
    """Thin async HTTP client bound to one metadata service base URL.

    Attributes:
        base_url: Metadata service base URL without trailing slash
        timeout: Per-request timeout in seconds
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the transport.

        Args:
            base_url: Metadata service base URL, scheme included
            timeout: Per-request timeout in seconds; an exceeded timeout is
                reported as an unavailable service
            transport: Optional httpx transport, used to fake the service in tests
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = httpx.AsyncClient(
            timeout=timeout,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    def url_for(self, subpath: str) -> str:
        return f"{self.base_url}/{subpath.lstrip('/')}"

    async def get(self, subpath: str) -> bytes:
        """GET a metadata subpath and return the raw response body."""
        url = self.url_for(subpath)
        try:
            response = await self._client.get(url)
        except httpx.TimeoutException as e:
            raise MetadataUnavailableError(subpath, f"timed out: {e}") from e
        except httpx.HTTPError as e:
            raise MetadataUnavailableError(subpath, f"request failed: {e}") from e

        if not response.is_success:
            raise MetadataUnavailableError(
                subpath,
                f"unexpected status {response.status_code}",
                status_code=response.status_code,
            )

        logger.debug(f"GET {url} returned {len(response.content)} bytes")
        logger.log(TRACE, f"GET {url} body: {response.text[:512]}")
        return response.content

    async def close(self):
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
