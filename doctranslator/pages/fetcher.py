"""Document source: fetch a JSON document by URL."""

from typing import Any, Optional

import httpx

from doctranslator.ai.providers import get_httpx_timeout
from doctranslator.exceptions import SourceUnreachableError
from doctranslator.logger import get_logger

logger = get_logger(__name__)


class DocumentFetcher:
    """Fetches source documents with httpx."""

    def __init__(self, timeout: Any = 30, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = get_httpx_timeout(timeout)
        self.transport = transport

    async def fetch(self, url: str) -> Any:
        """
        GET a JSON document.

        Raises:
            SourceUnreachableError: On any transport, HTTP status or JSON decoding failure.
        """
        logger.info(f"Fetching source document: {url}")
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(url)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            raise SourceUnreachableError(f"Source returned HTTP {e.response.status_code}: {url}", url=url)
        except httpx.HTTPError as e:
            raise SourceUnreachableError(f"Source unreachable: {url} ({e})", url=url)
        except ValueError as e:
            raise SourceUnreachableError(f"Source is not valid JSON: {url} ({e})", url=url)
