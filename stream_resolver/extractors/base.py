from abc import ABC, abstractmethod
from typing import Dict, Optional, Union

import httpx
import logging

from stream_resolver.configs import settings
from stream_resolver.schemas import DegradedDescriptor, RawLinkResult, ServerSelection, StreamDescriptor
from stream_resolver.utils.http_utils import create_httpx_client, DownloadError

logger = logging.getLogger(__name__)

ExtractionResult = Union[StreamDescriptor, DegradedDescriptor, RawLinkResult, None]


class ExtractorError(Exception):
    """Base exception for all extractors."""
    pass


class BaseExtractor(ABC):
    """Base class for all server extractors.

    Every outbound call is a single attempt with its own timeout; callers
    decide how a failed attempt degrades.
    """

    def __init__(
        self,
        request_headers: Optional[dict] = None,
        client: Optional[httpx.AsyncClient] = None,
        proxy_base_url: Optional[str] = None,
    ):
        self.base_headers = {
            "user-agent": settings.user_agent,
        }
        # merge incoming headers (e.g. Accept-Language) with default base headers
        self.base_headers.update(request_headers or {})
        self.client = client
        self.proxy_base_url = proxy_base_url

    async def _make_request(
        self,
        url: str,
        method: str = "GET",
        headers: Optional[Dict] = None,
        timeout: Optional[float] = None,
        raise_on_status: bool = True,
        **kwargs,
    ) -> httpx.Response:
        """
        Make a single HTTP request.

        Parameters
        ----------
        timeout : float | None
            Seconds to wait for the request. Defaults to ``settings.request_timeout``.
        raise_on_status : bool
            If True, HTTP non-2xx raises DownloadError (preserves status code).
        """
        request_headers = self.base_headers.copy()
        if headers:
            request_headers.update(headers)

        timeout_cfg = httpx.Timeout(timeout or settings.request_timeout)

        if self.client is not None:
            response = await self.client.request(
                method, url, headers=request_headers, timeout=timeout_cfg, **kwargs
            )
        else:
            async with create_httpx_client(timeout=timeout_cfg) as client:
                response = await client.request(method, url, headers=request_headers, **kwargs)

        if raise_on_status:
            try:
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                logger.debug(
                    "HTTPStatusError for %s (status=%s) -- body preview: %s",
                    url,
                    e.response.status_code,
                    e.response.text[:500],
                )
                raise DownloadError(e.response.status_code, f"HTTP error {e.response.status_code} while requesting {url}")
        return response

    @abstractmethod
    async def extract(self, selection: ServerSelection, episode_ref: str, episode_id: str) -> ExtractionResult:
        """Resolve the stream for a server selection."""
        pass
