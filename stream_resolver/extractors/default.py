import logging
from typing import Optional

import httpx

from stream_resolver.extractors.base import BaseExtractor, ExtractorError
from stream_resolver.providers.base import BaseProviderAdapter
from stream_resolver.schemas import RawLinkResult, ServerSelection

logger = logging.getLogger(__name__)


class DefaultExtractor(BaseExtractor):
    """Delegates to the default provider adapter and validates its raw result.

    Proxying and subtitle backfill are left to the resolver.
    """

    def __init__(
        self,
        adapter: BaseProviderAdapter,
        request_headers: Optional[dict] = None,
        client: Optional[httpx.AsyncClient] = None,
        proxy_base_url: Optional[str] = None,
    ):
        super().__init__(request_headers, client=client, proxy_base_url=proxy_base_url)
        if adapter is None:
            raise ExtractorError("A provider adapter is required for non HD-4 servers")
        self.adapter = adapter

    async def extract(self, selection: ServerSelection, episode_ref: str, episode_id: str) -> Optional[RawLinkResult]:
        raw = await self.adapter.extract(selection, episode_ref)
        if raw is None:
            logger.warning(f"Provider adapter returned nothing for server {selection.name}")
            return None
        return RawLinkResult.model_validate(raw)
