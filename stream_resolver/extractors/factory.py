from typing import Dict, Optional, Type

import httpx

from stream_resolver.extractors.base import BaseExtractor
from stream_resolver.extractors.default import DefaultExtractor
from stream_resolver.extractors.hd4 import HD4Extractor
from stream_resolver.providers.base import BaseProviderAdapter


class ExtractorFactory:
    """Factory selecting the extractor for a server name.

    Servers without a dedicated extractor go through the default provider adapter.
    """

    _extractors: Dict[str, Type[BaseExtractor]] = {
        HD4Extractor.server_name: HD4Extractor,
    }

    @classmethod
    def register(cls, server_name: str, extractor_class: Type[BaseExtractor]) -> None:
        cls._extractors[server_name] = extractor_class

    @classmethod
    def is_dedicated(cls, server_name: str) -> bool:
        return server_name in cls._extractors

    @classmethod
    def get_extractor(
        cls,
        server_name: str,
        adapter: Optional[BaseProviderAdapter],
        request_headers: Optional[dict] = None,
        client: Optional[httpx.AsyncClient] = None,
        proxy_base_url: Optional[str] = None,
    ) -> BaseExtractor:
        """Get appropriate extractor instance for the given server."""
        extractor_class = cls._extractors.get(server_name)
        if not extractor_class:
            return DefaultExtractor(adapter, request_headers, client=client, proxy_base_url=proxy_base_url)
        return extractor_class(request_headers, client=client, proxy_base_url=proxy_base_url)
