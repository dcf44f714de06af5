import logging
from typing import Optional, Union

import httpx

from stream_resolver.configs import settings
from stream_resolver.const import HD4_NO_DATA_ID_ERROR, HD4_NO_FILE_ERROR, HD4_SERVER_NAME
from stream_resolver.extractors.base import BaseExtractor
from stream_resolver.schemas import BackfillStatus, DegradedDescriptor, ServerSelection, StreamDescriptor, StreamLink
from stream_resolver.utils.html_utils import AttributeMatcher, extract_first_attribute
from stream_resolver.utils.http_utils import build_proxy_url

logger = logging.getLogger(__name__)


class HD4Extractor(BaseExtractor):
    """HD-4 (megaplay) extractor.

    The embed page carries a numeric ``data-id``; the getSources endpoint
    turns that id into the HLS playlist, subtitle tracks and skip markers.
    The result is already proxied, with the provider origin as referer.
    """

    server_name = HD4_SERVER_NAME

    def __init__(
        self,
        request_headers: Optional[dict] = None,
        client: Optional[httpx.AsyncClient] = None,
        proxy_base_url: Optional[str] = None,
        attribute_matcher: Optional[AttributeMatcher] = None,
    ):
        super().__init__(request_headers, client=client, proxy_base_url=proxy_base_url)
        self.origin = settings.hd4_base_url.rstrip("/")
        self.attribute_matcher = attribute_matcher

    def embed_url(self, episode_id: str, variant_type: str) -> str:
        return f"{self.origin}/stream/s-2/{episode_id}/{variant_type}"

    def sources_url(self, data_id: str) -> str:
        return f"{self.origin}/stream/getSources?id={data_id}"

    async def extract(
        self, selection: ServerSelection, episode_ref: str, episode_id: str
    ) -> Union[StreamDescriptor, DegradedDescriptor]:
        return await self.extract_stream(episode_id, selection.type)

    async def extract_stream(self, episode_id: str, variant_type: str) -> Union[StreamDescriptor, DegradedDescriptor]:
        embed_url = self.embed_url(episode_id, variant_type)

        try:
            logger.info(f"HD-4: Fetching embed page from {embed_url}")
            response = await self._make_request(embed_url, headers={"referer": f"{self.origin}/"})

            data_id = extract_first_attribute(response.text, "data-id", matcher=self.attribute_matcher)
            if not data_id:
                logger.warning("HD-4: Could not extract data-id from embed page")
                return self._degraded(embed_url, HD4_NO_DATA_ID_ERROR)

            logger.info(f"HD-4: Extracted data-id: {data_id}, fetching sources...")
            response = await self._make_request(
                self.sources_url(data_id),
                headers={"x-requested-with": "XMLHttpRequest", "referer": embed_url},
            )
            payload = response.json()

            sources = payload.get("sources") if isinstance(payload, dict) else None
            direct_url = sources.get("file") if isinstance(sources, dict) else None
            if not direct_url:
                logger.warning("HD-4: No streaming file in sources response")
                return self._degraded(embed_url, HD4_NO_FILE_ERROR)

            proxy_url = build_proxy_url(direct_url, self.origin, self.proxy_base_url)
            descriptor = StreamDescriptor(
                id=str(episode_id),
                type=variant_type,
                link=StreamLink(file=proxy_url, direct_url=direct_url, proxy_url=proxy_url, type="hls"),
                tracks=payload.get("tracks") or [],
                intro=payload.get("intro") or None,
                outro=payload.get("outro") or None,
                server=self.server_name,
                used_fallback=False,
                subtitle_backfill=BackfillStatus.SKIPPED,
            )
            logger.info("HD-4: Successfully extracted streaming link")
            return descriptor

        except Exception as e:
            logger.error(f"HD-4 extraction failed: {e}")
            return self._degraded(embed_url, str(e))

    def _degraded(self, embed_url: str, error: str) -> DegradedDescriptor:
        return DegradedDescriptor(streaming_link=embed_url, servers=self.server_name, error=error)
