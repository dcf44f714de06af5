import logging
from typing import Optional, Union

import httpx

from stream_resolver.const import EPISODE_ID_MARKER, NO_STREAM_RESULT_ERROR
from stream_resolver.extractors.factory import ExtractorFactory
from stream_resolver.providers.base import BaseProviderAdapter, BaseServerListing
from stream_resolver.schemas import (
    DegradedDescriptor,
    RawLinkResult,
    ServerSelection,
    StreamDescriptor,
)
from stream_resolver.subtitles import SubtitleBackfill
from stream_resolver.utils.http_utils import build_proxy_url, resolve_referer

logger = logging.getLogger(__name__)

ResolvedStream = Union[StreamDescriptor, DegradedDescriptor, RawLinkResult]


def extract_episode_id(episode_ref: str) -> str:
    """Return everything after the last ``ep=`` marker, or the whole reference when absent."""
    return episode_ref.rsplit(EPISODE_ID_MARKER, 1)[-1]


class StreamResolver:
    """Resolves a server selection into a proxied stream descriptor.

    Failures never propagate: the caller always gets a descriptor-shaped
    value, and a missing ``link`` is the failure signal.
    """

    def __init__(
        self,
        adapter: BaseProviderAdapter,
        server_listing: BaseServerListing,
        request_headers: Optional[dict] = None,
        client: Optional[httpx.AsyncClient] = None,
        proxy_base_url: Optional[str] = None,
    ):
        self.adapter = adapter
        self.request_headers = request_headers or {}
        self.client = client
        self.proxy_base_url = proxy_base_url
        self.backfill = SubtitleBackfill(adapter, server_listing)

    async def resolve(self, selection: ServerSelection, episode_ref: str) -> ResolvedStream:
        episode_id = extract_episode_id(episode_ref)

        try:
            extractor = ExtractorFactory.get_extractor(
                selection.name,
                self.adapter,
                self.request_headers,
                client=self.client,
                proxy_base_url=self.proxy_base_url,
            )
            result = await extractor.extract(selection, episode_ref, episode_id)
        except Exception as e:
            logger.exception(f"Stream extraction failed for server {selection.name}: {e}")
            return DegradedDescriptor(streaming_link=episode_ref, servers=selection.name, error=str(e))

        if result is None:
            return DegradedDescriptor(streaming_link=episode_ref, servers=selection.name, error=NO_STREAM_RESULT_ERROR)

        if not isinstance(result, RawLinkResult):
            return result

        if not result.has_stream:
            logger.warning(f"No streaming link from server {selection.name}, returning provider result as is")
            return result

        try:
            descriptor = self.proxy_raw_result(result, selection, episode_id)
        except Exception as e:
            logger.exception(f"Could not normalize result from server {selection.name}: {e}")
            return result
        return await self.backfill.apply(selection, episode_ref, descriptor)

    def proxy_raw_result(self, raw: RawLinkResult, selection: ServerSelection, episode_id: str) -> StreamDescriptor:
        direct_url = raw.link.file
        referer = resolve_referer(direct_url)
        proxy_url = build_proxy_url(direct_url, referer, self.proxy_base_url)
        return StreamDescriptor.from_raw(raw, selection, episode_id, direct_url, proxy_url)


async def resolve_stream(
    selection: ServerSelection,
    episode_ref: str,
    adapter: BaseProviderAdapter,
    server_listing: BaseServerListing,
    **kwargs,
) -> ResolvedStream:
    """Resolve a single stream without keeping a resolver around."""
    return await StreamResolver(adapter, server_listing, **kwargs).resolve(selection, episode_ref)
