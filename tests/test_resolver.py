"""Tests for StreamResolver dispatch, proxying and degradation."""

from urllib.parse import parse_qs, urlsplit

import pytest
import respx

from stream_resolver import resolve_stream
from stream_resolver.extractors.default import DefaultExtractor
from stream_resolver.extractors.factory import ExtractorFactory
from stream_resolver.extractors.hd4 import HD4Extractor
from stream_resolver.resolver import StreamResolver, extract_episode_id
from stream_resolver.schemas import (
    BackfillStatus,
    DegradedDescriptor,
    RawLinkResult,
    ServerSelection,
    StreamDescriptor,
)

EPISODE_REF = "one-piece-100?ep=2142"
DIRECT_URL = "https://vault-12.cdn.example:8443/_v7/master.m3u8"

SERVERS = {
    "sub": [{"name": "HD-1", "index": 0, "id": "sub-hd1"}],
    "dub": [{"name": "HD-1", "index": 0, "id": "dub-hd1"}],
}


def raw_result(tracks=None):
    return {
        "id": "2142",
        "type": "dub",
        "link": {"file": DIRECT_URL, "type": "hls"},
        "tracks": tracks or [],
        "intro": {"start": 0, "end": 85},
        "outro": None,
        "server": 4,
        "thumbnail": "https://cdn.example/thumbs.vtt",
    }


class TestExtractEpisodeId:
    def test_after_marker(self):
        assert extract_episode_id("one-piece-100?ep=2142") == "2142"

    def test_last_marker_wins(self):
        assert extract_episode_id("rep=1?ep=2&ep=3") == "3"

    def test_without_marker(self):
        assert extract_episode_id("2142") == "2142"

    def test_trailing_marker(self):
        assert extract_episode_id("show?ep=") == ""


class TestExtractorFactory:
    def test_hd4_is_dedicated(self, fake_adapter):
        assert isinstance(ExtractorFactory.get_extractor("HD-4", fake_adapter()), HD4Extractor)
        assert ExtractorFactory.is_dedicated("HD-4")

    def test_other_servers_use_adapter(self, fake_adapter):
        adapter = fake_adapter()
        extractor = ExtractorFactory.get_extractor("HD-1", adapter)
        assert isinstance(extractor, DefaultExtractor)
        assert extractor.adapter is adapter


class TestStreamResolver:
    @pytest.mark.asyncio
    async def test_default_server_is_proxied(self, fake_adapter, fake_listing, caption_tracks):
        adapter = fake_adapter(results={"sub": {**raw_result(caption_tracks), "type": "sub"}})
        resolver = StreamResolver(adapter, fake_listing(SERVERS))

        result = await resolver.resolve(ServerSelection(name="HD-1", type="sub", index=0), EPISODE_REF)

        assert isinstance(result, StreamDescriptor)
        assert result.link.direct_url == DIRECT_URL
        assert result.link.file == result.link.proxy_url
        query = parse_qs(urlsplit(result.link.file).query)
        assert query["url"] == [DIRECT_URL]
        assert query["referer"] == ["https://vault-12.cdn.example:8443"]
        assert result.server == "4"
        assert result.intro.end == 85
        assert len(result.tracks) == 2
        assert result.subtitle_backfill == BackfillStatus.NOT_NEEDED
        assert adapter.calls == [(ServerSelection(name="HD-1", type="sub", index=0), EPISODE_REF)]

    @pytest.mark.asyncio
    async def test_provider_fields_are_kept(self, fake_adapter, fake_listing):
        adapter = fake_adapter(results={"sub": raw_result()})

        result = await StreamResolver(adapter, fake_listing()).resolve(ServerSelection(name="HD-2", type="sub"), EPISODE_REF)

        data = result.to_dict()
        assert data["thumbnail"] == "https://cdn.example/thumbs.vtt"
        assert data["link"]["directUrl"] == DIRECT_URL
        assert data["link"]["file"] == data["link"]["proxyUrl"]
        assert data["usedFallback"] is False

    @pytest.mark.asyncio
    async def test_dub_backfill(self, fake_adapter, fake_listing, caption_tracks):
        adapter = fake_adapter(results={"dub": raw_result(), "sub": {"tracks": caption_tracks}})
        listing = fake_listing(SERVERS)

        result = await resolve_stream(ServerSelection(name="HD-1", type="dub", index=0), EPISODE_REF, adapter, listing)

        assert isinstance(result, StreamDescriptor)
        assert len(result.tracks) == 2
        assert result.subtitle_backfill == BackfillStatus.APPLIED
        assert listing.calls == [EPISODE_REF]

    @pytest.mark.asyncio
    async def test_dub_backfill_failure_keeps_stream(self, fake_adapter, fake_listing):
        adapter = fake_adapter(results={"dub": raw_result()})
        listing = fake_listing(error=ConnectionError("listing down"))

        result = await StreamResolver(adapter, listing).resolve(ServerSelection(name="HD-1", type="dub", index=0), EPISODE_REF)

        assert isinstance(result, StreamDescriptor)
        assert result.tracks == []
        assert result.subtitle_backfill == BackfillStatus.FAILED

    @pytest.mark.asyncio
    async def test_result_without_link_passes_through(self, fake_adapter, fake_listing):
        adapter = fake_adapter(results={"sub": {"error": "decryption failed", "tracks": []}})

        result = await StreamResolver(adapter, fake_listing()).resolve(ServerSelection(name="HD-1", type="sub"), EPISODE_REF)

        assert isinstance(result, RawLinkResult)
        assert result.link is None
        assert result.model_extra["error"] == "decryption failed"

    @pytest.mark.asyncio
    async def test_adapter_returning_nothing_degrades(self, fake_adapter, fake_listing):
        result = await StreamResolver(fake_adapter(), fake_listing()).resolve(
            ServerSelection(name="HD-1", type="sub"), EPISODE_REF
        )

        assert isinstance(result, DegradedDescriptor)
        assert result.servers == "HD-1"
        assert result.streaming_link == EPISODE_REF

    @pytest.mark.asyncio
    async def test_adapter_exception_degrades(self, fake_adapter, fake_listing):
        adapter = fake_adapter(error={"sub": RuntimeError("key rotation")})

        result = await StreamResolver(adapter, fake_listing()).resolve(ServerSelection(name="HD-1", type="sub"), EPISODE_REF)

        assert isinstance(result, DegradedDescriptor)
        assert result.error == "key rotation"

    @pytest.mark.asyncio
    async def test_missing_adapter_degrades(self, fake_listing):
        result = await StreamResolver(None, fake_listing()).resolve(ServerSelection(name="HD-1", type="sub"), EPISODE_REF)

        assert isinstance(result, DegradedDescriptor)

    @respx.mock
    @pytest.mark.asyncio
    async def test_hd4_is_returned_as_extracted(self, fake_adapter, fake_listing):
        respx.get("https://megaplay.buzz/stream/s-2/2142/dub").respond(200, text='<div data-id="77"></div>')
        respx.get("https://megaplay.buzz/stream/getSources", params={"id": "77"}).respond(
            200, json={"sources": {"file": "https://cdn/x.m3u8"}}
        )
        adapter = fake_adapter()
        listing = fake_listing(SERVERS)

        result = await StreamResolver(adapter, listing).resolve(ServerSelection(name="HD-4", type="dub"), EPISODE_REF)

        assert isinstance(result, StreamDescriptor)
        assert result.server == "HD-4"
        assert result.link.direct_url == "https://cdn/x.m3u8"
        assert parse_qs(urlsplit(result.link.file).query)["referer"] == ["https://megaplay.buzz"]
        assert result.tracks == []
        assert result.subtitle_backfill == BackfillStatus.SKIPPED
        assert result.to_dict()["subtitleBackfill"] == "skipped"
        assert adapter.calls == []
        assert listing.calls == []

    @respx.mock
    @pytest.mark.asyncio
    async def test_hd4_degraded_result(self, fake_adapter, fake_listing):
        respx.get("https://megaplay.buzz/stream/s-2/2142/sub").respond(200, text="<div></div>")

        result = await StreamResolver(fake_adapter(), fake_listing()).resolve(
            ServerSelection(name="HD-4", type="sub"), EPISODE_REF
        )

        assert isinstance(result, DegradedDescriptor)
        assert result.servers == "HD-4"
        assert result.streaming_link == "https://megaplay.buzz/stream/s-2/2142/sub"


class TestNullTracks:
    @pytest.mark.asyncio
    async def test_sub_result_with_null_tracks_is_proxied(self, fake_adapter, fake_listing):
        adapter = fake_adapter(results={"sub": {"link": {"file": DIRECT_URL}, "tracks": None}})

        result = await StreamResolver(adapter, fake_listing()).resolve(ServerSelection(name="HD-1", type="sub"), EPISODE_REF)

        assert isinstance(result, StreamDescriptor)
        assert result.link.direct_url == DIRECT_URL
        assert result.link.file == result.link.proxy_url
        assert result.tracks == []

    @pytest.mark.asyncio
    async def test_dub_result_with_null_tracks_is_backfilled(self, fake_adapter, fake_listing, caption_tracks):
        adapter = fake_adapter(
            results={"dub": {"link": {"file": DIRECT_URL}, "tracks": None}, "sub": {"tracks": caption_tracks}}
        )

        result = await StreamResolver(adapter, fake_listing(SERVERS)).resolve(
            ServerSelection(name="HD-1", type="dub", index=0), EPISODE_REF
        )

        assert isinstance(result, StreamDescriptor)
        assert result.link.direct_url == DIRECT_URL
        assert len(result.tracks) == 2
        assert result.subtitle_backfill == BackfillStatus.APPLIED
