"""
Subtitle backfill for dubbed streams.

Dub variants often ship without captions while the matching sub variant
has them. The backfill looks up the sub server with the same name (or the
same position) and appends its caption/subtitle tracks after the dub tracks.
It is best-effort: whatever goes wrong, the dub descriptor is returned with
its original tracks and the outcome is reported in ``subtitle_backfill``.
"""

import logging
from typing import List, Optional, Tuple

from stream_resolver.const import SUBTITLE_TRACK_KINDS
from stream_resolver.providers.base import BaseProviderAdapter, BaseServerListing
from stream_resolver.schemas import (
    BackfillStatus,
    RawLinkResult,
    ServerEntry,
    ServerList,
    ServerSelection,
    StreamDescriptor,
    Track,
)

logger = logging.getLogger(__name__)


def find_sub_server(servers: ServerList, selection: ServerSelection) -> Optional[ServerEntry]:
    """Return the sub entry matching the dub selection by name, falling back to index."""
    for entry in servers.sub:
        if entry.name == selection.name:
            return entry
    if selection.index is None:
        return None
    for entry in servers.sub:
        if entry.index == selection.index:
            return entry
    return None


def subtitle_tracks(tracks: List[Track]) -> List[Track]:
    return [track for track in tracks if track.kind in SUBTITLE_TRACK_KINDS]


class SubtitleBackfill:
    def __init__(self, adapter: BaseProviderAdapter, server_listing: BaseServerListing):
        self.adapter = adapter
        self.server_listing = server_listing

    @staticmethod
    def needs_backfill(selection: ServerSelection, descriptor: StreamDescriptor) -> bool:
        return selection.type == "dub" and descriptor.caption_count() == 0

    async def apply(self, selection: ServerSelection, episode_ref: str, descriptor: StreamDescriptor) -> StreamDescriptor:
        """
        Append sub-variant subtitles to a dub descriptor lacking captions.

        Args:
            selection (ServerSelection): The dub server the descriptor was resolved from.
            episode_ref (str): Episode reference used for the server listing and the adapter.
            descriptor (StreamDescriptor): Resolved dub descriptor.

        Returns:
            StreamDescriptor: A copy with the backfilled tracks and status; never raises.
        """
        if not self.needs_backfill(selection, descriptor):
            return descriptor.model_copy(update={"subtitle_backfill": BackfillStatus.NOT_NEEDED})

        logger.info("DUB episode has no subtitles, attempting to fetch from SUB version...")
        try:
            status, tracks = await self._fetch_sub_tracks(selection, episode_ref)
        except Exception as e:
            logger.warning(f"Failed to fetch subtitles from SUB version: {e}")
            return descriptor.model_copy(update={"subtitle_backfill": BackfillStatus.FAILED})

        update = {"subtitle_backfill": status}
        if tracks:
            logger.info(f"Found {len(tracks)} subtitle tracks from SUB version")
            update["tracks"] = [*descriptor.tracks, *tracks]
        return descriptor.model_copy(update=update)

    async def _fetch_sub_tracks(
        self, selection: ServerSelection, episode_ref: str
    ) -> Tuple[BackfillStatus, List[Track]]:
        servers = ServerList.model_validate(await self.server_listing.get_servers(episode_ref))

        sub_server = find_sub_server(servers, selection)
        if sub_server is None or not sub_server.id:
            logger.info(f"No matching SUB server for {selection.name}")
            return BackfillStatus.NO_MATCH, []

        logger.info("Found matching SUB server, fetching subtitles...")
        raw = await self.adapter.extract(sub_server.to_selection("sub"), episode_ref)
        if raw is None:
            return BackfillStatus.NO_TRACKS, []

        tracks = subtitle_tracks(RawLinkResult.model_validate(raw).tracks)
        if not tracks:
            return BackfillStatus.NO_TRACKS, []
        return BackfillStatus.APPLIED, tracks
