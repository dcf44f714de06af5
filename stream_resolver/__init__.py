from .resolver import StreamResolver, extract_episode_id, resolve_stream
from .schemas import (
    BackfillStatus,
    DegradedDescriptor,
    RawLinkResult,
    ServerEntry,
    ServerList,
    ServerSelection,
    StreamDescriptor,
)

__all__ = [
    "StreamResolver",
    "resolve_stream",
    "extract_episode_id",
    "BackfillStatus",
    "DegradedDescriptor",
    "RawLinkResult",
    "ServerEntry",
    "ServerList",
    "ServerSelection",
    "StreamDescriptor",
]
