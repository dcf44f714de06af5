from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from stream_resolver.const import CAPTION_KIND

VariantType = Literal["sub", "dub"]


class GenericModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the camelCase keys of the upstream JSON shape."""
        return self.model_dump(by_alias=True, mode="json")


class PassthroughModel(GenericModel):
    """Model that keeps provider fields it does not declare."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")


class BackfillStatus(str, Enum):
    NOT_NEEDED = "not_needed"
    APPLIED = "applied"
    NO_MATCH = "no_match"
    NO_TRACKS = "no_tracks"
    FAILED = "failed"
    SKIPPED = "skipped"


class ServerSelection(GenericModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str = Field(..., description="Display name of the server, e.g. HD-1 or HD-4.")
    type: VariantType = Field(..., description="Audio variant of the server.")
    index: Optional[int] = Field(None, description="Position of the server inside its variant group.")
    id: Optional[Union[str, int]] = Field(None, description="Provider-side server id, when known.")


class ServerEntry(PassthroughModel):
    name: str
    index: Optional[int] = None
    id: Optional[Union[str, int]] = None
    type: Optional[VariantType] = None

    def to_selection(self, variant_type: VariantType) -> ServerSelection:
        return ServerSelection(name=self.name, type=self.type or variant_type, index=self.index, id=self.id)


class ServerList(PassthroughModel):
    sub: List[ServerEntry] = Field(default_factory=list)
    dub: List[ServerEntry] = Field(default_factory=list)


class Track(PassthroughModel):
    kind: Optional[str] = None
    file: Optional[str] = None
    label: Optional[str] = None


class TimeRange(PassthroughModel):
    start: Optional[float] = None
    end: Optional[float] = None


class RawLink(PassthroughModel):
    file: Optional[str] = None
    type: Optional[str] = None


class RawLinkResult(PassthroughModel):
    """Link structure returned by the default provider adapter."""

    id: Optional[Union[str, int]] = None
    type: Optional[VariantType] = None
    link: Optional[RawLink] = None
    tracks: List[Track] = Field(default_factory=list)
    intro: Optional[TimeRange] = None
    outro: Optional[TimeRange] = None
    server: Optional[Union[str, int]] = None
    used_fallback: Optional[bool] = Field(None, alias="usedFallback")

    @field_validator("tracks", mode="before")
    def validate_tracks(cls, value: Any):
        return value or []

    @property
    def has_stream(self) -> bool:
        return self.link is not None and bool(self.link.file)


class StreamLink(GenericModel):
    file: str = Field(..., description="Caller-facing URL, always the proxied form.")
    direct_url: str = Field(..., alias="directUrl", description="Unproxied media URL.")
    proxy_url: str = Field(..., alias="proxyUrl")
    type: str = "hls"


class StreamDescriptor(PassthroughModel):
    id: str
    type: VariantType
    link: StreamLink
    tracks: List[Track] = Field(default_factory=list)
    intro: Optional[TimeRange] = None
    outro: Optional[TimeRange] = None
    server: str
    used_fallback: bool = Field(False, alias="usedFallback")
    subtitle_backfill: BackfillStatus = Field(BackfillStatus.NOT_NEEDED, alias="subtitleBackfill")

    @field_validator("tracks", mode="before")
    def validate_tracks(cls, value: Any):
        return value or []

    @classmethod
    def from_raw(
        cls,
        raw: RawLinkResult,
        selection: ServerSelection,
        episode_id: str,
        direct_url: str,
        proxy_url: str,
    ) -> "StreamDescriptor":
        """Build a descriptor from an adapter result whose link has been proxied."""
        link_type = raw.link.type if raw.link and raw.link.type else "hls"
        return cls(
            **(raw.model_extra or {}),
            id=str(raw.id) if raw.id is not None else episode_id,
            type=raw.type or selection.type,
            link=StreamLink(file=proxy_url, direct_url=direct_url, proxy_url=proxy_url, type=link_type),
            tracks=raw.tracks,
            intro=raw.intro,
            outro=raw.outro,
            server=str(raw.server) if raw.server is not None else selection.name,
            used_fallback=bool(raw.used_fallback),
        )

    def caption_count(self) -> int:
        return sum(1 for track in self.tracks if track.kind == CAPTION_KIND)


class DegradedDescriptor(GenericModel):
    """Soft-failure value returned instead of a stream; it never carries a link."""

    streaming_link: str = Field(..., alias="streamingLink")
    servers: str
    error: str
