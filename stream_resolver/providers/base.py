from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Union

from stream_resolver.schemas import RawLinkResult, ServerList, ServerSelection


class BaseProviderAdapter(ABC):
    """Adapter performing a provider's own decryption/extraction for a server selection.

    Returning ``None`` or a result without ``link.file`` signals that the
    provider could not produce a stream.
    """

    @abstractmethod
    async def extract(
        self, selection: ServerSelection, episode_ref: str
    ) -> Optional[Union[RawLinkResult, Dict[str, Any]]]:
        """Return the raw link structure for the selected server."""
        pass


class BaseServerListing(ABC):
    """Service listing the servers available for an episode, grouped by variant."""

    @abstractmethod
    async def get_servers(self, content_ref: str) -> Union[ServerList, Dict[str, Any]]:
        """Return ``{"sub": [...], "dub": [...]}`` for the given content reference."""
        pass
