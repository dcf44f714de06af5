from .base import BaseProviderAdapter, BaseServerListing

__all__ = ["BaseProviderAdapter", "BaseServerListing"]
