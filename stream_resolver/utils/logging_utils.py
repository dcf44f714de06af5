import logging

from stream_resolver.configs import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configure root logging for applications embedding the resolver."""
    logging.basicConfig(level=level or settings.log_level, format=LOG_FORMAT)
