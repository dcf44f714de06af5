import logging
import typing
from urllib import parse

import httpx

from stream_resolver.configs import settings

logger = logging.getLogger(__name__)

# Characters encodeURIComponent leaves untouched besides alphanumerics and "-_.~"
_URI_COMPONENT_SAFE = "!*'()"


class DownloadError(Exception):
    def __init__(self, status_code, message):
        self.status_code = status_code
        self.message = message
        super().__init__(message)


def create_httpx_client(follow_redirects: bool = True, **kwargs) -> httpx.AsyncClient:
    """
    Create an HTTPX AsyncClient wired to the configured transport mounts.

    Args:
        follow_redirects (bool): Whether to follow 3xx redirects automatically.
        **kwargs: Additional AsyncClient keyword arguments.

    Returns:
        httpx.AsyncClient: Configured client.
    """
    mounts = settings.transport_config.get_mounts()
    kwargs.setdefault("timeout", settings.request_timeout)
    return httpx.AsyncClient(mounts=mounts, follow_redirects=follow_redirects, **kwargs)


def encode_uri_component(value: str) -> str:
    return parse.quote(value, safe=_URI_COMPONENT_SAFE)


def resolve_referer(direct_url: str, default_referer: typing.Optional[str] = None) -> str:
    """
    Derive the Referer header value from the origin of a media URL.

    CDNs check the referer against the host serving the playlist, so the
    origin of the URL itself is used rather than a single fixed value.

    Args:
        direct_url (str): Direct media URL.
        default_referer (str, optional): Origin returned when the URL cannot be parsed.

    Returns:
        str: ``<scheme>://<host>[:<port>]`` of the URL, or the default origin.
    """
    default_referer = default_referer or settings.default_referer
    try:
        parsed = parse.urlsplit(direct_url)
        host = parsed.hostname
        port = parsed.port
        if not parsed.scheme or not host:
            raise ValueError(f"URL has no origin: {direct_url!r}")
    except (TypeError, ValueError) as e:
        logger.info(f"Could not parse streaming URL for referer, using default {default_referer}: {e}")
        return default_referer

    if ":" in host:
        host = f"[{host}]"
    if port is not None:
        return f"{parsed.scheme}://{host}:{port}"
    return f"{parsed.scheme}://{host}"


def build_proxy_url(direct_url: str, referer: str, proxy_base_url: typing.Optional[str] = None) -> str:
    """
    Wrap a direct media URL in the proxy endpoint.

    Args:
        direct_url (str): Direct media URL.
        referer (str): Referer the proxy must send upstream.
        proxy_base_url (str, optional): Proxy endpoint. Defaults to ``settings.proxy_base_url``.

    Returns:
        str: ``<proxy>?url=<encoded>&referer=<encoded>``.
    """
    base_url = proxy_base_url or settings.proxy_base_url
    return f"{base_url}?url={encode_uri_component(direct_url)}&referer={encode_uri_component(referer)}"
