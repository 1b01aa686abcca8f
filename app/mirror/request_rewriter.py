import logging
import re
from typing import Iterable, Optional, Sequence

import httpx

from app.mirror.errors import MalformedRequestURLError
from app.mirror.models import OutboundRequest, ResolvedRequestContext

logger = logging.getLogger("uvicorn.error")

# Lowercased header-name prefixes that must not reach the origin
SKIPPED_HEADER_PREFIXES = ("host", "connection", "cf-", "x-forwarded-")

# The inbound body was already de-framed by the server; httpx frames it again
REFRAMED_HEADERS = frozenset({"content-length", "transfer-encoding"})

BODYLESS_METHODS = frozenset({"GET", "HEAD"})

# Rewritten pages link to ".../latest-commit/{id}/https://host/..." style paths.
# Everything after the identifier segment is dropped, for literal and
# percent-encoded forms of the nested scheme.
NESTED_URL_PATTERN = re.compile(
    r"^(?P<keep>(?:/[^/]*)*?/(?:latest-commit|tree-commit-info)/[^/]+)"
    r"/https?(?::|%3A)(?:/|%2F){1,2}",
    re.IGNORECASE,
)


def denest_path(path: str) -> str:
    match = NESTED_URL_PATTERN.match(path)
    if not match:
        return path
    denested = match.group("keep")
    logger.debug(f"[Rewrite] De-nested path {path} -> {denested}")
    return denested


def filter_request_headers(
    headers: Iterable[tuple[str, str]],
    platform_prefixes: Sequence[str] = (),
) -> dict[str, str]:
    """Copy inbound headers, dropping host/connection, CDN and platform ones."""
    skipped = SKIPPED_HEADER_PREFIXES + tuple(platform_prefixes)
    filtered: dict[str, str] = {}
    for name, value in headers:
        name_lower = name.lower()
        if name_lower.startswith(skipped) or name_lower in REFRAMED_HEADERS:
            continue
        filtered[name] = value
    return filtered


def encode_header_values(headers: dict[str, str]) -> dict[str, bytes]:
    """
    Header values as the bytes that arrived.

    The server decodes values as latin-1; httpx would encode a str value as ASCII
    and fail on obs-text such as a UTF-8 cookie.
    """
    return {name: value.encode("latin-1") for name, value in headers.items()}


def build_outbound_url(context: ResolvedRequestContext, path: str, query: str = "") -> str:
    if not path.startswith("/"):
        path = "/" + path
    url = f"https://{context.target_host}{path}"
    if query:
        url = f"{url}?{query}"
    try:
        httpx.URL(url)
    except httpx.InvalidURL as e:
        raise MalformedRequestURLError(f"Invalid outbound URL {url}: {e}") from e
    return url


def build_outbound_request(
    method: str,
    path: str,
    query: str,
    headers: Iterable[tuple[str, str]],
    body: Optional[bytes],
    context: ResolvedRequestContext,
    platform_prefixes: Sequence[str] = (),
) -> OutboundRequest:
    """
    Build the request sent to the origin.

    Args:
        method: inbound HTTP method
        path: inbound path, percent-encoding preserved
        query: raw query string without the leading ``?``
        headers: inbound header pairs
        body: inbound body bytes
        context: resolved per-request mapping context
        platform_prefixes: extra header-name prefixes injected by the hosting platform

    Returns:
        OutboundRequest targeting ``https://{target_host}{path}{query}``
    """
    method = method.upper()
    url = build_outbound_url(context, denest_path(path), query)

    outbound_headers = {
        name: value
        for name, value in filter_request_headers(headers, platform_prefixes).items()
        if name.lower() != "referer"
    }
    outbound_headers["Host"] = context.target_host
    outbound_headers["Referer"] = url

    content = None if method in BODYLESS_METHODS else (body or b"")
    return OutboundRequest(
        method=method, url=url, headers=outbound_headers, content=content
    )
