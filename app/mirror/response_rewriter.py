"""
Rewrites origin responses so that only proxy hostnames reach the client.

Textual bodies get every bounded occurrence of a real origin hostname replaced
with ``{proxy_prefix}{domain_suffix}``; redirect responses get their ``Location``
rewritten the same way. Everything else passes through untouched.
"""

import logging
import re
from typing import Optional

import httpx

from app.mirror.headers import sanitize_response_headers
from app.mirror.mapping import MappingTable
from app.mirror.models import ProxyResult, ResolvedRequestContext

logger = logging.getLogger("uvicorn.error")

TEXTUAL_CONTENT_TYPES = (
    "text/",
    "application/json",
    "application/javascript",
    "application/xml",
)

REDIRECT_STATUS_CODES = frozenset({301, 302, 303, 307, 308})

# A "/" right after a quote that starts neither "//" nor a "scheme:" URL
ROOT_RELATIVE_PATTERN = re.compile(r"(?<=[\"'])/(?!/|[a-zA-Z]+:)")


def is_textual(content_type: str) -> bool:
    content_type = (content_type or "").lower()
    return any(marker in content_type for marker in TEXTUAL_CONTENT_TYPES)


def is_redirect(status_code: int, location: Optional[str]) -> bool:
    return status_code in REDIRECT_STATUS_CODES and bool(location)


def rewrite_body(
    text: str, context: ResolvedRequestContext, table: MappingTable
) -> str:
    """
    Replace absolute and protocol-relative origin URLs with proxy URLs.

    All hostnames are matched in a single pass, longest first, so a replacement
    is never scanned again and ``api.github.com`` is never taken for
    ``github.com``. Absolute URLs always come out as ``https://``.
    """

    def _replace(match: re.Match) -> str:
        entry = table.entry_for_real_host(match.group("host"))
        proxy_host = entry.proxy_host(context.domain_suffix)
        if match.group("scheme"):
            return f"https://{proxy_host}"
        return f"//{proxy_host}"

    text = table.origin_pattern.sub(_replace, text)

    if context.is_primary_alias:
        text = ROOT_RELATIVE_PATTERN.sub(
            lambda _match: f"https://{context.effective_host}/", text
        )
    return text


def rewrite_location(
    location: str, context: ResolvedRequestContext, table: MappingTable
) -> str:
    """Replace the first real hostname found in a redirect target, longest hosts first."""
    for entry in table.entries_by_host_length:
        if entry.real_host in location:
            return location.replace(
                entry.real_host, entry.proxy_host(context.domain_suffix), 1
            )
    return location


def _passthrough_length(response: httpx.Response) -> tuple[tuple[str, str], ...]:
    # Bytes that pass through unchanged keep the origin length, unless they were decoded
    length = response.headers.get("content-length")
    if length is None or response.headers.get("content-encoding", "identity") != "identity":
        return ()
    return (("Content-Length", length),)


def rewrite_response(
    response: httpx.Response,
    context: ResolvedRequestContext,
    table: MappingTable,
    method: str = "GET",
) -> ProxyResult:
    """Turn the origin response into the result returned to the client."""
    location = response.headers.get("location")
    if is_redirect(response.status_code, location):
        new_location = rewrite_location(location, context, table)
        logger.debug(f"[Rewrite] Location {location} -> {new_location}")
        return ProxyResult(
            status_code=response.status_code,
            headers=(("Location", new_location),),
        )

    headers = sanitize_response_headers(response.headers.multi_items())
    content_type = response.headers.get("content-type", "")
    if not is_textual(content_type):
        if method == "HEAD":
            headers += _passthrough_length(response)
        return ProxyResult(
            status_code=response.status_code, headers=headers, body=response.content
        )

    encoding = response.encoding or "utf-8"
    text = rewrite_body(response.text, context, table)
    return ProxyResult(
        status_code=response.status_code,
        headers=headers,
        body=text.encode(encoding, errors="replace"),
    )
