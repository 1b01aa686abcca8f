import asyncio
import logging
from typing import Awaitable, TypeVar
from urllib.parse import quote_from_bytes

import httpx
from fastapi import Request
from opentelemetry import trace

from app.mirror.errors import (
    ClientDisconnectedError,
    UpstreamError,
    UpstreamTimeoutError,
)
from app.mirror.mapping import MappingTable
from app.mirror.models import OutboundRequest, ProxyResult
from app.mirror.policy import policy_redirect_result, preflight_result
from app.mirror.request_rewriter import build_outbound_request, encode_header_values
from app.mirror.resolver import resolve_request_context
from app.mirror.response_rewriter import rewrite_response
from app.utils import redact_headers
from app.utils.traced_requests import annotate_context, traced_mirror_request
from app.vars import (
    DISCONNECT_POLL_INTERVAL,
    PLATFORM_HEADER_PREFIXES,
    POLICY_REDIRECT_PATHS,
    POLICY_REDIRECT_URL,
    PROXY_TIMEOUT,
)

tracer = trace.get_tracer(__name__)
logger = logging.getLogger("uvicorn.error")

T = TypeVar("T")

# Characters left as-is when a raw path has to be re-escaped
_PATH_SAFE_CHARS = "/%:@!$&'()*+,;=-._~"


def effective_host_of(request: Request) -> str:
    """The Host header decides the domain suffix; the URL host is the fallback."""
    return request.headers.get("host") or request.url.netloc


def raw_path_of(request: Request) -> str:
    """Inbound path with its original percent-encoding."""
    raw_path = request.scope.get("raw_path")
    if not raw_path:
        return request.url.path
    try:
        return raw_path.decode("ascii")
    except UnicodeDecodeError:
        return quote_from_bytes(raw_path, safe=_PATH_SAFE_CHARS)


async def send_upstream(outbound: OutboundRequest) -> httpx.Response:
    """Issue the outbound request; redirects come back as-is."""
    try:
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(PROXY_TIMEOUT),
            follow_redirects=False,
        ) as client:
            return await client.request(
                method=outbound.method,
                url=outbound.url,
                headers=encode_header_values(outbound.headers),
                content=outbound.content,
            )
    except httpx.TimeoutException as e:
        raise UpstreamTimeoutError(
            f"Timed out after {PROXY_TIMEOUT}s waiting for {outbound.url}"
        ) from e
    except httpx.HTTPError as e:
        raise UpstreamError(f"Request to {outbound.url} failed: {e}") from e


async def cancel_on_disconnect(
    request: Request, awaitable: Awaitable[T], poll_interval: float
) -> T:
    """Await the given work, cancelling it if the inbound client goes away first."""
    task = asyncio.ensure_future(awaitable)
    try:
        while True:
            done, _pending = await asyncio.wait({task}, timeout=poll_interval)
            if task in done:
                return task.result()
            if await request.is_disconnected():
                raise ClientDisconnectedError(
                    "Client disconnected before the origin answered"
                )
    finally:
        if not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass


async def mirror_request(request: Request, table: MappingTable) -> ProxyResult:
    """
    Handle one inbound request end to end:
    - OPTIONS preflight and the static redirect guard answer without an origin
    - the inbound hostname is resolved to a prefix and origin
    - the outbound request is built and sent, cancelled if the client leaves
    - the origin response is rewritten for the proxy hostnames
    """
    if request.method == "OPTIONS":
        return preflight_result()

    redirect = policy_redirect_result(
        request.url.path, POLICY_REDIRECT_PATHS, POLICY_REDIRECT_URL
    )
    if redirect is not None:
        logger.info(f"[Mirror] Policy redirect for {request.url.path}")
        return redirect

    effective_host = effective_host_of(request)
    with traced_mirror_request(
        tracer,
        operation="mirror_request",
        effective_host=effective_host,
        method=request.method,
        start_message=f"[Mirror] {request.method} {effective_host}{request.url.path}",
    ) as span:
        span.add_event("inbound.received", {"path": request.url.path})
        context = resolve_request_context(effective_host, table)
        annotate_context(span, context)

        body = await request.body()
        outbound = build_outbound_request(
            method=request.method,
            path=raw_path_of(request),
            query=request.url.query,
            headers=request.headers.items(),
            body=body,
            context=context,
            platform_prefixes=PLATFORM_HEADER_PREFIXES,
        )
        span.add_event("outbound.sent", {"url": outbound.url})
        logger.debug(
            f"[Mirror] Outbound {outbound.method} {outbound.url} headers={redact_headers(outbound.headers.items())}"
        )

        response = await cancel_on_disconnect(
            request, send_upstream(outbound), DISCONNECT_POLL_INTERVAL
        )
        span.add_event("response.received", {"status_code": response.status_code})
        span.set_attribute("mirror.status_code", response.status_code)
        logger.debug(
            f"[Mirror] Origin answered {response.status_code} headers={redact_headers(response.headers.multi_items())}"
        )

        return rewrite_response(response, context, table, method=outbound.method)
