from typing import Iterable

# Set on every non-redirect response, replacing whatever the origin sent
OVERRIDDEN_RESPONSE_HEADERS = (
    ("Access-Control-Allow-Origin", "*"),
    ("Access-Control-Allow-Credentials", "true"),
    ("Cache-Control", "public, max-age=14400"),
)

STRIPPED_RESPONSE_HEADERS = frozenset(
    {
        # would block rewritten cross-origin resources under the proxy hostname
        "content-security-policy",
        "content-security-policy-report-only",
        "clear-site-data",
        # the body reaching the client is decoded and re-serialized
        "content-encoding",
        "content-length",
        # hop-by-hop
        "connection",
        "transfer-encoding",
    }
)

PREFLIGHT_HEADERS = (
    ("Access-Control-Allow-Origin", "*"),
    ("Access-Control-Allow-Methods", "GET, POST, PUT, DELETE, OPTIONS"),
    ("Access-Control-Allow-Headers", "*"),
    ("Access-Control-Max-Age", "86400"),
)


def sanitize_response_headers(
    headers: Iterable[tuple[str, str]],
) -> tuple[tuple[str, str], ...]:
    """Forward origin headers except stripped and overridden ones, then apply overrides."""
    overridden = {name.lower() for name, _ in OVERRIDDEN_RESPONSE_HEADERS}
    sanitized = [
        (name, value)
        for name, value in headers
        if name.lower() not in STRIPPED_RESPONSE_HEADERS
        and name.lower() not in overridden
    ]
    sanitized.extend(OVERRIDDEN_RESPONSE_HEADERS)
    return tuple(sanitized)

