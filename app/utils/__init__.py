from typing import Iterable, Optional

SENSITIVE_HEADERS = frozenset(
    {"authorization", "proxy-authorization", "cookie", "set-cookie"}
)


def mask_value(value: Optional[str]) -> Optional[str]:
    return f"{value[:4]}****" if value else value


def redact_headers(headers: Iterable[tuple[str, str]]) -> dict[str, str]:
    """Header dict safe for debug logs: credential-bearing values are masked."""
    redacted = {}
    for name, value in headers:
        if name.lower() in SENSITIVE_HEADERS:
            value = mask_value(value)
        redacted[name] = value
    return redacted
