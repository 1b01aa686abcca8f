from typing import Collection, Optional

from app.mirror.headers import PREFLIGHT_HEADERS
from app.mirror.models import ProxyResult


def preflight_result() -> ProxyResult:
    """Fixed CORS preflight answer; no origin is contacted."""
    return ProxyResult(status_code=200, headers=PREFLIGHT_HEADERS)


def policy_redirect_result(
    path: str, redirect_paths: Collection[str], redirect_url: str
) -> Optional[ProxyResult]:
    """Redirect guarded paths to a fixed external URL, whatever host was asked for."""
    if path not in redirect_paths:
        return None
    return ProxyResult(status_code=302, headers=(("Location", redirect_url),))
