from dataclasses import dataclass, field
from typing import Optional

from app.mirror.mapping import PRIMARY_ALIAS_PREFIX


@dataclass(frozen=True)
class ResolvedRequestContext:
    """Per-request view of which mapping entry serves the inbound hostname."""

    effective_host: str
    matched_prefix: str
    domain_suffix: str
    target_host: str

    @property
    def is_primary_alias(self) -> bool:
        return self.matched_prefix == PRIMARY_ALIAS_PREFIX


@dataclass(frozen=True)
class OutboundRequest:
    method: str
    url: str
    headers: dict[str, str]
    content: Optional[bytes] = None


@dataclass(frozen=True)
class ProxyResult:
    """Status, ordered header pairs and body handed back to the hosting layer."""

    status_code: int
    headers: tuple[tuple[str, str], ...] = field(default_factory=tuple)
    body: bytes = b""

    def header(self, name: str) -> Optional[str]:
        name = name.lower()
        for key, value in self.headers:
            if key.lower() == name:
                return value
        return None
