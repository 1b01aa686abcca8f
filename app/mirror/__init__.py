"""
Domain-mirroring reverse proxy core.

Inbound requests for proxy hostnames (``{proxy_prefix}{domain_suffix}``) are
resolved to their real origin, forwarded, and the origin response is rewritten
so that every real hostname is replaced by the matching proxy hostname.
"""

from .mapping import (
    MappingEntry,
    MappingTable,
    MappingConfigurationError,
    load_mapping_table,
)
from .models import OutboundRequest, ProxyResult, ResolvedRequestContext
from .proxy import mirror_request

__all__ = [
    "MappingEntry",
    "MappingTable",
    "MappingConfigurationError",
    "load_mapping_table",
    "OutboundRequest",
    "ProxyResult",
    "ResolvedRequestContext",
    "mirror_request",
]
