import logging
from typing import Optional

from app.mirror.errors import UnmappedHostError, UnresolvedTargetError
from app.mirror.mapping import PRIMARY_ALIAS_PREFIX, MappingTable
from app.mirror.models import ResolvedRequestContext

logger = logging.getLogger("uvicorn.error")


def resolve_prefix(hostname: str, table: MappingTable) -> Optional[str]:
    """
    Return the proxy prefix the hostname starts with, or None.

    The ``gh.`` alias is checked first. Configured prefixes are then tried in
    table order and the first match wins; no longest-prefix preference applies.
    """
    if not hostname:
        return None
    if hostname.startswith(PRIMARY_ALIAS_PREFIX):
        return PRIMARY_ALIAS_PREFIX
    for prefix in table.prefixes:
        if hostname.startswith(prefix):
            return prefix
    return None


def resolve_target(prefix: str, table: MappingTable) -> Optional[str]:
    return table.real_host_for(prefix)


def resolve_request_context(
    effective_host: str, table: MappingTable
) -> ResolvedRequestContext:
    prefix = resolve_prefix(effective_host, table)
    if prefix is None:
        raise UnmappedHostError(effective_host)

    target_host = resolve_target(prefix, table)
    if target_host is None:
        raise UnresolvedTargetError(prefix)

    context = ResolvedRequestContext(
        effective_host=effective_host,
        matched_prefix=prefix,
        domain_suffix=effective_host[len(prefix):],
        target_host=target_host,
    )
    logger.debug(
        f"[Resolver] {effective_host} -> prefix={prefix} suffix={context.domain_suffix} target={target_host}"
    )
    return context
