"""
Static bidirectional table between real origin hostnames and proxy-hostname prefixes.

The table is built once at process start and never mutated. A proxy hostname is
``{proxy_prefix}{domain_suffix}``, e.g. ``nf-gh.`` + ``example.com``.
"""

import json
import logging
import re
from dataclasses import dataclass
from functools import cached_property
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

logger = logging.getLogger("uvicorn.error")

# Short alias for the primary origin; also enables root-relative path rewriting
PRIMARY_ALIAS_PREFIX = "gh."
PRIMARY_ORIGIN = "github.com"

DEFAULT_DOMAIN_MAPPINGS = (
    ("github.com", "nf-gh."),
    ("avatars.githubusercontent.com", "nf-avatars-githubusercontent-com."),
    ("github.githubassets.com", "nf-github-githubassets-com."),
    ("collector.github.com", "nf-collector-github-com."),
    ("api.github.com", "nf-api-github-com."),
    ("raw.githubusercontent.com", "nf-raw-githubusercontent-com."),
    ("gist.githubusercontent.com", "nf-gist-githubusercontent-com."),
    ("github.io", "nf-github-io."),
    ("assets-cdn.github.com", "nf-assets-cdn-github-com."),
    ("cdn.jsdelivr.net", "nf-cdn.jsdelivr-net."),
    ("securitylab.github.com", "nf-securitylab-github-com."),
    ("www.githubstatus.com", "nf-www-githubstatus-com."),
    ("npmjs.com", "nf-npmjs-com."),
    ("git-lfs.github.com", "nf-git-lfs-github-com."),
    ("githubusercontent.com", "nf-githubusercontent-com."),
    ("github.global.ssl.fastly.net", "nf-github-global-ssl-fastly-net."),
    ("api.npms.io", "nf-api-npms-io."),
    ("github.community", "nf-github-community."),
)


class MappingConfigurationError(ValueError):
    """Raised at start-up when the mapping configuration is unusable."""


@dataclass(frozen=True)
class MappingEntry:
    real_host: str
    proxy_prefix: str

    def proxy_host(self, domain_suffix: str) -> str:
        return f"{self.proxy_prefix}{domain_suffix}"


class MappingTable:
    """Ordered, read-only sequence of MappingEntry with a reverse index."""

    def __init__(self, entries: Iterable[MappingEntry]):
        entries = tuple(entries)
        if not entries:
            raise MappingConfigurationError("Mapping table has no entries")
        real_hosts = set()
        by_prefix: dict[str, str] = {}
        for entry in entries:
            if not entry.real_host or not entry.proxy_prefix:
                raise MappingConfigurationError(
                    f"Empty host or prefix in mapping entry: {entry}"
                )
            if entry.real_host in real_hosts:
                raise MappingConfigurationError(
                    f"Duplicate real host in mapping table: {entry.real_host}"
                )
            if entry.proxy_prefix in by_prefix:
                raise MappingConfigurationError(
                    f"Duplicate proxy prefix in mapping table: {entry.proxy_prefix}"
                )
            real_hosts.add(entry.real_host)
            by_prefix[entry.proxy_prefix] = entry.real_host

        self._entries = entries
        self._by_prefix = MappingProxyType(by_prefix)
        self._by_real_host = MappingProxyType(
            {entry.real_host: entry for entry in entries}
        )

    def __iter__(self):
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def prefixes(self) -> tuple[str, ...]:
        """Proxy prefixes in table order."""
        return tuple(entry.proxy_prefix for entry in self._entries)

    def real_host_for(self, prefix: str) -> Optional[str]:
        if prefix == PRIMARY_ALIAS_PREFIX:
            return PRIMARY_ORIGIN
        return self._by_prefix.get(prefix)

    def entry_for_real_host(self, real_host: str) -> Optional[MappingEntry]:
        return self._by_real_host.get(real_host)

    @cached_property
    def entries_by_host_length(self) -> tuple[MappingEntry, ...]:
        """Longest real host first, ties kept in table order."""
        return tuple(
            sorted(self._entries, key=lambda entry: len(entry.real_host), reverse=True)
        )

    @cached_property
    def origin_pattern(self) -> re.Pattern:
        """
        Matches ``https://host``, ``http://host`` and ``//host`` for every real host,
        when followed by a slash, a quote, whitespace or the end of the text.
        """
        alternation = "|".join(
            re.escape(entry.real_host) for entry in self.entries_by_host_length
        )
        return re.compile(
            rf"(?P<scheme>https?:)?//(?P<host>{alternation})(?=[/\"'\s]|\Z)"
        )

    def __repr__(self) -> str:
        return f"MappingTable({len(self._entries)} entries)"


def build_mapping_table(mappings: Mapping[str, str]) -> MappingTable:
    """Build a table from a ``{real_host: proxy_prefix}`` mapping, keeping its order."""
    entries = []
    for real_host, proxy_prefix in mappings.items():
        if not isinstance(real_host, str) or not isinstance(proxy_prefix, str):
            raise MappingConfigurationError(
                f"Mapping keys and values must be strings: {real_host!r} -> {proxy_prefix!r}"
            )
        entries.append(
            MappingEntry(real_host=real_host.strip(), proxy_prefix=proxy_prefix.strip())
        )
    return MappingTable(entries)


def default_mapping_table() -> MappingTable:
    return MappingTable(
        MappingEntry(real_host=real_host, proxy_prefix=proxy_prefix)
        for real_host, proxy_prefix in DEFAULT_DOMAIN_MAPPINGS
    )


def load_mapping_table(path: Optional[str] = None) -> MappingTable:
    """Load the table from a JSON file, or return the built-in table when no path is given."""
    if not path:
        table = default_mapping_table()
        logger.info(f"[Mapping] Using built-in mapping table with {len(table)} entries")
        return table

    try:
        with open(path, "r", encoding="utf-8") as fh:
            raw = json.load(fh)
    except (OSError, json.JSONDecodeError) as e:
        raise MappingConfigurationError(
            f"Unable to read mapping file {path}: {e}"
        ) from e

    if not isinstance(raw, dict):
        raise MappingConfigurationError(
            f"Mapping file {path} must contain a JSON object of real host to prefix"
        )

    table = build_mapping_table(raw)
    logger.info(f"[Mapping] Loaded {len(table)} entries from {path}")
    return table
