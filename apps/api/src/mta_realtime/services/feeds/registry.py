"""Feed registry: feed key to upstream GTFS-RT source per domain."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Optional

from mta_realtime.services.feeds.errors import InvalidFeedKeyError


class FeedDomain(str, Enum):
    SUBWAY = "subway"
    LIRR = "lirr"
    MNR = "mnr"


@dataclass(frozen=True)
class FeedSource:
    """One upstream feed: where it lives and how consumers refer to it."""

    domain: FeedDomain
    key: str
    label: str
    url: str


# Feed key -> (label, path under the MTA feed base URL)
SUBWAY_FEEDS: Mapping[str, tuple[str, str]] = MappingProxyType(
    {
        "ace": ("ACE", "nyct%2Fgtfs-ace"),
        "g": ("G", "nyct%2Fgtfs-g"),
        "nqrw": ("NQRW", "nyct%2Fgtfs-nqrw"),
        "default": ("Default", "nyct%2Fgtfs"),
        "bdfm": ("BDFM", "nyct%2Fgtfs-bdfm"),
        "jz": ("JZ", "nyct%2Fgtfs-jz"),
        "l": ("L", "nyct%2Fgtfs-l"),
        "si": ("SI", "nyct%2Fgtfs-si"),
    }
)
SUBWAY_DEFAULT_KEY = "default"

LIRR_FEEDS: Mapping[str, tuple[str, str]] = MappingProxyType(
    {"lirr": ("LIRR", "lirr%2Fgtfs-lirr")}
)
MNR_FEEDS: Mapping[str, tuple[str, str]] = MappingProxyType(
    {"mnr": ("Metro-North Railroad", "mnr%2Fgtfs-mnr")}
)


class FeedRegistry:
    """Immutable lookup of the feeds of one domain.

    Keys are matched exactly (case-sensitive). Resolving ``None`` returns the
    domain's default feed.
    """

    def __init__(
        self,
        domain: FeedDomain,
        sources: Mapping[str, FeedSource],
        default_key: str,
    ) -> None:
        if default_key not in sources:
            msg = f"Default key {default_key!r} is not a {domain.value} feed"
            raise ValueError(msg)
        self.domain = domain
        self.default_key = default_key
        self._sources: Mapping[str, FeedSource] = MappingProxyType(dict(sources))

    def resolve(self, key: Optional[str] = None) -> FeedSource:
        """Return the source for ``key``.

        Raises:
            InvalidFeedKeyError: If the key is not registered.
        """
        if key is None:
            key = self.default_key
        source = self._sources.get(key)
        if source is None:
            raise InvalidFeedKeyError(self.domain.value, key)
        return source

    @property
    def keys(self) -> tuple[str, ...]:
        return tuple(self._sources)

    def __iter__(self) -> Iterator[FeedSource]:
        return iter(self._sources.values())

    def __contains__(self, key: object) -> bool:
        return key in self._sources

    def __len__(self) -> int:
        return len(self._sources)


class FeedCatalog:
    """All feed registries known to the service, keyed by domain."""

    def __init__(self, registries: Mapping[FeedDomain, FeedRegistry]) -> None:
        self._registries: Mapping[FeedDomain, FeedRegistry] = MappingProxyType(dict(registries))

    def registry(self, domain: FeedDomain) -> FeedRegistry:
        return self._registries[domain]

    def resolve(self, domain: FeedDomain, key: Optional[str] = None) -> FeedSource:
        return self.registry(domain).resolve(key)

    def __iter__(self) -> Iterator[FeedRegistry]:
        return iter(self._registries.values())


def _build_registry(
    domain: FeedDomain,
    feeds: Mapping[str, tuple[str, str]],
    default_key: str,
    base_url: str,
) -> FeedRegistry:
    base = base_url.rstrip("/")
    sources = {
        key: FeedSource(domain=domain, key=key, label=label, url=f"{base}/{path}")
        for key, (label, path) in feeds.items()
    }
    return FeedRegistry(domain, sources, default_key)


def build_mta_catalog(base_url: str) -> FeedCatalog:
    """Build the catalog of MTA subway, LIRR and Metro-North feeds."""
    return FeedCatalog(
        {
            FeedDomain.SUBWAY: _build_registry(
                FeedDomain.SUBWAY, SUBWAY_FEEDS, SUBWAY_DEFAULT_KEY, base_url
            ),
            FeedDomain.LIRR: _build_registry(FeedDomain.LIRR, LIRR_FEEDS, "lirr", base_url),
            FeedDomain.MNR: _build_registry(FeedDomain.MNR, MNR_FEEDS, "mnr", base_url),
        }
    )
