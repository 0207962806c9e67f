"""
Source Registry - Supported Portal Registration

Every portal the engine can process is described by one immutable
SourceDescriptor. The descriptor carries its own host and path rules, so
classification and identity derivation are written once and driven by this
table: supporting a new portal is a data change.

The registry is built once at process start and handed explicitly to the
components that read it. Nothing in the engine mutates it afterwards.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Final, Iterable, Iterator, Optional, Pattern, Union


_SOURCE_ID_REGEX: Final = re.compile(r"^[a-z0-9_]+$")
_HOST_PATTERN_REGEX: Final = re.compile(r"^[a-z0-9-]+(\.[a-z0-9-]+)+$")


def _compile(pattern: Union[str, Pattern[str]]) -> Pattern[str]:
    if isinstance(pattern, str):
        return re.compile(pattern)
    return pattern


@dataclass(frozen=True)
class SourceDescriptor:
    """
    Immutable description of one supported listing source.

    Invariants:
        - source_id is lowercase alphanumeric with underscores, so the
          canonical identity "{source_id}-{local_id}" splits unambiguously
        - host_pattern is a bare registrable domain (no scheme, no path)
        - listing_id_capture has exactly one capturing group
    """

    source_id: str
    source_name: str
    host_pattern: str
    listing_path_pattern: Pattern[str]
    listing_id_capture: Pattern[str]

    def __post_init__(self) -> None:
        """Validate descriptor constraints and compile string patterns."""
        if not self.source_id:
            raise ValueError("source_id is required")
        if not _SOURCE_ID_REGEX.match(self.source_id):
            raise ValueError(
                f"source_id must be lowercase alphanumeric with underscores: {self.source_id}"
            )
        if not self.source_name:
            raise ValueError("source_name is required")

        host_pattern = (self.host_pattern or "").strip().lower()
        if not _HOST_PATTERN_REGEX.match(host_pattern):
            raise ValueError(f"host_pattern must be a bare domain: {self.host_pattern!r}")
        object.__setattr__(self, "host_pattern", host_pattern)

        object.__setattr__(self, "listing_path_pattern", _compile(self.listing_path_pattern))
        capture = _compile(self.listing_id_capture)
        if capture.groups != 1:
            raise ValueError(
                f"listing_id_capture for {self.source_id} must have exactly one "
                f"capturing group, found {capture.groups}"
            )
        object.__setattr__(self, "listing_id_capture", capture)

    def matches_host(self, host: str) -> bool:
        """True if host is the pattern domain or one of its subdomains."""
        host = host.lower().rstrip(".")
        return host == self.host_pattern or host.endswith("." + self.host_pattern)

    def overlaps(self, other: "SourceDescriptor") -> bool:
        """True if some host would match both descriptors."""
        return self.matches_host(other.host_pattern) or other.matches_host(self.host_pattern)

    def is_listing_path(self, path: str) -> bool:
        return self.listing_path_pattern.search(path) is not None

    def capture_listing_id(self, path: str) -> Optional[str]:
        match = self.listing_id_capture.search(path)
        if match is None:
            return None
        return match.group(1) or None

    def to_dict(self) -> dict[str, Any]:
        return {
            "sourceId": self.source_id,
            "sourceName": self.source_name,
            "hostPattern": self.host_pattern,
            "listingPathPattern": self.listing_path_pattern.pattern,
            "listingIdCapture": self.listing_id_capture.pattern,
        }


# =============================================================================
# Source Registry
# =============================================================================


class SourceRegistry:
    """
    Ordered, read-only-after-construction set of source descriptors.

    Lookups iterate in registration order and return the first match; the
    non-overlap check on register() guarantees at most one can match.
    """

    def __init__(self, descriptors: Iterable[SourceDescriptor] = ()) -> None:
        self._descriptors: dict[str, SourceDescriptor] = {}
        for descriptor in descriptors:
            self.register(descriptor)

    def register(self, descriptor: SourceDescriptor) -> None:
        """
        Add a descriptor.

        Raises:
            ValueError: If the source_id is taken or the host pattern overlaps
                an already registered one
        """
        if descriptor.source_id in self._descriptors:
            raise ValueError(f"Source already registered: {descriptor.source_id}")
        for existing in self._descriptors.values():
            if existing.overlaps(descriptor):
                raise ValueError(
                    f"Host pattern {descriptor.host_pattern} overlaps "
                    f"{existing.host_pattern} ({existing.source_id})"
                )
        self._descriptors[descriptor.source_id] = descriptor

    def get(self, source_id: str) -> Optional[SourceDescriptor]:
        return self._descriptors.get(source_id)

    def match_host(self, host: str) -> Optional[SourceDescriptor]:
        """Return the descriptor whose host pattern matches host, if any."""
        if not host:
            return None
        for descriptor in self._descriptors.values():
            if descriptor.matches_host(host):
                return descriptor
        return None

    @property
    def source_ids(self) -> list[str]:
        return list(self._descriptors)

    def __iter__(self) -> Iterator[SourceDescriptor]:
        return iter(list(self._descriptors.values()))

    def __len__(self) -> int:
        return len(self._descriptors)

    def __contains__(self, source_id: object) -> bool:
        return source_id in self._descriptors


# =============================================================================
# Default Registrations
# =============================================================================

# UK property portals. Listing paths:
#   rightmove      /properties/123456789
#   zoopla         /for-sale/details/64812345/
#   onthemarket    /details/12345678/ (alphanumeric on older links)
#   primelocation  /property-for-sale/property-12345678/
DEFAULT_SOURCES: Final[tuple[SourceDescriptor, ...]] = (
    SourceDescriptor(
        source_id="rightmove",
        source_name="Rightmove",
        host_pattern="rightmove.co.uk",
        listing_path_pattern=re.compile(r"/properties/[0-9]+"),
        listing_id_capture=re.compile(r"/properties/([0-9]+)"),
    ),
    SourceDescriptor(
        source_id="zoopla",
        source_name="Zoopla",
        host_pattern="zoopla.co.uk",
        listing_path_pattern=re.compile(r"/for-sale/details/[0-9]+"),
        listing_id_capture=re.compile(r"/for-sale/details/([0-9]+)"),
    ),
    SourceDescriptor(
        source_id="onthemarket",
        source_name="OnTheMarket",
        host_pattern="onthemarket.com",
        listing_path_pattern=re.compile(r"/details/[a-zA-Z0-9]+"),
        listing_id_capture=re.compile(r"/details/([a-zA-Z0-9]+)"),
    ),
    SourceDescriptor(
        source_id="primelocation",
        source_name="PrimeLocation",
        host_pattern="primelocation.com",
        listing_path_pattern=re.compile(r"/property-for-sale/property-[0-9]+"),
        listing_id_capture=re.compile(r"/property-for-sale/property-([0-9]+)"),
    ),
)


def build_default_registry() -> SourceRegistry:
    """Build a registry holding the supported UK portals."""
    return SourceRegistry(DEFAULT_SOURCES)
