"""
Source and Page Classification

Resolves a URL to a registered source and decides whether it addresses an
individual listing rather than a search or index page. Both operations are
total: unknown hosts and unparsable URLs come back as None / False, with
parse failures reported to the error sink as non-fatal.
"""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import SplitResult, urlsplit

from portal_core.errors import UnparsableURLError
from portal_core.monitoring import ErrorReporter, LoggingErrorReporter
from portal_core.registry import SourceDescriptor, SourceRegistry


logger = logging.getLogger(__name__)


def split_url(url: str) -> SplitResult:
    """
    Split an absolute URL, requiring both a scheme and a host.

    Raises:
        UnparsableURLError: If url is not a string, lacks a scheme or host,
            or has a malformed network location
    """
    if not isinstance(url, str):
        raise UnparsableURLError(f"URL must be a string, got {type(url).__name__}")
    try:
        parts = urlsplit(url.strip())
        hostname = parts.hostname
    except ValueError as e:
        raise UnparsableURLError(f"Invalid URL: {url}") from e
    if not parts.scheme or not hostname:
        raise UnparsableURLError(f"Invalid URL: {url}")
    return parts


class SourceClassifier:
    """Classify URLs against a SourceRegistry."""

    def __init__(
        self,
        registry: SourceRegistry,
        reporter: Optional[ErrorReporter] = None,
    ) -> None:
        self.registry = registry
        self.reporter = reporter or LoggingErrorReporter()

    def resolve(self, url: str) -> Optional[SourceDescriptor]:
        """
        Resolve url to its source descriptor.

        Returns:
            The matching descriptor, or None for unknown hosts and
            unparsable URLs
        """
        try:
            parts = split_url(url)
        except UnparsableURLError as e:
            self._report(e, url, "portal_identification")
            return None
        return self.registry.match_host(parts.hostname)

    def identify_source(self, url: str) -> Optional[str]:
        """Return the source id for url, or None if unsupported."""
        descriptor = self.resolve(url)
        return descriptor.source_id if descriptor else None

    def is_listing_page(self, url: str) -> bool:
        """True if url is an individual listing page of a registered source."""
        try:
            parts = split_url(url)
        except UnparsableURLError as e:
            self._report(e, url, "property_page_check")
            return False

        descriptor = self.registry.match_host(parts.hostname)
        if descriptor is None:
            return False
        return descriptor.is_listing_path(parts.path)

    def _report(self, error: Exception, url: object, stage: str) -> None:
        logger.warning("Could not classify URL %r at %s: %s", url, stage, error)
        self.reporter.report_extraction_error(
            error,
            {"url": str(url), "extraction_stage": stage},
            level="warning",
        )
