"""
Listing Identity Derivation

Extracts the source-local listing key from a URL path and combines it with
the source id into a ListingIdentity. A URL that does not yield a key is an
expected outcome (index pages, unrecognised sub-formats) and returns None;
callers should treat it as "cannot process this URL", not retry.
"""

from __future__ import annotations

import logging
from typing import Optional

from portal_core.classifier import split_url
from portal_core.errors import UnparsableURLError
from portal_core.models import ListingIdentity
from portal_core.monitoring import ErrorReporter, LoggingErrorReporter
from portal_core.registry import SourceRegistry


logger = logging.getLogger(__name__)


class IdentityDeriver:
    """Derive listing identities using the registry's capture patterns."""

    def __init__(
        self,
        registry: SourceRegistry,
        reporter: Optional[ErrorReporter] = None,
    ) -> None:
        self.registry = registry
        self.reporter = reporter or LoggingErrorReporter()

    def derive_identity(self, url: str, source_id: str) -> Optional[ListingIdentity]:
        """
        Derive the identity of the listing at url.

        Args:
            url: Absolute listing URL
            source_id: Source the URL belongs to

        Returns:
            ListingIdentity, or None if the source is unknown, the URL is
            unparsable or its path carries no listing key
        """
        descriptor = self.registry.get(source_id)
        if descriptor is None:
            logger.info("No registered source %r for %s", source_id, url)
            return None

        try:
            parts = split_url(url)
        except UnparsableURLError as e:
            logger.warning("Could not derive identity for %r: %s", url, e)
            self.reporter.report_extraction_error(
                e,
                {
                    "url": str(url),
                    "portal": source_id,
                    "extraction_stage": "property_id_generation",
                },
                level="warning",
            )
            return None

        local_id = descriptor.capture_listing_id(parts.path)
        if local_id is None:
            logger.info("Unrecognised %s listing path: %s", source_id, parts.path)
            return None

        return ListingIdentity(source_id=source_id, local_id=local_id)
