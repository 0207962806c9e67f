"""
Record Assembler - Raw Payload to Canonical Record

Runs classification, identity derivation and field normalisation for one
(raw payload, URL) pair and returns exactly one of:

    - CanonicalProperty: every field independently None-able
    - PartialFailureRecord: degraded, identity-bearing when possible

States: Start -> SourceResolved -> PageValidated -> IdentityDerived ->
FieldsAssembled, or Failed from any of them. No exception escapes
assemble() and there is no retry loop; retry policy belongs to the caller.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from portal_core.classifier import SourceClassifier, split_url
from portal_core.errors import UnparsableURLError
from portal_core.identity import IdentityDeriver
from portal_core.models import (
    AssemblyResult,
    CanonicalProperty,
    ListingIdentity,
    PartialFailureRecord,
)
from portal_core.monitoring import ErrorReporter, LoggingErrorReporter
from portal_core.normalise import FIELD_EXTRACTORS
from portal_core.registry import SourceDescriptor, SourceRegistry


logger = logging.getLogger(__name__)


def _payload_size(raw_data: Any) -> int:
    try:
        return len(raw_data)
    except TypeError:
        return 0


class RecordAssembler:
    """
    Assemble canonical records for a fixed SourceRegistry.

    Components share the registry and reporter passed in; the assembler
    holds no per-invocation state and may be shared across threads.
    """

    def __init__(
        self,
        registry: SourceRegistry,
        reporter: Optional[ErrorReporter] = None,
        classifier: Optional[SourceClassifier] = None,
        deriver: Optional[IdentityDeriver] = None,
    ) -> None:
        self.registry = registry
        self.reporter = reporter or LoggingErrorReporter()
        self.classifier = classifier or SourceClassifier(registry, self.reporter)
        self.deriver = deriver or IdentityDeriver(registry, self.reporter)

    # =========================================================================
    # Assembly
    # =========================================================================

    def assemble(
        self,
        raw_data: Optional[Mapping[str, Any]],
        url: str,
        source_id: Optional[str] = None,
    ) -> AssemblyResult:
        """
        Assemble the record for one listing.

        Args:
            raw_data: Payload from the extraction layer; None means no
                extractable fields
            url: Listing URL the payload was extracted from
            source_id: Known source, skipping host-based resolution

        Returns:
            CanonicalProperty or PartialFailureRecord
        """
        # Start -> SourceResolved
        descriptor = self._resolve_source(url, source_id)
        if descriptor is None:
            return PartialFailureRecord.create(
                url=url,
                failure_code="UNSUPPORTED_SOURCE",
                source=source_id,
                raw_data=raw_data,
            )

        # SourceResolved -> PageValidated
        if not self._is_listing_url(url, descriptor):
            logger.info("Not a %s listing page: %s", descriptor.source_id, url)
            return PartialFailureRecord.create(
                url=url,
                failure_code="NOT_LISTING_PAGE",
                source=descriptor.source_id,
                raw_data=raw_data,
            )

        # PageValidated -> IdentityDerived
        identity = self.deriver.derive_identity(url, descriptor.source_id)
        if identity is None:
            return PartialFailureRecord.create(
                url=url,
                failure_code="UNRECOGNISED_LISTING_PATH",
                source=descriptor.source_id,
                raw_data=raw_data,
            )

        # IdentityDerived -> FieldsAssembled
        try:
            record = self._assemble_fields(raw_data, url, identity)
        except Exception as e:
            logger.error("Assembly failed for %s: %s", identity, e)
            self.reporter.report_extraction_error(
                e,
                {
                    "portal": identity.source_id,
                    "property_id": identity.canonical,
                    "url": url,
                    "raw_payload_size": _payload_size(raw_data),
                    "extraction_stage": "data_processing",
                },
            )
            return PartialFailureRecord.create(
                url=url,
                failure_code="ASSEMBLY_ERROR",
                identity=identity,
                source=identity.source_id,
                raw_data=raw_data,
                error_message=str(e) or type(e).__name__,
            )

        logger.info("Property extracted successfully: %s", identity)
        return record

    def _resolve_source(
        self,
        url: str,
        source_id: Optional[str],
    ) -> Optional[SourceDescriptor]:
        if source_id is not None:
            descriptor = self.registry.get(source_id)
            if descriptor is None:
                logger.info("Caller supplied unregistered source %r", source_id)
            return descriptor
        return self.classifier.resolve(url)

    @staticmethod
    def _is_listing_url(url: str, descriptor: SourceDescriptor) -> bool:
        try:
            parts = split_url(url)
        except UnparsableURLError:
            return False
        return descriptor.is_listing_path(parts.path)

    def _assemble_fields(
        self,
        raw_data: Optional[Mapping[str, Any]],
        url: str,
        identity: ListingIdentity,
    ) -> CanonicalProperty:
        payload = {} if raw_data is None else raw_data
        if not isinstance(payload, Mapping):
            raise TypeError(
                f"Raw payload must be a mapping, got {type(payload).__name__}"
            )

        fields: dict[str, Any] = {}
        for name, extractor in FIELD_EXTRACTORS:
            try:
                fields[name] = extractor(payload)
            except Exception as e:
                # Isolated to this field; the rest of the record still builds
                fields[name] = None
                logger.warning("Field %s failed for %s: %s", name, identity, e)
                self.reporter.report_extraction_error(
                    e,
                    {
                        "portal": identity.source_id,
                        "property_id": identity.canonical,
                        "url": url,
                        "field": name,
                        "extraction_stage": "field_coercion",
                    },
                    level="warning",
                )

        return CanonicalProperty(
            identity=identity,
            source=identity.source_id,
            url=url,
            raw_data=raw_data,
            **fields,
        )
