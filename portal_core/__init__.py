"""
Portal Listing Engine - Core

Turns raw listing payloads from UK property portals into canonical,
typed property records with a stable identity:

1. Source classification (host -> source)
2. Page classification (listing vs. index page)
3. Identity derivation ("{source}-{local id}")
4. Field normalisation and tenure inference
5. Record assembly (CanonicalProperty or PartialFailureRecord)

The engine is synchronous, stateless and does no I/O.
"""

from portal_core.models import (
    Tenure,
    ListingIdentity,
    EpcRating,
    FloorArea,
    CanonicalProperty,
    PartialFailureRecord,
    AssemblyResult,
    FAILURE_CODES,
)
from portal_core.errors import (
    ExtractionError,
    UnparsableURLError,
    UnsupportedSourceError,
    ExtractionAPIError,
)
from portal_core.registry import (
    SourceDescriptor,
    SourceRegistry,
    DEFAULT_SOURCES,
    build_default_registry,
)
from portal_core.monitoring import (
    ErrorEvent,
    ErrorReporter,
    LoggingErrorReporter,
)
from portal_core.classifier import SourceClassifier
from portal_core.identity import IdentityDeriver
from portal_core.tenure import infer_tenure
from portal_core.normalise import FIELD_EXTRACTORS
from portal_core.assembler import RecordAssembler

__all__ = [
    # Models
    "Tenure",
    "ListingIdentity",
    "EpcRating",
    "FloorArea",
    "CanonicalProperty",
    "PartialFailureRecord",
    "AssemblyResult",
    "FAILURE_CODES",
    # Errors
    "ExtractionError",
    "UnparsableURLError",
    "UnsupportedSourceError",
    "ExtractionAPIError",
    # Registry
    "SourceDescriptor",
    "SourceRegistry",
    "DEFAULT_SOURCES",
    "build_default_registry",
    # Monitoring
    "ErrorEvent",
    "ErrorReporter",
    "LoggingErrorReporter",
    # Pipeline
    "SourceClassifier",
    "IdentityDeriver",
    "infer_tenure",
    "FIELD_EXTRACTORS",
    "RecordAssembler",
]
