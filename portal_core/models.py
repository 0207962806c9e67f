"""
Canonical Listing Models

Typed records produced by the extraction engine. Every record is a frozen
dataclass built fresh per invocation; the raw payload it was derived from is
retained by reference for audit and replay and is never mutated.

Assembly has exactly two outcomes:
    - CanonicalProperty: identity derived, fields normalised
    - PartialFailureRecord: degraded, still carries the raw payload
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Final, Mapping, Optional, Union


class Tenure(Enum):
    """
    UK legal ownership classification.

    Values match the keys consumed by the downstream analysis service.
    """
    FREEHOLD = "freehold"
    LEASEHOLD = "leasehold"
    SHARE_OF_FREEHOLD = "shareOfFreehold"

    @classmethod
    def from_string(cls, value: str) -> Optional["Tenure"]:
        """
        Convert a source tenure label to Tenure, case-insensitive.

        Accepts "Freehold", "share of freehold", "share_of_freehold",
        "Share-Of-Freehold" and "shareOfFreehold".
        """
        collapsed = re.sub(r"[\s_\-]+", "", value.lower())
        return _TENURE_ALIASES.get(collapsed)


_TENURE_ALIASES: Final[dict[str, Tenure]] = {
    "freehold": Tenure.FREEHOLD,
    "leasehold": Tenure.LEASEHOLD,
    "shareoffreehold": Tenure.SHARE_OF_FREEHOLD,
    "sharefreehold": Tenure.SHARE_OF_FREEHOLD,
}


# =============================================================================
# Failure Codes
# =============================================================================

FAILURE_CODES: Final[dict[str, str]] = {
    "UNSUPPORTED_SOURCE": "unsupported source",
    "NOT_LISTING_PAGE": "not a listing page",
    "UNRECOGNISED_LISTING_PATH": "unrecognized listing path",
    "ASSEMBLY_ERROR": "unexpected error while assembling record",
}


# =============================================================================
# Identity
# =============================================================================


@dataclass(frozen=True)
class ListingIdentity:
    """
    Composite (source, local id) key for one listing.

    local_id is only unique within its source; the source id prefix makes
    the canonical form unique across all sources.
    """

    source_id: str
    local_id: str

    @property
    def canonical(self) -> str:
        return f"{self.source_id}-{self.local_id}"

    def __str__(self) -> str:
        return self.canonical


# =============================================================================
# Composite Field Values
# =============================================================================


@dataclass(frozen=True)
class EpcRating:
    """Energy Performance Certificate band, current and potential."""

    current: Optional[Any] = None
    potential: Optional[Any] = None

    def to_dict(self) -> dict[str, Any]:
        return {"current": self.current, "potential": self.potential}


@dataclass(frozen=True)
class FloorArea:
    """Floor area as reported by the source in metric and imperial units."""

    metric: Optional[Any] = None
    imperial: Optional[Any] = None

    def to_dict(self) -> dict[str, Any]:
        return {"metric": self.metric, "imperial": self.imperial}


# =============================================================================
# Assembled Records
# =============================================================================


@dataclass(frozen=True)
class CanonicalProperty:
    """
    Fully normalised listing record.

    Every field below url is independently optional: the absence of one
    never blocks derivation of the others.
    """

    # === IDENTITY (Required) ===
    identity: ListingIdentity
    source: str
    url: str

    # === PRICING ===
    price: Optional[int] = None

    # === DESCRIPTION ===
    address: Optional[str] = None
    property_type: Optional[str] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    reception_rooms: Optional[int] = None
    description: Optional[str] = None

    # === TENURE ===
    tenure: Optional[Tenure] = None
    leasehold_years: Optional[int] = None
    ground_rent: Optional[Any] = None
    service_charge: Optional[Any] = None

    # === REGULATORY ===
    epc_rating: Optional[EpcRating] = None
    council_tax_band: Optional[str] = None
    listed_status: Optional[bool] = None
    conservation_area: Optional[bool] = None

    # === DETAIL ===
    features: Optional[list[str]] = None
    floor_area: Optional[FloorArea] = None
    agent: Optional[Any] = None

    # === AUDIT ===
    raw_data: Optional[Mapping[str, Any]] = None

    @property
    def extraction_error(self) -> bool:
        return False

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the JSON shape consumed by the analysis service."""
        return {
            "id": self.identity.canonical,
            "source": self.source,
            "url": self.url,
            "price": self.price,
            "address": self.address,
            "propertyType": self.property_type,
            "bedrooms": self.bedrooms,
            "bathrooms": self.bathrooms,
            "receptionRooms": self.reception_rooms,
            "description": self.description,
            "tenure": self.tenure.value if self.tenure else None,
            "leaseholdYears": self.leasehold_years,
            "groundRent": self.ground_rent,
            "serviceCharge": self.service_charge,
            "epcRating": self.epc_rating.to_dict() if self.epc_rating else None,
            "councilTaxBand": self.council_tax_band,
            "features": list(self.features) if self.features is not None else None,
            "floorArea": self.floor_area.to_dict() if self.floor_area else None,
            "listedStatus": self.listed_status,
            "conservationArea": self.conservation_area,
            "agent": self.agent,
            "rawData": self.raw_data,
        }


@dataclass(frozen=True)
class PartialFailureRecord:
    """
    Degraded record produced when assembly cannot complete.

    Carries the identity whenever one was derived so callers can still
    correlate or retry, and always carries the raw payload.
    """

    url: str
    failure_code: str
    error_message: str
    identity: Optional[ListingIdentity] = None
    source: Optional[str] = None
    raw_data: Optional[Any] = None

    def __post_init__(self) -> None:
        if self.failure_code not in FAILURE_CODES:
            raise ValueError(f"Unknown failure code: {self.failure_code}")

    @property
    def extraction_error(self) -> bool:
        return True

    @classmethod
    def create(
        cls,
        url: str,
        failure_code: str,
        identity: Optional[ListingIdentity] = None,
        source: Optional[str] = None,
        raw_data: Optional[Any] = None,
        error_message: Optional[str] = None,
    ) -> "PartialFailureRecord":
        """Create a failure record, defaulting the message from the code."""
        return cls(
            url=url,
            failure_code=failure_code,
            error_message=error_message or FAILURE_CODES.get(failure_code, failure_code),
            identity=identity,
            source=source,
            raw_data=raw_data,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.identity.canonical if self.identity else None,
            "source": self.source,
            "url": self.url,
            "extractionError": True,
            "failureCode": self.failure_code,
            "errorMessage": self.error_message,
            "rawData": self.raw_data,
        }


AssemblyResult = Union[CanonicalProperty, PartialFailureRecord]
