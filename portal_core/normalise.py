"""
Field Normalisation - Raw Payload to Canonical Values

One independent coercion function per canonical field. Each takes the full
raw payload and returns the canonical value, or None when the field is
absent or cannot be parsed. The functions are pure and total: malformed
input degrades to None, it never raises.

Normalising an already-canonical value returns it unchanged.
"""

from __future__ import annotations

import math
import re
from typing import Any, Callable, Final, Mapping, Optional

from portal_core.models import EpcRating, FloorArea, Tenure
from portal_core.tenure import infer_tenure


# Currency symbols (including the mis-decoded "Â" that precedes "£" in
# Latin-1 round trips), thousands separators and whitespace
_NUMERIC_NOISE_REGEX: Final = re.compile(r"[£$€Â,\s]")
_LEADING_INT_REGEX: Final = re.compile(r"^[+-]?\d+")
_COUNCIL_TAX_REGEX: Final = re.compile(r"^(?:COUNCIL\s+TAX\s+)?(?:BAND\s*:?\s*)?([A-I])$")
_TRUE_TOKENS: Final[frozenset[str]] = frozenset({"yes", "true"})

# Longer digit runs are not plausible listing values
MAX_INT_DIGITS: Final[int] = 18


# =============================================================================
# Primitive Coercions
# =============================================================================


def _get(payload: Mapping[str, Any], key: str) -> Any:
    if not isinstance(payload, Mapping):
        return None
    return payload.get(key)


def coerce_int(value: Any) -> Optional[int]:
    """
    Coerce a number or numeric string to int.

    Strings are stripped of currency symbols, separators and whitespace and
    their leading integer is parsed: "£425,000" -> 425000,
    "3 bedrooms" -> 3, "425,000.50" -> 425000. A leading integer of more
    than MAX_INT_DIGITS digits yields None.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str):
        match = _LEADING_INT_REGEX.match(_NUMERIC_NOISE_REGEX.sub("", value))
        if match is None or len(match.group().lstrip("+-")) > MAX_INT_DIGITS:
            return None
        return int(match.group())
    return None


def _non_negative_int(value: Any) -> Optional[int]:
    number = coerce_int(value)
    if number is None or number < 0:
        return None
    return number


def _clean_text(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return value.strip() or None


def _clean_scalar(value: Any) -> Optional[Any]:
    """Strings stripped, finite numbers kept, anything else None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    return _clean_text(value)


def _epc_band(value: Any) -> Optional[Any]:
    cleaned = _clean_scalar(value)
    return cleaned.upper() if isinstance(cleaned, str) else cleaned


def _coerce_flag(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in _TRUE_TOKENS:
        return True
    return None


def _pass_through(value: Any) -> Optional[Any]:
    if value is None or value == "":
        return None
    return value


# =============================================================================
# Field Extractors
# =============================================================================


def extract_price(payload: Mapping[str, Any]) -> Optional[int]:
    """Asking price in whole pounds; non-positive values are discarded."""
    price = coerce_int(_get(payload, "price"))
    if price is None or price <= 0:
        return None
    return price


def extract_address(payload: Mapping[str, Any]) -> Optional[str]:
    return _clean_text(_get(payload, "address"))


def extract_property_type(payload: Mapping[str, Any]) -> Optional[str]:
    return _clean_text(_get(payload, "propertyType"))


def extract_bedrooms(payload: Mapping[str, Any]) -> Optional[int]:
    return _non_negative_int(_get(payload, "bedrooms"))


def extract_bathrooms(payload: Mapping[str, Any]) -> Optional[int]:
    return _non_negative_int(_get(payload, "bathrooms"))


def extract_reception_rooms(payload: Mapping[str, Any]) -> Optional[int]:
    return _non_negative_int(_get(payload, "receptionRooms"))


def extract_description(payload: Mapping[str, Any]) -> Optional[str]:
    return _clean_text(_get(payload, "description"))


def extract_tenure(payload: Mapping[str, Any]) -> Optional[Tenure]:
    return infer_tenure(payload)


def extract_leasehold_years(payload: Mapping[str, Any]) -> Optional[int]:
    """Years remaining on the lease, only when the source states it."""
    return _non_negative_int(_get(payload, "leaseholdYears"))


def extract_ground_rent(payload: Mapping[str, Any]) -> Optional[Any]:
    return _pass_through(_get(payload, "groundRent"))


def extract_service_charge(payload: Mapping[str, Any]) -> Optional[Any]:
    return _pass_through(_get(payload, "serviceCharge"))


def extract_epc_rating(payload: Mapping[str, Any]) -> Optional[EpcRating]:
    """
    EPC rating from an "epcRating" structure, or from the separate
    "epcCurrent" / "epcPotential" keys.

    A bare scalar under "epcRating" is taken as the current band.
    """
    value = _get(payload, "epcRating")
    if isinstance(value, EpcRating):
        return value
    if isinstance(value, Mapping):
        current, potential = _epc_band(value.get("current")), _epc_band(value.get("potential"))
    elif _epc_band(value) is not None:
        current, potential = _epc_band(value), None
    else:
        current = _epc_band(_get(payload, "epcCurrent"))
        potential = _epc_band(_get(payload, "epcPotential"))

    if current is None and potential is None:
        return None
    return EpcRating(current=current, potential=potential)


def extract_council_tax_band(payload: Mapping[str, Any]) -> Optional[str]:
    """Single uppercase band letter; accepts "d", "Band D", "Council Tax Band: D"."""
    text = _clean_text(_get(payload, "councilTaxBand"))
    if text is None:
        return None
    match = _COUNCIL_TAX_REGEX.match(text.upper())
    return match.group(1) if match else None


def extract_features(payload: Mapping[str, Any]) -> Optional[list[str]]:
    """Ordered key features; only list or tuple values are accepted."""
    value = _get(payload, "features")
    if not isinstance(value, (list, tuple)):
        return None
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def extract_floor_area(payload: Mapping[str, Any]) -> Optional[FloorArea]:
    """
    Floor area from a "floorArea" structure, or from the separate
    "floorAreaMetric" / "floorAreaImperial" keys.
    """
    value = _get(payload, "floorArea")
    if isinstance(value, FloorArea):
        return value
    if isinstance(value, Mapping):
        metric, imperial = _clean_scalar(value.get("metric")), _clean_scalar(value.get("imperial"))
    else:
        metric = _clean_scalar(_get(payload, "floorAreaMetric"))
        imperial = _clean_scalar(_get(payload, "floorAreaImperial"))

    if metric is None and imperial is None:
        return None
    return FloorArea(metric=metric, imperial=imperial)


def extract_listed_status(payload: Mapping[str, Any]) -> Optional[bool]:
    return _coerce_flag(_get(payload, "listedStatus"))


def extract_conservation_area(payload: Mapping[str, Any]) -> Optional[bool]:
    return _coerce_flag(_get(payload, "conservationArea"))


def extract_agent(payload: Mapping[str, Any]) -> Optional[Any]:
    return _pass_through(_get(payload, "agent"))


# Canonical attribute name -> extractor, in record field order
FIELD_EXTRACTORS: Final[tuple[tuple[str, Callable[[Mapping[str, Any]], Any]], ...]] = (
    ("price", extract_price),
    ("address", extract_address),
    ("property_type", extract_property_type),
    ("bedrooms", extract_bedrooms),
    ("bathrooms", extract_bathrooms),
    ("reception_rooms", extract_reception_rooms),
    ("description", extract_description),
    ("tenure", extract_tenure),
    ("leasehold_years", extract_leasehold_years),
    ("ground_rent", extract_ground_rent),
    ("service_charge", extract_service_charge),
    ("epc_rating", extract_epc_rating),
    ("council_tax_band", extract_council_tax_band),
    ("features", extract_features),
    ("floor_area", extract_floor_area),
    ("listed_status", extract_listed_status),
    ("conservation_area", extract_conservation_area),
    ("agent", extract_agent),
)
