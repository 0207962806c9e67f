"""
Tests for per-field normalisation.

Tests covering:
1. Numeric coercion (prices, room counts, lease years)
2. Text and enum-like fields
3. Composite fields (EPC rating, floor area)
4. Boolean-like and list fields
5. Totality and idempotence over the extractor table
"""

import math

import pytest

from portal_core.models import EpcRating, FloorArea, Tenure
from portal_core.normalise import (
    FIELD_EXTRACTORS,
    MAX_INT_DIGITS,
    coerce_int,
    extract_address,
    extract_agent,
    extract_bathrooms,
    extract_bedrooms,
    extract_conservation_area,
    extract_council_tax_band,
    extract_description,
    extract_epc_rating,
    extract_features,
    extract_floor_area,
    extract_ground_rent,
    extract_leasehold_years,
    extract_listed_status,
    extract_price,
    extract_property_type,
    extract_reception_rooms,
    extract_service_charge,
    extract_tenure,
)


# =============================================================================
# Numeric Fields
# =============================================================================


class TestCoerceInt:
    """Shared integer coercion."""

    @pytest.mark.parametrize("value,expected", [
        (3, 3),
        (3.0, 3),
        (3.9, 3),
        ("3", 3),
        (" 3 ", 3),
        ("3 bedrooms", 3),
        ("£425,000", 425000),
        ("Â£425,000", 425000),
        ("425,000.50", 425000),
        ("£1 250 000", 1250000),
        ("-2", -2),
    ])
    def test_valid_values(self, value, expected):
        assert coerce_int(value) == expected

    @pytest.mark.parametrize("value", [
        None,
        True,
        False,
        "",
        "POA",
        "Offers in excess of £300,000",
        math.nan,
        math.inf,
        [3],
        {"value": 3},
        "1" * 19,
        "1" * 5000,
        "£" + "9" * 5000,
    ])
    def test_invalid_values(self, value):
        assert coerce_int(value) is None

    def test_longest_accepted_digit_run(self):
        assert coerce_int("9" * MAX_INT_DIGITS) == int("9" * MAX_INT_DIGITS)
        assert coerce_int("-" + "9" * MAX_INT_DIGITS) == -int("9" * MAX_INT_DIGITS)


class TestPrice:
    """Asking price coercion."""

    def test_pound_string(self):
        assert extract_price({"price": "£425,000"}) == 425000

    def test_integer_passes_through(self):
        assert extract_price({"price": 425000}) == 425000

    def test_float_truncated(self):
        assert extract_price({"price": 425000.0}) == 425000

    @pytest.mark.parametrize("price", [0, -5, "£0", "POA", None, True])
    def test_unusable_prices(self, price):
        assert extract_price({"price": price}) is None

    def test_missing_price(self):
        assert extract_price({}) is None

    def test_oversized_digit_string(self):
        assert extract_price({"price": "1" * 5000}) is None
        assert extract_bedrooms({"bedrooms": "1" * 5000}) is None
        assert extract_leasehold_years({"leaseholdYears": "9" * 4301}) is None


class TestRoomCounts:
    """Bedrooms, bathrooms, reception rooms and lease years."""

    @pytest.mark.parametrize("extractor,key", [
        (extract_bedrooms, "bedrooms"),
        (extract_bathrooms, "bathrooms"),
        (extract_reception_rooms, "receptionRooms"),
        (extract_leasehold_years, "leaseholdYears"),
    ])
    def test_string_and_int(self, extractor, key):
        assert extractor({key: "2"}) == 2
        assert extractor({key: 2}) == 2

    def test_zero_bedrooms_kept_for_studios(self):
        assert extract_bedrooms({"bedrooms": 0}) == 0

    def test_negative_count_discarded(self):
        assert extract_bathrooms({"bathrooms": -1}) is None

    def test_lease_years_from_text(self):
        assert extract_leasehold_years({"leaseholdYears": "125 years"}) == 125

    def test_unparsable_count(self):
        assert extract_reception_rooms({"receptionRooms": "several"}) is None


# =============================================================================
# Text and Enum-Like Fields
# =============================================================================


class TestTextFields:
    """Address, property type and description."""

    @pytest.mark.parametrize("extractor,key", [
        (extract_address, "address"),
        (extract_property_type, "propertyType"),
        (extract_description, "description"),
    ])
    def test_stripped(self, extractor, key):
        assert extractor({key: "  Flat 2, 10 High Street  "}) == "Flat 2, 10 High Street"

    @pytest.mark.parametrize("value", ["", "   ", None, 42, ["a"]])
    def test_blank_or_non_string(self, value):
        assert extract_address({"address": value}) is None


class TestCouncilTaxBand:
    """Band letter normalisation."""

    @pytest.mark.parametrize("value,expected", [
        ("d", "D"),
        ("D", "D"),
        (" c ", "C"),
        ("Band D", "D"),
        ("band: e", "E"),
        ("Council Tax Band F", "F"),
        ("I", "I"),
    ])
    def test_valid_bands(self, value, expected):
        assert extract_council_tax_band({"councilTaxBand": value}) == expected

    @pytest.mark.parametrize("value", ["", "TBC", "Z", "DE", 4, None])
    def test_invalid_bands(self, value):
        assert extract_council_tax_band({"councilTaxBand": value}) is None


class TestTenureField:
    """The tenure extractor delegates to tenure inference."""

    def test_explicit(self):
        assert extract_tenure({"tenure": "Freehold"}) is Tenure.FREEHOLD

    def test_missing(self):
        assert extract_tenure({}) is None


# =============================================================================
# Opaque Pass-Through Fields
# =============================================================================


class TestPassThroughFields:
    """Ground rent, service charge and agent are passed through unchanged."""

    def test_structures_pass_through(self):
        ground_rent = {"amount": 250, "frequency": "annual"}
        agent = {"name": "Foxtons", "branch": "Islington"}
        payload = {"groundRent": ground_rent, "serviceCharge": "£1,200 pa", "agent": agent}

        assert extract_ground_rent(payload) is ground_rent
        assert extract_service_charge(payload) == "£1,200 pa"
        assert extract_agent(payload) is agent

    def test_zero_ground_rent_is_kept(self):
        assert extract_ground_rent({"groundRent": 0}) == 0

    @pytest.mark.parametrize("value", [None, ""])
    def test_empty_values(self, value):
        assert extract_service_charge({"serviceCharge": value}) is None


# =============================================================================
# Composite Fields
# =============================================================================


class TestEpcRating:
    """Structured value first, then sibling keys."""

    def test_structured_value(self):
        rating = extract_epc_rating({"epcRating": {"current": "c", "potential": "B"}})
        assert rating == EpcRating(current="C", potential="B")

    def test_structured_value_wins_over_siblings(self):
        payload = {"epcRating": {"current": "D"}, "epcCurrent": "A", "epcPotential": "A"}
        assert extract_epc_rating(payload) == EpcRating(current="D", potential=None)

    def test_bare_band_is_current(self):
        assert extract_epc_rating({"epcRating": "e"}) == EpcRating(current="E")

    def test_assembled_from_siblings(self):
        rating = extract_epc_rating({"epcCurrent": "D", "epcPotential": "B"})
        assert rating == EpcRating(current="D", potential="B")

    def test_only_one_sibling(self):
        assert extract_epc_rating({"epcPotential": 81}) == EpcRating(current=None, potential=81)

    @pytest.mark.parametrize("payload", [
        {},
        {"epcRating": {}},
        {"epcRating": ""},
        {"epcRating": None, "epcCurrent": "  "},
    ])
    def test_absent(self, payload):
        assert extract_epc_rating(payload) is None


class TestFloorArea:
    """Structured value first, then sibling keys."""

    def test_structured_value(self):
        area = extract_floor_area({"floorArea": {"metric": "85 sq m", "imperial": "915 sq ft"}})
        assert area == FloorArea(metric="85 sq m", imperial="915 sq ft")

    def test_assembled_from_siblings(self):
        area = extract_floor_area({"floorAreaMetric": 85, "floorAreaImperial": 915})
        assert area == FloorArea(metric=85, imperial=915)

    def test_only_imperial(self):
        assert extract_floor_area({"floorAreaImperial": "915 sq ft"}) == FloorArea(imperial="915 sq ft")

    def test_absent(self):
        assert extract_floor_area({"floorArea": "big"}) is None
        assert extract_floor_area({}) is None


# =============================================================================
# Boolean-Like and List Fields
# =============================================================================


class TestFlags:
    """Listed status and conservation area."""

    @pytest.mark.parametrize("value,expected", [
        (True, True),
        (False, False),
        ("yes", True),
        ("YES", True),
        ("True", True),
        (" true ", True),
    ])
    def test_recognised_values(self, value, expected):
        assert extract_listed_status({"listedStatus": value}) is expected
        assert extract_conservation_area({"conservationArea": value}) is expected

    @pytest.mark.parametrize("value", ["Grade II", "unknown", "", "no", 1, None])
    def test_other_values_are_unknown(self, value):
        assert extract_listed_status({"listedStatus": value}) is None


class TestFeatures:
    """Features must already be an ordered sequence."""

    def test_list_order_preserved(self):
        features = ["Garden", "Garage", "Close to station"]
        assert extract_features({"features": features}) == features

    def test_tuple_accepted(self):
        assert extract_features({"features": ("Garden",)}) == ["Garden"]

    def test_non_strings_and_blanks_dropped(self):
        assert extract_features({"features": [" Garden ", "", None, 3, "Garage"]}) == ["Garden", "Garage"]

    def test_empty_list(self):
        assert extract_features({"features": []}) == []

    @pytest.mark.parametrize("value", ["Garden", 3, {"a": "Garden"}, None])
    def test_no_scalar_to_list_coercion(self, value):
        assert extract_features({"features": value}) is None


# =============================================================================
# Extractor Table
# =============================================================================


CANONICAL_PAYLOAD = {
    "price": 425000,
    "address": "10 High Street, London",
    "propertyType": "Flat",
    "bedrooms": 2,
    "bathrooms": 1,
    "receptionRooms": 1,
    "description": "A bright flat",
    "tenure": "leasehold",
    "leaseholdYears": 125,
    "groundRent": {"amount": 250},
    "serviceCharge": 1200,
    "epcRating": {"current": "C", "potential": "B"},
    "councilTaxBand": "D",
    "features": ["Balcony"],
    "floorArea": {"metric": 60, "imperial": 646},
    "listedStatus": False,
    "conservationArea": True,
    "agent": {"name": "Local Agent"},
}


class TestExtractorTable:
    """Properties shared by every extractor."""

    def test_every_field_has_an_extractor(self):
        names = [name for name, _ in FIELD_EXTRACTORS]
        assert len(names) == len(set(names)) == 18

    @pytest.mark.parametrize("payload", [
        {},
        {"price": object(), "features": object(), "epcRating": object()},
        {key: [] for key in CANONICAL_PAYLOAD},
        {key: {} for key in CANONICAL_PAYLOAD},
        {key: math.nan for key in CANONICAL_PAYLOAD},
        {key: "1" * 5000 for key in CANONICAL_PAYLOAD},
        [],
        None,
        "not a mapping",
    ])
    def test_extractors_never_raise(self, payload):
        for _, extractor in FIELD_EXTRACTORS:
            extractor(payload)

    def test_extraction_is_idempotent(self):
        first = {name: extractor(CANONICAL_PAYLOAD) for name, extractor in FIELD_EXTRACTORS}
        assert first["tenure"] is Tenure.LEASEHOLD

        # Feed canonical values back in under their source keys
        keys = {
            "price": "price", "address": "address", "property_type": "propertyType",
            "bedrooms": "bedrooms", "bathrooms": "bathrooms",
            "reception_rooms": "receptionRooms", "description": "description",
            "tenure": "tenure", "leasehold_years": "leaseholdYears",
            "ground_rent": "groundRent", "service_charge": "serviceCharge",
            "epc_rating": "epcRating", "council_tax_band": "councilTaxBand",
            "features": "features", "floor_area": "floorArea",
            "listed_status": "listedStatus", "conservation_area": "conservationArea",
            "agent": "agent",
        }
        second_payload = {keys[name]: value for name, value in first.items()}
        second = {name: extractor(second_payload) for name, extractor in FIELD_EXTRACTORS}

        assert second == first
