"""
Unit tests for the raw record to canonical document transform
"""

import copy
from datetime import datetime, timezone

import pytest

from core.exceptions import InvalidPoiError, SKIP_INVALID_RECORD
from ingestion.transformers.poi_transformer import (
    extract_external_id,
    parse_optional_datetime,
    transform_poi,
    try_extract_external_id,
)
from schemas.importer import MAX_SAFE_INTEGER


class TestExtractExternalId:
    """Test identity validation"""

    @pytest.mark.parametrize("value,expected", [
        (1, 1),
        (42, 42),
        ("42", 42),
        (" 7 ", 7),
        (3.0, 3),
        ("5.0", 5),
        (MAX_SAFE_INTEGER, MAX_SAFE_INTEGER),
    ])
    def test_accepts_integers_and_numeric_strings(self, value, expected):
        assert extract_external_id({"ID": value}) == expected

    def test_missing_id(self):
        with pytest.raises(InvalidPoiError) as exc_info:
            extract_external_id({"AddressInfo": {}})

        assert exc_info.value.message == "Invalid POI: missing ID"
        assert exc_info.value.code == SKIP_INVALID_RECORD

    def test_null_id(self):
        with pytest.raises(InvalidPoiError, match="missing ID"):
            extract_external_id({"ID": None})

    @pytest.mark.parametrize("value", ["x", "", "  ", "12abc", True, {"a": 1}, [1], float("nan"), object()])
    def test_non_numeric(self, value):
        with pytest.raises(InvalidPoiError) as exc_info:
            extract_external_id({"ID": value})

        assert exc_info.value.message == "Invalid POI: ID is not numeric"

    @pytest.mark.parametrize("value", [0, -3, "-1", 1.5, "2.5", float("inf"), MAX_SAFE_INTEGER + 1])
    def test_not_positive_integer(self, value):
        with pytest.raises(InvalidPoiError) as exc_info:
            extract_external_id({"ID": value})

        assert exc_info.value.message == "Invalid POI: ID must be a positive integer"

    def test_try_extract(self):
        assert try_extract_external_id({"ID": "9"}) == 9
        assert try_extract_external_id({"ID": "nine"}) is None
        assert try_extract_external_id({}) is None

    @pytest.mark.parametrize("raw", [None, [1, 2], "ID", 42])
    def test_try_extract_non_mapping(self, raw):
        assert try_extract_external_id(raw) is None

    @pytest.mark.parametrize("value", ["\u0661\u0662", "\uff17", "\u0967\u0968.5"])
    def test_non_ascii_digits_are_not_numeric(self, value):
        with pytest.raises(InvalidPoiError) as exc_info:
            extract_external_id({"ID": value})

        assert exc_info.value.message == "Invalid POI: ID is not numeric"


class TestParseOptionalDatetime:

    def test_iso_with_z(self):
        assert parse_optional_datetime("2024-01-15T10:00:00Z") == datetime(2024, 1, 15, 10, tzinfo=timezone.utc)

    def test_naive_taken_as_utc(self):
        assert parse_optional_datetime("2024-01-15T10:00:00").tzinfo == timezone.utc

    def test_datetime_passthrough(self):
        value = datetime(2024, 1, 15, tzinfo=timezone.utc)
        assert parse_optional_datetime(value) == value

    @pytest.mark.parametrize("value", [None, "", "not a date", 12345, {"when": "now"}])
    def test_absent_or_unparsable_is_none(self, value):
        assert parse_optional_datetime(value) is None


class TestTransformPoi:

    def test_builds_canonical_document(self):
        raw = {"ID": "17", "DateLastStatusUpdate": "2024-03-01T08:30:00Z", "AddressInfo": {"Title": "Depot"}}

        doc = transform_poi(raw)

        assert doc.external_id == 17
        assert doc.last_updated == datetime(2024, 3, 1, 8, 30, tzinfo=timezone.utc)
        assert doc.raw == raw
        assert doc.id

    def test_bad_timestamp_does_not_fail(self):
        doc = transform_poi({"ID": 3, "DateLastStatusUpdate": "yesterday"})

        assert doc.external_id == 3
        assert doc.last_updated is None

    def test_fresh_surrogate_each_call(self):
        raw = {"ID": 1}

        assert transform_poi(raw).id != transform_poi(raw).id

    def test_raw_not_mutated(self):
        raw = {"ID": "5", "Nested": {"a": [1, 2]}}
        before = copy.deepcopy(raw)

        transform_poi(raw)

        assert raw == before

    def test_invalid_raises(self):
        with pytest.raises(InvalidPoiError):
            transform_poi({"ID": "abc"})
