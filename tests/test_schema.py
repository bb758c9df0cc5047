#!/usr/bin/env python3
"""Tests for JSON schema validation of payloads."""

import pytest

from fleet import ValidationFailed
from fleet.schema import definition_schema, load_schema, schema_errors, validate_payload


class TestLoadSchema:
    """Tests for load_schema."""

    def test_has_sections(self):
        schema = load_schema()
        assert set(schema["properties"]) == {"vehicles", "bookings", "downtime", "sequences"}

    def test_returns_fresh_copy(self):
        load_schema()["definitions"]["vehicle"].pop("required")
        assert load_schema()["definitions"]["vehicle"]["required"] == ["name", "brand"]


class TestDefinitionSchema:
    """Tests for definition_schema."""

    def test_partial_drops_required(self):
        schema = definition_schema("booking", partial=True)
        assert "required" not in schema["definitions"]["booking"]

    def test_full_keeps_required(self):
        schema = definition_schema("booking")
        assert "customerName" in schema["definitions"]["booking"]["required"]


class TestValidatePayload:
    """Tests for validate_payload."""

    def test_valid_booking(self):
        validate_payload(
            "booking",
            {
                "customerName": "Jane",
                "vehicleId": 1,
                "startTime": "2026-07-01T10:00:00Z",
                "endTime": "2026-07-01T11:00:00Z",
            },
        )

    def test_missing_required(self):
        with pytest.raises(ValidationFailed) as exc:
            validate_payload("vehicle", {"name": "V1"})
        assert exc.value.kind == "validation_error"
        assert "brand" in exc.value.errors[0]["message"]

    def test_partial_allows_missing(self):
        validate_payload("vehicle", {"status": "broken"}, partial=True)

    def test_bad_enum_reports_field(self):
        with pytest.raises(ValidationFailed) as exc:
            validate_payload("vehicle", {"status": "sunk"}, partial=True)
        assert exc.value.errors[0]["field"] == "status"

    def test_unknown_property_rejected(self):
        with pytest.raises(ValidationFailed):
            validate_payload("downtime", {"color": "red"}, partial=True)

    def test_non_object_rejected(self):
        with pytest.raises(ValidationFailed):
            validate_payload("vehicle", ["not", "an", "object"])

    def test_negative_hours_rejected(self):
        with pytest.raises(ValidationFailed):
            validate_payload("vehicle", {"name": "V1", "brand": "X", "hoursUsed": -1})


class TestSchemaErrors:
    """Tests for schema_errors on whole fleet files."""

    def test_valid_file(self):
        data = {
            "vehicles": [{"id": 1, "name": "V1", "brand": "X"}],
            "bookings": [],
            "downtime": [],
        }
        assert schema_errors(data, load_schema()) == []

    def test_stored_records_need_id(self):
        data = {"vehicles": [{"name": "V1", "brand": "X"}]}
        errors = schema_errors(data, load_schema())
        assert errors and errors[0]["field"] == "vehicles.0"
