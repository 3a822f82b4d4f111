"""Tests for the build validation gate and JSON schema validation."""

from lab_bundle.schemas.api import DocumentMeta, ObservationInput
from lab_bundle.schemas.fhir import DOCUMENT_BUNDLE_SCHEMA
from lab_bundle.services.validation import validate_against_schema, validate_build_inputs

GLUCOSE = [ObservationInput(valueText="5.6", valueUnit="mg/dL")]


def test_valid_inputs(patient, meta):
    assert validate_build_inputs(patient, meta, GLUCOSE) == []


def test_errors_are_aggregated():
    """Missing patient, title and test code are all reported together."""
    meta = DocumentMeta(status="final", title="", testCode="   ")
    errors = validate_build_inputs(None, meta, GLUCOSE)

    assert errors == [
        "Select a patient (required).",
        "Title is required.",
        "Test code is required.",
    ]


def test_every_rule_can_fire_at_once():
    errors = validate_build_inputs(None, DocumentMeta(), [ObservationInput(codeText="Hb")])
    assert len(errors) == 5
    assert "Status is required." in errors


def test_unit_alone_counts_as_result(patient, meta):
    assert validate_build_inputs(patient, meta, [ObservationInput(valueUnit="mg/dL")]) == []


def test_attachment_satisfies_result_rule(patient, meta):
    assert validate_build_inputs(patient, meta, [ObservationInput()], attachment_count=1) == []


def test_blank_rows_without_attachments_rejected(patient, meta):
    errors = validate_build_inputs(patient, meta, [ObservationInput(valueText="  ")])
    assert errors == [
        "Add at least one observation with a result value, or upload at least one document."
    ]


def test_schema_rejects_non_document_bundle():
    errors = validate_against_schema({"resourceType": "Bundle", "type": "collection"}, DOCUMENT_BUNDLE_SCHEMA)
    assert any("document" in e for e in errors)
    assert any("entry" in e for e in errors)
