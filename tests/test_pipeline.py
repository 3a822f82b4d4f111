"""End-to-end tests for the document bundle pipeline – no database required."""

import asyncio

import pytest

from lab_bundle.etl.bundle import dangling_references
from lab_bundle.etl.pipeline import build_document_bundle, build_document_pipeline
from lab_bundle.exceptions import AttachmentReadError, BuildValidationError
from lab_bundle.schemas.api import DocumentMeta, ObservationInput
from lab_bundle.services import identifiers
from lab_bundle.services.attachments import PLACEHOLDER_PDF_B64, FileAttachment


def _build(patient, meta, observations, practitioner, **kwargs):
    return asyncio.run(build_document_bundle(patient, meta, observations, practitioner, **kwargs))


def _by_type(bundle, resource_type):
    return [e["resource"] for e in bundle["entry"] if e["resource"]["resourceType"] == resource_type]


def _broken_file():
    async def _read():
        raise OSError("unreadable")

    return FileAttachment(name="broken.pdf", media_type="application/pdf", read=_read)


def test_minimal_document(practitioner, meta):
    """Birth date, one quantity observation, no files, no optional metadata."""
    patient = {"id": "p-1", "name": "Jane", "dob": "25-12-1990"}
    rows = [ObservationInput(valueText="5.6", valueUnit="mg/dL")]

    bundle = _build(patient, meta, rows, practitioner).bundle

    kinds = [e["resource"]["resourceType"] for e in bundle["entry"]]
    assert kinds == [
        "Composition", "Patient", "Practitioner", "DiagnosticReport",
        "Observation", "DocumentReference", "Binary",
    ]
    assert _by_type(bundle, "Patient")[0]["birthDate"] == "1990-12-25"
    assert _by_type(bundle, "Observation")[0]["valueQuantity"] == {"value": 5.6, "unit": "mg/dL"}

    composition = _by_type(bundle, "Composition")[0]
    assert composition["attester"] == [
        {"mode": "official", "party": {"reference": f"urn:uuid:{practitioner.id}"}}
    ]
    (binary,) = _by_type(bundle, "Binary")
    assert binary["data"] == PLACEHOLDER_PDF_B64
    assert binary["contentType"] == "application/pdf"


def test_invalid_attester_party_defaults_to_official(practitioner):
    meta = DocumentMeta(status="final", title="Report", testCode="CBC", attesterPartyType="Organization")
    rows = [ObservationInput(valueText="5.6", valueUnit="mg/dL")]
    bundle = _build({"id": "p-1"}, meta, rows, practitioner).bundle

    composition = bundle["entry"][0]["resource"]
    assert composition["attester"] == [
        {"mode": "official", "party": {"reference": f"urn:uuid:{practitioner.id}"}}
    ]
    assert not _by_type(bundle, "Organization")


def test_all_references_resolve_and_ids_are_uuids(patient, practitioner, glucose):
    meta = DocumentMeta(
        status="final", title="Report", testCode="CBC",
        encounterText="OPD", custodianName="City Hospital",
        attesterPartyType="Organization", attesterOrgName="City Labs",
    )
    rows = [glucose, ObservationInput(codeText="Culture", valueText="Negative")]
    files = [
        FileAttachment.from_bytes("a.pdf", "application/pdf", b"%PDF-a"),
        FileAttachment.from_bytes("b.jpg", "image/jpeg", b"jpeg-b"),
    ]

    bundle = _build(patient, meta, rows, practitioner, files=files).bundle

    assert dangling_references(bundle) == []
    for e in bundle["entry"]:
        assert identifiers.validate(e["resource"]["id"])
        assert e["fullUrl"] == f"urn:uuid:{e['resource']['id']}"

    kinds = [e["resource"]["resourceType"] for e in bundle["entry"]]
    assert kinds == [
        "Composition", "Patient", "Practitioner", "DiagnosticReport",
        "Encounter", "Organization", "Organization",
        "Observation", "Observation",
        "DocumentReference", "DocumentReference", "Binary", "Binary",
    ]

    composition = bundle["entry"][0]["resource"]
    report = _by_type(bundle, "DiagnosticReport")[0]
    observations = _by_type(bundle, "Observation")
    documents = _by_type(bundle, "DocumentReference")
    expected = [report["id"]] + [o["id"] for o in observations] + [d["id"] for d in documents]
    assert [e["reference"] for e in composition["section"][0]["entry"]] == [f"urn:uuid:{i}" for i in expected]
    assert [r["reference"] for r in report["result"]] == [f"urn:uuid:{o['id']}" for o in observations]

    assert [d["content"][0]["attachment"]["title"] for d in documents] == ["a.pdf", "b.jpg"]
    custodian, attester_org = _by_type(bundle, "Organization")
    assert composition["custodian"] == {"reference": f"urn:uuid:{custodian['id']}"}
    assert composition["attester"][0]["party"] == {"reference": f"urn:uuid:{attester_org['id']}"}
    assert composition["encounter"]["reference"] == f"urn:uuid:{_by_type(bundle, 'Encounter')[0]['id']}"


def test_subject_and_author_shared_everywhere(patient, meta, practitioner, glucose):
    bundle = _build(patient, meta, [glucose, glucose], practitioner).bundle
    patient_ref = f"urn:uuid:{_by_type(bundle, 'Patient')[0]['id']}"
    practitioner_ref = f"urn:uuid:{practitioner.id}"

    for kind in ("Observation", "DiagnosticReport", "DocumentReference", "Composition"):
        for resource in _by_type(bundle, kind):
            assert resource["subject"]["reference"] == patient_ref
    for kind in ("Observation", "DiagnosticReport"):
        for resource in _by_type(bundle, kind):
            assert resource["performer"][0]["reference"] == practitioner_ref


def test_default_abha_address_is_primary(patient, meta, practitioner, glucose):
    bundle = _build(patient, meta, [glucose], practitioner).bundle
    telecom = _by_type(bundle, "Patient")[0]["telecom"]
    assert {"system": "url", "value": "abha://asha@abdm"} in telecom


def test_authored_time_from_meta(patient, practitioner, glucose):
    meta = DocumentMeta(status="final", title="R", testCode="CBC", dateTime="2025-08-30T15:04")
    bundle = _build(patient, meta, [glucose], practitioner).bundle
    assert bundle["entry"][0]["resource"]["date"].startswith("2025-08-30T15:04:00")


def test_validation_failure_builds_nothing(practitioner):
    meta = DocumentMeta(status="final", title="", testCode="")
    rows = [ObservationInput(valueText="5.6", valueUnit="mg/dL")]

    with pytest.raises(BuildValidationError) as exc_info:
        _build(None, meta, rows, practitioner)
    assert len(exc_info.value.errors) == 3


def test_read_failure_aborts_build(patient, meta, practitioner, glucose):
    files = [FileAttachment.from_bytes("ok.pdf", "application/pdf", b"%PDF"), _broken_file()]
    with pytest.raises(AttachmentReadError):
        _build(patient, meta, [glucose], practitioner, files=files)


def test_pipeline_shape():
    pipeline = build_document_pipeline()
    assert pipeline.to_dict()["tasks"]["build_resources"]["depends_on"] == ["mint_ids", "encode_attachments"]


def test_outcome_carries_summary(patient, meta, practitioner, glucose):
    outcome = _build(patient, meta, [glucose], practitioner)
    assert outcome.summary["status"] == "completed"
    assert set(outcome.summary["tasks"]) == set(outcome.definition["tasks"])
