"""Tests for Composition assembly."""

from lab_bundle.etl.composition import build_composition, section_entries
from lab_bundle.schemas.api import DocumentMeta

AUTHORED = "2025-08-30T15:04:00+05:30"


def _compose(meta, practitioner, **kwargs):
    return build_composition(
        "comp-1", meta, "pat-1", practitioner, "rep-1", ["o1", "o2"], ["d1"], AUTHORED, **kwargs
    )


def test_section_entries_fixed_order():
    assert section_entries("rep", ["o1", "o2"], ["d1", "d2"]) == [
        {"reference": "urn:uuid:rep", "type": "DiagnosticReport"},
        {"reference": "urn:uuid:o1", "type": "Observation"},
        {"reference": "urn:uuid:o2", "type": "Observation"},
        {"reference": "urn:uuid:d1", "type": "DocumentReference"},
        {"reference": "urn:uuid:d2", "type": "DocumentReference"},
    ]


def test_composition_core_fields(meta, practitioner):
    comp = _compose(meta, practitioner)

    assert comp["resourceType"] == "Composition"
    assert comp["status"] == "final"
    assert comp["title"] == "Diagnostic Report"
    assert comp["date"] == AUTHORED
    assert comp["type"]["coding"][0]["code"] == "11502-2"
    assert comp["subject"] == {"reference": "urn:uuid:pat-1"}
    assert comp["author"] == [{"reference": f"urn:uuid:{practitioner.id}", "display": "Dr. Meera Iyer"}]
    (section,) = comp["section"]
    assert section["title"] == "Diagnostic report"
    assert [e["reference"] for e in section["entry"]] == [
        "urn:uuid:rep-1", "urn:uuid:o1", "urn:uuid:o2", "urn:uuid:d1",
    ]
    assert "encounter" not in comp
    assert "custodian" not in comp


def test_practitioner_attester_uses_configured_mode(practitioner):
    meta = DocumentMeta(
        status="final", title="T", testCode="CBC", attesterMode="legal", attesterPartyType="Practitioner"
    )
    assert _compose(meta, practitioner)["attester"] == [
        {"mode": "legal", "party": {"reference": f"urn:uuid:{practitioner.id}"}}
    ]


def test_organization_attester(practitioner):
    meta = DocumentMeta(
        status="final", title="T", testCode="CBC",
        attesterMode="professional", attesterPartyType="Organization", attesterOrgName="City Labs",
    )
    comp = _compose(meta, practitioner, attester_org_id="org-9")
    assert comp["attester"] == [{"mode": "professional", "party": {"reference": "urn:uuid:org-9"}}]


def test_unresolved_organization_attester_defaults_to_official_author(practitioner):
    meta = DocumentMeta(status="final", title="T", testCode="CBC", attesterPartyType="Organization")
    assert _compose(meta, practitioner)["attester"] == [
        {"mode": "official", "party": {"reference": f"urn:uuid:{practitioner.id}"}}
    ]


def test_optional_encounter_and_custodian(meta, practitioner):
    comp = _compose(meta, practitioner, encounter_id="enc-1", custodian_id="org-1")
    assert comp["encounter"] == {"reference": "urn:uuid:enc-1"}
    assert comp["custodian"] == {"reference": "urn:uuid:org-1"}
