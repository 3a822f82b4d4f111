"""Composition assembly: the summary resource at the head of every document."""

from __future__ import annotations

from typing import Any

from lab_bundle.etl.builders import base_resource, ref
from lab_bundle.schemas.api import DocumentMeta
from lab_bundle.schemas.fhir import LOINC_LAB_REPORT
from lab_bundle.services import narrative
from lab_bundle.services.identity import PractitionerIdentity

SECTION_TITLE = "Diagnostic report"


def section_entries(
    report_id: str,
    observation_ids: list[str],
    document_reference_ids: list[str],
) -> list[dict[str, str]]:
    """DiagnosticReport first, then every Observation, then every DocumentReference."""
    entries = [{"reference": ref(report_id), "type": "DiagnosticReport"}]
    entries += [{"reference": ref(oid), "type": "Observation"} for oid in observation_ids]
    entries += [{"reference": ref(did), "type": "DocumentReference"} for did in document_reference_ids]
    return entries


def attesters(
    meta: DocumentMeta,
    practitioner: PractitionerIdentity,
    attester_org_id: str | None,
) -> list[dict[str, Any]]:
    if meta.attesterPartyType == "Practitioner":
        return [{"mode": meta.attesterMode, "party": {"reference": ref(practitioner.id)}}]
    if meta.attesterPartyType == "Organization" and attester_org_id:
        return [{"mode": meta.attesterMode, "party": {"reference": ref(attester_org_id)}}]
    # nobody resolved: the author attests officially
    return [{"mode": "official", "party": {"reference": ref(practitioner.id)}}]


def build_composition(
    composition_id: str,
    meta: DocumentMeta,
    patient_id: str,
    practitioner: PractitionerIdentity,
    report_id: str,
    observation_ids: list[str],
    document_reference_ids: list[str],
    authored_on: str,
    encounter_id: str | None = None,
    custodian_id: str | None = None,
    attester_org_id: str | None = None,
) -> dict[str, Any]:
    resource = base_resource(
        "Composition",
        composition_id,
        narrative.render(
            "Composition",
            f"<p>{meta.title}</p><p>Author: {practitioner.display_name}</p>",
        ),
    )
    resource.update(
        {
            "status": meta.status,
            "type": {"coding": [dict(LOINC_LAB_REPORT)], "text": LOINC_LAB_REPORT["display"]},
            "subject": {"reference": ref(patient_id)},
        }
    )
    if encounter_id:
        resource["encounter"] = {"reference": ref(encounter_id)}
    resource.update(
        {
            "date": authored_on,
            "author": [{"reference": ref(practitioner.id), "display": practitioner.display_name}],
            "title": meta.title,
            "attester": attesters(meta, practitioner, attester_org_id),
        }
    )
    if custodian_id:
        resource["custodian"] = {"reference": ref(custodian_id)}

    section: dict[str, Any] = {
        "title": SECTION_TITLE,
        "code": {"coding": [dict(LOINC_LAB_REPORT)], "text": LOINC_LAB_REPORT["display"]},
    }
    entries = section_entries(report_id, observation_ids, document_reference_ids)
    if entries:
        section["entry"] = entries
    else:
        section["text"] = {
            "status": "generated",
            "div": narrative.wrap_div("<p>No diagnostic entries</p>"),
        }
    resource["section"] = [section]
    return resource
