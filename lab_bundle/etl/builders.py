"""
Resource builders – one function per FHIR resource kind.

Each builder receives the ids minted for the current build and returns a
plain JSON-ready dict. Optional elements are only emitted when their source
value is present; nothing here raises on messy input.
"""

from __future__ import annotations

import copy
import math
from typing import Any

from lab_bundle.schemas.api import DocumentMeta, ObservationInput
from lab_bundle.schemas.fhir import (
    ABHA_SYSTEM,
    DIAGNOSTIC_SERVICE_LAB,
    DOCTOR_REGISTRY_SYSTEM,
    ENCOUNTER_CLASS_AMBULATORY,
    HEALTH_ID_SYSTEM,
    LANGUAGE,
    LOINC_LAB_REPORT,
    MEDICAL_LICENSE_TYPE,
    OBSERVATION_CATEGORY_LAB,
    PROFILES,
)
from lab_bundle.services import narrative
from lab_bundle.services.attachments import EncodedAttachment
from lab_bundle.services.identity import PractitionerIdentity
from lab_bundle.services.temporal import to_canonical_date, to_utc_timestamp


def ref(resource_id: str) -> str:
    return f"urn:uuid:{resource_id}"


def present(value: Any) -> bool:
    """True for non-None values, and for strings that are not blank."""
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def base_resource(resource_type: str, resource_id: str, text: dict[str, str] | None) -> dict[str, Any]:
    resource: dict[str, Any] = {
        "resourceType": resource_type,
        "id": resource_id,
        "language": LANGUAGE,
        "meta": {"profile": [PROFILES[resource_type]]},
    }
    if text is not None:
        resource["text"] = text
    return resource


def _practitioner_ref(practitioner: PractitionerIdentity) -> dict[str, str]:
    return {"reference": ref(practitioner.id), "display": practitioner.display_name}


# ---------------------------------------------------------------------------
# Patient / Practitioner
# ---------------------------------------------------------------------------

def build_patient(
    patient_id: str,
    source: dict[str, Any],
    abha_address: str | None = None,
) -> dict[str, Any]:
    name = source.get("name")
    gender = source.get("gender")
    dob = source.get("dob")

    resource = base_resource(
        "Patient",
        patient_id,
        narrative.render("Patient", f"<p>{name or ''}</p><p>{gender or ''} {dob or ''}</p>"),
    )

    identifiers = []
    local_id = next(
        (source.get(k) for k in ("user_ref_id", "mrn", "abha_ref", "id") if source.get(k)),
        None,
    )
    if local_id:
        identifiers.append({"system": HEALTH_ID_SYSTEM, "value": str(local_id)})
    if source.get("abha_ref"):
        identifiers.append({"system": ABHA_SYSTEM, "value": str(source["abha_ref"])})
    if identifiers:
        resource["identifier"] = identifiers

    if name:
        resource["name"] = [{"text": str(name)}]
    if gender:
        resource["gender"] = str(gender).lower()

    birth_date = to_canonical_date(dob)
    if birth_date:
        resource["birthDate"] = birth_date

    telecom = []
    if source.get("mobile"):
        telecom.append({"system": "phone", "value": str(source["mobile"])})
    if source.get("email"):
        telecom.append({"system": "email", "value": str(source["email"])})
    if abha_address:
        telecom.append({"system": "url", "value": f"abha://{abha_address}"})
    if telecom:
        resource["telecom"] = telecom

    if source.get("address"):
        resource["address"] = [{"text": str(source["address"])}]
    return resource


def build_practitioner(practitioner: PractitionerIdentity) -> dict[str, Any]:
    resource = base_resource(
        "Practitioner",
        practitioner.id,
        narrative.render("Practitioner", f"<p>{practitioner.display_name}</p>"),
    )
    resource["identifier"] = [
        {
            "type": copy.deepcopy(MEDICAL_LICENSE_TYPE),
            "system": DOCTOR_REGISTRY_SYSTEM,
            "value": practitioner.license,
        }
    ]
    resource["name"] = [{"text": practitioner.display_name}]
    return resource


# ---------------------------------------------------------------------------
# Optional context: Encounter, Organizations
# ---------------------------------------------------------------------------

def build_encounter(
    encounter_id: str,
    encounter_text: str,
    patient_id: str,
    started_at: str,
) -> dict[str, Any]:
    resource = base_resource("Encounter", encounter_id, narrative.render("Encounter", f"<p>{encounter_text}</p>"))
    resource.update(
        {
            "status": "finished",
            "class": dict(ENCOUNTER_CLASS_AMBULATORY),
            "subject": {"reference": ref(patient_id)},
            "period": {"start": started_at, "end": started_at},
        }
    )
    return resource


def build_organization(organization_id: str, name: str) -> dict[str, Any]:
    resource = base_resource("Organization", organization_id, narrative.render("Organization", f"<p>{name}</p>"))
    resource["name"] = name
    return resource


# ---------------------------------------------------------------------------
# Results: Observation, DiagnosticReport
# ---------------------------------------------------------------------------

def parse_number(text: str) -> int | float | None:
    """Parse a finite number; integral values come back as int."""
    if not present(text):
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return int(number) if number.is_integer() else number


def observation_value(row: ObservationInput) -> dict[str, Any]:
    """
    Return the value element of an Observation: ``valueQuantity`` when a unit
    is given and the value is numeric, ``valueString`` for other non-empty
    values, nothing otherwise.
    """
    number = parse_number(row.valueText)
    if present(row.valueUnit) and number is not None:
        return {"valueQuantity": {"value": number, "unit": row.valueUnit}}
    if row.valueText:
        return {"valueString": row.valueText}
    return {}


def observation_effective(row: ObservationInput, authored_on: str) -> str:
    if not row.effectiveDate:
        return authored_on
    if "T" in row.effectiveDate:
        return to_utc_timestamp(row.effectiveDate) or authored_on
    return to_canonical_date(row.effectiveDate) or authored_on


def build_observation(
    observation_id: str,
    row: ObservationInput,
    meta: DocumentMeta,
    patient_id: str,
    practitioner: PractitionerIdentity,
    authored_on: str,
) -> dict[str, Any]:
    code_text = row.codeText if present(row.codeText) else (meta.testCode or "Diagnostic test")
    resource = base_resource(
        "Observation",
        observation_id,
        narrative.render(
            "Observation",
            f"<p>{row.codeText or meta.testCode or 'Test'}</p><p>{row.valueText} {row.valueUnit}</p>",
        ),
    )
    resource.update(
        {
            "status": "final",
            "category": [copy.deepcopy(OBSERVATION_CATEGORY_LAB)],
            "code": {"text": code_text},
            "subject": {"reference": ref(patient_id)},
            "effectiveDateTime": observation_effective(row, authored_on),
        }
    )
    resource.update(observation_value(row))
    resource["performer"] = [_practitioner_ref(practitioner)]
    return resource


def build_diagnostic_report(
    report_id: str,
    meta: DocumentMeta,
    patient_id: str,
    practitioner: PractitionerIdentity,
    observation_ids: list[str],
    authored_on: str,
) -> dict[str, Any]:
    resource = base_resource(
        "DiagnosticReport",
        report_id,
        narrative.render("DiagnosticReport", f"<p>{meta.title}</p><p>Code: {meta.testCode}</p>"),
    )
    resource.update(
        {
            "status": meta.status,
            "category": [copy.deepcopy(DIAGNOSTIC_SERVICE_LAB)],
            "code": {"coding": [dict(LOINC_LAB_REPORT)], "text": meta.title},
            "subject": {"reference": ref(patient_id)},
            "effectiveDateTime": authored_on,
            "result": [{"reference": ref(oid)} for oid in observation_ids],
            "performer": [_practitioner_ref(practitioner)],
        }
    )
    return resource


# ---------------------------------------------------------------------------
# Documents: DocumentReference + Binary
# ---------------------------------------------------------------------------

def build_binary(binary_id: str, attachment: EncodedAttachment) -> dict[str, Any]:
    resource = base_resource("Binary", binary_id, None)
    resource["contentType"] = attachment.media_type
    resource["data"] = attachment.data
    return resource


def build_document_reference(
    document_id: str,
    binary_id: str,
    attachment: EncodedAttachment,
    patient_id: str,
    authored_on: str,
) -> dict[str, Any]:
    resource = base_resource(
        "DocumentReference",
        document_id,
        narrative.render("DocumentReference", f"<p>{attachment.title}</p>"),
    )
    resource.update(
        {
            "status": "current",
            "type": {"coding": [dict(LOINC_LAB_REPORT)], "text": "Laboratory report document"},
            "subject": {"reference": ref(patient_id)},
            "date": authored_on,
            "content": [
                {
                    "attachment": {
                        "contentType": attachment.media_type,
                        "title": attachment.title,
                        "url": ref(binary_id),
                    }
                }
            ],
        }
    )
    return resource


def build_document_pairs(
    document_ids: list[str],
    binary_ids: list[str],
    attachments: list[EncodedAttachment],
    patient_id: str,
    authored_on: str,
) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
    """Return ``(document_references, binaries)`` in attachment order."""
    document_references, binaries = [], []
    for doc_id, bin_id, attachment in zip(document_ids, binary_ids, attachments):
        binaries.append(build_binary(bin_id, attachment))
        document_references.append(
            build_document_reference(doc_id, bin_id, attachment, patient_id, authored_on)
        )
    return document_references, binaries
