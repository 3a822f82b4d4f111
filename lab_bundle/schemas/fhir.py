"""
FHIR constants and the structural schema of a produced document bundle.

The schema is not a full FHIR R4 validator: it pins down the container shape
that downstream consumers rely on (entry layout, urn:uuid locators, profile,
language and narrative on every resource).
"""

LANGUAGE = "en-IN"

PROFILES: dict[str, str] = {
    "Bundle": "http://hl7.org/fhir/StructureDefinition/Bundle",
    "Composition": "http://hl7.org/fhir/StructureDefinition/Composition",
    "Patient": "http://hl7.org/fhir/StructureDefinition/Patient",
    "Practitioner": "https://nrces.in/ndhm/fhir/r4/StructureDefinition/Practitioner",
    "Encounter": "http://hl7.org/fhir/StructureDefinition/Encounter",
    "Organization": "http://hl7.org/fhir/StructureDefinition/Organization",
    "Observation": "http://hl7.org/fhir/StructureDefinition/Observation",
    "DiagnosticReport": "http://hl7.org/fhir/StructureDefinition/DiagnosticReport",
    "DocumentReference": "http://hl7.org/fhir/StructureDefinition/DocumentReference",
    "Binary": "https://nrces.in/ndhm/fhir/r4/StructureDefinition/Binary",
}

# Composition.type, section code, DiagnosticReport.code, DocumentReference.type
LOINC_LAB_REPORT: dict[str, str] = {
    "system": "http://loinc.org",
    "code": "11502-2",
    "display": "Laboratory report",
}

OBSERVATION_CATEGORY_LAB: dict = {
    "coding": [
        {
            "system": "http://terminology.hl7.org/CodeSystem/observation-category",
            "code": "laboratory",
            "display": "Laboratory",
        }
    ],
    "text": "Laboratory",
}

DIAGNOSTIC_SERVICE_LAB: dict = {
    "coding": [
        {
            "system": "http://terminology.hl7.org/CodeSystem/v2-0074",
            "code": "LAB",
            "display": "Laboratory",
        }
    ],
    "text": "Laboratory",
}

MEDICAL_LICENSE_TYPE: dict = {
    "coding": [
        {
            "system": "http://terminology.hl7.org/CodeSystem/v2-0203",
            "code": "MD",
            "display": "Medical License number",
        }
    ]
}

ENCOUNTER_CLASS_AMBULATORY: dict[str, str] = {
    "system": "http://terminology.hl7.org/CodeSystem/v3-ActCode",
    "code": "AMB",
    "display": "ambulatory",
}

HEALTH_ID_SYSTEM = "https://healthid.ndhm.gov.in"
ABHA_SYSTEM = "https://abdm.gov.in/abha"
DOCTOR_REGISTRY_SYSTEM = "https://doctor.ndhm.gov.in"
BUNDLE_IDENTIFIER_SYSTEM = "urn:ietf:rfc:3986"

URN_UUID_PATTERN = (
    "^urn:uuid:[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$"
)

_NARRATIVE = {
    "type": "object",
    "required": ["status", "div"],
    "properties": {
        "status": {"const": "generated"},
        "div": {"type": "string", "pattern": "^<div xmlns=\"http://www.w3.org/1999/xhtml\""},
    },
}

_RESOURCE = {
    "type": "object",
    "required": ["resourceType", "id", "meta", "language"],
    "properties": {
        "resourceType": {"type": "string", "enum": sorted(set(PROFILES) - {"Bundle"})},
        "id": {"type": "string", "minLength": 1},
        "meta": {
            "type": "object",
            "required": ["profile"],
            "properties": {
                "profile": {"type": "array", "minItems": 1, "maxItems": 1, "items": {"type": "string"}},
            },
        },
        "language": {"const": LANGUAGE},
        "text": _NARRATIVE,
    },
    # Binary is the only resource kind without a narrative.
    "if": {"properties": {"resourceType": {"not": {"const": "Binary"}}}},
    "then": {"required": ["text"]},
}

DOCUMENT_BUNDLE_SCHEMA: dict = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "FHIR document Bundle (laboratory report)",
    "type": "object",
    "required": ["resourceType", "id", "meta", "identifier", "type", "timestamp", "entry"],
    "properties": {
        "resourceType": {"const": "Bundle"},
        "type": {"const": "document"},
        "identifier": {
            "type": "object",
            "required": ["system", "value"],
            "properties": {
                "system": {"const": BUNDLE_IDENTIFIER_SYSTEM},
                "value": {"type": "string", "pattern": URN_UUID_PATTERN},
            },
        },
        "timestamp": {"type": "string", "minLength": 1},
        "entry": {
            "type": "array",
            "minItems": 1,
            "items": {
                "type": "object",
                "required": ["fullUrl", "resource"],
                "properties": {
                    "fullUrl": {"type": "string", "pattern": URN_UUID_PATTERN},
                    "resource": _RESOURCE,
                },
                "additionalProperties": False,
            },
        },
    },
}
