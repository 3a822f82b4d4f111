"""Shared fixtures: a practitioner identity, a registry patient and build metadata."""

import pytest

from lab_bundle.schemas.api import DocumentMeta, ObservationInput
from lab_bundle.services.identity import PractitionerIdentity

PRACTITIONER_ID = "7f0c2a9e-4b1d-4c3e-9a2f-1d2e3f4a5b6c"


@pytest.fixture
def practitioner():
    return PractitionerIdentity(id=PRACTITIONER_ID, display_name="Dr. Meera Iyer", license="KMC-45678")


@pytest.fixture
def patient():
    return {
        "id": "101",
        "user_ref_id": "USR-101",
        "name": "Asha Verma",
        "gender": "Female",
        "dob": "25-12-1990",
        "mobile": "+919800000001",
        "email": "asha.verma@example.in",
        "address": "12 MG Road, Bengaluru",
        "abha_ref": "91-1234-5678-9012",
        "abha_addresses": ["asha.verma@sbx", {"address": "asha@abdm", "isPrimary": True}],
    }


@pytest.fixture
def meta():
    return DocumentMeta(status="final", title="Diagnostic Report", testCode="CBC")


@pytest.fixture
def glucose():
    return ObservationInput(codeText="Glucose", valueText="5.6", valueUnit="mg/dL")
