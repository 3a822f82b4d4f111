"""Pydantic models for build inputs and API request/response serialization."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Build inputs
# ---------------------------------------------------------------------------

class ObservationInput(BaseModel):
    """One result row. All fields are optional free text."""
    codeText: str = ""
    valueText: str = ""
    valueUnit: str = ""
    effectiveDate: str = ""


class DocumentMeta(BaseModel):
    """Composition-level metadata for one document."""
    status: str = ""
    title: str = ""
    dateTime: str | None = None  # datetime-local, e.g. 2025-08-30T15:04
    testCode: str = ""
    encounterText: str = ""
    custodianName: str = ""
    attesterMode: Literal["personal", "professional", "legal", "official"] = "professional"
    attesterPartyType: Literal["Practitioner", "Organization"] | None = None
    attesterOrgName: str = ""


class BuildRequest(BaseModel):
    """Build a document bundle for a patient from the patient source."""
    patientId: str | None = None
    abhaAddress: str | None = None
    meta: DocumentMeta = Field(default_factory=DocumentMeta)
    observations: list[ObservationInput] = Field(default_factory=list, max_length=200)


# ---------------------------------------------------------------------------
# Patients
# ---------------------------------------------------------------------------

class AddressOptionResponse(BaseModel):
    value: str
    label: str
    primary: bool


class PatientSummary(BaseModel):
    id: str | None
    name: str | None = None
    gender: str | None = None
    dob: str | None = None
    abha_ref: str | None = None
    abhaAddresses: list[AddressOptionResponse] = []


# ---------------------------------------------------------------------------
# Bundles
# ---------------------------------------------------------------------------

class SubmissionSummary(BaseModel):
    ok: bool
    status_code: int | None = None
    response: Any = None
    error: str | None = None


class BundleBuildResponse(BaseModel):
    recordId: UUID
    bundle: dict[str, Any]
    submission: SubmissionSummary


class BundleRecordResponse(BaseModel):
    id: UUID
    patient_ref: str
    bundle_id: str
    submission_status: str
    submission_error: str | None
    created_at: datetime
    bundle: dict[str, Any]


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

class HealthResponse(BaseModel):
    status: str = "healthy"
    environment: str
    database: str = "connected"
