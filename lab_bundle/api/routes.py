"""
FastAPI routes – the HTTP surface of the bundle builder.

- GET  /health                 database connectivity
- GET  /patients               patient source with normalized ABHA addresses
- POST /bundles                build, submit and store a document bundle
- GET  /bundles/{record_id}    stored bundle and its submission outcome
"""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pydantic import ValidationError
from sqlalchemy import text
from sqlalchemy.orm import Session

from lab_bundle.config import settings
from lab_bundle.etl.pipeline import build_document_bundle
from lab_bundle.models.database import get_db
from lab_bundle.models.records import BundleRecord
from lab_bundle.schemas.api import (
    AddressOptionResponse,
    BuildRequest,
    BundleBuildResponse,
    BundleRecordResponse,
    HealthResponse,
    PatientSummary,
    SubmissionSummary,
)
from lab_bundle.services import audit
from lab_bundle.services.addresses import normalize_abha_addresses
from lab_bundle.services.attachments import FileAttachment
from lab_bundle.services.encryption import EncryptionService
from lab_bundle.services.identity import PractitionerIdentity, current_practitioner
from lab_bundle.services.patients import find_patient, load_patients, source_id
from lab_bundle.services.submission import SubmissionClient

logger = logging.getLogger(__name__)

router = APIRouter()

encryption = EncryptionService()


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

def get_practitioner() -> PractitionerIdentity:
    return current_practitioner()


def get_patients() -> list[dict[str, Any]]:
    return load_patients(settings.PATIENTS_FILE)


def get_submission_client() -> SubmissionClient:
    return SubmissionClient()


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

@router.get("/health", response_model=HealthResponse)
def health_check(db: Session = Depends(get_db)):
    """Basic health endpoint – verifies DB connectivity."""
    try:
        db.execute(text("SELECT 1"))
        db_status = "connected"
    except Exception:
        logger.exception("Database health check failed")
        db_status = "disconnected"
    return HealthResponse(
        status="healthy",
        environment=settings.ENVIRONMENT,
        database=db_status,
    )


# ---------------------------------------------------------------------------
# Patient source
# ---------------------------------------------------------------------------

def _text(value: Any) -> str | None:
    return str(value) if value is not None else None


@router.get("/patients", response_model=list[PatientSummary])
def list_patients(patients: list[dict[str, Any]] = Depends(get_patients)):
    """List patients with their selectable ABHA addresses (primary first)."""
    return [
        PatientSummary(
            id=_text(p.get("id")),
            name=_text(p.get("name")),
            gender=_text(p.get("gender")),
            dob=_text(p.get("dob")),
            abha_ref=_text(p.get("abha_ref")),
            abhaAddresses=[
                AddressOptionResponse(value=o.value, label=o.label, primary=o.primary)
                for o in normalize_abha_addresses(p)
            ],
        )
        for p in patients
    ]


# ---------------------------------------------------------------------------
# Bundle build + submission
# ---------------------------------------------------------------------------

@router.post("/bundles", response_model=BundleBuildResponse, status_code=201)
async def create_bundle(
    request: str = Form(..., description="BuildRequest as JSON"),
    files: list[UploadFile] = File(default=[]),
    db: Session = Depends(get_db),
    patients: list[dict[str, Any]] = Depends(get_patients),
    practitioner: PractitionerIdentity = Depends(get_practitioner),
    client: SubmissionClient = Depends(get_submission_client),
):
    """
    Build a document bundle, submit it, and keep an encrypted copy.

    Validation, attachment and integrity failures abort the build and are
    rendered by the BundleBuildError handler. A failed submission does not:
    the bundle is stored and returned with ``submission.ok = false``.
    """
    try:
        build_request = BuildRequest.model_validate_json(request)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.errors(include_url=False)) from exc

    patient = find_patient(patients, build_request.patientId)
    attachments = [FileAttachment.from_upload(f) for f in files if f.filename]

    outcome = await build_document_bundle(
        patient,
        build_request.meta,
        build_request.observations,
        practitioner,
        files=attachments,
        abha_address=build_request.abhaAddress,
    )
    bundle = outcome.bundle
    patient_ref = source_id(patient)

    submission = await client.submit(bundle, patient_ref)

    record = BundleRecord(
        patient_ref=patient_ref,
        bundle_id=bundle["id"],
        encrypted_bundle=encryption.encrypt_json(bundle),
        entry_count=len(bundle["entry"]),
        submission_status="submitted" if submission.ok else "failed",
        submission_error=submission.error,
        pipeline_summary=outcome.summary,
        dag_definition=outcome.definition,
    )
    db.add(record)
    db.flush()

    audit.record_build(db, record, len(bundle["entry"]))
    audit.record_submission(db, record, submission)
    db.commit()

    return BundleBuildResponse(
        recordId=record.id,
        bundle=bundle,
        submission=SubmissionSummary(
            ok=submission.ok,
            status_code=submission.status_code,
            response=submission.response,
            error=submission.error,
        ),
    )


@router.get("/bundles/{record_id}", response_model=BundleRecordResponse)
def get_bundle(record_id: UUID, db: Session = Depends(get_db)):
    """Return a stored bundle (decrypted) with its submission outcome."""
    record = db.query(BundleRecord).filter(BundleRecord.id == record_id).first()
    if not record:
        raise HTTPException(status_code=404, detail="Bundle record not found")

    audit.record_read(db, record)
    db.commit()

    return BundleRecordResponse(
        id=record.id,
        patient_ref=record.patient_ref,
        bundle_id=record.bundle_id,
        submission_status=record.submission_status,
        submission_error=record.submission_error,
        created_at=record.created_at,
        bundle=encryption.decrypt_json(record.encrypted_bundle),
    )
