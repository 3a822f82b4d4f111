"""Audit trail for bundle builds, submissions and reads of stored bundles."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.orm import Session

from lab_bundle.models.records import AuditLog, BundleRecord
from lab_bundle.services.submission import SubmissionResult

logger = logging.getLogger(__name__)

ACTOR = "bundle_builder"


def _append(db: Session, actor: str, action: str, record: BundleRecord, detail: dict[str, Any] | None) -> AuditLog:
    entry = AuditLog(
        actor=actor,
        action=action,
        resource_type="Bundle",
        resource_id=record.id,
        detail=detail,
    )
    db.add(entry)
    db.flush()
    logger.info("AUDIT: %s %s Bundle/%s", actor, action, record.id)
    return entry


def record_build(db: Session, record: BundleRecord, entry_count: int) -> AuditLog:
    """One entry per built bundle; no PHI beyond the source patient id."""
    return _append(
        db,
        ACTOR,
        "build",
        record,
        {"bundle_id": record.bundle_id, "patient": record.patient_ref, "entries": entry_count},
    )


def record_submission(db: Session, record: BundleRecord, result: SubmissionResult) -> AuditLog:
    return _append(
        db,
        ACTOR,
        "submit",
        record,
        {"ok": result.ok, "status_code": result.status_code, "error": result.error},
    )


def record_read(db: Session, record: BundleRecord, actor: str = "api_user") -> AuditLog:
    return _append(db, actor, "read", record, None)
