"""
Persistence for built bundles.

Every built bundle is kept, whether or not its submission succeeded, so that
a failed submission can be inspected or replayed. The bundle embeds PHI and
is stored encrypted.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Index, Integer, String, Text, Uuid

from lab_bundle.models.database import Base


# ---------------------------------------------------------------------------
# Bundle Record – one row per build handed to the submission endpoint
# ---------------------------------------------------------------------------
class BundleRecord(Base):
    __tablename__ = "bundle_records"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    patient_ref = Column(String(128), nullable=False, comment="Source patient id sent with the bundle")
    bundle_id = Column(String(128), nullable=False, comment="Bundle.id of the stored document")
    encrypted_bundle = Column(Text, nullable=False, comment="Fernet-encrypted Bundle JSON")
    entry_count = Column(Integer, nullable=False)
    submission_status = Column(String(16), nullable=False, default="pending")
    submission_error = Column(Text, nullable=True)
    pipeline_summary = Column(JSON, comment="Per-task status of the build pipeline")
    dag_definition = Column(JSON, comment="Snapshot of the DAG that was executed")
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)

    __table_args__ = (
        Index("ix_bundle_records_patient", "patient_ref"),
        Index("ix_bundle_records_status", "submission_status"),
    )


# ---------------------------------------------------------------------------
# Audit Log – immutable compliance trail
# ---------------------------------------------------------------------------
class AuditLog(Base):
    __tablename__ = "audit_log"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    actor = Column(String(128), nullable=False, comment="User or service identity")
    action = Column(String(64), nullable=False, comment="build | submit | read")
    resource_type = Column(String(64), nullable=False)
    resource_id = Column(Uuid, nullable=False)
    detail = Column(JSON, comment="Context for the action")
    timestamp = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)

    __table_args__ = (Index("ix_audit_timestamp", "timestamp"),)
