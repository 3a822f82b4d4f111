"""Patient source: a static JSON list of registry records."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def load_patients(path: str | Path) -> list[dict[str, Any]]:
    """
    Load patient records from a JSON array.
    A missing file, malformed JSON or a payload that is not a list yields an empty list.
    """
    path = Path(path)
    if not path.exists():
        logger.warning("Patient file %s not found", path)
        return []

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        logger.error("Patient file %s is not valid JSON: %s", path, exc)
        return []
    if not isinstance(data, list):
        logger.warning("Patient file %s does not contain a list", path)
        return []

    patients = [p for p in data if isinstance(p, dict)]
    logger.info("Loaded %d patient records", len(patients))
    return patients


def source_id(patient: dict[str, Any] | None) -> str:
    """The record's ``id`` as a string; empty when absent or null."""
    if not patient or patient.get("id") is None:
        return ""
    return str(patient["id"])


def find_patient(patients: list[dict[str, Any]], patient_id: str | None) -> dict[str, Any] | None:
    """Look a record up by its source ``id`` (compared as strings)."""
    if patient_id is None:
        return None
    for patient in patients:
        if source_id(patient) and source_id(patient) == str(patient_id):
            return patient
    return None
