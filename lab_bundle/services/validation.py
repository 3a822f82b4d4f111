"""
Validation services.

- ``validate_build_inputs``: the gate that runs before any resource is built
- ``validate_against_schema``: JSON Schema check of a composed bundle

Both collect every error rather than stopping at the first one.
"""

from __future__ import annotations

from typing import Any, Sequence

import jsonschema

from lab_bundle.schemas.api import DocumentMeta, ObservationInput


def _blank(value: str | None) -> bool:
    return not value or not value.strip()


def validate_build_inputs(
    patient: dict[str, Any] | None,
    meta: DocumentMeta,
    observations: Sequence[ObservationInput],
    attachment_count: int = 0,
) -> list[str]:
    """Return every violated build precondition as a message (empty list = valid)."""
    errors: list[str] = []
    if not patient:
        errors.append("Select a patient (required).")
    if not meta.status:
        errors.append("Status is required.")
    if _blank(meta.title):
        errors.append("Title is required.")
    if _blank(meta.testCode):
        errors.append("Test code is required.")

    has_result = any(not _blank(o.valueText) or not _blank(o.valueUnit) for o in observations)
    if not (has_result or attachment_count > 0):
        errors.append(
            "Add at least one observation with a result value, or upload at least one document."
        )
    return errors


def validate_against_schema(data: dict[str, Any], schema: dict[str, Any]) -> list[str]:
    """
    Validate a dict against a JSON schema.
    Returns a list of error messages (empty list = valid).
    """
    validator = jsonschema.Draft7Validator(schema)
    return [error.message for error in validator.iter_errors(data)]
