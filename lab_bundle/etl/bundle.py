"""
Bundle composition and integrity checks.

The container is a FHIR ``document`` Bundle: Composition first, every other
resource after it, each entry located by ``urn:uuid:<resource id>``.
"""

from __future__ import annotations

import logging
from typing import Any, Iterator

from lab_bundle.etl.builders import ref
from lab_bundle.exceptions import BundleIntegrityError
from lab_bundle.schemas.fhir import BUNDLE_IDENTIFIER_SYSTEM, DOCUMENT_BUNDLE_SCHEMA, PROFILES
from lab_bundle.services import identifiers
from lab_bundle.services.temporal import to_offset_timestamp
from lab_bundle.services.validation import validate_against_schema

logger = logging.getLogger(__name__)

URN_PREFIX = "urn:uuid:"


def entry(resource: dict[str, Any]) -> dict[str, Any]:
    return {"fullUrl": ref(resource["id"]), "resource": resource}


def compose_bundle(
    composition: dict[str, Any],
    patient: dict[str, Any],
    practitioner: dict[str, Any],
    report: dict[str, Any],
    observations: list[dict[str, Any]],
    document_references: list[dict[str, Any]],
    binaries: list[dict[str, Any]],
    encounter: dict[str, Any] | None = None,
    custodian: dict[str, Any] | None = None,
    attester_org: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Wrap every constructed resource into one document Bundle."""
    resources = [composition, patient, practitioner, report]
    resources += [r for r in (encounter, custodian, attester_org) if r is not None]
    resources += observations + document_references + binaries

    now = to_offset_timestamp()
    return {
        "resourceType": "Bundle",
        "id": f"DiagnosticReportBundle-{identifiers.generate()}",
        "meta": {"profile": [PROFILES["Bundle"]], "lastUpdated": now},
        "identifier": {
            "system": BUNDLE_IDENTIFIER_SYSTEM,
            "value": ref(identifiers.generate()),
        },
        "type": "document",
        "timestamp": now,
        "entry": [entry(r) for r in resources],
    }


def collect_references(node: Any) -> Iterator[str]:
    """Yield every ``urn:uuid:`` reference string nested anywhere in ``node``."""
    if isinstance(node, dict):
        for key, value in node.items():
            if key in ("reference", "url") and isinstance(value, str) and value.startswith(URN_PREFIX):
                yield value
            else:
                yield from collect_references(value)
    elif isinstance(node, list):
        for item in node:
            yield from collect_references(item)


def dangling_references(bundle: dict[str, Any]) -> list[str]:
    """References that do not match the fullUrl of any entry in the bundle."""
    entries = bundle.get("entry", [])
    locators = {e.get("fullUrl") for e in entries}
    missing: list[str] = []
    for e in entries:
        for reference in collect_references(e.get("resource")):
            if reference not in locators and reference not in missing:
                missing.append(reference)
    return missing


def verify_bundle(bundle: dict[str, Any]) -> None:
    """Raise BundleIntegrityError if the bundle breaks its structural contract."""
    problems = validate_against_schema(bundle, DOCUMENT_BUNDLE_SCHEMA)

    entries = bundle.get("entry", [])
    if entries and entries[0].get("resource", {}).get("resourceType") != "Composition":
        problems.append("first entry must be the Composition")
    for e in entries:
        resource = e.get("resource", {})
        if e.get("fullUrl") != ref(resource.get("id", "")):
            problems.append(f"fullUrl {e.get('fullUrl')} does not match resource id")
    problems += [f"dangling reference {r}" for r in dangling_references(bundle)]

    if problems:
        logger.error("Bundle %s failed integrity check: %s", bundle.get("id"), problems)
        raise BundleIntegrityError("Composed bundle is inconsistent", detail=problems)
