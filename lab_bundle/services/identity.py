"""
Practitioner identity used as author/performer of every bundle.

The hosting application supplies a FHIR-ish Practitioner object of uncertain
shape. It is resolved once per process and then passed into each build.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any

from lab_bundle.config import settings
from lab_bundle.services import identifiers

logger = logging.getLogger(__name__)

FALLBACK_DISPLAY_NAME = "Dr. ABC"
FALLBACK_LICENSE = "LIC-TEMP-0001"


@dataclass(frozen=True)
class PractitionerIdentity:
    id: str
    display_name: str
    license: str


def _first_text(values: Any, key: str) -> str:
    if isinstance(values, list) and values and isinstance(values[0], dict):
        value = values[0].get(key)
        return str(value) if value else ""
    return ""


def resolve_practitioner(source: dict[str, Any] | None) -> PractitionerIdentity:
    """Map an external Practitioner object onto a PractitionerIdentity."""
    source = source if isinstance(source, dict) else {}

    name = source.get("name")
    display_name = _first_text(name, "text") or (name if isinstance(name, str) else "")
    license_value = _first_text(source.get("identifier"), "value") or source.get("license") or ""

    return PractitionerIdentity(
        id=identifiers.resolve(source.get("id")),
        display_name=display_name or FALLBACK_DISPLAY_NAME,
        license=str(license_value) or FALLBACK_LICENSE,
    )


def load_practitioner_source() -> dict[str, Any] | None:
    """Read the raw Practitioner object from PRACTITIONER_FILE or PRACTITIONER_JSON."""
    raw = settings.PRACTITIONER_JSON
    if settings.PRACTITIONER_FILE:
        raw = Path(settings.PRACTITIONER_FILE).read_text(encoding="utf-8")
    if not raw:
        logger.warning("No practitioner configured; using fallback identity")
        return None
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        logger.error("Practitioner source is not valid JSON (%s); using fallback identity", exc)
        return None
    return data if isinstance(data, dict) else None


@lru_cache(maxsize=1)
def current_practitioner() -> PractitionerIdentity:
    """Process-wide identity, resolved on first use."""
    identity = resolve_practitioner(load_practitioner_source())
    logger.info("Practitioner identity resolved: %s", identity.id)
    return identity
