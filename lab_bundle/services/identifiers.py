"""Synthetic identifiers used for urn:uuid references inside a bundle."""

import re
import uuid

_UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$"
)


def generate() -> str:
    """Return a fresh random (version 4) UUID in lowercase canonical form."""
    return str(uuid.uuid4())


def validate(value: object) -> bool:
    """True iff ``value`` is a canonical UUID string (case-insensitive)."""
    return isinstance(value, str) and bool(_UUID_RE.match(value.lower()))


def resolve(candidate: object) -> str:
    """Return the lowercased candidate when it is a valid UUID, else a new one."""
    if validate(candidate):
        return candidate.lower()  # type: ignore[union-attr]
    return generate()
