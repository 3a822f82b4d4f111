"""
ABHA address normalization.

Patient records coming from the registry are not consistent: the address list
lives either under ``additional_attributes.abha_addresses`` or directly under
``abha_addresses``, and its elements are plain strings or objects such as
``{"address": "jane@abdm", "isPrimary": true}``. This module reduces both
shapes to a sorted list of selectable options.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class TextAddress:
    value: str


@dataclass(frozen=True)
class StructuredAddress:
    fields: dict[str, Any]


RawAddress = Union[TextAddress, StructuredAddress]


@dataclass(frozen=True)
class AddressOption:
    """One selectable address: stored value, display label, primary flag."""

    value: str
    label: str
    primary: bool = False


def _raw_address_list(patient: dict[str, Any] | None) -> list[Any]:
    if not isinstance(patient, dict):
        return []
    attributes = patient.get("additional_attributes")
    if isinstance(attributes, dict) and isinstance(attributes.get("abha_addresses"), list):
        return attributes["abha_addresses"]
    if isinstance(patient.get("abha_addresses"), list):
        return patient["abha_addresses"]
    return []


def classify(item: Any) -> RawAddress | None:
    """Tag a raw list element; anything but a non-empty string or an object is dropped."""
    if isinstance(item, str):
        return TextAddress(item) if item else None
    if isinstance(item, dict):
        return StructuredAddress(item)
    return None


def _from_text(address: TextAddress) -> AddressOption:
    return AddressOption(value=address.value, label=address.value, primary=False)


def _from_structured(address: StructuredAddress) -> AddressOption | None:
    fields = address.fields
    primary = bool(fields.get("isPrimary"))
    if fields.get("address"):
        value = str(fields["address"])
        label = f"{value} (primary)" if primary else value
        return AddressOption(value=value, label=label, primary=primary)
    try:
        serialized = json.dumps(fields, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError):
        return None
    return AddressOption(value=serialized, label=serialized, primary=primary)


def normalize_abha_addresses(patient: dict[str, Any] | None) -> list[AddressOption]:
    """Return the patient's ABHA addresses, primary first, then by value."""
    options: list[AddressOption] = []
    for item in _raw_address_list(patient):
        raw = classify(item)
        if isinstance(raw, TextAddress):
            options.append(_from_text(raw))
        elif isinstance(raw, StructuredAddress):
            option = _from_structured(raw)
            if option is not None:
                options.append(option)

    options.sort(key=lambda o: (not o.primary, o.value))
    return options
