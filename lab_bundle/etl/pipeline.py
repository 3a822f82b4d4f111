"""
Document bundle build pipeline.

    validate ──┬── mint_ids ───────────┬── build_resources ── compose ── assemble ── verify
               └── encode_attachments ─┘

- validate:            aggregate every input violation before anything is built
- mint_ids:            one synthetic id per resource that will exist
- encode_attachments:  concurrent async reads, selection order preserved
- build_resources:     Patient, Practitioner, optional context, results, documents
- compose:             the Composition referencing report, observations, documents
- assemble:            wrap everything into the document Bundle
- verify:              structural and reference-integrity check of the Bundle
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Sequence

from lab_bundle.etl import builders
from lab_bundle.etl.builders import present
from lab_bundle.etl.bundle import compose_bundle, verify_bundle
from lab_bundle.etl.composition import build_composition
from lab_bundle.etl.dag import DAG
from lab_bundle.exceptions import BuildValidationError, BundleBuildError
from lab_bundle.schemas.api import DocumentMeta, ObservationInput
from lab_bundle.services import identifiers
from lab_bundle.services.addresses import normalize_abha_addresses
from lab_bundle.services.attachments import FileAttachment, encode_all
from lab_bundle.services.identity import PractitionerIdentity
from lab_bundle.services.temporal import parse_local_datetime, to_offset_timestamp
from lab_bundle.services.validation import validate_build_inputs

logger = logging.getLogger(__name__)


@dataclass
class BuildOutcome:
    bundle: dict[str, Any]
    summary: dict[str, Any]
    definition: dict[str, Any]


# ---------------------------------------------------------------------------
# Individual pipeline steps (each receives and returns a context dict)
# ---------------------------------------------------------------------------


def validate(context: dict[str, Any]) -> dict[str, Any]:
    errors = validate_build_inputs(
        context.get("patient"),
        context["meta"],
        context["observations"],
        attachment_count=len(context["files"]),
    )
    if errors:
        logger.info("Build rejected with %d validation error(s)", len(errors))
        raise BuildValidationError(errors)
    return {}


def mint_ids(context: dict[str, Any]) -> dict[str, Any]:
    meta: DocumentMeta = context["meta"]
    practitioner: PractitionerIdentity = context["practitioner"]
    document_count = max(len(context["files"]), 1)

    ids = {
        "composition": identifiers.generate(),
        "patient": identifiers.generate(),
        "practitioner": practitioner.id,
        "encounter": identifiers.generate() if present(meta.encounterText) else None,
        "custodian": identifiers.generate() if present(meta.custodianName) else None,
        "attester_org": (
            identifiers.generate()
            if meta.attesterPartyType == "Organization" and present(meta.attesterOrgName)
            else None
        ),
        "observations": [identifiers.generate() for _ in context["observations"]],
        "report": identifiers.generate(),
        "binaries": [identifiers.generate() for _ in range(document_count)],
    }
    ids["document_references"] = [identifiers.generate() for _ in ids["binaries"]]
    return {"ids": ids}


async def encode_attachments(context: dict[str, Any]) -> dict[str, Any]:
    return {"attachments": await encode_all(context["files"])}


def build_resources(context: dict[str, Any]) -> dict[str, Any]:
    ids = context["ids"]
    meta: DocumentMeta = context["meta"]
    practitioner: PractitionerIdentity = context["practitioner"]
    patient_source: dict[str, Any] = context["patient"]

    authored_on = to_offset_timestamp(parse_local_datetime(meta.dateTime))

    abha_address = context.get("abha_address")
    if abha_address is None:
        options = normalize_abha_addresses(patient_source)
        abha_address = options[0].value if options else None

    resources: dict[str, Any] = {
        "authored_on": authored_on,
        "patient_resource": builders.build_patient(ids["patient"], patient_source, abha_address),
        "practitioner_resource": builders.build_practitioner(practitioner),
        "encounter_resource": None,
        "custodian_resource": None,
        "attester_org_resource": None,
    }
    if ids["encounter"]:
        resources["encounter_resource"] = builders.build_encounter(
            ids["encounter"], meta.encounterText, ids["patient"], to_offset_timestamp()
        )
    if ids["custodian"]:
        resources["custodian_resource"] = builders.build_organization(ids["custodian"], meta.custodianName)
    if ids["attester_org"]:
        resources["attester_org_resource"] = builders.build_organization(ids["attester_org"], meta.attesterOrgName)

    resources["observation_resources"] = [
        builders.build_observation(oid, row, meta, ids["patient"], practitioner, authored_on)
        for oid, row in zip(ids["observations"], context["observations"])
    ]
    resources["report_resource"] = builders.build_diagnostic_report(
        ids["report"], meta, ids["patient"], practitioner, ids["observations"], authored_on
    )
    document_references, binaries = builders.build_document_pairs(
        ids["document_references"], ids["binaries"], context["attachments"], ids["patient"], authored_on
    )
    resources["document_references"] = document_references
    resources["binaries"] = binaries

    logger.info(
        "Built %d observation(s) and %d document pair(s)",
        len(resources["observation_resources"]), len(binaries),
    )
    return resources


def compose(context: dict[str, Any]) -> dict[str, Any]:
    ids = context["ids"]
    composition = build_composition(
        ids["composition"],
        context["meta"],
        ids["patient"],
        context["practitioner"],
        ids["report"],
        ids["observations"],
        [d["id"] for d in context["document_references"]],
        context["authored_on"],
        encounter_id=ids["encounter"],
        custodian_id=ids["custodian"],
        attester_org_id=ids["attester_org"],
    )
    return {"composition": composition}


def assemble(context: dict[str, Any]) -> dict[str, Any]:
    bundle = compose_bundle(
        context["composition"],
        context["patient_resource"],
        context["practitioner_resource"],
        context["report_resource"],
        context["observation_resources"],
        context["document_references"],
        context["binaries"],
        encounter=context["encounter_resource"],
        custodian=context["custodian_resource"],
        attester_org=context["attester_org_resource"],
    )
    return {"bundle": bundle}


def verify(context: dict[str, Any]) -> dict[str, Any]:
    verify_bundle(context["bundle"])
    return {"entry_count": len(context["bundle"]["entry"])}


# ---------------------------------------------------------------------------
# Pipeline factory
# ---------------------------------------------------------------------------

def build_document_pipeline() -> DAG:
    """Construct the document bundle DAG."""
    dag = DAG("document_bundle")
    dag.add_task("validate", validate)
    dag.add_task("mint_ids", mint_ids, depends_on=["validate"])
    dag.add_task("encode_attachments", encode_attachments, depends_on=["validate"])
    dag.add_task("build_resources", build_resources, depends_on=["mint_ids", "encode_attachments"])
    dag.add_task("compose", compose, depends_on=["build_resources"])
    dag.add_task("assemble", assemble, depends_on=["compose"])
    dag.add_task("verify", verify, depends_on=["assemble"])
    return dag


async def build_document_bundle(
    patient: dict[str, Any] | None,
    meta: DocumentMeta,
    observations: Sequence[ObservationInput],
    practitioner: PractitionerIdentity,
    files: Sequence[FileAttachment] = (),
    abha_address: str | None = None,
) -> BuildOutcome:
    """
    Run the full pipeline and return the verified bundle.

    Raises the failing step's BundleBuildError (validation, attachment read or
    integrity); no partial bundle is ever returned.
    """
    pipeline = build_document_pipeline()
    summary = await pipeline.run(
        initial_context={
            "patient": patient,
            "abha_address": abha_address,
            "meta": meta,
            "observations": list(observations),
            "files": list(files),
            "practitioner": practitioner,
        }
    )

    failure = pipeline.first_failure()
    if failure is not None:
        raise failure
    if summary["status"] != "completed":
        raise BundleBuildError(f"Pipeline '{pipeline.name}' did not complete")

    bundle = pipeline.tasks["assemble"].result["bundle"]
    return BuildOutcome(bundle=bundle, summary=summary, definition=pipeline.to_dict())
