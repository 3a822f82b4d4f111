"""
FastAPI application entrypoint.

Run locally:  uvicorn lab_bundle.main:app --reload
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from lab_bundle.api.routes import router
from lab_bundle.config import settings
from lab_bundle.exceptions import BundleBuildError
from lab_bundle.models.database import Base, engine
from lab_bundle.services.identity import current_practitioner

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(levelname)s | %(name)s | %(message)s",
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Laboratory Report Bundle Builder",
    description=(
        "Builds ABDM/FHIR R4 document bundles (Composition, DiagnosticReport, "
        "Observations, DocumentReference/Binary) for laboratory reports and "
        "submits them to the configured endpoint."
    ),
    version="1.0.0",
)

app.include_router(router, prefix="/api/v1")


@app.exception_handler(BundleBuildError)
async def bundle_build_error_handler(request: Request, exc: BundleBuildError):
    logger.warning("%s %s failed: %s (%s)", request.method, request.url.path, exc.code, exc.type)
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


@app.on_event("startup")
def on_startup():
    Base.metadata.create_all(bind=engine)
    # Resolve the practitioner once; every build reuses it.
    current_practitioner()
