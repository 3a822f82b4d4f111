"""
Submission of finished bundles to the downstream FHIR endpoint.

The endpoint accepts ``{"bundle": <Bundle>, "patient": <source patient id>}``.
A failed submission is logged and reported back as a SubmissionResult; the
bundle itself is left untouched so the caller can keep it for diagnostics.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from lab_bundle.config import settings

logger = logging.getLogger(__name__)


@dataclass
class SubmissionResult:
    ok: bool
    status_code: int | None = None
    response: Any = None
    error: str | None = None


class SubmissionClient:
    """Async client for the bundle submission endpoint."""

    def __init__(
        self,
        url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url or settings.SUBMISSION_URL
        self._timeout = timeout if timeout is not None else settings.SUBMISSION_TIMEOUT
        self._transport = transport

    async def submit(self, bundle: dict[str, Any], patient_id: str) -> SubmissionResult:
        """POST the bundle once. Never raises for HTTP or network errors."""
        payload = {"bundle": bundle, "patient": patient_id}
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(self.url, json=payload)
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            body = _response_body(exc.response)
            logger.error(
                "Bundle %s for patient %r rejected: %s %s",
                bundle.get("id"), patient_id, exc.response.status_code, body,
            )
            return SubmissionResult(
                ok=False,
                status_code=exc.response.status_code,
                response=body,
                error=f"HTTP {exc.response.status_code}",
            )
        except httpx.HTTPError as exc:
            logger.error("Bundle %s for patient %r not submitted: %s", bundle.get("id"), patient_id, exc)
            return SubmissionResult(ok=False, error=str(exc) or exc.__class__.__name__)

        logger.info("Bundle %s submitted (%s)", bundle.get("id"), response.status_code)
        return SubmissionResult(ok=True, status_code=response.status_code, response=_response_body(response))


def _response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text
