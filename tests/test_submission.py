"""Tests for the submission client, using httpx.MockTransport."""

import asyncio
import json

import httpx

from lab_bundle.services.submission import SubmissionClient

BUNDLE = {"resourceType": "Bundle", "id": "DiagnosticReportBundle-1", "type": "document", "entry": []}


def _client(handler):
    return SubmissionClient(url="https://fhir.test/bundle", timeout=5, transport=httpx.MockTransport(handler))


def test_successful_submission_posts_bundle_and_patient():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"status": "accepted"})

    result = asyncio.run(_client(handler).submit(BUNDLE, "101"))

    assert result.ok
    assert result.status_code == 200
    assert result.response == {"status": "accepted"}
    assert seen["url"] == "https://fhir.test/bundle"
    assert seen["body"] == {"bundle": BUNDLE, "patient": "101"}


def test_http_error_is_reported_not_raised():
    result = asyncio.run(_client(lambda request: httpx.Response(422, text="bad bundle")).submit(BUNDLE, "101"))

    assert not result.ok
    assert result.status_code == 422
    assert result.response == "bad bundle"
    assert result.error == "HTTP 422"


def test_network_error_is_reported_not_raised():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    result = asyncio.run(_client(handler).submit(BUNDLE, "101"))
    assert not result.ok
    assert result.status_code is None
    assert "connection refused" in result.error


def test_bundle_is_not_mutated_by_failure():
    bundle = json.loads(json.dumps(BUNDLE))
    asyncio.run(_client(lambda request: httpx.Response(500)).submit(bundle, "101"))
    assert bundle == BUNDLE
