"""
Error types raised while building a document bundle.

Every build failure carries:
- type:        error category (validation_error / read_error / integrity_error)
- code:        machine-readable error code
- message:     human readable description
- detail:      optional extra information (e.g. the list of gate messages)
- http_status: status code used by the API layer

Submission failures are deliberately not part of this hierarchy: they are
reported as a ``SubmissionResult`` and never abort a build.
"""

from __future__ import annotations

from typing import Any


class BundleBuildError(Exception):
    """Base class for failures that abort a bundle build."""

    type = "error"
    code = "BUILD_ERROR"
    http_status = 500

    def __init__(
        self,
        message: str,
        code: str | None = None,
        detail: Any = None,
        http_status: int | None = None,
    ):
        self.message = message
        if code is not None:
            self.code = code
        if http_status is not None:
            self.http_status = http_status
        self.detail = detail
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"type": self.type, "code": self.code, "message": self.message}
        if self.detail is not None:
            body["detail"] = self.detail
        return body


class BuildValidationError(BundleBuildError):
    """Build inputs failed the validation gate. ``errors`` holds every message."""

    type = "validation_error"
    code = "INVALID_BUILD_INPUT"
    http_status = 422

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("Please fix:\n" + "\n".join(self.errors), detail=self.errors)


class AttachmentReadError(BundleBuildError):
    """An uploaded file could not be read; the whole build is abandoned."""

    type = "read_error"
    code = "ATTACHMENT_READ_FAILED"
    http_status = 400


class BundleIntegrityError(BundleBuildError):
    """The composed bundle violates its structural contract."""

    type = "integrity_error"
    code = "BUNDLE_INTEGRITY"
    http_status = 500
