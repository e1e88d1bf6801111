# services/api/core/errors.py
"""
Error taxonomy for assessment submissions.

Each error carries the HTTP status the router answers with, so the
submission endpoint can map failures without string matching.
"""


class AssessmentError(Exception):
    """Base class for every failure surfaced to the caller."""

    status_code = 500
    code = "ASSESSMENT_FAILED"


class ConfigurationError(AssessmentError):
    """Missing spreadsheet id, missing credentials, unknown backend."""

    status_code = 500
    code = "CONFIGURATION_ERROR"


class InvalidSubmission(AssessmentError):
    """Structurally invalid payload (names the offending field)."""

    status_code = 400
    code = "INVALID_SUBMISSION"


class InvalidAssetFormat(AssessmentError):
    """Embedded image payload could not be decoded."""

    status_code = 400
    code = "INVALID_ASSET_FORMAT"


class AssetUploadError(AssessmentError):
    """A single asset could not be persisted."""

    status_code = 502
    code = "ASSET_UPLOAD_FAILED"


class WriteConflict(AssessmentError):
    """Another commit for the same document name is in progress."""

    status_code = 409
    code = "WRITE_CONFLICT"


class PermissionDenied(AssessmentError):
    """Credentials are valid but lack write access."""

    status_code = 403
    code = "PERMISSION_DENIED"


class AuthenticationExpired(AssessmentError):
    """Credentials expired or were revoked; the caller should sign in again."""

    status_code = 401
    code = "AUTHENTICATION_EXPIRED"


class NotFound(AssessmentError):
    """Destination spreadsheet does not exist."""

    status_code = 404
    code = "NOT_FOUND"


class DestinationError(AssessmentError):
    """Any other failure talking to the destination document service."""

    status_code = 502
    code = "DESTINATION_ERROR"
