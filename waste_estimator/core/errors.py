"""
Waste Estimator - Error Taxonomy
Every failure surfaced to a client is a WasteEstimatorError rendered as
{"success": false, "error": ..., "details": ...}.

Categories:
- Client input (400): missing image, malformed numeric fields
- Provisioning (400): administrative hierarchy cannot be resolved
- Upstream dependency (500): Gemini unreachable/unauthorized, unparsable reply
- Storage (500): connectivity or query failures (classified by message text)
"""

import traceback
from typing import Any, Optional


class WasteEstimatorError(Exception):
    """Base class for errors rendered into the response envelope."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Any = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class ImageRequiredError(WasteEstimatorError):
    """Raised when an estimation request carries no image."""
    status_code = 400
    default_message = "Image is required"


class InvalidFieldError(WasteEstimatorError):
    """Raised when a form or query field cannot be interpreted."""
    status_code = 400
    default_message = "Invalid request"


class HierarchyNotProvisionedError(WasteEstimatorError):
    """Raised when panchayat, ward or collector cannot be resolved."""
    status_code = 400
    default_message = "Demo data not found. Please seed the administrative hierarchy."


class NotFoundError(WasteEstimatorError):
    status_code = 404
    default_message = "Not found"


class ConflictError(WasteEstimatorError):
    status_code = 409
    default_message = "Resource already exists"


class ClassifierError(WasteEstimatorError):
    """Raised when the Gemini API call itself fails."""
    status_code = 500
    default_message = "Gemini API request failed"


class ClassifierResponseParseError(WasteEstimatorError):
    """Raised when the classifier reply is not a usable JSON object."""
    status_code = 500
    default_message = "Classifier returned malformed JSON"


class EstimationFailedError(WasteEstimatorError):
    """Classified wrapper for any other failure inside the estimation pipeline."""
    status_code = 500
    default_message = "Failed to process waste estimation"


# =============================================================================
# FAILURE CLASSIFICATION
# =============================================================================
# Dependencies fail with opaque exceptions, so failures are bucketed by
# substring match on "<module>.<class>: <message>". First matching rule wins.

DATABASE_CONNECTION_MESSAGE = "Database connection error. Please check environment variables."
DATABASE_QUERY_MESSAGE = "Database query error. Data might not be seeded."
AI_API_MESSAGE = "AI API error. Please check GOOGLE_API_KEY."

FAILURE_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (
        (
            "DATABASE_URL",
            "Connection refused",
            "Connect call failed",
            "could not connect",
            "unable to open database",
        ),
        DATABASE_CONNECTION_MESSAGE,
    ),
    (("sqlalchemy.", "asyncpg.", "sqlite3."), DATABASE_QUERY_MESSAGE),
    (("Gemini", "API"), AI_API_MESSAGE),
)


def describe_failure(exc: BaseException) -> str:
    """Render an exception as the text the classification rules match against."""
    cls = type(exc)
    return f"{cls.__module__}.{cls.__qualname__}: {exc}"


def classify_failure(exc: BaseException) -> str:
    """Map an arbitrary failure onto a short operator-facing message."""
    # Classifier failures are AI failures whatever transport text they carry.
    if isinstance(exc, ClassifierError):
        return AI_API_MESSAGE
    description = describe_failure(exc)
    for patterns, message in FAILURE_RULES:
        if any(pattern in description for pattern in patterns):
            return message
    return f"Error: {exc}" if str(exc) else "Failed to process waste estimation"


def wrap_failure(exc: BaseException, include_trace: bool) -> EstimationFailedError:
    """Build the classified 500 error for an unexpected pipeline failure."""
    details = None
    if include_trace:
        details = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return EstimationFailedError(classify_failure(exc), details=details)
