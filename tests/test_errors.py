"""
Failure classification for the estimation pipeline.
"""

import httpx
import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from waste_estimator.core.errors import (
    AI_API_MESSAGE,
    DATABASE_CONNECTION_MESSAGE,
    DATABASE_QUERY_MESSAGE,
    ClassifierError,
    ClassifierResponseParseError,
    EstimationFailedError,
    HierarchyNotProvisionedError,
    ImageRequiredError,
    classify_failure,
    describe_failure,
    wrap_failure,
)
from waste_estimator.services.classifier import GeminiClassifier


class TestStatusCodes:

    def test_client_errors(self):
        assert ImageRequiredError().status_code == 400
        assert ImageRequiredError().message == "Image is required"
        assert HierarchyNotProvisionedError().status_code == 400

    def test_dependency_errors(self):
        assert ClassifierError().status_code == 500
        assert EstimationFailedError().status_code == 500


class TestClassifyFailure:

    def test_describe_includes_type(self):
        assert describe_failure(ValueError("bad")) == "builtins.ValueError: bad"

    @pytest.mark.parametrize(
        "exc",
        [
            ConnectionRefusedError(111, "Connection refused"),
            OSError("Connect call failed ('127.0.0.1', 5432)"),
            RuntimeError("DATABASE_URL is not set"),
            OperationalError("SELECT 1", {}, Exception("unable to open database file")),
        ],
    )
    def test_connectivity(self, exc):
        assert classify_failure(exc) == DATABASE_CONNECTION_MESSAGE

    def test_query_failure(self):
        exc = IntegrityError("INSERT INTO waste_estimations", {}, Exception("FOREIGN KEY constraint failed"))
        assert classify_failure(exc) == DATABASE_QUERY_MESSAGE

    def test_classifier_failure(self):
        assert classify_failure(ClassifierError("Gemini API rejected the API key (HTTP 403)")) == AI_API_MESSAGE

    def test_connectivity_wins_over_persistence(self):
        exc = OperationalError("SELECT 1", {}, Exception("could not connect to server"))
        assert classify_failure(exc) == DATABASE_CONNECTION_MESSAGE

    def test_generic(self):
        assert classify_failure(RuntimeError("boom")) == "Error: boom"

    def test_parse_error_is_generic(self):
        exc = ClassifierResponseParseError("Classifier returned malformed JSON: Expecting value at position 0")
        assert classify_failure(exc) == "Error: Classifier returned malformed JSON: Expecting value at position 0"


class TestWrapFailure:

    def _raised(self) -> Exception:
        try:
            raise RuntimeError("boom")
        except RuntimeError as e:
            return e

    def test_includes_trace_outside_production(self):
        wrapped = wrap_failure(self._raised(), include_trace=True)
        assert isinstance(wrapped, EstimationFailedError)
        assert wrapped.status_code == 500
        assert wrapped.message == "Error: boom"
        assert "Traceback" in wrapped.details
        assert "RuntimeError: boom" in wrapped.details

    def test_omits_trace_in_production(self):
        wrapped = wrap_failure(self._raised(), include_trace=False)
        assert wrapped.message == "Error: boom"
        assert wrapped.details is None


class TestClassifierFailures:
    """Classifier errors carry transport text that also appears in database errors."""

    def test_unreachable_classifier_is_not_a_database_outage(self):
        exc = ClassifierError("Gemini API unreachable: [Errno 111] Connection refused")
        assert classify_failure(exc) == AI_API_MESSAGE

    async def test_connect_error_from_gemini(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("[Errno 111] Connection refused", request=request)

        classifier = GeminiClassifier(api_key="key", transport=httpx.MockTransport(handler))
        with pytest.raises(ClassifierError) as exc:
            await classifier.classify(b"img", "image/jpeg", "prompt")
        assert classify_failure(exc.value) == AI_API_MESSAGE
        assert wrap_failure(exc.value, include_trace=False).message == AI_API_MESSAGE
