"""
Tests for the Sentry event filter.
"""

from fastapi import HTTPException

from ewaab.auth.errors import ExpiredTokenError, ResourceNotFoundError
from ewaab.integrations.sentry import capture_exception, filter_event, init_sentry


def _hint(error: Exception) -> dict:
    return {"exc_info": (type(error), error, None)}


class TestFilterEvent:
    def test_token_errors_dropped(self):
        assert filter_event({}, _hint(ExpiredTokenError("Token has expired"))) is None

    def test_expected_http_errors_dropped(self):
        assert filter_event({}, _hint(HTTPException(status_code=403))) is None

    def test_other_errors_kept(self):
        event = {"message": "boom"}

        assert filter_event(event, _hint(ResourceNotFoundError("post", "p1"))) is event

    def test_credentials_scrubbed(self):
        event = {
            "request": {
                "headers": {"Authorization": "Bearer abc", "Accept": "application/json"},
                "cookies": {"refreshToken": "abc"},
            }
        }

        result = filter_event(event, {})

        assert result["request"]["headers"] == {"Authorization": "[Filtered]", "Accept": "application/json"}
        assert result["request"]["cookies"] == "[Filtered]"


class TestDisabled:
    def test_no_dsn(self, settings):
        assert init_sentry(settings) is False

    def test_capture_without_client(self):
        assert capture_exception(RuntimeError("boom")) is None
