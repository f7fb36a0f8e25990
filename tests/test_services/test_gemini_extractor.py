"""Tests for Gemini error classification and client setup."""

import pytest

from finmail import config
from finmail.exceptions import GeminiError, RateLimitError, ServiceUnavailableError
from finmail.services.gemini_extractor import ErrorClass, GeminiClient, classify_error


class CodedError(Exception):
    def __init__(self, message, code):
        super().__init__(message)
        self.code = code


def test_typed_errors():
    assert classify_error(RateLimitError("slow down")) == ErrorClass.RATE_LIMITED
    assert classify_error(ServiceUnavailableError("down")) == ErrorClass.UNAVAILABLE


def test_status_codes():
    assert classify_error(CodedError("x", 429)) == ErrorClass.RATE_LIMITED
    assert classify_error(CodedError("x", 503)) == ErrorClass.UNAVAILABLE
    assert classify_error(CodedError("x", 400)) == ErrorClass.FATAL


def test_message_markers():
    assert classify_error(Exception("429 RESOURCE_EXHAUSTED")) == ErrorClass.RATE_LIMITED
    assert classify_error(Exception("The model is overloaded")) == ErrorClass.UNAVAILABLE
    assert classify_error(Exception("API key not valid")) == ErrorClass.FATAL


def test_client_requires_api_key(monkeypatch):
    monkeypatch.setattr(config, "GOOGLE_API_KEY", None)
    with pytest.raises(GeminiError):
        GeminiClient()
