"""Tests for forwarding emails to the n8n webhook."""

import pytest
import requests

from finmail import config
from finmail.exceptions import WebhookError
from finmail.services import webhook_service
from finmail.services.webhook_service import forward_emails


class FakeResponse:
    def __init__(self, status_code=200):
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


def test_not_configured(monkeypatch, make_email):
    monkeypatch.setattr(config, "N8N_WEBHOOK_URL", None)
    assert forward_emails([make_email()]) is False


def test_posts_camel_case_payload(monkeypatch, make_email):
    calls = []

    def fake_post(url, json=None, timeout=None):
        calls.append((url, json, timeout))
        return FakeResponse()

    monkeypatch.setattr(webhook_service.requests, "post", fake_post)
    assert forward_emails([make_email()], url="http://n8n.local/webhook/emails") is True

    url, payload, timeout = calls[0]
    assert url == "http://n8n.local/webhook/emails"
    assert payload["emails"][0]["id"] == "msg1"
    assert "fromAddress" in payload["emails"][0]
    assert timeout == 30


def test_http_error_raises(monkeypatch, make_email):
    monkeypatch.setattr(webhook_service.requests, "post", lambda *a, **kw: FakeResponse(500))
    with pytest.raises(WebhookError):
        forward_emails([make_email()], url="http://n8n.local/webhook/emails")


def test_connection_error_raises(monkeypatch, make_email):
    def refuse(*args, **kwargs):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(webhook_service.requests, "post", refuse)
    with pytest.raises(WebhookError, match="refused"):
        forward_emails([make_email()], url="http://n8n.local/webhook/emails")
