"""
Tests for building and sending order emails through Gmail.

Run with: python -m pytest tests/test_gmail_service.py -v
"""

import base64

import requests

from services import gmail_service
from services.gmail_service import encode_email, send_email_via_gmail


class _FakeCredentials:
    def __init__(self, valid=True):
        self.valid = valid
        self.token = "access"
        self.refreshed = 0

    def refresh(self, request):
        self.refreshed += 1
        self.valid = True


class _FakeResp:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload or {}

    def json(self):
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} error")


def _decode(raw):
    padded = raw + "=" * (-len(raw) % 4)
    return base64.urlsafe_b64decode(padded).decode("utf-8")


class TestEncodeEmail:
    def test_unpadded_base64url(self):
        raw = encode_email("buyer@example.com", "Order suggestions", "Line 1\nLine 2")
        assert "=" not in raw
        assert "+" not in raw and "/" not in raw
        message = _decode(raw)
        assert message.startswith("From: me\r\nTo: buyer@example.com\r\nSubject: Order suggestions\r\n\r\n")
        assert message.endswith("Line 1\nLine 2")


class TestSendEmail:
    def test_posts_raw_message(self, monkeypatch):
        calls = []

        def fake_post(url, headers=None, json=None, timeout=None):
            calls.append((url, headers, json))
            return _FakeResp(200, {"id": "msg-1"})

        monkeypatch.setattr("requests.post", fake_post)
        creds = _FakeCredentials(valid=False)

        assert send_email_via_gmail("buyer@example.com", "Hi", "Body", credentials=creds) is True
        assert creds.refreshed == 1
        url, headers, body = calls[0]
        assert url == gmail_service.GMAIL_SEND_URL
        assert headers["Authorization"] == "Bearer access"
        assert "Subject: Hi" in _decode(body["raw"])

    def test_without_recipient(self, monkeypatch):
        monkeypatch.setattr("requests.post", lambda *a, **k: _FakeResp())
        assert send_email_via_gmail("", "Hi", "Body", credentials=_FakeCredentials()) is False

    def test_without_credentials(self, monkeypatch):
        monkeypatch.setattr(gmail_service, "get_gmail_credentials", lambda: None)
        assert send_email_via_gmail("buyer@example.com", "Hi", "Body") is False

    def test_failure_returns_false(self, monkeypatch):
        monkeypatch.setattr("requests.post", lambda *a, **k: _FakeResp(403))
        assert send_email_via_gmail("buyer@example.com", "Hi", "Body", credentials=_FakeCredentials()) is False
