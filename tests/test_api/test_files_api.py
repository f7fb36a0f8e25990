"""Tests for the stored file endpoints."""

from finmail.models.stored_file import FileKind
from finmail.services.storage_service import save_json


def test_list_and_filter(client):
    save_json(FileKind.EMAILS, {"emails": []})
    save_json(FileKind.GEMINI_TRANSACTIONS, {"transactions": []})

    assert client.get("/api/v1/files").json()["total"] == 2
    filtered = client.get("/api/v1/files?kind=emails").json()
    assert filtered["total"] == 1
    assert filtered["files"][0]["kind"] == "emails"
    assert "sizeBytes" in filtered["files"][0]


def test_read_file(client):
    stored = save_json(FileKind.EMAILS, {"emails": [{"id": "a"}]})
    assert client.get(f"/api/v1/files/{stored.filename}").json() == {"emails": [{"id": "a"}]}


def test_missing_or_foreign_file(client):
    assert client.get("/api/v1/files/emails_20240101T000000000000Z.json").status_code == 404
    assert client.get("/api/v1/files/notes.txt").status_code == 404
    assert client.get("/api/v1/files?kind=bogus").status_code == 422
