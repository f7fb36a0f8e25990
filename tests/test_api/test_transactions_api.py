"""Tests for the transaction processing, hub and balance endpoints."""

import json

from finmail.api.v1.endpoints import transactions


def fake_generate(prompt):
    return "Result:\n" + json.dumps([
        {"email_id": "msg1", "txn_date": "2024-01-05", "credit_debit": "debit",
         "rcvd_from_paid_to": "Amazon", "txn_amount": 500, "available_balance": 9500},
    ])


def _profile_id(client):
    return client.post("/api/v1/profiles", json={"firstName": "Jane", "lastName": "Doe"}).json()["userId"]


def test_process_end_to_end(client, signed_in, monkeypatch):
    monkeypatch.setattr(transactions, "GeminiClient", lambda: fake_generate)
    user_id = _profile_id(client)

    response = client.post(
        "/api/v1/transactions/process",
        json={"user_id": user_id, "sources": ["bank_statement", "credit_card"], "max_results": 5},
    )
    assert response.status_code == 200
    body = response.json()

    # same message ids from both searches are processed once
    assert body["fetched_emails"] == 2
    assert body["processed_emails"] == 2
    assert body["extracted_records"] == 1
    assert body["balance"]["amount"] == 9500.0
    assert body["stored_file"].startswith("gemini_transactions_")
    assert [s for s, _, _ in signed_in] == ["bank_statement", "credit_card"]

    balance = client.get("/api/v1/transactions/balance").json()
    assert balance["amount"] == 9500.0
    assert balance["source"] == "transaction"


def test_process_validates_before_fetching(client, signed_in):
    user_id = _profile_id(client)
    bad_source = client.post("/api/v1/transactions/process", json={"user_id": user_id, "sources": ["nope"]})
    assert bad_source.status_code == 400

    no_profile = client.post(
        "/api/v1/transactions/process",
        json={"user_id": "0f1e2d3c4b5a69788796a5b4c3d2e1f0"},
    )
    assert no_profile.status_code == 404
    assert signed_in == []


def test_hub_lifecycle(client, signed_in, monkeypatch):
    assert client.get("/api/v1/transactions/hub").status_code == 404
    assert client.get("/api/v1/transactions/balance").status_code == 404

    monkeypatch.setattr(transactions, "GeminiClient", lambda: fake_generate)
    client.post("/api/v1/transactions/process", json={"user_id": _profile_id(client)})

    built = client.post("/api/v1/transactions/hub")
    assert built.status_code == 200
    assert built.json()["summary"]["totalDebit"] == 500.0

    latest = client.get("/api/v1/transactions/hub").json()
    assert latest["stored_file"] == built.json()["stored_file"]
