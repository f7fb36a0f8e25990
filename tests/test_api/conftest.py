import pytest
from fastapi.testclient import TestClient

from finmail.api.v1.deps import get_gmail_session
from finmail.services import gmail_service
from main import app


@pytest.fixture
def client(data_dir):
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def signed_in(monkeypatch, make_email):
    """Skip OAuth and serve canned emails instead of calling Gmail."""
    fetched = []

    def fake_fetch(session, source, max_results=20, include_body=False, query=None):
        fetched.append((source, max_results, include_body))
        return [
            make_email(id="msg1", source=source),
            make_email(id="msg2", snippet="Avl Bal: Rs. 9,500", source=source, pdfs=("stmt.pdf",)),
        ][:max_results]

    app.dependency_overrides[get_gmail_session] = lambda: object()
    monkeypatch.setattr(gmail_service, "fetch_emails", fake_fetch)
    return fetched
